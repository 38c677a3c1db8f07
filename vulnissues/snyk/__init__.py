"""Snyk scanning service integration"""

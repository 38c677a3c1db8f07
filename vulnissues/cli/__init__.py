"""Command-line interface for vulnissues"""

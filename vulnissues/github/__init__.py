"""GitHub issue tracker integration"""

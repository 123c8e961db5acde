"""
HTTP API for projects, quotes and address lookup.
"""

"""
HTTP API for job management.
"""

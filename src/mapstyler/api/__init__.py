"""
HTTP API for the styling pipeline.
"""

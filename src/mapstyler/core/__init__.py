"""
Core styling and geodata processing.
"""

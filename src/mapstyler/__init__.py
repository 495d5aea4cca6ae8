"""
mapstyler - cartographic styling pipeline for map publishing.

This package converts QGIS style documents into renderer-ready paint
specifications, builds conditional fill expressions from user-authored
rules, and reprojects GeoJSON documents between coordinate systems.
"""

__version__ = "0.1.0"

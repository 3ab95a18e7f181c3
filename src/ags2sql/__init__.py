"""
ags2sql - ArcGIS feature service to SQL table converter.

Reads tables from an ArcGIS MapServer/FeatureServer REST endpoint page by
page and materializes them as plain SQL tables, deriving the column layout
from the field metadata the service reports.
"""

__version__ = "0.1.0"

"""Catalog and merge tool for transparency-portal spreadsheet exports."""

__version__ = "0.1.0"

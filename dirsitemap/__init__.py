"""Publish sitemap.xml files for a static website tree."""

__version__ = "1.0.0"

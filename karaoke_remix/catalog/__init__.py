# karaoke_remix/catalog/__init__.py
"""
Song catalog package (iTunes Search API)
"""

from .itunes import CatalogClient, CatalogTrack

__all__ = [
    'CatalogClient',
    'CatalogTrack',
]

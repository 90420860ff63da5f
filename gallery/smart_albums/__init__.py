"""
Smart albums for the gallery.

Smart albums are queries over photos rather than nodes of the album tree.
"""

from .starred import SmartAlbum, StarredAlbum

__all__ = ['SmartAlbum', 'StarredAlbum']

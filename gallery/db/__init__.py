"""
Gallery Database Module

Provides database models, the SQL album tree store, content operations,
and connection management.
"""

from .connection import (
    configure_database,
    build_session_factory,
    create_database_engine,
    get_session_factory,
    init_database,
)
from .models import Base, Album, Photo
from .store import AlbumLocks, SQLAlchemyTreeStore
from .operations import ContentOperations, PhotoOperations, AlbumOperations

__all__ = [
    'configure_database',
    'build_session_factory',
    'create_database_engine',
    'get_session_factory',
    'init_database',
    'AlbumLocks',
    'SQLAlchemyTreeStore',
    'ContentOperations',
    'PhotoOperations',
    'AlbumOperations',
    # Models
    'Base',
    'Album',
    'Photo',
]

"""
Database connection management for the gallery.

Builds the SQLAlchemy engine and session factory from the gallery
configuration.
"""

import logging
from typing import Optional, Dict, Any
from sqlalchemy import create_engine, Engine, event, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from .models import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_database_engine(db_config: Dict[str, Any]) -> Engine:
    """
    Create an engine from the ``database`` configuration section.

    Args:
        db_config: Database configuration (url, echo, connection_pool)

    Returns:
        SQLAlchemy engine
    """
    url = db_config.get('url')
    if not url:
        raise ValueError("Database URL not configured (database.url)")

    echo = db_config.get('echo', False)

    if url.startswith('sqlite'):
        # In-memory SQLite must share one connection or every session sees
        # an empty database.
        if url in ('sqlite://', 'sqlite:///:memory:'):
            return create_engine(
                url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={'check_same_thread': False},
            )
        return create_engine(url, echo=echo, connect_args={'check_same_thread': False})

    pool_config = db_config.get('connection_pool', {})
    return create_engine(
        url,
        echo=echo,
        pool_size=pool_config.get('pool_size', 5),
        max_overflow=pool_config.get('max_overflow', 10),
        pool_timeout=pool_config.get('pool_timeout', 30),
        pool_recycle=pool_config.get('pool_recycle', 3600),
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def configure_database(config: Dict[str, Any]) -> None:
    """
    Configure the database connection.

    Args:
        config: Gallery configuration dictionary
    """
    global _engine, _session_factory

    db_config = config.get('database', {})

    try:
        _engine = create_database_engine(db_config)
        _session_factory = build_session_factory(_engine)

        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        logger.info(f"Database configured: {_engine.url.render_as_string(hide_password=True)}")

        if db_config.get('auto_init', True):
            init_database()

    except Exception as e:
        logger.error(f"Failed to configure database: {e}")
        _engine = None
        _session_factory = None
        raise


def get_session_factory() -> Optional[sessionmaker]:
    """Get the session factory."""
    return _session_factory


def init_database() -> None:
    """
    Initialize database schema by creating all tables.
    """
    if not _engine:
        raise RuntimeError("Database engine not available")

    try:
        Base.metadata.create_all(_engine)
        logger.info("Database schema initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize database schema: {e}")
        raise


def reset_database() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@event.listens_for(Engine, "connect")
def set_database_optimizations(dbapi_connection, connection_record):
    """Bound lock waits so a stuck album row surfaces as a retryable error."""
    cursor = dbapi_connection.cursor()

    # PostgreSQL-specific settings
    if hasattr(dbapi_connection, 'server_version'):
        try:
            cursor.execute("SET statement_timeout = '30s'")
            cursor.execute("SET lock_timeout = '10s'")
        except Exception as e:
            logger.debug(f"Could not set PostgreSQL options: {e}")

    cursor.close()


@event.listens_for(Engine, "begin")
def do_begin(conn):
    """Log transaction begin for debugging."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Database transaction started")


@event.listens_for(Engine, "commit")
def do_commit(conn):
    """Log transaction commit for debugging."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Database transaction committed")


@event.listens_for(Engine, "rollback")
def do_rollback(conn):
    """Log transaction rollback for debugging."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Database transaction rolled back")

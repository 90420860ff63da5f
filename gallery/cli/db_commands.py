"""
Database CLI commands for the gallery

Schema setup and operator-triggered takestamp maintenance.
"""

import click
import logging

from ..config import get_config_value
from ..db.connection import configure_database, get_session_factory, reset_database
from ..db.store import SQLAlchemyTreeStore
from ..takestamps import TakestampError, check_all, recompute_all
from ..utils.logging import StructuredLogger

logger = logging.getLogger(__name__)
maintenance_log = StructuredLogger(__name__, {'component': 'takestamps'})


def _open_store(ctx) -> SQLAlchemyTreeStore:
    config = ctx.obj['config']
    configure_database(config)
    ctx.call_on_close(reset_database)
    return SQLAlchemyTreeStore(
        get_session_factory(),
        lock_timeout=get_config_value(config, 'takestamps.lock_timeout', 10.0),
    )


@click.group()
def db():
    """Database management commands"""
    pass


@db.command()
@click.pass_context
def init(ctx):
    """Create the database schema"""
    config = dict(ctx.obj['config'])
    config['database'] = {**config.get('database', {}), 'auto_init': True}
    configure_database(config)
    ctx.call_on_close(reset_database)
    click.echo("Database schema initialized")


@db.command('recompute-takestamps')
@click.option('--yes', '-y', is_flag=True,
              help='Confirm that no content changes are running')
@click.pass_context
def recompute_takestamps(ctx, yes):
    """
    Recalculate the takestamps of every album from scratch.

    This scans every album's full subtree. Run it only while the gallery
    is in maintenance mode: concurrent content changes can be lost.
    """
    if not yes:
        click.confirm("Recompute takestamps of all albums? Content changes must be paused",
                      abort=True)

    store = _open_store(ctx)
    try:
        stats = recompute_all(store)
    except TakestampError as e:
        maintenance_log.error("Takestamp recomputation failed", error=str(e))
        raise click.ClickException(str(e))

    maintenance_log.info("Takestamp recomputation finished",
                         albums=stats.albums_processed, changed=stats.albums_changed)
    click.echo(f"Recomputed {stats.albums_processed} albums, {stats.albums_changed} changed")


@db.command('check-takestamps')
@click.pass_context
def check_takestamps(ctx):
    """Report albums whose stored takestamps are stale"""
    store = _open_store(ctx)
    try:
        drifted = check_all(store)
    except TakestampError as e:
        raise click.ClickException(str(e))

    if not drifted:
        click.echo("All album takestamps are consistent")
        return

    for drift in drifted:
        click.echo(
            f"Album {drift.album_id}: stored [{drift.stored.min}, {drift.stored.max}] "
            f"actual [{drift.actual.min}, {drift.actual.max}]"
        )
    click.echo(f"{len(drifted)} albums have stale takestamps; "
               f"run 'gallery db recompute-takestamps'")
    ctx.exit(1)

"""
Gallery command line interface.

Operator entry points for schema setup and takestamp maintenance.
"""

import logging
from typing import Optional

import click

from ..config import load_config, get_config_value
from ..utils.logging import setup_console_logging
from .db_commands import db

logger = logging.getLogger(__name__)


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    Gallery - album tree maintenance
    """
    ctx.ensure_object(dict)

    ctx.obj['config'] = load_config(config)

    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    else:
        level = get_config_value(ctx.obj['config'], 'logging.level', 'INFO')

    handler = setup_console_logging(
        level, color=get_config_value(ctx.obj['config'], 'logging.color', True)
    )
    ctx.call_on_close(lambda: logging.getLogger().removeHandler(handler))

    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


main.add_command(db)

__all__ = ['main']

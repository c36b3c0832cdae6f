# bookstock/cli/main.py
import click
from bookstock.config import Settings
from bookstock.utils.log_setup import setup_logging
from .commands.library import library
from .commands.search import search, bulk_search

@click.group()
@click.option('--log-level', default=None, help='Log level, overrides BOOKSTOCK_LOG_LEVEL')
@click.pass_context
def cli(ctx, log_level):
    """Bookstock CLI"""
    obj = ctx.ensure_object(dict)
    settings = obj.get('settings') or Settings.from_env()
    obj['settings'] = settings
    setup_logging(log_level or settings.log_level)

cli.add_command(library)
cli.add_command(search)
cli.add_command(bulk_search)

def main():
    """Entry point for the CLI"""
    cli()

if __name__ == '__main__':
    main()

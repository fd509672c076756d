"""GatePass CLI entry point - assembles all command groups."""
import logging

import click

from gatepass.config import ScannerConfig

from . import __version__
from .output import print_error
from .register_cmd import register
from .roster_cmd import roster
from .scan_cmd import init, scan, stats, sync


@click.group()
@click.version_option(version=__version__)
@click.option("--db", "db_path", default=None, help="Local scanner database path")
@click.option("--remote", "remote_path", default=None, help="Remote document store file")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")
@click.pass_context
def cli(ctx: click.Context, db_path: str | None, remote_path: str | None, log_level: str | None):
    """GatePass: door check-in that keeps working offline."""
    config = ScannerConfig.from_env()
    if db_path:
        config.db_path = db_path
    if remote_path:
        config.remote_path = remote_path
    if log_level:
        config.log_level = log_level.upper()

    errors = config.validate()
    if errors:
        for error in errors:
            print_error(f"Config error: {error}")
        ctx.exit(2)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = config


cli.add_command(init)
cli.add_command(register)
cli.add_command(roster)
cli.add_command(scan)
cli.add_command(sync)
cli.add_command(stats)


if __name__ == "__main__":
    cli()

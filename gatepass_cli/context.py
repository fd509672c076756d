"""Resolve configuration and stores for a CLI invocation."""
import click

from gatepass.config import ScannerConfig
from gatepass.remote import FileRemoteStore, RemoteStore, is_connected
from gatepass.store import LocalStore


def get_config(ctx: click.Context) -> ScannerConfig:
    return ctx.find_root().obj


def open_local(ctx: click.Context) -> LocalStore:
    return LocalStore(get_config(ctx).db_path)


def open_remote(ctx: click.Context) -> FileRemoteStore:
    return FileRemoteStore(get_config(ctx).remote_path)


def remote_reachable(ctx: click.Context, remote: RemoteStore) -> bool:
    """Online when the remote store answers, and its host too if one is configured."""
    if not remote.is_available():
        return False
    config = get_config(ctx)
    if not config.remote_host:
        return True
    return is_connected(config.remote_host, config.remote_port, config.connect_timeout)

"""Roster cache CLI commands."""
import click

from gatepass.scanner import cache
from .context import get_config, open_local, open_remote
from .output import print_error, print_json, print_success, print_warning, table


@click.group()
def roster():
    """Event roster cache commands."""
    pass


@roster.command()
@click.argument("event_id")
@click.argument("event_name")
@click.pass_context
def download(ctx: click.Context, event_id: str, event_name: str):
    """Download and cache the registrant roster for an event."""
    result = cache.download_roster(
        event_id,
        event_name,
        open_remote(ctx),
        store=open_local(ctx),
        ttl_hours=get_config(ctx).cache_ttl_hours,
    )

    if result.success:
        print_success(f"Cached {result.count} registrations for {event_name}")
        print_json(result.to_dict())
    else:
        print_error(f"Download failed: {result.error}")
        ctx.exit(1)


@roster.command()
@click.argument("event_id")
@click.pass_context
def status(ctx: click.Context, event_id: str):
    """Show whether the cached roster is fresh enough to scan against."""
    ready = cache.check_ready(event_id, store=open_local(ctx))
    if not ready.ready:
        print_warning(ready.message)
    print_json(ready.to_dict())


@roster.command("list")
@click.argument("event_id")
@click.option("--limit", "-n", default=50, help="Number of registrations to show")
@click.pass_context
def list_roster(ctx: click.Context, event_id: str, limit: int):
    """List cached registrations for an event."""
    regs = cache.list_for_event(event_id, store=open_local(ctx))

    if not regs:
        click.echo("No cached registrations")
        return

    click.echo(f"Showing {min(limit, len(regs))} of {len(regs)} cached registrations:\n")
    rows = [
        [r.registration_id, r.full_name, r.college_name, "yes" if r.attendance_marked else "no"]
        for r in regs[:limit]
    ]
    table(["Registration", "Name", "College", "Checked in"], rows)


@roster.command()
@click.argument("event_id")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def clear(ctx: click.Context, event_id: str, yes: bool):
    """Drop the cached roster for an event."""
    local = open_local(ctx)
    if not yes and not click.confirm(f"Clear cached roster for {event_id}?"):
        return

    removed = cache.clear_event_cache(event_id, store=local)
    print_success(f"Removed {removed} cached registrations")

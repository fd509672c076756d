"""Door scanning CLI commands."""
import click

from gatepass.core.schemas import ScanStatus
from gatepass.scanner import cache, lifecycle, mark, sync as reconciler, verify
from .context import get_config, open_local, open_remote, remote_reachable
from .output import print_error, print_json, print_success, print_warning


@click.command()
@click.pass_context
def init(ctx: click.Context):
    """Clear expired rosters and old synced entries before scanning."""
    result = lifecycle.initialize(
        store=open_local(ctx),
        retention_minutes=get_config(ctx).sync_retention_minutes,
    )
    print_json(result)


@click.command()
@click.argument("signature")
@click.option("--event", "event_id", required=True, help="Event being scanned")
@click.option("--operator", "operator_id", default=None, help="Operator Orbit ID (required with --mark)")
@click.option("--mark", "do_mark", is_flag=True, help="Mark attendance when the pass is valid")
@click.pass_context
def scan(ctx: click.Context, signature: str, event_id: str, operator_id: str | None, do_mark: bool):
    """Verify a scanned QR signature, optionally checking the attendee in."""
    if do_mark and not operator_id:
        print_error("--operator is required with --mark")
        ctx.exit(2)

    local = open_local(ctx)

    ready = cache.check_ready(event_id, store=local)
    if not ready.ready:
        print_error(ready.message)
        ctx.exit(1)

    result = verify.verify_qr(signature, event_id, store=local)

    if result.status == ScanStatus.VALID:
        print_success(result.message)
    elif result.status == ScanStatus.ALREADY_SCANNED:
        print_warning(result.message)
    else:
        print_error(result.message)
        ctx.exit(1)

    output = {"scan": result.to_dict()}

    if do_mark and result.status == ScanStatus.VALID:
        remote = open_remote(ctx)
        online = remote_reachable(ctx, remote)
        marked = mark.mark_attendance(
            signature,
            operator_id,
            remote=remote if online else None,
            online=online,
            store=local,
        )
        # The process exits after this command; let the drain finish.
        if marked.sync_thread is not None:
            marked.sync_thread.join()
        output["mark"] = marked.to_dict()

    print_json(output)


@click.command()
@click.pass_context
def sync(ctx: click.Context):
    """Push pending attendance marks to the remote store."""
    local = open_local(ctx)
    result = reconciler.sync_pending(open_remote(ctx), store=local)

    if result.failed:
        print_warning(f"Synced {result.synced}, {result.failed} still pending")
    else:
        print_success(f"Synced {result.synced} attendance marks")
    print_json({**result.to_dict(), "pending_count": reconciler.get_pending_count(store=local)})


@click.command()
@click.argument("event_id")
@click.pass_context
def stats(ctx: click.Context, event_id: str):
    """Show attendance statistics for a cached event."""
    print_json(cache.attendance_stats(event_id, store=open_local(ctx)))

"""Pass issuance CLI command."""
import click

from gatepass.remote import RemoteStoreError
from gatepass.signature import PassRequest, issue_pass
from .context import open_remote
from .output import print_error, print_json, print_success


@click.command()
@click.option("--orbit-id", required=True, help="Member Orbit ID")
@click.option("--first-name", required=True)
@click.option("--last-name", default="")
@click.option("--email", default="")
@click.option("--college", "college_name", default="")
@click.option("--gov-id-last4", required=True, help="Last 4 characters of a government ID")
@click.option("--gov-id-type", default="", help="aadhar or pan")
@click.option("--gender", default="")
@click.option("--event-id", required=True)
@click.option("--event-name", required=True)
@click.option("--event-date", default="", help="YYYY-MM-DD")
@click.pass_context
def register(ctx: click.Context, **fields):
    """Issue a signed event pass and store the registration."""
    try:
        issued = issue_pass(PassRequest(**fields), open_remote(ctx))
    except (ValueError, RemoteStoreError) as e:
        print_error(str(e))
        ctx.exit(2)

    print_success(f"Registered {issued.registration_id}")
    print_json({
        "registration_id": issued.registration_id,
        "qr_signature": issued.qr_signature,
    })

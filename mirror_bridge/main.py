"""
Mirror Bridge — CLI Entry Point

Usage:
    mirror-bridge serve [--host H] [--port N]
    mirror-bridge invoke < request.json
    mirror-bridge sync REPO_NAME CLONE_URL
    mirror-bridge check-config
"""

from __future__ import annotations

# Load .env FIRST, before anything reads environment variables
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import logging
import os
import sys

import click

from .config import BridgeSettings
from .errors import MirrorBridgeError
from .logging_config import setup_logging
from .webhook.events import PushEvent

# Initialize logging
setup_logging()

logger = logging.getLogger(__name__)


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Mirror Bridge — GitHub to Cloud Source Repositories mirroring."""
    ctx.ensure_object(dict)
    if "settings" not in ctx.obj:
        ctx.obj["settings"] = BridgeSettings.from_env()


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", type=int, default=None, help="Port (default: $PORT or 8080)")
@click.option("--debug", is_flag=True, help="Flask debug mode")
def serve(host: str, port: int | None, debug: bool) -> None:
    """Run the webhook server."""
    from .server import run_server

    run_server(host=host, port=port or int(os.environ.get("PORT", "8080")), debug=debug)


@cli.command()
@click.pass_context
def invoke(ctx: click.Context) -> None:
    """Read one JSON HTTP request on stdin, print the JSON response."""
    import pydantic

    from .harness import run_harness
    from .server import create_app

    raw = sys.stdin.read()
    app = create_app(settings=ctx.obj["settings"])
    try:
        output = run_harness(app, raw)
    except pydantic.ValidationError as e:
        logger.error(f"unable to load the event: {e}")
        ctx.exit(1)

    click.echo(output, nl=False)


@cli.command()
@click.argument("repo_name")
@click.argument("clone_url")
@click.pass_context
def sync(ctx: click.Context, repo_name: str, clone_url: str) -> None:
    """Mirror one repository now, without a webhook."""
    from .pipeline import MirrorPipeline

    settings: BridgeSettings = ctx.obj["settings"]
    pipeline = MirrorPipeline.from_settings(settings)
    event = PushEvent(repository_name=repo_name, clone_url=clone_url, canonical_url=clone_url)

    click.echo(f"Mirroring {repo_name} from {clone_url}")
    try:
        result = pipeline.mirror(event)
    except MirrorBridgeError as e:
        click.secho(f"✗ {e}", fg="red")
        ctx.exit(1)

    click.secho(f"✓ Mirrored to {result.target_remote_url} ({result.duration_ms}ms)", fg="green")


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Show the effective configuration (secrets masked)."""
    settings: BridgeSettings = ctx.obj["settings"]

    click.echo("\n🔀 Mirror Bridge Configuration\n")
    for key, value in settings.masked().items():
        click.echo(f"  {key:20} {value}")
    click.echo()

    if not settings.project_id:
        click.secho("✗ GCP_PROJECT is not set", fg="red")
        ctx.exit(1)

    click.secho("✓ Configuration OK", fg="green")


if __name__ == "__main__":
    cli()

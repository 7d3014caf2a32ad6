from __future__ import annotations

from pathlib import Path

import typer
from rich import print

from . import __version__
from .client import FragmentsClient
from .commands.common import CliOverrides, effective_config
from .commands.config_cmds import config_set_cmd, config_show_cmd
from .commands.fragment_cmds import (
    convert_cmd,
    create_cmd,
    delete_cmd,
    list_cmd,
    show_cmd,
    update_cmd,
)
from .config import FragmentsConfig
from .logging_setup import configure_logging

app = typer.Typer(help="fragmentctl: manage fragments on a fragments API server")
config_app = typer.Typer(help="Inspect and change fragmentctl configuration")
app.add_typer(config_app, name="config")


def _client(cfg: FragmentsConfig) -> FragmentsClient:
    return FragmentsClient(cfg.api_url, timeout_s=cfg.timeout_s)


def _config(ctx: typer.Context) -> FragmentsConfig:
    overrides = ctx.obj if isinstance(ctx.obj, CliOverrides) else None
    return effective_config(overrides)


@app.callback()
def root(
    ctx: typer.Context,
    api_url: str = typer.Option(None, "--api-url", help="Fragments API base URL"),
    user: str = typer.Option(None, "--user", help="Basic auth username (email)"),
    password: str = typer.Option(None, "--password", help="Basic auth password"),
    log_level: str = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    overrides = CliOverrides(
        api_url=api_url, username=user, password=password, log_level=log_level
    )
    ctx.obj = overrides
    cfg = effective_config(overrides)
    configure_logging(cfg.log_level, cfg.log_file)


@app.command("list")
def list_fragments(ctx: typer.Context) -> None:
    """List fragments (types resolved when the server omits them)."""
    list_cmd(_config(ctx), client_factory=_client)


@app.command()
def show(ctx: typer.Context, fragment_id: str) -> None:
    """Show a fragment's type, available conversions and content."""
    show_cmd(_config(ctx), fragment_id=fragment_id, client_factory=_client)


@app.command()
def create(
    ctx: typer.Context,
    content_type: str = typer.Option("text/plain", "--type", "-t", help="Fragment content type"),
    content: str = typer.Option(None, "--content", "-c", help="Fragment text"),
    file: Path = typer.Option(None, "--file", "-f", help="Read content from a file"),
) -> None:
    """Create a fragment."""
    create_cmd(
        _config(ctx),
        content_type=content_type,
        content=content,
        file=file,
        client_factory=_client,
    )


@app.command()
def update(
    ctx: typer.Context,
    fragment_id: str,
    content: str = typer.Option(None, "--content", "-c", help="Replacement text"),
    file: Path = typer.Option(None, "--file", "-f", help="Read replacement from a file"),
) -> None:
    """Replace a text fragment's content."""
    update_cmd(
        _config(ctx),
        fragment_id=fragment_id,
        content=content,
        file=file,
        client_factory=_client,
    )


@app.command()
def delete(ctx: typer.Context, fragment_id: str) -> None:
    """Delete a fragment."""
    delete_cmd(_config(ctx), fragment_id=fragment_id, client_factory=_client)


@app.command()
def convert(
    ctx: typer.Context,
    fragment_id: str,
    extension: str,
    output: Path = typer.Option(None, "--output", "-o", help="Write the result to a file"),
) -> None:
    """Request a server-side conversion (e.g. html, jpg)."""
    convert_cmd(
        _config(ctx),
        fragment_id=fragment_id,
        extension=extension,
        output=output,
        client_factory=_client,
    )


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    config_show_cmd(_config(ctx))


@config_app.command("set")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value."""
    config_set_cmd(key=key, value=value)


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)


def main() -> None:
    app()

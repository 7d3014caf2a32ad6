from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import typer
from rich import print

from fragmentctl.client import FragmentsClient
from fragmentctl.config import FragmentsConfig, load_config, read_config_file, write_config_file
from fragmentctl.controller import FragmentsController
from fragmentctl.errors import FragmentError

T = TypeVar("T")


@dataclass
class CliOverrides:
    api_url: str | None = None
    username: str | None = None
    password: str | None = None
    log_level: str | None = None


def effective_config(overrides: CliOverrides | None) -> FragmentsConfig:
    cfg = load_config()
    if overrides is None:
        return cfg
    if overrides.api_url:
        cfg.api_url = overrides.api_url
    if overrides.username:
        cfg.username = overrides.username
    if overrides.password:
        cfg.password = overrides.password
    if overrides.log_level:
        cfg.log_level = overrides.log_level
    return cfg


def read_config_or_exit() -> dict[str, Any]:
    try:
        return read_config_file()
    except ValueError as exc:
        print(f"[red]Invalid config file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def write_config_or_exit(data: dict[str, Any]) -> None:
    try:
        write_config_file(data)
    except OSError as exc:
        print(f"[red]Failed to write config: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def fail(message: str) -> typer.Exit:
    print(f"[red]{message}[/red]")
    return typer.Exit(code=1)


def run_with_session(
    cfg: FragmentsConfig,
    action: Callable[[FragmentsController], Awaitable[T]],
    *,
    client_factory: Callable[[FragmentsConfig], FragmentsClient],
) -> T:
    """Log in, run ``action`` against the controller, and close the client."""

    credentials = cfg.credentials()
    if credentials is None:
        raise fail("Missing credentials: set --user/--password or FRAGMENTS_USERNAME/FRAGMENTS_PASSWORD")

    async def _run() -> T:
        async with client_factory(cfg) as client:
            controller = FragmentsController(client)
            error = await controller.login(credentials)
            if error is not None:
                raise fail(f"Login failed: {error}")
            try:
                return await action(controller)
            finally:
                controller.logout()

    try:
        return asyncio.run(_run())
    except FragmentError as exc:
        raise fail(str(exc)) from exc

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from rich import print
from rich.markup import escape

from fragmentctl.client import FragmentsClient
from fragmentctl.config import FragmentsConfig
from fragmentctl.controller import FragmentsController
from fragmentctl.detail import DetailStatus
from fragmentctl.media import is_image
from fragmentctl.results import Content, NotFound, TransportError, UnsupportedConversion
from fragmentctl.sequencer import MutationResult

from .common import fail, run_with_session

ClientFactory = Callable[[FragmentsConfig], FragmentsClient]


def _read_body(content_type: str, content: str | None, file: Path | None) -> str | bytes:
    if content is not None and file is not None:
        raise fail("Use only one of --content or --file")
    if file is not None:
        try:
            data = file.read_bytes()
        except OSError as exc:
            raise fail(f"Cannot read {file}: {exc}") from exc
        if is_image(content_type):
            return data
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise fail(f"{file} is not UTF-8 text") from exc
    if content is None:
        raise fail("Provide --content or --file")
    return content


def _report_mutation(result: MutationResult, done: str) -> None:
    if isinstance(result.outcome, TransportError):
        raise fail(f"Request failed: {result.outcome}")
    print(f"[green]{done}[/green]")
    if result.refresh_error is not None:
        print(f"[yellow]Fragment list not refreshed: {result.refresh_error}[/yellow]")


def list_cmd(cfg: FragmentsConfig, *, client_factory: ClientFactory) -> None:
    """Print the fragment list, resolving missing types."""

    async def _action(controller: FragmentsController) -> None:
        entries, failures = await controller.listing()
        if not entries:
            print("No fragments")
            return
        for meta in entries:
            line = f"- {escape(meta.label())}"
            if meta.size is not None:
                line += f" {meta.size} bytes"
            if meta.id in failures:
                line += " [yellow](type unavailable)[/yellow]"
            print(line)

    run_with_session(cfg, _action, client_factory=client_factory)


def show_cmd(cfg: FragmentsConfig, *, fragment_id: str, client_factory: ClientFactory) -> None:
    """Open one fragment and print its type, conversions and content."""

    async def _action(controller: FragmentsController) -> None:
        status = await controller.open(fragment_id)
        state = controller.detail.state
        if status is not DetailStatus.OPEN or state is None:
            error = state.error if state is not None else None
            if isinstance(error, NotFound):
                raise fail(f"Fragment {fragment_id} not found")
            raise fail(f"Fragment {fragment_id} could not be loaded: {error}")
        print(f"id: {escape(state.meta.id)}")
        print(f"type: {escape(state.meta.display_type)}")
        if state.conversions:
            print(f"conversions: {', '.join(state.conversions)}")
        if state.preview_mode == "image":
            size = len(state.content) if isinstance(state.content, bytes) else 0
            print(f"(binary image data, {size} bytes)")
        elif isinstance(state.content, bytes):
            print(f"(binary data, {len(state.content)} bytes)")
        else:
            print(escape(state.content or ""))

    run_with_session(cfg, _action, client_factory=client_factory)


def create_cmd(
    cfg: FragmentsConfig,
    *,
    content_type: str,
    content: str | None,
    file: Path | None,
    client_factory: ClientFactory,
) -> None:
    """Create a fragment, then refresh the list."""

    body = _read_body(content_type, content, file)

    async def _action(controller: FragmentsController) -> None:
        result = await controller.create(content_type, body)
        fragment = getattr(result.outcome, "fragment", None)
        label = f"Created {fragment.id}" if fragment is not None else "Created fragment"
        _report_mutation(result, label)
        print(f"{len(controller.registry)} fragments")

    run_with_session(cfg, _action, client_factory=client_factory)


def update_cmd(
    cfg: FragmentsConfig,
    *,
    fragment_id: str,
    content: str | None,
    file: Path | None,
    client_factory: ClientFactory,
) -> None:
    """Replace a fragment's content, keeping its type."""

    async def _action(controller: FragmentsController) -> None:
        status = await controller.open(fragment_id)
        state = controller.detail.state
        if status is not DetailStatus.OPEN or state is None:
            raise fail(f"Fragment {fragment_id} could not be loaded")
        if is_image(state.meta.effective_type):
            raise fail("Updating image content is not supported")
        body = _read_body(state.meta.display_type, content, file)
        if not isinstance(body, str):
            raise fail(f"{file} is not text")
        controller.detail.edit(body)
        result = await controller.save_detail()
        _report_mutation(result, f"Updated {fragment_id}")

    run_with_session(cfg, _action, client_factory=client_factory)


def delete_cmd(cfg: FragmentsConfig, *, fragment_id: str, client_factory: ClientFactory) -> None:
    """Delete a fragment; a missing fragment counts as deleted."""

    async def _action(controller: FragmentsController) -> None:
        result = await controller.delete(fragment_id)
        done = f"Deleted {fragment_id}"
        if isinstance(result.outcome, NotFound):
            done = f"{fragment_id} was already gone"
        _report_mutation(result, done)

    run_with_session(cfg, _action, client_factory=client_factory)


def convert_cmd(
    cfg: FragmentsConfig,
    *,
    fragment_id: str,
    extension: str,
    output: Path | None,
    client_factory: ClientFactory,
) -> None:
    """Fetch a server-side conversion of a fragment."""

    async def _action(controller: FragmentsController) -> None:
        status = await controller.open(fragment_id)
        if status is not DetailStatus.OPEN:
            raise fail(f"Fragment {fragment_id} could not be loaded")
        offered = controller.detail.state.conversions if controller.detail.state else ()
        if extension not in offered:
            print(f"[yellow]{extension} is not offered for this fragment; asking anyway[/yellow]")
        result = await controller.convert(extension)
        if isinstance(result, UnsupportedConversion):
            raise fail(f"Conversion to {extension} is not supported")
        if isinstance(result, NotFound):
            raise fail(f"Fragment {fragment_id} not found")
        if not isinstance(result, Content):
            raise fail(f"Conversion failed: {result}")
        if output is not None:
            data = result.body.encode("utf-8") if isinstance(result.body, str) else result.body
            output.write_bytes(data)
            print(f"Wrote {len(data)} bytes to {output}")
            return
        if isinstance(result.body, bytes):
            raise fail("Binary result; use --output to save it")
        print(escape(result.body))

    run_with_session(cfg, _action, client_factory=client_factory)

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Literal

from .client import FragmentsClient
from .errors import DetailStateError
from .media import available_conversions, is_image, is_json, strip_parameters
from .results import Content, ConvertResult, NotFound, TransportError
from .types import Credentials, FragmentMeta
from .validation import pretty_json

logger = logging.getLogger(__name__)


class DetailStatus(enum.Enum):
    CLOSED = "closed"
    LOADING = "loading"
    OPEN = "open"
    ERROR = "error"


@dataclass
class DetailState:
    meta: FragmentMeta
    content: str | bytes | None = None
    preview_mode: Literal["text", "image"] = "text"
    conversions: tuple[str, ...] = ()
    converted: Content | None = None
    error: NotFound | TransportError | None = None


class DetailViewController:
    """Owns the currently open fragment.

    States: CLOSED -> LOADING -> OPEN (resolved) or ERROR (unresolved), and
    back to CLOSED on close, deletion, or when another fragment is opened.
    """

    def __init__(self, client: FragmentsClient, credentials: Credentials) -> None:
        self.client = client
        self.credentials = credentials
        self.status = DetailStatus.CLOSED
        self.state: DetailState | None = None
        self._load_token = 0

    @property
    def current_id(self) -> str | None:
        return self.state.meta.id if self.state is not None else None

    def is_open(self, fragment_id: str) -> bool:
        return self.current_id == fragment_id

    async def open(self, meta: FragmentMeta) -> DetailStatus:
        self.close()
        self._load_token += 1
        token = self._load_token
        state = DetailState(meta=meta.copy())
        self.state = state
        self.status = DetailStatus.LOADING

        result = await self.client.get_raw(self.credentials, state.meta.id)
        if token != self._load_token:
            # a newer open (or close) superseded this load
            return self.status

        if isinstance(result, Content) and not strip_parameters(result.content_type):
            result = TransportError(status=None, reason="response had no content type")
        if not isinstance(result, Content):
            state.error = result
            self.status = DetailStatus.ERROR
            logger.warning(
                "fragment could not be loaded",
                extra={"fragment_id": state.meta.id, "error": str(result)},
            )
            return self.status

        effective = strip_parameters(result.content_type)
        state.meta.exact_type = effective
        if is_image(effective):
            state.preview_mode = "image"
            state.content = result.body
        elif isinstance(result.body, str) and is_json(effective):
            state.content = pretty_json(result.body)
        else:
            state.content = result.body
        state.conversions = available_conversions(effective)
        self.status = DetailStatus.OPEN
        return self.status

    def close(self) -> None:
        self._load_token += 1
        self.state = None
        self.status = DetailStatus.CLOSED

    def _require_open(self) -> DetailState:
        if self.status is not DetailStatus.OPEN or self.state is None:
            raise DetailStateError(f"no fragment is open (state: {self.status.value})")
        return self.state

    def edit(self, text: str) -> None:
        state = self._require_open()
        if state.preview_mode == "image":
            raise DetailStateError("image content cannot be edited")
        state.content = text

    def buffer(self) -> tuple[FragmentMeta, str | bytes]:
        """The open fragment and its content buffer, for saving."""
        state = self._require_open()
        if state.content is None:
            raise DetailStateError("the open fragment has no content")
        return state.meta, state.content

    async def request_conversion(self, extension: str) -> ConvertResult:
        state = self._require_open()
        result = await self.client.get_converted(self.credentials, state.meta.id, extension)
        if not isinstance(result, Content):
            logger.info(
                "conversion unavailable",
                extra={"fragment_id": state.meta.id, "extension": extension, "error": repr(result)},
            )
            return result
        if self.state is state:
            state.converted = result
        return result

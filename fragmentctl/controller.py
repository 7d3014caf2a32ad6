from __future__ import annotations

import logging

from .client import FragmentsClient
from .detail import DetailStatus, DetailViewController
from .errors import SessionError
from .registry import FragmentRegistry, Session
from .resolver import TypeResolver
from .results import ConvertResult, NotFound, TransportError
from .sequencer import MutationResult, OperationSequencer
from .types import Credentials, FragmentMeta

logger = logging.getLogger(__name__)


class FragmentsController:
    """Entry point for a UI: one session at a time, with its registry,
    detail view and mutation sequencer.

    UI code binds its events to these coroutines and renders from
    ``registry`` and ``detail``; nothing here presents anything.
    """

    def __init__(self, client: FragmentsClient) -> None:
        self.client = client
        self.resolver = TypeResolver(client)
        self.session: Session | None = None
        self._detail: DetailViewController | None = None
        self._sequencer: OperationSequencer | None = None

    async def login(self, credentials: Credentials) -> TransportError | None:
        """Start a session once the first list fetch succeeds."""
        result = await self.client.list(credentials)
        if isinstance(result, TransportError):
            logger.warning("login failed", extra={"error": str(result)})
            return result
        self.logout()
        session = Session(credentials=credentials)
        session.registry.replace_all(result)
        self.session = session
        self._detail = DetailViewController(self.client, credentials)
        self._sequencer = OperationSequencer(self.client, session, self._detail)
        logger.info("session started", extra={"count": len(result)})
        return None

    def logout(self) -> None:
        if self._detail is not None:
            self._detail.close()
        self.session = None
        self._detail = None
        self._sequencer = None

    def _require_session(self) -> Session:
        if self.session is None:
            raise SessionError("not logged in")
        return self.session

    @property
    def registry(self) -> FragmentRegistry:
        return self._require_session().registry

    @property
    def detail(self) -> DetailViewController:
        self._require_session()
        if self._detail is None:
            raise SessionError("not logged in")
        return self._detail

    @property
    def sequencer(self) -> OperationSequencer:
        self._require_session()
        if self._sequencer is None:
            raise SessionError("not logged in")
        return self._sequencer

    async def listing(self) -> tuple[tuple[FragmentMeta, ...], dict[str, NotFound | TransportError]]:
        """Registry snapshot with missing types resolved where possible."""
        session = self._require_session()
        entries = session.registry.snapshot()
        failures = await self.resolver.resolve_missing(session.credentials, entries)
        return entries, failures

    async def refresh(self) -> TransportError | None:
        return await self.sequencer.refresh()

    async def create(self, content_type: str, body: str | bytes) -> MutationResult:
        return await self.sequencer.create_and_refresh(content_type, body)

    async def update(self, fragment_id: str, content_type: str, body: str | bytes) -> MutationResult:
        return await self.sequencer.update_and_refresh(fragment_id, content_type, body)

    async def delete(self, fragment_id: str) -> MutationResult:
        return await self.sequencer.delete_and_refresh(fragment_id)

    async def open(self, fragment_id: str) -> DetailStatus:
        meta = self.registry.find(fragment_id) or FragmentMeta(id=fragment_id)
        return await self.detail.open(meta)

    async def save_detail(self) -> MutationResult:
        meta, content = self.detail.buffer()
        return await self.update(meta.id, meta.effective_type or "", content)

    async def convert(self, extension: str) -> ConvertResult:
        return await self.detail.request_conversion(extension)

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .client import FragmentsClient
from .detail import DetailViewController
from .errors import ValidationError
from .media import is_image
from .registry import Session
from .results import Deleted, NotFound, Stored, TransportError
from .validation import prepare_create_body, prepare_update_body

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    outcome: Stored | Deleted | NotFound | TransportError
    refresh_error: TransportError | None = None

    @property
    def ok(self) -> bool:
        return not isinstance(self.outcome, TransportError)

    @property
    def refreshed(self) -> bool:
        return self.ok and self.refresh_error is None


class OperationSequencer:
    """Runs every mutation as "mutate, then refresh the registry".

    The refresh is only issued once the mutation result is known, and a lock
    keeps two mutate-refresh cycles from interleaving their registry writes.
    """

    def __init__(
        self,
        client: FragmentsClient,
        session: Session,
        detail: DetailViewController | None = None,
    ) -> None:
        self.client = client
        self.session = session
        self.detail = detail
        self._lock = asyncio.Lock()

    async def refresh(self) -> TransportError | None:
        result = await self.client.list(self.session.credentials)
        if isinstance(result, TransportError):
            logger.warning("fragment list refresh failed", extra={"error": str(result)})
            return result
        self.session.registry.replace_all(result)
        logger.debug("registry refreshed", extra={"count": len(result)})
        return None

    async def create_and_refresh(self, content_type: str, body: str | bytes) -> MutationResult:
        prepared = prepare_create_body(content_type, body)
        async with self._lock:
            outcome = await self.client.create(self.session.credentials, content_type, prepared)
            return await self._finish(outcome)

    async def update_and_refresh(
        self, fragment_id: str, content_type: str, body: str | bytes
    ) -> MutationResult:
        if is_image(content_type):
            raise ValidationError("image fragments cannot be edited")
        prepared = prepare_update_body(content_type, body)
        async with self._lock:
            outcome = await self.client.update(
                self.session.credentials, fragment_id, content_type, prepared
            )
            return await self._finish(outcome)

    async def delete_and_refresh(self, fragment_id: str) -> MutationResult:
        async with self._lock:
            outcome = await self.client.delete(self.session.credentials, fragment_id)
            if isinstance(outcome, NotFound):
                logger.info("fragment already absent", extra={"fragment_id": fragment_id})
            result = await self._finish(outcome)
            if result.ok and self.detail is not None and self.detail.is_open(fragment_id):
                self.detail.close()
            return result

    async def _finish(self, outcome: Stored | Deleted | NotFound | TransportError) -> MutationResult:
        if isinstance(outcome, TransportError):
            # registry stays as it was; the next action will refresh
            return MutationResult(outcome)
        return MutationResult(outcome, refresh_error=await self.refresh())

from __future__ import annotations

import logging
from collections.abc import Iterable

from .client import FragmentsClient
from .media import strip_parameters
from .results import Content, NotFound, TransportError
from .types import Credentials, FragmentMeta

logger = logging.getLogger(__name__)


class TypeResolver:
    """Confirms a fragment's content type by fetching its raw representation."""

    def __init__(self, client: FragmentsClient) -> None:
        self.client = client

    async def resolve(
        self, credentials: Credentials, meta: FragmentMeta
    ) -> str | NotFound | TransportError:
        if meta.exact_type is not None:
            return meta.exact_type
        result = await self.client.get_raw(credentials, meta.id)
        if isinstance(result, Content):
            exact = strip_parameters(result.content_type)
            if exact:
                meta.exact_type = exact
                return exact
            result = TransportError(status=None, reason="response had no content type")
        logger.warning(
            "unable to resolve fragment type",
            extra={"fragment_id": meta.id, "error": str(result)},
        )
        return result

    async def resolve_missing(
        self, credentials: Credentials, metas: Iterable[FragmentMeta]
    ) -> dict[str, NotFound | TransportError]:
        """Resolve every entry the list endpoint reported without a type.

        Returns the failures keyed by fragment id; those entries stay
        unresolved and display as ``unknown``.
        """
        failures: dict[str, NotFound | TransportError] = {}
        for meta in metas:
            if meta.type is not None or meta.exact_type is not None:
                continue
            result = await self.resolve(credentials, meta)
            if not isinstance(result, str):
                failures[meta.id] = result
        return failures

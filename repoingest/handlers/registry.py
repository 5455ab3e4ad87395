"""Handler registry and dispatcher.

The registry is an ordered list built from the HANDLERS table in
repoingest.config; it is not a plugin system. Dispatch honours the
policy's force_handlers first, then takes the first handler in priority
order whose supports() accepts the file.
"""

from __future__ import annotations

import logging
from typing import Callable

from repoingest.config import HANDLERS
from repoingest.handlers.base import IngestHandler
from repoingest.handlers.binary import BinaryHandler
from repoingest.handlers.code import CodeHandler
from repoingest.handlers.data import DataHandler
from repoingest.handlers.markdown import MarkdownHandler
from repoingest.handlers.text import PlainTextHandler
from repoingest.models.types import (
    HandlerContext,
    HandlerOptions,
    IngestPolicy,
    extension_of,
)

logger = logging.getLogger(__name__)

HANDLER_FACTORIES: dict[str, Callable[[HandlerOptions], IngestHandler]] = {
    "code": CodeHandler,
    "markdown": MarkdownHandler,
    "data": DataHandler,
    "text": PlainTextHandler,
    "binary": lambda _options: BinaryHandler(),
}


class HandlerRegistry:
    """Ordered handlers for one run, plus their resolved options."""

    def __init__(
        self,
        handlers: list[IngestHandler],
        options: dict[str, HandlerOptions],
        force_handlers: dict[str, str] | None = None,
    ) -> None:
        self._handlers = handlers
        self._options = options
        self._force_handlers = force_handlers or {}

    @classmethod
    def build(
        cls,
        policy: IngestPolicy,
        ctx: HandlerContext,
        default_chunk_bytes: int,
        default_overlap_bytes: int,
    ) -> HandlerRegistry:
        """Instantiate enabled handlers in priority order.

        The binary handler is only registered when ctx.allow_binary is set.
        """
        handlers: list[IngestHandler] = []
        options: dict[str, HandlerOptions] = {}

        for definition in HANDLERS:
            if definition.requires_allow_binary and not ctx.allow_binary:
                continue
            if not policy.handler_enabled(definition.name):
                continue
            opts = policy.options_for(
                definition.name, default_chunk_bytes, default_overlap_bytes
            )
            handlers.append(HANDLER_FACTORIES[definition.name](opts))
            options[definition.name] = opts
            logger.debug(
                "handler_registered name=%s description=%s",
                definition.name,
                definition.description,
            )

        logger.debug(
            "handlers_registered names=%s", ",".join(h.name for h in handlers)
        )
        return cls(handlers, options, policy.force_handlers)

    @property
    def names(self) -> list[str]:
        return [h.name for h in self._handlers]

    def get(self, name: str) -> IngestHandler | None:
        """Look up a registered handler by name (case-insensitive)."""
        wanted = name.lower()
        for handler in self._handlers:
            if handler.name.lower() == wanted:
                return handler
        return None

    def options_for(self, name: str) -> HandlerOptions | None:
        return self._options.get(name)

    def resolve(self, path: str, data: bytes, ctx: HandlerContext) -> IngestHandler | None:
        """Pick exactly one handler for a file, or None to skip it.

        Args:
            path: Repository-relative file path
            data: File bytes
            ctx: Run-scoped handler context

        Returns:
            The forced handler if one is configured for the extension and
            still supports the file, else the first supporting handler in
            priority order, else None
        """
        ext = extension_of(path)
        forced_name = self._force_handlers.get(ext) if ext else None
        if forced_name:
            forced = self.get(forced_name)
            if forced is not None and forced.supports(path, data, ctx):
                return forced
            logger.debug(
                "forced_handler_rejected path=%s handler=%s", path, forced_name
            )

        for handler in self._handlers:
            if handler.supports(path, data, ctx):
                return handler
        return None

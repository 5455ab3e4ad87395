"""Content handlers: one strategy per content type."""

from repoingest.handlers.base import IngestHandler
from repoingest.handlers.binary import BinaryHandler
from repoingest.handlers.code import CodeHandler
from repoingest.handlers.data import DataHandler
from repoingest.handlers.markdown import MarkdownHandler
from repoingest.handlers.registry import HandlerRegistry
from repoingest.handlers.text import PlainTextHandler

__all__ = [
    "BinaryHandler",
    "CodeHandler",
    "DataHandler",
    "HandlerRegistry",
    "IngestHandler",
    "MarkdownHandler",
    "PlainTextHandler",
]

from __future__ import annotations

from .types import (
    BLOCK_SEPARATOR,
    Batch,
    BatchStatus,
    Caption,
    DocumentLine,
    LineKind,
    ParsedDocument,
    TranslationResult,
)
from .parser import classify_line, parse_document
from .reassembler import reassemble

__all__ = [
    "BLOCK_SEPARATOR",
    "Batch",
    "BatchStatus",
    "Caption",
    "DocumentLine",
    "LineKind",
    "ParsedDocument",
    "TranslationResult",
    "classify_line",
    "parse_document",
    "reassemble",
]

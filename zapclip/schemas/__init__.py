"""Public schema exports."""

from .clips import ClipHistoryEntry, ClipRequestBody, ClipResponse

__all__ = [
    "ClipHistoryEntry",
    "ClipRequestBody",
    "ClipResponse",
]

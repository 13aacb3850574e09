"""Expose constructed client wrappers."""

from .sqlite_store import SQLiteRecordSink
from .twitch import TwitchClient, UpstreamError, UpstreamResponseError

__all__ = [
    "SQLiteRecordSink",
    "TwitchClient",
    "UpstreamError",
    "UpstreamResponseError",
]

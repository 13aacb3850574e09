"""Tail the clip outcome history to follow requests and late recoveries live."""

from __future__ import annotations

import sqlite3
import time
from datetime import datetime
from typing import Any, Dict

from zapclip.dependencies import get_record_sink


def _print_header(title: str) -> None:
    line = "=" * len(title)
    print(f"\n{title}\n{line}")


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _format_outcome(row: Dict[str, Any]) -> str:
    status = str(row.get("status", "unknown")).upper()
    line = (
        f"[{_timestamp()}] {status:<7} broadcaster={row['broadcaster_id']}"
        f" clip={row.get('clip_id') or '-'} by={row.get('requested_by')}"
    )
    if row.get("url"):
        line += f" | url={row['url']}"
    if row.get("error"):
        line += f" | error='{row['error']}'"
    if row.get("note"):
        line += f" | note='{row['note']}'"
    return line


def watch(poll_interval: float = 1.0) -> None:
    sink = get_record_sink()
    _print_header(f"Watching clip outcomes in {sink.db_path} (Ctrl+C to exit)")
    last_id = 0

    while True:
        try:
            for row in sink.list_outcomes_after(last_id):
                last_id = max(last_id, row["id"])
                print(_format_outcome(row))
        except sqlite3.Error as exc:
            print(f"[{_timestamp()}] SQLite error: {exc}")

        time.sleep(poll_interval)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        watch()
    except KeyboardInterrupt:
        print("\nStopped watching.")

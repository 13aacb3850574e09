"""Validate the clip service configuration and detect ``.env`` drift.

``check`` loads ``AppSettings`` from the given file and prints the effective
clip budgets. ``record`` additionally stores a SHA-256 baseline of the file and
``verify`` compares the file against that baseline, so an edited or replaced
``.env`` is caught before the API process is restarted with it.

Example usages::

    python -m scripts.check_env record --env-file /opt/zapclip/.env \
        --hash-file /opt/zapclip/.env.sha256

    # From cron/systemd, before restarting the API.
    python -m scripts.check_env verify --env-file /opt/zapclip/.env \
        --hash-file /opt/zapclip/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from zapclip.core.config import (
    AppSettings,
    ClipSettings,
    SecuritySettings,
    TwitchSettings,
)

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _file_digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Load settings with every group reading ``env_file``.

    Process environment variables still take precedence over the file.
    """
    return AppSettings(  # type: ignore[call-arg]
        security=SecuritySettings(_env_file=env_file),  # type: ignore[call-arg]
        twitch=TwitchSettings(_env_file=env_file),  # type: ignore[call-arg]
        clips=ClipSettings(_env_file=env_file),  # type: ignore[call-arg]
        _env_file=env_file,
    )


def _describe(settings: AppSettings) -> str:
    clips = settings.clips
    return (
        f"environment={settings.environment} db={settings.database_path}\n"
        f"cooldown={clips.cooldown_seconds}s "
        f"foreground_poll={clips.poll_attempts}x{clips.poll_delay_seconds}s "
        f"extended_poll={clips.extended_poll_attempts}x{clips.extended_poll_delay_seconds}s"
    )


def _print_summary(settings: AppSettings) -> int:
    print(_describe(settings))
    return EXIT_OK


def _record_baseline(env_file: Path, hash_file: Path) -> int:
    digest = _file_digest(env_file)
    hash_file.write_text(f"{digest}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({digest})")
    return EXIT_OK


def _verify_baseline(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"No checksum baseline at {hash_file}; run the 'record' command first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _file_digest(env_file)
    if expected != actual:
        print(
            "Environment checksum mismatch!\n"
            f"  expected: {expected}\n"
            f"  actual:   {actual}",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR

    print("Environment checksum OK.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate clip service settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text, needs_hash in (
        ("record", "Validate settings and store the checksum baseline.", True),
        ("verify", "Validate settings and compare against the baseline.", True),
        ("check", "Validate settings and print the effective clip budgets.", False),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )
        if needs_hash:
            subparser.add_argument(
                "--hash-file",
                required=True,
                type=Path,
                help="Location of the checksum baseline.",
            )

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_baseline(env_file, args.hash_file),
        "verify": lambda: _verify_baseline(env_file, args.hash_file),
        "check": lambda: _print_summary(settings),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

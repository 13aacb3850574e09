"""Seed or replace a broadcaster's OAuth tokens in the local record store.

Useful after completing the Twitch authorization flow by hand, or to rotate a
revoked refresh token without going through the dashboard::

    python -m scripts.store_token 123456 --access-token abc --refresh-token def \
        --expires-in 14400 --scopes clips:edit,user:read:email
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone

from zapclip.dependencies import get_record_sink
from zapclip.models.oauth import AccessCredential


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Store OAuth tokens for a broadcaster.")
    parser.add_argument("broadcaster_id", help="Twitch broadcaster (user) id.")
    parser.add_argument("--access-token", required=True)
    parser.add_argument("--refresh-token", required=True)
    parser.add_argument(
        "--expires-in",
        type=int,
        default=0,
        help="Seconds until the access token expires; 0 forces a refresh on first use.",
    )
    parser.add_argument("--scopes", default="clips:edit")
    parser.add_argument("--token-type", default="bearer")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    credential = AccessCredential(
        broadcaster_id=args.broadcaster_id,
        access_token=args.access_token,
        refresh_token=args.refresh_token,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=args.expires_in),
        scopes=args.scopes,
        token_type=args.token_type,
    )
    get_record_sink().upsert_token(credential)
    print(
        f"Stored tokens for broadcaster {credential.broadcaster_id} "
        f"(expires {credential.expires_at.isoformat()})"
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())

"""Encryption of broadcaster OAuth tokens at rest.

Tokens are encrypted under the current secret. Retired secrets can still be
supplied so rows written before a secret rotation keep decrypting until the
next refresh rewrites them under the current key.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Iterable, List

from cryptography.fernet import Fernet, InvalidToken, MultiFernet


def _fernet_for(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def split_secrets(raw: str | None) -> List[str]:
    """Parse a comma separated list of retired secrets, skipping blanks."""
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


class TokenCipherService:
    """Fernet cipher over a current secret plus any retired ones."""

    def __init__(self, *, secret: str, previous_secrets: Iterable[str] = ()) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        keys = [_fernet_for(secret)]
        keys.extend(_fernet_for(old) for old in previous_secrets if old)
        self._fernet = MultiFernet(keys)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Return the plaintext, raising ``ValueError`` if no known secret fits."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; it was not encrypted with a configured secret."
            ) from exc
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService", "split_secrets"]

"""Utilities for validating Discord interaction signatures."""

from __future__ import annotations

import time

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

DISCORD_SIGNATURE_HEADER = "X-Signature-Ed25519"
DISCORD_TIMESTAMP_HEADER = "X-Signature-Timestamp"


def compute_signature(signing_key: SigningKey, timestamp: str, body: str) -> str:
    """Return the hex Ed25519 signature Discord would send for *body*."""

    message = f"{timestamp}{body}".encode("utf-8")
    return signing_key.sign(message).signature.hex()


def is_valid_discord_request(
    *,
    public_key: str,
    timestamp: str | None,
    body: bytes | str,
    signature: str | None,
    max_age: int | None = None,
) -> bool:
    """Validate a detached Ed25519 signature over ``timestamp + body``.

    Missing headers, malformed hex and bad signatures all count as a failed
    verification. When *max_age* is given, timestamps further than that many
    seconds from now are rejected as replays.
    """

    if not timestamp or not signature:
        return False

    if max_age is not None:
        try:
            request_ts = int(timestamp)
        except (TypeError, ValueError):
            return False
        if abs(int(time.time()) - request_ts) > max_age:
            return False

    if isinstance(body, str):
        body = body.encode("utf-8")

    try:
        verify_key = VerifyKey(bytes.fromhex(public_key))
        verify_key.verify(timestamp.encode("utf-8") + body, bytes.fromhex(signature))
    except (BadSignatureError, ValueError, TypeError):
        return False
    return True

"""
SESSION TOKEN CODEC
===================
Seal session data into an opaque token and unseal it back.

FLOW:
- seal() wraps data in a JSON envelope with an issue time and encrypts it.
- unseal() validates structure, verifies the signature, checks age, decrypts.

WHY:
- Session data travels with the client, so it must be unreadable and tamper-proof.

HOW:
- Encrypts with Fernet (AES-CBC + HMAC-SHA256) under a key derived from the secret.
- Age is measured in milliseconds from the envelope's issue time.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import time
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

from StatelessSession.errors import (
    AuthenticationError,
    ExpiredTokenError,
    InvalidTokenError,
    SealError,
)
from StatelessSession.session_logging import get_logger


logger = get_logger("codec")

FERNET_VERSION = 0x80
# version (1) + timestamp (8) + iv (16) + one cipher block (16) + hmac (32)
MIN_TOKEN_BYTES = 73
MAX_CLOCK_SKEW_MS = 60_000


def _now_ms() -> int:
    return int(time.time() * 1000)


def derive_key(secret: str) -> bytes:
    """Turn an arbitrary secret string into a Fernet key."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _restore_padding(token: Any) -> str:
    if not isinstance(token, str) or not token:
        raise InvalidTokenError("Token must be a non-empty string")
    return token + "=" * (-len(token) % 4)


def _check_structure(token: str) -> None:
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
    except (UnicodeEncodeError, binascii.Error, ValueError) as exc:
        raise InvalidTokenError("Token is not valid base64") from exc
    if len(raw) < MIN_TOKEN_BYTES or (len(raw) - 57) % 16 != 0:
        raise InvalidTokenError("Token has an invalid length")
    if raw[0] != FERNET_VERSION:
        raise InvalidTokenError("Token has an unknown version")


def _seal_with(fernet: Fernet, data: Any, now_ms: int) -> str:
    envelope = {"data": data, "iat": now_ms}
    try:
        payload = json.dumps(envelope, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SealError(f"Session data is not serializable: {exc}") from exc
    token = fernet.encrypt_at_time(payload.encode("utf-8"), now_ms // 1000)
    # Padding is dropped so the token is a bare cookie value.
    return token.decode("ascii").rstrip("=")


def _unseal_with(fernet: Fernet, token: Any, ttl: int, now_ms: int) -> Any:
    token = _restore_padding(token)
    _check_structure(token)
    try:
        fernet.extract_timestamp(token)
    except InvalidToken as exc:
        raise AuthenticationError("Token signature check failed") from exc

    try:
        payload = fernet.decrypt(token)
        envelope = json.loads(payload.decode("utf-8"))
    except (InvalidToken, UnicodeDecodeError, ValueError) as exc:
        raise InvalidTokenError("Token does not carry a session envelope") from exc

    if not isinstance(envelope, dict) or "data" not in envelope:
        raise InvalidTokenError("Token does not carry a session envelope")
    issued = envelope.get("iat")
    if not isinstance(issued, int) or isinstance(issued, bool):
        raise InvalidTokenError("Token has no issue time")
    if issued > now_ms + MAX_CLOCK_SKEW_MS:
        raise InvalidTokenError("Token was issued in the future")
    if ttl and now_ms - issued > ttl:
        raise ExpiredTokenError(f"Token expired {now_ms - issued - ttl} ms ago")
    return envelope["data"]


def seal(data: Any, secret: str, ttl: int = 0, now_ms: int | None = None) -> str:
    """Seal ``data`` into a token. ``ttl`` is accepted for symmetry; age is checked on unseal."""
    if ttl < 0:
        raise ValueError("ttl must be >= 0")
    return _seal_with(Fernet(derive_key(secret)), data, _now_ms() if now_ms is None else now_ms)


def unseal(token: str, secret: str, ttl: int = 0, now_ms: int | None = None) -> Any:
    """
    Unseal ``token`` back into session data.

    Raises InvalidTokenError, AuthenticationError or ExpiredTokenError.
    ``ttl`` is in milliseconds; 0 disables the age check.
    """
    if ttl < 0:
        raise ValueError("ttl must be >= 0")
    return _unseal_with(Fernet(derive_key(secret)), token, ttl, _now_ms() if now_ms is None else now_ms)


class TokenCodec:
    """Secret and ttl bound once per middleware instance."""

    __slots__ = ("_fernet", "_ttl")

    def __init__(self, secret: str, ttl: int = 0) -> None:
        if ttl < 0:
            raise ValueError("ttl must be >= 0")
        self._fernet = Fernet(derive_key(secret))
        self._ttl = ttl

    @property
    def ttl(self) -> int:
        return self._ttl

    def seal(self, data: Any, now_ms: int | None = None) -> str:
        token = _seal_with(self._fernet, data, _now_ms() if now_ms is None else now_ms)
        logger.debug("Sealed session token (%d bytes)", len(token))
        return token

    def unseal(self, token: str, now_ms: int | None = None) -> Any:
        return _unseal_with(self._fernet, token, self._ttl, _now_ms() if now_ms is None else now_ms)

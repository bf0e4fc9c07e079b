"""
JWT-style token creation and verification.

Tokens are base64url-encoded JSON claims signed with HMAC-SHA256::

    <base64url(claims)>.<hex signature>

The only identity claim is ``userId``.  An ``exp`` claim is added when an
expiry is configured (``JWT_EXPIRY_SECONDS`` > 0).
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import logging
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Optional

from config.settings import config
from core.errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)


class TokenIssuer:
    """Signs and verifies bearer tokens with a process-wide secret."""

    def __init__(self, secret: Optional[str], expiry_seconds: int = 0) -> None:
        if not secret or not secret.strip():
            raise ConfigurationError("JWT_SECRET is not set; refusing to sign tokens")
        self._secret = secret.encode()
        self._expiry_seconds = max(expiry_seconds, 0)

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def issue(self, user_id: str) -> str:
        """Create a signed token containing ``userId`` (and ``exp`` if enabled)."""
        claims = {"userId": str(user_id)}
        if self._expiry_seconds:
            claims["exp"] = int(time.time()) + self._expiry_seconds
        raw = json.dumps(claims, separators=(",", ":")).encode()
        return urlsafe_b64encode(raw).decode() + "." + self._sign(raw)

    def verify(self, token: str) -> str:
        """
        Verify token and return ``userId``.

        Raises ``AuthenticationError`` on malformed, tampered or expired tokens.
        """
        try:
            encoded, sig = token.split(".", 1)
            raw = urlsafe_b64decode(encoded.encode())
            if not hmac.compare_digest(sig, self._sign(raw)):
                raise ValueError("bad signature")
            claims = json.loads(raw)
            exp = claims.get("exp")
            if exp is not None and exp < time.time():
                raise ValueError("token expired")
            return str(claims["userId"])
        except (ValueError, KeyError, TypeError, AttributeError, binascii.Error) as exc:
            logger.debug("Rejected bearer token: %s", exc)
            raise AuthenticationError("Unauthenticated") from exc


def build_token_issuer() -> TokenIssuer:
    """Build the issuer from settings; called once at startup."""
    return TokenIssuer(config.jwt_secret, config.jwt_expiry_seconds)

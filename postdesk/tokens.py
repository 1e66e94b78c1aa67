"""
Signed, self-contained session tokens.

A token is ``base64(json_claims) + "." + hex(hmac_sha256(secret, json_claims))``.
Nothing is stored server side; every request rebuilds the claims from the
token and checks the signature and expiry.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Callable

SEPARATOR = "."


class TokenError(Exception):
    """Base class for token verification failures."""


class MalformedToken(TokenError):
    pass


class BadSignature(TokenError):
    pass


class Expired(TokenError):
    pass


@dataclass(frozen=True)
class SessionClaims:
    user: str
    # Epoch milliseconds.
    expires_at: int

    def as_dict(self) -> dict:
        return {"user": self.user, "exp": self.expires_at}

    @classmethod
    def from_dict(cls, data: object) -> "SessionClaims":
        if not isinstance(data, dict):
            raise MalformedToken("claims must be an object")
        user = data.get("user")
        exp = data.get("exp")
        if not isinstance(user, str) or isinstance(exp, bool) or not isinstance(
            exp, (int, float)
        ):
            raise MalformedToken("claims are missing user or exp")
        return cls(user=user, expires_at=int(exp))


def _now_ms(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


class TokenCodec:
    """Signs and verifies session tokens with a server-held secret."""

    def __init__(self, secret: str, clock: Callable[[], float] = time.time):
        if not secret:
            raise ValueError("secret must not be empty")
        self._key = secret.encode("utf-8")
        self._clock = clock

    def _mac(self, payload: bytes) -> str:
        return hmac.new(self._key, payload, hashlib.sha256).hexdigest()

    def sign(self, claims: SessionClaims) -> str:
        payload = json.dumps(claims.as_dict(), separators=(",", ":")).encode("utf-8")
        encoded = base64.b64encode(payload).decode("ascii")
        return f"{encoded}{SEPARATOR}{self._mac(payload)}"

    def issue(self, user: str, duration_seconds: int) -> tuple[str, SessionClaims]:
        claims = SessionClaims(
            user=user,
            expires_at=_now_ms(self._clock) + duration_seconds * 1000,
        )
        return self.sign(claims), claims

    def verify(self, token: str) -> SessionClaims:
        """
        Return the claims carried by `token`.

        Raises:
            MalformedToken: the token is not two non-empty parts, or the
                signed payload is not a claims object.
            BadSignature: the payload does not decode or the MAC differs.
            Expired: the signature is valid but `expires_at` has passed.
        """
        parts = (token or "").split(SEPARATOR)
        if len(parts) != 2 or not all(parts):
            raise MalformedToken("expected <payload>.<signature>")
        encoded, signature = parts

        try:
            payload = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise BadSignature("payload is not valid base64") from exc
        # Lenient base64 ignores trailing bits; only the canonical form is ours.
        if base64.b64encode(payload).decode("ascii") != encoded:
            raise BadSignature("payload is not canonical base64")

        expected = self._mac(payload).encode("ascii")
        if not hmac.compare_digest(expected, signature.encode("utf-8")):
            raise BadSignature("signature mismatch")

        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedToken("payload is not JSON") from exc
        claims = SessionClaims.from_dict(data)

        if claims.expires_at <= _now_ms(self._clock):
            raise Expired("session has expired")
        return claims

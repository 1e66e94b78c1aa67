"""
Session gate: login, logout and cookie authentication for the admin.
"""

from __future__ import annotations

import hmac
import logging
import re
from dataclasses import dataclass
from typing import Optional

from postdesk.errors import InvalidCredentials, NoCookie, NoToken, Unauthorized
from postdesk.tokens import TokenCodec, TokenError

logger = logging.getLogger(__name__)

COOKIE_NAME = "session"
COOKIE_ATTRIBUTES = "HttpOnly; Secure; SameSite=None; Path=/"

_SESSION_PATTERN = re.compile(rf"(?:^|;)\s*{COOKIE_NAME}=([^;]+)")


@dataclass(frozen=True)
class SessionCookie:
    value: str
    max_age: int

    def header_value(self) -> str:
        return (
            f"{COOKIE_NAME}={self.value}; {COOKIE_ATTRIBUTES}; Max-Age={self.max_age}"
        )


def extract_session_token(cookie_header: Optional[str]) -> str:
    if not cookie_header:
        raise NoCookie()
    match = _SESSION_PATTERN.search(cookie_header)
    if not match or not match.group(1).strip():
        raise NoToken()
    return match.group(1).strip()


def _matches(supplied: Optional[str], expected: str) -> bool:
    return hmac.compare_digest(
        (supplied or "").encode("utf-8"), expected.encode("utf-8")
    )


class SessionGate:
    """Authenticates the single configured administrator."""

    def __init__(
        self,
        codec: TokenCodec,
        admin_username: str,
        admin_password: str,
        session_duration_seconds: int,
    ):
        self._codec = codec
        self._username = admin_username
        self._password = admin_password
        self._duration = session_duration_seconds

    def authenticate(self, cookie_header: Optional[str]) -> str:
        """Return the authenticated user or raise an `Unauthorized` subclass."""
        token = extract_session_token(cookie_header)
        try:
            claims = self._codec.verify(token)
        except TokenError as exc:
            # Expired and forged tokens get the same answer.
            logger.debug("Rejected session token: %s", type(exc).__name__)
            raise Unauthorized("Session expired") from exc
        return claims.user

    def login(self, username: Optional[str], password: Optional[str]) -> SessionCookie:
        # Evaluate both comparisons so timing does not reveal which field failed.
        user_ok = _matches(username, self._username)
        password_ok = _matches(password, self._password)
        if not (user_ok and password_ok):
            logger.info("Failed admin login for %r", username)
            raise InvalidCredentials()

        token, _ = self._codec.issue(self._username, self._duration)
        logger.info("Admin %r logged in", self._username)
        return SessionCookie(value=token, max_age=self._duration)

    def logout(self) -> SessionCookie:
        return SessionCookie(value="", max_age=0)

"""Verification token minting and scannable-code encoding.

A token is 128 bits from ``secrets`` rendered URL-safe. The code payload is a
verify URL carrying the token as a query parameter, e.g.
``https://checkin.example.org/verify?token=...``; that string is what the QR
code holds and what the staff scanner submits back.
"""

import io
import logging
import re
import secrets
from typing import Callable, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

import qrcode
from qrcode.image.svg import SvgPathImage

from ez_checkin.config import config
from ez_checkin.errors import MalformedCodeError

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16
VERIFY_PATH = "/verify"
TOKEN_PARAM = "token"
TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{16,128}$")


class TokenService:
    """Mints tokens and converts them to and from code payloads"""

    def __init__(
        self, base_url: str, token_factory: Optional[Callable[[], str]] = None
    ):
        self.base_url = base_url.rstrip("/")
        # Apps mounted under a path prefix verify at {prefix}/verify
        self.verify_path = urlsplit(self.base_url).path + VERIFY_PATH
        self._token_factory = token_factory or (
            lambda: secrets.token_urlsafe(TOKEN_BYTES)
        )

    def mint(self) -> str:
        """Return a fresh unguessable token"""
        return self._token_factory()

    def encode(self, token: str) -> str:
        """Embed a token in the verify URL payload"""
        if not TOKEN_PATTERN.match(token):
            raise MalformedCodeError("Token contains unsupported characters")
        return f"{self.base_url}{VERIFY_PATH}?{urlencode({TOKEN_PARAM: token})}"

    def decode(self, payload: str) -> str:
        """
        Extract the token from a scanned payload.

        Only the path and query are checked, so codes printed under one host
        still scan behind a proxy or after a domain change. The path must be
        the base URL path followed by `/verify`.

        Raises:
            MalformedCodeError: payload is not a verify URL with one valid token
        """
        if not isinstance(payload, str) or not payload.strip():
            raise MalformedCodeError("Empty code")

        parts = urlsplit(payload.strip())
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise MalformedCodeError("Code is not a verification link")
        if parts.path.rstrip("/") != self.verify_path:
            raise MalformedCodeError("Code is not a verification link")

        try:
            query = parse_qs(parts.query, strict_parsing=True)
        except ValueError:
            raise MalformedCodeError("Code has a corrupt query string")

        values = query.get(TOKEN_PARAM, [])
        if len(values) != 1 or set(query) != {TOKEN_PARAM}:
            raise MalformedCodeError("Code must carry exactly one token")

        token = values[0]
        if not TOKEN_PATTERN.match(token):
            raise MalformedCodeError("Code token is malformed")
        return token

    def render_svg(self, payload: str) -> bytes:
        """Render a payload as an SVG QR code"""
        image = qrcode.make(payload, image_factory=SvgPathImage)
        buffer = io.BytesIO()
        image.save(buffer)
        return buffer.getvalue()


def get_token_service() -> TokenService:
    """FastAPI dependency: token service bound to the public base URL"""
    return TokenService(config["app_base_url"])

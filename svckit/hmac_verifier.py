"""HMAC-SHA256 request signature verification for Flask views."""

from __future__ import annotations

import base64
import functools
import hashlib
import hmac
from collections.abc import Callable, Iterable
from typing import Any

import flask
from werkzeug.exceptions import BadRequest, Unauthorized

DEFAULT_SIGNATURE_HEADER = "X-REQ-SIG"
"""Header in which clients place the signature by default."""

StrFromRequest = Callable[[flask.Request], str]


class InvalidSignatureError(ValueError):
    """Raised when no configured key produces the given signature."""

    def __init__(self, message: str = "invalid signature") -> None:
        super().__init__(message)


def _header_signature(request: flask.Request) -> str:
    return request.headers.get(DEFAULT_SIGNATURE_HEADER, "")


def _base64_encode(digest: bytes) -> str:
    return base64.b64encode(digest).decode("ascii")


class HmacVerifier:
    """Checks that a request carries an HMAC-SHA256 signature made with one of the keys."""

    def __init__(
        self,
        keys: Iterable[str | bytes] = (),
        signature_fn: StrFromRequest | None = None,
        encoder: Callable[[bytes], str] | None = None,
    ) -> None:
        self.keys: list[bytes] = [
            key.encode("utf-8") if isinstance(key, str) else bytes(key) for key in keys
        ]
        self.signature_fn: StrFromRequest = signature_fn or _header_signature
        self.encoder: Callable[[bytes], str] = encoder or _base64_encode

    def verify_signature(self, message: str | bytes, signature: str) -> None:
        """Return if ``signature`` matches ``message`` under any key, else raise."""
        if isinstance(message, str):
            message = message.encode("utf-8")
        given = signature.encode("utf-8")
        for key in self.keys:
            digest = hmac.new(key, message, hashlib.sha256).digest()
            if hmac.compare_digest(self.encoder(digest).encode("utf-8"), given):
                return
        raise InvalidSignatureError()

    def signed_handler(
        self, handler: Callable[..., Any], plaintext_fn: StrFromRequest
    ) -> Callable[..., Any]:
        """Wrap a view so it runs only for requests with a valid signature.

        ``plaintext_fn`` builds the message clients must sign from the request.
        A failure to extract the plaintext or signature answers 400, a bad
        signature answers 401.
        """

        @functools.wraps(handler)
        def view(*args: Any, **kwargs: Any) -> Any:
            request = flask.request
            try:
                plaintext = plaintext_fn(request)
            except Exception:
                raise BadRequest("cannot extract plaintext") from None
            try:
                signature = self.signature_fn(request)
            except Exception:
                raise BadRequest("cannot extract signature") from None
            try:
                self.verify_signature(plaintext, signature)
            except InvalidSignatureError:
                raise Unauthorized("cannot verify signature") from None
            return handler(*args, **kwargs)

        return view
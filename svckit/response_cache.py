"""In-memory response caching and Cache-Control headers for Flask views."""

from __future__ import annotations

import base64
import functools
import hashlib
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import flask
from werkzeug.exceptions import HTTPException

DEFAULT_EXPIRATION = 300.0
"""Seconds an entry lives when no expiration is given."""


@dataclass
class CachedResponse:
    """A stored response: status, headers and body."""

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    data: bytes | None = None


class MemoryCache:
    """Thread-safe in-memory store of responses with per-entry expiry."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[CachedResponse, float | None]] = {}

    def set(self, key: str, response: CachedResponse, expire: float | None = None) -> None:
        """Store ``response``; ``expire`` seconds, None or 0 for the default, negative for never."""
        if not expire:
            expire = DEFAULT_EXPIRATION
        deadline = None if expire < 0 else time.monotonic() + expire
        with self._lock:
            self._entries[key] = (response, deadline)

    def get(self, key: str) -> CachedResponse | None:
        """Return the live entry for ``key`` or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            response, deadline = entry
            if deadline is not None and time.monotonic() >= deadline:
                del self._entries[key]
                return None
            return response

    def delete(self, key: str) -> None:
        """Drop the entry for ``key`` if any."""
        with self._lock:
            self._entries.pop(key, None)


_memory_cache = MemoryCache()


def generate_key(url: str, body: bytes = b"") -> str:
    """Return a URL-safe key derived from the request URL and body."""
    digest = hashlib.sha1(url.encode("utf-8") + (body or b"")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


def _request_uri(request: flask.Request) -> str:
    query = request.query_string.decode("latin-1")
    return f"{request.path}?{query}" if query else request.path


def _max_age(seconds: float) -> str:
    return f"max-age={max(0, int(seconds))}"


def cache_middleware(expiration: float, handler: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a view so its 200 responses are served from memory for ``expiration`` seconds."""
    cache_control_value = _max_age(expiration)

    @functools.wraps(handler)
    def view(*args: Any, **kwargs: Any) -> flask.Response:
        request = flask.request
        key = generate_key(_request_uri(request), request.get_data(cache=True))
        cached = _memory_cache.get(key)

        if cached is None or cached.data is None:
            try:
                response = flask.make_response(handler(*args, **kwargs))
            except HTTPException:
                _memory_cache.delete(key)
                raise
            response.headers["Cache-Control"] = cache_control_value
            if response.status_code == 200 and not response.is_streamed:
                _memory_cache.set(
                    key,
                    CachedResponse(200, list(response.headers.items()), response.get_data()),
                    expiration,
                )
            return response

        response = flask.Response(cached.data, status=cached.status)
        for name, value in cached.headers:
            response.headers[name] = value
        response.headers["Cache-Control"] = cache_control_value
        return response

    return view


def cache_control(duration: float, handler: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a view so its responses carry ``Cache-Control: max-age=<duration>``."""
    value = _max_age(duration)

    @functools.wraps(handler)
    def view(*args: Any, **kwargs: Any) -> flask.Response:
        response = flask.make_response(handler(*args, **kwargs))
        response.headers["Cache-Control"] = value
        return response

    return view
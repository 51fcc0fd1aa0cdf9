"""Conditions and handlers that report failed outgoing HTTP responses to the error log."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit

import requests

_log = logging.getLogger(__name__)

Condition = Callable[[Any, str], bool]
ErrorHandler = Callable[[requests.Response, str], None]


def condition_and(*args: Condition) -> Condition:
    """Return a condition that holds only when all ``args`` hold."""

    def condition(response: Any, url: str) -> bool:
        return all(cond(response, url) for cond in args)

    return condition


def condition_or(*args: Condition) -> Condition:
    """Return a condition that holds when any of ``args`` holds."""

    def condition(response: Any, url: str) -> bool:
        return any(cond(response, url) for cond in args)

    return condition


def not_status_ok(response: requests.Response, url: str) -> bool:
    """True when the status is outside 2xx."""
    return response.status_code < 200 or response.status_code > 299


def not_status_bad_request(response: requests.Response, url: str) -> bool:
    """True when the status is not 400."""
    return response.status_code != 400


def not_status_not_found(response: requests.Response, url: str) -> bool:
    """True when the status is not 404."""
    return response.status_code != 404


def _report(response: requests.Response, url: str) -> None:
    request_url = response.request.url if response.request is not None else response.url
    parts = urlsplit(request_url or "")
    _log.error(
        "Client Errors",
        extra={
            "tags": {
                "status_code": str(response.status_code),
                "host": parts.netloc,
                "path": parts.path,
                "body": response.text,
            },
            "url": url,
            "fingerprint": ["client_errors"],
        },
    )


def default_error_handler(response: requests.Response, url: str) -> None:
    """Log responses whose status is neither 200 nor 404."""
    if response.status_code not in (200, 404):
        _report(response, url)


def make_error_handler(*args: Condition) -> ErrorHandler:
    """Return a handler that logs a response when any of the conditions holds."""

    def handler(response: requests.Response, url: str) -> None:
        if any(cond(response, url) for cond in args):
            _report(response, url)

    return handler
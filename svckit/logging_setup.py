"""Shared application logger with key=value text output and dict configuration."""

from __future__ import annotations

import json
import logging
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

FIELD_KEY_COMPONENT = "component"

_SAFE_VALUE = re.compile(r"^[A-Za-z0-9\-._/@^+]*$")

_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

_COLORS = {"debug": 37, "info": 36, "warning": 33, "error": 31, "critical": 31}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass
class TextFormatterConfig:
    """Options of the text formatter."""

    force_colors: bool = False
    disable_colors: bool = False
    disable_timestamp: bool = False
    full_timestamp: bool = False
    timestamp_format: str = ""
    disable_sorting: bool = False


def _quote(value: Any) -> str:
    text = str(value)
    return text if _SAFE_VALUE.match(text) else json.dumps(text, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Formats records as ``time=... level=... msg=... key=value`` lines."""

    def __init__(self, config: TextFormatterConfig | None = None) -> None:
        super().__init__()
        self.config = config if config is not None else TextFormatterConfig()

    def _timestamp(self, record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created).astimezone()
        if self.config.timestamp_format:
            return moment.strftime(self.config.timestamp_format)
        return moment.isoformat(timespec="seconds")

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname.lower()
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}" if message else self.formatException(record.exc_info)
        extra: dict[str, Any] = dict(getattr(record, "fields", {}) or {})
        keys = list(extra) if self.config.disable_sorting else sorted(extra)

        if self.config.force_colors and not self.config.disable_colors:
            color = _COLORS.get(level, 37)
            stamp = "" if self.config.disable_timestamp else f"[{self._timestamp(record)}]"
            parts = [f"\x1b[{color}m{level.upper()[:4]}\x1b[0m{stamp} {message:<44}"]
            parts += [f"\x1b[{color}m{key}\x1b[0m={_quote(extra[key])}" for key in keys]
            return " ".join(parts)

        parts = []
        if not self.config.disable_timestamp:
            parts.append(f"time={_quote(self._timestamp(record))}")
        parts.append(f"level={level}")
        parts.append(f"msg={_quote(message)}")
        parts += [f"{key}={_quote(extra[key])}" for key in keys]
        return " ".join(parts)


def _parse_bool(name: str, value: Any, strict: bool) -> bool:
    if strict:
        if isinstance(value, str):
            if value in _TRUE:
                return True
            if value in _FALSE:
                return False
        raise ValueError(f"option {name!r} must be a boolean string, got {value!r}")
    if isinstance(value, bool):
        return value
    raise ValueError(f"option {name!r} must be a boolean, got {value!r}")


def _build_config(options: Mapping[str, Any] | None, strict: bool) -> TextFormatterConfig:
    known = {f.name for f in fields(TextFormatterConfig)}
    values: dict[str, Any] = {}
    for name, value in (options or {}).items():
        if name not in known:
            continue
        if name == "timestamp_format":
            if not isinstance(value, str):
                raise ValueError("option 'timestamp_format' must be a string")
            values[name] = value
        else:
            values[name] = _parse_bool(name, value, strict)
    return TextFormatterConfig(**values)


def new_text_formatter(options: Mapping[str, Any] | None) -> TextFormatter:
    """Build the strict text formatter, whose boolean options are given as strings."""
    return TextFormatter(_build_config(options, strict=True))


def _formatter_from(spec: Mapping[str, Any] | None) -> TextFormatter:
    spec = spec or {}
    name = spec.get("name", "text")
    options = spec.get("options")
    if name == "text":
        return TextFormatter(_build_config(options, strict=False))
    if name == "strict_text":
        return new_text_formatter(options)
    raise ValueError(f"unknown formatter: {name!r}")


def _stream_from(spec: Mapping[str, Any] | None) -> Any:
    name = (spec or {}).get("name", "stderr")
    if name == "stdout":
        return sys.stdout
    if name == "stderr":
        return sys.stderr
    raise ValueError(f"unknown output: {name!r}")


class _Entry(logging.LoggerAdapter):
    """A logger carrying structured fields into every record."""

    def __init__(self, logger: logging.Logger, fields_: Mapping[str, Any]) -> None:
        super().__init__(logger, {})
        self.fields = dict(fields_)

    def with_field(self, key: str, value: Any) -> _Entry:
        return _Entry(self.logger, {**self.fields, key: value})

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        extra["fields"] = {**self.fields, **(extra.get("fields") or {})}
        kwargs["extra"] = extra
        return msg, kwargs


def _new_default_logger() -> logging.Logger:
    logger = logging.getLogger("svckit.app")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(TextFormatter())
        logger.addHandler(handler)
    return logger


_logger = _new_default_logger()


def get_logger() -> logging.Logger:
    """Return the shared logger."""
    return _logger


def get_logger_for_component(component: str) -> _Entry:
    """Return the shared logger with the component field set."""
    return _Entry(get_logger(), {FIELD_KEY_COMPONENT: component})


def set_logger(logger: logging.Logger) -> None:
    """Replace the shared logger, e.g. with a test logger."""
    global _logger
    _logger = logger


def _apply(logger: logging.Logger, config: Mapping[str, Any]) -> None:
    level_name = str(config.get("level", "info")).lower()
    if level_name not in _LEVELS:
        raise ValueError(f"unknown level: {level_name!r}")
    formatter = _formatter_from(config.get("formatter"))
    handler = logging.StreamHandler(_stream_from(config.get("out")))
    handler.setFormatter(formatter)
    logger.setLevel(_LEVELS[level_name])
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)


def set_logger_config(config: Mapping[str, Any]) -> None:
    """Apply level, formatter and output to the root and the shared logger."""
    _apply(logging.getLogger(), config)
    _apply(get_logger(), config)
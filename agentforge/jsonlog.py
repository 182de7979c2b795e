"""Minimal structured JSON-lines logger."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import Any, Mapping, TextIO

_FALLBACK_LINE = '{"level":"error","msg":"logger marshal failed"}'


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    base = now.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{now.microsecond:06d}".rstrip("0")
    return f"{base}.{fraction}Z" if fraction else f"{base}Z"


class Logger:
    """Writes one JSON object per line with level, msg, ts and bound fields."""

    def __init__(self, out: TextIO | None = None) -> None:
        self.out = out if out is not None else sys.stderr
        self._fields: dict[str, Any] = {}

    def bind(self, key: str, value: Any) -> "Logger":
        """Return a new logger carrying an extra field."""
        child = Logger(self.out)
        child._fields = {**self._fields, key: value}
        return child

    def info(self, msg: str, *args: Mapping[str, Any]) -> None:
        self._log("info", msg, args)

    def warn(self, msg: str, *args: Mapping[str, Any]) -> None:
        self._log("warn", msg, args)

    def error(self, msg: str, *args: Mapping[str, Any]) -> None:
        self._log("error", msg, args)

    def _log(self, level: str, msg: str, extras: tuple[Mapping[str, Any], ...]) -> None:
        entry = dict(self._fields)
        entry["level"] = level
        entry["msg"] = msg
        entry["ts"] = _timestamp()
        for extra in extras:
            entry.update(extra)
        try:
            line = json.dumps(entry, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            line = _FALLBACK_LINE
        try:
            self.out.write(line + "\n")
        except OSError:
            return
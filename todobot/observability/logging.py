from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Structured context is passed as `extra={"ctx": {...}}` and emitted under "ctx".
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        ctx = getattr(record, "ctx", None)
        if isinstance(ctx, dict) and ctx:
            payload["ctx"] = ctx
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        out = super().format(record)
        ctx = getattr(record, "ctx", None)
        if isinstance(ctx, dict) and ctx:
            pairs = " ".join(f"{k}={v}" for k, v in ctx.items())
            first, sep, rest = out.partition("\n")
            out = f"{first} [{pairs}]{sep}{rest}"
        return out


def setup_logging(level: str = "INFO", json_output: bool = True, stream: Optional[TextIO] = None) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else TextFormatter())
    root.addHandler(handler)
    # httpx logs every request URL at INFO, and the URL embeds the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)

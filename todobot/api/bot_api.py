from __future__ import annotations

import json
import logging
from typing import AsyncGenerator, Optional, Protocol, Tuple, runtime_checkable

import httpx

from todobot.observability.metrics import (
    MESSAGES_SENT,
    POLL_FAILURES,
    POLLS,
    SEND_ERRORS,
    UPDATES_RECEIVED,
    Timer,
    inc,
)
from .dto import EMPTY_RESPONSE, BotResponse, BotUpdate, ChatId, Offset, decode_bot_response
from .offsets import next_offset


log = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
ALLOWED_UPDATES = ["message"]


class BotApiError(RuntimeError):
    """A Bot API call failed (transport error, non-2xx status or ok=false envelope)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class BotAPI(Protocol):
    """What a bot process needs from the Bot API: a message sink and an update stream."""

    async def poll(self, offset: Offset) -> Tuple[Offset, BotResponse]:
        ...

    async def send_message(self, chat_id: ChatId, text: str) -> None:
        ...

    def stream_updates(self, from_offset: Offset = 0) -> AsyncGenerator[BotUpdate, None]:
        ...


class HttpxBotAPI:
    """Bot API client over `httpx.AsyncClient`.

    `poll` never raises on a failed fetch: the failure is logged and turned into an
    empty batch with the offset unchanged, so `stream_updates` keeps going.
    `send_message` raises `BotApiError` so callers learn about dropped replies.

    The token is part of every request URL; error messages and logs redact it.
    """

    def __init__(
        self,
        token: str,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = TELEGRAM_API_BASE,
        poll_timeout_s: float = 0.5,
        request_timeout_s: float = 10.0,
        parse_mode: str = "Markdown",
    ):
        if not token or not token.strip():
            raise ValueError("bot token is required")
        self._token = token.strip()
        self.base_url = base_url.rstrip("/")
        self.poll_timeout_s = float(poll_timeout_s)
        self.parse_mode = parse_mode
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=request_timeout_s)

    async def __aenter__(self) -> "HttpxBotAPI":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _method_url(self, method: str) -> str:
        return f"{self.base_url}/bot{self._token}/{method}"

    def _redact(self, text: str) -> str:
        return text.replace(self._token, "***")

    def _describe(self, exc: Exception) -> str:
        if isinstance(exc, httpx.HTTPStatusError):
            return f"HTTP {exc.response.status_code}"
        msg = self._redact(str(exc))
        return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__

    async def poll(self, offset: Offset) -> Tuple[Offset, BotResponse]:
        """Fetch updates newer than `offset` and return `(next_offset, batch)`."""
        params = {
            "offset": str(offset + 1),
            "timeout": f"{self.poll_timeout_s:g}",
            "allowed_updates": json.dumps(ALLOWED_UPDATES),
        }
        inc(POLLS)
        try:
            with Timer("bot_poll"):
                resp = await self.client.get(self._method_url("getUpdates"), params=params)
                resp.raise_for_status()
                response = decode_bot_response(resp.content)
            if not response.ok:
                raise BotApiError(
                    f"getUpdates returned ok=false: {response.description or 'no description'}",
                    status_code=resp.status_code,
                )
        except Exception as e:  # noqa: BLE001
            inc(POLL_FAILURES)
            log.error("failed to poll updates", extra={"ctx": {"offset": offset, "error": self._describe(e)}})
            return offset, EMPTY_RESPONSE
        return next_offset(offset, response), response

    async def stream_updates(self, from_offset: Offset = 0) -> AsyncGenerator[BotUpdate, None]:
        """Endless stream of updates, starting after `from_offset`.

        Each batch is emitted in ascending update_id order before the next poll is
        issued. Ids at or below the last emitted one are dropped.
        """
        offset = from_offset
        last_emitted = from_offset
        while True:
            offset, response = await self.poll(offset)
            batch = sorted(response.result, key=lambda u: u.update_id)
            for update in batch:
                if update.update_id <= last_emitted:
                    continue
                last_emitted = update.update_id
                inc(UPDATES_RECEIVED)
                yield update

    async def send_message(self, chat_id: ChatId, text: str) -> None:
        params = {
            "chat_id": str(chat_id),
            "parse_mode": self.parse_mode,
            "text": text,
        }
        try:
            resp = await self.client.get(self._method_url("sendMessage"), params=params)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            inc(SEND_ERRORS)
            status = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            raise BotApiError(f"sendMessage to chat {chat_id} failed: {self._describe(e)}", status_code=status) from None
        inc(MESSAGES_SENT)

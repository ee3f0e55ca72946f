from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, conint


ChatId = int
Offset = int


class _Record(BaseModel):
    # Telegram adds fields over time; unknown keys are dropped, records are immutable.
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class User(_Record):
    id: int
    is_bot: bool = False
    first_name: str = ""
    username: Optional[str] = None


class Chat(_Record):
    id: ChatId
    type: str = "private"
    title: Optional[str] = None
    username: Optional[str] = None


class BotMessage(_Record):
    message_id: int
    chat: Chat
    text: Optional[str] = None
    date: Optional[int] = None
    from_user: Optional[User] = Field(default=None, alias="from")


class BotUpdate(_Record):
    update_id: conint(ge=0)
    message: Optional[BotMessage] = None


class BotResponse(_Record):
    """Envelope returned by `getUpdates`: {"ok": bool, "result": [...]}."""

    ok: bool
    result: List[BotUpdate] = Field(default_factory=list)
    description: Optional[str] = None


EMPTY_RESPONSE = BotResponse(ok=True, result=[])


def decode_bot_response(raw: bytes | str) -> BotResponse:
    """Decode a raw `getUpdates` body.

    Raises pydantic.ValidationError on malformed JSON or a payload that does not
    match the envelope shape.
    """
    return BotResponse.model_validate_json(raw)


def decode_update(raw: bytes | str) -> BotUpdate:
    return BotUpdate.model_validate_json(raw)


def encode_update(update: BotUpdate) -> dict:
    return update.model_dump(by_alias=True, exclude_none=True)

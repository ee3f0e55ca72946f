from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from todobot.api.dto import ChatId


HELP = "?"
START = "/start"
SHOW = "/show"
CLEAR = "/clear"


@dataclass(frozen=True)
class ShowHelp:
    chat_id: ChatId
    name: str = "help"


@dataclass(frozen=True)
class ShowTodoList:
    chat_id: ChatId
    name: str = "show"


@dataclass(frozen=True)
class ClearTodoList:
    chat_id: ChatId
    name: str = "clear"


@dataclass(frozen=True)
class AddEntry:
    chat_id: ChatId
    content: str
    name: str = "add"


BotCommand = Union[ShowHelp, ShowTodoList, ClearTodoList, AddEntry]


def _command_word(text: str) -> str:
    head = text.split(maxsplit=1)[0] if text else ""
    if head.startswith("/"):
        # "/show@todo_bot" in group chats
        head = head.split("@", 1)[0]
    return head.lower()


def parse_command(chat_id: ChatId, text: str) -> BotCommand:
    t = (text or "").strip()
    word = _command_word(t)
    if word in (HELP, "/help", START):
        return ShowHelp(chat_id)
    if word == SHOW:
        return ShowTodoList(chat_id)
    if word == CLEAR:
        return ClearTodoList(chat_id)
    return AddEntry(chat_id, t)

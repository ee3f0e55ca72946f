from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence

from todobot.api.bot_api import BotAPI, BotApiError
from todobot.api.dto import BotUpdate, ChatId, Offset
from todobot.observability.metrics import COMMANDS, inc_labelled
from .commands import CLEAR, HELP, SHOW, AddEntry, BotCommand, ClearTodoList, ShowHelp, ShowTodoList, parse_command
from .storage import TodoListStorage


log = logging.getLogger(__name__)

HELP_TEXT = "\n".join(
    [
        "This bot manages your todo-list. Just write a task to add it.",
        "",
        f"`{SHOW}` - show the current list",
        f"`{CLEAR}` - clear the list",
        f"`{HELP}` - show this help",
    ]
)
CLEARED_TEXT = "Your todo-list was cleared!"
EMPTY_TEXT = "You have no tasks planned!"
LIST_HEADER = "Your todo-list:"
ADD_REPLIES: Sequence[str] = ("Ok!", "Sure!", "Noted", "Certainly!")


def render_items(items: Sequence[str]) -> str:
    if not items:
        return EMPTY_TEXT
    return LIST_HEADER + "\n\n" + "\n".join(f"- {it}" for it in items)


class TodoListBotProcess:
    """Drives a BotAPI update stream through the todo-list commands."""

    def __init__(self, api: BotAPI, storage: TodoListStorage, choose: Optional[Callable[[Sequence[str]], str]] = None):
        self.api = api
        self.storage = storage
        self._choose = choose or random.choice
        self.handled = 0

    async def run(self, from_offset: Offset = 0, max_updates: Optional[int] = None) -> int:
        """Consume updates until cancelled, or until `max_updates` have been handled."""
        if max_updates is not None and max_updates <= 0:
            return self.handled
        log.info("todo-list bot started", extra={"ctx": {"from_offset": from_offset}})
        stream = self.api.stream_updates(from_offset)
        try:
            async for update in stream:
                await self.handle_update(update)
                if max_updates is not None and self.handled >= max_updates:
                    break
        finally:
            await stream.aclose()
        return self.handled

    async def handle_update(self, update: BotUpdate) -> Optional[str]:
        self.handled += 1
        msg = update.message
        if msg is None or msg.text is None or not msg.text.strip():
            log.debug("skipping update without text", extra={"ctx": {"update_id": update.update_id}})
            return None
        cmd = parse_command(msg.chat.id, msg.text)
        inc_labelled(COMMANDS, {"command": cmd.name})
        reply = await self.execute(cmd)
        await self._reply(cmd.chat_id, reply, update.update_id)
        return reply

    async def execute(self, cmd: BotCommand) -> str:
        if isinstance(cmd, ShowHelp):
            return HELP_TEXT
        if isinstance(cmd, ShowTodoList):
            return render_items(await self.storage.get_items(cmd.chat_id))
        if isinstance(cmd, ClearTodoList):
            await self.storage.clear_list(cmd.chat_id)
            log.info("todo-list cleared", extra={"ctx": {"chat_id": cmd.chat_id}})
            return CLEARED_TEXT
        if isinstance(cmd, AddEntry):
            await self.storage.add_item(cmd.chat_id, cmd.content)
            log.info("entry added", extra={"ctx": {"chat_id": cmd.chat_id}})
            return self._choose(ADD_REPLIES)
        raise TypeError(f"unknown command: {cmd!r}")

    async def _reply(self, chat_id: ChatId, text: str, update_id: int) -> None:
        try:
            await self.api.send_message(chat_id, text)
        except BotApiError as e:
            # a failed reply must not stop the stream; it is already counted by the api
            log.warning(
                "failed to send reply",
                extra={"ctx": {"chat_id": chat_id, "update_id": update_id, "error": str(e)}},
            )

from __future__ import annotations

import asyncio
from typing import Dict, List, Protocol

from todobot.api.dto import ChatId


class TodoListStorage(Protocol):
    async def add_item(self, chat_id: ChatId, item: str) -> None:
        ...

    async def get_items(self, chat_id: ChatId) -> List[str]:
        ...

    async def clear_list(self, chat_id: ChatId) -> None:
        ...


class InMemoryTodoListStorage:
    """Per-chat lists kept for the lifetime of the process."""

    def __init__(self) -> None:
        self._items: Dict[ChatId, List[str]] = {}
        self._lock = asyncio.Lock()

    async def add_item(self, chat_id: ChatId, item: str) -> None:
        async with self._lock:
            self._items.setdefault(chat_id, []).append(item)

    async def get_items(self, chat_id: ChatId) -> List[str]:
        async with self._lock:
            return list(self._items.get(chat_id, []))

    async def clear_list(self, chat_id: ChatId) -> None:
        async with self._lock:
            self._items.pop(chat_id, None)

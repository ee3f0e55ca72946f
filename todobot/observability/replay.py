from __future__ import annotations

from typing import AsyncGenerator, Iterable, List, Tuple

from todobot.api.dto import BotResponse, BotUpdate, ChatId, Offset
from todobot.api.offsets import next_offset


class RecordedBotAPI:
    """Offline BotAPI: serves recorded updates as one batch and captures replies.

    Unlike the HTTP client, its stream ends once the recording is exhausted.
    """

    def __init__(self, updates: Iterable[BotUpdate]):
        self.updates: List[BotUpdate] = list(updates)
        self.sent: List[Tuple[ChatId, str]] = []

    async def poll(self, offset: Offset) -> Tuple[Offset, BotResponse]:
        batch = BotResponse(ok=True, result=[u for u in self.updates if u.update_id > offset])
        return next_offset(offset, batch), batch

    async def stream_updates(self, from_offset: Offset = 0) -> AsyncGenerator[BotUpdate, None]:
        _, batch = await self.poll(from_offset)
        last_emitted = from_offset
        for update in sorted(batch.result, key=lambda u: u.update_id):
            # a recording may repeat updates
            if update.update_id <= last_emitted:
                continue
            last_emitted = update.update_id
            yield update

    async def send_message(self, chat_id: ChatId, text: str) -> None:
        self.sent.append((chat_id, text))

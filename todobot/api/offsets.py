from __future__ import annotations

from typing import Optional

from .dto import BotResponse, Offset


def last_offset(response: BotResponse) -> Optional[Offset]:
    """Highest update_id in the batch, or None for an empty batch.

    Batch order is not trusted: the maximum is taken, not the last element.
    """
    if not response.result:
        return None
    return max(u.update_id for u in response.result)


def next_offset(previous: Offset, response: BotResponse) -> Offset:
    latest = last_offset(response)
    if latest is None or latest < previous:
        return previous
    return latest

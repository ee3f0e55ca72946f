from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Iterator

from todobot.api.dto import BotUpdate, encode_update


def write_jsonl(path: str | Path, events: Iterable[dict[str, Any]], append: bool = False) -> int:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    n = 0
    with p.open("a" if append else "w", encoding="utf-8") as f:
        for e in events:
            f.write(json.dumps(e, ensure_ascii=False) + "\n")
            n += 1
    return n


def read_jsonl(path: str | Path) -> Iterator[dict[str, Any]]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            yield json.loads(line)


def write_updates(path: str | Path, updates: Iterable[BotUpdate], append: bool = True) -> int:
    return write_jsonl(path, (encode_update(u) for u in updates), append=append)


def read_updates(path: str | Path) -> Iterator[BotUpdate]:
    for raw in read_jsonl(path):
        yield BotUpdate.model_validate(raw)

from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping, Optional

import httpx

from todobot.config import BotConfig, ConfigError, load_config
from todobot.observability.logging import setup_logging
from todobot.observability.metrics import MESSAGES_SENT, POLL_FAILURES, SEND_ERRORS, UPDATES_RECEIVED, get_counter
from todobot.observability.recording import read_updates, write_updates
from todobot.observability.replay import RecordedBotAPI
from todobot.service.runner import BotService, build_api
from todobot.todolist.process import TodoListBotProcess
from todobot.todolist.storage import InMemoryTodoListStorage


def _load(config_path: Optional[str], env: Optional[Mapping[str, str]] = None) -> BotConfig:
    cfg = load_config(config_path, env=env)
    setup_logging(level=cfg.logging_level, json_output=cfg.logging_json)
    return cfg


def cmd_preflight(
    config_path: Optional[str] = None,
    as_json: bool = False,
    env: Optional[Mapping[str, str]] = None,
    strict: bool = False,
) -> str:
    """Validate configuration without touching the network; the token is never printed in full.

    With `strict`, an invalid configuration re-raises ConfigError after the report is printed.
    """
    try:
        cfg = load_config(config_path, env=env)
    except ConfigError as e:
        out = json.dumps({"ok": False, "error": str(e)}) if as_json else f"INVALID: {e}"
        print(out)
        if strict:
            raise
        return out
    if as_json:
        out = json.dumps({"ok": True, "config": cfg.redacted()})
    else:
        lines = ["OK: configuration valid"]
        lines.extend(f"  {k} = {v}" for k, v in cfg.redacted().items())
        out = "\n".join(lines)
    print(out)
    return out


async def cmd_run_async(
    config_path: Optional[str] = None,
    from_offset: Optional[int] = None,
    max_updates: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    cfg = _load(config_path, env=env)
    service = BotService(cfg, client=client)
    if client is None:
        handled = await service.run_until_signal(from_offset=from_offset, max_updates=max_updates)
    else:
        handled = await service.run(from_offset=from_offset, max_updates=max_updates)
    print(
        f"handled={handled} received={get_counter(UPDATES_RECEIVED)} sent={get_counter(MESSAGES_SENT)} "
        f"send_errors={get_counter(SEND_ERRORS)} poll_failures={get_counter(POLL_FAILURES)}"
    )
    return handled


async def cmd_send_async(
    chat_id: int,
    text: str,
    config_path: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Send one message. BotApiError propagates to the caller."""
    cfg = _load(config_path, env=env)
    async with build_api(cfg, client=client) as api:
        await api.send_message(chat_id, text)
    out = f"OK: sent to chat {chat_id}"
    print(out)
    return out


async def cmd_poll_once_async(
    config_path: Optional[str] = None,
    offset: Optional[int] = None,
    as_json: bool = False,
    record: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    cfg = _load(config_path, env=env)
    start = cfg.initial_offset if offset is None else offset
    async with build_api(cfg, client=client) as api:
        nxt, batch = await api.poll(start)
    if record and batch.result:
        write_updates(record, batch.result)
    if as_json:
        out = json.dumps(
            {"offset": start, "next_offset": nxt, "updates": [u.model_dump(by_alias=True, exclude_none=True) for u in batch.result]},
            ensure_ascii=False,
        )
    else:
        lines = [f"offset={start} next_offset={nxt} updates={len(batch.result)}"]
        for u in batch.result:
            text = u.message.text if u.message and u.message.text is not None else ""
            chat = u.message.chat.id if u.message else "-"
            lines.append(f"  #{u.update_id} chat={chat} text={text!r}")
        out = "\n".join(lines)
    print(out)
    return out


async def cmd_replay_async(updates_file: str | Path, from_offset: int = 0) -> str:
    """Run the todo-list process over recorded updates and print the replies."""
    setup_logging(json_output=False)
    api = RecordedBotAPI(read_updates(updates_file))
    process = TodoListBotProcess(api, InMemoryTodoListStorage(), choose=lambda options: options[0])
    await process.run(from_offset=from_offset)
    out = "\n".join(f"[{chat_id}] {text}" for chat_id, text in api.sent)
    print(out)
    return out

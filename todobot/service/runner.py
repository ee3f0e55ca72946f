from __future__ import annotations

import asyncio
import logging
import signal
from typing import Optional

import httpx

from todobot.api.bot_api import HttpxBotAPI
from todobot.config import BotConfig
from todobot.observability.server import start_metrics_server, stop_metrics_server
from todobot.todolist.process import TodoListBotProcess
from todobot.todolist.storage import InMemoryTodoListStorage, TodoListStorage


log = logging.getLogger(__name__)


def build_api(config: BotConfig, client: Optional[httpx.AsyncClient] = None) -> HttpxBotAPI:
    return HttpxBotAPI(
        config.token,
        client=client,
        base_url=config.api_base_url,
        poll_timeout_s=config.poll_timeout_s,
        request_timeout_s=config.request_timeout_s,
        parse_mode=config.parse_mode,
    )


class BotService:
    """Wires one bot: HTTP client, API, storage and the todo-list process.

    Offsets are not persisted; every run starts from `config.initial_offset`
    unless `from_offset` is given.
    """

    def __init__(self, config: BotConfig, client: Optional[httpx.AsyncClient] = None, storage: Optional[TodoListStorage] = None):
        self.config = config
        self.api = build_api(config, client=client)
        self.storage = storage or InMemoryTodoListStorage()
        self.process = TodoListBotProcess(self.api, self.storage)

    async def run(self, from_offset: Optional[int] = None, max_updates: Optional[int] = None) -> int:
        start = self.config.initial_offset if from_offset is None else from_offset
        server = None
        if self.config.metrics_port is not None:
            server, _ = start_metrics_server(self.config.metrics_host, self.config.metrics_port)
            log.info("metrics server listening", extra={"ctx": {"port": server.server_address[1]}})
        try:
            return await self.process.run(from_offset=start, max_updates=max_updates)
        finally:
            if server is not None:
                stop_metrics_server(server)
            await self.api.aclose()

    async def run_until_signal(self, from_offset: Optional[int] = None, max_updates: Optional[int] = None) -> int:
        """Run until SIGINT/SIGTERM; a signal cancels the loop, abandoning any in-flight poll."""
        loop = asyncio.get_running_loop()
        task = asyncio.create_task(self.run(from_offset=from_offset, max_updates=max_updates))
        signalled = False

        def _on_signal() -> None:
            nonlocal signalled
            signalled = True
            task.cancel()

        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _on_signal)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):  # pragma: no cover - platform dependent
                pass
        try:
            return await task
        except asyncio.CancelledError:
            if not signalled:
                # cancelled from outside, not by a signal
                raise
            log.info("shutdown requested", extra={"ctx": {"handled": self.process.handled}})
            return self.process.handled
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)

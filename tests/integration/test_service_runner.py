import asyncio
import os
import signal

import httpx
import pytest

from todobot.config import BotConfig
from todobot.service.runner import BotService


def _client(batches):
    script = list(batches)
    sent = []

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(0.001)
        if request.url.path.endswith("/sendMessage"):
            sent.append((int(request.url.params["chat_id"]), request.url.params["text"]))
            return httpx.Response(200, json={"ok": True, "result": {}})
        result = script.pop(0) if script else []
        return httpx.Response(200, json={"ok": True, "result": result})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), sent


def _u(i, text, chat=7):
    return {"update_id": i, "message": {"message_id": i, "chat": {"id": chat}, "text": text}}


@pytest.mark.asyncio
async def test_service_runs_todolist_over_http():
    client, sent = _client([[_u(1, "walk the dog")], [_u(2, "/show")]])
    service = BotService(BotConfig(token="t0ken"), client=client)
    handled = await service.run(max_updates=2)
    assert handled == 2
    assert sent[-1] == (7, "Your todo-list:\n\n- walk the dog")
    await client.aclose()


@pytest.mark.asyncio
async def test_service_uses_initial_offset_from_config():
    offsets = []

    async def handler(request):
        offsets.append(request.url.params["offset"])
        return httpx.Response(200, json={"ok": True, "result": [_u(501, "/show")]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = BotService(BotConfig(token="t0ken", initial_offset=500), client=client)
    await service.run(max_updates=1)
    assert offsets[0] == "501"


@pytest.mark.asyncio
async def test_service_serves_metrics_while_running():
    client, _ = _client([[_u(1, "x")]])
    cfg = BotConfig(token="t0ken", metrics_port=0)
    service = BotService(cfg, client=client)
    assert await service.run(max_updates=1) == 1


@pytest.mark.asyncio
async def test_sigterm_cancels_the_loop():
    client, _ = _client([[_u(1, "first")]])
    service = BotService(BotConfig(token="t0ken"), client=client)
    task = asyncio.create_task(service.run_until_signal())
    for _ in range(200):
        if service.process.handled >= 1:
            break
        await asyncio.sleep(0.01)
    os.kill(os.getpid(), signal.SIGTERM)
    handled = await asyncio.wait_for(task, timeout=5)
    assert handled == 1


@pytest.mark.asyncio
async def test_service_zero_limit_sends_nothing():
    client, sent = _client([[_u(1, "x")]])
    service = BotService(BotConfig(token="t0ken"), client=client)
    assert await service.run(max_updates=0) == 0
    assert sent == []
    await client.aclose()


@pytest.mark.asyncio
async def test_outer_cancellation_propagates():
    client, _ = _client([[_u(1, "first")]])
    service = BotService(BotConfig(token="t0ken"), client=client)
    outer = asyncio.create_task(service.run_until_signal())
    for _ in range(200):
        if service.process.handled >= 1:
            break
        await asyncio.sleep(0.01)
    outer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await outer
    await client.aclose()

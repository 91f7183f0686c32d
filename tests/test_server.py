import asyncio
import socket

import aiohttp
import pytest
from aiohttp import web

from ytapi import server
from ytapi.handlers import REDIS_CLIENT
from ytapi.redis_store import get_redis_client

UNREACHABLE_REDIS = "127.0.0.1:1"


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_default_server_config():
    config = server.default_server_config()
    assert config.port == ":8080"
    assert config.debug is False
    assert config.read_timeout == 30
    assert config.write_timeout == 30
    assert config.idle_timeout == 60


def test_default_redis_config():
    config = server.default_redis_config()
    assert config.address == "redis:6379"
    assert config.password == ""
    assert config.db == 0


def test_get_server_info():
    info = server.get_server_info()
    assert info["name"] == "YT MP3 Downloader API"
    assert info["version"] == "1.0.1"
    assert info["status"] == "running"
    assert set(info["endpoints"]) == {"/download", "/result", "/health"}


def test_setup_routes_registers_endpoints():
    app = web.Application()
    server.setup_routes(app)
    paths = {resource.canonical for resource in app.router.resources()}
    assert paths == {"/download", "/result", "/health"}


@pytest.mark.asyncio
async def test_initialize_server_uses_shared_client():
    app = await server.initialize_server(
        server.default_server_config(), server.RedisConfig(address=UNREACHABLE_REDIS)
    )
    try:
        assert app[REDIS_CLIENT] is get_redis_client()
        paths = {resource.canonical for resource in app.router.resources()}
        assert "/health" in paths
    finally:
        await app[REDIS_CLIENT].aclose()


@pytest.mark.asyncio
async def test_start_with_context_serves_until_stopped():
    port = _free_port()
    config = server.ServerConfig(port=f"127.0.0.1:{port}")
    stop = asyncio.Event()
    task = asyncio.create_task(
        server.start_with_context(stop, config, server.RedisConfig(address=UNREACHABLE_REDIS))
    )
    status = None
    body = None
    async with aiohttp.ClientSession() as session:
        for _ in range(200):
            try:
                async with session.get(f"http://127.0.0.1:{port}/health") as response:
                    status = response.status
                    body = await response.json()
                break
            except aiohttp.ClientConnectionError:
                await asyncio.sleep(0.05)
        stop.set()
        await asyncio.wait_for(task, timeout=35)
        with pytest.raises(aiohttp.ClientConnectionError):
            async with session.get(f"http://127.0.0.1:{port}/health"):
                pass
    assert status == 503
    assert body["reason"] == "Redis connection failed"
    assert task.done()


@pytest.mark.asyncio
async def test_start_with_context_port_in_use():
    with socket.socket() as blocker:
        blocker.bind(("127.0.0.1", 0))
        blocker.listen()
        port = blocker.getsockname()[1]
        config = server.ServerConfig(port=f"127.0.0.1:{port}")
        with pytest.raises(OSError):
            await server.start_with_context(
                asyncio.Event(), config, server.RedisConfig(address=UNREACHABLE_REDIS)
            )
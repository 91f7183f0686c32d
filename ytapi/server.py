"""Server configuration, application assembly and startup."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from aiohttp import web

from .handlers import (
    BACKGROUND_TASKS,
    DOWNLOADS_DIR,
    MONITOR_INTERVAL,
    REDIS_CLIENT,
    download_handler,
    health_check_handler,
    result_handler,
)
from .redis_store import init_redis

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 30.0


@dataclass
class ServerConfig:
    """Listening address and connection timeouts, in seconds."""

    port: str = ":8080"
    debug: bool = False
    read_timeout: float = 30.0
    write_timeout: float = 30.0
    idle_timeout: float = 60.0


@dataclass
class RedisConfig:
    """Where the status store lives."""

    address: str = "redis:6379"
    password: str = ""
    db: int = 0


def default_server_config() -> ServerConfig:
    """Return the default server configuration."""
    return ServerConfig()


def default_redis_config() -> RedisConfig:
    """Return the default Redis configuration."""
    return RedisConfig()


def _parse_port(port: str) -> tuple[str, int]:
    host, sep, number = port.rpartition(":")
    if not sep:
        return "", int(port)
    return host, int(number)


async def _close_resources(app: web.Application) -> None:
    tasks = list(app[BACKGROUND_TASKS])
    for task in tasks:
        task.cancel()
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)
    await app[REDIS_CLIENT].aclose()


def setup_routes(app: web.Application) -> None:
    """Register the API endpoints."""
    app.router.add_get("/download", download_handler)
    app.router.add_get("/result", result_handler)
    app.router.add_get("/health", health_check_handler)


async def initialize_server(server_config: ServerConfig, redis_config: RedisConfig) -> web.Application:
    """Connect to Redis and build the application with its routes."""
    client = await init_redis(redis_config.address, redis_config.password, redis_config.db)
    if server_config.debug:
        logging.getLogger(__package__ or __name__).setLevel(logging.DEBUG)

    app = web.Application()
    app[REDIS_CLIENT] = client
    app[DOWNLOADS_DIR] = "downloads"
    app[MONITOR_INTERVAL] = 2.0
    app[BACKGROUND_TASKS] = set()
    setup_routes(app)
    app.on_cleanup.append(_close_resources)
    return app


def get_server_info() -> dict:
    """Describe the API and its endpoints."""
    return {
        "name": "YT MP3 Downloader API",
        "version": "1.0.1",
        "status": "running",
        "description": "API para download de vídeos/áudios do YouTube",
        "endpoints": {
            "/download": "WebSocket - Inicia download (GET com ?url=...&format=mp3|mp4)",
            "/result": "HTTP - Obtém arquivo processado (GET com ?id=...)",
            "/health": "HTTP - Verificação de saúde da API",
        },
    }


async def start_with_context(
    stop_event: asyncio.Event, server_config: ServerConfig, redis_config: RedisConfig
) -> None:
    """Serve until stop_event is set, then shut down gracefully.

    Raises OSError when the address cannot be bound.
    """
    host, port = _parse_port(server_config.port)
    app = await initialize_server(server_config, redis_config)
    runner = web.AppRunner(
        app,
        keepalive_timeout=server_config.idle_timeout,
        shutdown_timeout=SHUTDOWN_TIMEOUT,
    )
    await runner.setup()
    site = web.TCPSite(runner, host or None, port)
    try:
        await site.start()
    except OSError:
        await runner.cleanup()
        raise

    logger.info("Server listening on %s", server_config.port)
    logger.info("Redis at %s", redis_config.address)
    try:
        await stop_event.wait()
        logger.info("Starting graceful shutdown...")
    finally:
        await runner.cleanup()


async def start(server_config: ServerConfig, redis_config: RedisConfig) -> None:
    """Serve until the task is cancelled."""
    await start_with_context(asyncio.Event(), server_config, redis_config)


async def quick_start() -> None:
    """Serve with the default configuration."""
    logger.info("Starting YT API with default settings...")
    await start(default_server_config(), default_redis_config())


async def quick_start_with_context(stop_event: asyncio.Event) -> None:
    """Serve with the default configuration until stop_event is set."""
    logger.info("Starting YT API with default settings and stop event...")
    await start_with_context(stop_event, default_server_config(), default_redis_config())
"""Command-line entry point that runs the API server."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from collections.abc import Mapping
from pathlib import Path

from .server import ServerConfig, default_redis_config, default_server_config, start_with_context

logger = logging.getLogger(__name__)


def create_downloads_dir(path="downloads") -> bool:
    """Create the downloads directory if missing; return True when created."""
    directory = Path(path)
    if directory.exists():
        logger.info("Directory '%s' already exists", directory)
        return False
    directory.mkdir(mode=0o755)
    logger.info("Directory '%s' created", directory)
    return True


def _server_config_from_env(environ: Mapping[str, str]) -> ServerConfig:
    config = default_server_config()
    port = environ.get("PORT", "")
    if port:
        config.port = ":" + port
    if environ.get("DEBUG") == "true":
        config.debug = True
    return config


async def _serve(config: ServerConfig) -> None:
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()

    def _on_signal() -> None:
        logger.info("Signal received, shutting down...")
        stop.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _on_signal)
        except (NotImplementedError, RuntimeError):
            pass
    await start_with_context(stop, config, default_redis_config())


def main(argv=None) -> int:
    """Run the server configured by the PORT and DEBUG environment variables."""
    parser = argparse.ArgumentParser(
        prog="ytapi",
        description="Serve the media download API. Configure with PORT and DEBUG.",
    )
    parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        create_downloads_dir()
    except OSError as exc:
        logger.critical("Could not create downloads directory: %s", exc)
        return 1

    config = _server_config_from_env(os.environ)
    try:
        asyncio.run(_serve(config))
    except OSError as exc:
        logger.error("Server error: %s", exc)
    except KeyboardInterrupt:
        pass
    logger.info("Server finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
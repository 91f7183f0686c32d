"""WebSocket status messages and the loops that drive a download socket."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from aiohttp import WSMsgType
from redis.exceptions import RedisError

from .redis_store import media_key

logger = logging.getLogger(__name__)

FINAL_STATUSES = frozenset({"completed", "error"})


@dataclass(frozen=True)
class WebSocketMessage:
    """A status update sent to a client."""

    status: str
    download_id: str
    message: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the JSON form; an empty message is left out."""
        payload = {"status": self.status, "id": self.download_id}
        if self.message:
            payload["message"] = self.message
        return payload


def create_websocket_message(status: str, download_id: str) -> WebSocketMessage:
    """Build the standard message for a status."""
    texts = {
        "completed": "Download concluído. Use /result?id=" + download_id,
        "error": "Erro durante o processamento.",
        "processing": "Processamento em andamento.",
    }
    return WebSocketMessage(status, download_id, texts.get(status, ""))


async def monitor_status_and_notify(ws, client, download_id: str, initial_status: str, interval: float = 2.0) -> None:
    """Poll the stored status and push changes until a final status is sent.

    Stops early when the socket is closed or a send fails.
    """
    last_known = initial_status
    try:
        while True:
            await asyncio.sleep(interval)
            if ws.closed:
                logger.info("Client disconnected for %s. Stopping monitor.", download_id)
                return
            try:
                status = await client.get(media_key(download_id))
            except RedisError as exc:
                logger.warning("Redis error reading status for %s: %s. Continuing.", download_id, exc)
                continue
            if status is None:
                logger.warning("No status stored for %s. Continuing.", download_id)
                continue
            if status == last_known and status not in FINAL_STATUSES:
                continue

            logger.info("Status for %s: %s. Sending update.", download_id, status)
            message = create_websocket_message(status, download_id)
            try:
                await ws.send_json(message.to_dict())
            except (ConnectionError, RuntimeError) as exc:
                logger.info("Could not write to WebSocket for %s: %s", download_id, exc)
                return
            last_known = status
            if status in FINAL_STATUSES:
                logger.info("Final status %s for %s. Stopping monitor.", status, download_id)
                return
    finally:
        logger.debug("Monitor for %s finished.", download_id)


async def keep_websocket_alive(ws, download_id: str) -> int:
    """Read client messages until the connection ends.

    Returns the number of messages received.
    """
    received = 0
    try:
        async for message in ws:
            if message.type == WSMsgType.ERROR:
                logger.info("Read error from client %s: %s", download_id, ws.exception())
                break
            received += 1
    except (ConnectionError, RuntimeError) as exc:
        logger.info("Read error from client %s: %s", download_id, exc)
    logger.info("Client %s stopped reading.", download_id)
    return received
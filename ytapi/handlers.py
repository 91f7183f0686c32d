"""HTTP and WebSocket request handlers for the download API."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import os
import zipfile
from pathlib import Path
from urllib.parse import quote

from aiohttp import web
from redis.exceptions import RedisError

from .download import process_download
from .messages import WebSocketMessage, keep_websocket_alive, monitor_status_and_notify
from .redis_store import media_key
from .status import StatusInfo, get_download_status, set_processing_status

logger = logging.getLogger(__name__)

REDIS_CLIENT = web.AppKey("redis_client", object)
DOWNLOADS_DIR = web.AppKey("downloads_dir", str)
MONITOR_INTERVAL = web.AppKey("monitor_interval", float)
BACKGROUND_TASKS = web.AppKey("background_tasks", set)

SUPPORTED_FORMATS = frozenset({"mp3", "mp4"})

_detached_tasks: set[asyncio.Task] = set()


def is_valid_request(url: str, fmt: str) -> bool:
    """Return True when a URL is given and the format is mp3 or mp4."""
    return bool(url) and fmt in SUPPORTED_FORMATS


def generate_download_id(url: str, fmt: str) -> str:
    """Return the stable identifier of a URL and format pair."""
    return hashlib.sha1((url + fmt).encode("utf-8")).hexdigest()


def initial_message(download_id: str, status_info: StatusInfo) -> WebSocketMessage:
    """Return the first message sent to a client that asked for a download."""
    if status_info.status == "completed":
        return WebSocketMessage(
            "completed",
            download_id,
            "Conteúdo já processado e pronto. Use /result?id=" + download_id,
        )
    if status_info.status == "processing":
        return WebSocketMessage("processing", download_id, "Processamento já em andamento.")
    if status_info.should_start_processing:
        return WebSocketMessage("processing", download_id, "Iniciando processamento.")
    return WebSocketMessage("", "")


def _raise(error: OSError) -> None:
    raise error


def zip_files(source_dir, destination) -> None:
    """Write every file below source_dir into a zip archive at destination.

    Entries are named by their path relative to source_dir.
    """
    source = Path(source_dir)
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for root, dirs, files in os.walk(source, onerror=_raise):
            dirs.sort()
            for name in sorted(files):
                path = Path(root) / name
                archive.write(path, path.relative_to(source).as_posix())


def _attachment(path: Path, filename: str) -> web.FileResponse:
    if filename.isascii():
        disposition = 'attachment; filename="{}"'.format(filename.replace('"', '\\"'))
    else:
        disposition = "attachment; filename*=UTF-8''" + quote(filename)
    return web.FileResponse(path, headers={"Content-Disposition": disposition})


def _track(app: web.Application, task: asyncio.Task) -> None:
    tasks = app.get(BACKGROUND_TASKS)
    if tasks is None:
        tasks = _detached_tasks
    tasks.add(task)
    task.add_done_callback(tasks.discard)


async def download_handler(request: web.Request) -> web.StreamResponse:
    """Start or follow a download and stream its status over a WebSocket."""
    url = request.query.get("url", "")
    fmt = request.query.get("format", "")
    if not is_valid_request(url, fmt):
        return web.json_response(
            {
                "error": "Parâmetros inválidos",
                "message": "Use 'url' e 'format' (mp3 ou mp4). Ex: /download?url=...&format=mp3",
            },
            status=400,
        )

    ws = web.WebSocketResponse()
    try:
        await ws.prepare(request)
    except web.HTTPException as exc:
        logger.warning("Failed to upgrade to websocket: %s", exc)
        raise

    app = request.app
    client = app[REDIS_CLIENT]
    downloads_dir = app.get(DOWNLOADS_DIR, "downloads")
    interval = app.get(MONITOR_INTERVAL, 2.0)

    download_id = generate_download_id(url, fmt)
    logger.info("Download request for %s (URL: %s, format: %s)", download_id, url, fmt)

    status_info = await get_download_status(client, download_id, downloads_dir)
    try:
        await ws.send_json(initial_message(download_id, status_info).to_dict())
    except (ConnectionError, RuntimeError) as exc:
        logger.info("Could not send initial status for %s: %s", download_id, exc)
        await ws.close()
        return ws

    if status_info.should_start_processing:
        try:
            await set_processing_status(client, download_id)
        except RedisError as exc:
            logger.error("Could not mark %s as processing: %s", download_id, exc)
        _track(app, asyncio.create_task(process_download(client, url, fmt, download_id, downloads_dir)))

    monitor = asyncio.create_task(
        monitor_status_and_notify(ws, client, download_id, status_info.current_status_for_client, interval)
    )
    try:
        await keep_websocket_alive(ws, download_id)
        await monitor
    finally:
        if not monitor.done():
            monitor.cancel()
    logger.info("Download handler for %s finished.", download_id)
    return ws


async def result_handler(request: web.Request) -> web.StreamResponse:
    """Serve the finished file, or a zip of all files, of a download."""
    download_id = request.query.get("id", "")
    if not download_id:
        return web.json_response({"error": "ID requerido"}, status=400)

    client = request.app[REDIS_CLIENT]
    try:
        status = await client.get(media_key(download_id))
    except RedisError:
        status = None
    if status is None:
        return web.json_response({"status": "not_found"}, status=404)

    if status != "completed":
        return web.json_response(
            {
                "status": status,
                "message": "A mídia ainda está sendo processada. Tente novamente em breve.",
            },
            status=202,
        )

    downloads_dir = Path(request.app.get(DOWNLOADS_DIR, "downloads"))
    directory = downloads_dir / download_id
    try:
        entries = sorted(os.listdir(directory))
    except OSError:
        entries = []
    if not entries:
        return web.json_response({"error": "Arquivo não encontrado"}, status=404)

    if len(entries) == 1:
        return _attachment(directory / entries[0], entries[0])

    zip_path = downloads_dir / (download_id + ".zip")
    try:
        await asyncio.to_thread(zip_files, directory, zip_path)
    except OSError as exc:
        logger.error("Could not zip files for %s: %s", download_id, exc)
        return web.json_response({"error": "Erro ao compactar arquivos"}, status=500)
    return _attachment(zip_path, download_id + ".zip")


async def health_check_handler(request: web.Request) -> web.Response:
    """Report whether Redis answers."""
    client = request.app[REDIS_CLIENT]
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        return web.json_response(
            {"status": "error", "reason": "Redis connection failed", "error": str(exc)},
            status=503,
        )
    return web.json_response({"status": "ok", "redis": "connected"})
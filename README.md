# ytapi

A small aiohttp web service that downloads audio or video from YouTube
with `yt-dlp` and reports progress to the client over a WebSocket.
Download state is kept in Redis under keys of the form `media:<id>`, so
repeated requests for the same URL and format reuse the existing result.

## Requirements

- `yt-dlp` available on `PATH` (and `ffmpeg`, which yt-dlp needs for
  audio extraction and re-encoding)
- A reachable Redis server (default address `redis:6379`, database 0)

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
ytapi-server
```

(`python -m ytapi.cli` does the same.) The command creates a
`downloads` directory in the working directory if it is missing and then
serves on port 8080. Two environment variables change the defaults:

- `PORT` – port to listen on (for example `PORT=9000`)
- `DEBUG` – set to `true` for debug-level logging from the package

On SIGINT or SIGTERM the server stops accepting requests, cancels
downloads still running and closes the Redis connection. If Redis cannot
be reached at startup the failure is logged and the server starts anyway;
`/health` then reports the problem.

## Endpoints

| Path        | Kind      | Description |
|-------------|-----------|-------------|
| `/download` | WebSocket | Starts or follows a download. Query: `url=...&format=mp3` or `format=mp4`. |
| `/result`   | HTTP      | Fetches the processed file. Query: `id=...`. |
| `/health`   | HTTP      | Reports whether Redis is reachable. |

### `/download`

Open a WebSocket to `/download?url=<video url>&format=mp3`. The server
first sends a message describing the current state, for example

```json
{"status": "processing", "id": "<id>", "message": "Iniciando processamento."}
```

and then checks Redis every two seconds, sending an update whenever the
status changes, until it sends `completed` or `error`. The id is the
SHA-1 hex digest of the URL followed by the format, so the same request
always maps to the same id. A new download is started when no status is
stored for the id or the stored status is neither `completed` nor
`processing` (for instance after an earlier `error`).

If `url` is missing or the format is not `mp3` or `mp4`, the server
answers with HTTP 400 instead of upgrading the connection.

`mp3` is extracted as audio (`yt-dlp -x --audio-format mp3`); `mp4` is
re-encoded as video (`yt-dlp --recode-video mp4`). Files are written to
`downloads/<id>/` named after the video title.

### `/result`

- `400` when `id` is missing
- `404` with `{"status": "not_found"}` when no status is stored for the id
- `202` while the stored status is anything other than `completed`
- `404` when the download is complete but its directory is missing or empty
- otherwise the file itself as an attachment; when a download produced
  several files (a playlist, for instance) they are zipped into
  `downloads/<id>.zip` and sent as `<id>.zip`

### `/health`

Returns `{"status": "ok", "redis": "connected"}` with 200, or 503 with
`{"status": "error", "reason": "Redis connection failed", "error": ...}`.

## Disk usage

After every successful download, `ytapi.cleanup.cleanup_downloads` trims
the `downloads` directory: the download folders are taken oldest first by
modification time, each folder's size is added in whole megabytes, and
every folder reached after the running total exceeds 2048 MB is removed.
Requesting an already completed download refreshes its folder's
timestamp, which keeps it from being treated as old.

## Using it from Python

```python
import asyncio

from ytapi.server import default_redis_config, default_server_config, start_with_context


async def run() -> None:
    server_config = default_server_config()
    server_config.port = ":9000"
    redis_config = default_redis_config()
    redis_config.address = "localhost:6379"

    stop = asyncio.Event()
    # Call stop.set() from elsewhere to shut the server down.
    await start_with_context(stop, server_config, redis_config)


asyncio.run(run())
```

`ytapi.server.initialize_server` builds the `aiohttp.web.Application`
without starting it, `start` serves until its task is cancelled, and
`quick_start` / `quick_start_with_context` use the default configuration.
`get_server_info()` returns a short description of the service and its
endpoints.

The building blocks are usable on their own:

- `ytapi.handlers.generate_download_id(url, fmt)` and `is_valid_request(url, fmt)`
- `ytapi.download.build_download_command(url, fmt, directory)` and
  `process_download(client, url, fmt, download_id, downloads_dir)`
- `ytapi.status.get_download_status(client, download_id, downloads_dir)`
- `ytapi.messages.create_websocket_message(status, download_id)`
- `ytapi.handlers.zip_files(source_dir, destination)`

## What it does not do

The server reports only the states `processing`, `completed` and
`error`; it does not relay yt-dlp's progress percentages or its output.
The `ServerConfig` read and write timeouts are kept in the configuration
but not applied; only the idle timeout is used, as the keep-alive timeout.
"""Web service that downloads YouTube media with yt-dlp, tracks its status in Redis and reports it over WebSocket."""

__version__ = "1.0.1"
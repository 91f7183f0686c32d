[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ytapi"
version = "1.0.1"
description = "HTTP and WebSocket API that downloads YouTube audio or video with yt-dlp and tracks progress in Redis"
requires-python = ">=3.10"
keywords = ["youtube", "yt-dlp", "download", "websocket", "redis", "aiohttp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
]
dependencies = [
    "aiohttp>=3.9",
    "redis>=5.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[project.scripts]
ytapi-server = "ytapi.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ytapi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true

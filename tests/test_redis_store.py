import pytest

from ytapi.redis_store import get_redis_client, init_redis, media_key


def test_media_key_uses_media_prefix():
    assert media_key("abc123") == "media:abc123"


def test_media_key_keeps_identifier_intact():
    download_id = "f" * 40
    key = media_key(download_id)
    assert key.endswith(download_id)
    assert key.startswith("media:")


@pytest.mark.asyncio
async def test_init_redis_configures_client_even_when_unreachable():
    password = "password"
    client = await init_redis("127.0.0.1:1", password, 3)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == 1
    assert kwargs["db"] == 3
    assert kwargs["password"] == password
    assert get_redis_client() is client


@pytest.mark.asyncio
async def test_init_redis_without_port_uses_default_port():
    client = await init_redis("127.0.0.1", None, 0)
    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["port"] == 6379
    assert kwargs["password"] is None
    assert get_redis_client() is client
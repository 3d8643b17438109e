import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from cache.redis_store import RedisCacheStore, escape_glob


@pytest.fixture
def redis_client():
    """Create a mocked redis.asyncio client."""
    return AsyncMock()


def test_get_and_set(redis_client):
    store = RedisCacheStore("redis://cache:6379/0", client=redis_client)
    redis_client.get.return_value = b"payload"

    async def scenario():
        assert await store.get("Dashboard:") == b"payload"
        await store.set("Dashboard:", b"payload", timedelta(minutes=1))

    asyncio.run(scenario())

    redis_client.get.assert_awaited_once_with("Dashboard:")
    redis_client.set.assert_awaited_once_with("Dashboard:", b"payload", px=60000)
    redis_client.sadd.assert_not_called()


def test_remove(redis_client):
    store = RedisCacheStore("redis://cache:6379/0", client=redis_client)
    asyncio.run(store.remove("GetProductById:id:p1"))
    redis_client.delete.assert_awaited_once_with("GetProductById:id:p1")


def test_remove_by_prefix_scans_every_batch(redis_client):
    """Scan mode walks the cursor until it wraps to zero."""
    store = RedisCacheStore("redis://cache:6379/0", client=redis_client)
    redis_client.scan.side_effect = [
        (17, [b"ListProducts:page:1", b"ListProducts:page:2"]),
        (0, [b"ListProducts:page:3"]),
    ]
    redis_client.delete.side_effect = [2, 1]

    removed = asyncio.run(store.remove_by_prefix("ListProducts:"))

    assert removed == 3
    assert redis_client.scan.await_count == 2
    first_call = redis_client.scan.await_args_list[0]
    assert first_call.kwargs == {'cursor': 0, 'match': 'ListProducts:*', 'count': 100}
    assert redis_client.scan.await_args_list[1].kwargs['cursor'] == 17


def test_remove_by_prefix_with_empty_batches(redis_client):
    store = RedisCacheStore("redis://cache:6379/0", client=redis_client)
    redis_client.scan.return_value = (0, [])

    assert asyncio.run(store.remove_by_prefix("Dashboard:")) == 0
    redis_client.delete.assert_not_called()


def test_escape_glob():
    """Prefixes are matched literally, never as a pattern."""
    assert escape_glob("ListProducts:") == "ListProducts:"
    assert escape_glob("a*b?[c]\\") == "a\\*b\\?\\[c\\]\\\\"


def test_key_index_mode(redis_client):
    """Index mode records keys on write and deletes from the index set."""
    store = RedisCacheStore("redis://cache:6379/0", use_key_index=True, index_namespace="idx", client=redis_client)
    redis_client.smembers.return_value = {
        b"ListProducts:page:1",
        b"ListProducts:page:2:category_id:c1",
    }
    redis_client.delete.return_value = 2

    async def scenario():
        await store.set("ListProducts:page:1", b"x", timedelta(seconds=120))
        return await store.remove_by_prefix("ListProducts:")

    removed = asyncio.run(scenario())

    assert removed == 2
    redis_client.sadd.assert_awaited_once_with("idx:ListProducts", "ListProducts:page:1")
    redis_client.pexpire.assert_awaited_once_with("idx:ListProducts", 120000)
    redis_client.smembers.assert_awaited_once_with("idx:ListProducts")
    deleted = set(redis_client.delete.await_args.args)
    assert deleted == {"ListProducts:page:1", "ListProducts:page:2:category_id:c1"}
    redis_client.srem.assert_awaited_once()
    redis_client.scan.assert_not_called()


def test_key_index_only_removes_matching_prefix(redis_client):
    store = RedisCacheStore("redis://cache:6379/0", use_key_index=True, client=redis_client)
    redis_client.smembers.return_value = {b"GetProductById:id:p1"}

    assert asyncio.run(store.remove_by_prefix("GetProductById:id:p2")) == 0
    redis_client.delete.assert_not_called()


def test_key_index_failure_prevents_store(redis_client):
    """A key that could not be indexed is never written."""
    store = RedisCacheStore("redis://cache:6379/0", use_key_index=True, client=redis_client)
    redis_client.sadd.side_effect = ConnectionError("down")

    with pytest.raises(ConnectionError):
        asyncio.run(store.set("Dashboard:", b"x", timedelta(seconds=60)))
    redis_client.set.assert_not_called()


def test_connect_lazily(redis_client):
    store = RedisCacheStore("redis://cache:6379/0")
    redis_client.get.return_value = None

    with patch("cache.redis_store.redis.from_url", return_value=redis_client) as from_url:
        assert asyncio.run(store.get("missing")) is None

    from_url.assert_called_once_with("redis://cache:6379/0")
    redis_client.ping.assert_awaited_once()


def test_connect_failure_is_raised(redis_client):
    store = RedisCacheStore("redis://cache:6379/0")
    redis_client.ping.side_effect = ConnectionError("refused")

    with patch("cache.redis_store.redis.from_url", return_value=redis_client):
        with pytest.raises(ConnectionError):
            asyncio.run(store.get("key"))
    assert store.redis is None


def test_disconnect(redis_client):
    store = RedisCacheStore("redis://cache:6379/0", client=redis_client)
    asyncio.run(store.disconnect())
    redis_client.aclose.assert_awaited_once()
    assert store.redis is None


def test_index_sets_outlive_their_longest_entry(redis_client):
    store = RedisCacheStore("redis://cache:6379/0", use_key_index=True, client=redis_client)

    async def scenario():
        await store.set("GetProductById:id:p1", b"x", timedelta(minutes=5))
        await store.set("GetProductById:id:p2", b"x", timedelta(minutes=1))

    asyncio.run(scenario())

    expiries = [call.args for call in redis_client.pexpire.await_args_list]
    assert expiries == [
        ("cache-index:GetProductById", 300000),
        ("cache-index:GetProductById", 300000),
    ]


def test_concurrent_first_use_opens_one_connection(redis_client):
    store = RedisCacheStore("redis://cache:6379/0")
    redis_client.get.return_value = None

    async def slow_ping():
        await asyncio.sleep(0.01)
        return True

    redis_client.ping.side_effect = slow_ping

    async def scenario():
        await asyncio.gather(*(store.get(f"key{n}") for n in range(5)))

    with patch("cache.redis_store.redis.from_url", return_value=redis_client) as from_url:
        asyncio.run(scenario())

    from_url.assert_called_once()
    assert redis_client.ping.await_count == 1
    assert redis_client.get.await_count == 5


def test_failed_connect_closes_the_pool(redis_client):
    store = RedisCacheStore("redis://cache:6379/0")
    redis_client.ping.side_effect = ConnectionError("refused")

    with patch("cache.redis_store.redis.from_url", return_value=redis_client):
        with pytest.raises(ConnectionError):
            asyncio.run(store.connect())

    redis_client.aclose.assert_awaited_once()

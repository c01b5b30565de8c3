from __future__ import annotations

import asyncio
import os
import uuid

import pytest

from cachedloader import CachedBatchLoader


def _redis_url() -> str | None:
    return os.getenv("CACHEDLOADER_TEST_REDIS_URL")


@pytest.mark.skipif(_redis_url() is None, reason="CACHEDLOADER_TEST_REDIS_URL is not set")
@pytest.mark.asyncio
async def test_loader_with_real_redis_respects_ttl_and_clear():
    redis = pytest.importorskip("redis.asyncio")
    client = redis.Redis.from_url(_redis_url())
    calls: list[list[str]] = []

    async def fetch(keys):
        calls.append(list(keys))
        return [f"Redis value for {key}" for key in keys]

    loader = CachedBatchLoader(
        fetch,
        ttl_ms=100,
        store="redis",
        store_options={
            "redis_client": client,
            "namespace": f"itest:cache:{uuid.uuid4().hex}",
        },
    )

    assert await loader.load("expiring") == "Redis value for expiring"
    assert await loader.load("expiring") == "Redis value for expiring"
    assert len(calls) == 1

    await asyncio.sleep(0.15)
    await loader.load("expiring")
    assert len(calls) == 2

    await loader.clear("expiring")
    await loader.load("expiring")
    assert len(calls) == 3

    await loader.load_many(["a", "b"])
    await loader.clear_all()
    await loader.load_many(["a", "b"])
    assert calls[-1] == ["a", "b"]
    assert len(calls) == 5

    await client.aclose()


@pytest.mark.skipif(_redis_url() is None, reason="CACHEDLOADER_TEST_REDIS_URL is not set")
@pytest.mark.asyncio
async def test_force_update_with_clear_and_prime_on_real_redis():
    redis = pytest.importorskip("redis.asyncio")
    client = redis.Redis.from_url(_redis_url())

    async def fetch(keys):
        return [f"Redis value for {key}" for key in keys]

    loader = CachedBatchLoader(
        fetch,
        ttl_ms=1000,
        store="redis",
        store_options={
            "redis_client": client,
            "namespace": f"itest:cache:{uuid.uuid4().hex}",
        },
    )

    await loader.load("redis-prime-2")
    await (await loader.clear("redis-prime-2")).prime("redis-prime-2", "Updated")
    assert await loader.load("redis-prime-2") == "Updated"

    await loader.clear_all()
    await client.aclose()

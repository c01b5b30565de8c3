from __future__ import annotations

import asyncio

import pytest

from cachedloader import BatchOptions, CachedBatchLoader, InMemoryCacheStore, LoaderSettings
from cachedloader.stores import RedisCacheStore

_ENV_NAMES = (
    "CACHEDLOADER_STORE_BACKEND",
    "CACHEDLOADER_NAMESPACE",
    "CACHEDLOADER_TTL_MS",
    "CACHEDLOADER_REDIS_URL",
    "CACHEDLOADER_MAX_BATCH_SIZE",
    "CACHEDLOADER_BATCH_DELAY_S",
)


async def _fetch(keys):
    return list(keys)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_settings_defaults(clean_env):
    settings = LoaderSettings.from_env()
    assert settings == LoaderSettings()
    assert settings.batch_options() == BatchOptions()


def test_settings_read_environment(clean_env):
    clean_env.setenv("CACHEDLOADER_STORE_BACKEND", " Redis ")
    clean_env.setenv("CACHEDLOADER_NAMESPACE", "users")
    clean_env.setenv("CACHEDLOADER_TTL_MS", "1500")
    clean_env.setenv("CACHEDLOADER_REDIS_URL", "redis://cache:6379/2")
    clean_env.setenv("CACHEDLOADER_MAX_BATCH_SIZE", "50")
    clean_env.setenv("CACHEDLOADER_BATCH_DELAY_S", "0.005")

    settings = LoaderSettings.from_env()

    assert settings.store_backend == "redis"
    assert settings.namespace == "users"
    assert settings.ttl_ms == 1500
    assert settings.redis_url == "redis://cache:6379/2"
    assert settings.batch_options() == BatchOptions(max_batch_size=50, batch_delay_s=0.005)


def test_settings_reject_bad_numbers(clean_env):
    clean_env.setenv("CACHEDLOADER_TTL_MS", "soon")
    with pytest.raises(ValueError, match="CACHEDLOADER_TTL_MS"):
        LoaderSettings.from_env()


def test_from_settings_builds_in_memory_loader():
    settings = LoaderSettings(namespace="users", ttl_ms=2000, max_batch_size=10)
    loader = CachedBatchLoader.from_settings(_fetch, settings)

    assert isinstance(loader.store, InMemoryCacheStore)
    assert loader.ttl_ms == 2000
    assert loader._coalescer.options.max_batch_size == 10  # noqa: SLF001

    async def scenario() -> None:
        assert await loader.load_many(["a", "b"]) == ["a", "b"]

    asyncio.run(scenario())


def test_from_settings_uses_injected_redis_client():
    injected = object()
    settings = LoaderSettings(store_backend="redis", namespace="users")
    loader = CachedBatchLoader.from_settings(_fetch, settings, redis_client=injected)

    assert isinstance(loader.store, RedisCacheStore)
    assert loader.store._redis is injected  # noqa: SLF001
    assert loader.store.namespace == "users"

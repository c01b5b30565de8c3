from __future__ import annotations

import pytest

from cachedloader import (
    CacheStoreError,
    InMemoryCacheStore,
    create_cache_store,
    create_cache_store_from_env,
)
from cachedloader.stores import RedisCacheStore


def test_create_cache_store_defaults_to_in_memory():
    store = create_cache_store()
    assert isinstance(store, InMemoryCacheStore)


@pytest.mark.parametrize("backend", ["memory", "InMemory", " in_memory "])
def test_create_cache_store_accepts_in_memory_aliases(backend):
    assert isinstance(create_cache_store(backend), InMemoryCacheStore)


def test_create_cache_store_returns_instances_unchanged():
    store = InMemoryCacheStore()
    assert create_cache_store(store) is store
    with pytest.raises(CacheStoreError, match="store instance"):
        create_cache_store(store, namespace="other")


def test_create_cache_store_redis_with_injected_client():
    injected = object()
    store = create_cache_store("redis", redis_client=injected, namespace="tests")

    assert isinstance(store, RedisCacheStore)
    assert store._redis is injected  # noqa: SLF001
    assert store.namespace == "tests"


def test_create_cache_store_unknown_backend_raises():
    with pytest.raises(CacheStoreError, match="Unknown cache store backend"):
        create_cache_store("memcached")


def test_store_factory_from_env_defaults_to_in_memory(monkeypatch):
    monkeypatch.delenv("CACHEDLOADER_STORE_BACKEND", raising=False)
    monkeypatch.setenv("CACHEDLOADER_NAMESPACE", "envspace")

    store = create_cache_store_from_env()

    assert isinstance(store, InMemoryCacheStore)
    assert not hasattr(store, "namespace")


def test_store_factory_from_env_redis_with_injected_client(monkeypatch):
    monkeypatch.setenv("CACHEDLOADER_STORE_BACKEND", "redis")
    monkeypatch.setenv("CACHEDLOADER_NAMESPACE", "tests:cache")
    injected = object()

    store = create_cache_store_from_env(redis_client=injected)

    assert isinstance(store, RedisCacheStore)
    assert store._redis is injected  # noqa: SLF001
    assert store.namespace == "tests:cache"


def test_store_factory_from_env_invalid_backend_raises(monkeypatch):
    monkeypatch.setenv("CACHEDLOADER_STORE_BACKEND", "bad-backend")
    with pytest.raises(CacheStoreError, match="bad-backend"):
        create_cache_store_from_env()

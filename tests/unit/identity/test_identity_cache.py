#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import pytest
from aws_service_core.identity import MemoryIdentityCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryIdentityCache:
    return MemoryIdentityCache(clock=clock)


def test_get_missing_key(cache: MemoryIdentityCache):
    assert cache.get("missing") is None


def test_set_and_get(cache: MemoryIdentityCache):
    cache.set("key", "value", 10)
    assert cache.get("key") == "value"


def test_set_overwrites(cache: MemoryIdentityCache):
    cache.set("key", "first", 10)
    cache.set("key", "second", 10)
    assert cache.get("key") == "second"


def test_entry_expires(cache: MemoryIdentityCache, clock: FakeClock):
    cache.set("key", "value", 10)
    clock.now = 9.5
    assert cache.get("key") == "value"
    clock.now = 10
    assert cache.get("key") is None


def test_expired_entry_stays_gone(cache: MemoryIdentityCache, clock: FakeClock):
    cache.set("key", "value", 1)
    clock.now = 5
    assert cache.get("key") is None
    clock.now = 0
    assert cache.get("key") is None


def test_delete(cache: MemoryIdentityCache):
    cache.set("key", "value", 10)
    cache.delete("key")
    cache.delete("missing")
    assert cache.get("key") is None


def test_keys_are_independent(cache: MemoryIdentityCache, clock: FakeClock):
    cache.set("short", "a", 1)
    cache.set("long", "b", 100)
    clock.now = 50
    assert cache.get("short") is None
    assert cache.get("long") == "b"


@pytest.mark.parametrize("ttl", [0, -1])
def test_non_positive_ttl_rejected(cache: MemoryIdentityCache, ttl: float):
    with pytest.raises(ValueError):
        cache.set("key", "value", ttl)

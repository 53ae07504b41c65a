import pytest

from aa_sdk.cache import LRUCache, account_cache_key
from aa_sdk.core.errors import PreconditionViolation


def test_get_missing_key():
    cache = LRUCache(2)

    assert cache.get("missing") == (None, False)


def test_set_and_get():
    cache = LRUCache(2)

    assert cache.set("a", 1) is False
    assert cache.get("a") == (1, True)
    assert cache.size() == 1


def test_evicts_least_recently_used():
    cache = LRUCache(2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")

    assert cache.set("c", 3) is True
    assert cache.get("b") == (None, False)
    assert cache.get("a") == (1, True)
    assert cache.get("c") == (3, True)


def test_update_does_not_evict():
    cache = LRUCache(1)
    cache.set("a", 1)

    assert cache.set("a", 2) is False
    assert cache.get("a") == (2, True)


def test_clear():
    cache = LRUCache(2)
    cache.set("a", 1)
    cache.clear()

    assert cache.size() == 0


def test_rejects_non_positive_size():
    with pytest.raises(PreconditionViolation):
        LRUCache(0)


def test_account_cache_key_is_case_insensitive():
    assert account_cache_key("0xABCD", 1) == account_cache_key("0xabcd", 1) == "0xabcd-1"

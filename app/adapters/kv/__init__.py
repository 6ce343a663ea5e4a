"""Key-value store adapters.

Quota counters, shared results and cached insights all live in a remote
key-value store. Services depend on the abstract interface only, so tests
run against the in-memory implementation with a fake clock.
"""

from app.adapters.kv.base import AbstractKeyValueStore
from app.adapters.kv.factory import create_kv_store, get_kv_store, reset_kv_store
from app.adapters.kv.in_memory import InMemoryKeyValueStore
from app.adapters.kv.upstash import UpstashRestStore

__all__ = [
    "AbstractKeyValueStore",
    "InMemoryKeyValueStore",
    "UpstashRestStore",
    "create_kv_store",
    "get_kv_store",
    "reset_kv_store",
]

"""Record cache and build-scoped cache key generation."""

from indexsync.cache.keys import PrefixedKeyGenerator, get_key_prefix, init_key_prefix
from indexsync.cache.manager import CacheManager

__all__ = ["CacheManager", "PrefixedKeyGenerator", "get_key_prefix", "init_key_prefix"]

from .cache import CacheEntry, TTLCache
from .registry import CacheRegistry

__all__ = [
    "CacheEntry",
    "CacheRegistry",
    "TTLCache",
]

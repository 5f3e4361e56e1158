"""
Test-friendly helpers for caching.

Settings lookups and live-site detection are computed once per process, but
tests change settings all the time, so every cached function registered here
can be cleared in one call.
"""
import functools

# Every function wrapped by our lru_cache decorator.
_lru_cached_fns = []


def lru_cache(*args, **kwargs):
    """
    Thin wrapper over functools.lru_cache that lets us clear all caches later.
    """
    def decorator(fn):
        wrapped_fn = functools.lru_cache(*args, **kwargs)(fn)
        _lru_cached_fns.append(wrapped_fn)
        return wrapped_fn
    return decorator


def clear_lru_caches():
    """
    Clear all LRU caches that use our lru_cache decorator.

    Called when the relevant Django settings change, and between tests.
    """
    for fn in _lru_cached_fns:
        fn.cache_clear()

"""
Caching for branches, which nearly every screen loads (dropdowns, headers,
report filters) and which change rarely.
"""
from django.core.cache import cache
import logging

logger = logging.getLogger('backoffice.core')

# Cache key prefixes
BRANCH_KEY_PREFIX = 'branch:'
BRANCH_LIST_KEY_PREFIX = 'branch_list:'

# Cache TTL (Time To Live) in seconds
BRANCH_CACHE_TTL = 900  # 15 minutes
BRANCH_LIST_CACHE_TTL = 600  # 10 minutes


def get_branch_cache_key(branch_id: int) -> str:
    """Get cache key for branch by ID"""
    return f"{BRANCH_KEY_PREFIX}{branch_id}"


def get_branch_list_cache_key(scope: str = 'all') -> str:
    """Get cache key for a branch list ('all', 'public' or a single branch scope)"""
    return f"{BRANCH_LIST_KEY_PREFIX}{scope}"


def cache_branch_data(branch_data: dict, ttl: int = None):
    """Cache serialized branch data for fast retrieval"""
    if not branch_data:
        return
    cache.set(get_branch_cache_key(branch_data['id']), branch_data, ttl or BRANCH_CACHE_TTL)
    logger.debug(f"Cached branch data: {branch_data.get('name')} (ID: {branch_data['id']})")


def get_cached_branch(branch_id: int):
    """Get cached branch data by ID"""
    cached_data = cache.get(get_branch_cache_key(branch_id))
    if cached_data:
        logger.debug(f"Cache hit for branch: {branch_id}")
    return cached_data


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.

    django-redis exposes ``delete_pattern``; the local-memory backend used in
    development has no key scan, so it is cleared outright.
    """
    if hasattr(cache, 'delete_pattern'):
        deleted = cache.delete_pattern(f"*{pattern}*")
        logger.info(f"Cache invalidation requested for pattern: {pattern} - Deleted {deleted} keys")
    else:
        cache.clear()
        logger.info(f"Cache invalidation requested for pattern: {pattern} - Local cache cleared")


def invalidate_branch_cache(branch_obj):
    """Invalidate all cache entries for a branch"""
    if not branch_obj:
        return
    cache.delete(get_branch_cache_key(branch_obj.id))
    invalidate_cache_pattern(BRANCH_LIST_KEY_PREFIX)
    logger.debug(f"Invalidated cache for branch: {branch_obj.name} (ID: {branch_obj.id})")

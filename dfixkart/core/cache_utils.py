"""
Caching utilities for public catalog reads
Uses Redis (django-redis) for caching query results
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
PRODUCT_DETAIL_CACHE_TTL = 300  # 5 minutes
CATEGORIES_CACHE_TTL = 600  # 10 minutes
FLASH_SALES_CACHE_TTL = 60  # running sales change by the minute

PRODUCTS_LIST_PREFIX = "products_list"
PRODUCT_DETAIL_PREFIX = "product_detail"
CATEGORIES_PREFIX = "categories"
FLASH_SALES_PREFIX = "flash_sales"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries
    cache_ttl may be a callable returning the TTL at cache time

    Usage:
        @cached_query(cache_ttl=600, key_prefix="categories")
        def get_category_tree():
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(key_prefix, *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            ttl = cache_ttl() if callable(cache_ttl) else cache_ttl
            cache.set(cache_key, result, ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Requires Redis SCAN; other backends are cleared entirely
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")
    except NotImplementedError:
        # Local-memory cache (tests, development) has no key scan
        cache.clear()
        logger.debug(f"Cleared local cache for pattern: {pattern}")
        return

    try:
        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_cached_products_list(filters_dict):
    """
    Get cached products list with filters
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(PRODUCTS_LIST_PREFIX, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_products_list(cache_key, data, ttl=PRODUCTS_LIST_CACHE_TTL):
    """Cache products list data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached products list: {cache_key}")


def get_cached_product_detail(slug):
    cache_key = make_cache_key(PRODUCT_DETAIL_PREFIX, slug)
    return cache.get(cache_key), cache_key


def cache_product_detail(cache_key, data, ttl=PRODUCT_DETAIL_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached product detail: {cache_key}")


def invalidate_products_cache():
    """Invalidate list and detail caches for products"""
    invalidate_cache_pattern(PRODUCTS_LIST_PREFIX)
    invalidate_cache_pattern(PRODUCT_DETAIL_PREFIX)
    logger.info("Invalidated products cache")


def invalidate_categories_cache():
    invalidate_cache_pattern(CATEGORIES_PREFIX)
    logger.info("Invalidated categories cache")


def invalidate_flash_sales_cache():
    invalidate_cache_pattern(FLASH_SALES_PREFIX)
    logger.info("Invalidated flash sales cache")

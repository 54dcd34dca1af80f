"""
Cache invalidation signals
Automatically invalidate cache when catalog data changes
"""
from django.db import transaction
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .cache_utils import (
    invalidate_products_cache, invalidate_categories_cache, invalidate_flash_sales_cache,
)

logger = logging.getLogger(__name__)

PRODUCT_MODELS = {'Product', 'ProductVariant', 'PricingSlab', 'MOQSetting', 'Brand'}
CATEGORY_MODELS = {'Category'}
FLASH_SALE_MODELS = {'FlashSale', 'FlashSaleProduct'}


def _invalidate_now_and_after_commit(invalidate):
    # Clear immediately, then again once the surrounding transaction commits
    # so a read racing the write cannot leave stale rows cached
    try:
        invalidate()
        transaction.on_commit(invalidate)
    except Exception as e:
        logger.warning(f"Error invalidating cache: {e}")


@receiver([post_save, post_delete])
def invalidate_catalog_cache(sender, instance, **kwargs):
    """Invalidate public catalog caches when catalog rows change"""
    model_name = sender.__name__
    app_label = sender._meta.app_label
    if app_label not in ('catalog', 'pricing'):
        return

    if model_name in PRODUCT_MODELS:
        _invalidate_now_and_after_commit(invalidate_products_cache)
    elif model_name in CATEGORY_MODELS:
        _invalidate_now_and_after_commit(invalidate_categories_cache)
        _invalidate_now_and_after_commit(invalidate_products_cache)
    elif model_name in FLASH_SALE_MODELS:
        # Flash sale prices are embedded in product payloads
        _invalidate_now_and_after_commit(invalidate_flash_sales_cache)
        _invalidate_now_and_after_commit(invalidate_products_cache)

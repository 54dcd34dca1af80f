"""Stock movements for product variants"""
import logging

from django.db import transaction
from rest_framework import status

from dfixkart.catalog.models import ProductVariant
from dfixkart.core.exceptions import ApiError
from .models import InventoryLog

logger = logging.getLogger(__name__)


def adjust_stock(variant, delta, reason, user=None, notes='', reference=''):
    """
    Change a variant's stock by delta and record the movement.

    The variant row is locked for the duration of the surrounding
    transaction. Stock never goes below zero.

    Returns the InventoryLog entry.
    """
    with transaction.atomic():
        locked = ProductVariant.objects.select_for_update().get(pk=variant.pk)
        previous = locked.quantity
        new_quantity = previous + delta
        if new_quantity < 0:
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'Not enough stock available')

        locked.quantity = new_quantity
        locked.save(update_fields=['quantity', 'updated_at'])
        variant.quantity = new_quantity

        log = InventoryLog.objects.create(
            variant=locked,
            quantity_change=delta,
            reason=reason,
            previous_quantity=previous,
            new_quantity=new_quantity,
            notes=notes or '',
            reference=reference or '',
            created_by=user if user is not None and user.is_authenticated else None,
        )

    logger.info(f"Stock {locked.sku}: {previous} -> {new_quantity} ({reason})")
    return log


def low_stock_variants(threshold):
    """Active variants at or below threshold, lowest stock first"""
    return ProductVariant.objects.filter(
        is_active=True,
        product__is_active=True,
        quantity__lte=threshold,
    ).select_related('product').order_by('quantity', 'id')

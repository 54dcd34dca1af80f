"""
Checkout and order lifecycle.

Status changes that move stock (cancellation, restock) run inside a
transaction with the variant rows locked by adjust_stock.
"""
import logging
import random
import time

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework import status

from dfixkart.accounts.models import Address
from dfixkart.cart.services import (
    cart_items_for, price_cart_items, coupon_lines, check_purchase_quantity, shipping_for,
)
from dfixkart.core.cache_utils import invalidate_flash_sales_cache, invalidate_products_cache
from dfixkart.core.exceptions import ApiError
from dfixkart.inventory.models import InventoryLog
from dfixkart.inventory.services import adjust_stock
from dfixkart.pricing.models import Coupon, FlashSale, FlashSaleProduct, UserCoupon
from dfixkart.pricing.services import get_valid_coupon, compute_coupon_discount, quantize_money
from .models import Order, OrderItem, PaymentSettings, Tracking

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    Order.STATUS_PENDING: [Order.STATUS_PROCESSING, Order.STATUS_PAID, Order.STATUS_CANCELLED],
    Order.STATUS_PROCESSING: [Order.STATUS_PAID, Order.STATUS_CANCELLED, Order.STATUS_SHIPPED],
    Order.STATUS_PAID: [Order.STATUS_PROCESSING, Order.STATUS_SHIPPED, Order.STATUS_CANCELLED, Order.STATUS_REFUNDED],
    Order.STATUS_SHIPPED: [Order.STATUS_DELIVERED, Order.STATUS_CANCELLED, Order.STATUS_PROCESSING],
    Order.STATUS_DELIVERED: [Order.STATUS_REFUNDED],
    Order.STATUS_CANCELLED: [Order.STATUS_REFUNDED],
    Order.STATUS_REFUNDED: [],
}


def generate_order_number():
    """ORD-<epoch milliseconds>-<3 random digits>, unique"""
    while True:
        number = f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"
        if not Order.objects.filter(order_number=number).exists():
            return number


def can_transition(current, new):
    return new in ALLOWED_TRANSITIONS.get(current, [])


def _active_user_coupon(user):
    return UserCoupon.objects.filter(user=user, is_active=True).select_related('coupon').order_by('-created_at').first()


def checkout(user, shipping_address_id, notes=''):
    """
    Place a cash-on-delivery order from the user's cart.

    The cart is repriced the same way GET /cart/ prices it. Stock is taken,
    flash sale counters are bumped, the cart is emptied and the applied
    coupon is consumed, all in one transaction. The referral reward runs
    after commit and never fails the checkout.
    """
    if not shipping_address_id:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Shipping address is required')
    address = Address.objects.filter(pk=shipping_address_id, user=user).first()
    if address is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Shipping address not found')

    payment_settings = PaymentSettings.load()
    if not payment_settings.cash_enabled:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Cash on Delivery is not enabled')

    with transaction.atomic():
        items = list(cart_items_for(user))
        # Lock the flash sales in play so concurrent checkouts share their allowance
        product_ids = {item.variant.product_id for item in items}
        list(FlashSale.objects.select_for_update().filter(
            pk__in=FlashSaleProduct.objects.filter(product_id__in=product_ids).values('flash_sale_id')
        ))
        lines = price_cart_items(items)
        if not lines:
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'Your cart is empty')

        for line in lines:
            variant = line['variant']
            if not variant.is_active or not line['product'].is_active:
                raise ApiError(status.HTTP_400_BAD_REQUEST, f'{line["product"].name} is no longer available')
            check_purchase_quantity(variant, line['quantity'])

        sub_total = quantize_money(sum(line['line_total'] for line in lines))
        shipping_cost, _, _ = shipping_for(sub_total)

        coupon = None
        discount = quantize_money(0)
        user_coupon = _active_user_coupon(user)
        if user_coupon is not None:
            coupon = get_valid_coupon(user_coupon.coupon.code)
            discount, _ = compute_coupon_discount(coupon, coupon_lines(lines))

        cod_charge = payment_settings.cod_charge or quantize_money(0)
        total = quantize_money(max(sub_total - discount, 0) + shipping_cost + cod_charge)

        order = Order.objects.create(
            order_number=generate_order_number(),
            user=user,
            shipping_address=address,
            shipping_address_snapshot=address.as_snapshot(),
            status=Order.STATUS_PENDING,
            payment_method=Order.PAYMENT_CASH,
            sub_total=sub_total,
            shipping_cost=shipping_cost,
            cod_charge=cod_charge,
            discount=discount,
            total=total,
            coupon=coupon,
            coupon_code=coupon.code if coupon else '',
            notes=notes or '',
        )

        flash_sale_sold = False
        for line in lines:
            variant = line['variant']
            flash_units = line['flash_sale_units']
            # Units past the flash sale allowance become a separate item at the base price
            parts = []
            if flash_units:
                parts.append((flash_units, line['unit_price'], line['price_source'], line['flash_sale']))
            if line['quantity'] > flash_units:
                parts.append((line['quantity'] - flash_units, line['base_price'],
                              line['base_price_source'], None))
            for quantity, price, price_source, flash_sale in parts:
                OrderItem.objects.create(
                    order=order,
                    product=line['product'],
                    variant=variant,
                    product_name=line['product'].name,
                    variant_name=variant.name,
                    sku=variant.sku,
                    price=price,
                    quantity=quantity,
                    subtotal=quantize_money(price * quantity),
                    price_source=price_source,
                    flash_sale=flash_sale,
                    flash_sale_discount=flash_sale.discount_percentage if flash_sale else None,
                )
            adjust_stock(variant, -line['quantity'], InventoryLog.REASON_SALE, user=user,
                         notes=f'Order {order.order_number}', reference=order.order_number)
            if line['flash_sale'] is not None:
                FlashSale.objects.filter(pk=line['flash_sale'].pk).update(sold_count=F('sold_count') + flash_units)
                flash_sale_sold = True

        user.cart_items.all().delete()

        if user_coupon is not None:
            user_coupon.is_active = False
            user_coupon.save(update_fields=['is_active'])
            Coupon.objects.filter(pk=coupon.pk).update(used_count=F('used_count') + 1)

        if flash_sale_sold:
            transaction.on_commit(invalidate_flash_sales_cache)
            transaction.on_commit(invalidate_products_cache)
        transaction.on_commit(lambda: _reward_referral(user, order))

    logger.info(f"Order placed: {order.order_number} user={user.id} total={order.total}")
    return order


def _reward_referral(user, order):
    from dfixkart.referrals.services import process_referral_reward

    try:
        process_referral_reward(user, order)
    except Exception as e:
        # A referral problem must not undo a placed order
        logger.error(f"Referral reward failed for order {order.order_number}: {str(e)}")


def restock_order(order, user=None):
    """Return every item of the order to stock"""
    for item in order.items.select_related('variant'):
        adjust_stock(item.variant, item.quantity, InventoryLog.REASON_CANCELLATION, user=user,
                     notes=f'Order {order.order_number} cancelled', reference=order.order_number)


def cancel_order_by_user(order, reason, user):
    if not order.is_cancellable:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'This order cannot be cancelled')

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        if not order.is_cancellable:
            raise ApiError(status.HTTP_400_BAD_REQUEST, 'This order cannot be cancelled')
        order.status = Order.STATUS_CANCELLED
        order.cancel_reason = reason or ''
        order.cancelled_at = timezone.now()
        order.cancelled_by = Order.CANCELLED_BY_USER
        order.save()
        restock_order(order, user=user)

    logger.info(f"Order cancelled by user: {order.order_number}")
    return order


def update_order_status(order, new_status, user=None, note='', tracking_number='', carrier='', cancel_reason=''):
    """
    Move an order along ALLOWED_TRANSITIONS.

    CANCELLED restocks the items, SHIPPED records tracking and DELIVERED
    stamps delivered_at. A note is appended to the order notes.
    """
    valid_statuses = [choice[0] for choice in Order.STATUS_CHOICES]
    if new_status not in valid_statuses:
        raise ApiError(status.HTTP_400_BAD_REQUEST, f'Invalid status. Must be one of: {", ".join(valid_statuses)}')

    with transaction.atomic():
        order = Order.objects.select_for_update().get(pk=order.pk)
        old_status = order.status
        if not can_transition(old_status, new_status):
            raise ApiError(status.HTTP_400_BAD_REQUEST, f'Cannot transition from {old_status} to {new_status}')

        order.status = new_status
        now = timezone.now()

        if new_status == Order.STATUS_CANCELLED:
            order.cancelled_at = now
            order.cancelled_by = Order.CANCELLED_BY_ADMIN
            order.cancel_reason = cancel_reason or note or order.cancel_reason
            restock_order(order, user=user)
        elif new_status == Order.STATUS_DELIVERED:
            order.delivered_at = now

        if note:
            order.notes = f"{order.notes}\n{note}" if order.notes else note
        order.save()

        if new_status == Order.STATUS_SHIPPED:
            tracking, _ = Tracking.objects.get_or_create(order=order)
            if tracking_number:
                tracking.tracking_number = tracking_number
            if carrier:
                tracking.carrier = carrier
            tracking.status = new_status
            tracking.updates = list(tracking.updates or []) + [{
                'status': new_status,
                'note': note,
                'timestamp': now.isoformat(),
            }]
            tracking.save()
        elif new_status == Order.STATUS_DELIVERED and hasattr(order, 'tracking'):
            tracking = order.tracking
            tracking.status = new_status
            tracking.updates = list(tracking.updates or []) + [{
                'status': new_status,
                'note': note,
                'timestamp': now.isoformat(),
            }]
            tracking.save()

    logger.info(f"Order {order.order_number}: {old_status} -> {new_status}")
    return order, old_status

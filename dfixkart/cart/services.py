"""
Cart pricing shared by the cart endpoints, coupon checks and checkout.

Every read reprices the lines from the catalog so the cart never shows
a stale price.
"""
import logging
from decimal import Decimal

from django.db.models import Prefetch
from rest_framework import status

from dfixkart.catalog.models import PricingSlab
from dfixkart.core.exceptions import ApiError
from dfixkart.orders.models import ShippingSettings
from dfixkart.pricing.services import (
    unit_price_for, flash_sale_price, flash_sales_for_products, effective_moq,
    quantize_money, PRICE_SOURCE_FLASH_SALE,
)
from .models import CartItem

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def cart_items_for(user):
    return CartItem.objects.filter(user=user).select_related(
        'variant', 'variant__product', 'variant__product__category', 'variant__product__brand'
    ).prefetch_related(
        Prefetch('variant__pricing_slabs', queryset=PricingSlab.objects.order_by('-min_qty')),
        Prefetch('variant__product__pricing_slabs', queryset=PricingSlab.objects.order_by('-min_qty')),
    )


def price_cart_items(items):
    """
    Resolve the unit price of each cart line.

    A flash sale with a max_quantity prices only the units it has left;
    lines of the same sale share that allowance in cart order and the
    remaining units are charged the base price.

    Returns a list of dicts with item, variant, product, quantity, unit_price,
    base_price and base_price_source (before any flash sale), price_source, flash_sale,
    flash_sale_discount, flash_sale_units and line_total.
    """
    items = list(items)
    flash_sales = flash_sales_for_products({item.variant.product_id for item in items})
    units_left = {}

    lines = []
    for item in items:
        variant = item.variant
        base_price, base_source, _ = unit_price_for(variant, item.quantity)
        source = base_source
        flash_sale = flash_sales.get(variant.product_id)
        unit_price = base_price
        flash_units = 0

        if flash_sale is not None:
            left = units_left.setdefault(flash_sale.pk, flash_sale.units_left)
            flash_units = item.quantity if left is None else min(item.quantity, left)
            if left is not None:
                units_left[flash_sale.pk] = left - flash_units
            if flash_units:
                unit_price = flash_sale_price(base_price, flash_sale.discount_percentage)
                source = PRICE_SOURCE_FLASH_SALE
            else:
                flash_sale = None

        line_total = unit_price * flash_units + base_price * (item.quantity - flash_units)
        lines.append({
            'item': item,
            'variant': variant,
            'product': variant.product,
            'quantity': item.quantity,
            'unit_price': unit_price,
            'base_price': base_price,
            'price_source': source,
            'base_price_source': base_source,
            'flash_sale': flash_sale,
            'flash_sale_discount': flash_sale.discount_percentage if flash_sale else None,
            'flash_sale_units': flash_units,
            'line_total': quantize_money(line_total),
        })
    return lines


def coupon_lines(lines):
    """(product, line_total) pairs for compute_coupon_discount"""
    return [(line['product'], line['line_total']) for line in lines]


def check_purchase_quantity(variant, quantity):
    """Stock and minimum order quantity checks for buying quantity units"""
    if quantity > variant.quantity:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Not enough stock available')
    moq = effective_moq(variant)
    if quantity < moq:
        raise ApiError(status.HTTP_400_BAD_REQUEST, f'Minimum order quantity is {moq} units')
    return moq


def shipping_for(subtotal):
    """
    Shipping charge for a cart subtotal.

    Returns (shipping_total, free_shipping_threshold, shipping_message)
    """
    settings_obj = ShippingSettings.load()
    charge = settings_obj.shipping_charge or ZERO
    if charge <= ZERO:
        return ZERO, ZERO, 'Free Shipping'

    threshold = settings_obj.free_shipping_threshold or ZERO
    if threshold > ZERO:
        if subtotal >= threshold:
            return ZERO, threshold, 'Eligible for Free Shipping'
        return charge, threshold, 'Add more for free shipping'
    return charge, ZERO, ''


def serialize_cart_line(line):
    variant = line['variant']
    product = line['product']
    flash_sale = line['flash_sale']
    return {
        'id': line['item'].id,
        'quantity': line['quantity'],
        'unit_price': line['unit_price'],
        'original_price': variant.current_price,
        'subtotal': line['line_total'],
        'price_source': line['price_source'],
        'moq': effective_moq(variant),
        'in_stock': variant.quantity >= line['quantity'],
        'available_quantity': variant.quantity,
        'flash_sale': {
            'id': flash_sale.id,
            'name': flash_sale.name,
            'discount_percentage': flash_sale.discount_percentage,
            'end_time': flash_sale.end_time,
            'original_price': line['base_price'],
            'units': line['flash_sale_units'],
        } if flash_sale else None,
        'variant': {
            'id': variant.id,
            'sku': variant.sku,
            'name': variant.name,
            'attributes': variant.attributes,
            'image': variant.image or None,
        },
        'product': {
            'id': product.id,
            'name': product.name,
            'slug': product.slug,
            'image': variant.image or product.image or None,
            'brand': {'id': product.brand.id, 'name': product.brand.name} if product.brand_id else None,
        },
    }


def build_cart(user):
    """The cart payload returned by GET /cart/"""
    lines = price_cart_items(cart_items_for(user))
    subtotal = quantize_money(sum((line['line_total'] for line in lines), ZERO))

    if lines:
        shipping_total, threshold, message = shipping_for(subtotal)
    else:
        shipping_total, threshold, message = ZERO, ZERO, ''

    return {
        'items': [serialize_cart_line(line) for line in lines],
        'subtotal': subtotal,
        'shipping_total': shipping_total,
        'free_shipping_threshold': threshold,
        'shipping_message': message,
        'grand_total': quantize_money(subtotal + shipping_total),
        'item_count': len(lines),
        'total_quantity': sum(line['quantity'] for line in lines),
    }

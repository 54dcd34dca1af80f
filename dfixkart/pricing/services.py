"""
Price resolution for product cards, cart lines and checkout.

Card prices: a running flash sale beats a valid sale price, which beats the
regular price. Cart and checkout unit prices start from the matching quantity
slab (variant slabs before product slabs), then the sale price, then the
regular price; a running flash sale discounts whichever of those applies.
"""
from decimal import Decimal, ROUND_HALF_UP
import logging

from django.db.models import F, Min, Q
from django.utils import timezone
from rest_framework import status

from dfixkart.catalog.models import MOQSetting
from dfixkart.core.exceptions import ApiError
from .models import Coupon, FlashSale, FlashSaleProduct

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0')
MAX_COUPON_PERCENT = Decimal('90')

PRICE_SOURCE_SLAB = 'SLAB'
PRICE_SOURCE_SALE = 'SALE'
PRICE_SOURCE_REGULAR = 'REGULAR'
PRICE_SOURCE_FLASH_SALE = 'FLASH_SALE'


def to_decimal(value):
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value):
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_discount_percentage(regular_price, sale_price):
    """Whole-number percentage saved by sale_price, 0 when there is no saving"""
    regular = to_decimal(regular_price)
    sale = to_decimal(sale_price)
    if regular is None or sale is None or regular <= ZERO or sale <= ZERO or regular <= sale:
        return 0
    return int(((regular - sale) / regular * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def flash_sale_price(price, discount_percentage):
    price = to_decimal(price)
    discounted = price - (price * to_decimal(discount_percentage) / 100)
    return max(quantize_money(discounted), ZERO)


# ==================== FLASH SALES ====================

def running_flash_sales(now=None):
    """Active sales inside their time window that still have units left"""
    now = now or timezone.now()
    return FlashSale.objects.filter(
        is_active=True,
        start_time__lte=now,
        end_time__gte=now,
    ).filter(
        Q(max_quantity__isnull=True) | Q(max_quantity=0) | Q(sold_count__lt=F('max_quantity'))
    )


def flash_sales_for_products(product_ids, now=None):
    """Map product id -> the running flash sale with the highest discount"""
    product_ids = list(product_ids)
    if not product_ids:
        return {}
    entries = FlashSaleProduct.objects.filter(
        product_id__in=product_ids,
        flash_sale__in=running_flash_sales(now),
    ).select_related('flash_sale').order_by('-flash_sale__discount_percentage', 'flash_sale__end_time')

    sales = {}
    for entry in entries:
        sales.setdefault(entry.product_id, entry.flash_sale)
    return sales


def active_flash_sale_for(product, now=None):
    return flash_sales_for_products([product.id], now).get(product.id)


def flash_sale_cache_ttl(default_ttl, now=None):
    """
    Seconds a payload carrying resolved flash sale prices may stay cached.

    Capped at the next moment an active sale starts or ends, since neither
    writes a row that would invalidate the cache. 0 means do not cache.
    """
    now = now or timezone.now()
    boundaries = FlashSale.objects.filter(is_active=True).aggregate(
        next_start=Min('start_time', filter=Q(start_time__gt=now)),
        next_end=Min('end_time', filter=Q(end_time__gte=now)),
    )
    ttl = default_ttl
    for boundary in boundaries.values():
        if boundary is not None:
            ttl = min(ttl, int((boundary - now).total_seconds()))
    return max(ttl, 0)


def build_flash_sale_info(flash_sale, base_price):
    """Flash sale block embedded in product payloads, None when no sale runs"""
    if flash_sale is None or base_price is None:
        return None
    return {
        'id': flash_sale.id,
        'name': flash_sale.name,
        'is_active': True,
        'discount_percentage': flash_sale.discount_percentage,
        'flash_sale_price': flash_sale_price(base_price, flash_sale.discount_percentage),
        'end_time': flash_sale.end_time,
    }


# ==================== CARD PRICES ====================

def resolve_display_price(price, sale_price=None, flash_sale=None):
    """
    Resolve the numbers shown on a product card.

    Args:
        price: regular price
        sale_price: optional sale price, used only when 0 < sale_price < price
        flash_sale: optional flash sale block (see build_flash_sale_info)

    Returns:
        dict with price, original_price (None when nothing is struck through),
        discount_percentage and flash_sale_active
    """
    regular = to_decimal(price) or ZERO
    sale = to_decimal(sale_price)
    has_sale = sale is not None and ZERO < sale < regular
    current = sale if has_sale else regular

    if flash_sale is not None and flash_sale.get('is_active') is True:
        return {
            'price': max(to_decimal(flash_sale['flash_sale_price']), ZERO),
            'original_price': current,
            'discount_percentage': flash_sale['discount_percentage'],
            'flash_sale_active': True,
        }

    if has_sale:
        return {
            'price': sale,
            'original_price': regular,
            'discount_percentage': calculate_discount_percentage(regular, sale),
            'flash_sale_active': False,
        }

    return {
        'price': max(regular, ZERO),
        'original_price': None,
        'discount_percentage': 0,
        'flash_sale_active': False,
    }


def price_block_for_variant(variant, flash_sale=None):
    """Card price block for a variant, including the flash sale details"""
    info = build_flash_sale_info(flash_sale, variant.current_price)
    block = resolve_display_price(variant.price, variant.sale_price, info)
    block['flash_sale'] = info
    return block


def hide_prices(block):
    """Blank out the numbers of a price block for guests"""
    hidden = dict(block)
    hidden['price'] = None
    hidden['original_price'] = None
    hidden['discount_percentage'] = None
    if hidden.get('flash_sale'):
        hidden['flash_sale'] = {**hidden['flash_sale'], 'flash_sale_price': None}
    hidden['prices_hidden'] = True
    return hidden


# ==================== CART UNIT PRICES ====================

def find_pricing_slab(variant, quantity):
    """First slab (highest min_qty first) matching quantity, variant slabs before product slabs"""
    for slabs in (variant.pricing_slabs.all(), variant.product.pricing_slabs.all()):
        for slab in sorted(slabs, key=lambda s: (-s.min_qty, s.id)):
            if slab.matches(quantity):
                return slab
    return None


def unit_price_for(variant, quantity, flash_sale=None):
    """
    Unit price for buying quantity units of variant.

    Returns (unit_price, price_source, flash_sale_discount_percentage or None)
    """
    slab = find_pricing_slab(variant, quantity)
    if slab is not None:
        base, source = slab.price, PRICE_SOURCE_SLAB
    elif variant.has_valid_sale_price:
        base, source = variant.sale_price, PRICE_SOURCE_SALE
    else:
        base, source = variant.price, PRICE_SOURCE_REGULAR

    if flash_sale is not None:
        return flash_sale_price(base, flash_sale.discount_percentage), PRICE_SOURCE_FLASH_SALE, flash_sale.discount_percentage
    return quantize_money(base), source, None


def effective_moq(variant):
    """Minimum order quantity: variant setting, then product, then global, else 1"""
    settings = MOQSetting.objects.filter(is_active=True).filter(
        Q(scope=MOQSetting.SCOPE_VARIANT, variant=variant) |
        Q(scope=MOQSetting.SCOPE_PRODUCT, product_id=variant.product_id) |
        Q(scope=MOQSetting.SCOPE_GLOBAL)
    ).order_by('-updated_at')

    by_scope = {}
    for setting in settings:
        by_scope.setdefault(setting.scope, setting.min_qty)

    for scope in (MOQSetting.SCOPE_VARIANT, MOQSetting.SCOPE_PRODUCT, MOQSetting.SCOPE_GLOBAL):
        if scope in by_scope:
            return max(by_scope[scope], 1)
    return 1


# ==================== COUPONS ====================

def get_valid_coupon(code, now=None):
    """Look up an active, in-date coupon with uses left"""
    if not code or not str(code).strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Coupon code is required')

    coupon = Coupon.objects.filter(code=str(code).strip().upper(), is_active=True).first()
    if coupon is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Invalid or expired coupon code')

    now = now or timezone.now()
    if coupon.start_date and now < coupon.start_date:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'This coupon is not active yet')
    if coupon.end_date and now > coupon.end_date:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'This coupon has expired')
    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Coupon usage limit reached')
    return coupon


def compute_coupon_discount(coupon, lines):
    """
    Discount a coupon gives on priced cart lines.

    Args:
        coupon: Coupon instance
        lines: iterable of (product, line_subtotal) pairs

    Returns:
        (discount, applicable_subtotal), both rounded to 2 places
    """
    category_ids = set(coupon.applicable_categories.values_list('id', flat=True))
    product_ids = set(coupon.applicable_products.values_list('id', flat=True))
    brand_ids = set(coupon.applicable_brands.values_list('id', flat=True))
    targeted = bool(category_ids or product_ids or brand_ids)

    applicable = ZERO
    for product, line_subtotal in lines:
        if not targeted:
            applicable += line_subtotal
            continue
        in_category = product.category_id in category_ids or (
            product.category_id is not None and product.category.parent_id in category_ids
        )
        if product.id in product_ids or in_category or product.brand_id in brand_ids:
            applicable += line_subtotal

    if applicable <= ZERO:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'This coupon is not applicable to any items in your cart')
    if applicable < coupon.min_order_amount:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            f'Minimum order amount of {coupon.min_order_amount} is required for this coupon'
        )

    if coupon.discount_type == Coupon.DISCOUNT_PERCENTAGE:
        percent = min(coupon.discount_value, MAX_COUPON_PERCENT)
        discount = applicable * percent / 100
    else:
        discount = min(coupon.discount_value, applicable)

    discount = min(discount, applicable * MAX_COUPON_PERCENT / 100)
    return quantize_money(discount), quantize_money(applicable)

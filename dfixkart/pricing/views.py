import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from dfixkart.catalog.views import should_hide_prices
from dfixkart.core.cache_utils import cached_query, FLASH_SALES_CACHE_TTL, FLASH_SALES_PREFIX
from dfixkart.core.exceptions import ApiError
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_resource_permission, require_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log, parse_bool
from .models import FlashSale, Coupon, UserCoupon
from .serializers import FlashSaleSerializer, CouponSerializer, CouponCodeSerializer, time_remaining
from .services import (
    running_flash_sales, flash_sale_cache_ttl, price_block_for_variant, hide_prices, get_valid_coupon,
    compute_coupon_discount, quantize_money,
)

logger = logging.getLogger(__name__)


# ==================== PUBLIC FLASH SALES ====================

@cached_query(cache_ttl=lambda: flash_sale_cache_ttl(FLASH_SALES_CACHE_TTL), key_prefix=FLASH_SALES_PREFIX)
def get_running_flash_sales():
    sales = running_flash_sales().prefetch_related(
        'sale_products__product__variants'
    ).order_by('end_time')

    data = []
    for sale in sales:
        products = []
        for entry in sale.sale_products.all():
            product = entry.product
            if not product.is_active:
                continue
            variant = product.get_primary_variant()
            if variant is None:
                continue
            block = price_block_for_variant(variant, sale)
            products.append({
                'id': product.id,
                'name': product.name,
                'slug': product.slug,
                'image': product.image or None,
                'default_variant_id': variant.id,
                'flash_sale_price': block['flash_sale']['flash_sale_price'],
                **block,
            })
        data.append({
            'id': sale.id,
            'name': sale.name,
            'description': sale.description,
            'start_time': sale.start_time,
            'end_time': sale.end_time,
            'discount_percentage': sale.discount_percentage,
            'max_quantity': sale.max_quantity,
            'sold_count': sale.sold_count,
            'products': products,
        })
    return data


@api_view(['GET'])
@permission_classes([AllowAny])
def public_flash_sales(request):
    """Running flash sales with their products and a countdown"""
    hide = should_hide_prices(request)
    now = timezone.now()
    sales = []
    for sale in get_running_flash_sales():
        if sale['end_time'] < now:
            continue
        item = dict(sale)
        item['time_remaining'] = time_remaining(sale['end_time'], now=now)
        if hide:
            item['products'] = [{**hide_prices(p), 'flash_sale_price': None} for p in sale['products']]
        sales.append(item)
    return api_response(sales, 'Flash sales retrieved successfully')


# ==================== ADMIN FLASH SALES ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('flash_sales')])
def flash_sale_list_create(request):
    if request.method == 'GET':
        queryset = FlashSale.objects.prefetch_related('sale_products__product')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active is not None and is_active != '':
            queryset = queryset.filter(is_active=parse_bool(is_active))

        sales, pagination = paginate_queryset(queryset, request, default_limit=50)
        return api_response({
            'flash_sales': FlashSaleSerializer(sales, many=True).data,
            'pagination': pagination,
        }, 'Flash sales retrieved successfully')

    serializer = FlashSaleSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    with transaction.atomic():
        flash_sale = serializer.save()
    create_audit_log(request, 'create', 'FlashSale', flash_sale.id, object_name=flash_sale.name,
                     changes={'discount_percentage': str(flash_sale.discount_percentage),
                              'product_ids': list(flash_sale.sale_products.values_list('product_id', flat=True))})
    logger.info(f"Flash sale created: {flash_sale.name} ({flash_sale.discount_percentage}%)")
    return api_response(FlashSaleSerializer(flash_sale).data, 'Flash sale created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('flash_sales')])
def flash_sale_detail(request, pk):
    flash_sale = get_object_or_404(FlashSale, pk=pk)

    if request.method == 'GET':
        return api_response(FlashSaleSerializer(flash_sale).data, 'Flash sale retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'FlashSale', flash_sale.id, object_name=flash_sale.name)
        flash_sale.delete()
        return api_response(None, 'Flash sale deleted successfully')

    serializer = FlashSaleSerializer(flash_sale, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    with transaction.atomic():
        flash_sale = serializer.save()
    create_audit_log(request, 'update', 'FlashSale', flash_sale.id, object_name=flash_sale.name, changes=request.data)
    return api_response(FlashSaleSerializer(flash_sale).data, 'Flash sale updated successfully')


@api_view(['PATCH', 'POST'])
@permission_classes([IsAuthenticated, require_permission('flash_sales', 'update')])
def flash_sale_toggle_status(request, pk):
    flash_sale = get_object_or_404(FlashSale, pk=pk)
    flash_sale.is_active = not flash_sale.is_active
    flash_sale.save(update_fields=['is_active', 'updated_at'])
    create_audit_log(request, 'flash_sale_toggle', 'FlashSale', flash_sale.id, object_name=flash_sale.name,
                     changes={'is_active': flash_sale.is_active})
    state = 'activated' if flash_sale.is_active else 'deactivated'
    return api_response(FlashSaleSerializer(flash_sale).data, f'Flash sale {state} successfully')


# ==================== COUPONS ====================

def _coupon_preview(user, code):
    """Validate code against the user's cart and return the discount preview"""
    from dfixkart.cart.services import cart_items_for, price_cart_items, coupon_lines

    coupon = get_valid_coupon(code)
    lines = price_cart_items(cart_items_for(user))
    if not lines:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Your cart is empty')

    discount, applicable = compute_coupon_discount(coupon, coupon_lines(lines))
    subtotal = quantize_money(sum(line['line_total'] for line in lines))
    return coupon, {
        'code': coupon.code,
        'description': coupon.description,
        'discount_type': coupon.discount_type,
        'discount_value': coupon.discount_value,
        'discount': discount,
        'applicable_subtotal': applicable,
        'subtotal': subtotal,
        'total_after_discount': quantize_money(subtotal - discount),
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def coupon_verify(request):
    serializer = CouponCodeSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    _, preview = _coupon_preview(request.user, serializer.validated_data['code'])
    return api_response(preview, 'Coupon is valid')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def coupon_apply(request):
    """Attach a coupon to the cart; it replaces any previously applied coupon"""
    serializer = CouponCodeSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    coupon, preview = _coupon_preview(request.user, serializer.validated_data['code'])
    with transaction.atomic():
        UserCoupon.objects.filter(user=request.user, is_active=True).update(is_active=False)
        UserCoupon.objects.create(user=request.user, coupon=coupon, is_active=True)
    logger.info(f"Coupon {coupon.code} applied by user {request.user.id}")
    return api_response(preview, 'Coupon applied successfully')


@api_view(['DELETE', 'POST'])
@permission_classes([IsAuthenticated])
def coupon_remove(request):
    updated = UserCoupon.objects.filter(user=request.user, is_active=True).update(is_active=False)
    if not updated:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'No coupon applied')
    return api_response(None, 'Coupon removed successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_resource_permission('coupons')])
def coupon_list_create(request):
    if request.method == 'GET':
        queryset = Coupon.objects.prefetch_related('applicable_categories', 'applicable_products', 'applicable_brands')
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(code__icontains=search) | Q(description__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active is not None and is_active != '':
            queryset = queryset.filter(is_active=parse_bool(is_active))

        coupons, pagination = paginate_queryset(queryset, request, default_limit=20)
        return api_response({
            'coupons': CouponSerializer(coupons, many=True).data,
            'pagination': pagination,
        }, 'Coupons retrieved successfully')

    serializer = CouponSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    coupon = serializer.save()
    create_audit_log(request, 'create', 'Coupon', coupon.id, object_name=coupon.code,
                     changes={'discount_type': coupon.discount_type, 'discount_value': str(coupon.discount_value)})
    return api_response(CouponSerializer(coupon).data, 'Coupon created successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_resource_permission('coupons')])
def coupon_detail(request, pk):
    coupon = get_object_or_404(Coupon, pk=pk)

    if request.method == 'GET':
        return api_response(CouponSerializer(coupon).data, 'Coupon retrieved successfully')

    if request.method == 'DELETE':
        create_audit_log(request, 'delete', 'Coupon', coupon.id, object_name=coupon.code)
        coupon.delete()
        return api_response(None, 'Coupon deleted successfully')

    serializer = CouponSerializer(coupon, data=request.data, partial=request.method == 'PATCH')
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    coupon = serializer.save()
    create_audit_log(request, 'update', 'Coupon', coupon.id, object_name=coupon.code, changes=request.data)
    return api_response(CouponSerializer(coupon).data, 'Coupon updated successfully')

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db.models import Count, Sum
from django.shortcuts import get_object_or_404
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_permission, require_resource_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log
from .filters import OrderFilter
from .models import Order, PaymentSettings, ShippingSettings
from .serializers import (
    OrderSerializer, OrderListSerializer, AdminOrderSerializer, CheckoutSerializer, CancelOrderSerializer,
    OrderStatusSerializer, PaymentSettingsSerializer, ShippingSettingsSerializer,
)
from .services import checkout, cancel_order_by_user, update_order_status

logger = logging.getLogger(__name__)


def _order_queryset():
    return Order.objects.select_related('user').prefetch_related('items__product', 'items__variant')


# ==================== CUSTOMER ====================

@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_checkout(request):
    serializer = CheckoutSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    data = serializer.validated_data
    order = checkout(request.user, data.get('shipping_address_id'), notes=data['notes'])
    order = _order_queryset().get(pk=order.pk)
    return api_response(OrderSerializer(order).data, 'Order placed successfully', status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    orders = Order.objects.filter(user=request.user).prefetch_related('items')
    status_filter = request.query_params.get('status')
    if status_filter:
        orders = orders.filter(status=status_filter.upper())

    items, pagination = paginate_queryset(orders, request)
    return api_response({
        'orders': OrderListSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Orders retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_detail(request, order_number):
    order = get_object_or_404(_order_queryset(), order_number=order_number, user=request.user)
    return api_response(OrderSerializer(order).data, 'Order retrieved successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_cancel(request, order_number):
    order = get_object_or_404(Order, order_number=order_number, user=request.user)
    serializer = CancelOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    order = cancel_order_by_user(order, serializer.validated_data['reason'], request.user)
    create_audit_log(request, 'order_cancel', 'Order', order.id, object_reference=order.order_number,
                     changes={'cancel_reason': order.cancel_reason, 'cancelled_by': order.cancelled_by})
    order = _order_queryset().get(pk=order.pk)
    return api_response(OrderSerializer(order).data, 'Order cancelled successfully')


# ==================== ADMIN ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('orders', 'read')])
def admin_order_list(request):
    """Filters: status, search (order number, e-mail, username, phone), date_from, date_to, user"""
    order_filter = OrderFilter(request.query_params, queryset=_order_queryset())
    if not order_filter.is_valid():
        return validation_error_response(order_filter.errors)

    orders, pagination = paginate_queryset(order_filter.qs, request, default_limit=20)
    return api_response({
        'orders': AdminOrderSerializer(orders, many=True).data,
        'pagination': pagination,
    }, 'Orders retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('orders', 'read')])
def admin_order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)
    return api_response(AdminOrderSerializer(order).data, 'Order retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('orders', 'read')])
def admin_order_stats(request):
    counts = {value: 0 for value, _ in Order.STATUS_CHOICES}
    for row in Order.objects.values('status').annotate(count=Count('id')):
        counts[row['status']] = row['count']

    revenue = Order.objects.exclude(
        status__in=[Order.STATUS_CANCELLED, Order.STATUS_REFUNDED]
    ).aggregate(total=Sum('total'))['total'] or 0

    return api_response({
        'total_orders': sum(counts.values()),
        'status_counts': counts,
        'total_revenue': revenue,
    }, 'Order statistics retrieved successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, require_permission('orders', 'update')])
def admin_order_status(request, pk):
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    data = serializer.validated_data
    order, old_status = update_order_status(
        order,
        data['status'],
        user=request.user,
        note=data['note'],
        tracking_number=data['tracking_number'],
        carrier=data['carrier'],
        cancel_reason=data['cancel_reason'],
    )
    create_audit_log(request, 'order_status', 'Order', order.id, object_reference=order.order_number,
                     changes={'status': {'old': old_status, 'new': order.status}, 'note': data['note']})

    order = _order_queryset().get(pk=order.pk)
    return api_response(AdminOrderSerializer(order).data, f'Order status updated to {order.status}')


@api_view(['GET', 'PATCH', 'PUT'])
@permission_classes([IsAuthenticated, require_resource_permission('settings')])
def payment_settings(request):
    settings_obj = PaymentSettings.load()
    if request.method == 'GET':
        return api_response(PaymentSettingsSerializer(settings_obj).data, 'Payment settings retrieved')

    serializer = PaymentSettingsSerializer(settings_obj, data=request.data, partial=True)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    settings_obj = serializer.save()
    create_audit_log(request, 'settings_update', 'PaymentSettings', settings_obj.id,
                     changes={'cash_enabled': settings_obj.cash_enabled, 'cod_charge': str(settings_obj.cod_charge)})
    return api_response(PaymentSettingsSerializer(settings_obj).data, 'Payment settings updated')


@api_view(['GET', 'PATCH', 'PUT'])
@permission_classes([IsAuthenticated, require_resource_permission('settings')])
def shipping_settings(request):
    settings_obj = ShippingSettings.load()
    if request.method == 'GET':
        return api_response(ShippingSettingsSerializer(settings_obj).data, 'Shipping settings retrieved')

    serializer = ShippingSettingsSerializer(settings_obj, data=request.data, partial=True)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    settings_obj = serializer.save()
    create_audit_log(request, 'settings_update', 'ShippingSettings', settings_obj.id,
                     changes={'shipping_charge': str(settings_obj.shipping_charge),
                              'free_shipping_threshold': str(settings_obj.free_shipping_threshold)})
    return api_response(ShippingSettingsSerializer(settings_obj).data, 'Shipping settings updated')

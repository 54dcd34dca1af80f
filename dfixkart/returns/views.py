import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.db import transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from dfixkart.core.exceptions import ApiError
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_permission, require_resource_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log
from dfixkart.inventory.models import InventoryLog
from dfixkart.inventory.services import adjust_stock
from dfixkart.orders.models import Order
from .models import ReturnSettings, ReturnRequest
from .serializers import (
    ReturnSettingsSerializer, ReturnRequestSerializer, AdminReturnRequestSerializer, ReturnCreateSerializer,
    ReturnStatusSerializer,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('order_id', 'order_item_id', 'reason')


def _return_queryset():
    return ReturnRequest.objects.select_related('user', 'order', 'order_item', 'processed_by')


def days_since_delivery(order, now=None):
    delivered = order.delivered_at or order.updated_at
    now = now or timezone.now()
    return (now - delivered).days


# ==================== CUSTOMER ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def return_reasons(request):
    return api_response(ReturnRequest.REASONS, 'Return reasons retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def return_settings_public(request):
    settings_obj = ReturnSettings.load()
    return api_response({
        'is_enabled': settings_obj.is_enabled,
        'return_window_days': settings_obj.return_window_days,
    }, 'Return settings retrieved successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def return_create(request):
    if any(request.data.get(field) in (None, '') for field in REQUIRED_FIELDS):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Order ID, order item ID and reason are required')

    serializer = ReturnCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    data = serializer.validated_data

    settings_obj = ReturnSettings.load()
    if not settings_obj.is_enabled:
        raise ApiError(status.HTTP_403_FORBIDDEN, 'Return requests are currently disabled')

    order = Order.objects.filter(pk=data['order_id'], user=request.user, status=Order.STATUS_DELIVERED).first()
    if order is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Order not found or not eligible for return')

    order_item = order.items.filter(pk=data['order_item_id']).first()
    if order_item is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, 'Order item not found')

    if days_since_delivery(order) > settings_obj.return_window_days:
        raise ApiError(status.HTTP_400_BAD_REQUEST,
                       f'Return window of {settings_obj.return_window_days} days has expired')

    if ReturnRequest.objects.filter(order_item=order_item, status__in=ReturnRequest.OPEN_STATUSES).exists():
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'A return request already exists for this item')

    reason = data['reason']
    if reason not in ReturnRequest.REASONS:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Invalid return reason')
    custom_reason = data['custom_reason'].strip()
    if reason == ReturnRequest.REASON_OTHER and not custom_reason:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Please specify the reason for return')

    return_request = ReturnRequest.objects.create(
        user=request.user,
        order=order,
        order_item=order_item,
        reason=reason,
        custom_reason=custom_reason,
        images=data['images'],
    )
    logger.info(f"Return request {return_request.id} created for order {order.order_number}")
    return api_response(ReturnRequestSerializer(return_request).data, 'Return request submitted successfully',
                        status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_returns(request):
    returns = _return_queryset().filter(user=request.user)
    status_filter = request.query_params.get('status')
    if status_filter:
        returns = returns.filter(status=status_filter.upper())

    items, pagination = paginate_queryset(returns, request, default_limit=20)
    return api_response({
        'returns': ReturnRequestSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Return requests retrieved successfully')


# ==================== ADMIN ====================

@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('returns', 'read')])
def admin_return_list(request):
    """Filters: status, search (order number, username, e-mail), order_id"""
    returns = _return_queryset()

    status_filter = request.query_params.get('status')
    if status_filter:
        returns = returns.filter(status=status_filter.upper())
    search = request.query_params.get('search')
    if search:
        returns = returns.filter(
            Q(order__order_number__icontains=search) |
            Q(user__username__icontains=search) |
            Q(user__email__icontains=search)
        )
    order_id = request.query_params.get('order_id')
    if order_id:
        returns = returns.filter(order_id=order_id)

    items, pagination = paginate_queryset(returns, request, default_limit=20)
    return api_response({
        'returns': AdminReturnRequestSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Return requests retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('returns', 'read')])
def admin_return_detail(request, pk):
    return_request = get_object_or_404(_return_queryset(), pk=pk)
    return api_response(AdminReturnRequestSerializer(return_request).data, 'Return request retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('returns', 'read')])
def admin_return_stats(request):
    counts = {value: 0 for value, _ in ReturnRequest.STATUS_CHOICES}
    for row in ReturnRequest.objects.values('status').annotate(count=Count('id')):
        counts[row['status']] = row['count']
    return api_response({
        'total': sum(counts.values()),
        'status_counts': counts,
    }, 'Return statistics retrieved successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, require_permission('returns', 'update')])
def admin_return_status(request, pk):
    return_request = get_object_or_404(ReturnRequest, pk=pk)
    serializer = ReturnStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    new_status = serializer.validated_data['status']
    with transaction.atomic():
        return_request = ReturnRequest.objects.select_for_update().select_related('order', 'order_item__variant').get(
            pk=return_request.pk
        )
        old_status = return_request.status
        return_request.status = new_status
        return_request.processed_by = request.user
        return_request.processed_at = timezone.now()
        if 'admin_notes' in serializer.validated_data:
            return_request.admin_notes = serializer.validated_data['admin_notes']
        return_request.save()

        # Stock comes back once, on the first approval
        if new_status == ReturnRequest.STATUS_APPROVED and old_status != ReturnRequest.STATUS_APPROVED:
            item = return_request.order_item
            order = return_request.order
            adjust_stock(item.variant, item.quantity, InventoryLog.REASON_RETURN, user=request.user,
                         notes=f'Return #{return_request.id} approved', reference=order.order_number)
            order.status = Order.STATUS_RETURN_APPROVED
            order.save(update_fields=['status', 'updated_at'])

    create_audit_log(request, 'return_status', 'ReturnRequest', return_request.id,
                     object_reference=return_request.order.order_number,
                     changes={'status': {'old': old_status, 'new': new_status}})
    logger.info(f"Return {return_request.id}: {old_status} -> {new_status}")

    return_request = _return_queryset().get(pk=return_request.pk)
    return api_response(AdminReturnRequestSerializer(return_request).data, f'Return request {new_status.lower()}')


@api_view(['GET', 'PATCH', 'PUT'])
@permission_classes([IsAuthenticated, require_resource_permission('returns')])
def admin_return_settings(request):
    settings_obj = ReturnSettings.load()
    if request.method == 'GET':
        return api_response(ReturnSettingsSerializer(settings_obj).data, 'Return settings retrieved')

    serializer = ReturnSettingsSerializer(settings_obj, data=request.data, partial=True)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    settings_obj = serializer.save()
    create_audit_log(request, 'settings_update', 'ReturnSettings', settings_obj.id,
                     changes={'is_enabled': settings_obj.is_enabled,
                              'return_window_days': settings_obj.return_window_days})
    return api_response(ReturnSettingsSerializer(settings_obj).data, 'Return settings updated')

import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.conf import settings
from django.shortcuts import get_object_or_404
from dfixkart.catalog.models import ProductVariant
from dfixkart.catalog.serializers import LowStockVariantSerializer
from dfixkart.core.exceptions import ApiError
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log
from .models import InventoryLog
from .serializers import InventoryLogSerializer, StockChangeSerializer
from .services import adjust_stock, low_stock_variants

logger = logging.getLogger(__name__)


def _change_stock(request, sign, default_reason):
    serializer = StockChangeSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    data = serializer.validated_data
    variant = get_object_or_404(ProductVariant.objects.select_related('product'), pk=data['variant_id'])
    reason = data.get('reason') or default_reason
    log = adjust_stock(variant, sign * data['quantity'], reason, user=request.user, notes=data['notes'])

    create_audit_log(
        request=request,
        action='stock_adjust',
        model_name='ProductVariant',
        object_id=variant.id,
        object_name=str(variant),
        object_reference=variant.sku,
        changes={
            'quantity_change': log.quantity_change,
            'reason': reason,
            'previous_quantity': log.previous_quantity,
            'new_quantity': log.new_quantity,
            'notes': log.notes,
        }
    )
    message = 'Stock added successfully' if sign > 0 else 'Stock removed successfully'
    return api_response(InventoryLogSerializer(log).data, message)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_permission('inventory', 'update')])
def inventory_add(request):
    return _change_stock(request, 1, InventoryLog.REASON_RESTOCK)


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_permission('inventory', 'update')])
def inventory_remove(request):
    return _change_stock(request, -1, InventoryLog.REASON_ADJUSTMENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('inventory', 'read')])
def inventory_history(request):
    """Stock movements, newest first. Filters: variant_id, product_id, reason"""
    logs = InventoryLog.objects.select_related('variant', 'variant__product', 'created_by')

    variant_id = request.query_params.get('variant_id')
    if variant_id:
        logs = logs.filter(variant_id=variant_id)
    product_id = request.query_params.get('product_id')
    if product_id:
        logs = logs.filter(variant__product_id=product_id)
    reason = request.query_params.get('reason')
    if reason:
        logs = logs.filter(reason=reason)

    items, pagination = paginate_queryset(logs, request, default_limit=20)
    return api_response({
        'logs': InventoryLogSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Inventory history retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('inventory', 'read')])
def inventory_alerts(request):
    """Active variants whose stock is at or below ?threshold="""
    raw = request.query_params.get('threshold', settings.LOW_STOCK_DEFAULT_THRESHOLD)
    try:
        threshold = int(raw)
    except (TypeError, ValueError):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Threshold must be a whole number')
    if threshold < 0:
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'Threshold cannot be negative')

    variants = low_stock_variants(threshold)
    return api_response(LowStockVariantSerializer(variants, many=True).data, 'Inventory alerts retrieved successfully')

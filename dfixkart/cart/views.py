import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from dfixkart.catalog.models import ProductVariant
from dfixkart.core.responses import api_response, validation_error_response
from .models import CartItem
from .serializers import CartAddSerializer, CartUpdateSerializer
from .services import build_cart, check_purchase_quantity

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def cart_detail(request):
    return api_response(build_cart(request.user), 'Cart retrieved successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_add(request):
    """Add a variant to the cart, or increase its quantity if already there"""
    serializer = CartAddSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    variant = get_object_or_404(
        ProductVariant.objects.select_related('product'),
        pk=serializer.validated_data['product_variant_id'],
        is_active=True,
        product__is_active=True,
    )
    quantity = serializer.validated_data['quantity']

    item = CartItem.objects.filter(user=request.user, variant=variant).first()
    new_quantity = quantity + (item.quantity if item else 0)
    check_purchase_quantity(variant, new_quantity)

    if item:
        item.quantity = new_quantity
        item.save(update_fields=['quantity', 'updated_at'])
    else:
        CartItem.objects.create(user=request.user, variant=variant, quantity=new_quantity)

    logger.info(f"Cart add: user={request.user.id} variant={variant.sku} qty={new_quantity}")
    return api_response(build_cart(request.user), 'Item added to cart')


@api_view(['PATCH', 'PUT'])
@permission_classes([IsAuthenticated])
def cart_update(request, pk):
    item = get_object_or_404(CartItem.objects.select_related('variant'), pk=pk, user=request.user)

    serializer = CartUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    quantity = serializer.validated_data['quantity']
    check_purchase_quantity(item.variant, quantity)
    item.quantity = quantity
    item.save(update_fields=['quantity', 'updated_at'])
    return api_response(build_cart(request.user), 'Cart updated successfully')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def cart_remove(request, pk):
    item = get_object_or_404(CartItem, pk=pk, user=request.user)
    item.delete()
    return api_response(build_cart(request.user), 'Item removed from cart')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def cart_clear(request):
    deleted, _ = CartItem.objects.filter(user=request.user).delete()
    logger.info(f"Cart cleared: user={request.user.id} items={deleted}")
    return api_response(build_cart(request.user), 'Cart cleared successfully')

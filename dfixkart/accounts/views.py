import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, AllowAny
from django.db import transaction, IntegrityError
from django.db.models import Avg, Count
from django.shortcuts import get_object_or_404
from django.utils import timezone
from dfixkart.catalog.models import Product
from dfixkart.core.exceptions import ApiError
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.permissions import require_permission
from dfixkart.core.responses import api_response, validation_error_response
from dfixkart.core.utils import create_audit_log
from dfixkart.orders.models import Order, OrderItem
from dfixkart.pricing.services import flash_sales_for_products
from .models import Address, WishlistItem, Review
from .serializers import (
    AddressSerializer, missing_address_fields, WishlistItemSerializer, WishlistAddSerializer,
    ReviewSerializer, ReviewCreateSerializer, ReviewUpdateSerializer, ReviewStatusSerializer, ReviewReplySerializer,
)

logger = logging.getLogger(__name__)

REVIEWABLE_ORDER_STATUSES = [Order.STATUS_DELIVERED, Order.STATUS_SHIPPED]


# ==================== ADDRESSES ====================

def _save_address(serializer, user):
    """Save an address keeping exactly one default per user"""
    with transaction.atomic():
        others = Address.objects.filter(user=user)
        if serializer.instance is not None:
            others = others.exclude(pk=serializer.instance.pk)
        extra = {}
        if not others.exists():
            extra['is_default'] = True  # first address
        address = serializer.save(user=user, **extra)
        if address.is_default:
            Address.objects.filter(user=user, is_default=True).exclude(pk=address.pk).update(is_default=False)
    return address


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def address_list_create(request):
    if request.method == 'GET':
        addresses = Address.objects.filter(user=request.user)
        return api_response(AddressSerializer(addresses, many=True).data, 'Addresses retrieved successfully')

    if missing_address_fields(request.data):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'All address fields are required')
    serializer = AddressSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    address = _save_address(serializer, request.user)
    return api_response(AddressSerializer(address).data, 'Address added successfully', status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def address_detail(request, pk):
    address = get_object_or_404(Address, pk=pk, user=request.user)

    if request.method == 'GET':
        return api_response(AddressSerializer(address).data, 'Address retrieved successfully')

    if request.method == 'DELETE':
        was_default = address.is_default
        address.delete()
        if was_default:
            # Promote the most recent remaining address
            replacement = Address.objects.filter(user=request.user).order_by('-created_at').first()
            if replacement:
                replacement.is_default = True
                replacement.save(update_fields=['is_default', 'updated_at'])
        return api_response(None, 'Address deleted successfully')

    if missing_address_fields(request.data, instance=address):
        raise ApiError(status.HTTP_400_BAD_REQUEST, 'All address fields are required')
    serializer = AddressSerializer(address, data=request.data, partial=True)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    address = _save_address(serializer, request.user)
    return api_response(AddressSerializer(address).data, 'Address updated successfully')


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated])
def address_set_default(request, pk):
    address = get_object_or_404(Address, pk=pk, user=request.user)
    with transaction.atomic():
        Address.objects.filter(user=request.user, is_default=True).exclude(pk=address.pk).update(is_default=False)
        address.is_default = True
        address.save(update_fields=['is_default', 'updated_at'])
    return api_response(AddressSerializer(address).data, 'Default address updated')


# ==================== WISHLIST ====================

def _wishlist_payload(user):
    items = list(WishlistItem.objects.filter(user=user).select_related('product').prefetch_related('product__variants'))
    flash_sales = flash_sales_for_products({item.product_id for item in items})
    return WishlistItemSerializer(items, many=True, context={'flash_sales': flash_sales}).data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def wishlist(request):
    if request.method == 'GET':
        return api_response(_wishlist_payload(request.user), 'Wishlist retrieved successfully')

    serializer = WishlistAddSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    product = get_object_or_404(Product, pk=serializer.validated_data['product_id'], is_active=True)
    if WishlistItem.objects.filter(user=request.user, product=product).exists():
        raise ApiError(status.HTTP_409_CONFLICT, 'Product already in wishlist')
    try:
        item = WishlistItem.objects.create(user=request.user, product=product)
    except IntegrityError:
        raise ApiError(status.HTTP_409_CONFLICT, 'Product already in wishlist')

    data = WishlistItemSerializer(item, context={'flash_sales': flash_sales_for_products([product.id])}).data
    return api_response(data, 'Product added to wishlist', status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def wishlist_remove(request, pk):
    item = get_object_or_404(WishlistItem, pk=pk, user=request.user)
    item.delete()
    return api_response(None, 'Product removed from wishlist')


# ==================== REVIEWS ====================

def _rating_summary(queryset):
    summary = queryset.aggregate(average=Avg('rating'), count=Count('id'))
    average = round(summary['average'], 1) if summary['average'] is not None else 0
    return average, summary['count']


@api_view(['GET'])
@permission_classes([AllowAny])
def public_product_reviews(request, slug):
    product = get_object_or_404(Product, slug=slug, is_active=True)
    reviews = Review.objects.filter(product=product, status=Review.STATUS_APPROVED).select_related('user', 'product')
    average, count = _rating_summary(reviews)

    items, pagination = paginate_queryset(reviews, request)
    return api_response({
        'reviews': ReviewSerializer(items, many=True).data,
        'average_rating': average,
        'review_count': count,
        'pagination': pagination,
    }, 'Reviews retrieved successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_reviews(request):
    if request.method == 'GET':
        reviews = Review.objects.filter(user=request.user).select_related('user', 'product')
        return api_response(ReviewSerializer(reviews, many=True).data, 'Reviews retrieved successfully')

    serializer = ReviewCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    data = serializer.validated_data
    product = get_object_or_404(Product, pk=data['product_id'])
    if Review.objects.filter(user=request.user, product=product).exists():
        raise ApiError(status.HTTP_409_CONFLICT, 'You have already reviewed this product')

    purchased = OrderItem.objects.filter(
        order__user=request.user,
        order__status__in=REVIEWABLE_ORDER_STATUSES,
        product=product,
    ).exists()
    if not purchased:
        raise ApiError(status.HTTP_403_FORBIDDEN, 'You can only review products you have purchased')

    review = Review.objects.create(
        user=request.user,
        product=product,
        rating=data['rating'],
        title=data['title'],
        comment=data['comment'],
    )
    logger.info(f"Review {review.id} submitted for product {product.slug}")
    return api_response(ReviewSerializer(review).data, 'Review submitted for approval', status.HTTP_201_CREATED)


@api_view(['PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_review_detail(request, pk):
    review = get_object_or_404(Review, pk=pk, user=request.user)

    if request.method == 'DELETE':
        review.delete()
        return api_response(None, 'Review deleted successfully')

    serializer = ReviewUpdateSerializer(review, data=request.data, partial=True)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)
    # Edited reviews go back to moderation
    review = serializer.save(status=Review.STATUS_PENDING)
    return api_response(ReviewSerializer(review).data, 'Review updated successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('reviews', 'read')])
def admin_review_list(request):
    reviews = Review.objects.select_related('user', 'product')

    status_filter = request.query_params.get('status')
    if status_filter:
        reviews = reviews.filter(status=status_filter.upper())
    product_id = request.query_params.get('product_id')
    if product_id:
        reviews = reviews.filter(product_id=product_id)
    rating = request.query_params.get('rating')
    if rating:
        reviews = reviews.filter(rating=rating)

    items, pagination = paginate_queryset(reviews, request, default_limit=20)
    return api_response({
        'reviews': ReviewSerializer(items, many=True).data,
        'pagination': pagination,
    }, 'Reviews retrieved successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('reviews', 'read')])
def admin_review_stats(request):
    reviews = Review.objects.all()
    average, total = _rating_summary(reviews)

    by_status = {value: 0 for value, _ in Review.STATUS_CHOICES}
    for row in reviews.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    distribution = {str(star): 0 for star in range(1, 6)}
    for row in reviews.values('rating').annotate(count=Count('id')):
        distribution[str(row['rating'])] = row['count']

    return api_response({
        'total': total,
        'pending': by_status[Review.STATUS_PENDING],
        'approved': by_status[Review.STATUS_APPROVED],
        'rejected': by_status[Review.STATUS_REJECTED],
        'average_rating': average,
        'rating_distribution': distribution,
    }, 'Review statistics retrieved successfully')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, require_permission('reviews', 'update')])
def admin_review_status(request, pk):
    review = get_object_or_404(Review, pk=pk)
    serializer = ReviewStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    old_status = review.status
    review.status = serializer.validated_data['status']
    review.save(update_fields=['status', 'updated_at'])
    create_audit_log(request, 'review_status', 'Review', review.id, object_name=review.product.name,
                     changes={'status': {'old': old_status, 'new': review.status}})
    return api_response(ReviewSerializer(review).data, f'Review {review.status.lower()}')


@api_view(['POST'])
@permission_classes([IsAuthenticated, require_permission('reviews', 'update')])
def admin_review_reply(request, pk):
    review = get_object_or_404(Review, pk=pk)
    serializer = ReviewReplySerializer(data=request.data)
    if not serializer.is_valid():
        return validation_error_response(serializer.errors)

    review.admin_reply = serializer.validated_data['reply']
    review.replied_at = timezone.now()
    review.save(update_fields=['admin_reply', 'replied_at', 'updated_at'])
    return api_response(ReviewSerializer(review).data, 'Reply added successfully')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated, require_permission('reviews', 'delete')])
def admin_review_delete(request, pk):
    review = get_object_or_404(Review, pk=pk)
    create_audit_log(request, 'delete', 'Review', review.id, object_name=review.product.name)
    review.delete()
    return api_response(None, 'Review deleted successfully')

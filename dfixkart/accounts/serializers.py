from rest_framework import serializers
from .models import Address, WishlistItem, Review

ADDRESS_REQUIRED_FIELDS = ['street', 'city', 'state', 'postal_code', 'country']


def missing_address_fields(data, instance=None):
    """Required address fields that would be empty after applying data"""
    missing = []
    for field in ADDRESS_REQUIRED_FIELDS:
        value = data.get(field, getattr(instance, field, ''))
        if value is None or not str(value).strip():
            missing.append(field)
    return missing


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ['id', 'full_name', 'phone', 'street', 'city', 'state', 'postal_code', 'country',
                  'is_default', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {field: {'required': False, 'allow_blank': True} for field in ADDRESS_REQUIRED_FIELDS}


class WishlistItemSerializer(serializers.ModelSerializer):
    product = serializers.SerializerMethodField()

    class Meta:
        model = WishlistItem
        fields = ['id', 'product', 'created_at']

    def get_product(self, obj):
        from dfixkart.pricing.services import price_block_for_variant

        product = obj.product
        data = {
            'id': product.id,
            'name': product.name,
            'slug': product.slug,
            'image': product.image or None,
            'is_active': product.is_active,
        }
        variant = product.get_primary_variant()
        if variant is not None:
            data.update(price_block_for_variant(variant, self.context.get('flash_sales', {}).get(product.id)))
            data['in_stock'] = variant.quantity > 0
        return data


class WishlistAddSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()


class ReviewSerializer(serializers.ModelSerializer):
    user_name = serializers.SerializerMethodField()
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'product', 'product_name', 'product_slug', 'user_name', 'rating', 'title', 'comment',
                  'status', 'admin_reply', 'replied_at', 'created_at', 'updated_at']
        read_only_fields = ['product', 'status', 'admin_reply', 'replied_at', 'created_at', 'updated_at']

    def get_user_name(self, obj):
        return obj.user.get_full_name() or obj.user.username


class ReviewCreateSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    rating = serializers.IntegerField(min_value=1, max_value=5)
    title = serializers.CharField(required=False, allow_blank=True, default='', max_length=200)
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class ReviewUpdateSerializer(serializers.ModelSerializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)

    class Meta:
        model = Review
        fields = ['rating', 'title', 'comment']


class ReviewStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Review.STATUS_CHOICES)

    def to_internal_value(self, data):
        if isinstance(data, dict) and isinstance(data.get('status'), str):
            data = {**data, 'status': data['status'].upper()}
        return super().to_internal_value(data)


class ReviewReplySerializer(serializers.Serializer):
    reply = serializers.CharField()

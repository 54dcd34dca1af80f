from rest_framework import serializers
from django.utils import timezone
from dfixkart.catalog.models import Product, Category, Brand
from .models import FlashSale, FlashSaleProduct, Coupon


class FlashSaleProductSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source='product.id', read_only=True)
    name = serializers.CharField(source='product.name', read_only=True)
    slug = serializers.CharField(source='product.slug', read_only=True)

    class Meta:
        model = FlashSaleProduct
        fields = ['id', 'name', 'slug']


class FlashSaleSerializer(serializers.ModelSerializer):
    product_ids = serializers.ListField(child=serializers.IntegerField(), write_only=True, required=False)
    products = FlashSaleProductSerializer(source='sale_products', many=True, read_only=True)
    is_running = serializers.SerializerMethodField()
    is_sold_out = serializers.BooleanField(read_only=True)

    class Meta:
        model = FlashSale
        fields = [
            'id', 'name', 'description', 'start_time', 'end_time', 'discount_percentage',
            'max_quantity', 'sold_count', 'is_active', 'is_running', 'is_sold_out',
            'product_ids', 'products', 'created_at', 'updated_at'
        ]
        read_only_fields = ['sold_count', 'created_at', 'updated_at']

    def get_is_running(self, obj):
        return obj.is_running()

    def validate_discount_percentage(self, value):
        if value < 0 or value > 100:
            raise serializers.ValidationError("Discount percentage must be between 0 and 100")
        return value

    def validate_product_ids(self, value):
        ids = list(dict.fromkeys(value))
        found = set(Product.objects.filter(id__in=ids).values_list('id', flat=True))
        missing = [pid for pid in ids if pid not in found]
        if missing:
            raise serializers.ValidationError(f"Products not found: {', '.join(str(m) for m in missing)}")
        return ids

    def validate(self, attrs):
        start_time = attrs.get('start_time', getattr(self.instance, 'start_time', None))
        end_time = attrs.get('end_time', getattr(self.instance, 'end_time', None))
        if start_time and end_time and end_time <= start_time:
            raise serializers.ValidationError({"end_time": "End time must be after start time"})
        return attrs

    def _set_products(self, flash_sale, product_ids):
        flash_sale.sale_products.all().delete()
        FlashSaleProduct.objects.bulk_create([
            FlashSaleProduct(flash_sale=flash_sale, product_id=pid) for pid in product_ids
        ])

    def create(self, validated_data):
        product_ids = validated_data.pop('product_ids', [])
        flash_sale = FlashSale.objects.create(**validated_data)
        self._set_products(flash_sale, product_ids)
        return flash_sale

    def update(self, instance, validated_data):
        product_ids = validated_data.pop('product_ids', None)
        instance = super().update(instance, validated_data)
        # Only replace the product list when the caller sent one
        if product_ids is not None:
            self._set_products(instance, product_ids)
        return instance


class CouponSerializer(serializers.ModelSerializer):
    applicable_categories = serializers.PrimaryKeyRelatedField(
        many=True, queryset=Category.objects.all(), required=False
    )
    applicable_products = serializers.PrimaryKeyRelatedField(
        many=True, queryset=Product.objects.all(), required=False
    )
    applicable_brands = serializers.PrimaryKeyRelatedField(
        many=True, queryset=Brand.objects.all(), required=False
    )

    class Meta:
        model = Coupon
        fields = [
            'id', 'code', 'description', 'discount_type', 'discount_value', 'min_order_amount',
            'max_uses', 'used_count', 'start_date', 'end_date', 'is_active',
            'applicable_categories', 'applicable_products', 'applicable_brands',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['used_count', 'created_at', 'updated_at']

    def validate_code(self, value):
        code = value.strip().upper()
        if not code:
            raise serializers.ValidationError("Coupon code is required")
        qs = Coupon.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A coupon with this code already exists")
        return code

    def validate(self, attrs):
        discount_type = attrs.get('discount_type', getattr(self.instance, 'discount_type', None))
        discount_value = attrs.get('discount_value', getattr(self.instance, 'discount_value', None))
        if discount_value is not None and discount_value <= 0:
            raise serializers.ValidationError({"discount_value": "Discount value must be greater than 0"})
        if discount_type == Coupon.DISCOUNT_PERCENTAGE and discount_value is not None and discount_value > 100:
            raise serializers.ValidationError({"discount_value": "Percentage discount cannot exceed 100"})

        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and end_date <= start_date:
            raise serializers.ValidationError({"end_date": "End date must be after start date"})

        min_order_amount = attrs.get('min_order_amount')
        if min_order_amount is not None and min_order_amount < 0:
            raise serializers.ValidationError({"min_order_amount": "Minimum order amount cannot be negative"})
        return attrs


class CouponCodeSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)


def time_remaining(end_time, now=None):
    """Hours/minutes left until end_time, never negative"""
    now = now or timezone.now()
    total_seconds = max(int((end_time - now).total_seconds()), 0)
    return {
        'hours': total_seconds // 3600,
        'minutes': (total_seconds % 3600) // 60,
        'total_seconds': total_seconds,
    }

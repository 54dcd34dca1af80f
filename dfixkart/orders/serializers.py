from rest_framework import serializers
from .models import Order, OrderItem, Tracking, PaymentSettings, ShippingSettings


class OrderItemSerializer(serializers.ModelSerializer):
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    image = serializers.SerializerMethodField()

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product', 'product_name', 'product_slug', 'variant', 'variant_name', 'sku', 'image',
            'price', 'quantity', 'subtotal', 'price_source', 'flash_sale', 'flash_sale_discount'
        ]

    def get_image(self, obj):
        return obj.variant.image or obj.product.image or None


class TrackingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Tracking
        fields = ['carrier', 'tracking_number', 'status', 'updates', 'created_at', 'updated_at']


class OrderListSerializer(serializers.ModelSerializer):
    item_count = serializers.IntegerField(source='items.count', read_only=True)

    class Meta:
        model = Order
        fields = ['id', 'order_number', 'status', 'payment_method', 'total', 'item_count', 'created_at']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    tracking = serializers.SerializerMethodField()
    shipping_address = serializers.JSONField(source='shipping_address_snapshot', read_only=True)
    is_cancellable = serializers.BooleanField(read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'status', 'payment_method', 'shipping_address',
            'sub_total', 'shipping_cost', 'cod_charge', 'discount', 'total', 'coupon_code',
            'notes', 'cancel_reason', 'cancelled_at', 'cancelled_by', 'delivered_at', 'is_cancellable',
            'items', 'tracking', 'created_at', 'updated_at'
        ]

    def get_tracking(self, obj):
        tracking = Tracking.objects.filter(order=obj).first()
        return TrackingSerializer(tracking).data if tracking else None


class AdminOrderSerializer(OrderSerializer):
    customer = serializers.SerializerMethodField()

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['customer']

    def get_customer(self, obj):
        user = obj.user
        return {
            'id': user.id,
            'username': user.username,
            'email': user.email,
            'name': user.get_full_name() or user.username,
            'phone': user.phone,
        }


class CheckoutSerializer(serializers.Serializer):
    shipping_address_id = serializers.IntegerField(required=False, allow_null=True)
    payment_method = serializers.ChoiceField(choices=Order.PAYMENT_METHOD_CHOICES, default=Order.PAYMENT_CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    note = serializers.CharField(required=False, allow_blank=True, default='')
    tracking_number = serializers.CharField(required=False, allow_blank=True, default='')
    carrier = serializers.CharField(required=False, allow_blank=True, default='')
    cancel_reason = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_status(self, value):
        return value.strip().upper()


class PaymentSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentSettings
        fields = ['cash_enabled', 'cod_charge', 'updated_at']
        read_only_fields = ['updated_at']

    def validate_cod_charge(self, value):
        if value < 0:
            raise serializers.ValidationError("COD charge cannot be negative")
        return value


class ShippingSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = ShippingSettings
        fields = ['shipping_charge', 'free_shipping_threshold', 'updated_at']
        read_only_fields = ['updated_at']

    def validate(self, attrs):
        for field in ('shipping_charge', 'free_shipping_threshold'):
            if field in attrs and attrs[field] < 0:
                raise serializers.ValidationError({field: "Value cannot be negative"})
        return attrs

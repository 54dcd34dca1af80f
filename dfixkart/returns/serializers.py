from rest_framework import serializers
from .models import ReturnSettings, ReturnRequest


class ReturnSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReturnSettings
        fields = ['is_enabled', 'return_window_days', 'updated_at']
        read_only_fields = ['updated_at']


class ReturnRequestSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source='order.order_number', read_only=True)
    item = serializers.SerializerMethodField()
    processed_by_name = serializers.CharField(source='processed_by.username', read_only=True, default=None)

    class Meta:
        model = ReturnRequest
        fields = [
            'id', 'order', 'order_number', 'order_item', 'item', 'reason', 'custom_reason', 'images',
            'status', 'admin_notes', 'processed_by', 'processed_by_name', 'processed_at', 'created_at', 'updated_at'
        ]

    def get_item(self, obj):
        item = obj.order_item
        return {
            'product_name': item.product_name,
            'variant_name': item.variant_name,
            'sku': item.sku,
            'quantity': item.quantity,
            'price': item.price,
        }


class AdminReturnRequestSerializer(ReturnRequestSerializer):
    customer = serializers.SerializerMethodField()

    class Meta(ReturnRequestSerializer.Meta):
        fields = ReturnRequestSerializer.Meta.fields + ['customer']

    def get_customer(self, obj):
        return {'id': obj.user.id, 'username': obj.user.username, 'email': obj.user.email}


class ReturnCreateSerializer(serializers.Serializer):
    order_id = serializers.IntegerField()
    order_item_id = serializers.IntegerField()
    reason = serializers.CharField()
    custom_reason = serializers.CharField(required=False, allow_blank=True, default='')
    images = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class ReturnStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    admin_notes = serializers.CharField(required=False, allow_blank=True)

    def validate_status(self, value):
        value = value.strip().upper()
        if value not in dict(ReturnRequest.STATUS_CHOICES):
            valid = ', '.join(dict(ReturnRequest.STATUS_CHOICES))
            raise serializers.ValidationError(f"Invalid status. Must be one of: {valid}")
        return value

from rest_framework import serializers
from .models import InventoryLog


class InventoryLogSerializer(serializers.ModelSerializer):
    variant_sku = serializers.CharField(source='variant.sku', read_only=True)
    variant_name = serializers.CharField(source='variant.name', read_only=True)
    product_name = serializers.CharField(source='variant.product.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = InventoryLog
        fields = [
            'id', 'variant', 'variant_sku', 'variant_name', 'product_name', 'quantity_change', 'reason',
            'previous_quantity', 'new_quantity', 'notes', 'reference', 'created_by', 'created_by_name', 'created_at'
        ]


class StockChangeSerializer(serializers.Serializer):
    """Input for manual add/remove stock"""
    variant_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.ChoiceField(choices=InventoryLog.REASON_CHOICES, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

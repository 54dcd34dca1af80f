from django.db import models
from dfixkart.catalog.models import ProductVariant


class InventoryLog(models.Model):
    """Every change to a variant's stock level"""
    REASON_RESTOCK = 'restock'
    REASON_SALE = 'sale'
    REASON_RETURN = 'return'
    REASON_CANCELLATION = 'cancellation'
    REASON_ADJUSTMENT = 'adjustment'
    REASON_DAMAGED = 'damaged'

    REASON_CHOICES = [
        (REASON_RESTOCK, 'Restock'),
        (REASON_SALE, 'Sale'),
        (REASON_RETURN, 'Return'),
        (REASON_CANCELLATION, 'Order Cancellation'),
        (REASON_ADJUSTMENT, 'Adjustment'),
        (REASON_DAMAGED, 'Damaged'),
    ]

    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='inventory_logs')
    quantity_change = models.IntegerField()  # positive in, negative out
    reason = models.CharField(max_length=20, choices=REASON_CHOICES)
    previous_quantity = models.IntegerField()
    new_quantity = models.IntegerField()
    notes = models.TextField(blank=True)
    reference = models.CharField(max_length=100, blank=True)  # e.g. order number
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='inventory_logs')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.variant.sku} {self.quantity_change:+d} ({self.reason})"

    class Meta:
        db_table = 'inventory_logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['variant', '-created_at'], name='idx_invlog_variant_created'),
            models.Index(fields=['reason'], name='idx_invlog_reason'),
        ]

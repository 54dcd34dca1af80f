from django.db import models
from dfixkart.core.models import User
from dfixkart.orders.models import Order, OrderItem


class ReturnSettings(models.Model):
    """Singleton: whether returns are accepted and for how long after delivery"""
    is_enabled = models.BooleanField(default=True)
    return_window_days = models.PositiveIntegerField(default=7)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    class Meta:
        db_table = 'return_settings'
        verbose_name_plural = 'return settings'


class ReturnRequest(models.Model):
    """Customer request to return one delivered order item"""
    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_PROCESSING = 'PROCESSING'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
    ]
    OPEN_STATUSES = [STATUS_PENDING, STATUS_APPROVED, STATUS_PROCESSING]

    REASON_OTHER = 'Other'
    REASONS = [
        'Defective/Damaged Product',
        'Wrong Item Received',
        'Size/Color Mismatch',
        'Quality Issues',
        'Not as Described',
        'Changed My Mind',
        REASON_OTHER,
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='return_requests')
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='return_requests')
    order_item = models.ForeignKey(OrderItem, on_delete=models.CASCADE, related_name='return_requests')
    reason = models.CharField(max_length=100)
    custom_reason = models.TextField(blank=True)
    images = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    admin_notes = models.TextField(blank=True)
    processed_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='processed_returns')
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Return #{self.id} - {self.order.order_number}"

    class Meta:
        db_table = 'return_requests'
        ordering = ['-created_at', '-id']

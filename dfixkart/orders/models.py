from django.db import models
from decimal import Decimal
from dfixkart.catalog.models import Product, ProductVariant
from dfixkart.core.models import User


class Order(models.Model):
    """Customer orders"""
    STATUS_PENDING = 'PENDING'
    STATUS_PROCESSING = 'PROCESSING'
    STATUS_PAID = 'PAID'
    STATUS_SHIPPED = 'SHIPPED'
    STATUS_DELIVERED = 'DELIVERED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_REFUNDED = 'REFUNDED'
    STATUS_RETURN_APPROVED = 'RETURN_APPROVED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_PAID, 'Paid'),
        (STATUS_SHIPPED, 'Shipped'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_REFUNDED, 'Refunded'),
        (STATUS_RETURN_APPROVED, 'Return Approved'),
    ]

    PAYMENT_CASH = 'CASH'
    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CASH, 'Cash on Delivery'),
    ]

    CANCELLED_BY_USER = 'user'
    CANCELLED_BY_ADMIN = 'admin'

    order_number = models.CharField(max_length=50, unique=True)
    user = models.ForeignKey(User, on_delete=models.PROTECT, related_name='orders')
    shipping_address = models.ForeignKey('accounts.Address', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    shipping_address_snapshot = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default=PAYMENT_CASH)
    sub_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping_cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    cod_charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    coupon = models.ForeignKey('pricing.Coupon', on_delete=models.SET_NULL, null=True, blank=True, related_name='orders')
    coupon_code = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)
    cancel_reason = models.TextField(blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=10, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.order_number

    @property
    def is_cancellable(self):
        return self.status in (self.STATUS_PENDING, self.STATUS_PROCESSING)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='idx_order_user_created'),
            models.Index(fields=['status', '-created_at'], name='idx_order_status_created'),
        ]


class OrderItem(models.Model):
    """Order line; price is the unit price charged at checkout"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='order_items')
    variant = models.ForeignKey(ProductVariant, on_delete=models.PROTECT, related_name='order_items')
    product_name = models.CharField(max_length=200)
    variant_name = models.CharField(max_length=200, blank=True)
    sku = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    price_source = models.CharField(max_length=20, blank=True)
    flash_sale = models.ForeignKey('pricing.FlashSale', on_delete=models.SET_NULL, null=True, blank=True, related_name='order_items')
    flash_sale_discount = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    class Meta:
        db_table = 'order_items'
        ordering = ['id']


class Tracking(models.Model):
    """Shipment tracking for an order"""
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='tracking')
    carrier = models.CharField(max_length=100, blank=True)
    tracking_number = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=50, blank=True)
    updates = models.JSONField(default=list, blank=True)  # [{"status", "note", "timestamp"}]
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.order.order_number} - {self.tracking_number}"

    class Meta:
        db_table = 'order_tracking'


class PaymentSettings(models.Model):
    """Singleton: payment methods offered at checkout"""
    cash_enabled = models.BooleanField(default=True)
    cod_charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    class Meta:
        db_table = 'payment_settings'
        verbose_name_plural = 'payment settings'


class ShippingSettings(models.Model):
    """Singleton: flat shipping charge and free-shipping threshold"""
    shipping_charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    free_shipping_threshold = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    class Meta:
        db_table = 'shipping_settings'
        verbose_name_plural = 'shipping settings'

from django.db import models
from django.utils import timezone
from decimal import Decimal
from dfixkart.catalog.models import Product
from dfixkart.core.models import User


class FlashSale(models.Model):
    """Time-boxed percentage discount on selected products"""
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    max_quantity = models.PositiveIntegerField(null=True, blank=True)  # units sellable at the sale price
    sold_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True, db_index=True)
    products = models.ManyToManyField(Product, through='FlashSaleProduct', related_name='flash_sales', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_sold_out(self):
        return bool(self.max_quantity) and self.sold_count >= self.max_quantity

    @property
    def units_left(self):
        """Units still sellable at the sale price, None when unlimited"""
        if not self.max_quantity:
            return None
        return max(self.max_quantity - self.sold_count, 0)

    def is_running(self, now=None):
        now = now or timezone.now()
        return self.is_active and self.start_time <= now <= self.end_time and not self.is_sold_out

    class Meta:
        db_table = 'flash_sales'
        ordering = ['-start_time']


class FlashSaleProduct(models.Model):
    flash_sale = models.ForeignKey(FlashSale, on_delete=models.CASCADE, related_name='sale_products')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='flash_sale_entries')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'flash_sale_products'
        unique_together = [['flash_sale', 'product']]


class Coupon(models.Model):
    """Discount codes, optionally restricted to categories, products or brands"""
    DISCOUNT_PERCENTAGE = 'PERCENTAGE'
    DISCOUNT_FIXED = 'FIXED'
    DISCOUNT_TYPE_CHOICES = [
        (DISCOUNT_PERCENTAGE, 'Percentage'),
        (DISCOUNT_FIXED, 'Fixed Amount'),
    ]

    code = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPE_CHOICES)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2)
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    applicable_categories = models.ManyToManyField('catalog.Category', related_name='coupons', blank=True)
    applicable_products = models.ManyToManyField(Product, related_name='coupons', blank=True)
    applicable_brands = models.ManyToManyField('catalog.Brand', related_name='coupons', blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or '').strip().upper()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'coupons'
        ordering = ['-created_at']


class UserCoupon(models.Model):
    """Coupon a shopper has applied to their cart; consumed at checkout"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='user_coupons')
    coupon = models.ForeignKey(Coupon, on_delete=models.CASCADE, related_name='user_coupons')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_coupons'
        ordering = ['-created_at']

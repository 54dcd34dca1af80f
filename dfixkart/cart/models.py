from django.db import models
from dfixkart.catalog.models import ProductVariant
from dfixkart.core.models import User


class CartItem(models.Model):
    """One line of a shopper's cart; prices are resolved on every read"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='cart_items')
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.username}: {self.variant.sku} x {self.quantity}"

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at', 'id']
        unique_together = [['user', 'variant']]

from django.contrib import admin
from .models import CartItem


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ['user', 'variant', 'quantity', 'updated_at']
    search_fields = ['user__username', 'variant__sku']

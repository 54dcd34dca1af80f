from django.contrib import admin
from .models import InventoryLog


@admin.register(InventoryLog)
class InventoryLogAdmin(admin.ModelAdmin):
    list_display = ['variant', 'quantity_change', 'reason', 'previous_quantity', 'new_quantity', 'created_by', 'created_at']
    list_filter = ['reason', 'created_at']
    search_fields = ['variant__sku', 'variant__product__name', 'reference']
    readonly_fields = ['created_at']

from django.contrib import admin
from .models import Order, OrderItem, Tracking, PaymentSettings, ShippingSettings


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'variant', 'price', 'quantity', 'subtotal', 'price_source']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'user', 'status', 'total', 'payment_method', 'created_at']
    list_filter = ['status', 'payment_method', 'created_at']
    search_fields = ['order_number', 'user__email', 'user__username']
    readonly_fields = ['order_number', 'created_at', 'updated_at']
    inlines = [OrderItemInline]


@admin.register(Tracking)
class TrackingAdmin(admin.ModelAdmin):
    list_display = ['order', 'carrier', 'tracking_number', 'status', 'updated_at']
    search_fields = ['order__order_number', 'tracking_number']


@admin.register(PaymentSettings)
class PaymentSettingsAdmin(admin.ModelAdmin):
    list_display = ['cash_enabled', 'cod_charge', 'updated_at']


@admin.register(ShippingSettings)
class ShippingSettingsAdmin(admin.ModelAdmin):
    list_display = ['shipping_charge', 'free_shipping_threshold', 'updated_at']

from django.contrib import admin
from .models import FlashSale, FlashSaleProduct, Coupon, UserCoupon


class FlashSaleProductInline(admin.TabularInline):
    model = FlashSaleProduct
    extra = 0
    raw_id_fields = ['product']


@admin.register(FlashSale)
class FlashSaleAdmin(admin.ModelAdmin):
    list_display = ['name', 'discount_percentage', 'start_time', 'end_time', 'sold_count', 'max_quantity', 'is_active']
    list_filter = ['is_active', 'start_time']
    search_fields = ['name']
    inlines = [FlashSaleProductInline]


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ['code', 'discount_type', 'discount_value', 'min_order_amount', 'used_count', 'max_uses', 'is_active']
    list_filter = ['discount_type', 'is_active']
    search_fields = ['code', 'description']
    filter_horizontal = ['applicable_categories', 'applicable_products', 'applicable_brands']


@admin.register(UserCoupon)
class UserCouponAdmin(admin.ModelAdmin):
    list_display = ['user', 'coupon', 'is_active', 'created_at']
    list_filter = ['is_active']

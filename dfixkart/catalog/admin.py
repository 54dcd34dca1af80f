from django.contrib import admin
from .models import (
    Category, Brand, Product, ProductVariant, PricingSlab, MOQSetting, PriceVisibilitySettings,
    Attribute, AttributeValue, ProductSection, ProductSectionItem,
)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'parent', 'sort_order', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'slug']
    ordering = ['sort_order', 'name']


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name']
    ordering = ['name']


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['name', 'sku', 'price', 'sale_price', 'quantity', 'is_active']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'category', 'brand', 'product_type', 'is_featured', 'is_active', 'created_at']
    list_filter = ['is_active', 'is_featured', 'product_type', 'category', 'brand', 'created_at']
    search_fields = ['name', 'slug', 'description']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ['product', 'name', 'sku', 'price', 'sale_price', 'quantity', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'sku', 'product__name']
    ordering = ['product', 'name']


@admin.register(PricingSlab)
class PricingSlabAdmin(admin.ModelAdmin):
    list_display = ['product', 'variant', 'min_qty', 'max_qty', 'price']
    search_fields = ['product__name', 'variant__sku']


@admin.register(MOQSetting)
class MOQSettingAdmin(admin.ModelAdmin):
    list_display = ['scope', 'product', 'variant', 'min_qty', 'is_active', 'updated_at']
    list_filter = ['scope', 'is_active']


@admin.register(PriceVisibilitySettings)
class PriceVisibilitySettingsAdmin(admin.ModelAdmin):
    list_display = ['hide_prices_for_guests', 'updated_at']


class AttributeValueInline(admin.TabularInline):
    model = AttributeValue
    extra = 0
    fields = ['value', 'hex_code', 'image']


@admin.register(Attribute)
class AttributeAdmin(admin.ModelAdmin):
    list_display = ['name', 'input_type', 'created_at']
    list_filter = ['input_type']
    search_fields = ['name']
    inlines = [AttributeValueInline]


class ProductSectionItemInline(admin.TabularInline):
    model = ProductSectionItem
    extra = 0
    fields = ['product', 'display_order']
    raw_id_fields = ['product']


@admin.register(ProductSection)
class ProductSectionAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'display_order', 'max_products', 'is_active', 'updated_at']
    list_filter = ['is_active']
    search_fields = ['name', 'slug']
    ordering = ['display_order', 'name']
    inlines = [ProductSectionItemInline]

from rest_framework import serializers
from .models import (
    Category, Brand, Product, ProductVariant, PricingSlab, MOQSetting, PriceVisibilitySettings,
    Attribute, AttributeValue, ProductSection, ProductSectionItem,
)
from .utils import generate_unique_sku


class CategorySerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=220)

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'parent', 'description', 'image', 'sort_order', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_slug(self, value):
        if not value:
            return value
        qs = Category.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A category with this slug already exists")
        return value

    def validate_parent(self, value):
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError("A category cannot be its own parent")
        return value


class PublicCategorySerializer(serializers.ModelSerializer):
    product_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Category
        fields = ['id', 'slug', 'name', 'image', 'description', 'parent', 'product_count']


class CategoryTreeSerializer(serializers.ModelSerializer):
    children = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'slug', 'name', 'image', 'description', 'children']

    def get_children(self, obj):
        children = [c for c in obj.children.all() if c.is_active]
        return PublicCategorySerializer(children, many=True).data


class BrandSerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=220)

    class Meta:
        model = Brand
        fields = ['id', 'name', 'slug', 'description', 'logo', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class PricingSlabSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingSlab
        fields = ['id', 'product', 'variant', 'min_qty', 'max_qty', 'price', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        product = attrs.get('product', getattr(self.instance, 'product', None))
        variant = attrs.get('variant', getattr(self.instance, 'variant', None))
        if bool(product) == bool(variant):
            raise serializers.ValidationError("A pricing slab belongs to exactly one of product or variant")

        min_qty = attrs.get('min_qty', getattr(self.instance, 'min_qty', None))
        max_qty = attrs.get('max_qty', getattr(self.instance, 'max_qty', None))
        if min_qty is not None and min_qty < 1:
            raise serializers.ValidationError({"min_qty": "Minimum quantity must be at least 1"})
        if max_qty is not None and min_qty is not None and max_qty < min_qty:
            raise serializers.ValidationError({"max_qty": "Maximum quantity cannot be below the minimum quantity"})

        price = attrs.get('price', getattr(self.instance, 'price', None))
        if price is not None and price <= 0:
            raise serializers.ValidationError({"price": "Price must be greater than 0"})
        return attrs


class MOQSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = MOQSetting
        fields = ['id', 'scope', 'product', 'variant', 'min_qty', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate(self, attrs):
        scope = attrs.get('scope', getattr(self.instance, 'scope', None))
        product = attrs.get('product', getattr(self.instance, 'product', None))
        variant = attrs.get('variant', getattr(self.instance, 'variant', None))
        if scope == MOQSetting.SCOPE_VARIANT and not variant:
            raise serializers.ValidationError({"variant": "Variant is required for VARIANT scope"})
        if scope == MOQSetting.SCOPE_PRODUCT and not product:
            raise serializers.ValidationError({"product": "Product is required for PRODUCT scope"})
        if scope == MOQSetting.SCOPE_GLOBAL:
            attrs['product'] = None
            attrs['variant'] = None
        min_qty = attrs.get('min_qty', getattr(self.instance, 'min_qty', 1))
        if min_qty < 1:
            raise serializers.ValidationError({"min_qty": "Minimum order quantity must be at least 1"})
        return attrs


class AttributeValueSerializer(serializers.ModelSerializer):
    hex_code = serializers.RegexField(r'^#[0-9A-Fa-f]{6}$', required=False, allow_blank=True,
                                      error_messages={'invalid': 'Hex code must look like #RRGGBB'})

    class Meta:
        model = AttributeValue
        fields = ['id', 'attribute', 'value', 'hex_code', 'image', 'created_at']
        read_only_fields = ['attribute', 'created_at']
        extra_kwargs = {
            'value': {'error_messages': {'required': 'Value is required', 'blank': 'Value is required'}},
        }

    def validate_value(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Value is required")
        attribute = self.context.get('attribute') or getattr(self.instance, 'attribute', None)
        qs = AttributeValue.objects.filter(attribute=attribute, value__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("This value already exists for this attribute")
        return value


class AttributeSerializer(serializers.ModelSerializer):
    name = serializers.CharField(max_length=100, error_messages={
        'required': 'Name is required', 'blank': 'Name is required',
    })
    input_type = serializers.ChoiceField(choices=Attribute.INPUT_TYPE_CHOICES, error_messages={
        'required': 'Input type is required',
        'invalid_choice': 'Input type must be one of text, number, select, multiselect',
    })
    values = AttributeValueSerializer(many=True, read_only=True)

    class Meta:
        model = Attribute
        fields = ['id', 'name', 'input_type', 'values', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        qs = Attribute.objects.filter(name__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Attribute with this name already exists")
        return value


class VariantAttributeValueSerializer(serializers.ModelSerializer):
    attribute = serializers.CharField(source='attribute.name', read_only=True)

    class Meta:
        model = AttributeValue
        fields = ['id', 'attribute', 'value', 'hex_code', 'image']


class ProductVariantSerializer(serializers.ModelSerializer):
    """
    Admin variant serializer. `attribute_value_ids` assigns managed attribute
    values; the chosen values are also written into the `attributes` JSON as
    {attribute name: value} (a list for multiselect attributes).
    """
    sku = serializers.CharField(required=False, allow_blank=True, max_length=100)
    attribute_values = VariantAttributeValueSerializer(many=True, read_only=True)
    attribute_value_ids = serializers.PrimaryKeyRelatedField(
        source='attribute_values', many=True, write_only=True, required=False,
        queryset=AttributeValue.objects.select_related('attribute'),
    )

    class Meta:
        model = ProductVariant
        fields = ['id', 'product', 'name', 'sku', 'price', 'sale_price', 'quantity', 'attributes',
                  'attribute_values', 'attribute_value_ids', 'image', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_attribute_value_ids(self, values):
        seen = set()
        for value in values:
            attribute = value.attribute
            if attribute.input_type != Attribute.INPUT_MULTISELECT and attribute.id in seen:
                raise serializers.ValidationError(f"Only one value allowed for {attribute.name}")
            seen.add(attribute.id)
        return values

    def _sync_attributes(self, variant, values, previous=()):
        attributes = dict(variant.attributes or {})
        for name in set(previous) | {value.attribute.name for value in values}:
            attributes.pop(name, None)
        for value in values:
            attribute = value.attribute
            if attribute.input_type == Attribute.INPUT_MULTISELECT:
                attributes.setdefault(attribute.name, []).append(value.value)
            else:
                attributes[attribute.name] = value.value
        variant.attributes = attributes
        variant.save(update_fields=['attributes', 'updated_at'])

    def validate_sku(self, value):
        if not value:
            return value
        qs = ProductVariant.objects.filter(sku=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A variant with this SKU already exists")
        return value

    def validate_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Price must be greater than 0")
        return value

    def validate_sale_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Sale price cannot be negative")
        return value

    def validate_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError("Quantity cannot be negative")
        return value

    def create(self, validated_data):
        if not validated_data.get('sku'):
            validated_data['sku'] = generate_unique_sku(validated_data['product'].name)
        values = validated_data.get('attribute_values')
        variant = super().create(validated_data)
        if values:
            self._sync_attributes(variant, values)
        return variant

    def update(self, instance, validated_data):
        if 'sku' in validated_data and not validated_data['sku']:
            validated_data.pop('sku')
        values = validated_data.get('attribute_values')
        previous = [v.attribute.name for v in instance.attribute_values.select_related('attribute')]
        variant = super().update(instance, validated_data)
        if values is not None:
            self._sync_attributes(variant, values, previous)
        return variant


class ProductSerializer(serializers.ModelSerializer):
    """Admin product serializer"""
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=220)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    brand_name = serializers.CharField(source='brand.name', read_only=True, default=None)
    variants = ProductVariantSerializer(many=True, read_only=True)
    total_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'product_type', 'category', 'category_name', 'brand', 'brand_name',
                  'description', 'image', 'is_featured', 'is_active', 'variants', 'total_stock',
                  'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_total_stock(self, obj):
        return sum(v.quantity for v in obj.variants.all())

    def validate_slug(self, value):
        if not value:
            return value
        qs = Product.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A product with this slug already exists")
        return value


class CategoryRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug']


class BrandRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Brand
        fields = ['id', 'name', 'slug']


class ProductCardSerializer(serializers.ModelSerializer):
    """
    Public product card. Pass `flash_sales` (product id -> FlashSale) in the
    context so card prices reflect running sales.
    """
    category = CategoryRefSerializer(read_only=True)
    brand = BrandRefSerializer(read_only=True)
    variant_count = serializers.SerializerMethodField()
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = ['id', 'name', 'slug', 'image', 'product_type', 'is_featured', 'category', 'brand',
                  'variant_count', 'in_stock']

    def _active_variants(self, obj):
        return [v for v in obj.variants.all() if v.is_active]

    def get_variant_count(self, obj):
        return len(self._active_variants(obj))

    def get_in_stock(self, obj):
        return any(v.quantity > 0 for v in self._active_variants(obj))

    def to_representation(self, instance):
        from dfixkart.pricing.services import price_block_for_variant

        data = super().to_representation(instance)
        flash_sale = self.context.get('flash_sales', {}).get(instance.id)
        variant = instance.get_primary_variant()
        if variant is None:
            data.update({'price': None, 'original_price': None, 'discount_percentage': 0,
                         'flash_sale_active': False, 'flash_sale': None, 'default_variant_id': None})
            return data
        data.update(price_block_for_variant(variant, flash_sale))
        data['default_variant_id'] = variant.id
        return data


class PublicVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = ['id', 'name', 'sku', 'quantity', 'attributes', 'image']

    def to_representation(self, instance):
        from dfixkart.pricing.services import price_block_for_variant

        data = super().to_representation(instance)
        data['in_stock'] = instance.quantity > 0
        data['regular_price'] = instance.price
        data['sale_price'] = instance.sale_price
        data.update(price_block_for_variant(instance, self.context.get('flash_sale')))
        return data


class ProductDetailSerializer(ProductCardSerializer):
    variants = serializers.SerializerMethodField()
    pricing_slabs = serializers.SerializerMethodField()

    class Meta(ProductCardSerializer.Meta):
        fields = ProductCardSerializer.Meta.fields + ['description', 'variants', 'pricing_slabs', 'created_at']

    def get_variants(self, obj):
        flash_sale = self.context.get('flash_sales', {}).get(obj.id)
        return PublicVariantSerializer(
            self._active_variants(obj), many=True, context={'flash_sale': flash_sale}
        ).data

    def get_pricing_slabs(self, obj):
        return PricingSlabSerializer(obj.pricing_slabs.all(), many=True).data

    def to_representation(self, instance):
        from dfixkart.pricing.services import effective_moq

        data = super().to_representation(instance)
        variant = instance.get_primary_variant()
        data['moq'] = effective_moq(variant) if variant is not None else 1
        return data


class PriceVisibilitySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = PriceVisibilitySettings
        fields = ['hide_prices_for_guests', 'updated_at']
        read_only_fields = ['updated_at']


class LowStockVariantSerializer(serializers.ModelSerializer):
    product_id = serializers.IntegerField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    stock = serializers.IntegerField(source='quantity', read_only=True)
    image = serializers.SerializerMethodField()

    class Meta:
        model = ProductVariant
        fields = ['id', 'product_id', 'product_name', 'product_slug', 'name', 'stock', 'sku', 'attributes', 'image']

    def get_image(self, obj):
        # Variant image first, then the product image
        return obj.image or obj.product.image or None



class ProductSectionItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    product_image = serializers.CharField(source='product.image', read_only=True)
    product_is_active = serializers.BooleanField(source='product.is_active', read_only=True)

    class Meta:
        model = ProductSectionItem
        fields = ['id', 'product', 'product_name', 'product_slug', 'product_image', 'product_is_active',
                  'display_order', 'created_at']


class ProductSectionSerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False, allow_blank=True, max_length=220)
    items = ProductSectionItemSerializer(many=True, read_only=True)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = ProductSection
        fields = ['id', 'name', 'slug', 'description', 'icon', 'color', 'display_order', 'max_products',
                  'is_active', 'product_count', 'items', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'name': {'error_messages': {'required': 'Name is required', 'blank': 'Name is required'}},
        }

    def get_product_count(self, obj):
        return len(obj.items.all())

    def validate_slug(self, value):
        if not value:
            return value
        qs = ProductSection.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Section with this slug already exists")
        return value

    def validate_max_products(self, value):
        if value < 1:
            raise serializers.ValidationError("A section must allow at least 1 product")
        if self.instance is not None and value < self.instance.items.count():
            raise serializers.ValidationError("Section already holds more products than this limit")
        return value

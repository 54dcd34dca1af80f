from django.db import models
from decimal import Decimal


class Category(models.Model):
    """Product categories (two-level tree via parent)"""
    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    description = models.TextField(blank=True)
    image = models.URLField(blank=True)
    sort_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            from .utils import unique_slugify
            self.slug = unique_slugify(Category, self.name, instance=self)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['sort_order', 'name']


class Brand(models.Model):
    """Product brands"""
    name = models.CharField(max_length=200, unique=True)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    logo = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            from .utils import unique_slugify
            self.slug = unique_slugify(Brand, self.name, instance=self)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'brands'
        ordering = ['name']


class Product(models.Model):
    """Product master"""
    PRODUCT_TYPE_CHOICES = [
        ('regular', 'Regular'),
        ('new', 'New Arrival'),
        ('bestseller', 'Bestseller'),
        ('trending', 'Trending'),
    ]

    name = models.CharField(max_length=200, db_index=True)
    slug = models.SlugField(max_length=220, unique=True)
    product_type = models.CharField(max_length=20, choices=PRODUCT_TYPE_CHOICES, default='regular', db_index=True)
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    brand = models.ForeignKey(Brand, on_delete=models.SET_NULL, null=True, blank=True, related_name='products')
    description = models.TextField(blank=True)
    image = models.URLField(blank=True)
    is_featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            from .utils import unique_slugify
            self.slug = unique_slugify(Product, self.name, instance=self)
        super().save(*args, **kwargs)

    def get_primary_variant(self):
        """The cheapest active variant, used for card prices"""
        variants = [v for v in self.variants.all() if v.is_active]
        if not variants:
            return None
        return min(variants, key=lambda v: (v.price, v.id))

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']


class Attribute(models.Model):
    """Managed variant attribute such as Color or Size"""
    INPUT_TEXT = 'text'
    INPUT_NUMBER = 'number'
    INPUT_SELECT = 'select'
    INPUT_MULTISELECT = 'multiselect'
    INPUT_TYPE_CHOICES = [
        (INPUT_TEXT, 'Text'),
        (INPUT_NUMBER, 'Number'),
        (INPUT_SELECT, 'Select'),
        (INPUT_MULTISELECT, 'Multi Select'),
    ]

    name = models.CharField(max_length=100, unique=True)
    input_type = models.CharField(max_length=20, choices=INPUT_TYPE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'attributes'
        ordering = ['name']


class AttributeValue(models.Model):
    attribute = models.ForeignKey(Attribute, on_delete=models.CASCADE, related_name='values')
    value = models.CharField(max_length=100)
    hex_code = models.CharField(max_length=7, blank=True)  # swatch colour, e.g. "#FF0000"
    image = models.URLField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.attribute.name}: {self.value}"

    class Meta:
        db_table = 'attribute_values'
        ordering = ['attribute', 'value']
        unique_together = ['attribute', 'value']


class ProductVariant(models.Model):
    """Sellable variant (size, colour, pack) carrying price and stock"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='variants')
    name = models.CharField(max_length=200)  # e.g., "Red - Large"
    sku = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    sale_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    quantity = models.IntegerField(default=0)  # units in stock
    attributes = models.JSONField(default=dict, blank=True)  # e.g., {"color": "red", "size": "L"}
    attribute_values = models.ManyToManyField(AttributeValue, blank=True, related_name='variants')
    image = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    @property
    def has_valid_sale_price(self):
        return self.sale_price is not None and Decimal('0') < self.sale_price < self.price

    @property
    def current_price(self):
        """Sale price when it undercuts the regular price, else the regular price"""
        return self.sale_price if self.has_valid_sale_price else self.price

    class Meta:
        db_table = 'product_variants'
        ordering = ['product', 'price']


class PricingSlab(models.Model):
    """Quantity-range unit price for a product or one of its variants"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='pricing_slabs', null=True, blank=True)
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='pricing_slabs', null=True, blank=True)
    min_qty = models.PositiveIntegerField()
    max_qty = models.PositiveIntegerField(null=True, blank=True)  # open-ended when null
    price = models.DecimalField(max_digits=10, decimal_places=2)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        upper = self.max_qty if self.max_qty is not None else '+'
        return f"{self.min_qty}-{upper} @ {self.price}"

    def matches(self, quantity):
        if quantity < self.min_qty:
            return False
        return self.max_qty is None or quantity <= self.max_qty

    class Meta:
        db_table = 'pricing_slabs'
        ordering = ['-min_qty']


class MOQSetting(models.Model):
    """Minimum order quantity at variant, product or store-wide scope"""
    SCOPE_VARIANT = 'VARIANT'
    SCOPE_PRODUCT = 'PRODUCT'
    SCOPE_GLOBAL = 'GLOBAL'
    SCOPE_CHOICES = [
        (SCOPE_VARIANT, 'Variant'),
        (SCOPE_PRODUCT, 'Product'),
        (SCOPE_GLOBAL, 'Global'),
    ]

    scope = models.CharField(max_length=10, choices=SCOPE_CHOICES)
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='moq_settings', null=True, blank=True)
    variant = models.ForeignKey(ProductVariant, on_delete=models.CASCADE, related_name='moq_settings', null=True, blank=True)
    min_qty = models.PositiveIntegerField(default=1)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.scope} MOQ {self.min_qty}"

    class Meta:
        db_table = 'moq_settings'


class PriceVisibilitySettings(models.Model):
    """Singleton: whether guests see prices"""
    hide_prices_for_guests = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj

    class Meta:
        db_table = 'price_visibility_settings'
        verbose_name_plural = 'price visibility settings'


class ProductSection(models.Model):
    """Curated storefront shelf, e.g. New Arrivals or Best Sellers"""
    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=100, blank=True)
    color = models.CharField(max_length=20, blank=True)
    display_order = models.IntegerField(default=0)
    max_products = models.PositiveIntegerField(default=15)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            from .utils import unique_slugify
            self.slug = unique_slugify(ProductSection, self.name, instance=self)
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'product_sections'
        ordering = ['display_order', 'name']


class ProductSectionItem(models.Model):
    section = models.ForeignKey(ProductSection, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='section_items')
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.section.name} - {self.product.name}"

    class Meta:
        db_table = 'product_section_items'
        ordering = ['display_order', 'id']
        unique_together = ['section', 'product']

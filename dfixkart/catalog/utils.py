"""
Utility functions for catalog operations
"""
import uuid

from django.utils.text import slugify


def unique_slugify(model, value, instance=None, slug_field='slug'):
    """Slugify value and append a counter until no other row uses it"""
    base = slugify(value)[:200] or uuid.uuid4().hex[:8]
    slug = base
    counter = 2
    queryset = model.objects.all()
    if instance is not None and instance.pk:
        queryset = queryset.exclude(pk=instance.pk)
    while queryset.filter(**{slug_field: slug}).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def generate_unique_sku(product_name=None):
    """Generate a unique variant SKU"""
    from .models import ProductVariant

    prefix = product_name[:4].upper().replace(' ', '') if product_name else 'PRD'
    sku = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"
    while ProductVariant.objects.filter(sku=sku).exists():
        sku = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"
    return sku

import django_filters
from django.db.models import Q, Exists, OuterRef
from .models import Category, Product, ProductVariant


class ProductFilter(django_filters.FilterSet):
    """Storefront product filter using django-filter"""

    # Search across name, description, category and brand
    search = django_filters.CharFilter(method='filter_search', label='Search')

    # Category and brand accept either an id or a slug
    category = django_filters.CharFilter(method='filter_category', label='Category')
    brand = django_filters.CharFilter(method='filter_brand', label='Brand')

    # Price range over active variants
    min_price = django_filters.NumberFilter(method='filter_min_price', label='Min Price')
    max_price = django_filters.NumberFilter(method='filter_max_price', label='Max Price')

    featured = django_filters.BooleanFilter(field_name='is_featured')
    product_type = django_filters.CharFilter(method='filter_product_type', label='Product Type')

    class Meta:
        model = Product
        fields = ['search', 'category', 'brand', 'min_price', 'max_price', 'featured', 'product_type']

    def filter_search(self, queryset, name, value):
        """
        Multi-word search: every word must appear in one of the searchable
        fields. A `+` left over from form encoding is treated as a space.
        """
        search = (value or '').replace('+', ' ').strip()
        if not search:
            return queryset

        for word in search.split():
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(description__icontains=word) |
                Q(category__name__icontains=word) |
                Q(category__slug__icontains=word) |
                Q(brand__name__icontains=word)
            )
        return queryset

    def filter_category(self, queryset, name, value):
        """Matches the category and its direct children"""
        value = (value or '').strip()
        if not value:
            return queryset
        if value.isdigit():
            category = Category.objects.filter(pk=int(value)).first()
        else:
            category = Category.objects.filter(slug=value).first()
        if category is None:
            return queryset.none()
        return queryset.filter(Q(category=category) | Q(category__parent=category))

    def filter_brand(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        if value.isdigit():
            return queryset.filter(brand_id=int(value))
        return queryset.filter(brand__slug=value)

    def _variant_price_exists(self, lookup, value):
        return Exists(ProductVariant.objects.filter(
            product=OuterRef('pk'), is_active=True, **{f'price__{lookup}': value}
        ))

    def filter_min_price(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(self._variant_price_exists('gte', value))

    def filter_max_price(self, queryset, name, value):
        if value is None:
            return queryset
        return queryset.filter(self._variant_price_exists('lte', value))

    def filter_product_type(self, queryset, name, value):
        """Comma-separated list, e.g. `new,trending`"""
        types = [t.strip() for t in (value or '').split(',') if t.strip()]
        if not types:
            return queryset
        return queryset.filter(product_type__in=types)

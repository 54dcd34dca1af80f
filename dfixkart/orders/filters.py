import django_filters
from django.db.models import Q
from .models import Order


class OrderFilter(django_filters.FilterSet):
    """Admin order filter using django-filter"""
    status = django_filters.CharFilter(method='filter_status', label='Status')
    search = django_filters.CharFilter(method='filter_search', label='Search')
    date_from = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    date_to = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')
    user = django_filters.NumberFilter(field_name='user_id')

    class Meta:
        model = Order
        fields = ['status', 'search', 'date_from', 'date_to', 'user']

    def filter_status(self, queryset, name, value):
        if not value:
            return queryset
        return queryset.filter(status=value.strip().upper())

    def filter_search(self, queryset, name, value):
        search = (value or '').strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=search) |
            Q(user__email__icontains=search) |
            Q(user__username__icontains=search) |
            Q(user__phone__icontains=search)
        )

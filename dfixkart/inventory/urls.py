from django.urls import path
from .views import inventory_add, inventory_remove, inventory_history, inventory_alerts

urlpatterns = [
    path('admin/inventory/add/', inventory_add, name='inventory-add'),
    path('admin/inventory/remove/', inventory_remove, name='inventory-remove'),
    path('admin/inventory/history/', inventory_history, name='inventory-history'),
    path('admin/inventory-alerts/', inventory_alerts, name='inventory-alerts'),
]

"""
Tests for stock movements, inventory history and low stock alerts
"""
from django.test import TestCase
from rest_framework import status
from dfixkart.core.exceptions import ApiError
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.inventory.models import InventoryLog
from dfixkart.inventory.services import adjust_stock, low_stock_variants


class AdjustStockTests(TestCase):
    """adjust_stock service"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        _, self.variant = TestDataFactory.create_product_with_variant(quantity=10)

    def test_adds_stock_and_logs(self):
        log = adjust_stock(self.variant, 5, InventoryLog.REASON_RESTOCK, user=self.user, notes='Supplier delivery')
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 15)
        self.assertEqual(log.previous_quantity, 10)
        self.assertEqual(log.new_quantity, 15)
        self.assertEqual(log.quantity_change, 5)
        self.assertEqual(log.created_by, self.user)

    def test_removes_stock(self):
        adjust_stock(self.variant, -4, InventoryLog.REASON_DAMAGED)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 6)

    def test_updates_passed_instance(self):
        adjust_stock(self.variant, -3, InventoryLog.REASON_SALE)
        self.assertEqual(self.variant.quantity, 7)

    def test_cannot_go_negative(self):
        with self.assertRaises(ApiError) as ctx:
            adjust_stock(self.variant, -11, InventoryLog.REASON_SALE)
        self.assertEqual(ctx.exception.status_code, status.HTTP_400_BAD_REQUEST)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 10)
        self.assertFalse(InventoryLog.objects.exists())

    def test_low_stock_variants(self):
        _, low = TestDataFactory.create_product_with_variant(quantity=2)
        _, inactive = TestDataFactory.create_product_with_variant(quantity=0)
        inactive.is_active = False
        inactive.save()
        result = list(low_stock_variants(5))
        self.assertEqual(result, [low])


class InventoryAPITests(TestCase):
    """Admin inventory endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(permissions=['inventory:read', 'inventory:update'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.product, self.variant = TestDataFactory.create_product_with_variant(quantity=10)

    def test_add_stock(self):
        response = self.client.post('/api/v1/admin/inventory/add/', {
            'variant_id': self.variant.id,
            'quantity': 5,
            'notes': 'Restocked',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['new_quantity'], 15)
        self.assertEqual(response.data['data']['reason'], InventoryLog.REASON_RESTOCK)
        self.assertTrue(AuditLog.objects.filter(action='stock_adjust', object_id=str(self.variant.id)).exists())

    def test_remove_stock_with_reason(self):
        response = self.client.post('/api/v1/admin/inventory/remove/', {
            'variant_id': self.variant.id,
            'quantity': 3,
            'reason': InventoryLog.REASON_DAMAGED,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 7)
        self.assertEqual(response.data['data']['quantity_change'], -3)

    def test_remove_more_than_stock(self):
        response = self.client.post('/api/v1/admin/inventory/remove/', {
            'variant_id': self.variant.id,
            'quantity': 50,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Not enough stock available')

    def test_quantity_must_be_positive(self):
        response = self.client.post('/api/v1/admin/inventory/add/', {
            'variant_id': self.variant.id,
            'quantity': 0,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_variant(self):
        response = self.client.post('/api/v1/admin/inventory/add/', {'variant_id': 999999, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_history_filters(self):
        adjust_stock(self.variant, 5, InventoryLog.REASON_RESTOCK)
        adjust_stock(self.variant, -2, InventoryLog.REASON_SALE)
        _, other = TestDataFactory.create_product_with_variant()
        adjust_stock(other, 1, InventoryLog.REASON_RESTOCK)

        response = self.client.get('/api/v1/admin/inventory/history/', {'variant_id': self.variant.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['pagination']['total'], 2)

        response = self.client.get('/api/v1/admin/inventory/history/', {'reason': InventoryLog.REASON_SALE})
        self.assertEqual(response.data['data']['pagination']['total'], 1)

        response = self.client.get('/api/v1/admin/inventory/history/', {'product_id': self.product.id})
        self.assertEqual(response.data['data']['pagination']['total'], 2)

    def test_alerts_default_threshold(self):
        _, low = TestDataFactory.create_product_with_variant(quantity=1)
        response = self.client.get('/api/v1/admin/inventory-alerts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [v['id'] for v in response.data['data']]
        self.assertEqual(ids, [low.id])
        self.assertEqual(response.data['data'][0]['stock'], 1)

    def test_alerts_custom_threshold(self):
        response = self.client.get('/api/v1/admin/inventory-alerts/', {'threshold': 10})
        ids = [v['id'] for v in response.data['data']]
        self.assertIn(self.variant.id, ids)

    def test_alerts_invalid_threshold(self):
        response = self.client.get('/api/v1/admin/inventory-alerts/', {'threshold': 'lots'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/admin/inventory-alerts/', {'threshold': -1})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_requires_inventory_permission(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['inventory:read']))
        response = self.client.post('/api/v1/admin/inventory/add/', {'variant_id': self.variant.id, 'quantity': 1},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

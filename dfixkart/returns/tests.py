"""
Tests for return requests and their moderation
"""
from datetime import timedelta
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.inventory.models import InventoryLog
from dfixkart.orders.models import Order
from dfixkart.returns.models import ReturnSettings, ReturnRequest
from dfixkart.returns.views import days_since_delivery


class ReturnRequestAPITests(TestCase):
    """Shopper return requests"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        _, self.variant = TestDataFactory.create_product_with_variant(quantity=5)
        self.order = TestDataFactory.create_order(self.user, self.variant, quantity=2, status=Order.STATUS_DELIVERED,
                                                  delivered_at=timezone.now() - timedelta(days=2))
        self.item = self.order.items.get()

    def _create(self, **overrides):
        data = {
            'order_id': self.order.id,
            'order_item_id': self.item.id,
            'reason': 'Wrong Item Received',
        }
        data.update(overrides)
        return self.client.post('/api/v1/returns/', data, format='json')

    def test_reasons_and_settings(self):
        response = self.client.get('/api/v1/returns/reasons/')
        self.assertIn(ReturnRequest.REASON_OTHER, response.data['data'])
        self.assertEqual(len(response.data['data']), 7)

        response = self.client.get('/api/v1/returns/settings/')
        self.assertEqual(response.data['data'], {'is_enabled': True, 'return_window_days': 7})

    def test_create(self):
        response = self._create(images=['https://cdn.example.com/r1.jpg'])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['status'], ReturnRequest.STATUS_PENDING)
        self.assertEqual(response.data['data']['order_number'], self.order.order_number)

    def test_missing_field(self):
        response = self._create(reason='')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Order ID, order item ID and reason are required')

    def test_disabled(self):
        settings_obj = ReturnSettings.load()
        settings_obj.is_enabled = False
        settings_obj.save()
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_order_not_delivered(self):
        self.order.status = Order.STATUS_SHIPPED
        self.order.save()
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Order not found or not eligible for return')

    def test_other_users_order(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_item_from_another_order(self):
        other_order = TestDataFactory.create_order(self.user, self.variant, status=Order.STATUS_DELIVERED,
                                                   delivered_at=timezone.now())
        response = self._create(order_item_id=other_order.items.get().id)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Order item not found')

    def test_window_expired(self):
        self.order.delivered_at = timezone.now() - timedelta(days=8)
        self.order.save()
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Return window of 7 days has expired')

    def test_duplicate_open_request(self):
        self.assertEqual(self._create().status_code, status.HTTP_201_CREATED)
        response = self._create()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'A return request already exists for this item')

    def test_rejected_request_can_be_resubmitted(self):
        ReturnRequest.objects.create(user=self.user, order=self.order, order_item=self.item,
                                     reason='Quality Issues', status=ReturnRequest.STATUS_REJECTED)
        self.assertEqual(self._create().status_code, status.HTTP_201_CREATED)

    def test_invalid_reason(self):
        response = self._create(reason='Too expensive')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid return reason')

    def test_other_needs_custom_reason(self):
        response = self._create(reason=ReturnRequest.REASON_OTHER)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Please specify the reason for return')

        response = self._create(reason=ReturnRequest.REASON_OTHER, custom_reason='Ordered twice by mistake')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_my_returns(self):
        self._create()
        response = self.client.get('/api/v1/returns/my-returns/')
        self.assertEqual(response.data['data']['pagination']['total'], 1)
        response = self.client.get('/api/v1/returns/my-returns/', {'status': 'approved'})
        self.assertEqual(response.data['data']['returns'], [])

    def test_days_since_delivery_falls_back_to_updated_at(self):
        self.order.delivered_at = None
        self.assertEqual(days_since_delivery(self.order, now=self.order.updated_at + timedelta(days=3)), 3)


class AdminReturnAPITests(TestCase):
    """Admin moderation of return requests"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(permissions=['returns:read', 'returns:update'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.customer = TestDataFactory.create_user()
        _, self.variant = TestDataFactory.create_product_with_variant(quantity=5)
        self.order = TestDataFactory.create_order(self.customer, self.variant, quantity=2,
                                                  status=Order.STATUS_DELIVERED, delivered_at=timezone.now())
        self.return_request = ReturnRequest.objects.create(
            user=self.customer, order=self.order, order_item=self.order.items.get(), reason='Quality Issues'
        )

    def _set_status(self, new_status, **extra):
        data = {'status': new_status}
        data.update(extra)
        return self.client.patch(f'/api/v1/admin/returns/{self.return_request.id}/status/', data, format='json')

    def test_approve_restocks_once(self):
        response = self._set_status('approved', admin_notes='Pickup scheduled')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Return request approved')

        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 7)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_RETURN_APPROVED)
        self.return_request.refresh_from_db()
        self.assertEqual(self.return_request.processed_by, self.admin)
        self.assertEqual(self.return_request.admin_notes, 'Pickup scheduled')

        self._set_status('APPROVED')
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 7)
        self.assertEqual(InventoryLog.objects.filter(reason=InventoryLog.REASON_RETURN).count(), 1)
        self.assertEqual(AuditLog.objects.filter(action='return_status').count(), 2)

    def test_reject_keeps_stock(self):
        response = self._set_status('REJECTED')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 5)

    def test_invalid_status(self):
        response = self._set_status('LOST')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_stats_and_detail(self):
        response = self.client.get('/api/v1/admin/returns/', {'search': self.order.order_number})
        self.assertEqual(response.data['data']['pagination']['total'], 1)
        self.assertEqual(response.data['data']['returns'][0]['customer']['id'], self.customer.id)

        response = self.client.get('/api/v1/admin/returns/stats/')
        self.assertEqual(response.data['data']['total'], 1)
        self.assertEqual(response.data['data']['status_counts'][ReturnRequest.STATUS_PENDING], 1)

        response = self.client.get(f'/api/v1/admin/returns/{self.return_request.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_settings(self):
        response = self.client.patch('/api/v1/admin/returns/settings/', {'return_window_days': 14}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(ReturnSettings.load().return_window_days, 14)
        self.assertTrue(AuditLog.objects.filter(action='settings_update', model_name='ReturnSettings').exists())

    def test_read_only_admin(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['returns:read']))
        self.assertEqual(self._set_status('APPROVED').status_code, status.HTTP_403_FORBIDDEN)

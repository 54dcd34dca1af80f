"""
Tests for checkout, cancellation and the admin order lifecycle
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.cart.models import CartItem
from dfixkart.inventory.models import InventoryLog
from dfixkart.pricing.models import Coupon, UserCoupon
from dfixkart.referrals.models import Referral
from dfixkart.orders.models import Order, PaymentSettings, ShippingSettings, Tracking
from dfixkart.orders.services import can_transition, generate_order_number


class TransitionTests(TestCase):
    """Allowed status transitions"""

    def test_allowed(self):
        self.assertTrue(can_transition(Order.STATUS_PENDING, Order.STATUS_PROCESSING))
        self.assertTrue(can_transition(Order.STATUS_SHIPPED, Order.STATUS_DELIVERED))
        self.assertTrue(can_transition(Order.STATUS_DELIVERED, Order.STATUS_REFUNDED))

    def test_forbidden(self):
        self.assertFalse(can_transition(Order.STATUS_PENDING, Order.STATUS_DELIVERED))
        self.assertFalse(can_transition(Order.STATUS_DELIVERED, Order.STATUS_CANCELLED))
        self.assertFalse(can_transition(Order.STATUS_REFUNDED, Order.STATUS_PENDING))

    def test_order_number_format(self):
        number = generate_order_number()
        prefix, millis, suffix = number.split('-')
        self.assertEqual(prefix, 'ORD')
        self.assertTrue(millis.isdigit())
        self.assertEqual(len(suffix), 3)


class CheckoutAPITests(TestCase):
    """POST /orders/checkout/"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.address = TestDataFactory.create_address(self.user)
        self.product, self.variant = TestDataFactory.create_product_with_variant(price='300.00', quantity=10)

    def _checkout(self, **data):
        payload = {'shipping_address_id': self.address.id}
        payload.update(data)
        return self.client.post('/api/v1/orders/checkout/', payload, format='json')

    def test_places_order(self):
        shipping = ShippingSettings.load()
        shipping.shipping_charge = Decimal('50.00')
        shipping.free_shipping_threshold = Decimal('1000.00')
        shipping.save()
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=2)

        response = self._checkout(notes='Leave at the gate')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertTrue(data['order_number'].startswith('ORD-'))
        self.assertEqual(data['status'], Order.STATUS_PENDING)
        self.assertEqual(data['sub_total'], Decimal('600.00'))
        self.assertEqual(data['shipping_cost'], Decimal('50.00'))
        self.assertEqual(data['total'], Decimal('650.00'))
        self.assertEqual(data['shipping_address']['city'], 'Mumbai')
        self.assertEqual(len(data['items']), 1)

        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 8)
        self.assertTrue(InventoryLog.objects.filter(variant=self.variant, reason=InventoryLog.REASON_SALE).exists())
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())

    def test_applies_coupon_and_consumes_it(self):
        coupon = TestDataFactory.create_coupon(code='TEN', discount_value='10')
        UserCoupon.objects.create(user=self.user, coupon=coupon)
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=2)

        response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['discount'], Decimal('60.00'))
        self.assertEqual(response.data['data']['total'], Decimal('540.00'))
        self.assertEqual(response.data['data']['coupon_code'], 'TEN')

        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)
        self.assertFalse(UserCoupon.objects.filter(user=self.user, is_active=True).exists())

    def test_cod_charge_added(self):
        payment = PaymentSettings.load()
        payment.cod_charge = Decimal('25.00')
        payment.save()
        TestDataFactory.add_to_cart(self.user, self.variant)
        response = self._checkout()
        self.assertEqual(response.data['data']['total'], Decimal('325.00'))

    def test_flash_sale_counted(self):
        flash_sale = TestDataFactory.create_flash_sale(products=[self.product], discount='10')
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=3)
        response = self._checkout()
        self.assertEqual(response.data['data']['items'][0]['price'], Decimal('270.00'))
        flash_sale.refresh_from_db()
        self.assertEqual(flash_sale.sold_count, 3)

    def test_flash_sale_allowance_caps_discounted_units(self):
        flash_sale = TestDataFactory.create_flash_sale(products=[self.product], discount='10',
                                                       max_quantity=10, sold_count=9)
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=5)
        response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['sub_total'], Decimal('1470.00'))

        order = Order.objects.get(order_number=response.data['data']['order_number'])
        items = list(order.items.all())
        self.assertEqual([(i.quantity, i.price, i.flash_sale_id) for i in items],
                         [(1, Decimal('270.00'), flash_sale.id), (4, Decimal('300.00'), None)])
        flash_sale.refresh_from_db()
        self.assertEqual(flash_sale.sold_count, 10)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 5)

    def test_missing_address(self):
        TestDataFactory.add_to_cart(self.user, self.variant)
        response = self.client.post('/api/v1/orders/checkout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Shipping address is required')

    def test_someone_elses_address(self):
        other_address = TestDataFactory.create_address(TestDataFactory.create_user())
        TestDataFactory.add_to_cart(self.user, self.variant)
        response = self._checkout(shipping_address_id=other_address.id)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_empty_cart(self):
        response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Your cart is empty')
        self.assertFalse(Order.objects.exists())

    def test_cash_disabled(self):
        payment = PaymentSettings.load()
        payment.cash_enabled = False
        payment.save()
        TestDataFactory.add_to_cart(self.user, self.variant)
        response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cash on Delivery is not enabled')

    def test_insufficient_stock_rolls_back(self):
        _, scarce = TestDataFactory.create_product_with_variant(quantity=1)
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=2)
        CartItem.objects.create(user=self.user, variant=scarce, quantity=5)

        response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Order.objects.exists())
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 10)
        self.assertEqual(CartItem.objects.filter(user=self.user).count(), 2)

    def test_rewards_referrer_after_commit(self):
        referrer = TestDataFactory.create_user()
        referral = Referral.objects.create(referrer=referrer, referred=self.user, code='REF000001ABC')
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=2)

        with self.captureOnCommitCallbacks(execute=True):
            response = self._checkout()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        referral.refresh_from_db()
        self.assertEqual(referral.status, Referral.STATUS_COMPLETED)
        self.assertEqual(referral.reward_amount, Decimal('30.00'))
        self.assertEqual(referral.order.order_number, response.data['data']['order_number'])


class CustomerOrderAPITests(TestCase):
    """Order history, detail and cancellation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        _, self.variant = TestDataFactory.create_product_with_variant(quantity=10)

    def test_list_only_own_orders(self):
        mine = TestDataFactory.create_order(self.user, self.variant)
        TestDataFactory.create_order(TestDataFactory.create_user(), self.variant)
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o['order_number'] for o in response.data['data']['orders']], [mine.order_number])
        self.assertEqual(response.data['data']['pagination']['total'], 1)

    def test_detail_of_other_users_order(self):
        other = TestDataFactory.create_order(TestDataFactory.create_user(), self.variant)
        response = self.client.get(f'/api/v1/orders/{other.order_number}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_restocks(self):
        order = TestDataFactory.create_order(self.user, self.variant, quantity=3)
        response = self.client.post(f'/api/v1/orders/{order.order_number}/cancel/', {'reason': 'Changed my mind'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_CANCELLED)
        self.assertEqual(order.cancelled_by, Order.CANCELLED_BY_USER)
        self.assertIsNotNone(order.cancelled_at)
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 13)
        self.assertTrue(AuditLog.objects.filter(action='order_cancel', object_id=str(order.id)).exists())

    def test_cannot_cancel_shipped_order(self):
        order = TestDataFactory.create_order(self.user, self.variant, status=Order.STATUS_SHIPPED)
        response = self.client.post(f'/api/v1/orders/{order.order_number}/cancel/', format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'This order cannot be cancelled')


class AdminOrderAPITests(TestCase):
    """Admin order endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(permissions=['orders:read', 'orders:update', 'settings:update'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.customer = TestDataFactory.create_user(username='ravi', email='ravi@shop.in')
        _, self.variant = TestDataFactory.create_product_with_variant(quantity=10)
        self.order = TestDataFactory.create_order(self.customer, self.variant, quantity=2)

    def _set_status(self, new_status, **extra):
        payload = {'status': new_status}
        payload.update(extra)
        return self.client.patch(f'/api/v1/admin/orders/{self.order.id}/status/', payload, format='json')

    def test_list_search_and_status(self):
        TestDataFactory.create_order(TestDataFactory.create_user(), self.variant, status=Order.STATUS_SHIPPED)
        response = self.client.get('/api/v1/admin/orders/', {'search': 'ravi@'})
        self.assertEqual([o['id'] for o in response.data['data']['orders']], [self.order.id])
        self.assertEqual(response.data['data']['orders'][0]['customer']['username'], 'ravi')

        response = self.client.get('/api/v1/admin/orders/', {'status': 'shipped'})
        self.assertEqual(response.data['data']['pagination']['total'], 1)

    def test_stats(self):
        response = self.client.get('/api/v1/admin/orders/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['total_orders'], 1)
        self.assertEqual(response.data['data']['status_counts'][Order.STATUS_PENDING], 1)
        self.assertEqual(response.data['data']['status_counts'][Order.STATUS_DELIVERED], 0)

    def test_lifecycle_with_tracking(self):
        self.assertEqual(self._set_status('processing').status_code, status.HTTP_200_OK)
        response = self._set_status('SHIPPED', tracking_number='TRK123', carrier='BlueDart', note='Dispatched')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tracking = Tracking.objects.get(order=self.order)
        self.assertEqual(tracking.tracking_number, 'TRK123')
        self.assertEqual(tracking.carrier, 'BlueDart')

        response = self._set_status('DELIVERED')
        self.assertEqual(response.data['message'], 'Order status updated to DELIVERED')
        self.order.refresh_from_db()
        self.assertIsNotNone(self.order.delivered_at)
        self.assertEqual(self.order.notes, 'Dispatched')
        tracking.refresh_from_db()
        self.assertEqual([u['status'] for u in tracking.updates], ['SHIPPED', 'DELIVERED'])
        self.assertEqual(AuditLog.objects.filter(action='order_status', object_id=str(self.order.id)).count(), 3)

    def test_invalid_transition(self):
        response = self._set_status('DELIVERED')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot transition from PENDING to DELIVERED')

    def test_unknown_status(self):
        response = self._set_status('LOST')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_cancel_restocks(self):
        response = self._set_status('CANCELLED', cancel_reason='Out of area')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.cancelled_by, Order.CANCELLED_BY_ADMIN)
        self.assertEqual(self.order.cancel_reason, 'Out of area')
        self.variant.refresh_from_db()
        self.assertEqual(self.variant.quantity, 12)

    def test_read_only_admin_cannot_update(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['orders:read']))
        response = self._set_status('PROCESSING')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_payment_settings(self):
        response = self.client.patch('/api/v1/admin/payment-settings/', {'cod_charge': '30.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(PaymentSettings.load().cod_charge, Decimal('30.00'))
        response = self.client.patch('/api/v1/admin/payment-settings/', {'cod_charge': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_shipping_settings(self):
        response = self.client.put('/api/v1/admin/shipping-settings/', {
            'shipping_charge': '49.00',
            'free_shipping_threshold': '999.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(ShippingSettings.load().free_shipping_threshold, Decimal('999.00'))
        self.assertTrue(AuditLog.objects.filter(action='settings_update', model_name='ShippingSettings').exists())


class CouponCheckoutEdgeTests(TestCase):
    """Coupon problems discovered at checkout"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.address = TestDataFactory.create_address(self.user)
        _, self.variant = TestDataFactory.create_product_with_variant(price='100.00')

    def test_exhausted_coupon_blocks_checkout(self):
        coupon = TestDataFactory.create_coupon(code='ONCE', discount_type=Coupon.DISCOUNT_FIXED, discount_value='10',
                                               max_uses=1, used_count=1)
        UserCoupon.objects.create(user=self.user, coupon=coupon)
        TestDataFactory.add_to_cart(self.user, self.variant)
        response = self.client.post('/api/v1/orders/checkout/', {'shipping_address_id': self.address.id},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Coupon usage limit reached')
        self.assertFalse(Order.objects.exists())

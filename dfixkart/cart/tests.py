"""
Tests for cart pricing, shipping and the cart endpoints
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.catalog.models import MOQSetting
from dfixkart.orders.models import ShippingSettings
from dfixkart.cart.models import CartItem
from dfixkart.cart.services import build_cart, shipping_for


def set_shipping(charge, threshold='0.00'):
    settings_obj = ShippingSettings.load()
    settings_obj.shipping_charge = Decimal(charge)
    settings_obj.free_shipping_threshold = Decimal(threshold)
    settings_obj.save()


class ShippingTests(TestCase):
    """shipping_for"""

    def test_no_charge_is_free(self):
        self.assertEqual(shipping_for(Decimal('10.00')), (Decimal('0.00'), Decimal('0.00'), 'Free Shipping'))

    def test_below_threshold(self):
        set_shipping('50.00', '500.00')
        self.assertEqual(shipping_for(Decimal('499.99')),
                         (Decimal('50.00'), Decimal('500.00'), 'Add more for free shipping'))

    def test_at_threshold(self):
        set_shipping('50.00', '500.00')
        total, _, message = shipping_for(Decimal('500.00'))
        self.assertEqual(total, Decimal('0.00'))
        self.assertEqual(message, 'Eligible for Free Shipping')

    def test_flat_charge_without_threshold(self):
        set_shipping('40.00')
        self.assertEqual(shipping_for(Decimal('5000.00'))[0], Decimal('40.00'))


class BuildCartTests(TestCase):
    """build_cart totals"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_empty_cart_has_no_shipping(self):
        set_shipping('50.00')
        cart = build_cart(self.user)
        self.assertEqual(cart['items'], [])
        self.assertEqual(cart['shipping_total'], Decimal('0.00'))
        self.assertEqual(cart['grand_total'], Decimal('0.00'))

    def test_totals(self):
        set_shipping('50.00', '1000.00')
        _, first = TestDataFactory.create_product_with_variant(price='100.00', sale_price='80.00')
        _, second = TestDataFactory.create_product_with_variant(price='250.00')
        TestDataFactory.add_to_cart(self.user, first, quantity=2)
        TestDataFactory.add_to_cart(self.user, second, quantity=1)

        cart = build_cart(self.user)
        self.assertEqual(cart['subtotal'], Decimal('410.00'))
        self.assertEqual(cart['shipping_total'], Decimal('50.00'))
        self.assertEqual(cart['grand_total'], Decimal('460.00'))
        self.assertEqual(cart['item_count'], 2)
        self.assertEqual(cart['total_quantity'], 3)
        self.assertEqual(cart['free_shipping_threshold'], Decimal('1000.00'))

    def test_slab_and_flash_sale_lines(self):
        product, variant = TestDataFactory.create_product_with_variant(price='100.00')
        TestDataFactory.create_pricing_slab(variant=variant, min_qty=10, price='80.00')
        TestDataFactory.create_flash_sale(products=[product], discount='50')
        TestDataFactory.add_to_cart(self.user, variant, quantity=10)

        line = build_cart(self.user)['items'][0]
        self.assertEqual(line['unit_price'], Decimal('40.00'))
        self.assertEqual(line['subtotal'], Decimal('400.00'))
        self.assertEqual(line['price_source'], 'FLASH_SALE')
        self.assertEqual(line['flash_sale']['original_price'], Decimal('80.00'))

    def test_flash_sale_allowance_shared_across_lines(self):
        product, first = TestDataFactory.create_product_with_variant(price='100.00')
        second = TestDataFactory.create_variant(product, price='100.00')
        TestDataFactory.create_flash_sale(products=[product], discount='50', max_quantity=10, sold_count=7)
        TestDataFactory.add_to_cart(self.user, first, quantity=2)
        TestDataFactory.add_to_cart(self.user, second, quantity=2)

        cart = build_cart(self.user)
        first_line, second_line = cart['items']
        self.assertEqual(first_line['subtotal'], Decimal('100.00'))
        self.assertEqual(first_line['flash_sale']['units'], 2)
        # One discounted unit left for the second line
        self.assertEqual(second_line['subtotal'], Decimal('150.00'))
        self.assertEqual(second_line['flash_sale']['units'], 1)
        self.assertEqual(cart['subtotal'], Decimal('250.00'))

    def test_line_reports_stock(self):
        _, variant = TestDataFactory.create_product_with_variant(quantity=3)
        TestDataFactory.add_to_cart(self.user, variant, quantity=5)
        line = build_cart(self.user)['items'][0]
        self.assertFalse(line['in_stock'])
        self.assertEqual(line['available_quantity'], 3)


class CartAPITests(TestCase):
    """Cart endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product, self.variant = TestDataFactory.create_product_with_variant(price='120.00', quantity=10)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/cart/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_add_merges_quantity(self):
        self.client.post('/api/v1/cart/add/', {'product_variant_id': self.variant.id, 'quantity': 2}, format='json')
        response = self.client.post('/api/v1/cart/add/', {'product_variant_id': self.variant.id, 'quantity': 3},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(CartItem.objects.get(user=self.user).quantity, 5)
        self.assertEqual(response.data['data']['subtotal'], Decimal('600.00'))

    def test_add_more_than_stock(self):
        response = self.client.post('/api/v1/cart/add/', {'product_variant_id': self.variant.id, 'quantity': 11},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Not enough stock available')
        self.assertFalse(CartItem.objects.exists())

    def test_add_below_moq(self):
        TestDataFactory.create_moq(scope=MOQSetting.SCOPE_PRODUCT, min_qty=4, product=self.product)
        response = self.client.post('/api/v1/cart/add/', {'product_variant_id': self.variant.id, 'quantity': 2},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Minimum order quantity is 4 units')

    def test_add_inactive_variant(self):
        _, inactive = TestDataFactory.create_product_with_variant(is_active=False)
        response = self.client.post('/api/v1/cart/add/', {'product_variant_id': inactive.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_invalid_quantity(self):
        response = self.client.post('/api/v1/cart/add/', {'product_variant_id': self.variant.id, 'quantity': 0},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('quantity', response.data['errors'])

    def test_update_quantity(self):
        item = TestDataFactory.add_to_cart(self.user, self.variant, quantity=1)
        response = self.client.patch(f'/api/v1/cart/update/{item.id}/', {'quantity': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        item.refresh_from_db()
        self.assertEqual(item.quantity, 4)

    def test_cannot_touch_another_users_item(self):
        other = TestDataFactory.create_user()
        item = TestDataFactory.add_to_cart(other, self.variant)
        response = self.client.patch(f'/api/v1/cart/update/{item.id}/', {'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/cart/remove/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_remove_and_clear(self):
        item = TestDataFactory.add_to_cart(self.user, self.variant)
        _, other_variant = TestDataFactory.create_product_with_variant()
        TestDataFactory.add_to_cart(self.user, other_variant)

        response = self.client.delete(f'/api/v1/cart/remove/{item.id}/')
        self.assertEqual(response.data['data']['item_count'], 1)

        response = self.client.delete('/api/v1/cart/clear/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['items'], [])
        self.assertFalse(CartItem.objects.filter(user=self.user).exists())

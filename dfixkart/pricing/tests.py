"""
Test suite for price resolution, flash sales and coupons
"""
import time
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from dfixkart.core.exceptions import ApiError
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.catalog.models import MOQSetting
from dfixkart.pricing.models import FlashSale, Coupon, UserCoupon
from dfixkart.pricing.serializers import time_remaining
from dfixkart.pricing.services import (
    resolve_display_price, calculate_discount_percentage, flash_sale_price, unit_price_for, effective_moq,
    flash_sales_for_products, flash_sale_cache_ttl, get_valid_coupon, compute_coupon_discount,
    PRICE_SOURCE_SLAB, PRICE_SOURCE_SALE, PRICE_SOURCE_REGULAR, PRICE_SOURCE_FLASH_SALE,
)


class DisplayPriceTests(TestCase):
    """resolve_display_price and friends"""

    def test_regular_only(self):
        result = resolve_display_price(Decimal('100.00'))
        self.assertEqual(result['price'], Decimal('100.00'))
        self.assertIsNone(result['original_price'])
        self.assertFalse(result['flash_sale_active'])

    def test_flash_sale_price_used_when_active_is_true(self):
        flash = {'is_active': True, 'flash_sale_price': Decimal('70.00'), 'discount_percentage': Decimal('30')}
        result = resolve_display_price(Decimal('100.00'), Decimal('90.00'), flash)
        self.assertEqual(result['price'], Decimal('70.00'))
        self.assertEqual(result['original_price'], Decimal('90.00'))
        self.assertTrue(result['flash_sale_active'])

    def test_flash_sale_ignored_unless_active_is_true(self):
        flash = {'is_active': 'yes', 'flash_sale_price': Decimal('70.00'), 'discount_percentage': Decimal('30')}
        result = resolve_display_price(Decimal('100.00'), Decimal('90.00'), flash)
        self.assertEqual(result['price'], Decimal('90.00'))
        self.assertFalse(result['flash_sale_active'])

    def test_zero_sale_price_ignored(self):
        result = resolve_display_price(Decimal('100.00'), Decimal('0'))
        self.assertEqual(result['price'], Decimal('100.00'))

    def test_discount_percentage_rounded(self):
        self.assertEqual(calculate_discount_percentage(Decimal('300'), Decimal('200')), 33)
        self.assertEqual(calculate_discount_percentage(Decimal('100'), Decimal('100')), 0)

    def test_flash_sale_price_never_negative(self):
        self.assertEqual(flash_sale_price(Decimal('99.99'), Decimal('10')), Decimal('89.99'))
        self.assertEqual(flash_sale_price(Decimal('50.00'), Decimal('100')), Decimal('0.00'))


class UnitPriceTests(TestCase):
    """Cart unit price precedence: slab > sale > regular, flash sale on top"""

    def setUp(self):
        self.product, self.variant = TestDataFactory.create_product_with_variant(price='100.00', sale_price='90.00')

    def test_sale_price_without_slab(self):
        price, source, _ = unit_price_for(self.variant, 1)
        self.assertEqual(price, Decimal('90.00'))
        self.assertEqual(source, PRICE_SOURCE_SALE)

    def test_regular_price(self):
        _, variant = TestDataFactory.create_product_with_variant(price='100.00')
        price, source, _ = unit_price_for(variant, 1)
        self.assertEqual(price, Decimal('100.00'))
        self.assertEqual(source, PRICE_SOURCE_REGULAR)

    def test_matching_slab_beats_sale_price(self):
        TestDataFactory.create_pricing_slab(variant=self.variant, min_qty=10, max_qty=49, price='80.00')
        TestDataFactory.create_pricing_slab(variant=self.variant, min_qty=50, price='70.00')
        self.assertEqual(unit_price_for(self.variant, 12)[:2], (Decimal('80.00'), PRICE_SOURCE_SLAB))
        self.assertEqual(unit_price_for(self.variant, 60)[0], Decimal('70.00'))
        self.assertEqual(unit_price_for(self.variant, 5)[1], PRICE_SOURCE_SALE)

    def test_variant_slab_beats_product_slab(self):
        TestDataFactory.create_pricing_slab(product=self.product, min_qty=10, price='85.00')
        TestDataFactory.create_pricing_slab(variant=self.variant, min_qty=10, price='75.00')
        self.assertEqual(unit_price_for(self.variant, 10)[0], Decimal('75.00'))

    def test_product_slab_used_without_variant_slab(self):
        TestDataFactory.create_pricing_slab(product=self.product, min_qty=10, price='85.00')
        self.assertEqual(unit_price_for(self.variant, 10)[0], Decimal('85.00'))

    def test_flash_sale_discounts_slab_price(self):
        TestDataFactory.create_pricing_slab(variant=self.variant, min_qty=10, price='80.00')
        flash_sale = TestDataFactory.create_flash_sale(products=[self.product], discount='25')
        price, source, discount = unit_price_for(self.variant, 10, flash_sale)
        self.assertEqual(price, Decimal('60.00'))
        self.assertEqual(source, PRICE_SOURCE_FLASH_SALE)
        self.assertEqual(discount, Decimal('25'))


class MOQTests(TestCase):
    """effective_moq precedence"""

    def setUp(self):
        self.product, self.variant = TestDataFactory.create_product_with_variant()

    def test_default_is_one(self):
        self.assertEqual(effective_moq(self.variant), 1)

    def test_variant_beats_product_beats_global(self):
        TestDataFactory.create_moq(scope=MOQSetting.SCOPE_GLOBAL, min_qty=2)
        self.assertEqual(effective_moq(self.variant), 2)
        TestDataFactory.create_moq(scope=MOQSetting.SCOPE_PRODUCT, min_qty=5, product=self.product)
        self.assertEqual(effective_moq(self.variant), 5)
        TestDataFactory.create_moq(scope=MOQSetting.SCOPE_VARIANT, min_qty=3, variant=self.variant)
        self.assertEqual(effective_moq(self.variant), 3)

    def test_inactive_setting_ignored(self):
        TestDataFactory.create_moq(scope=MOQSetting.SCOPE_GLOBAL, min_qty=10, is_active=False)
        self.assertEqual(effective_moq(self.variant), 1)


class FlashSaleLookupTests(TestCase):
    """Which flash sale applies to a product"""

    def setUp(self):
        self.product, _ = TestDataFactory.create_product_with_variant()

    def test_highest_discount_wins(self):
        TestDataFactory.create_flash_sale(products=[self.product], discount='10')
        best = TestDataFactory.create_flash_sale(products=[self.product], discount='30')
        self.assertEqual(flash_sales_for_products([self.product.id])[self.product.id], best)

    def test_expired_and_future_sales_ignored(self):
        now = timezone.now()
        TestDataFactory.create_flash_sale(products=[self.product], start_time=now - timedelta(days=2),
                                          end_time=now - timedelta(days=1))
        TestDataFactory.create_flash_sale(products=[self.product], start_time=now + timedelta(days=1),
                                          end_time=now + timedelta(days=2))
        self.assertEqual(flash_sales_for_products([self.product.id]), {})

    def test_sold_out_sale_is_not_running(self):
        sale = TestDataFactory.create_flash_sale(products=[self.product], max_quantity=5, sold_count=5)
        self.assertTrue(sale.is_sold_out)
        self.assertFalse(sale.is_running())
        self.assertEqual(flash_sales_for_products([self.product.id]), {})

    def test_time_remaining(self):
        now = timezone.now()
        remaining = time_remaining(now + timedelta(hours=2, minutes=30), now=now)
        self.assertEqual(remaining, {'hours': 2, 'minutes': 30, 'total_seconds': 9000})
        self.assertEqual(time_remaining(now - timedelta(minutes=1), now=now)['total_seconds'], 0)


class FlashSaleCacheTests(TestCase):
    """Cached storefront payloads never outlive a flash sale start or end"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.product, _ = TestDataFactory.create_product_with_variant(price='100.00')

    def test_ttl_without_sales(self):
        self.assertEqual(flash_sale_cache_ttl(300), 300)

    def test_ttl_capped_at_sale_end(self):
        now = timezone.now()
        TestDataFactory.create_flash_sale(products=[self.product], end_time=now + timedelta(seconds=30))
        self.assertEqual(flash_sale_cache_ttl(300, now=now), 30)

    def test_ttl_capped_at_sale_start(self):
        now = timezone.now()
        TestDataFactory.create_flash_sale(products=[self.product], start_time=now + timedelta(seconds=45),
                                          end_time=now + timedelta(hours=1))
        self.assertEqual(flash_sale_cache_ttl(300, now=now), 45)

    def test_ttl_ignores_inactive_and_finished_sales(self):
        now = timezone.now()
        TestDataFactory.create_flash_sale(products=[self.product], is_active=False,
                                          end_time=now + timedelta(seconds=10))
        TestDataFactory.create_flash_sale(products=[self.product], start_time=now - timedelta(days=2),
                                          end_time=now - timedelta(days=1))
        self.assertEqual(flash_sale_cache_ttl(300, now=now), 300)

    def test_cached_prices_fall_back_when_sale_ends(self):
        TestDataFactory.create_flash_sale(products=[self.product], discount='50',
                                          end_time=timezone.now() + timedelta(seconds=2))
        detail_url = f'/api/v1/public/products/{self.product.slug}/'

        detail = self.client.get(detail_url).data['data']
        self.assertTrue(detail['flash_sale_active'])
        self.assertEqual(detail['price'], Decimal('50.00'))
        self.assertTrue(self.client.get('/api/v1/public/products/').data['data']['products'][0]['flash_sale_active'])
        self.assertEqual(len(self.client.get('/api/v1/public/flash-sales/').data['data']), 1)

        time.sleep(2.5)

        detail = self.client.get(detail_url).data['data']
        self.assertFalse(detail['flash_sale_active'])
        self.assertEqual(detail['price'], Decimal('100.00'))
        self.assertFalse(self.client.get('/api/v1/public/products/').data['data']['products'][0]['flash_sale_active'])
        self.assertEqual(self.client.get('/api/v1/public/flash-sales/').data['data'], [])

    def test_ended_sale_dropped_from_cached_flash_sale_list(self):
        now = timezone.now()
        TestDataFactory.create_flash_sale(products=[self.product], end_time=now + timedelta(hours=1))
        self.assertEqual(len(self.client.get('/api/v1/public/flash-sales/').data['data']), 1)

        with mock.patch('django.utils.timezone.now', return_value=now + timedelta(hours=2)):
            response = self.client.get('/api/v1/public/flash-sales/')
        self.assertEqual(response.data['data'], [])


class PublicFlashSaleAPITests(TestCase):
    """GET /public/flash-sales/"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.product, _ = TestDataFactory.create_product_with_variant(price='200.00')

    def test_lists_running_sales_with_products(self):
        sale = TestDataFactory.create_flash_sale(products=[self.product], discount='50')
        TestDataFactory.create_flash_sale(products=[self.product], is_active=False)

        response = self.client.get('/api/v1/public/flash-sales/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['id'] for s in response.data['data']], [sale.id])
        entry = response.data['data'][0]
        self.assertEqual(entry['products'][0]['flash_sale_price'], Decimal('100.00'))
        self.assertIn('time_remaining', entry)


class AdminFlashSaleAPITests(TestCase):
    """Admin flash sale CRUD"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin(permissions=['flash_sales:*'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.product = TestDataFactory.create_product()
        self.now = timezone.now()

    def _payload(self, **overrides):
        data = {
            'name': 'Diwali Blast',
            'start_time': (self.now - timedelta(hours=1)).isoformat(),
            'end_time': (self.now + timedelta(hours=3)).isoformat(),
            'discount_percentage': '15.00',
            'product_ids': [self.product.id],
        }
        data.update(overrides)
        return data

    def test_create(self):
        response = self.client.post('/api/v1/admin/flash-sales/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([p['id'] for p in response.data['data']['products']], [self.product.id])
        self.assertTrue(response.data['data']['is_running'])

    def test_end_before_start_rejected(self):
        payload = self._payload(end_time=(self.now - timedelta(hours=2)).isoformat())
        response = self.client.post('/api/v1/admin/flash-sales/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_discount_over_100_rejected(self):
        response = self.client.post('/api/v1/admin/flash-sales/', self._payload(discount_percentage='120'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_product_rejected(self):
        response = self.client.post('/api/v1/admin/flash-sales/', self._payload(product_ids=[999999]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('product_ids', response.data['errors'])

    def test_update_keeps_products_when_not_sent(self):
        sale = TestDataFactory.create_flash_sale(products=[self.product])
        response = self.client.patch(f'/api/v1/admin/flash-sales/{sale.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sale.sale_products.count(), 1)

    def test_toggle_status(self):
        sale = TestDataFactory.create_flash_sale(products=[self.product])
        response = self.client.patch(f'/api/v1/admin/flash-sales/{sale.id}/toggle-status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        sale.refresh_from_db()
        self.assertFalse(sale.is_active)
        self.assertTrue(AuditLog.objects.filter(action='flash_sale_toggle', object_id=str(sale.id)).exists())

    def test_delete(self):
        sale = TestDataFactory.create_flash_sale(products=[self.product])
        response = self.client.delete(f'/api/v1/admin/flash-sales/{sale.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(FlashSale.objects.filter(pk=sale.pk).exists())


class CouponServiceTests(TestCase):
    """get_valid_coupon and compute_coupon_discount"""

    def setUp(self):
        self.category = TestDataFactory.create_category()
        self.product = TestDataFactory.create_product(category=self.category)
        self.other = TestDataFactory.create_product()

    def test_unknown_code(self):
        with self.assertRaises(ApiError) as ctx:
            get_valid_coupon('NOPE')
        self.assertEqual(ctx.exception.status_code, status.HTTP_404_NOT_FOUND)

    def test_code_is_case_insensitive(self):
        coupon = TestDataFactory.create_coupon(code='SAVE10')
        self.assertEqual(get_valid_coupon(' save10 '), coupon)

    def test_expired_and_exhausted(self):
        TestDataFactory.create_coupon(code='OLD', end_date=timezone.now() - timedelta(days=1))
        TestDataFactory.create_coupon(code='USED', max_uses=3, used_count=3)
        for code in ('OLD', 'USED'):
            with self.assertRaises(ApiError) as ctx:
                get_valid_coupon(code)
            self.assertEqual(ctx.exception.status_code, status.HTTP_400_BAD_REQUEST)

    def test_percentage_discount(self):
        coupon = TestDataFactory.create_coupon(discount_value='10')
        discount, applicable = compute_coupon_discount(coupon, [(self.product, Decimal('500.00'))])
        self.assertEqual(discount, Decimal('50.00'))
        self.assertEqual(applicable, Decimal('500.00'))

    def test_percentage_capped_at_90(self):
        coupon = TestDataFactory.create_coupon(discount_value='100')
        discount, _ = compute_coupon_discount(coupon, [(self.product, Decimal('200.00'))])
        self.assertEqual(discount, Decimal('180.00'))

    def test_fixed_discount_capped(self):
        coupon = TestDataFactory.create_coupon(discount_type=Coupon.DISCOUNT_FIXED, discount_value='500')
        discount, _ = compute_coupon_discount(coupon, [(self.product, Decimal('100.00'))])
        self.assertEqual(discount, Decimal('90.00'))

    def test_category_restriction(self):
        coupon = TestDataFactory.create_coupon(discount_value='10')
        coupon.applicable_categories.add(self.category)
        discount, applicable = compute_coupon_discount(coupon, [
            (self.product, Decimal('300.00')),
            (self.other, Decimal('700.00')),
        ])
        self.assertEqual(applicable, Decimal('300.00'))
        self.assertEqual(discount, Decimal('30.00'))

    def test_not_applicable(self):
        coupon = TestDataFactory.create_coupon()
        coupon.applicable_products.add(self.product)
        with self.assertRaises(ApiError):
            compute_coupon_discount(coupon, [(self.other, Decimal('100.00'))])

    def test_min_order_amount(self):
        coupon = TestDataFactory.create_coupon(min_order_amount='1000')
        with self.assertRaises(ApiError) as ctx:
            compute_coupon_discount(coupon, [(self.product, Decimal('999.00'))])
        self.assertIn('Minimum order amount', ctx.exception.message)


class CouponAPITests(TestCase):
    """Shopper coupon endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        _, self.variant = TestDataFactory.create_product_with_variant(price='250.00')
        self.coupon = TestDataFactory.create_coupon(code='WELCOME10', discount_value='10')

    def test_verify_with_empty_cart(self):
        response = self.client.post('/api/v1/coupons/verify/', {'code': 'WELCOME10'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Your cart is empty')

    def test_verify_previews_discount(self):
        TestDataFactory.add_to_cart(self.user, self.variant, quantity=2)
        response = self.client.post('/api/v1/coupons/verify/', {'code': 'welcome10'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['discount'], Decimal('50.00'))
        self.assertEqual(response.data['data']['total_after_discount'], Decimal('450.00'))
        self.assertFalse(UserCoupon.objects.exists())

    def test_apply_replaces_previous_coupon(self):
        TestDataFactory.add_to_cart(self.user, self.variant)
        other = TestDataFactory.create_coupon(code='FLAT20', discount_type=Coupon.DISCOUNT_FIXED, discount_value='20')
        self.client.post('/api/v1/coupons/apply/', {'code': 'WELCOME10'}, format='json')
        response = self.client.post('/api/v1/coupons/apply/', {'code': 'FLAT20'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        active = UserCoupon.objects.filter(user=self.user, is_active=True)
        self.assertEqual([uc.coupon for uc in active], [other])

    def test_remove(self):
        TestDataFactory.add_to_cart(self.user, self.variant)
        self.client.post('/api/v1/coupons/apply/', {'code': 'WELCOME10'}, format='json')
        response = self.client.post('/api/v1/coupons/remove/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(UserCoupon.objects.filter(user=self.user, is_active=True).exists())

    def test_remove_without_coupon(self):
        response = self.client.delete('/api/v1/coupons/remove/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AdminCouponAPITests(TestCase):
    """Admin coupon CRUD"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(permissions=['coupons:*'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_uppercases_code(self):
        response = self.client.post('/api/v1/admin/coupons/', {
            'code': 'summer25',
            'discount_type': Coupon.DISCOUNT_PERCENTAGE,
            'discount_value': '25',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['code'], 'SUMMER25')

    def test_duplicate_code_rejected(self):
        TestDataFactory.create_coupon(code='DUP')
        response = self.client.post('/api/v1/admin/coupons/', {
            'code': 'dup',
            'discount_type': Coupon.DISCOUNT_FIXED,
            'discount_value': '25',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_percentage_over_100_rejected(self):
        response = self.client.post('/api/v1/admin/coupons/', {
            'code': 'TOOMUCH',
            'discount_type': Coupon.DISCOUNT_PERCENTAGE,
            'discount_value': '150',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list(self):
        TestDataFactory.create_coupon(code='LISTME')
        response = self.client.get('/api/v1/admin/coupons/', {'search': 'list'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['code'] for c in response.data['data']['coupons']], ['LISTME'])

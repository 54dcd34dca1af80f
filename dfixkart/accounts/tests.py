"""
Tests for addresses, the wishlist and product reviews
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.orders.models import Order
from dfixkart.accounts.models import Address, WishlistItem, Review

ADDRESS_DATA = {
    'full_name': 'Meera Iyer',
    'phone': '9000000001',
    'street': '4 Temple Street',
    'city': 'Chennai',
    'state': 'Tamil Nadu',
    'postal_code': '600001',
    'country': 'India',
}


class AddressAPITests(TestCase):
    """Address book with a single default"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_first_address_becomes_default(self):
        response = self.client.post('/api/v1/users/addresses/', ADDRESS_DATA, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['data']['is_default'])

    def test_missing_fields(self):
        data = dict(ADDRESS_DATA, city='  ')
        response = self.client.post('/api/v1/users/addresses/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'All address fields are required')

    def test_new_default_clears_old(self):
        first = TestDataFactory.create_address(self.user)
        response = self.client.post('/api/v1/users/addresses/', dict(ADDRESS_DATA, is_default=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        first.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertEqual(Address.objects.filter(user=self.user, is_default=True).count(), 1)

    def test_set_default(self):
        first = TestDataFactory.create_address(self.user)
        second = TestDataFactory.create_address(self.user, is_default=False, city='Pune')
        response = self.client.post(f'/api/v1/users/addresses/{second.id}/default/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(second.is_default)

    def test_deleting_default_promotes_another(self):
        first = TestDataFactory.create_address(self.user)
        second = TestDataFactory.create_address(self.user, is_default=False, city='Pune')
        response = self.client.delete(f'/api/v1/users/addresses/{first.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        second.refresh_from_db()
        self.assertTrue(second.is_default)

    def test_update(self):
        address = TestDataFactory.create_address(self.user)
        response = self.client.patch(f'/api/v1/users/addresses/{address.id}/', {'city': 'Nagpur'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        address.refresh_from_db()
        self.assertEqual(address.city, 'Nagpur')
        self.assertTrue(address.is_default)

    def test_other_users_address(self):
        address = TestDataFactory.create_address(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/users/addresses/{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class WishlistAPITests(TestCase):
    """Wishlist add/list/remove"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product, _ = TestDataFactory.create_product_with_variant(price='500.00', sale_price='450.00')

    def test_add_list_remove(self):
        response = self.client.post('/api/v1/users/wishlist/', {'product_id': self.product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item_id = response.data['data']['id']

        response = self.client.get('/api/v1/users/wishlist/')
        self.assertEqual(len(response.data['data']), 1)
        product = response.data['data'][0]['product']
        self.assertEqual(product['id'], self.product.id)
        self.assertEqual(product['price'], Decimal('450.00'))
        self.assertEqual(product['original_price'], Decimal('500.00'))

        response = self.client.delete(f'/api/v1/users/wishlist/{item_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(WishlistItem.objects.filter(user=self.user).exists())

    def test_duplicate_is_conflict(self):
        WishlistItem.objects.create(user=self.user, product=self.product)
        response = self.client.post('/api/v1/users/wishlist/', {'product_id': self.product.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_unknown_product(self):
        response = self.client.post('/api/v1/users/wishlist/', {'product_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ReviewAPITests(TestCase):
    """Shopper reviews and moderation"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product, self.variant = TestDataFactory.create_product_with_variant()

    def _review(self, rating=4):
        return self.client.post('/api/v1/users/reviews/', {
            'product_id': self.product.id,
            'rating': rating,
            'title': 'Solid',
            'comment': 'Works as described',
        }, format='json')

    def test_requires_delivered_purchase(self):
        TestDataFactory.create_order(self.user, self.variant, status=Order.STATUS_PENDING)
        response = self._review()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_submit_pending_review(self):
        TestDataFactory.create_order(self.user, self.variant, status=Order.STATUS_DELIVERED)
        response = self._review()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['status'], Review.STATUS_PENDING)

        self.assertEqual(self._review().status_code, status.HTTP_409_CONFLICT)

    def test_rating_range(self):
        TestDataFactory.create_order(self.user, self.variant, status=Order.STATUS_DELIVERED)
        response = self._review(rating=6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_public_list_shows_only_approved(self):
        other = TestDataFactory.create_user()
        Review.objects.create(user=self.user, product=self.product, rating=5, status=Review.STATUS_APPROVED)
        Review.objects.create(user=other, product=self.product, rating=1, status=Review.STATUS_PENDING)

        self.client.logout()
        response = self.client.get(f'/api/v1/public/products/{self.product.slug}/reviews/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['review_count'], 1)
        self.assertEqual(response.data['data']['average_rating'], 5)

    def test_edit_returns_to_moderation(self):
        review = Review.objects.create(user=self.user, product=self.product, rating=3, status=Review.STATUS_APPROVED)
        response = self.client.patch(f'/api/v1/users/reviews/{review.id}/', {'rating': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        review.refresh_from_db()
        self.assertEqual(review.rating, 5)
        self.assertEqual(review.status, Review.STATUS_PENDING)

    def test_admin_moderation(self):
        review = Review.objects.create(user=self.user, product=self.product, rating=2)
        admin = TestDataFactory.create_admin(permissions=['reviews:*'])
        self.client.authenticate_user(admin)

        response = self.client.patch(f'/api/v1/admin/reviews/{review.id}/status/', {'status': 'approved'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Review approved')
        self.assertTrue(AuditLog.objects.filter(action='review_status', object_id=str(review.id)).exists())

        response = self.client.post(f'/api/v1/admin/reviews/{review.id}/reply/', {'reply': 'Thanks!'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        review.refresh_from_db()
        self.assertEqual(review.admin_reply, 'Thanks!')
        self.assertIsNotNone(review.replied_at)

        response = self.client.get('/api/v1/admin/reviews/stats/')
        self.assertEqual(response.data['data']['approved'], 1)
        self.assertEqual(response.data['data']['rating_distribution']['2'], 1)

        response = self.client.delete(f'/api/v1/admin/reviews/{review.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Review.objects.exists())

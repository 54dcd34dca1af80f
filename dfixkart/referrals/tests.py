"""
Tests for referral codes and rewards
"""
from decimal import Decimal
from django.test import TestCase, override_settings
from rest_framework import status
from dfixkart.core.models import AuditLog
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from dfixkart.referrals.models import Referral
from dfixkart.referrals.services import calculate_reward, ensure_referral_code, process_referral_reward


@override_settings(REFERRAL_MIN_ORDER_AMOUNT='500', REFERRAL_REWARD_PERCENT='5', REFERRAL_MAX_REWARD='1000')
class RewardTests(TestCase):
    """Reward amount and referral completion"""

    def test_below_minimum(self):
        self.assertIsNone(calculate_reward(Decimal('499.99')))

    def test_percentage(self):
        self.assertEqual(calculate_reward(Decimal('500.00')), Decimal('25.00'))
        self.assertEqual(calculate_reward('1234.50'), Decimal('61.73'))

    def test_capped(self):
        self.assertEqual(calculate_reward(Decimal('50000.00')), Decimal('1000.00'))

    def test_code_format_and_stability(self):
        user = TestDataFactory.create_user()
        code = ensure_referral_code(user)
        self.assertTrue(code.startswith('REF'))
        self.assertEqual(len(code), 12)
        self.assertEqual(code[3:9], str(user.pk).zfill(6)[-6:])
        self.assertEqual(ensure_referral_code(user), code)

    def test_process_completes_pending_referral(self):
        referrer = TestDataFactory.create_user()
        buyer = TestDataFactory.create_user()
        referral = Referral.objects.create(referrer=referrer, referred=buyer, code='REF000001XYZ')
        order = TestDataFactory.create_order(buyer, price='800.00')

        result = process_referral_reward(buyer, order)
        self.assertEqual(result, referral)
        referral.refresh_from_db()
        self.assertEqual(referral.status, Referral.STATUS_COMPLETED)
        self.assertEqual(referral.reward_amount, Decimal('40.00'))
        self.assertEqual(referral.order, order)
        self.assertIsNotNone(referral.completed_at)

    def test_small_order_leaves_referral_pending(self):
        buyer = TestDataFactory.create_user()
        referral = Referral.objects.create(referrer=TestDataFactory.create_user(), referred=buyer, code='REF000001XYZ')
        order = TestDataFactory.create_order(buyer, price='100.00')

        self.assertIsNone(process_referral_reward(buyer, order))
        referral.refresh_from_db()
        self.assertEqual(referral.status, Referral.STATUS_PENDING)

    def test_no_referral(self):
        buyer = TestDataFactory.create_user()
        self.assertIsNone(process_referral_reward(buyer, TestDataFactory.create_order(buyer, price='900.00')))


class ReferralAPITests(TestCase):
    """Shopper referral endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.referrer = TestDataFactory.create_user()
        self.code = ensure_referral_code(self.referrer)

    def test_my_code(self):
        response = self.client.get('/api/v1/referrals/my-code/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(response.data['data']['referral_code'], self.user.referral_code)

    def test_apply(self):
        response = self.client.post('/api/v1/referrals/apply/', {'code': self.code.lower()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        referral = Referral.objects.get(referred=self.user)
        self.assertEqual(referral.referrer, self.referrer)
        self.assertEqual(referral.status, Referral.STATUS_PENDING)

    def test_apply_twice(self):
        self.client.post('/api/v1/referrals/apply/', {'code': self.code}, format='json')
        other_code = ensure_referral_code(TestDataFactory.create_user())
        response = self.client.post('/api/v1/referrals/apply/', {'code': other_code}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_apply_own_code(self):
        own = ensure_referral_code(self.user)
        response = self.client.post('/api/v1/referrals/apply/', {'code': own}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'You cannot use your own referral code')

    def test_apply_unknown_code(self):
        response = self.client.post('/api/v1/referrals/apply/', {'code': 'REFNOPE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stats(self):
        Referral.objects.create(referrer=self.user, referred=TestDataFactory.create_user(), code='X',
                                status=Referral.STATUS_COMPLETED, reward_amount=Decimal('25.00'))
        Referral.objects.create(referrer=self.user, referred=TestDataFactory.create_user(), code='X')
        response = self.client.get('/api/v1/referrals/stats/')
        data = response.data['data']
        self.assertEqual(data['total_referrals'], 2)
        self.assertEqual(data['completed_referrals'], 1)
        self.assertEqual(data['pending_referrals'], 1)
        self.assertEqual(data['total_earnings'], Decimal('25.00'))


class AdminReferralAPITests(TestCase):
    """Admin referral endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(permissions=['referrals:read', 'referrals:update'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.referrer = TestDataFactory.create_user(username='topseller')
        self.referral = Referral.objects.create(referrer=self.referrer, referred=TestDataFactory.create_user(),
                                                code='REF000009AAA')

    def test_list_and_stats(self):
        response = self.client.get('/api/v1/admin/referrals/', {'search': 'topseller'})
        self.assertEqual(response.data['data']['pagination']['total'], 1)

        response = self.client.get('/api/v1/admin/referrals/stats/')
        self.assertEqual(response.data['data']['total_referrals'], 1)
        self.assertEqual(response.data['data']['status_breakdown'], {Referral.STATUS_PENDING: 1})

    def test_update_status(self):
        response = self.client.patch(f'/api/v1/admin/referrals/{self.referral.id}/status/', {
            'status': 'completed',
            'reward_amount': '50.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.referral.refresh_from_db()
        self.assertEqual(self.referral.status, Referral.STATUS_COMPLETED)
        self.assertEqual(self.referral.reward_amount, Decimal('50.00'))
        self.assertIsNotNone(self.referral.completed_at)
        self.assertTrue(AuditLog.objects.filter(action='referral_status').exists())

        response = self.client.get('/api/v1/admin/referrals/stats/')
        self.assertEqual(response.data['data']['top_referrers'][0]['user']['username'], 'topseller')

    def test_negative_reward_rejected(self):
        response = self.client.patch(f'/api/v1/admin/referrals/{self.referral.id}/status/', {
            'reward_amount': '-5',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

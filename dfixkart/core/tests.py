"""
Tests for auth, admin permissions, pagination and the response envelope
"""
import json
from decimal import Decimal

from django.contrib.auth.tokens import default_token_generator
from django.core.cache import cache
from django.test import TestCase, RequestFactory
from django.utils.encoding import force_bytes
from django.utils.http import urlsafe_base64_encode
from rest_framework import status
from rest_framework.request import Request
from rest_framework_simplejwt.tokens import RefreshToken
from dfixkart.core.exceptions import server_error
from dfixkart.core.models import Role, AuditLog, Setting
from dfixkart.core.pagination import paginate_queryset
from dfixkart.core.test_utils import TestDataFactory, AuthenticatedAPIClient, TEST_PASSWORD
from dfixkart.catalog.models import Category


class AuthAPITests(TestCase):
    """Registration, login and profile endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_returns_user_and_tokens(self):
        data = {
            'username': 'newshopper',
            'email': 'NewShopper@Example.com',
            'password': TEST_PASSWORD,
            'password_confirm': TEST_PASSWORD,
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['user']['email'], 'newshopper@example.com')
        self.assertIn('access', response.data['data'])
        self.assertIn('refresh', response.data['data'])

    def test_register_password_mismatch(self):
        data = {
            'username': 'mismatch',
            'email': 'mismatch@example.com',
            'password': TEST_PASSWORD,
            'password_confirm': 'Different0ne!',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['message'], 'Validation failed')
        self.assertIn('password', response.data['errors'])

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(username='first', email='taken@example.com')
        data = {
            'username': 'second',
            'email': 'taken@example.com',
            'password': TEST_PASSWORD,
            'password_confirm': TEST_PASSWORD,
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['errors'])

    def test_login(self):
        TestDataFactory.create_user(username='loginuser')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'loginuser',
            'password': TEST_PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['user']['username'], 'loginuser')
        self.assertIn('access', response.data['data'])

    def test_login_wrong_password(self):
        TestDataFactory.create_user(username='loginuser')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'loginuser',
            'password': 'wrong-password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_reports_admin_permissions(self):
        admin = TestDataFactory.create_admin(permissions=['orders:read'])
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['is_admin'])
        self.assertEqual(response.data['data']['permissions'], ['orders:read'])

    def test_update_profile(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.patch('/api/v1/auth/me/', {'first_name': 'Asha'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.first_name, 'Asha')

    def test_delete_account_deactivates(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.delete('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertFalse(user.is_active)

    def test_change_password(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': TEST_PASSWORD,
            'new_password': 'An0therStr0ng!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password('An0therStr0ng!'))

    def test_forgot_password_same_response_for_unknown_email(self):
        response = self.client.post('/api/v1/auth/forgot-password/', {'email': 'nobody@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def _reset_payload(self, user, new_password='Br4ndNewPass!'):
        return {
            'uid': urlsafe_base64_encode(force_bytes(user.pk)),
            'token': default_token_generator.make_token(user),
            'new_password': new_password,
        }

    def test_reset_password(self):
        user = TestDataFactory.create_user()
        response = self.client.post('/api/v1/auth/reset-password/', self._reset_payload(user), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password('Br4ndNewPass!'))

    def test_reset_password_bad_token(self):
        user = TestDataFactory.create_user()
        data = self._reset_payload(user)
        data['token'] = 'not-a-token'
        response = self.client.post('/api/v1/auth/reset-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Invalid or expired reset token')
        user.refresh_from_db()
        self.assertTrue(user.check_password(TEST_PASSWORD))

    def test_reset_password_used_token(self):
        user = TestDataFactory.create_user()
        data = self._reset_payload(user)
        self.client.post('/api/v1/auth/reset-password/', data, format='json')
        data['new_password'] = 'Y3tAn0therPass!'
        response = self.client.post('/api/v1/auth/reset-password/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reset_password_weak_password(self):
        user = TestDataFactory.create_user()
        response = self.client.post('/api/v1/auth/reset-password/', self._reset_payload(user, '123'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('new_password', response.data['errors'])
        user.refresh_from_db()
        self.assertTrue(user.check_password(TEST_PASSWORD))

    def test_logout_blacklists_refresh_token(self):
        user = TestDataFactory.create_user()
        refresh = str(RefreshToken.for_user(user))
        self.client.authenticate_user(user)

        response = self.client.post('/api/v1/auth/logout/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_logout_requires_refresh_token(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/auth/logout/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh(self):
        user = TestDataFactory.create_user()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': str(RefreshToken.for_user(user))},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data['data'])

    def test_refresh_rejected_for_disabled_user(self):
        user = TestDataFactory.create_user()
        refresh = str(RefreshToken.for_user(user))
        user.is_active = False
        user.save()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'User account is disabled.')

    def test_refresh_rejected_for_deleted_user(self):
        user = TestDataFactory.create_user()
        refresh = str(RefreshToken.for_user(user))
        user.delete()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class PermissionTests(TestCase):
    """Role grants on admin routes"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_role_grants(self):
        role = TestDataFactory.create_role(permissions=['orders:read', 'products:*'])
        self.assertTrue(role.grants('orders', 'read'))
        self.assertFalse(role.grants('orders', 'update'))
        self.assertTrue(role.grants('products', 'delete'))

    def test_super_admin_grants_everything(self):
        role = Role.objects.create(name=Role.SUPER_ADMIN)
        self.assertTrue(role.grants('settings', 'update'))

    def test_shopper_gets_403_on_admin_route(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Insufficient permissions')

    def test_anonymous_gets_401_on_admin_route(self):
        response = self.client.get('/api/v1/admin/users/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_method_maps_to_action(self):
        admin = TestDataFactory.create_admin(permissions=['categories:read'])
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/admin/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/admin/categories/', {'name': 'Tools'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Category.objects.filter(name='Tools').exists())

    def test_admin_can_deactivate_user_with_audit(self):
        admin = TestDataFactory.create_admin()
        shopper = TestDataFactory.create_user()
        self.client.authenticate_user(admin)
        response = self.client.delete(f'/api/v1/admin/users/{shopper.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        shopper.refresh_from_db()
        self.assertFalse(shopper.is_active)
        self.assertTrue(AuditLog.objects.filter(action='delete', model_name='User', object_id=str(shopper.id)).exists())

    def test_audit_logs_limited_to_admin_roles(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['settings:read']))
        response = self.client.get('/api/v1/admin/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/admin/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_settings_read_grant_cannot_create(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['settings:read']))
        response = self.client.get('/api/v1/admin/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/admin/settings/', {'key': 'store_name', 'value': 'D-Fix'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Setting.objects.filter(key='store_name').exists())

    def test_settings_update_grant_cannot_delete(self):
        setting = Setting.objects.create(key='store_name', value='D-Fix')
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['settings:update']))
        response = self.client.patch(f'/api/v1/admin/settings/{setting.id}/', {'value': 'D-Fix Kart'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'/api/v1/admin/settings/{setting.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Setting.objects.filter(pk=setting.pk).exists())

    def test_roles_update_grant_cannot_delete(self):
        role = TestDataFactory.create_role(permissions=['orders:read'])
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['roles:update']))
        response = self.client.delete(f'/api/v1/admin/roles/{role.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Role.objects.filter(pk=role.pk).exists())

    def test_roles_read_grant_cannot_create(self):
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['roles:read']))
        response = self.client.post('/api/v1/admin/roles/', {'name': 'PACKER', 'permissions': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_users_read_grant_sees_detail_only(self):
        shopper = TestDataFactory.create_user()
        self.client.authenticate_user(TestDataFactory.create_admin(permissions=['users:read']))
        response = self.client.get(f'/api/v1/admin/users/{shopper.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'/api/v1/admin/users/{shopper.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        shopper.refresh_from_db()
        self.assertTrue(shopper.is_active)

    def test_admin_cannot_deactivate_self(self):
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.delete(f'/api/v1/admin/users/{admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PaginationTests(TestCase):
    """Offset/limit pagination metadata"""

    def setUp(self):
        self.factory = RequestFactory()
        for i in range(7):
            TestDataFactory.create_category(name=f'Cat {i}')

    def _request(self, query=''):
        return Request(self.factory.get(f'/x/{query}'))

    def test_pages_is_ceil_of_total_over_limit(self):
        items, pagination = paginate_queryset(Category.objects.all(), self._request('?limit=3'))
        self.assertEqual(len(items), 3)
        self.assertEqual(pagination, {'total': 7, 'page': 1, 'limit': 3, 'pages': 3})

    def test_last_page_is_partial(self):
        items, pagination = paginate_queryset(Category.objects.all(), self._request('?limit=3&page=3'))
        self.assertEqual(len(items), 1)
        self.assertEqual(pagination['page'], 3)

    def test_invalid_params_fall_back_to_defaults(self):
        items, pagination = paginate_queryset(Category.objects.all(), self._request('?limit=abc&page=-2'), default_limit=5)
        self.assertEqual(pagination['limit'], 5)
        self.assertEqual(pagination['page'], 1)
        self.assertEqual(len(items), 5)

    def test_empty_queryset_has_zero_pages(self):
        _, pagination = paginate_queryset(Category.objects.none(), self._request())
        self.assertEqual(pagination['pages'], 0)


class CacheSignalTests(TestCase):
    """Catalog writes clear the cached storefront payloads"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()

    def test_new_category_visible_after_cached_list(self):
        TestDataFactory.create_category(name='Hand Tools')
        self.client.get('/api/v1/public/categories/')

        TestDataFactory.create_category(name='Power Tools')
        response = self.client.get('/api/v1/public/categories/')
        names = [item['name'] for item in response.data['data']]
        self.assertIn('Power Tools', names)

    def test_variant_price_change_visible_after_cached_detail(self):
        product, variant = TestDataFactory.create_product_with_variant(price='100.00')
        self.client.get(f'/api/v1/public/products/{product.slug}/')

        variant.price = Decimal('80.00')
        variant.save()
        response = self.client.get(f'/api/v1/public/products/{product.slug}/')
        self.assertEqual(response.data['data']['price'], Decimal('80.00'))


class EnvelopeTests(TestCase):
    """Shared JSON envelope on success and failure"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_health(self):
        response = self.client.get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['status'], 'OK')

    def test_unknown_route_returns_json_404(self):
        response = self.client.get('/api/v1/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['message'], 'Route not found')

    def test_missing_object_uses_envelope(self):
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/admin/categories/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])
        self.assertIsNone(response.data['data'])

    def test_server_error_logs_traceback(self):
        request = RequestFactory().get('/api/v1/orders/')
        with self.assertLogs('dfixkart.core.exceptions', level='ERROR') as logs:
            try:
                raise RuntimeError('database went away')
            except RuntimeError:
                response = server_error(request)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(json.loads(response.content)['message'], 'Internal server error')
        self.assertIsNotNone(logs.records[0].exc_info)

    def test_requests_are_logged(self):
        with self.assertLogs('dfixkart.core.middleware', level='INFO') as logs:
            self.client.get('/api/v1/health/')
        self.assertIn('GET /api/v1/health/ 200', logs.output[0])

    def test_not_found_logged_as_warning(self):
        with self.assertLogs('dfixkart.core.middleware', level='WARNING') as logs:
            self.client.get('/api/v1/does-not-exist/')
        self.assertTrue(logs.output[0].startswith('WARNING:dfixkart.core.middleware:404 GET /api/v1/does-not-exist/'))

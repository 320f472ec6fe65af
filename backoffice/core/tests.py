"""
Test suite for accounts, login and the audit log
"""
from django.test import TestCase
from rest_framework import status

from backoffice.core.models import User, AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.utils import create_audit_log


class LoginTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch(name='Main Street')
        self.user = TestDataFactory.create_user(username='counter1', role='branch', branch=self.branch)
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_with_role_and_branch(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'counter1', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['role'], 'branch')
        self.assertEqual(response.data['branch_id'], self.branch.id)

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'counter1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid credentials')

    def test_deactivated_user_cannot_login(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/v1/auth/login/', {'username': 'counter1', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_me_reports_role_flags(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_branch'])
        self.assertFalse(response.data['can_access_finance'])

    def test_refresh_issues_new_access_token(self):
        login = self.client.post('/api/v1/auth/login/', {'username': 'counter1', 'password': 'testpass123'}, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_for_deleted_user_is_invalid(self):
        login = self.client.post('/api/v1/auth/login/', {'username': 'counter1', 'password': 'testpass123'}, format='json')
        self.user.delete()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(User.objects.filter(username='counter1').exists())


class UserManagementTests(TestCase):

    def setUp(self):
        self.superadmin = TestDataFactory.create_user(role='superadmin')
        self.branch = TestDataFactory.create_branch()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.superadmin)

    def test_register_branch_user_requires_branch(self):
        data = {'username': 'newcounter', 'password': 'Bakery#2024x', 'role': 'branch'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('branch', response.data)

        data['branch'] = self.branch.id
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['branch_name'], self.branch.name)

    def test_register_duplicate_username(self):
        TestDataFactory.create_user(username='taken')
        data = {'username': 'taken', 'password': 'Bakery#2024x', 'role': 'admin'}
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_superadmin_cannot_list_users(self):
        admin = TestDataFactory.create_user(role='admin')
        self.client.authenticate_user(admin)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_toggle_user_status(self):
        user = TestDataFactory.create_user(role='accounts')
        response = self.client.put(f'/api/v1/users/{user.id}/toggle/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertFalse(user.is_active)

    def test_changing_role_away_from_branch_clears_branch(self):
        user = TestDataFactory.create_user(role='branch', branch=self.branch)
        response = self.client.put(f'/api/v1/users/{user.id}/', {'role': 'admin'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertIsNone(user.branch)


class AuditLogTests(TestCase):

    def setUp(self):
        self.superadmin = TestDataFactory.create_user(role='superadmin')
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()

    def test_create_audit_log_without_request(self):
        log = create_audit_log(action='update', model_name='Order', object_id=5, changes={'status': 'delivered'}, user=self.admin)
        self.assertEqual(log.object_id, '5')
        self.assertEqual(log.user, self.admin)

    def test_non_superadmin_sees_only_own_logs(self):
        create_audit_log(action='create', model_name='Branch', object_id=1, user=self.superadmin)
        create_audit_log(action='create', model_name='Branch', object_id=2, user=self.admin)

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        self.client.authenticate_user(self.superadmin)
        response = self.client.get('/api/v1/audit-logs/?model=Branch')
        self.assertEqual(len(response.data), 2)

    def test_audit_log_bad_date(self):
        self.client.authenticate_user(self.superadmin)
        response = self.client.get('/api/v1/audit-logs/?date_from=19-10-2026')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_audit_log_detail_forbidden_for_other_user(self):
        log = AuditLog.objects.create(user=self.superadmin, action='create', model_name='Branch', object_id='1')
        self.client.authenticate_user(self.admin)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

"""
Test suite for branches
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.locations.models import Branch


class BranchAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.superadmin = TestDataFactory.create_user(role='superadmin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.superadmin)

    def test_create_branch(self):
        data = {'branch_code': 'B001', 'name': 'Main Street', 'address': '1 Main Street'}
        response = self.client.post('/api/v1/branches/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Branch.objects.filter(branch_code='B001').exists())

    def test_duplicate_branch_code(self):
        TestDataFactory.create_branch(branch_code='B001')
        response = self.client.post('/api/v1/branches/', {'branch_code': 'b001', 'name': 'Other'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Branch ID already exists')

    def test_admin_cannot_create_branch(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = self.client.post('/api/v1/branches/', {'branch_code': 'B009', 'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_branch_user_sees_only_own_branch(self):
        own = TestDataFactory.create_branch()
        TestDataFactory.create_branch()
        self.client.authenticate_user(TestDataFactory.create_user(role='branch', branch=own))
        response = self.client.get('/api/v1/branches/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([b['id'] for b in response.data], [own.id])

    def test_list_reflects_updates(self):
        branch = TestDataFactory.create_branch(name='Old Name')
        self.client.get('/api/v1/branches/')
        response = self.client.patch(f'/api/v1/branches/{branch.id}/', {'name': 'New Name'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        names = [b['name'] for b in self.client.get('/api/v1/branches/').data]
        self.assertIn('New Name', names)
        self.assertNotIn('Old Name', names)

    def test_cannot_delete_branch_with_orders(self):
        branch = TestDataFactory.create_branch()
        TestDataFactory.create_order(branch)
        response = self.client.delete(f'/api/v1/branches/{branch.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Branch.objects.filter(pk=branch.pk).exists())

    def test_public_list_needs_no_auth(self):
        TestDataFactory.create_branch(name='Open Branch')
        self.client.logout()
        response = self.client.get('/api/v1/branches/public/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(set(response.data[0].keys()), {'id', 'name'})

"""
Test suite for employees and daily till assignments
"""
import shutil
import tempfile
from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.staff.models import Employee, DailyAssignment, next_employee_id

MEDIA_ROOT = tempfile.mkdtemp()


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class EmployeeAPITests(TestCase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _payload(self, **overrides):
        data = {
            'name': 'Ravi Kumar',
            'phone_number': '9876543210',
            'address': '12 Baker Street',
            'team': 'Waiter',
            'photo': TestDataFactory.image_file(),
        }
        data.update(overrides)
        return data

    def test_create_employee_assigns_id(self):
        response = self.client.post('/api/v1/employees/', self._payload(), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['employee']['employee_id'], 'E001')
        self.assertEqual(response.data['employee']['status'], 'Active')

    def test_photo_is_required(self):
        data = self._payload()
        data.pop('photo')
        response = self.client.post('/api/v1/employees/', data, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Photo is required')

    def test_phone_must_be_ten_digits(self):
        response = self.client.post('/api/v1/employees/', self._payload(phone_number='12345'), format='multipart')
        self.assertEqual(response.data['error'], 'Phone number must be exactly 10 digits')

    def test_duplicate_phone(self):
        TestDataFactory.create_employee(phone_number='9876543210')
        response = self.client.post('/api/v1/employees/', self._payload(), format='multipart')
        self.assertEqual(response.data['error'], 'Phone number already exists')

    def test_branch_user_can_list_but_not_create(self):
        TestDataFactory.create_employee(team='Chef')
        TestDataFactory.create_employee(team='Waiter')
        self.client.authenticate_user(TestDataFactory.create_user(role='branch', branch=TestDataFactory.create_branch()))
        response = self.client.get('/api/v1/employees/?team=Waiter')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({e['team'] for e in response.data}, {'Waiter'})
        response = self.client.post('/api/v1/employees/', self._payload(), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_partial_update_keeps_photo(self):
        employee = TestDataFactory.create_employee()
        response = self.client.patch(f'/api/v1/employees/{employee.id}/', {'address': 'New Road'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        employee.refresh_from_db()
        self.assertEqual(employee.address, 'New Road')
        self.assertEqual(employee.photo.name, 'employees/test.png')

    def test_toggle_status(self):
        employee = TestDataFactory.create_employee()
        response = self.client.put(f'/api/v1/employees/{employee.id}/status/')
        self.assertEqual(response.data['message'], 'Employee deactivated successfully')
        response = self.client.put(f'/api/v1/employees/{employee.id}/status/')
        self.assertEqual(response.data['message'], 'Employee activated successfully')

    def test_delete_blocked_by_recent_billing(self):
        waiter = TestDataFactory.create_employee()
        TestDataFactory.create_order(TestDataFactory.create_branch(), waiter=waiter)
        response = self.client.delete(f'/api/v1/employees/{waiter.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete employee with billing activity within the last 30 days')

    def test_delete_allowed_after_activity_window(self):
        waiter = TestDataFactory.create_employee()
        TestDataFactory.create_order(
            TestDataFactory.create_branch(), waiter=waiter, created_at=timezone.now() - timedelta(days=45),
        )
        response = self.client.delete(f'/api/v1/employees/{waiter.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Employee.objects.filter(pk=waiter.pk).exists())


class EmployeeIdTests(TestCase):

    def test_next_id_continues_from_highest(self):
        self.assertEqual(next_employee_id(), 'E001')
        first = TestDataFactory.create_employee()
        second = TestDataFactory.create_employee()
        self.assertEqual((first.employee_id, second.employee_id), ('E001', 'E002'))
        first.delete()
        self.assertEqual(next_employee_id(), 'E003')


class DailyAssignmentTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        self.branch_user = TestDataFactory.create_user(role='branch', branch=self.branch)
        self.cashier = TestDataFactory.create_employee(team='Cashier')
        self.manager = TestDataFactory.create_employee(team='Manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.branch_user)

    def test_save_and_read_today(self):
        url = f'/api/v1/daily-assignments/{self.branch.id}/'
        response = self.client.post(url, {'cashier': self.cashier.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(url, {'manager': self.manager.id}, format='json')
        self.assertEqual(DailyAssignment.objects.count(), 1)

        response = self.client.get(f'{url}today/')
        self.assertEqual(response.data['cashier']['id'], self.cashier.id)
        self.assertEqual(response.data['manager']['id'], self.manager.id)

    def test_today_is_empty_without_assignment(self):
        response = self.client.get(f'/api/v1/daily-assignments/{self.branch.id}/today/')
        self.assertEqual(response.data, {})

    def test_branch_user_limited_to_own_branch(self):
        other = TestDataFactory.create_branch()
        response = self.client.post(f'/api/v1/daily-assignments/{other.id}/', {'cashier': self.cashier.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_by_date(self):
        day = timezone.localdate() - timedelta(days=1)
        DailyAssignment.objects.create(branch=self.branch, date=day, cashier=self.cashier)
        response = self.client.get(f'/api/v1/daily-assignments/{self.branch.id}/by-date/{day.isoformat()}/')
        self.assertEqual(response.data['cashier']['name'], self.cashier.name)

        response = self.client.get(f'/api/v1/daily-assignments/{self.branch.id}/by-date/yesterday/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid date format. Use YYYY-MM-DD')

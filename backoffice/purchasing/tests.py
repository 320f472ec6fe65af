"""
Test suite for dealer bills: validation, uploads, updates and part payments
"""
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from backoffice.core.exceptions import DomainError
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.purchasing import services
from backoffice.purchasing.models import DealerBill, BillPayment

MEDIA_ROOT = tempfile.mkdtemp()


class DealerBillModelTests(TestCase):

    def test_pending_and_status_follow_paid(self):
        bill = TestDataFactory.create_dealer_bill(amount=Decimal('1000.00'), paid=Decimal('400.00'))
        self.assertEqual(bill.pending, Decimal('600.00'))
        self.assertEqual(bill.status, 'Pending')
        bill.paid = Decimal('1000.00')
        bill.save()
        self.assertEqual(bill.pending, Decimal('0'))
        self.assertEqual(bill.status, 'Completed')


class BillPaymentServiceTests(TestCase):

    def setUp(self):
        self.bill = TestDataFactory.create_dealer_bill(amount=Decimal('1000.00'))

    def test_payments_accumulate(self):
        services.add_payment(self.bill, Decimal('300'))
        bill, payment = services.add_payment(self.bill, Decimal('700'), note='Final')
        self.assertEqual(bill.paid, Decimal('1000.00'))
        self.assertEqual(bill.status, 'Completed')
        self.assertEqual(payment.note, 'Final')
        self.assertEqual(BillPayment.objects.filter(bill=self.bill).count(), 2)

    def test_payment_above_pending(self):
        services.add_payment(self.bill, Decimal('900'))
        with self.assertRaises(DomainError) as ctx:
            services.add_payment(self.bill, Decimal('200'))
        self.assertEqual(ctx.exception.message, 'Payment exceeds pending amount of 100.00')
        self.assertEqual(ctx.exception.field, 'amount')

    def test_negative_payment(self):
        with self.assertRaises(DomainError):
            services.add_payment(self.bill, Decimal('-5'))
        self.assertFalse(BillPayment.objects.exists())

    def test_non_finite_payment(self):
        for amount in (Decimal('NaN'), Decimal('Infinity')):
            with self.assertRaises(DomainError) as ctx:
                services.add_payment(self.bill, amount)
            self.assertEqual(ctx.exception.field, 'amount')
        self.assertFalse(BillPayment.objects.exists())


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class DealerBillAPITests(TestCase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.user = TestDataFactory.create_user(role='accounts')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.company = TestDataFactory.create_company(name='Sunrise Foods')
        self.dealer = TestDataFactory.create_dealer()
        self.branch = TestDataFactory.create_branch()
        self.product = TestDataFactory.create_product(company=self.company, dealer=self.dealer)

    def _payload(self, **overrides):
        data = {
            'company': self.company.id,
            'dealer': self.dealer.id,
            'branch': self.branch.id,
            'product': self.product.id,
            'bill_number': 'INV-1001',
            'bill_date': timezone.localdate().isoformat(),
            'amount': '2500.00',
            'bill_image': TestDataFactory.image_file('bill.png'),
        }
        data.update(overrides)
        return data

    def test_create_bill(self):
        response = self.client.post('/api/v1/dealers/bills/', self._payload(), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        bill = response.data['bill']
        self.assertEqual(Decimal(str(bill['pending'])), Decimal('2500.00'))
        self.assertEqual(bill['status'], 'Pending')
        self.assertTrue(AuditLog.objects.filter(action='bill_create', object_reference='INV-1001').exists())

    def test_bill_image_required(self):
        data = self._payload()
        data.pop('bill_image')
        response = self.client.post('/api/v1/dealers/bills/', data, format='multipart')
        self.assertEqual(response.data['error'], 'Bill image is required')

    def test_bill_image_type_checked(self):
        upload = SimpleUploadedFile('bill.txt', b'not a bill', content_type='text/plain')
        response = self.client.post('/api/v1/dealers/bills/', self._payload(bill_image=upload), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Only images (jpeg, jpg, png) and PDF files are allowed')

    def test_future_bill_date(self):
        tomorrow = (timezone.localdate() + timedelta(days=1)).isoformat()
        response = self.client.post('/api/v1/dealers/bills/', self._payload(bill_date=tomorrow), format='multipart')
        self.assertEqual(response.data['error'], 'Bill date cannot be in the future')

    def test_product_must_belong_to_company_and_dealer(self):
        stranger = TestDataFactory.create_product()
        response = self.client.post('/api/v1/dealers/bills/', self._payload(product=stranger.id), format='multipart')
        self.assertEqual(response.data['error'], 'Product does not belong to the selected company or dealer')

    def test_duplicate_bill_number(self):
        TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=self.branch,
                                           product=self.product, bill_number='INV-1001')
        response = self.client.post('/api/v1/dealers/bills/', self._payload(), format='multipart')
        self.assertEqual(response.data['error'], 'Bill number must be unique')

    def test_update_paid_completes_bill(self):
        bill = TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=self.branch,
                                                  product=self.product, amount=Decimal('500.00'))
        response = self.client.put(f'/api/v1/dealers/bills/{bill.id}/', {'paid': '500.00'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['bill']['status'], 'Completed')

        response = self.client.put(f'/api/v1/dealers/bills/{bill.id}/', {'paid': '600.00'}, format='multipart')
        self.assertEqual(response.data['error'], 'Paid amount must be between 0 and the bill amount')

    def test_remove_image(self):
        bill_id = self.client.post('/api/v1/dealers/bills/', self._payload(), format='multipart').data['bill']['id']
        response = self.client.put(f'/api/v1/dealers/bills/{bill_id}/', {'remove_image': 'true'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(DealerBill.objects.get(pk=bill_id).bill_image)

    def test_payments_endpoint(self):
        bill = TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=self.branch,
                                                  product=self.product, amount=Decimal('800.00'))
        url = f'/api/v1/dealers/bills/{bill.id}/payments/'
        response = self.client.post(url, {'amount': '300.00', 'note': 'Cheque 1234'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(str(response.data['bill']['pending'])), Decimal('500.00'))

        response = self.client.post(url, {'amount': '900.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'amount')

        response = self.client.post(url, {'amount': 'abc'}, format='json')
        self.assertEqual(response.data['error'], 'Payment amount must be a positive number')

        payments = self.client.get(url).data
        self.assertEqual(len(payments), 1)
        self.assertEqual(payments[0]['paid_by_name'], self.user.username)

    def test_list_filters_return_subsets(self):
        other_branch = TestDataFactory.create_branch()
        TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=self.branch,
                                           product=self.product, amount=Decimal('100'), paid=Decimal('100'))
        TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=other_branch,
                                           product=self.product, bill_date=timezone.localdate() - timedelta(days=10))
        everything = {b['id'] for b in self.client.get('/api/v1/dealers/bills/').data}
        self.assertEqual(len(everything), 2)
        for params in ({'status': 'Completed'}, {'branch': other_branch.id}, {'dealer': self.dealer.id},
                       {'date_from': timezone.localdate().isoformat()}):
            subset = {b['id'] for b in self.client.get('/api/v1/dealers/bills/', params).data}
            self.assertTrue(subset <= everything)
        completed = self.client.get('/api/v1/dealers/bills/', {'status': 'Completed'}).data
        self.assertEqual(len(completed), 1)

    def test_malformed_date_filter(self):
        response = self.client.get('/api/v1/dealers/bills/', {'date_from': 'bad'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid date format. Use YYYY-MM-DD')

    def test_nan_payment_rejected(self):
        bill = TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=self.branch,
                                                  product=self.product, amount=Decimal('800.00'))
        response = self.client.post(f'/api/v1/dealers/bills/{bill.id}/payments/', {'amount': 'NaN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Payment amount must be a positive number')

    def test_replaced_image_deleted_after_commit(self):
        bill_id = self.client.post('/api/v1/dealers/bills/', self._payload(), format='multipart').data['bill']['id']
        old_name = DealerBill.objects.get(pk=bill_id).bill_image.name
        self.assertTrue(default_storage.exists(old_name))

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.put(f'/api/v1/dealers/bills/{bill_id}/',
                                       {'bill_image': TestDataFactory.image_file('bill-v2.png')}, format='multipart')
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            # still on disk until the transaction commits
            self.assertTrue(default_storage.exists(old_name))

        new_name = DealerBill.objects.get(pk=bill_id).bill_image.name
        self.assertNotEqual(new_name, old_name)
        self.assertFalse(default_storage.exists(old_name))
        self.assertTrue(default_storage.exists(new_name))

    def test_failed_update_keeps_image(self):
        TestDataFactory.create_dealer_bill(company=self.company, dealer=self.dealer, branch=self.branch,
                                           product=self.product, bill_number='INV-2002')
        bill_id = self.client.post('/api/v1/dealers/bills/', self._payload(), format='multipart').data['bill']['id']
        old_name = DealerBill.objects.get(pk=bill_id).bill_image.name

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.put(f'/api/v1/dealers/bills/{bill_id}/', {'bill_number': 'INV-2002'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(default_storage.exists(old_name))

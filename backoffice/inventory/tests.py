"""
Test suite for stock: factory production, transfers to branches and sales
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from backoffice.core.exceptions import DomainError
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.inventory import services
from backoffice.inventory.models import Inventory, StockHistory


class StockServiceTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch(name='Main Street')
        self.product = TestDataFactory.create_product(name='Plum Cake')

    def test_produce_creates_factory_row(self):
        record = services.produce(self.product.pk, '12')
        self.assertIsNone(record.branch_id)
        self.assertEqual(record.in_stock, Decimal('12'))
        self.assertEqual(record.history.get().reason, services.FACTORY_PRODUCTION)

    def test_transfer_moves_stock(self):
        services.produce(self.product.pk, 10)
        factory, branch_record = services.transfer_from_factory(self.product, self.branch, Decimal('4'))
        self.assertEqual(factory.in_stock, Decimal('6'))
        self.assertEqual(branch_record.in_stock, Decimal('4'))
        self.assertEqual(branch_record.history.first().reason, 'Received from Factory')
        self.assertEqual(factory.history.first().reason, 'Transferred to Main Street')

    def test_transfer_without_enough_factory_stock(self):
        services.produce(self.product.pk, 2)
        with self.assertRaises(DomainError):
            services.transfer_from_factory(self.product, self.branch, Decimal('3'))
        self.assertFalse(Inventory.objects.filter(branch=self.branch).exists())

    def test_transfer_without_factory_row(self):
        with self.assertRaises(DomainError) as ctx:
            services.transfer_from_factory(self.product, self.branch, Decimal('1'))
        self.assertIn('No factory stock', ctx.exception.message)

    def test_reduce_never_goes_negative(self):
        TestDataFactory.create_inventory(self.product, branch=self.branch, in_stock=Decimal('3'))
        services.reduce_stock(self.branch.pk, [(self.product.pk, Decimal('5'))])
        record = Inventory.objects.get(product=self.product, branch=self.branch)
        self.assertEqual(record.in_stock, Decimal('0'))
        self.assertEqual(record.history.first().change, Decimal('-5'))

    def test_reduce_unstocked_product_records_initial_sale(self):
        services.reduce_stock(self.branch.pk, [(self.product.pk, Decimal('2'))])
        record = Inventory.objects.get(product=self.product, branch=self.branch)
        self.assertEqual(record.in_stock, Decimal('0'))
        self.assertEqual(record.history.get().reason, services.SALE_INITIAL)

    def test_set_stock_records_difference_only(self):
        record = TestDataFactory.create_inventory(self.product, in_stock=Decimal('5'))
        services.set_stock(record, Decimal('5'))
        self.assertFalse(StockHistory.objects.exists())
        services.set_stock(record, Decimal('8'))
        self.assertEqual(StockHistory.objects.get().change, Decimal('3'))


class InventoryAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.branch = TestDataFactory.create_branch()
        self.product = TestDataFactory.create_product()

    def test_produce_endpoint_is_audited(self):
        response = self.client.post('/api/v1/inventory/produce/', {'product': self.product.id, 'quantity': 20}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['inventory']['location_name'], 'Factory')
        self.assertTrue(AuditLog.objects.filter(action='stock_produce').exists())

    def test_produce_requires_positive_quantity(self):
        response = self.client.post('/api/v1/inventory/produce/', {'product': self.product.id, 'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_transfer_endpoint(self):
        services.produce(self.product.pk, 5)
        data = {'product': self.product.id, 'branch': self.branch.id, 'quantity': 2}
        response = self.client.post('/api/v1/inventory/transfer/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(str(response.data['branch']['in_stock'])), Decimal('2'))

        data['quantity'] = 10
        response = self.client.post('/api/v1/inventory/transfer/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Insufficient factory stock', response.data['error'])

    def test_reduce_endpoint_validates_input(self):
        response = self.client.post('/api/v1/inventory/reduce/', {'branch': self.branch.id, 'products': 'x'}, format='json')
        self.assertEqual(response.data['error'], 'Invalid request data')

        data = {'branch': self.branch.id, 'products': [{'product': 99999, 'quantity': 1}]}
        response = self.client.post('/api/v1/inventory/reduce/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Product not found')

    def test_location_and_low_stock_filters(self):
        factory = TestDataFactory.create_inventory(self.product, in_stock=Decimal('50'))
        low = TestDataFactory.create_inventory(self.product, branch=self.branch, in_stock=Decimal('2'))

        response = self.client.get('/api/v1/inventory/?location=null')
        self.assertEqual([row['id'] for row in response.data], [factory.id])
        response = self.client.get(f'/api/v1/inventory/?location={self.branch.id}')
        self.assertEqual([row['id'] for row in response.data], [low.id])
        response = self.client.get('/api/v1/inventory/?low_stock=true')
        self.assertEqual([row['id'] for row in response.data], [low.id])
        self.assertTrue(response.data[0]['is_low_stock'])

    def test_update_stock_and_history(self):
        record = TestDataFactory.create_inventory(self.product, branch=self.branch, in_stock=Decimal('4'))
        response = self.client.put(f'/api/v1/inventory/{record.id}/stock/', {'in_stock': 9, 'reason': 'Recount'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        history = self.client.get(f'/api/v1/inventory/{record.id}/history/').data
        self.assertEqual(history[0]['reason'], 'Recount')
        self.assertEqual(Decimal(str(history[0]['change'])), Decimal('5'))

    def test_negative_stock_rejected(self):
        record = TestDataFactory.create_inventory(self.product, in_stock=Decimal('4'))
        response = self.client.put(f'/api/v1/inventory/{record.id}/stock/', {'in_stock': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_finite_quantities_rejected(self):
        record = TestDataFactory.create_inventory(self.product, in_stock=Decimal('4'))
        for value in ('NaN', 'Infinity'):
            response = self.client.put(f'/api/v1/inventory/{record.id}/stock/', {'in_stock': value}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'in_stock must be a number')
        record.refresh_from_db()
        self.assertEqual(record.in_stock, Decimal('4'))

        response = self.client.post('/api/v1/inventory/produce/', {'product': self.product.id, 'quantity': 'NaN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_threshold(self):
        record = TestDataFactory.create_inventory(self.product, in_stock=Decimal('4'))
        response = self.client.put(f'/api/v1/inventory/{record.id}/threshold/', {'low_stock_threshold': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['inventory']['is_low_stock'])

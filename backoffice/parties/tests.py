"""
Test suite for companies, dealers and goods received from dealers
"""
from django.test import TestCase
from rest_framework import status

from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.parties.models import Dealer, DealerCategory, DealerProduct


class CompanyAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_company_name_letters_only(self):
        response = self.client.post('/api/v1/companies/', {'name': 'Brand 42'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Company name must contain only letters and spaces')

    def test_company_name_required(self):
        response = self.client.post('/api/v1/companies/', {'name': '  '}, format='json')
        self.assertEqual(response.data['error'], 'Company name is required')

    def test_duplicate_company(self):
        self.client.post('/api/v1/companies/', {'name': 'Amul'}, format='json')
        response = self.client.post('/api/v1/companies/', {'name': 'Amul'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Company already exists')


class DealerAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_dealer(self):
        data = {'dealer_name': 'Fresh Farms', 'phone_no': '9876543210', 'gst': '29ABCDE1234F1Z5'}
        response = self.client.post('/api/v1/dealers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Dealer.objects.count(), 1)

    def test_dealer_requires_name_and_phone(self):
        response = self.client.post('/api/v1/dealers/', {'dealer_name': 'No Phone'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Dealer name and phone number are required')

    def test_duplicate_phone_reports_field(self):
        TestDataFactory.create_dealer(phone_no='9876543210')
        response = self.client.post('/api/v1/dealers/', {'dealer_name': 'Other', 'phone_no': '9876543210'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['field'], 'phone_no')

    def test_duplicate_gst_reports_field(self):
        Dealer.objects.create(dealer_name='Sugar Supplies', phone_no='9000000001', gst='29ABCDE1234F1Z5')
        data = {'dealer_name': 'Flour Mills', 'phone_no': '9000000002', 'gst': '29ABCDE1234F1Z5'}
        response = self.client.post('/api/v1/dealers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'GST already exists')
        self.assertEqual(response.data['field'], 'gst')

    def test_search_dealers(self):
        TestDataFactory.create_dealer(name='Sugar Supplies')
        TestDataFactory.create_dealer(name='Flour Mills')
        response = self.client.get('/api/v1/dealers/?search=sugar')
        self.assertEqual([d['dealer_name'] for d in response.data], ['Sugar Supplies'])

    def test_cannot_delete_dealer_with_bills(self):
        bill = TestDataFactory.create_dealer_bill()
        response = self.client.delete(f'/api/v1/dealers/{bill.dealer_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StockEntryTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.dealer = TestDataFactory.create_dealer()
        self.category = DealerCategory.objects.create(category_name='Packaging')
        self.product = DealerProduct.objects.create(product_name='Cake Box', category=self.category, barcode_no='BX001')

    def _entry(self, pcs_count, product=None):
        return {
            'dealer': self.dealer.id,
            'category': self.category.id,
            'product': (product or self.product).id,
            'pcs_count': pcs_count,
            'amount': '250.00',
        }

    def test_stock_entry_adds_pieces(self):
        response = self.client.post('/api/v1/dealer/stock-entries/', self._entry(20), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 20)

    def test_update_moves_pieces_between_products(self):
        other = DealerProduct.objects.create(product_name='Cake Board', category=self.category, barcode_no='BD001')
        entry_id = self.client.post('/api/v1/dealer/stock-entries/', self._entry(20), format='json').data['id']
        response = self.client.put(f'/api/v1/dealer/stock-entries/{entry_id}/', self._entry(5, product=other), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 0)
        self.assertEqual(other.stock_quantity, 5)

    def test_delete_entry_removes_pieces(self):
        entry_id = self.client.post('/api/v1/dealer/stock-entries/', self._entry(8), format='json').data['id']
        self.client.delete(f'/api/v1/dealer/stock-entries/{entry_id}/')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 0)

    def test_pcs_count_must_be_positive(self):
        response = self.client.post('/api/v1/dealer/stock-entries/', self._entry(0), format='json')
        self.assertEqual(response.data['error'], 'Pieces count must be a positive integer')

    def test_duplicate_dealer_product_name_in_category(self):
        data = {'product_name': 'cake box', 'category': self.category.id, 'barcode_no': 'BX002'}
        response = self.client.post('/api/v1/dealer/products/', data, format='json')
        self.assertEqual(response.data['error'], 'This product name already exists in the selected category')

    def test_amount_must_be_a_finite_number(self):
        data = dict(self._entry(5), amount='NaN')
        response = self.client.post('/api/v1/dealer/stock-entries/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Amount must be a positive number')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 0)


class DealerCategoryAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_missing_parent_category(self):
        data = {'category_name': 'Ribbons', 'parent_category': 9999}
        response = self.client.post('/api/v1/dealer/categories/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Parent category not found')

    def test_cannot_delete_category_with_subcategories(self):
        parent = DealerCategory.objects.create(category_name='Packaging')
        DealerCategory.objects.create(category_name='Boxes', parent_category=parent)
        response = self.client.delete(f'/api/v1/dealer/categories/{parent.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete category with subcategories')
        self.assertTrue(DealerCategory.objects.filter(pk=parent.id).exists())

    def test_delete_leaf_category(self):
        category = DealerCategory.objects.create(category_name='Candles')
        response = self.client.delete(f'/api/v1/dealer/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

"""
Test suite for the catalog: product codes, EAN-13 UPCs, filters and labels
"""
import shutil
import tempfile
from decimal import Decimal
from unittest import mock

from django.core.files.storage import default_storage
from django.test import TestCase, override_settings
from rest_framework import status

from backoffice.catalog.models import Department, Category, Product, PriceDetail, Album
from backoffice.catalog.services import ean13_check_digit, build_upc
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.inventory.models import Inventory

MEDIA_ROOT = tempfile.mkdtemp()


class ProductCodeTests(TestCase):

    def test_ean13_check_digit(self):
        self.assertEqual(ean13_check_digit('400638133393'), 1)
        self.assertEqual(ean13_check_digit('890123400001'), 4)

    def test_build_upc_uses_company_prefix(self):
        self.assertEqual(build_upc('00001'), '8901234000014')

    def test_product_codes_are_sequential(self):
        first = TestDataFactory.create_product()
        second = TestDataFactory.create_product()
        self.assertEqual(first.product_code, '00001')
        self.assertEqual(second.product_code, '00002')
        self.assertEqual(len(second.upc), 13)


class ProductAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.category = TestDataFactory.create_category(name='Breads')
        self.dealer = TestDataFactory.create_dealer()

    def _payload(self, **overrides):
        data = {
            'name': 'Milk Bread',
            'category': self.category.id,
            'dealers': [self.dealer.id],
            'product_type': 'non-cake',
            'price_details': [
                {'price': '40.00', 'quantity': '1', 'unit': 'pcs', 'gst': 5, 'cake_type': 'freshCream'},
                {'price': '75.00', 'rate': '80.00', 'quantity': '2', 'unit': 'pcs', 'gst': 5},
            ],
        }
        data.update(overrides)
        return data

    def test_create_product_assigns_code_and_upc(self):
        response = self.client.post('/api/v1/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_code'], '00001')
        self.assertEqual(response.data['upc'], '8901234000014')

    def test_price_details_keep_order_and_default_rate(self):
        response = self.client.post('/api/v1/products/', self._payload(), format='json')
        details = PriceDetail.objects.filter(product_id=response.data['id']).order_by('position')
        self.assertEqual([d.price for d in details], [Decimal('40.00'), Decimal('75.00')])
        self.assertEqual(details[0].rate, Decimal('40.00'))
        self.assertEqual(details[1].rate, Decimal('80.00'))
        # Non-cake products carry no cake type
        self.assertIsNone(details[0].cake_type)

    def test_product_requires_dealer(self):
        response = self.client.post('/api/v1/products/', self._payload(dealers=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('dealers', response.data)

    def test_cake_requires_album(self):
        response = self.client.post('/api/v1/products/', self._payload(product_type='cake'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('album', response.data)

        album = Album.objects.create(name='Birthday')
        response = self.client.post('/api/v1/products/', self._payload(product_type='cake', album=album.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_branch_user_cannot_create_product(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='branch', branch=TestDataFactory.create_branch()))
        response = self.client.post('/api/v1/products/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_reads_back(self):
        product_id = self.client.post('/api/v1/products/', self._payload(), format='json').data['id']
        response = self.client.patch(f'/api/v1/products/{product_id}/', {'description': 'Soft and fresh'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(f'/api/v1/products/{product_id}/')
        self.assertEqual(response.data['description'], 'Soft and fresh')
        self.assertEqual(len(response.data['price_details']), 2)

    def test_empty_price_details_clear_existing_rows(self):
        product_id = self.client.post('/api/v1/products/', self._payload(), format='json').data['id']
        response = self.client.patch(f'/api/v1/products/{product_id}/', {'price_details': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(PriceDetail.objects.filter(product_id=product_id).exists())

    def test_omitted_price_details_are_kept(self):
        product_id = self.client.post('/api/v1/products/', self._payload(), format='json').data['id']
        self.client.patch(f'/api/v1/products/{product_id}/', {'name': 'Milk Bread Large'}, format='json')
        self.assertEqual(PriceDetail.objects.filter(product_id=product_id).count(), 2)

    def test_delete_removes_inventory(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_inventory(product, in_stock=Decimal('10'))
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Inventory.objects.filter(product_id=product.id).exists())

    def test_cannot_delete_product_with_dealer_bill(self):
        bill = TestDataFactory.create_dealer_bill()
        response = self.client.delete(f'/api/v1/products/{bill.product_id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Product.objects.filter(pk=bill.product_id).exists())


class ProductFilterTests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.breads = TestDataFactory.create_category(name='Breads')
        self.cakes = TestDataFactory.create_category(name='Cakes')
        self.dealer = TestDataFactory.create_dealer()
        self.bread = TestDataFactory.create_product(name='Brown Bread Loaf', category=self.breads, dealer=self.dealer)
        self.bun = TestDataFactory.create_product(name='Sweet Bun', category=self.breads)
        self.cake = TestDataFactory.create_product(name='Black Forest Cake', category=self.cakes, product_type='cake')

    def _names(self, params=None):
        response = self.client.get('/api/v1/products/', params or {})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return {p['name'] for p in response.data}

    def test_filters_return_subsets(self):
        everything = self._names()
        for params in (
            {'category': self.breads.id},
            {'product_type': 'cake'},
            {'dealer': self.dealer.id},
            {'search': 'bread'},
        ):
            self.assertTrue(self._names(params) <= everything)
        self.assertEqual(self._names({'category': self.breads.id}), {'Brown Bread Loaf', 'Sweet Bun'})

    def test_search_matches_all_words(self):
        self.assertEqual(self._names({'search': 'bread brown'}), {'Brown Bread Loaf'})

    def test_search_by_upc(self):
        self.assertEqual(self._names({'search': self.cake.upc}), {'Black Forest Cake'})

    def test_lookup_by_upc(self):
        response = self.client.get(f'/api/v1/products/lookup/?upc={self.bun.upc}')
        self.assertEqual(response.data['name'], 'Sweet Bun')
        response = self.client.get('/api/v1/products/lookup/?upc=0000000000000')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_barcode_label(self):
        TestDataFactory.create_price(self.bread, price=Decimal('45.00'))
        response = self.client.get(f'/api/v1/products/{self.bread.id}/barcode/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['image'].startswith('data:image/png;base64,'))


class CategoryAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user(role='superadmin'))

    def test_billing_type_filter(self):
        TestDataFactory.create_category(name='Counter', is_billing=True)
        TestDataFactory.create_category(name='Back Office', is_billing=False)
        response = self.client.get('/api/v1/categories/?type=billing')
        self.assertEqual([c['name'] for c in response.data], ['Counter'])

    def test_duplicate_category_name(self):
        TestDataFactory.create_category(name='Pastries')
        response = self.client.post('/api/v1/categories/', {'name': 'Pastries'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Category name already exists')

    def test_admin_cannot_create_category(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = self.client.post('/api/v1/categories/', {'name': 'Snacks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_parent_is_not_found(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Rusks', 'parent': 9999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Parent category not found')

    def test_category_cannot_be_its_own_parent(self):
        category = TestDataFactory.create_category(name='Cookies')
        response = self.client.put(f'/api/v1/categories/{category.id}/', {'parent': category.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Category cannot be its own parent')

    def test_subcategory_links_to_parent(self):
        parent = TestDataFactory.create_category(name='Cakes')
        response = self.client.post('/api/v1/categories/', {'name': 'Cup Cakes', 'parent': parent.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Category.objects.get(name='Cup Cakes').parent_id, parent.id)

    def test_cannot_delete_category_with_subcategories(self):
        parent = TestDataFactory.create_category(name='Breads')
        Category.objects.create(name='Buns', parent=parent)
        response = self.client.delete(f'/api/v1/categories/{parent.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete category with subcategories')
        self.assertTrue(Category.objects.filter(pk=parent.id).exists())


class DepartmentAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user(role='superadmin'))

    def test_duplicate_name_ignores_case(self):
        Department.objects.create(name='Bakery')
        response = self.client.post('/api/v1/departments/', {'name': 'bakery'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Department name already exists')

    def test_cannot_delete_department_with_linked_categories(self):
        department = Department.objects.create(name='Confectionery')
        category = TestDataFactory.create_category(name='Toffees')
        category.departments.add(department)

        response = self.client.delete(f'/api/v1/departments/{department.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot delete department with linked categories')

        category.departments.clear()
        response = self.client.delete(f'/api/v1/departments/{department.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_admin_cannot_create_department(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))
        response = self.client.post('/api/v1/departments/', {'name': 'Snacks'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AlbumAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))

    def test_duplicate_name_ignores_case(self):
        Album.objects.create(name='Wedding')
        response = self.client.post('/api/v1/albums/', {'name': 'WEDDING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Album name already exists! Choose a different name.')

    def test_toggle_status_flips_and_reports(self):
        album = Album.objects.create(name='Anniversary')
        response = self.client.put(f'/api/v1/albums/{album.id}/toggle-status/')
        self.assertEqual(response.data['message'], 'Album disabled successfully')
        self.assertFalse(response.data['album']['enabled'])

        response = self.client.put(f'/api/v1/albums/{album.id}/toggle-status/')
        self.assertEqual(response.data['message'], 'Album enabled successfully')

    def test_enabled_filter(self):
        Album.objects.create(name='Kids')
        Album.objects.create(name='Retired', enabled=False)
        response = self.client.get('/api/v1/albums/?enabled=true')
        self.assertEqual([a['name'] for a in response.data], ['Kids'])


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class ProductImageTests(TestCase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user(role='admin'))
        self.category = TestDataFactory.create_category(name='Breads')
        self.dealer = TestDataFactory.create_dealer()

    def _payload(self):
        return {
            'name': 'Garlic Bread',
            'category': self.category.id,
            'dealers': self.dealer.id,
            'product_type': 'non-cake',
            'images': TestDataFactory.image_file('garlic.png'),
        }

    def test_images_saved_with_product(self):
        response = self.client.post('/api/v1/products/', self._payload(), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['images']), 1)
        self.assertTrue(default_storage.exists(response.data['images'][0]))

    def test_failed_create_discards_uploaded_images(self):
        with mock.patch('backoffice.catalog.services.create_product', side_effect=RuntimeError('db down')) as create:
            response = self.client.post('/api/v1/products/', self._payload(), format='multipart')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        stored = create.call_args.kwargs['images']
        self.assertEqual(len(stored), 1)
        self.assertFalse(default_storage.exists(stored[0]))
        self.assertFalse(Product.objects.filter(name='Garlic Bread').exists())

"""
Test utilities and factories for creating test data
"""
import io
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from backoffice.locations.models import Branch
from backoffice.parties.models import Company, Dealer
from backoffice.catalog.models import Category, Product, PriceDetail
from backoffice.catalog.services import build_upc, next_product_code
from backoffice.inventory.models import Inventory
from backoffice.staff.models import Employee
from backoffice.pos.models import Order, OrderItem, KotOrder
from backoffice.pos.services import create_table_category, generate_order_id, generate_form_number
from backoffice.purchasing.models import DealerBill
from backoffice.finance.models import Account, BranchSettlement, ClosingEntry

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_phone():
        return f'9{random.randint(100000000, 999999999)}'

    @staticmethod
    def image_file(name='photo.png', size=(10, 10)):
        """A real PNG upload, for fields that validate image content"""
        buffer = io.BytesIO()
        Image.new('RGB', size, color='white').save(buffer, format='PNG')
        return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')

    @staticmethod
    def create_user(username=None, password='testpass123', role='superadmin', branch=None):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        return User.objects.create_user(
            username=username,
            email=f'{username}@test.com',
            password=password,
            role=role,
            branch=branch,
        )

    @staticmethod
    def create_branch(name=None, branch_code=None):
        """Create a test branch"""
        if not name:
            name = f'Branch {TestDataFactory.random_string(6)}'
        if not branch_code:
            branch_code = f'B{TestDataFactory.random_string(6).upper()}'
        return Branch.objects.create(name=name, branch_code=branch_code, address=f'Test Address {name}')

    @staticmethod
    def create_company(name=None):
        if not name:
            name = 'Company ' + ''.join(random.choices(string.ascii_letters, k=8))
        return Company.objects.create(name=name)

    @staticmethod
    def create_dealer(name=None, phone_no=None):
        """Create a test dealer"""
        if not name:
            name = f'Dealer_{TestDataFactory.random_string(6)}'
        return Dealer.objects.create(dealer_name=name, phone_no=phone_no or TestDataFactory.random_phone())

    @staticmethod
    def create_category(name=None, is_billing=True):
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, is_billing=is_billing)

    @staticmethod
    def create_product(name=None, category=None, company=None, dealer=None, product_type='non-cake'):
        """Create a test product with a code and UPC the way the catalog issues them"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not category:
            category = TestDataFactory.create_category()
        product_code = next_product_code()
        product = Product.objects.create(
            product_code=product_code,
            upc=build_upc(product_code),
            name=name,
            category=category,
            company=company,
            product_type=product_type,
        )
        product.dealers.add(dealer or TestDataFactory.create_dealer())
        return product

    @staticmethod
    def create_price(product, price=Decimal('100.00'), unit='pcs', quantity=Decimal('1'), gst=5):
        return PriceDetail.objects.create(
            product=product, price=price, rate=price, unit=unit, quantity=quantity, gst=gst,
            position=product.price_details.count(),
        )

    @staticmethod
    def create_inventory(product, branch=None, in_stock=Decimal('0'), low_stock_threshold=Decimal('5')):
        """Stock row at a branch, or at the factory when ``branch`` is None"""
        return Inventory.objects.create(
            product=product, branch=branch, in_stock=in_stock, low_stock_threshold=low_stock_threshold,
        )

    @staticmethod
    def create_employee(name=None, team='Waiter', status='Active', phone_number=None):
        if not name:
            name = f'Employee {TestDataFactory.random_string(6)}'
        return Employee.objects.create(
            name=name,
            phone_number=phone_number or TestDataFactory.random_phone(),
            address='Test Street',
            team=team,
            status=status,
            photo='employees/test.png',
        )

    @staticmethod
    def create_table_category(branch, name='Hall', table_count=3):
        return create_table_category(branch, name, table_count)

    @staticmethod
    def create_order(branch, items=None, tab=Order.TAB_BILLING, status='completed', payment_method='Cash',
                     waiter=None, created_at=None, table=None, delivery_datetime=None):
        """
        Create an order directly, bypassing stock movements. ``items`` is a
        list of ``(product, quantity, price, gst_rate)`` tuples.
        """
        items = items or []
        subtotal = Decimal('0')
        total_gst = Decimal('0')
        rows = []
        for position, (product, quantity, price, gst_rate) in enumerate(items):
            quantity = Decimal(str(quantity))
            price = Decimal(str(price))
            line_total = (quantity * price).quantize(Decimal('0.01'))
            line_gst = (line_total * Decimal(str(gst_rate or 0)) / 100).quantize(Decimal('0.01'))
            subtotal += line_total
            total_gst += line_gst
            rows.append(dict(
                position=position, product=product, name=product.name, quantity=quantity, price=price,
                unit='pcs', gst_rate=gst_rate, is_non_gst=gst_rate is None,
                product_total=line_total, product_gst=line_gst,
            ))

        order = Order.objects.create(
            order_id=generate_order_id() + TestDataFactory.random_string(4),
            bill_no=f'TST{TestDataFactory.random_string(8).upper()}',
            branch=branch,
            tab=tab,
            payment_method=payment_method,
            status=status,
            subtotal=subtotal,
            total_gst=total_gst,
            total_with_gst=subtotal + total_gst,
            total_items=len(rows),
            waiter=waiter,
            table=table,
            delivery_datetime=delivery_datetime,
            created_at=created_at or timezone.now(),
        )
        OrderItem.objects.bulk_create([OrderItem(order=order, **row) for row in rows])
        return order

    @staticmethod
    def create_kot_order(branch, amount=Decimal('1200.00'), advance=Decimal('200.00')):
        return KotOrder.objects.create(
            form_number=generate_form_number(),
            order_time='10:30',
            delivery_date=timezone.localdate(),
            delivery_time='18:00',
            delivery_type='In-Store Pickup',
            customer_name='Test Customer',
            customer_number=TestDataFactory.random_phone(),
            address='Test Street',
            email='customer@test.com',
            cake_model='Black Forest',
            weight=Decimal('1.000'),
            flavour='Chocolate',
            type='Egg',
            amount=amount,
            advance=advance,
            branch=branch,
            sales_man='Counter',
        )

    @staticmethod
    def create_dealer_bill(company=None, dealer=None, branch=None, product=None, amount=Decimal('1000.00'),
                           paid=Decimal('0'), bill_number=None, bill_date=None):
        company = company or TestDataFactory.create_company()
        dealer = dealer or TestDataFactory.create_dealer()
        branch = branch or TestDataFactory.create_branch()
        product = product or TestDataFactory.create_product(company=company, dealer=dealer)
        return DealerBill.objects.create(
            company=company,
            dealer=dealer,
            branch=branch,
            product=product,
            bill_number=bill_number or f'BILL-{TestDataFactory.random_string(8)}',
            bill_date=bill_date or timezone.localdate(),
            amount=amount,
            paid=paid,
        )

    @staticmethod
    def create_account(name=None, kind='bank', balance=Decimal('0'), branch=None):
        if not name:
            name = f'Account {TestDataFactory.random_string(6)}'
        return Account.objects.create(name=name, kind=kind, balance=balance, branch=branch)

    @staticmethod
    def create_settlement(branch, upi_account=None, card_account=None):
        upi_account = upi_account or TestDataFactory.create_account()
        return BranchSettlement.objects.create(
            branch=branch, upi_account=upi_account, card_account=card_account or upi_account,
        )

    @staticmethod
    def create_closing_entry(branch, date=None, **figures):
        """Bare closing entry row with no ledger postings"""
        values = dict(
            system_sales=Decimal('0'), manual_sales=Decimal('0'), online_sales=Decimal('0'),
            expenses=Decimal('0'), net_result=Decimal('0'), credit_card_payment=Decimal('0'),
            upi_payment=Decimal('0'), cash_payment=Decimal('0'),
        )
        values.update(figures)
        return ClosingEntry.objects.create(branch=branch, date=date or timezone.localdate(), **values)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()

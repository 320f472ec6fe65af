"""
Test suite for report aggregations and endpoints
"""
from datetime import datetime, time, timedelta
from decimal import Decimal
from types import SimpleNamespace

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backoffice.core.exceptions import DomainError
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.finance import services as finance_services
from backoffice.pos.models import Order, OrderItem
from backoffice.reports import services


def local_dt(day, hour, minute=0):
    return timezone.make_aware(datetime.combine(day, time(hour, minute)))


class RangeResolutionTests(TestCase):

    def setUp(self):
        self.today = timezone.localdate()

    def test_presets(self):
        self.assertEqual(services.resolve_range({}), (self.today, self.today))
        yesterday = self.today - timedelta(days=1)
        self.assertEqual(services.resolve_range({'preset': 'yesterday'}), (yesterday, yesterday))
        self.assertEqual(services.resolve_range({'preset': 'last7days'}), (self.today - timedelta(days=6), self.today))
        self.assertEqual(services.resolve_range({'preset': 'tillnow'}), (self.today.replace(day=1), self.today))
        self.assertEqual(services.resolve_range({}, default='last7days')[0], self.today - timedelta(days=6))

    def test_custom_range(self):
        start, end = services.resolve_range({'start_date': '2024-03-01', 'end_date': '2024-03-31'})
        self.assertEqual((start.isoformat(), end.isoformat()), ('2024-03-01', '2024-03-31'))
        # a lone end date is a single day
        self.assertEqual(services.resolve_range({'end_date': '2024-03-05'})[0].isoformat(), '2024-03-05')

    def test_invalid_ranges(self):
        with self.assertRaises(DomainError) as ctx:
            services.resolve_range({'start_date': '05/03/2024'})
        self.assertEqual(ctx.exception.message, 'Invalid date format. Use YYYY-MM-DD')
        with self.assertRaises(DomainError) as ctx:
            services.resolve_range({'start_date': '2024-03-10', 'end_date': '2024-03-01'})
        self.assertEqual(ctx.exception.message, 'end_date cannot be before start_date')
        with self.assertRaises(DomainError):
            services.resolve_range({'preset': 'lastyear'})

    def test_local_bounds_cover_whole_days(self):
        day = datetime(2024, 3, 1).date()
        lower, upper = services.local_bounds(day, day)
        self.assertEqual(timezone.localtime(lower).hour, 0)
        self.assertEqual(upper - lower, timedelta(days=1))


class AggregationTests(TestCase):

    def test_hour_labels(self):
        self.assertEqual(services.hour_label(9), '9-10 AM')
        self.assertEqual(services.hour_label(12), '12-1 PM')
        self.assertEqual(services.hour_label(0), '12-1 AM')
        self.assertEqual(services.hour_label(23), '11-12 PM')

    def test_hourly_totals_trimmed_to_busy_hours(self):
        day = timezone.localdate()
        orders = [
            SimpleNamespace(created_at=local_dt(day, 9, 15), total_with_gst=Decimal('100')),
            SimpleNamespace(created_at=local_dt(day, 9, 45), total_with_gst=Decimal('50')),
            SimpleNamespace(created_at=local_dt(day, 12, 5), total_with_gst=Decimal('80')),
        ]
        slots, total = services.hourly_totals(orders)
        self.assertEqual([s['hour'] for s in slots], [9, 10, 11, 12])
        self.assertEqual(slots[0]['amount'], Decimal('150'))
        self.assertEqual(slots[1]['amount'], Decimal('0'))
        self.assertEqual(slots[3]['display'], '₹80.00')
        self.assertEqual(total, Decimal('230'))
        self.assertEqual(services.hourly_totals([]), ([], Decimal('0')))

    def test_payment_buckets(self):
        self.assertEqual(services.payment_bucket('UPI'), 'upi')
        self.assertEqual(services.payment_bucket('Credit Card'), 'credit_card')
        self.assertEqual(services.payment_bucket('card'), 'credit_card')
        self.assertEqual(services.payment_bucket('Cash'), 'cash')
        self.assertEqual(services.payment_bucket('Swiggy'), 'other')
        self.assertEqual(services.payment_bucket(None), 'other')

    def test_waiter_attendance_counts_distinct_days(self):
        andheri = TestDataFactory.create_branch(name='Andheri')
        bandra = TestDataFactory.create_branch(name='Bandra')
        waiter = TestDataFactory.create_employee(name='Ravi')
        product = TestDataFactory.create_product()
        today = timezone.localdate()
        yesterday = today - timedelta(days=1)
        for branch, when in ((andheri, local_dt(today, 10)), (andheri, local_dt(today, 14)),
                             (bandra, local_dt(yesterday, 11))):
            TestDataFactory.create_order(branch, items=[(product, 1, '100.00', None)], waiter=waiter, created_at=when)

        orders = list(Order.objects.select_related('branch', 'waiter'))
        summary = services.waiter_summary(orders)
        self.assertEqual(len(summary), 1)
        row = summary[0]
        self.assertEqual(row['total_bills'], 3)
        self.assertEqual(row['attendance'], 2)
        self.assertEqual(row['total_amount'], Decimal('300.00'))
        self.assertEqual([(b['branch_name'], b['total_bills'], b['attendance']) for b in row['branches']],
                         [('Andheri', 2, 1), ('Bandra', 1, 1)])

    def test_product_summary_by_branch(self):
        andheri = TestDataFactory.create_branch(name='Andheri')
        bandra = TestDataFactory.create_branch(name='Bandra')
        brownie = TestDataFactory.create_product(name='Brownie')
        TestDataFactory.create_order(andheri, items=[(brownie, 2, '60.00', None)])
        TestDataFactory.create_order(bandra, items=[(brownie, 3, '60.00', None)])
        TestDataFactory.create_order(bandra, items=[(brownie, 7, '60.00', None)])

        summary = services.product_summary(OrderItem.objects.select_related('order__branch'))
        self.assertEqual(len(summary), 1)
        self.assertEqual(summary[0]['quantity'], Decimal('12'))
        self.assertEqual(summary[0]['branches'], 'Andheri(2), Bandra(10)')


class ReportAPITestBase(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)
        self.today = timezone.localdate()
        self.branch = TestDataFactory.create_branch(name='Andheri')
        self.product = TestDataFactory.create_product(name='Croissant')

    def bill(self, amount, hour=10, branch=None, **kwargs):
        return TestDataFactory.create_order(
            branch or self.branch, items=[(self.product, 1, amount, None)],
            created_at=local_dt(kwargs.pop('day', self.today), hour), **kwargs,
        )


class SalesReportAPITests(ReportAPITestBase):

    def test_timing_report(self):
        waiter = TestDataFactory.create_employee(name='Asha')
        self.bill('100.00', hour=9, waiter=waiter)
        self.bill('250.00', hour=11, tab='tableOrder')
        self.bill('999.00', hour=15, tab='liveOrder')
        self.bill('999.00', hour=16, status='draft')

        response = self.client.get('/api/v1/reports/timing/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([slot['slot'] for slot in response.data['slots']], ['9-10 AM', '10-11 AM', '11-12 AM'])
        self.assertEqual(response.data['grand_total'], Decimal('350.00'))
        self.assertEqual(response.data['grand_total_display'], '₹350.00')
        self.assertEqual(response.data['waiters'], [{'id': waiter.id, 'name': 'Asha'}])
        self.assertEqual(len(response.data['orders']), 2)

        response = self.client.get('/api/v1/reports/timing/', {'waiter': waiter.id})
        self.assertEqual(response.data['grand_total'], Decimal('100.00'))

        response = self.client.get('/api/v1/reports/timing/', {'start_date': 'bad'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_waiter_bills_sorting(self):
        asha = TestDataFactory.create_employee(name='Asha')
        zubin = TestDataFactory.create_employee(name='Zubin')
        self.bill('100.00', waiter=asha)
        self.bill('500.00', waiter=zubin)
        self.bill('75.00')

        response = self.client.get('/api/v1/reports/waiter-bills/')
        self.assertEqual([w['waiter_name'] for w in response.data['waiters']], ['Asha', 'Zubin'])
        self.assertEqual(response.data['total_bills'], 2)
        self.assertEqual(response.data['grand_total'], Decimal('600.00'))

        response = self.client.get('/api/v1/reports/waiter-bills/', {'sort': 'amount'})
        self.assertEqual([w['waiter_name'] for w in response.data['waiters']], ['Zubin', 'Asha'])

        response = self.client.get('/api/v1/reports/waiter-bills/', {'sort': 'tips'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_billing_summary(self):
        bandra = TestDataFactory.create_branch(name='Bandra')
        self.bill('100.00', payment_method='UPI')
        self.bill('200.00', payment_method='Card')
        self.bill('300.00', payment_method='Cash', branch=bandra)

        response = self.client.get('/api/v1/reports/billing-summary/')
        rows = {row['branch_name']: row for row in response.data['branches']}
        self.assertEqual(rows['Andheri']['upi'], Decimal('100.00'))
        self.assertEqual(rows['Andheri']['credit_card'], Decimal('200.00'))
        self.assertEqual(rows['Andheri']['bill_count'], 2)
        self.assertEqual(rows['Bandra']['cash'], Decimal('300.00'))
        self.assertEqual(response.data['grand_total'], Decimal('600.00'))
        self.assertEqual(response.data['products'][0]['branches'], 'Andheri(2), Bandra(1)')

        response = self.client.get('/api/v1/reports/billing-summary/', {'branch': bandra.id})
        self.assertEqual(response.data['grand_total'], Decimal('300.00'))

    def test_sales_summary(self):
        self.bill('100.00')
        self.bill('300.00')
        self.bill('50.00', day=self.today - timedelta(days=10))

        response = self.client.get('/api/v1/reports/sales-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['total_sales'], Decimal('400.00'))
        self.assertEqual(response.data['summary']['total_bills'], 2)
        self.assertEqual(response.data['summary']['average_bill'], Decimal('200.00'))
        self.assertEqual(response.data['daily_breakdown'][-1]['date'], self.today.isoformat())
        self.assertEqual(response.data['daily_breakdown'][-1]['bills'], 2)

    def test_sales_reports_are_admin_only(self):
        accounts = TestDataFactory.create_user(role='accounts')
        self.client.authenticate_user(accounts)
        for url in ('/api/v1/reports/timing/', '/api/v1/reports/waiter-bills/',
                    '/api/v1/reports/billing-summary/', '/api/v1/reports/sales-summary/'):
            self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)


class AccountsReportAPITests(ReportAPITestBase):

    def test_closing_summary_attributes_banks(self):
        bank = TestDataFactory.create_account(name='Bank A')
        TestDataFactory.create_settlement(self.branch, upi_account=bank)
        unmapped_branch = TestDataFactory.create_branch(name='Bandra')
        TestDataFactory.create_closing_entry(self.branch, system_sales=Decimal('1000'), upi_payment=Decimal('300'),
                                             credit_card_payment=Decimal('200'), cash_payment=Decimal('500'),
                                             denom_500=1)
        TestDataFactory.create_closing_entry(unmapped_branch, manual_sales=Decimal('100'), upi_payment=Decimal('100'))

        response = self.client.get('/api/v1/reports/closing-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['entry_count'], 2)
        self.assertEqual(response.data['totals']['total_sales'], Decimal('1100'))
        self.assertEqual(response.data['denominations']['denom_500'], 1)
        banks = {row['account']: row for row in response.data['banks']}
        self.assertEqual(banks['Bank A']['total'], Decimal('500'))
        self.assertEqual(banks['Unmapped']['total'], Decimal('100'))
        self.assertEqual(response.data['cash'][0], {'branch_name': 'Andheri', 'amount': Decimal('500')})

        yesterday = (self.today - timedelta(days=1)).isoformat()
        response = self.client.get('/api/v1/reports/closing-summary/', {'date_from': yesterday, 'date_to': yesterday})
        self.assertEqual(response.data['entry_count'], 0)

    def test_finance_summary(self):
        bank = TestDataFactory.create_account(name='Bank A')
        finance_services.deposit(bank, Decimal('1000'), self.branch)
        finance_services.expense(bank, Decimal('250'), self.branch, 'Rent')

        response = self.client.get('/api/v1/reports/finance-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary'], {
            'total_credit': Decimal('1000'), 'total_debit': Decimal('250'), 'net': Decimal('750'),
        })
        self.assertEqual(response.data['by_source'][0]['source'], 'Bank A')
        self.assertEqual(response.data['daily_breakdown'][0]['date'], self.today)

    def test_dealer_accounts(self):
        dealer = TestDataFactory.create_dealer(name='Amul Distributors')
        TestDataFactory.create_dealer(name='Zeta Traders')
        TestDataFactory.create_dealer_bill(dealer=dealer, amount=Decimal('1000'), paid=Decimal('400'))
        TestDataFactory.create_dealer_bill(dealer=dealer, amount=Decimal('500'), paid=Decimal('500'))

        response = self.client.get('/api/v1/reports/dealer-accounts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rows = {row['dealer_name']: row for row in response.data['dealers']}
        first, second = rows['Amul Distributors'], rows['Zeta Traders']
        self.assertEqual(response.data['dealers'][0]['dealer_name'], 'Amul Distributors')
        self.assertEqual(first['bill_count'], 2)
        self.assertEqual(first['total_pending'], Decimal('600'))
        self.assertEqual(second['bill_count'], 0)
        self.assertEqual(second['total_amount'], Decimal('0'))
        self.assertEqual(response.data['summary']['total_paid'], Decimal('900'))

    def test_accounts_role_allowed_branch_role_denied(self):
        accounts = TestDataFactory.create_user(role='accounts')
        self.client.authenticate_user(accounts)
        self.assertEqual(self.client.get('/api/v1/reports/finance-summary/').status_code, status.HTTP_200_OK)

        branch_user = TestDataFactory.create_user(role='branch', branch=self.branch)
        self.client.authenticate_user(branch_user)
        self.assertEqual(self.client.get('/api/v1/reports/dealer-accounts/').status_code, status.HTTP_403_FORBIDDEN)

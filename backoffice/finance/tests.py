"""
Test suite for the ledger: deposits, expenses and closing entries
"""
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backoffice.core.exceptions import DomainError
from backoffice.core.models import AuditLog
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.finance import services
from backoffice.finance.models import Account, Transaction, ClosingEntry


class LedgerServiceTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        self.account = TestDataFactory.create_account(name='Bank A')

    def test_balance_equals_sum_of_postings(self):
        services.deposit(self.account, Decimal('1000'), self.branch)
        services.deposit(self.account, Decimal('250.50'), self.branch)
        account, txn = services.expense(self.account, Decimal('400'), self.branch, 'Rent')
        self.assertEqual(account.balance, Decimal('850.50'))
        self.assertEqual(txn.type, Transaction.TYPE_EXPENSE)
        self.assertEqual(txn.expense_category, 'Rent')

        credits = sum(t.amount for t in Transaction.objects.filter(type=Transaction.TYPE_DEPOSIT))
        debits = sum(t.amount for t in Transaction.objects.filter(type=Transaction.TYPE_EXPENSE))
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, credits - debits)

    def test_expense_cannot_overdraw(self):
        services.deposit(self.account, Decimal('100'), self.branch)
        with self.assertRaises(DomainError) as ctx:
            services.expense(self.account, Decimal('100.01'), self.branch, 'Supplies')
        self.assertEqual(ctx.exception.message, 'Insufficient balance in Bank A')
        self.account.refresh_from_db()
        self.assertEqual(self.account.balance, Decimal('100'))

    def test_resolve_source(self):
        self.assertEqual(services.resolve_source('Bank A'), self.account)
        # default sources are created on demand
        self.assertEqual(services.resolve_source('Cash-in-Hand').kind, 'cash')
        with self.assertRaises(DomainError) as ctx:
            services.resolve_source('Bank Z')
        self.assertEqual(ctx.exception.message, 'Invalid source')

    def test_branch_cash_account_is_reused(self):
        first = services.branch_cash_account(self.branch)
        second = services.branch_cash_account(self.branch)
        self.assertEqual(first, second)
        self.assertEqual(first.name, f'Cash in Hand - {self.branch.name}')


class SegmentedBillingTests(TestCase):

    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        self.product = TestDataFactory.create_product()
        self.today = timezone.localdate()

    def test_only_billed_tabs_count(self):
        TestDataFactory.create_order(self.branch, items=[(self.product, 2, '100.00', None)])
        TestDataFactory.create_order(self.branch, items=[(self.product, 1, '50.00', None)], tab='tableOrder')
        TestDataFactory.create_order(self.branch, items=[(self.product, 5, '100.00', None)], tab='liveOrder')
        TestDataFactory.create_order(self.branch, items=[(self.product, 5, '100.00', None)], status='draft')
        total = services.segmented_billing_total(self.branch, self.today, timezone.now())
        self.assertEqual(total, Decimal('250.00'))

    def test_second_entry_only_counts_bills_since_the_first(self):
        now = timezone.make_aware(datetime.combine(self.today, time(12)))
        TestDataFactory.create_order(self.branch, items=[(self.product, 1, '100.00', None)],
                                     created_at=now - timedelta(minutes=30))
        TestDataFactory.create_closing_entry(self.branch, date=self.today, created_at=now - timedelta(minutes=20))
        TestDataFactory.create_order(self.branch, items=[(self.product, 1, '40.00', None)],
                                     created_at=now - timedelta(minutes=10))
        total = services.segmented_billing_total(self.branch, self.today, now)
        self.assertEqual(total, Decimal('40.00'))


class FinanceAPITestBase(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(role='accounts')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.branch = TestDataFactory.create_branch(name='Marine Drive')


class LedgerMovementAPITests(FinanceAPITestBase):

    def test_deposit_then_expense(self):
        response = self.client.post('/api/v1/financial/deposit/', {
            'source': 'Bank A', 'amount': '500.00', 'branch': self.branch.id, 'remarks': 'Opening float',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['balance'], {'source': 'Bank A', 'balance': Decimal('500.00')})
        self.assertEqual(response.data['transaction']['type'], 'Credit - Deposit')

        response = self.client.post('/api/v1/financial/expense/', {
            'source': 'Bank A', 'amount': '200.00', 'branch': self.branch.id, 'category': 'Electricity',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Account.objects.get(name='Bank A').balance, Decimal('300.00'))
        self.assertTrue(AuditLog.objects.filter(action='finance_expense').exists())

    def test_expense_rejections(self):
        payload = {'source': 'Bank B', 'amount': '50.00', 'branch': self.branch.id, 'category': 'Gas'}
        response = self.client.post('/api/v1/financial/expense/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Insufficient balance in Bank B')

        response = self.client.post('/api/v1/financial/expense/', dict(payload, category=''), format='json')
        self.assertEqual(response.data['error'], 'Source, category, amount, and branch are required')

        response = self.client.post('/api/v1/financial/expense/', dict(payload, source='Bank Z'), format='json')
        self.assertEqual(response.data['error'], 'Invalid source')

        response = self.client.post('/api/v1/financial/deposit/', dict(payload, amount='0'), format='json')
        self.assertEqual(response.data['error'], 'Amount must be greater than 0')
        self.assertFalse(Transaction.objects.exists())

    def test_balances_need_finance_role(self):
        response = self.client.get('/api/v1/financial/balances/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Cash-in-Hand', [row['source'] for row in response.data])

        branch_user = TestDataFactory.create_user(role='branch', branch=self.branch)
        self.client.authenticate_user(branch_user)
        response = self.client.get('/api/v1/financial/balances/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ClosingEntryAPITests(FinanceAPITestBase):

    def _payload(self, **overrides):
        data = {
            'branch': self.branch.id,
            'date': timezone.localdate().isoformat(),
            'system_sales': '3000.00',
            'manual_sales': '200.00',
            'online_sales': '300.00',
            'expenses': '100.00',
            'expense_details': [{'serial_no': 1, 'reason': 'Milk', 'recipient': 'Dairy', 'amount': '100.00'}],
            'credit_card_payment': '400.00',
            'upi_payment': '600.00',
            'cash_payment': '2500.00',
            'denom_2000': 1, 'denom_500': 1, 'denom_200': 0, 'denom_100': 0,
            'denom_50': 0, 'denom_20': 0, 'denom_10': 0,
        }
        data.update(overrides)
        return data

    def test_create_posts_cash_and_combined_bank_deposit(self):
        bank = TestDataFactory.create_account(name='Bank C')
        TestDataFactory.create_settlement(self.branch, upi_account=bank)
        product = TestDataFactory.create_product()
        TestDataFactory.create_order(self.branch, items=[(product, 10, '100.00', 5)])

        response = self.client.post('/api/v1/closing-entries/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        entry = response.data['closing_entry']
        self.assertEqual(Decimal(str(entry['billing_total'])), Decimal('1050.00'))
        self.assertEqual(Decimal(str(entry['system_sales'])), Decimal('4050.00'))
        self.assertEqual(Decimal(str(entry['net_result'])), Decimal('3400.00'))

        cash = Account.objects.get(name=f'Cash in Hand - {self.branch.name}')
        self.assertEqual(cash.balance, Decimal('2500.00'))
        bank.refresh_from_db()
        self.assertEqual(bank.balance, Decimal('1000.00'))
        remarks = set(Transaction.objects.filter(closing_entry_id=entry['id']).values_list('remarks', flat=True))
        self.assertEqual(remarks, {'From Closing Entry', 'From Closing Entry (UPI + Credit Card)'})

    def test_create_with_separate_settlement_banks(self):
        upi_bank = TestDataFactory.create_account(name='UPI Bank')
        card_bank = TestDataFactory.create_account(name='Card Bank')
        TestDataFactory.create_settlement(self.branch, upi_account=upi_bank, card_account=card_bank)

        response = self.client.post('/api/v1/closing-entries/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        upi_bank.refresh_from_db()
        card_bank.refresh_from_db()
        self.assertEqual(upi_bank.balance, Decimal('600.00'))
        self.assertEqual(card_bank.balance, Decimal('400.00'))
        self.assertTrue(Transaction.objects.filter(remarks='From Closing Entry (UPI)').exists())
        self.assertTrue(Transaction.objects.filter(remarks='From Closing Entry (Credit Card)').exists())

    def test_missing_settlement_rolls_back(self):
        response = self.client.post('/api/v1/closing-entries/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], f'No bank mapping for UPI or Credit Card for branch {self.branch.name}')
        self.assertFalse(ClosingEntry.objects.exists())
        self.assertFalse(Transaction.objects.exists())

    def test_cash_only_entry_needs_no_settlement(self):
        response = self.client.post('/api/v1/closing-entries/',
                                    self._payload(upi_payment='0', credit_card_payment='0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_validation_messages(self):
        response = self.client.post('/api/v1/closing-entries/', self._payload(expenses='150.00'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('must match the expenses total', response.data['error'])

        response = self.client.post('/api/v1/closing-entries/', self._payload(cash_payment='2600.00'), format='json')
        self.assertIn('must equal cash payment', response.data['error'])

        response = self.client.post('/api/v1/closing-entries/', self._payload(manual_sales='-1'), format='json')
        self.assertEqual(response.data['error'], 'All values must be non-negative')

        details = [{'serial_no': 1, 'reason': '', 'recipient': '', 'amount': '100.00'}]
        response = self.client.post('/api/v1/closing-entries/', self._payload(expense_details=details), format='json')
        self.assertIn('All expense details fields', response.data['error'])

        response = self.client.post('/api/v1/closing-entries/', self._payload(expense_details=[]), format='json')
        self.assertEqual(response.data['error'], 'Expense details are required')

    def test_update_reverses_previous_postings(self):
        TestDataFactory.create_settlement(self.branch, upi_account=TestDataFactory.create_account(name='Bank C'))
        entry_id = self.client.post('/api/v1/closing-entries/', self._payload(), format='json').data['closing_entry']['id']

        payload = self._payload(upi_payment='0', credit_card_payment='0', cash_payment='500.00', denom_2000=0)
        response = self.client.put(f'/api/v1/closing-entries/{entry_id}/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(Account.objects.get(name=f'Cash in Hand - {self.branch.name}').balance, Decimal('500.00'))
        self.assertEqual(Account.objects.get(name='Bank C').balance, Decimal('0'))
        postings = Transaction.objects.filter(closing_entry_id=entry_id)
        self.assertEqual(postings.count(), 1)
        self.assertEqual(postings.get().remarks, 'From Closing Entry Update')

    def test_branch_user_limited_to_own_branch(self):
        other = TestDataFactory.create_branch()
        branch_user = TestDataFactory.create_user(role='branch', branch=self.branch)
        self.client.authenticate_user(branch_user)
        response = self.client.post('/api/v1/closing-entries/', self._payload(branch=other.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        entry = TestDataFactory.create_closing_entry(other)
        response = self.client.get(f'/api/v1/closing-entries/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.get('/api/v1/closing-entries/')
        self.assertEqual(response.data, [])

    def test_date_filters(self):
        today = timezone.localdate()
        TestDataFactory.create_closing_entry(self.branch, date=today - timedelta(days=3))
        recent = TestDataFactory.create_closing_entry(self.branch, date=today)
        response = self.client.get('/api/v1/closing-entries/', {'date_from': str(today - timedelta(days=1))})
        self.assertEqual([e['id'] for e in response.data], [recent.id])

    def test_malformed_date_filter(self):
        response = self.client.get('/api/v1/closing-entries/', {'date_from': 'notadate'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid date format. Use YYYY-MM-DD')


class TransactionListAPITests(FinanceAPITestBase):

    def setUp(self):
        super().setUp()
        self.other_branch = TestDataFactory.create_branch(name='Park Street')
        self.bank_a = TestDataFactory.create_account(name='Bank A')
        self.bank_b = TestDataFactory.create_account(name='Bank B')
        self.today = timezone.localdate()
        services.deposit(self.bank_a, Decimal('1000'), self.branch, date=self.today - timedelta(days=5))
        services.deposit(self.bank_b, Decimal('300'), self.other_branch, date=self.today)
        services.expense(self.bank_a, Decimal('200'), self.branch, 'Rent', date=self.today)

    def _amounts(self, params=None):
        response = self.client.get('/api/v1/financial/transactions/', params or {})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return sorted(Decimal(str(t['amount'])) for t in response.data)

    def test_unfiltered_lists_everything(self):
        self.assertEqual(self._amounts(), [Decimal('200'), Decimal('300'), Decimal('1000')])

    def test_filters(self):
        self.assertEqual(self._amounts({'source': 'Bank A'}), [Decimal('200'), Decimal('1000')])
        self.assertEqual(self._amounts({'type': Transaction.TYPE_EXPENSE}), [Decimal('200')])
        self.assertEqual(self._amounts({'branch': self.other_branch.id}), [Decimal('300')])
        self.assertEqual(self._amounts({'date_from': str(self.today)}), [Decimal('200'), Decimal('300')])
        self.assertEqual(self._amounts({'date_to': str(self.today - timedelta(days=1))}), [Decimal('1000')])

    def test_malformed_date_filter(self):
        response = self.client.get('/api/v1/financial/transactions/', {'date_from': '2024-13-45'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid date format. Use YYYY-MM-DD')

    def test_non_finite_amount_rejected(self):
        with self.assertRaises(DomainError) as ctx:
            services.deposit(self.bank_a, Decimal('NaN'), self.branch)
        self.assertEqual(ctx.exception.field, 'amount')


class BranchSettlementAPITests(FinanceAPITestBase):

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(TestDataFactory.create_user(role='superadmin'))
        self.bank = TestDataFactory.create_account(name='Bank A')
        self.url = f'/api/v1/financial/settlements/{self.branch.id}/'

    def test_unset_settlement_is_empty(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {})

    def test_put_then_get(self):
        card_bank = TestDataFactory.create_account(name='Bank B')
        response = self.client.put(self.url, {'upi_account': self.bank.id, 'card_account': card_bank.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.client.get(self.url)
        self.assertEqual(response.data['branch'], self.branch.id)
        self.assertEqual(response.data['upi_account_name'], 'Bank A')
        self.assertEqual(response.data['card_account_name'], 'Bank B')

    def test_cash_account_rejected(self):
        cash = TestDataFactory.create_account(name='Till', kind='cash')
        response = self.client.put(self.url, {'upi_account': cash.id, 'card_account': self.bank.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Settlement account must be a bank account')

    def test_accounts_role_cannot_manage_settlements(self):
        self.client.authenticate_user(self.user)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

"""
Ledger postings. Account balances only move through ``deposit``/``expense``
(or the reversal of a closing entry), always under a row lock, so the balance
of an account equals the sum of its transactions.
"""
import logging
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from backoffice.core.exceptions import DomainError
from .models import Account, BranchSettlement, Transaction, ClosingEntry, ExpenseDetail

logger = logging.getLogger('backoffice.finance')

CLOSING_REMARK = 'From Closing Entry'
BILLED_TABS = ('billing', 'tableOrder')


def ensure_default_accounts():
    """Create the configured default ledger sources the first time they are needed"""
    for name, kind in settings.BACKOFFICE['DEFAULT_ACCOUNTS']:
        Account.objects.get_or_create(name=name, defaults={'kind': kind})


def branch_cash_account(branch):
    account, created = Account.objects.get_or_create(
        name=f'Cash in Hand - {branch.name}',
        defaults={'kind': 'cash', 'branch': branch},
    )
    if created:
        logger.info(f"Created cash account for branch {branch.name}")
    return account


def resolve_source(source):
    ensure_default_accounts()
    account = Account.objects.filter(name=source, is_active=True).first()
    if account is None:
        raise DomainError('Invalid source', field='source')
    return account


@transaction.atomic
def deposit(account, amount, branch, remarks=None, date=None, closing_entry=None, user=None):
    amount = Decimal(str(amount))
    if not amount.is_finite() or amount <= 0:
        raise DomainError('Amount must be greater than 0', field='amount')
    account = Account.objects.select_for_update().get(pk=account.pk)
    account.balance = account.balance + amount
    account.save(update_fields=['balance', 'updated_at'])
    txn = Transaction.objects.create(
        date=date or timezone.localdate(),
        type=Transaction.TYPE_DEPOSIT,
        account=account,
        branch=branch,
        amount=amount,
        remarks=remarks or 'N/A',
        closing_entry=closing_entry,
        created_by=user if user is not None and user.is_authenticated else None,
    )
    return account, txn


@transaction.atomic
def expense(account, amount, branch, category, remarks=None, date=None, user=None):
    amount = Decimal(str(amount))
    if not amount.is_finite() or amount <= 0:
        raise DomainError('Amount must be greater than 0', field='amount')
    account = Account.objects.select_for_update().get(pk=account.pk)
    if amount > account.balance:
        raise DomainError(f'Insufficient balance in {account.name}', field='amount')
    account.balance = account.balance - amount
    account.save(update_fields=['balance', 'updated_at'])
    txn = Transaction.objects.create(
        date=date or timezone.localdate(),
        type=Transaction.TYPE_EXPENSE,
        account=account,
        branch=branch,
        amount=amount,
        expense_category=category,
        remarks=remarks or 'N/A',
        created_by=user if user is not None and user.is_authenticated else None,
    )
    return account, txn


def _day_bounds(day):
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    return start, start + timedelta(days=1)


def _billed_total(branch, start, end, include_start=False):
    from backoffice.pos.models import Order
    orders = Order.objects.filter(branch=branch, tab__in=BILLED_TABS, created_at__lte=end).exclude(status='draft')
    orders = orders.filter(created_at__gte=start) if include_start else orders.filter(created_at__gt=start)
    return orders.aggregate(total=Sum('total_with_gst'))['total'] or Decimal('0')


def segmented_billing_total(branch, day, created_at, exclude_pk=None):
    """
    Billing that belongs to a closing entry made at ``created_at``: everything
    billed since the branch's previous entry that day (or since midnight),
    plus the rest of the day when no later entry exists yet.
    """
    day_start, next_day = _day_bounds(day)
    day_end = next_day - timedelta(microseconds=1)
    same_day = ClosingEntry.objects.filter(branch=branch, date=day)
    if exclude_pk:
        same_day = same_day.exclude(pk=exclude_pk)

    previous = same_day.filter(created_at__lt=created_at).order_by('-created_at').first()
    if previous is not None:
        total = _billed_total(branch, previous.created_at, created_at)
    else:
        total = _billed_total(branch, day_start, created_at, include_start=True)

    if not same_day.filter(created_at__gt=created_at).exists():
        total += _billed_total(branch, created_at, day_end)
    return total


def _post_closing_entry(entry, user=None, update=False):
    """Credit the drawer with the cash and the settlement banks with UPI/card takings"""
    suffix = ' Update' if update else ''
    remark = f'{CLOSING_REMARK}{suffix}'
    branch = entry.branch

    if entry.cash_payment > 0:
        deposit(branch_cash_account(branch), entry.cash_payment, branch,
                remarks=remark, date=entry.date, closing_entry=entry, user=user)

    upi, card = entry.upi_payment, entry.credit_card_payment
    if upi <= 0 and card <= 0:
        return

    settlement = BranchSettlement.objects.select_related('upi_account', 'card_account').filter(branch=branch).first()
    if settlement is None:
        raise DomainError(f'No bank mapping for UPI or Credit Card for branch {branch.name}')

    if settlement.upi_account_id == settlement.card_account_id:
        labels = [label for label, amount in (('UPI', upi), ('Credit Card', card)) if amount > 0]
        deposit(settlement.upi_account, upi + card, branch,
                remarks=f"{remark} ({' + '.join(labels)})", date=entry.date, closing_entry=entry, user=user)
        return

    if upi > 0:
        deposit(settlement.upi_account, upi, branch,
                remarks=f'{remark} (UPI)', date=entry.date, closing_entry=entry, user=user)
    if card > 0:
        deposit(settlement.card_account, card, branch,
                remarks=f'{remark} (Credit Card)', date=entry.date, closing_entry=entry, user=user)


def _reverse_closing_postings(entry):
    """Take an entry's earlier deposits back out of their accounts and drop them"""
    for txn in entry.transactions.select_related('account'):
        account = Account.objects.select_for_update().get(pk=txn.account_id)
        account.balance = account.balance - txn.amount
        account.save(update_fields=['balance', 'updated_at'])
        logger.debug(f"Reversed {txn.amount} from {account.name} for closing entry {entry.pk}")
    entry.transactions.all().delete()


def _apply_figures(entry, data):
    for field in ('date', 'manual_sales', 'online_sales', 'expenses', 'credit_card_payment',
                  'upi_payment', 'cash_payment') + tuple(f'denom_{v}' for v in ClosingEntry.DENOMINATIONS):
        setattr(entry, field, data[field])
    entry.net_result = data['system_sales'] + data['manual_sales'] + data['online_sales'] - data['expenses']


@transaction.atomic
def create_closing_entry(branch, data, details, user=None):
    """
    Save a validated closing entry and post it to the ledger. ``system_sales``
    in ``data`` is what the branch typed in; the segmented billing total is
    added on top of it.
    """
    entry = ClosingEntry(branch=branch, created_by=user if user is not None and user.is_authenticated else None)
    entry.created_at = timezone.now()
    _apply_figures(entry, data)
    entry.billing_total = segmented_billing_total(branch, data['date'], entry.created_at)
    entry.system_sales = data['system_sales'] + entry.billing_total
    entry.save()
    ExpenseDetail.objects.bulk_create([ExpenseDetail(closing_entry=entry, **detail) for detail in details])

    _post_closing_entry(entry, user=user)
    logger.info(f"Closing entry {entry.pk} for {branch.name} on {entry.date}: billing {entry.billing_total}, net {entry.net_result}")
    return entry


@transaction.atomic
def update_closing_entry(entry, data, details, user=None):
    entry = ClosingEntry.objects.select_for_update().select_related('branch').get(pk=entry.pk)
    _reverse_closing_postings(entry)

    _apply_figures(entry, data)
    entry.billing_total = segmented_billing_total(entry.branch, entry.date, entry.created_at, exclude_pk=entry.pk)
    entry.system_sales = data['system_sales'] + entry.billing_total
    entry.save()
    entry.expense_details.all().delete()
    ExpenseDetail.objects.bulk_create([ExpenseDetail(closing_entry=entry, **detail) for detail in details])

    _post_closing_entry(entry, user=user, update=True)
    logger.info(f"Closing entry {entry.pk} for {entry.branch.name} re-posted")
    return entry

"""
Report aggregations over orders, closing entries, ledger transactions and
dealer bills. Everything is bucketed by local (Asia/Kolkata) date and hour.
"""
from collections import OrderedDict, defaultdict
from datetime import datetime, time, timedelta
from decimal import Decimal

from django.utils import timezone

from backoffice.core.exceptions import DomainError

PRESETS = ('today', 'yesterday', 'last7days', 'tillnow', 'custom')
ZERO = Decimal('0')


def _parse(value, field):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise DomainError('Invalid date format. Use YYYY-MM-DD', field=field)


def resolve_range(params, default='today'):
    """
    Turn ``preset`` or ``start_date``/``end_date`` query params into an
    inclusive ``(start, end)`` pair of local dates.
    """
    today = timezone.localdate()
    preset = params.get('preset') or ('custom' if params.get('start_date') or params.get('end_date') else default)
    if preset not in PRESETS:
        raise DomainError(f"Invalid preset. Use one of: {', '.join(PRESETS)}", field='preset')

    if preset == 'today':
        return today, today
    if preset == 'yesterday':
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if preset == 'last7days':
        return today - timedelta(days=6), today
    if preset == 'tillnow':
        return today.replace(day=1), today

    start = _parse(params.get('start_date'), 'start_date') if params.get('start_date') else None
    end = _parse(params.get('end_date'), 'end_date') if params.get('end_date') else None
    start = start or end or today
    end = end or start
    if end < start:
        raise DomainError('end_date cannot be before start_date', field='end_date')
    return start, end


def local_bounds(start, end):
    tz = timezone.get_current_timezone()
    return (
        timezone.make_aware(datetime.combine(start, time.min), tz),
        timezone.make_aware(datetime.combine(end + timedelta(days=1), time.min), tz),
    )


def rupees(amount):
    return f"₹{Decimal(amount):.2f}"


def hour_label(hour):
    """``9`` -> ``9-10 AM``, ``12`` -> ``12-1 PM``"""
    display = hour % 12 or 12
    following = (hour + 1) % 12 or 12
    return f"{display}-{following} {'AM' if hour < 12 else 'PM'}"


def hourly_totals(orders):
    """Billed amount per local hour, trimmed to the first..last busy hour"""
    sums = [ZERO] * 24
    for order in orders:
        sums[timezone.localtime(order.created_at).hour] += order.total_with_gst or ZERO

    busy = [hour for hour, amount in enumerate(sums) if amount]
    slots = []
    if busy:
        for hour in range(busy[0], busy[-1] + 1):
            slots.append({'hour': hour, 'slot': hour_label(hour), 'amount': sums[hour], 'display': rupees(sums[hour])})
    total = sum(sums, ZERO)
    return slots, total


def unique_waiters(orders):
    waiters = {order.waiter_id: order.waiter.name for order in orders if order.waiter_id}
    return sorted(({'id': pk, 'name': name} for pk, name in waiters.items()), key=lambda w: w['name'].lower())


def waiter_summary(orders, sort='name'):
    """
    Per waiter: amount billed, bill count and attendance (distinct days with a
    bill), each broken down by branch.
    """
    waiters = OrderedDict()
    for order in orders:
        if not order.waiter_id:
            continue
        day = timezone.localtime(order.created_at).date()
        data = waiters.setdefault(order.waiter_id, {
            'waiter_id': order.waiter_id,
            'waiter_name': order.waiter.name,
            'total_amount': ZERO,
            'total_bills': 0,
            'days': set(),
            'branches': OrderedDict(),
        })
        data['total_amount'] += order.total_with_gst
        data['total_bills'] += 1
        data['days'].add(day)
        branch = data['branches'].setdefault(order.branch_id, {
            'branch_id': order.branch_id,
            'branch_name': order.branch.name,
            'total_amount': ZERO,
            'total_bills': 0,
            'days': set(),
        })
        branch['total_amount'] += order.total_with_gst
        branch['total_bills'] += 1
        branch['days'].add(day)

    summary = []
    for data in waiters.values():
        branches = []
        for branch in data['branches'].values():
            branch['attendance'] = len(branch.pop('days'))
            branches.append(branch)
        data['attendance'] = len(data.pop('days'))
        data['branches'] = sorted(branches, key=lambda b: b['branch_name'].lower())
        summary.append(data)

    if sort == 'amount':
        summary.sort(key=lambda w: w['total_amount'], reverse=True)
    else:
        summary.sort(key=lambda w: w['waiter_name'].lower())
    return summary


def payment_bucket(method):
    method = (method or '').strip().lower().replace('-', ' ').replace('_', ' ')
    if method == 'upi':
        return 'upi'
    if method in ('card', 'credit card', 'creditcard', 'debit card'):
        return 'credit_card'
    if method == 'cash':
        return 'cash'
    return 'other'


def branch_billing(orders):
    branches = {}
    for order in orders:
        row = branches.setdefault(order.branch_id, {
            'branch_id': order.branch_id,
            'branch_name': order.branch.name,
            'upi': ZERO, 'credit_card': ZERO, 'cash': ZERO, 'other': ZERO,
            'total': ZERO, 'bill_count': 0,
        })
        row[payment_bucket(order.payment_method)] += order.total_with_gst
        row['total'] += order.total_with_gst
        row['bill_count'] += 1
    return sorted(branches.values(), key=lambda row: row['branch_name'].lower())


def product_summary(items):
    """Total quantity per product name with a ``Branch(qty)`` breakdown"""
    products = {}
    for item in items:
        row = products.setdefault(item.name, {'name': item.name, 'quantity': ZERO, 'by_branch': defaultdict(lambda: ZERO)})
        row['quantity'] += item.quantity
        row['by_branch'][item.order.branch.name] += item.quantity

    summary = []
    for row in sorted(products.values(), key=lambda r: r['name'].lower()):
        by_branch = sorted(row.pop('by_branch').items())
        row['branches'] = ', '.join(f"{name}({qty.normalize():f})" for name, qty in by_branch)
        summary.append(row)
    return summary


CLOSING_TOTAL_FIELDS = (
    'system_sales', 'manual_sales', 'online_sales', 'billing_total', 'expenses', 'net_result',
    'credit_card_payment', 'upi_payment', 'cash_payment',
)


def closing_summary(entries, settlements):
    """
    ``settlements`` maps branch id to its ``BranchSettlement``. Bank takings
    are attributed to the account that settles each payment type.
    """
    totals = {field: ZERO for field in CLOSING_TOTAL_FIELDS}
    denominations = OrderedDict((f'denom_{value}', 0) for value in (2000, 500, 200, 100, 50, 20, 10))
    banks = OrderedDict()
    cash = {}

    for entry in entries:
        for field in CLOSING_TOTAL_FIELDS:
            totals[field] += getattr(entry, field)
        for field in denominations:
            denominations[field] += getattr(entry, field)

        branch_name = entry.branch.name
        drawer = cash.setdefault(entry.branch_id, {'branch_name': branch_name, 'amount': ZERO})
        drawer['amount'] += entry.cash_payment

        settlement = settlements.get(entry.branch_id)
        for label, amount, account in (
            ('upi', entry.upi_payment, settlement.upi_account if settlement else None),
            ('credit_card', entry.credit_card_payment, settlement.card_account if settlement else None),
        ):
            if not amount:
                continue
            name = account.name if account else 'Unmapped'
            bank = banks.setdefault(name, {'account': name, 'total': ZERO, 'branches': {}})
            bank['total'] += amount
            row = bank['branches'].setdefault(branch_name, {'branch_name': branch_name, 'upi': ZERO, 'credit_card': ZERO, 'total': ZERO})
            row[label] += amount
            row['total'] += amount

    totals['total_sales'] = totals['system_sales'] + totals['manual_sales'] + totals['online_sales']
    bank_rows = []
    for bank in sorted(banks.values(), key=lambda b: b['account']):
        bank['branches'] = sorted(bank['branches'].values(), key=lambda r: r['branch_name'].lower())
        bank_rows.append(bank)
    return {
        'totals': totals,
        'denominations': denominations,
        'banks': bank_rows,
        'cash': sorted(cash.values(), key=lambda r: r['branch_name'].lower()),
    }


def finance_summary(transactions, deposit_type, expense_type):
    by_source = {}
    by_day = {}
    for txn in transactions:
        source = by_source.setdefault(txn.account.name, {'source': txn.account.name, 'credit': ZERO, 'debit': ZERO})
        day = by_day.setdefault(txn.date, {'date': txn.date, 'credit': ZERO, 'debit': ZERO})
        key = 'credit' if txn.type == deposit_type else 'debit' if txn.type == expense_type else None
        if key:
            source[key] += txn.amount
            day[key] += txn.amount

    for row in list(by_source.values()) + list(by_day.values()):
        row['net'] = row['credit'] - row['debit']
    return (
        sorted(by_source.values(), key=lambda r: r['source']),
        sorted(by_day.values(), key=lambda r: r['date']),
    )

"""
Order workflow: bill numbering, table occupancy, stock movements on
completion and delivery, and the overdue sweep.
"""
import logging
import random
import secrets
import time
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from backoffice.core.exceptions import DomainError
from backoffice.inventory import services as stock
from .models import Order, OrderItem, BillCounter, Table, TableCategory, KotOrder

logger = logging.getLogger('backoffice.pos')

VALID_STATUSES = [choice[0] for choice in Order.STATUS_CHOICES]


def generate_order_id():
    return f"ORD-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def next_bill_no(branch):
    """
    ``<first three letters of the branch><DDMMYY><daily counter>``, e.g.
    ``MAI21032501``. The counter restarts every local day per branch.

    Branches whose names share the first three letters share the prefix, so
    the counter skips numbers another branch has already issued.
    """
    today = timezone.localdate()
    counter, _ = BillCounter.objects.get_or_create(branch=branch, date=today)
    counter = BillCounter.objects.select_for_update().get(pk=counter.pk)
    prefix = f"{branch.name[:3].upper()}{today:%d%m%y}"
    counter.count += 1
    while Order.objects.filter(bill_no=f"{prefix}{counter.count:02d}").exists():
        counter.count += 1
    counter.save(update_fields=['count'])
    return f"{prefix}{counter.count:02d}"


@transaction.atomic
def create_order(branch, data, items, user=None):
    """
    Save a validated order with its items.

    ``data`` holds the header fields, ``items`` the item dicts in submission
    order. Completed orders take their quantities out of branch stock; table
    orders occupy or free their table.
    """
    tab = data['tab']
    order_status = data.get('status') or 'draft'

    table = None
    if tab == Order.TAB_TABLE and data.get('table'):
        table = Table.objects.select_for_update().get(pk=data['table'].pk)
        if table.status == 'Occupied' and table.current_order_id:
            raise DomainError('Table is already occupied with an active order')

    order = Order.objects.create(
        order_id=generate_order_id(),
        bill_no=next_bill_no(branch),
        branch=branch,
        tab=tab,
        payment_method=data['payment_method'],
        status=order_status,
        subtotal=data['subtotal'],
        total_gst=data['total_gst'],
        total_with_gst=data['total_with_gst'],
        total_items=data['total_items'],
        waiter=data.get('waiter'),
        delivery_datetime=data.get('delivery_datetime'),
        table=table,
        created_by=user if user is not None and user.is_authenticated else None,
    )
    OrderItem.objects.bulk_create([
        OrderItem(order=order, position=position, **item)
        for position, item in enumerate(items)
    ])

    if order_status == 'completed':
        stock.reduce_stock(branch.pk, [
            (item['product'].pk, item['quantity']) for item in items if item.get('product')
        ])

    if table is not None:
        if order_status == 'draft':
            table.status = 'Occupied'
            table.current_order = order
        elif order_status == 'completed':
            table.status = 'Free'
            table.current_order = None
        table.save(update_fields=['status', 'current_order'])

    logger.info(f"Order {order.bill_no} ({tab}, {order_status}) saved for {branch.name}")
    return order


def _transfer_label(order):
    return 'Stock' if order.tab == Order.TAB_STOCK else 'Live'


@transaction.atomic
def update_order(order, item_updates=None, new_status=None):
    """
    Apply per-item ``sending_qty``/``confirmed`` updates by position and move
    the order along its delivery workflow.
    """
    order = Order.objects.select_for_update().select_related('branch').get(pk=order.pk)
    items = list(order.items.select_related('product'))

    if item_updates is not None:
        for item, update in zip(items, item_updates):
            update = update or {}
            changed = []
            if update.get('sending_qty') is not None:
                item.sending_qty = update['sending_qty']
                changed.append('sending_qty')
            if update.get('confirmed') is not None:
                item.confirmed = bool(update['confirmed'])
                changed.append('confirmed')
            if changed:
                item.save(update_fields=changed)

    if new_status:
        if new_status not in VALID_STATUSES:
            raise DomainError('Invalid status value')
        if new_status == 'delivered' and order.status != 'completed':
            raise DomainError('Order must be completed before marking as delivered')
        if new_status == 'received' and order.status != 'delivered':
            raise DomainError('Order must be delivered before marking as received')

        if new_status == 'delivered':
            if order.tab in (Order.TAB_STOCK, Order.TAB_LIVE):
                label = _transfer_label(order)
                for item in items:
                    if item.sending_qty > 0 and item.product_id:
                        stock.transfer_from_factory(
                            item.product, order.branch, item.sending_qty,
                            outgoing_reason=f'Transferred to {order.branch.name} ({label} Order)',
                            incoming_reason=f'Received from Factory ({label} Order)',
                        )
            order.delivered_at = timezone.now()
        elif new_status == 'received':
            order.received_at = timezone.now()
        order.status = new_status

    order.save()
    return order


def mark_overdue_orders(now=None, dry_run=False):
    """
    Flag factory requests nobody has acted on as ``pending``: stock orders past
    their delivery time and live orders older than the configured hours.
    Returns the matched orders' bill numbers.
    """
    now = now or timezone.now()
    hours = settings.BACKOFFICE['LIVE_ORDER_OVERDUE_HOURS']
    overdue_stock = Order.objects.filter(tab=Order.TAB_STOCK, status='neworder', delivery_datetime__lt=now)
    overdue_live = Order.objects.filter(tab=Order.TAB_LIVE, status='neworder', created_at__lt=now - timedelta(hours=hours))
    overdue = overdue_stock | overdue_live

    bill_numbers = list(overdue.values_list('bill_no', flat=True))
    if bill_numbers and not dry_run:
        Order.objects.filter(bill_no__in=bill_numbers).update(status='pending')
        logger.info(f"Marked {len(bill_numbers)} overdue orders as pending")
    return bill_numbers


@transaction.atomic
def create_table_category(branch, name, table_count):
    category = TableCategory.objects.create(branch=branch, name=name, table_count=table_count)
    Table.objects.bulk_create([
        Table(table_number=f"{name}-{i}", category=category, branch=branch)
        for i in range(1, table_count + 1)
    ])
    return category


@transaction.atomic
def resize_table_category(category, table_count):
    """Grow or shrink a category; shrinking refuses to drop busy tables"""
    category = TableCategory.objects.select_for_update().get(pk=category.pk)
    current = category.table_count

    if table_count < current:
        tables = sorted(category.tables.all(), key=lambda t: t.sequence)
        to_remove = tables[table_count:]
        if any(t.status == 'Occupied' or t.current_order_id for t in to_remove):
            raise DomainError('Cannot decrease table count: some tables to be removed are occupied')
        Table.objects.filter(pk__in=[t.pk for t in to_remove]).delete()
    elif table_count > current:
        Table.objects.bulk_create([
            Table(table_number=f"{category.name}-{i}", category=category, branch=category.branch)
            for i in range(current + 1, table_count + 1)
        ])

    category.table_count = table_count
    category.save(update_fields=['table_count'])
    return category


def generate_form_number():
    """Random 10-digit KOT form number not yet in use"""
    while True:
        form_number = str(1_000_000_000 + secrets.randbelow(9_000_000_000))
        if not KotOrder.objects.filter(form_number=form_number).exists():
            return form_number

"""
Stock movements. Every change to ``Inventory.in_stock`` goes through here and
leaves a ``StockHistory`` row behind.
"""
import logging
from decimal import Decimal

from django.db import transaction

from backoffice.core.exceptions import DomainError
from .models import Inventory, StockHistory

logger = logging.getLogger('backoffice.inventory')

FACTORY_PRODUCTION = 'Factory Production'
MANUAL_UPDATE = 'Manual Update'
SALE = 'Sale'
SALE_INITIAL = 'Sale - Initial'


def _locked_record(product_id, branch_id):
    """Fetch (or create) the stock row for a location and lock it for update"""
    record, _ = Inventory.objects.get_or_create(product_id=product_id, branch_id=branch_id)
    return Inventory.objects.select_for_update().select_related('product', 'branch').get(pk=record.pk)


def _apply(record, change, reason):
    record.in_stock = record.in_stock + change
    record.save(update_fields=['in_stock', 'updated_at'])
    StockHistory.objects.create(inventory=record, change=change, reason=reason)


@transaction.atomic
def produce(product_id, quantity, reason=None):
    """Add freshly baked stock to the factory"""
    quantity = Decimal(str(quantity))
    record = _locked_record(product_id, None)
    _apply(record, quantity, reason or FACTORY_PRODUCTION)
    logger.info(f"Factory produced {quantity} of product {product_id}; now {record.in_stock}")
    return record


@transaction.atomic
def set_stock(record, new_stock, reason=None):
    """Overwrite the stock level, recording the difference when there is one"""
    record = Inventory.objects.select_for_update().get(pk=record.pk)
    new_stock = Decimal(str(new_stock))
    change = new_stock - record.in_stock
    if change != 0:
        StockHistory.objects.create(inventory=record, change=change, reason=reason or MANUAL_UPDATE)
    record.in_stock = new_stock
    record.save(update_fields=['in_stock', 'updated_at'])
    return record


@transaction.atomic
def reduce_stock(branch_id, items):
    """
    Take sold quantities out of a branch. Stock never goes below zero; a
    product the branch has never stocked gets a zero row so the sale is still
    on record.

    ``items`` is an iterable of ``(product_id, quantity)`` pairs.
    """
    items = list(items)
    for product_id, quantity in items:
        quantity = Decimal(str(quantity))
        record = Inventory.objects.select_for_update().filter(product_id=product_id, branch_id=branch_id).first()
        if record is None:
            record = Inventory.objects.create(product_id=product_id, branch_id=branch_id, in_stock=Decimal('0'))
            StockHistory.objects.create(inventory=record, change=-quantity, reason=SALE_INITIAL)
            continue
        record.in_stock = max(Decimal('0'), record.in_stock - quantity)
        record.save(update_fields=['in_stock', 'updated_at'])
        StockHistory.objects.create(inventory=record, change=-quantity, reason=SALE)
    logger.debug(f"Reduced stock at branch {branch_id} for {len(items)} products")


@transaction.atomic
def transfer_from_factory(product, branch, quantity, outgoing_reason=None, incoming_reason=None):
    """Move stock from the factory to a branch; raises DomainError when the factory is short"""
    quantity = Decimal(str(quantity))
    factory = Inventory.objects.select_for_update().filter(product=product, branch__isnull=True).first()
    if factory is None:
        raise DomainError(f'No factory stock found for product {product.name}')
    if factory.in_stock < quantity:
        raise DomainError(f'Insufficient factory stock for {product.name}')

    _apply(factory, -quantity, outgoing_reason or f'Transferred to {branch.name}')
    branch_record = _locked_record(product.pk, branch.pk)
    _apply(branch_record, quantity, incoming_reason or 'Received from Factory')
    logger.info(f"Transferred {quantity} of {product.name} from factory to {branch.name}")
    return factory, branch_record

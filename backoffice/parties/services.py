"""Stock bookkeeping for goods received from dealers."""
import logging

from django.db import transaction
from django.db.models import F

from .models import DealerProduct, StockEntry

logger = logging.getLogger('backoffice.parties')


def _adjust_product_stock(product_id, delta):
    product = DealerProduct.objects.select_for_update().get(pk=product_id)
    product.stock_quantity = max(0, product.stock_quantity + delta)
    product.save(update_fields=['stock_quantity', 'updated_at'])


@transaction.atomic
def record_stock_entry(validated_data):
    entry = StockEntry.objects.create(**validated_data)
    DealerProduct.objects.filter(pk=entry.product_id).update(stock_quantity=F('stock_quantity') + entry.pcs_count)
    logger.info(f"Stock entry {entry.id}: +{entry.pcs_count} pcs of product {entry.product_id}")
    return entry


@transaction.atomic
def update_stock_entry(entry, validated_data):
    """Move the entry's pieces off the old product and onto the new one."""
    _adjust_product_stock(entry.product_id, -entry.pcs_count)
    for attr, value in validated_data.items():
        setattr(entry, attr, value)
    entry.save()
    _adjust_product_stock(entry.product_id, entry.pcs_count)
    return entry


@transaction.atomic
def delete_stock_entry(entry):
    _adjust_product_stock(entry.product_id, -entry.pcs_count)
    entry.delete()

"""Product identity (sequential code and EAN-13) and product persistence."""
import logging

from django.conf import settings
from django.db import transaction

from .models import Product, PriceDetail

logger = logging.getLogger('backoffice.catalog')


def ean13_check_digit(digits: str) -> int:
    """Check digit for the first 12 digits of an EAN-13 (weights 1,3,1,3...)."""
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
    return (10 - total % 10) % 10


def build_upc(product_code: str) -> str:
    base = f"{settings.BACKOFFICE['EAN_COMPANY_PREFIX']}{product_code}"
    return f"{base}{ean13_check_digit(base)}"


def next_product_code() -> str:
    last_code = (
        Product.objects.select_for_update()
        .order_by('-product_code')
        .values_list('product_code', flat=True)
        .first()
    )
    return str(int(last_code) + 1 if last_code else 1).zfill(5)


def _write_price_details(product, price_details):
    product.price_details.all().delete()
    for position, detail in enumerate(price_details):
        detail = dict(detail)
        if detail.get('rate') is None:
            detail['rate'] = detail['price']
        if not product.is_cake:
            detail['cake_type'] = None
        PriceDetail.objects.create(product=product, position=position, **detail)


@transaction.atomic
def create_product(validated_data, images=None):
    dealers = validated_data.pop('dealers')
    price_details = validated_data.pop('price_details', [])
    if validated_data.get('product_type') != 'cake':
        validated_data['album'] = None

    product_code = next_product_code()
    product = Product.objects.create(
        product_code=product_code,
        upc=build_upc(product_code),
        images=list(images or []),
        **validated_data,
    )
    product.dealers.set(dealers)
    _write_price_details(product, price_details)
    logger.info(f"Product {product.name} created with code {product.product_code} and UPC {product.upc}")
    return product


@transaction.atomic
def update_product(product, validated_data, images=None):
    dealers = validated_data.pop('dealers', None)
    price_details = validated_data.pop('price_details', None)

    for attr, value in validated_data.items():
        setattr(product, attr, value)
    if not product.is_cake:
        product.album = None
    if images:
        product.images = list(product.images or []) + list(images)
    product.save()

    if dealers:
        product.dealers.set(dealers)
    if price_details is not None:
        _write_price_details(product, price_details)
    elif not product.is_cake:
        product.price_details.update(cake_type=None)
    return product


@transaction.atomic
def delete_product(product):
    """Remove a product along with every stock row held for it."""
    from backoffice.inventory.models import Inventory

    removed, _ = Inventory.objects.filter(product=product).delete()
    logger.info(f"Deleting product {product.name}; removed {removed} inventory rows")
    product.delete()

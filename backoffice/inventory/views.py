import logging
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import F
from django.shortcuts import get_object_or_404

from backoffice.catalog.models import Product
from backoffice.core.exceptions import DomainError
from backoffice.core.utils import create_audit_log
from backoffice.locations.models import Branch
from .models import Inventory
from .serializers import InventorySerializer, StockHistorySerializer
from . import services

logger = logging.getLogger('backoffice.inventory')


def _positive_decimal(value):
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError):
        return None
    return number if number.is_finite() and number > 0 else None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_list(request):
    """Stock rows; ?location=null for the factory, ?location=<branch id> for a branch"""
    queryset = Inventory.objects.select_related('product', 'product__category', 'branch')

    location = request.query_params.get('location', request.query_params.get('locationId'))
    if location == 'null':
        queryset = queryset.filter(branch__isnull=True)
    elif location:
        queryset = queryset.filter(branch_id=location)

    product = request.query_params.get('product')
    if product:
        queryset = queryset.filter(product_id=product)

    if request.query_params.get('low_stock') == 'true':
        queryset = queryset.filter(in_stock__lte=F('low_stock_threshold'))

    return Response(InventorySerializer(queryset, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def produce_stock(request):
    """Record factory production"""
    product_id = request.data.get('product')
    quantity = _positive_decimal(request.data.get('quantity'))
    if not product_id or quantity is None:
        return Response({'error': 'Product and a positive quantity are required'}, status=status.HTTP_400_BAD_REQUEST)
    product = get_object_or_404(Product, pk=product_id)

    record = services.produce(product.pk, quantity, request.data.get('reason'))
    create_audit_log(
        request=request, action='stock_produce', model_name='Inventory', object_id=record.pk,
        object_name=product.name, barcode=product.upc,
        changes={'quantity': quantity, 'in_stock': record.in_stock},
    )
    logger.info(f"User {request.user.username} produced {quantity} of {product.name}")
    return Response({'message': 'Stock produced successfully', 'inventory': InventorySerializer(record).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_stock(request, pk):
    """Set the stock level of a row; the delta goes to history"""
    record = get_object_or_404(Inventory, pk=pk)
    new_stock = request.data.get('in_stock')
    try:
        new_stock = Decimal(str(new_stock)) if new_stock is not None else record.in_stock
    except InvalidOperation:
        return Response({'error': 'in_stock must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    if not new_stock.is_finite():
        return Response({'error': 'in_stock must be a number'}, status=status.HTTP_400_BAD_REQUEST)
    if new_stock < 0:
        return Response({'error': 'in_stock cannot be negative'}, status=status.HTTP_400_BAD_REQUEST)

    old_stock = record.in_stock
    record = services.set_stock(record, new_stock, request.data.get('reason'))
    if old_stock != record.in_stock:
        create_audit_log(
            request=request, action='stock_adjust', model_name='Inventory', object_id=record.pk,
            object_name=record.product.name, barcode=record.product.upc,
            changes={'in_stock': {'old': old_stock, 'new': record.in_stock}},
        )
    return Response({'message': 'Stock updated successfully', 'inventory': InventorySerializer(record).data})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_threshold(request, pk):
    record = get_object_or_404(Inventory, pk=pk)
    threshold = request.data.get('low_stock_threshold')
    if threshold is not None:
        try:
            threshold = Decimal(str(threshold))
        except InvalidOperation:
            return Response({'error': 'low_stock_threshold must be a number'}, status=status.HTTP_400_BAD_REQUEST)
        if not threshold.is_finite() or threshold < 0:
            return Response({'error': 'low_stock_threshold cannot be negative'}, status=status.HTTP_400_BAD_REQUEST)
        record.low_stock_threshold = threshold
        record.save(update_fields=['low_stock_threshold', 'updated_at'])
    return Response({'message': 'Threshold updated successfully', 'inventory': InventorySerializer(record).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def reduce_stock(request):
    """Take sold quantities out of a branch"""
    branch_id = request.data.get('branch')
    products = request.data.get('products')
    if not branch_id or not isinstance(products, list):
        return Response({'error': 'Invalid request data'}, status=status.HTTP_400_BAD_REQUEST)
    branch = get_object_or_404(Branch, pk=branch_id)

    items = []
    for entry in products:
        quantity = _positive_decimal(entry.get('quantity')) if isinstance(entry, dict) else None
        if quantity is None or not entry.get('product'):
            return Response({'error': 'Invalid request data'}, status=status.HTTP_400_BAD_REQUEST)
        items.append((entry['product'], quantity))
    if Product.objects.filter(pk__in=[product_id for product_id, _ in items]).count() != len({p for p, _ in items}):
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)

    services.reduce_stock(branch.pk, items)
    create_audit_log(
        request=request, action='stock_sale', model_name='Inventory', object_id=branch.pk,
        object_name=branch.name, changes={'products': [{'product': p, 'quantity': q} for p, q in items]},
    )
    return Response({'message': 'Stock reduced successfully'})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def transfer_stock(request):
    """Move factory stock to a branch"""
    product_id = request.data.get('product')
    branch_id = request.data.get('branch')
    quantity = _positive_decimal(request.data.get('quantity'))
    if not product_id or not branch_id or quantity is None:
        return Response({'error': 'Product, branch and a positive quantity are required'}, status=status.HTTP_400_BAD_REQUEST)
    product = get_object_or_404(Product, pk=product_id)
    branch = get_object_or_404(Branch, pk=branch_id)

    reason = request.data.get('reason')
    try:
        factory, branch_record = services.transfer_from_factory(
            product, branch, quantity,
            outgoing_reason=reason and f'{reason} - to {branch.name}',
            incoming_reason=reason and f'{reason} - from Factory',
        )
    except DomainError as e:
        logger.warning(f"Transfer of {product.name} to {branch.name} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='stock_transfer', model_name='Inventory', object_id=branch_record.pk,
        object_name=product.name, barcode=product.upc,
        changes={'quantity': quantity, 'branch': branch.name, 'factory_stock': factory.in_stock},
    )
    return Response({
        'message': 'Stock transferred successfully',
        'factory': InventorySerializer(factory).data,
        'branch': InventorySerializer(branch_record).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_history(request, pk):
    record = get_object_or_404(Inventory, pk=pk)
    return Response(StockHistorySerializer(record.history.all(), many=True).data)

import logging
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError
from django.db.models import Q, ProtectedError
from django.shortcuts import get_object_or_404

from .models import Company, Dealer, DealerCategory, DealerProduct, StockEntry
from .serializers import (
    CompanySerializer, DealerSerializer, DealerCategorySerializer,
    DealerProductSerializer, StockEntrySerializer,
)
from . import services

logger = logging.getLogger('backoffice.parties')


def _first_error(errors):
    """Flatten a serializer error dict to its first message"""
    for value in errors.values():
        if isinstance(value, (list, tuple)) and value:
            return str(value[0])
        return str(value)
    return 'Invalid data'


# Company views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def company_list_create(request):
    """List companies or create a new company"""
    if request.method == 'GET':
        serializer = CompanySerializer(Company.objects.order_by('name'), many=True)
        return Response(serializer.data)

    if not str(request.data.get('name', '')).strip():
        return Response({'error': 'Company name is required'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = CompanySerializer(data=request.data)
    if serializer.is_valid():
        try:
            company = serializer.save()
        except IntegrityError:
            return Response({'error': 'Company already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"User {request.user.username} created company {company.name}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)


# Dealer views
def _dealer_duplicate(data, exclude_pk=None):
    """Return (message, field) for the first unique field already taken"""
    phone_no = str(data.get('phone_no', '') or '').strip()
    gst = str(data.get('gst', '') or '').strip()
    dealers = Dealer.objects.all()
    if exclude_pk:
        dealers = dealers.exclude(pk=exclude_pk)
    if phone_no and dealers.filter(phone_no=phone_no).exists():
        return 'Phone number already exists', 'phone_no'
    if gst and dealers.filter(gst=gst).exists():
        return 'GST already exists', 'gst'
    return None


def _save_dealer(request, serializer, dealer=None):
    data = request.data
    if not str(data.get('dealer_name', '') or '').strip() or not str(data.get('phone_no', '') or '').strip():
        if dealer is None or request.method == 'PUT':
            return Response({'error': 'Dealer name and phone number are required'}, status=status.HTTP_400_BAD_REQUEST)

    duplicate = _dealer_duplicate(data, exclude_pk=dealer.pk if dealer else None)
    if duplicate:
        message, field = duplicate
        logger.warning(f"Dealer save rejected: {message}")
        return Response({'error': message, 'field': field}, status=status.HTTP_400_BAD_REQUEST)

    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        saved = serializer.save()
    except IntegrityError as e:
        field = 'gst' if 'gst' in str(e).lower() else 'phone_no'
        message = 'GST already exists' if field == 'gst' else 'Phone number already exists'
        return Response({'error': message, 'field': field}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} saved dealer {saved.dealer_name}")
    return Response(serializer.data, status=status.HTTP_201_CREATED if dealer is None else status.HTTP_200_OK)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def dealer_list_create(request):
    """List all dealers or create a new dealer"""
    if request.method == 'GET':
        queryset = Dealer.objects.all().order_by('dealer_name')
        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(dealer_name__icontains=search) |
                Q(phone_no__icontains=search) |
                Q(gst__icontains=search)
            )
        serializer = DealerSerializer(queryset, many=True)
        return Response(serializer.data)
    return _save_dealer(request, DealerSerializer(data=request.data))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def dealer_detail(request, pk):
    """Retrieve, update or delete a dealer"""
    dealer = get_object_or_404(Dealer, pk=pk)

    if request.method == 'GET':
        return Response(DealerSerializer(dealer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = DealerSerializer(dealer, data=request.data, partial=request.method == 'PATCH')
        return _save_dealer(request, serializer, dealer=dealer)
    else:  # DELETE
        try:
            dealer.delete()
        except ProtectedError:
            return Response({'error': 'Cannot delete dealer with linked bills or stock entries'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"User {request.user.username} deleted dealer {pk}")
        return Response(status=status.HTTP_204_NO_CONTENT)


# Dealer category views
def _validate_dealer_category(data, category=None):
    name = str(data.get('category_name', '') or '').strip()
    if not name:
        return 'Category name is required'
    parent_id = data.get('parent_category')
    if parent_id:
        if not DealerCategory.objects.filter(pk=parent_id).exists():
            return 'Parent category not found'
        if category and str(parent_id) == str(category.pk):
            return 'Category cannot be its own parent'
    duplicates = DealerCategory.objects.filter(category_name__iexact=name)
    if category:
        duplicates = duplicates.exclude(pk=category.pk)
    if duplicates.exists():
        return 'Category name already exists'
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def dealer_category_list_create(request):
    """List dealer categories or create one"""
    if request.method == 'GET':
        categories = DealerCategory.objects.select_related('parent_category')
        return Response(DealerCategorySerializer(categories, many=True).data)

    error = _validate_dealer_category(request.data)
    if error:
        return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)
    serializer = DealerCategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def dealer_category_detail(request, pk):
    """Retrieve, update or delete a dealer category"""
    category = get_object_or_404(DealerCategory, pk=pk)

    if request.method == 'GET':
        return Response(DealerCategorySerializer(category).data)
    elif request.method == 'PUT':
        error = _validate_dealer_category(request.data, category=category)
        if error:
            return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)
        serializer = DealerCategorySerializer(category, data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if category.subcategories.exists():
            return Response({'error': 'Cannot delete category with subcategories'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            category.delete()
        except ProtectedError:
            return Response({'error': 'Cannot delete category with linked products'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Dealer product views
def _validate_dealer_product(data, product=None):
    name = str(data.get('product_name', '') or '').strip()
    category = data.get('category')
    barcode_no = str(data.get('barcode_no', '') or '').strip()
    if not name or not category or not barcode_no:
        return 'Product name, category, and barcode number are required'
    others = DealerProduct.objects.all()
    if product:
        others = others.exclude(pk=product.pk)
    if others.filter(barcode_no=barcode_no).exists():
        return 'Barcode number already exists'
    if others.filter(category_id=category, product_name__iexact=name).exists():
        return 'This product name already exists in the selected category'
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def dealer_product_list_create(request):
    """List dealer products (optionally by category) or create one"""
    if request.method == 'GET':
        products = DealerProduct.objects.select_related('category')
        category = request.query_params.get('category')
        if category:
            products = products.filter(category_id=category)
        return Response(DealerProductSerializer(products, many=True).data)

    error = _validate_dealer_product(request.data)
    if error:
        return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)
    serializer = DealerProductSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def dealer_product_detail(request, pk):
    """Retrieve, update or delete a dealer product"""
    product = get_object_or_404(DealerProduct, pk=pk)

    if request.method == 'GET':
        return Response(DealerProductSerializer(product).data)
    elif request.method == 'PUT':
        error = _validate_dealer_product(request.data, product=product)
        if error:
            return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)
        serializer = DealerProductSerializer(product, data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            product.delete()
        except ProtectedError:
            return Response({'error': 'Cannot delete product with stock entries'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Stock entry views
def _validate_stock_entry(data):
    required = ['dealer', 'category', 'product', 'pcs_count', 'amount']
    if any(data.get(field) in (None, '') for field in required):
        return 'All fields are required'
    try:
        pcs_count = int(data.get('pcs_count'))
    except (TypeError, ValueError):
        return 'Pieces count must be a positive integer'
    if pcs_count < 1:
        return 'Pieces count must be a positive integer'
    try:
        amount = Decimal(str(data.get('amount')))
    except InvalidOperation:
        return 'Amount must be a positive number'
    if not amount.is_finite() or amount < 0:
        return 'Amount must be a positive number'
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stock_entry_list_create(request):
    """List stock entries or record goods received"""
    if request.method == 'GET':
        entries = StockEntry.objects.select_related('dealer', 'category', 'product')
        return Response(StockEntrySerializer(entries, many=True).data)

    error = _validate_stock_entry(request.data)
    if error:
        return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)
    serializer = StockEntrySerializer(data=request.data)
    if serializer.is_valid():
        entry = services.record_stock_entry(serializer.validated_data)
        logger.info(f"User {request.user.username} recorded stock entry {entry.id}")
        return Response(StockEntrySerializer(entry).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def stock_entry_detail(request, pk):
    """Retrieve, update or delete a stock entry"""
    entry = get_object_or_404(StockEntry, pk=pk)

    if request.method == 'GET':
        return Response(StockEntrySerializer(entry).data)
    elif request.method == 'PUT':
        error = _validate_stock_entry(request.data)
        if error:
            return Response({'error': error}, status=status.HTTP_400_BAD_REQUEST)
        serializer = StockEntrySerializer(entry, data=request.data)
        if serializer.is_valid():
            entry = services.update_stock_entry(entry, serializer.validated_data)
            return Response(StockEntrySerializer(entry).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        services.delete_stock_entry(entry)
        logger.info(f"User {request.user.username} deleted stock entry {pk}")
        return Response(status=status.HTTP_204_NO_CONTENT)

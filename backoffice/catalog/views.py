import json
import logging
from decimal import Decimal

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.files.storage import default_storage
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404

from backoffice.core.permissions import is_admin_user
from .filters import ProductFilter
from .label_generator import generate_label_image
from .models import Department, Category, Album, Product
from .serializers import (
    DepartmentSerializer, CategorySerializer, AlbumSerializer, ProductSerializer,
)
from . import services

logger = logging.getLogger('backoffice.catalog')


def _is_superadmin(user):
    return getattr(user, 'role', None) == 'superadmin'


def _as_bool(value):
    return value is True or str(value).lower() in ('true', '1', 'on')


def _json_list(value):
    """Accept a list, a JSON-encoded list or a single id (multipart forms send strings)"""
    if value in (None, '', 'null'):
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and value.strip().startswith('['):
        return json.loads(value)
    return [value]


def _plain_data(request, list_fields=()):
    """Flatten request.data into a dict; JSON-encoded lists in multipart fields are decoded"""
    data = request.data
    if not hasattr(data, 'getlist'):
        return dict(data)
    plain = {}
    for key in data.keys():
        values = data.getlist(key)
        if key in list_fields:
            plain[key] = values if len(values) > 1 else _json_list(values[0] if values else None)
        else:
            plain[key] = values[-1] if values else None
    return plain


# Department views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def department_list_create(request):
    """List departments or create one (superadmin)"""
    if request.method == 'GET':
        return Response(DepartmentSerializer(Department.objects.all(), many=True).data)

    if not _is_superadmin(request.user):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)
    name = str(request.data.get('name', '')).strip()
    if Department.objects.filter(name__iexact=name).exists():
        return Response({'error': 'Department name already exists'}, status=status.HTTP_400_BAD_REQUEST)
    serializer = DepartmentSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        logger.info(f"User {request.user.username} created department {name}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def department_detail(request, pk):
    """Retrieve, update or delete a department (superadmin)"""
    department = get_object_or_404(Department, pk=pk)
    if request.method == 'GET':
        return Response(DepartmentSerializer(department).data)

    if not _is_superadmin(request.user):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'PUT':
        name = str(request.data.get('name', '')).strip()
        if Department.objects.filter(name__iexact=name).exclude(pk=pk).exists():
            return Response({'error': 'Department name already exists'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = DepartmentSerializer(department, data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if department.categories.exists():
        return Response({'error': 'Cannot delete department with linked categories'}, status=status.HTTP_400_BAD_REQUEST)
    department.delete()
    logger.info(f"User {request.user.username} deleted department {pk}")
    return Response(status=status.HTTP_204_NO_CONTENT)


# Category views
def _category_payload(request, category=None):
    """Validate category input; returns (data, error_response)"""
    data = _plain_data(request, list_fields=('departments',))
    name = str(data.get('name', '') or '').strip()

    if name:
        duplicates = Category.objects.filter(name=name)
        if category:
            duplicates = duplicates.exclude(pk=category.pk)
        if duplicates.exists():
            return None, Response({'error': 'Category name already exists'}, status=status.HTTP_400_BAD_REQUEST)

    parent = data.get('parent')
    if parent in ('', 'null'):
        data['parent'] = None
    elif parent:
        if not Category.objects.filter(pk=parent).exists():
            return None, Response({'error': 'Parent category not found'}, status=status.HTTP_404_NOT_FOUND)
        if category and str(parent) == str(category.pk):
            return None, Response({'error': 'Category cannot be its own parent'}, status=status.HTTP_400_BAD_REQUEST)

    if 'departments' in data:
        try:
            department_ids = _json_list(data['departments'])
        except ValueError:
            return None, Response({'error': 'Invalid departments format'}, status=status.HTTP_400_BAD_REQUEST)
        for department_id in department_ids:
            if not Department.objects.filter(pk=department_id).exists():
                return None, Response({'error': f'Department {department_id} not found'}, status=status.HTTP_404_NOT_FOUND)
        data['departments'] = department_ids

    for flag in ('is_pastry_product', 'is_cake', 'is_billing'):
        if flag in data:
            data[flag] = _as_bool(data[flag])
    if 'image' in request.FILES:
        data['image'] = request.FILES['image']
    elif 'image' in data and not data['image']:
        data.pop('image')
    return data, None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List categories (type/department/parent filters) or create one (superadmin)"""
    if request.method == 'GET':
        categories = Category.objects.select_related('parent').prefetch_related('departments')
        type_filter = request.query_params.get('type')
        if type_filter == 'pastry':
            categories = categories.filter(is_pastry_product=True)
        elif type_filter == 'cake':
            categories = categories.filter(is_cake=True)
        elif type_filter in ('billing', 'biling'):
            categories = categories.filter(is_billing=True)

        department = request.query_params.get('department') or request.query_params.get('departmentId')
        if department:
            categories = categories.filter(departments__id=department).distinct()

        parent = request.query_params.get('parent')
        if parent == 'null':
            categories = categories.filter(parent__isnull=True)
        elif parent:
            categories = categories.filter(parent_id=parent)
        return Response(CategorySerializer(categories, many=True).data)

    if not _is_superadmin(request.user):
        logger.warning(f"User {request.user.username} attempted to create a category")
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    data, error_response = _category_payload(request)
    if error_response:
        return error_response
    serializer = CategorySerializer(data=data)
    if serializer.is_valid():
        category = serializer.save()
        logger.info(f"User {request.user.username} created category {category.name}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    """Retrieve, update or delete a category (changes require superadmin)"""
    category = get_object_or_404(Category, pk=pk)
    if request.method == 'GET':
        return Response(CategorySerializer(category).data)

    if not _is_superadmin(request.user):
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        data, error_response = _category_payload(request, category=category)
        if error_response:
            return error_response
        serializer = CategorySerializer(category, data=data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if category.children.exists():
        return Response({'error': 'Cannot delete category with subcategories'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        category.delete()
    except ProtectedError:
        return Response({'error': 'Cannot delete category with linked products'}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} deleted category {pk}")
    return Response(status=status.HTTP_204_NO_CONTENT)


# Album views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def album_list_create(request):
    """List albums or create one"""
    if request.method == 'GET':
        albums = Album.objects.all()
        if request.query_params.get('enabled') is not None:
            albums = albums.filter(enabled=_as_bool(request.query_params['enabled']))
        return Response(AlbumSerializer(albums, many=True).data)

    serializer = AlbumSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    if 'name' in serializer.errors:
        return Response({'error': str(serializer.errors['name'][0])}, status=status.HTTP_400_BAD_REQUEST)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def album_detail(request, pk):
    """Retrieve, update or delete an album"""
    album = get_object_or_404(Album, pk=pk)
    if request.method == 'GET':
        return Response(AlbumSerializer(album).data)
    elif request.method == 'PUT':
        serializer = AlbumSerializer(album, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        if 'name' in serializer.errors:
            return Response({'error': str(serializer.errors['name'][0])}, status=status.HTTP_400_BAD_REQUEST)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    album.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def album_toggle_status(request, pk):
    album = get_object_or_404(Album, pk=pk)
    album.enabled = not album.enabled
    album.save(update_fields=['enabled', 'updated_at'])
    state = 'enabled' if album.enabled else 'disabled'
    return Response({'message': f'Album {state} successfully', 'album': AlbumSerializer(album).data})


# Product views
def _product_payload(request):
    data = _plain_data(request, list_fields=('dealers',))
    price_details = data.get('price_details')
    if isinstance(price_details, str):
        data['price_details'] = json.loads(price_details) if price_details.strip() else []
    for flag in ('is_veg', 'is_pastry', 'available'):
        if flag in data and isinstance(data[flag], str):
            data[flag] = _as_bool(data[flag])
    for nullable in ('company', 'album'):
        if data.get(nullable) in ('', 'null'):
            data[nullable] = None
    return data


def _store_images(files):
    return [default_storage.save(f'products/{image.name}', image) for image in files]


def _discard_images(paths):
    for path in paths:
        default_storage.delete(path)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products (django-filter) or create one with its price details"""
    if request.method == 'GET':
        queryset = Product.objects.select_related('category', 'company', 'album').prefetch_related('dealers', 'price_details')
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        return Response(ProductSerializer(filterset.qs, many=True).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can create products'}, status=status.HTTP_403_FORBIDDEN)
    try:
        data = _product_payload(request)
    except ValueError:
        return Response({'error': 'Invalid price details format'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ProductSerializer(data=data)
    if not serializer.is_valid():
        logger.warning(f"Product creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    images = _store_images(request.FILES.getlist('images'))
    try:
        product = services.create_product(dict(serializer.validated_data), images=images)
    except Exception as e:
        _discard_images(images)
        logger.error(f"Unexpected error creating product: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info(f"User {request.user.username} created product {product.name}")
    return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    if not is_admin_user(request.user):
        return Response({'error': 'Only administrators can modify products'}, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        try:
            data = _product_payload(request)
        except ValueError:
            return Response({'error': 'Invalid price details format'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = ProductSerializer(product, data=data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        images = _store_images(request.FILES.getlist('images'))
        try:
            product = services.update_product(product, dict(serializer.validated_data), images=images)
        except Exception as e:
            _discard_images(images)
            logger.error(f"Unexpected error updating product {pk}: {str(e)}", exc_info=True)
            return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.info(f"User {request.user.username} updated product {product.name}")
        return Response(ProductSerializer(product).data)

    try:
        services.delete_product(product)
    except ProtectedError:
        return Response({'error': 'Cannot delete product referenced by dealer bills'}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} deleted product {pk}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_barcode(request, pk):
    """EAN-13 label for a product as a PNG data URL"""
    product = get_object_or_404(Product, pk=pk)
    first_price = product.price_details.first()
    price_line = None
    if first_price:
        quantity = first_price.quantity
        if quantity == quantity.to_integral_value():
            quantity = quantity.quantize(Decimal('1'))
        price_line = f"{quantity} {first_price.unit} - Rs {first_price.price}"
    image = generate_label_image(product.name, product.upc, price_line=price_line)
    return Response({'upc': product.upc, 'product_code': product.product_code, 'image': image})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_lookup(request):
    """Find a product by scanned UPC"""
    upc = request.query_params.get('upc', '').strip()
    if not upc:
        return Response({'error': 'upc is required'}, status=status.HTTP_400_BAD_REQUEST)
    product = Product.objects.filter(upc=upc).first()
    if product is None:
        return Response({'error': 'Product not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ProductSerializer(product).data)

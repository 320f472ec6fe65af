import logging
from datetime import datetime, time

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.template.loader import render_to_string
from django.utils import timezone

from backoffice.core.exceptions import DomainError
from backoffice.core.permissions import HasRole, user_branch_scope
from backoffice.core.utils import create_audit_log
from backoffice.locations.models import Branch
from .models import TableCategory, Table, Order, KotOrder
from .serializers import (
    TableCategorySerializer, TableSerializer, OrderCreateSerializer, OrderSerializer,
    OrderUpdateSerializer, KotOrderSerializer,
)
from . import services

logger = logging.getLogger('backoffice.pos')


def _first_error(errors):
    """Dig the first message out of a (possibly nested) serializer error structure"""
    if isinstance(errors, dict):
        for value in errors.values():
            message = _first_error(value)
            if message:
                return message
        return None
    if isinstance(errors, (list, tuple)):
        for value in errors:
            message = _first_error(value)
            if message:
                return message
        return None
    return str(errors) if errors else None


def _parse_date(value):
    return datetime.strptime(value, '%Y-%m-%d').date()


def _local_day_bounds(start, end):
    tz = timezone.get_current_timezone()
    return (
        timezone.make_aware(datetime.combine(start, time.min), tz),
        timezone.make_aware(datetime.combine(end, time.max), tz),
    )


# Table views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def table_category_list_create(request):
    """Table categories (with their tables) of one branch"""
    if request.method == 'GET':
        branch_id = request.query_params.get('branch')
        if not branch_id:
            return Response({'error': 'branch is required'}, status=status.HTTP_400_BAD_REQUEST)
        branch = get_object_or_404(Branch, pk=branch_id)
        categories = TableCategory.objects.filter(branch=branch).prefetch_related('tables__current_order')
        return Response({'categories': TableCategorySerializer(categories, many=True).data})

    name = str(request.data.get('name', '') or '').strip()
    branch_id = request.data.get('branch')
    table_count = request.data.get('table_count')
    if not name or not branch_id or table_count in (None, ''):
        return Response({'error': 'Name, branch and table_count are required'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        table_count = int(table_count)
    except (TypeError, ValueError):
        return Response({'error': 'Table count must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)
    if table_count < 1:
        return Response({'error': 'Table count must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)
    branch = get_object_or_404(Branch, pk=branch_id)

    if TableCategory.objects.filter(branch=branch, name=name).exists():
        return Response({'error': 'Table category with this name already exists for this branch'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        category = services.create_table_category(branch, name, table_count)
    except IntegrityError:
        return Response({'error': 'Table category with this name already exists for this branch'}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} created table category {name} with {table_count} tables at {branch.name}")
    return Response({
        'message': 'Table category created successfully',
        'category': TableCategorySerializer(category).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def table_category_detail(request, pk):
    category = get_object_or_404(TableCategory, pk=pk)
    if request.method == 'GET':
        return Response(TableCategorySerializer(category).data)

    try:
        table_count = int(request.data.get('table_count'))
    except (TypeError, ValueError):
        table_count = 0
    if table_count < 1:
        return Response({'error': 'Table count must be at least 1'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        category = services.resize_table_category(category, table_count)
    except DomainError as e:
        logger.warning(f"Resize of table category {pk} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} resized table category {category.name} to {table_count}")
    return Response({
        'message': 'Table category updated successfully',
        'category': TableCategorySerializer(category).data,
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def table_update(request, pk):
    table = get_object_or_404(Table, pk=pk)
    new_status = request.data.get('status')
    if new_status not in ('Free', 'Occupied'):
        return Response({'error': 'Invalid status. Must be "Free" or "Occupied"'}, status=status.HTTP_400_BAD_REQUEST)

    current_order = request.data.get('current_order')
    table.status = new_status
    table.current_order = get_object_or_404(Order, pk=current_order) if current_order else None
    table.save(update_fields=['status', 'current_order'])
    return Response({'message': 'Table status updated successfully', 'table': TableSerializer(table).data})


# Order views
@api_view(['GET', 'POST'])
@permission_classes([HasRole('superadmin', 'admin', 'branch')])
def order_list_create(request):
    """
    GET: orders filtered by ``tab`` (comma separated, default stock+liveOrder),
    ``branch``, ``status``, ``waiter`` and ``start_date``/``end_date``.
    POST: save a new order (branch accounts and super admins).
    """
    if request.method == 'GET':
        tabs = [t for t in request.query_params.get('tab', 'stock,liveOrder').split(',') if t]
        queryset = Order.objects.filter(tab__in=tabs).select_related('branch', 'waiter', 'table').prefetch_related('items')

        scope = user_branch_scope(request.user)
        branch_id = scope or request.query_params.get('branch')
        if branch_id:
            queryset = queryset.filter(branch_id=branch_id)
        order_status = request.query_params.get('status')
        if order_status:
            queryset = queryset.filter(status__in=order_status.split(','))
        waiter = request.query_params.get('waiter')
        if waiter:
            queryset = queryset.filter(waiter_id=waiter)

        start_date = request.query_params.get('start_date')
        end_date = request.query_params.get('end_date')
        if start_date or end_date:
            try:
                start = _parse_date(start_date) if start_date else _parse_date(end_date)
                end = _parse_date(end_date) if end_date else start
            except ValueError:
                return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
            queryset = queryset.filter(created_at__range=_local_day_bounds(start, end))

        return Response(OrderSerializer(queryset, many=True).data)

    if request.user.role not in ('branch', 'superadmin'):
        logger.warning(f"User {request.user.username} ({request.user.role}) attempted to create an order")
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    serializer = OrderCreateSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Order validation failed: {serializer.errors}")
        return Response({'error': _first_error(serializer.errors) or 'Invalid order data', 'details': serializer.errors},
                        status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    branch = data['branch']
    scope = user_branch_scope(request.user)
    if scope and scope != branch.pk:
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    try:
        order = services.create_order(branch, data, data['items'], user=request.user)
    except DomainError as e:
        logger.warning(f"Order for {branch.name} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except IntegrityError as e:
        logger.warning(f"Order for {branch.name} hit a duplicate key: {str(e)}")
        return Response({'error': 'Bill number already taken, please save the order again'},
                        status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error saving order: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request, action='order_create', model_name='Order', object_id=order.pk,
        object_reference=order.bill_no,
        changes={'tab': order.tab, 'status': order.status, 'total_with_gst': order.total_with_gst, 'items': order.total_items},
    )
    logger.info(f"User {request.user.username} created order {order.bill_no}")
    return Response({'message': 'Order saved successfully', 'order': OrderSerializer(order).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([HasRole('superadmin', 'admin', 'branch')])
def order_detail(request, pk):
    order = get_object_or_404(Order.objects.select_related('branch', 'waiter', 'table'), pk=pk)
    scope = user_branch_scope(request.user)
    if scope and scope != order.branch_id:
        return Response({'error': 'Order not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    serializer = OrderUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    new_status = serializer.validated_data.get('status') or None
    try:
        order = services.update_order(order, serializer.validated_data.get('items'), new_status)
    except DomainError as e:
        logger.warning(f"Update of order {order.bill_no} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    if new_status and new_status != old_status:
        create_audit_log(
            request=request, action='order_status', model_name='Order', object_id=order.pk,
            object_reference=order.bill_no, changes={'status': {'old': old_status, 'new': order.status}},
        )
        logger.info(f"User {request.user.username} moved order {order.bill_no} from {old_status} to {order.status}")
    return Response({'message': 'Order updated successfully', 'order': OrderSerializer(order).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_receipt(request, pk):
    """Printable HTML bill"""
    order = get_object_or_404(Order.objects.select_related('branch', 'waiter', 'table'), pk=pk)
    items = list(order.items.all())
    gst_breakdown = {}
    for item in items:
        if not item.is_non_gst and item.product_gst:
            gst_breakdown.setdefault(item.gst_rate, 0)
            gst_breakdown[item.gst_rate] += item.product_gst
    html = render_to_string('pos/receipt.html', {
        'order': order,
        'items': items,
        'gst_breakdown': sorted(gst_breakdown.items()),
        'printed_at': timezone.localtime(),
    })
    return HttpResponse(html, content_type='text/html; charset=utf-8')


# KOT views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def kot_order_list_create(request):
    if request.method == 'GET':
        queryset = KotOrder.objects.select_related('branch')
        scope = user_branch_scope(request.user)
        branch_id = scope or request.query_params.get('branch')
        if branch_id:
            queryset = queryset.filter(branch_id=branch_id)
        delivery_date = request.query_params.get('delivery_date')
        if delivery_date:
            try:
                queryset = queryset.filter(delivery_date=_parse_date(delivery_date))
            except ValueError:
                return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(KotOrderSerializer(queryset, many=True).data)

    serializer = KotOrderSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    now = timezone.localtime()
    kot = serializer.save(
        form_number=services.generate_form_number(),
        date=now,
        order_time=now.strftime('%H:%M'),
    )
    logger.info(f"User {request.user.username} created KOT order {kot.form_number} for {kot.customer_name}")
    return Response({'message': 'KOT order created successfully', 'data': KotOrderSerializer(kot).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def kot_order_detail(request, form_number):
    kot = KotOrder.objects.select_related('branch').filter(form_number=form_number).first()
    if kot is None:
        return Response({'error': 'KOT order not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(KotOrderSerializer(kot).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def kot_order_print(request, form_number):
    kot = KotOrder.objects.select_related('branch').filter(form_number=form_number).first()
    if kot is None:
        return Response({'error': 'KOT order not found'}, status=status.HTTP_404_NOT_FOUND)
    html = render_to_string('pos/kot.html', {'kot': kot})
    return HttpResponse(html, content_type='text/html; charset=utf-8')

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404

from backoffice.core.exceptions import DomainError
from backoffice.core.utils import create_audit_log
from .models import DealerBill
from .serializers import DealerBillSerializer, BillPaymentSerializer
from . import services

logger = logging.getLogger('backoffice.purchasing')


def _first_error(errors):
    for value in errors.values():
        if isinstance(value, (list, tuple)) and value:
            return str(value[0])
        if isinstance(value, dict):
            return _first_error(value)
        return str(value)
    return 'Invalid data'


def _parse_date(value):
    return datetime.strptime(value, '%Y-%m-%d').date()


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bill_list_create(request):
    """List dealer bills or record a new one (multipart, with the scanned bill)"""
    if request.method == 'GET':
        queryset = DealerBill.objects.select_related('company', 'dealer', 'branch', 'product').prefetch_related('payments')

        for param, lookup in (('dealer', 'dealer_id'), ('company', 'company_id'), ('branch', 'branch_id'),
                              ('status', 'status')):
            value = request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{lookup: value})
        try:
            for param, lookup in (('date_from', 'bill_date__gte'), ('date_to', 'bill_date__lte')):
                value = request.query_params.get(param)
                if value:
                    queryset = queryset.filter(**{lookup: _parse_date(value)})
        except ValueError:
            return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

        serializer = DealerBillSerializer(queryset, many=True, context={'request': request})
        return Response(serializer.data)

    serializer = DealerBillSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        logger.warning(f"Dealer bill validation failed: {serializer.errors}")
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
    try:
        bill = serializer.save(created_by=request.user, paid=Decimal('0'))
    except IntegrityError:
        return Response({'error': 'Bill number must be unique'}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='bill_create', model_name='DealerBill', object_id=bill.pk,
        object_name=bill.dealer.dealer_name, object_reference=bill.bill_number,
        changes={'amount': bill.amount, 'bill_date': bill.bill_date},
    )
    logger.info(f"User {request.user.username} recorded dealer bill {bill.bill_number}")
    return Response({'message': 'Bill entry created successfully', 'bill': DealerBillSerializer(bill, context={'request': request}).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def bill_detail(request, pk):
    bill = get_object_or_404(DealerBill, pk=pk)

    if request.method == 'GET':
        return Response(DealerBillSerializer(bill, context={'request': request}).data)

    old = {'amount': bill.amount, 'paid': bill.paid, 'status': bill.status}
    serializer = DealerBillSerializer(bill, data=request.data, partial=True, context={'request': request})
    if not serializer.is_valid():
        logger.warning(f"Dealer bill {pk} update failed: {serializer.errors}")
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)

    extra = {}
    if str(request.data.get('remove_image', '')).lower() == 'true' and 'bill_image' not in serializer.validated_data:
        extra['bill_image'] = None
    old_image = bill.bill_image.name if bill.bill_image else None
    storage = bill.bill_image.storage

    try:
        bill = serializer.save(**extra)
    except IntegrityError:
        return Response({'error': 'Bill number must be unique'}, status=status.HTTP_400_BAD_REQUEST)

    if old_image and old_image != (bill.bill_image.name if bill.bill_image else None):
        transaction.on_commit(lambda: storage.delete(old_image))

    create_audit_log(
        request=request, action='bill_update', model_name='DealerBill', object_id=bill.pk,
        object_name=bill.dealer.dealer_name, object_reference=bill.bill_number,
        changes={key: {'old': value, 'new': getattr(bill, key)} for key, value in old.items() if value != getattr(bill, key)},
    )
    logger.info(f"User {request.user.username} updated dealer bill {bill.bill_number}")
    return Response({'message': 'Bill updated successfully', 'bill': DealerBillSerializer(bill, context={'request': request}).data})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bill_payments(request, pk):
    """Payments made against a bill; POST adds one"""
    bill = get_object_or_404(DealerBill, pk=pk)

    if request.method == 'GET':
        return Response(BillPaymentSerializer(bill.payments.all(), many=True).data)

    try:
        amount = Decimal(str(request.data.get('amount')))
    except InvalidOperation:
        return Response({'error': 'Payment amount must be a positive number', 'field': 'amount'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        bill, payment = services.add_payment(bill, amount, user=request.user, note=request.data.get('note', ''))
    except DomainError as e:
        logger.warning(f"Payment on bill {bill.bill_number} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='payment_add', model_name='DealerBill', object_id=bill.pk,
        object_name=bill.dealer.dealer_name, object_reference=bill.bill_number,
        changes={'amount': payment.amount, 'paid': bill.paid, 'pending': bill.pending},
    )
    logger.info(f"User {request.user.username} paid {payment.amount} on bill {bill.bill_number}")
    return Response({
        'message': 'Payment recorded successfully',
        'payment': BillPaymentSerializer(payment).data,
        'bill': DealerBillSerializer(bill, context={'request': request}).data,
    }, status=status.HTTP_201_CREATED)

import logging
from datetime import datetime

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db import IntegrityError
from django.shortcuts import get_object_or_404

from backoffice.core.exceptions import DomainError
from backoffice.core.permissions import HasRole, IsSuperAdmin, user_branch_scope
from backoffice.core.utils import create_audit_log
from backoffice.locations.models import Branch
from .models import Account, BranchSettlement, Transaction, ClosingEntry
from .serializers import (
    AccountSerializer, BranchSettlementSerializer, TransactionSerializer, LedgerMovementSerializer,
    ClosingEntryInputSerializer, ClosingEntrySerializer,
)
from . import services

logger = logging.getLogger('backoffice.finance')

FINANCE_ROLES = ('superadmin', 'admin', 'accounts')


def _first_error(errors):
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


# Accounts and settlements
@api_view(['GET'])
@permission_classes([HasRole(*FINANCE_ROLES)])
def balances(request):
    """Current balance of every ledger source"""
    services.ensure_default_accounts()
    accounts = Account.objects.filter(is_active=True)
    return Response([
        {'source': account.name, 'kind': account.kind, 'branch': account.branch_id, 'balance': account.balance}
        for account in accounts
    ])


@api_view(['GET', 'POST'])
@permission_classes([HasRole(*FINANCE_ROLES)])
def account_list_create(request):
    if request.method == 'GET':
        services.ensure_default_accounts()
        return Response(AccountSerializer(Account.objects.select_related('branch'), many=True).data)

    if request.user.role != 'superadmin':
        return Response({'error': 'Only super admins can add accounts'}, status=status.HTTP_403_FORBIDDEN)
    serializer = AccountSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        account = serializer.save()
    except IntegrityError:
        return Response({'error': 'Account already exists'}, status=status.HTTP_400_BAD_REQUEST)
    logger.info(f"User {request.user.username} added account {account.name}")
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsSuperAdmin])
def branch_settlement(request, branch_id):
    """Which bank accounts receive a branch's UPI and card takings"""
    branch = get_object_or_404(Branch, pk=branch_id)
    settlement = BranchSettlement.objects.filter(branch=branch).first()

    if request.method == 'GET':
        if settlement is None:
            return Response({})
        return Response(BranchSettlementSerializer(settlement).data)

    data = request.data.copy()
    data['branch'] = branch.pk
    serializer = BranchSettlementSerializer(settlement, data=data)
    if not serializer.is_valid():
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
    serializer.save()
    logger.info(f"User {request.user.username} set settlement accounts for {branch.name}")
    return Response(serializer.data)


# Transactions
@api_view(['GET'])
@permission_classes([HasRole(*FINANCE_ROLES)])
def transaction_list(request):
    queryset = Transaction.objects.select_related('account', 'branch')
    for param, lookup in (('source', 'account__name'), ('type', 'type'), ('branch', 'branch_id')):
        value = request.query_params.get(param)
        if value:
            queryset = queryset.filter(**{lookup: value})
    try:
        for param, lookup in (('date_from', 'date__gte'), ('date_to', 'date__lte')):
            value = request.query_params.get(param)
            if value:
                queryset = queryset.filter(**{lookup: _parse_date(value)})
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(TransactionSerializer(queryset, many=True).data)


def _movement(request, kind):
    serializer = LedgerMovementSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"{kind.title()} rejected: {serializer.errors}")
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    if kind == 'expense' and not data.get('category', '').strip():
        return Response({'error': 'Source, category, amount, and branch are required'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        account = services.resolve_source(data['source'])
        if kind == 'deposit':
            account, txn = services.deposit(account, data['amount'], data['branch'],
                                            remarks=data.get('remarks'), user=request.user)
        else:
            account, txn = services.expense(account, data['amount'], data['branch'], data['category'].strip(),
                                            remarks=data.get('remarks'), user=request.user)
    except DomainError as e:
        logger.warning(f"{kind.title()} of {data['amount']} from {data['source']} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action=f'finance_{kind}', model_name='Transaction', object_id=txn.pk,
        object_name=account.name,
        changes={'amount': txn.amount, 'branch': data['branch'].name, 'balance': account.balance},
    )
    logger.info(f"User {request.user.username} recorded {kind} of {txn.amount} on {account.name}")
    return Response({
        'balance': {'source': account.name, 'balance': account.balance},
        'transaction': TransactionSerializer(txn).data,
    }, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([HasRole(*FINANCE_ROLES)])
def record_deposit(request):
    return _movement(request, 'deposit')


@api_view(['POST'])
@permission_classes([HasRole(*FINANCE_ROLES)])
def record_expense(request):
    return _movement(request, 'expense')


# Closing entries
@api_view(['GET', 'POST'])
@permission_classes([HasRole(*FINANCE_ROLES, 'branch')])
def closing_entry_list_create(request):
    if request.method == 'GET':
        queryset = ClosingEntry.objects.select_related('branch').prefetch_related('expense_details')
        scope = user_branch_scope(request.user)
        branch_id = scope or request.query_params.get('branch')
        if branch_id:
            queryset = queryset.filter(branch_id=branch_id)
        date_from = request.query_params.get('date_from')
        date_to = request.query_params.get('date_to')
        try:
            if date_from:
                queryset = queryset.filter(date__gte=_parse_date(date_from))
            if date_to:
                queryset = queryset.filter(date__lte=_parse_date(date_to))
        except ValueError:
            return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ClosingEntrySerializer(queryset.order_by('-date', '-created_at'), many=True).data)

    serializer = ClosingEntryInputSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Closing entry validation failed: {serializer.errors}")
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    branch = data['branch']
    scope = user_branch_scope(request.user)
    if scope and scope != branch.pk:
        return Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)

    try:
        entry = services.create_closing_entry(branch, data, data['expense_details'], user=request.user)
    except DomainError as e:
        logger.warning(f"Closing entry for {branch.name} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error creating closing entry: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request, action='closing_create', model_name='ClosingEntry', object_id=entry.pk,
        object_name=branch.name, object_reference=str(entry.date),
        changes={'system_sales': entry.system_sales, 'billing_total': entry.billing_total,
                 'net_result': entry.net_result, 'cash_payment': entry.cash_payment},
    )
    return Response({'message': 'Closing entry created successfully', 'closing_entry': ClosingEntrySerializer(entry).data},
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([HasRole(*FINANCE_ROLES, 'branch')])
def closing_entry_detail(request, pk):
    entry = get_object_or_404(ClosingEntry.objects.select_related('branch'), pk=pk)
    scope = user_branch_scope(request.user)
    if scope and scope != entry.branch_id:
        return Response({'error': 'Closing entry not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(ClosingEntrySerializer(entry).data)

    data = request.data.copy()
    data.setdefault('branch', entry.branch_id)
    serializer = ClosingEntryInputSerializer(data=data)
    if not serializer.is_valid():
        return Response({'error': _first_error(serializer.errors)}, status=status.HTTP_400_BAD_REQUEST)

    old = {'system_sales': entry.system_sales, 'net_result': entry.net_result, 'cash_payment': entry.cash_payment}
    try:
        entry = services.update_closing_entry(entry, serializer.validated_data,
                                              serializer.validated_data['expense_details'], user=request.user)
    except DomainError as e:
        logger.warning(f"Update of closing entry {pk} rejected: {e.message}")
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error updating closing entry {pk}: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request, action='closing_update', model_name='ClosingEntry', object_id=entry.pk,
        object_name=entry.branch.name, object_reference=str(entry.date),
        changes={key: {'old': value, 'new': getattr(entry, key)} for key, value in old.items()},
    )
    logger.info(f"User {request.user.username} updated closing entry {entry.pk}")
    return Response({'message': 'Closing entry updated successfully', 'closing_entry': ClosingEntrySerializer(entry).data})

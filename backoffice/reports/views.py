import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.db.models import Sum, Count, Avg
from django.db.models.functions import TruncDate
from django.utils import timezone

from backoffice.core.exceptions import DomainError
from backoffice.core.permissions import HasRole, user_branch_scope
from backoffice.finance.models import BranchSettlement, ClosingEntry, Transaction
from backoffice.finance.services import BILLED_TABS
from backoffice.parties.models import Dealer
from backoffice.pos.models import Order, OrderItem
from . import services

logger = logging.getLogger('backoffice.reports')

REPORT_ROLES = ('superadmin', 'admin')
ACCOUNT_REPORT_ROLES = ('superadmin', 'admin', 'accounts')


def _billed_orders(request, start, end):
    """Non-draft billed orders in the local date range, narrowed by ``branch`` and ``waiter``"""
    lower, upper = services.local_bounds(start, end)
    orders = (Order.objects
              .filter(tab__in=BILLED_TABS, created_at__gte=lower, created_at__lt=upper)
              .exclude(status='draft')
              .select_related('branch', 'waiter'))
    branch_id = user_branch_scope(request.user) or request.query_params.get('branch')
    if branch_id:
        orders = orders.filter(branch_id=branch_id)
    waiter_id = request.query_params.get('waiter')
    if waiter_id:
        orders = orders.filter(waiter_id=waiter_id)
    return orders


def _period(start, end):
    return {'start_date': start.isoformat(), 'end_date': end.isoformat()}


def _order_row(order):
    return {
        'id': order.id,
        'bill_no': order.bill_no,
        'branch': order.branch.name,
        'waiter': order.waiter.name if order.waiter_id else None,
        'payment_method': order.payment_method,
        'total_with_gst': order.total_with_gst,
        'created_at': timezone.localtime(order.created_at).isoformat(),
    }


@api_view(['GET'])
@permission_classes([HasRole(*REPORT_ROLES)])
def timing_report(request):
    """Billed amount per hour of the day"""
    try:
        start, end = services.resolve_range(request.query_params)
        logger.info(f"User {request.user.username} requested timing report {start}..{end}")

        orders = list(_billed_orders(request, start, end).order_by('-created_at'))
        slots, total = services.hourly_totals(orders)
        return Response({
            'period': _period(start, end),
            'slots': slots,
            'grand_total': total,
            'grand_total_display': services.rupees(total),
            'waiters': services.unique_waiters(orders),
            'orders': [_order_row(order) for order in orders],
        })
    except DomainError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error generating timing report: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([HasRole(*REPORT_ROLES)])
def waiter_bills_report(request):
    """Waiter performance: amount billed, bills and attendance"""
    try:
        start, end = services.resolve_range(request.query_params)
        sort = request.query_params.get('sort', 'name')
        if sort not in ('amount', 'name'):
            return Response({'error': 'sort must be amount or name'}, status=status.HTTP_400_BAD_REQUEST)

        orders = list(_billed_orders(request, start, end).filter(waiter__isnull=False).order_by('-created_at'))
        waiters = services.waiter_summary(orders, sort=sort)
        return Response({
            'period': _period(start, end),
            'waiters': waiters,
            'bills': [_order_row(order) for order in orders],
            'grand_total': sum((w['total_amount'] for w in waiters), services.ZERO),
            'total_bills': len(orders),
        })
    except DomainError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error generating waiter bills report: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([HasRole(*REPORT_ROLES)])
def billing_summary_report(request):
    """Takings per branch split by payment type, and quantities sold per product"""
    try:
        start, end = services.resolve_range(request.query_params)
        orders = _billed_orders(request, start, end)
        branches = services.branch_billing(orders)
        items = OrderItem.objects.filter(order__in=orders).select_related('order__branch')
        return Response({
            'period': _period(start, end),
            'branches': branches,
            'grand_total': sum((row['total'] for row in branches), services.ZERO),
            'products': services.product_summary(items),
        })
    except DomainError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error generating billing summary: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _dated_params(params):
    """Accept ``date_from``/``date_to`` as a custom range"""
    data = {key: params.get(key) for key in ('preset', 'start_date', 'end_date')}
    data['start_date'] = data['start_date'] or params.get('date_from')
    data['end_date'] = data['end_date'] or params.get('date_to')
    return data


@api_view(['GET'])
@permission_classes([HasRole(*ACCOUNT_REPORT_ROLES)])
def closing_summary_report(request):
    try:
        start, end = services.resolve_range(_dated_params(request.query_params))
        entries = ClosingEntry.objects.filter(date__gte=start, date__lte=end).select_related('branch')
        branch_id = request.query_params.get('branch')
        if branch_id:
            entries = entries.filter(branch_id=branch_id)
        settlements = {
            s.branch_id: s
            for s in BranchSettlement.objects.select_related('upi_account', 'card_account')
        }
        summary = services.closing_summary(entries, settlements)
        summary['period'] = _period(start, end)
        summary['entry_count'] = entries.count()
        return Response(summary)
    except DomainError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error generating closing summary: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([HasRole(*ACCOUNT_REPORT_ROLES)])
def finance_summary_report(request):
    """Credits and debits per ledger source and per day"""
    try:
        start, end = services.resolve_range(_dated_params(request.query_params), default='tillnow')
        transactions = Transaction.objects.filter(date__gte=start, date__lte=end).select_related('account')
        branch_id = request.query_params.get('branch')
        if branch_id:
            transactions = transactions.filter(branch_id=branch_id)
        by_source, by_day = services.finance_summary(transactions, Transaction.TYPE_DEPOSIT, Transaction.TYPE_EXPENSE)
        total_credit = sum((row['credit'] for row in by_source), services.ZERO)
        total_debit = sum((row['debit'] for row in by_source), services.ZERO)
        return Response({
            'period': _period(start, end),
            'summary': {
                'total_credit': total_credit,
                'total_debit': total_debit,
                'net': total_credit - total_debit,
            },
            'by_source': by_source,
            'daily_breakdown': by_day,
        })
    except DomainError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error generating finance summary: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([HasRole(*ACCOUNT_REPORT_ROLES)])
def dealer_accounts_report(request):
    """Outstanding position per dealer"""
    try:
        dealers = (Dealer.objects
                   .annotate(
                       bill_count=Count('bills'),
                       total_amount=Sum('bills__amount'),
                       total_paid=Sum('bills__paid'),
                       total_pending=Sum('bills__pending'),
                   )
                   .order_by('dealer_name'))

        rows = [{
            'dealer_id': dealer.id,
            'dealer_name': dealer.dealer_name,
            'phone_no': dealer.phone_no,
            'bill_count': dealer.bill_count,
            'total_amount': dealer.total_amount or services.ZERO,
            'total_paid': dealer.total_paid or services.ZERO,
            'total_pending': dealer.total_pending or services.ZERO,
        } for dealer in dealers]
        return Response({
            'dealers': rows,
            'summary': {
                'total_amount': sum((r['total_amount'] for r in rows), services.ZERO),
                'total_paid': sum((r['total_paid'] for r in rows), services.ZERO),
                'total_pending': sum((r['total_pending'] for r in rows), services.ZERO),
            },
        })
    except Exception as e:
        logger.error(f"Error generating dealer accounts report: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([HasRole(*REPORT_ROLES)])
def sales_summary_report(request):
    """Daily billed totals and average bill value"""
    try:
        start, end = services.resolve_range(request.query_params, default='last7days')
        orders = _billed_orders(request, start, end)

        summary = orders.aggregate(
            total_sales=Sum('total_with_gst'),
            total_bills=Count('id'),
            average_bill=Avg('total_with_gst'),
        )
        daily = (orders
                 .annotate(day=TruncDate('created_at', tzinfo=timezone.get_current_timezone()))
                 .values('day')
                 .annotate(total=Sum('total_with_gst'), bills=Count('id'))
                 .order_by('day'))
        return Response({
            'period': _period(start, end),
            'summary': {
                'total_sales': summary['total_sales'] or services.ZERO,
                'total_bills': summary['total_bills'],
                'average_bill': round(summary['average_bill'] or services.ZERO, 2),
            },
            'daily_breakdown': [
                {'date': row['day'].isoformat(), 'total': row['total'], 'bills': row['bills']}
                for row in daily
            ],
        })
    except DomainError as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except Exception as e:
        logger.error(f"Error generating sales summary: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

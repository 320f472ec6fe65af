import logging
from decimal import Decimal

from django.db import transaction

from backoffice.core.exceptions import DomainError
from .models import DealerBill, BillPayment

logger = logging.getLogger('backoffice.purchasing')


@transaction.atomic
def add_payment(bill, amount, user=None, note=''):
    """Record a part payment against a bill and roll its paid/pending/status forward"""
    amount = Decimal(str(amount))
    if not amount.is_finite() or amount <= 0:
        raise DomainError('Payment amount must be a positive number', field='amount')

    bill = DealerBill.objects.select_for_update().get(pk=bill.pk)
    if amount > bill.pending:
        raise DomainError(f'Payment exceeds pending amount of {bill.pending}', field='amount')

    payment = BillPayment.objects.create(
        bill=bill, amount=amount, note=note or '',
        paid_by=user if user is not None and user.is_authenticated else None,
    )
    bill.paid = bill.paid + amount
    bill.save()
    logger.info(f"Payment of {amount} recorded on bill {bill.bill_number}; pending {bill.pending}")
    return bill, payment

from decimal import Decimal

from rest_framework import serializers

from backoffice.locations.models import Branch
from .models import Account, BranchSettlement, Transaction, ClosingEntry, ExpenseDetail

NON_NEGATIVE_MESSAGE = 'All values must be non-negative'


def _money(**kwargs):
    return serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal('0'),
        error_messages={'min_value': NON_NEGATIVE_MESSAGE}, **kwargs,
    )


def _count():
    return serializers.IntegerField(min_value=0, error_messages={'min_value': NON_NEGATIVE_MESSAGE})


class AccountSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True, default=None)

    class Meta:
        model = Account
        fields = ['id', 'name', 'kind', 'branch', 'branch_name', 'balance', 'is_active', 'created_at']
        read_only_fields = ['balance', 'created_at']


class BranchSettlementSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    upi_account_name = serializers.CharField(source='upi_account.name', read_only=True)
    card_account_name = serializers.CharField(source='card_account.name', read_only=True)

    class Meta:
        model = BranchSettlement
        fields = ['id', 'branch', 'branch_name', 'upi_account', 'upi_account_name',
                  'card_account', 'card_account_name', 'updated_at']

    def validate(self, attrs):
        for field in ('upi_account', 'card_account'):
            account = attrs.get(field)
            if account is not None and account.kind != 'bank':
                raise serializers.ValidationError({field: 'Settlement account must be a bank account'})
        return attrs


class TransactionSerializer(serializers.ModelSerializer):
    source = serializers.CharField(source='account.name', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = Transaction
        fields = ['id', 'date', 'type', 'source', 'account', 'branch', 'branch_name', 'amount',
                  'expense_category', 'remarks', 'closing_entry', 'created_at']


class LedgerMovementSerializer(serializers.Serializer):
    """Input of a manual deposit or expense"""
    source = serializers.CharField(error_messages={'required': 'Source, amount, and branch are required'})
    amount = serializers.DecimalField(max_digits=14, decimal_places=2,
                                      error_messages={'required': 'Source, amount, and branch are required'})
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all(),
                                                error_messages={'required': 'Source, amount, and branch are required'})
    remarks = serializers.CharField(required=False, allow_blank=True, max_length=255)
    category = serializers.CharField(required=False, allow_blank=True, max_length=100)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than 0')
        return value


class ExpenseDetailSerializer(serializers.ModelSerializer):
    serial_no = serializers.IntegerField(min_value=0)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
    recipient = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'),
                                      error_messages={'min_value': 'Expense amounts must be non-negative'})

    class Meta:
        model = ExpenseDetail
        fields = ['serial_no', 'reason', 'recipient', 'amount']

    def validate(self, attrs):
        if attrs['amount'] > 0 and (not attrs.get('reason', '').strip() or not attrs.get('recipient', '').strip()):
            raise serializers.ValidationError(
                'All expense details fields (serial_no, reason, recipient, amount) are required when amount is greater than 0'
            )
        return attrs


class ClosingEntryInputSerializer(serializers.Serializer):
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all())
    date = serializers.DateField()
    system_sales = _money()
    manual_sales = _money()
    online_sales = _money()
    expenses = _money()
    expense_details = ExpenseDetailSerializer(many=True, allow_empty=False,
                                              error_messages={'empty': 'Expense details are required',
                                                              'required': 'Expense details are required'})
    credit_card_payment = _money()
    upi_payment = _money()
    cash_payment = _money()
    denom_2000 = _count()
    denom_500 = _count()
    denom_200 = _count()
    denom_100 = _count()
    denom_50 = _count()
    denom_20 = _count()
    denom_10 = _count()

    def validate(self, attrs):
        detail_total = sum((d['amount'] for d in attrs['expense_details']), Decimal('0'))
        if detail_total != attrs['expenses']:
            raise serializers.ValidationError(
                f"Total expenses from details (₹{detail_total}) must match the expenses total (₹{attrs['expenses']})"
            )
        cash_total = sum(attrs[f'denom_{value}'] * value for value in ClosingEntry.DENOMINATIONS)
        if Decimal(cash_total) != attrs['cash_payment']:
            raise serializers.ValidationError(
                f"Total cash from denominations (₹{cash_total}) must equal cash payment (₹{attrs['cash_payment']})"
            )
        return attrs


class ClosingEntrySerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    expense_details = ExpenseDetailSerializer(many=True, read_only=True)
    total_sales = serializers.SerializerMethodField()

    class Meta:
        model = ClosingEntry
        fields = ['id', 'branch', 'branch_name', 'date', 'system_sales', 'manual_sales', 'online_sales',
                  'billing_total', 'total_sales', 'expenses', 'expense_details', 'net_result',
                  'credit_card_payment', 'upi_payment', 'cash_payment',
                  'denom_2000', 'denom_500', 'denom_200', 'denom_100', 'denom_50', 'denom_20', 'denom_10',
                  'created_at', 'updated_at']

    def get_total_sales(self, obj):
        return obj.system_sales + obj.manual_sales + obj.online_sales

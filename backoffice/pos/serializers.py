from decimal import Decimal

from rest_framework import serializers

from backoffice.catalog.models import Product
from backoffice.locations.models import Branch
from backoffice.staff.models import Employee
from .models import TableCategory, Table, Order, OrderItem, KotOrder

TOTALS_TOLERANCE = Decimal('0.01')


class GstRateField(serializers.Field):
    """A non-negative number, or the string ``non-gst`` (stored as NULL)"""
    default_error_messages = {
        'invalid': 'gst_rate must be a non-negative number or "non-gst"',
    }

    def to_internal_value(self, data):
        if data == 'non-gst':
            return None
        if isinstance(data, bool):
            self.fail('invalid')
        try:
            value = Decimal(str(data))
        except ArithmeticError:
            self.fail('invalid')
        if not value.is_finite() or value < 0:
            self.fail('invalid')
        return value

    def to_representation(self, value):
        return 'non-gst' if value is None else value


class TableSerializer(serializers.ModelSerializer):
    current_order_bill_no = serializers.CharField(source='current_order.bill_no', read_only=True, default=None)

    class Meta:
        model = Table
        fields = ['id', 'table_number', 'category', 'branch', 'status', 'current_order', 'current_order_bill_no', 'created_at']
        read_only_fields = ['table_number', 'category', 'branch', 'created_at']


class TableCategorySerializer(serializers.ModelSerializer):
    tables = serializers.SerializerMethodField()

    class Meta:
        model = TableCategory
        fields = ['id', 'name', 'branch', 'table_count', 'created_at', 'tables']

    def get_tables(self, obj):
        tables = sorted(obj.tables.all(), key=lambda t: t.sequence)
        return TableSerializer(tables, many=True).data


class OrderItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    name = serializers.CharField(max_length=255)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0.001'))
    sending_qty = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), required=False, default=Decimal('0'))
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    unit = serializers.CharField(max_length=20)
    gst_rate = GstRateField()
    product_total = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    product_gst = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    bminstock = serializers.DecimalField(max_digits=10, decimal_places=3, required=False, default=Decimal('0'))
    confirmed = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        attrs['is_non_gst'] = attrs['gst_rate'] is None
        if attrs['is_non_gst'] and attrs['product_gst'] != 0:
            raise serializers.ValidationError('Non-GST items must have product_gst set to 0')
        return attrs


class OrderCreateSerializer(serializers.Serializer):
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all())
    tab = serializers.ChoiceField(choices=Order.TAB_CHOICES)
    items = OrderItemInputSerializer(many=True, allow_empty=False, error_messages={'empty': 'Items cannot be empty'})
    payment_method = serializers.CharField(max_length=50)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    total_gst = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    total_with_gst = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    total_items = serializers.IntegerField(min_value=0)
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES, required=False, default='draft')
    waiter = serializers.PrimaryKeyRelatedField(queryset=Employee.objects.all(), required=False, allow_null=True)
    delivery_datetime = serializers.DateTimeField(required=False, allow_null=True)
    table = serializers.PrimaryKeyRelatedField(queryset=Table.objects.all(), required=False, allow_null=True)

    def validate(self, attrs):
        if abs(attrs['subtotal'] + attrs['total_gst'] - attrs['total_with_gst']) > TOTALS_TOLERANCE:
            raise serializers.ValidationError('Subtotal plus GST does not match the total with GST')
        item_total = sum((item['product_total'] for item in attrs['items']), Decimal('0'))
        if abs(item_total - attrs['subtotal']) > TOTALS_TOLERANCE:
            raise serializers.ValidationError('Item totals do not match the subtotal')
        table = attrs.get('table')
        if table is not None and table.branch_id != attrs['branch'].pk:
            raise serializers.ValidationError('Table does not belong to the selected branch')
        return attrs


class OrderItemSerializer(serializers.ModelSerializer):
    gst_rate = GstRateField()

    class Meta:
        model = OrderItem
        fields = ['id', 'position', 'product', 'name', 'quantity', 'sending_qty', 'price', 'unit',
                  'gst_rate', 'is_non_gst', 'product_total', 'product_gst', 'bminstock', 'confirmed']


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    waiter_name = serializers.CharField(source='waiter.name', read_only=True, default=None)
    table_number = serializers.CharField(source='table.table_number', read_only=True, default=None)

    class Meta:
        model = Order
        fields = ['id', 'order_id', 'bill_no', 'branch', 'branch_name', 'tab', 'payment_method', 'status',
                  'subtotal', 'total_gst', 'total_with_gst', 'total_items',
                  'waiter', 'waiter_name', 'delivery_datetime', 'table', 'table_number',
                  'created_at', 'delivered_at', 'received_at', 'items']


class OrderItemUpdateSerializer(serializers.Serializer):
    sending_qty = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), required=False, allow_null=True)
    confirmed = serializers.BooleanField(required=False, allow_null=True)


class OrderUpdateSerializer(serializers.Serializer):
    items = OrderItemUpdateSerializer(many=True, required=False)
    status = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get('items') and not attrs.get('status'):
            raise serializers.ValidationError('At least one of items or status must be provided')
        return attrs


class KotOrderSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = KotOrder
        fields = ['id', 'form_number', 'date', 'order_time', 'delivery_date', 'delivery_time', 'delivery_type',
                  'customer_name', 'customer_number', 'address', 'email', 'birthday_date',
                  'cake_model', 'weight', 'flavour', 'type', 'alteration', 'special_care',
                  'amount', 'advance', 'balance', 'branch', 'branch_name', 'sales_man', 'created_at']
        read_only_fields = ['form_number', 'date', 'order_time', 'balance', 'created_at']

    def validate(self, attrs):
        amount = attrs.get('amount', getattr(self.instance, 'amount', None))
        advance = attrs.get('advance', getattr(self.instance, 'advance', None))
        if amount is not None and advance is not None and advance > amount:
            raise serializers.ValidationError({'advance': 'Advance cannot exceed amount'})
        return attrs

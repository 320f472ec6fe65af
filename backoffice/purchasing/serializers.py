from django.utils import timezone
from rest_framework import serializers

from .models import DealerBill, BillPayment


class BillPaymentSerializer(serializers.ModelSerializer):
    paid_by_name = serializers.CharField(source='paid_by.username', read_only=True, default=None)

    class Meta:
        model = BillPayment
        fields = ['id', 'bill', 'amount', 'note', 'paid_by', 'paid_by_name', 'created_at']
        read_only_fields = ['bill', 'paid_by', 'created_at']


class DealerBillSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True)
    dealer_name = serializers.CharField(source='dealer.dealer_name', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    payments = BillPaymentSerializer(many=True, read_only=True)

    class Meta:
        model = DealerBill
        fields = ['id', 'company', 'company_name', 'dealer', 'dealer_name', 'branch', 'branch_name',
                  'product', 'product_name', 'bill_number', 'bill_date', 'amount', 'bill_image',
                  'paid', 'pending', 'status', 'payments', 'created_at', 'updated_at']
        read_only_fields = ['pending', 'status', 'created_at', 'updated_at']
        extra_kwargs = {
            'bill_number': {'error_messages': {'unique': 'Bill number must be unique'}},
        }

    def validate_bill_date(self, value):
        if value > timezone.localdate():
            raise serializers.ValidationError('Bill date cannot be in the future')
        return value

    def validate(self, attrs):
        if self.instance is None and not attrs.get('bill_image'):
            raise serializers.ValidationError({'bill_image': 'Bill image is required'})

        product = attrs.get('product', getattr(self.instance, 'product', None))
        company = attrs.get('company', getattr(self.instance, 'company', None))
        dealer = attrs.get('dealer', getattr(self.instance, 'dealer', None))
        if product is not None and (
            product.company_id != getattr(company, 'pk', None)
            or not product.dealers.filter(pk=getattr(dealer, 'pk', None)).exists()
        ):
            raise serializers.ValidationError('Product does not belong to the selected company or dealer')

        amount = attrs.get('amount', getattr(self.instance, 'amount', None))
        paid = attrs.get('paid', getattr(self.instance, 'paid', 0))
        if amount is not None and paid is not None and (paid < 0 or paid > amount):
            raise serializers.ValidationError({'paid': 'Paid amount must be between 0 and the bill amount'})
        return attrs

from rest_framework import serializers
from .models import Employee, DailyAssignment


class EmployeeSerializer(serializers.ModelSerializer):
    phone_number = serializers.RegexField(
        r'^\d{10}$', max_length=10,
        error_messages={'invalid': 'Phone number must be exactly 10 digits'},
    )

    class Meta:
        model = Employee
        fields = ['id', 'employee_id', 'name', 'phone_number', 'address', 'team', 'status',
                  'aadhaar', 'photo', 'created_at', 'updated_at']
        read_only_fields = ['employee_id', 'created_at', 'updated_at']
        extra_kwargs = {
            'photo': {'error_messages': {'required': 'Photo is required', 'null': 'Photo is required'}},
        }

    def validate_phone_number(self, value):
        employees = Employee.objects.filter(phone_number=value)
        if self.instance:
            employees = employees.exclude(pk=self.instance.pk)
        if employees.exists():
            raise serializers.ValidationError('Phone number already exists')
        return value


class EmployeeNameSerializer(serializers.ModelSerializer):
    class Meta:
        model = Employee
        fields = ['id', 'employee_id', 'name']


class DailyAssignmentSerializer(serializers.ModelSerializer):
    cashier = EmployeeNameSerializer(read_only=True)
    manager = EmployeeNameSerializer(read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = DailyAssignment
        fields = ['id', 'branch', 'branch_name', 'date', 'cashier', 'manager', 'updated_at']

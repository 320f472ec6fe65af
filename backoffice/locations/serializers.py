from rest_framework import serializers
from .models import Branch


class BranchSerializer(serializers.ModelSerializer):
    class Meta:
        model = Branch
        fields = ['id', 'branch_code', 'name', 'address', 'phone', 'email', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_branch_code(self, value):
        queryset = Branch.objects.filter(branch_code__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Branch ID already exists')
        return value


class BranchPublicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Branch
        fields = ['id', 'name']

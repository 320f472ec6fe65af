from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, AuditLog


class UserSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True, default=None)
    name = serializers.CharField(source='display_name', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'name', 'email', 'first_name', 'last_name', 'phone', 'role',
                  'branch', 'branch_name', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['username', 'is_active', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, validators=[validate_password])

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'first_name', 'last_name', 'phone', 'role', 'branch']

    def validate_username(self, value):
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError('Username already exists')
        return value

    def validate(self, attrs):
        if attrs.get('role', User.ROLE_BRANCH) == User.ROLE_BRANCH:
            if not attrs.get('branch'):
                raise serializers.ValidationError({'branch': 'Branch is required for branch users'})
        else:
            attrs['branch'] = None
        return attrs

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


class UserUpdateSerializer(serializers.ModelSerializer):
    """Superadmin edits: role, branch and an optional new password."""
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = User
        fields = ['role', 'branch', 'password', 'email', 'first_name', 'last_name', 'phone']

    def validate(self, attrs):
        role = attrs.get('role', self.instance.role if self.instance else User.ROLE_BRANCH)
        if role == User.ROLE_BRANCH:
            branch = attrs.get('branch', self.instance.branch if self.instance else None)
            if not branch:
                raise serializers.ValidationError({'branch': 'Branch is required for branch users'})
        else:
            attrs['branch'] = None
        return attrs

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'username', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'barcode', 'changes', 'ip_address', 'created_at']

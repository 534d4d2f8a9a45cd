from rest_framework import serializers
from django.contrib.auth import authenticate
from django.contrib.auth.password_validation import validate_password
from django.db import transaction

from .models import CustomUser, Profile
from .permissions import permissions_for_role, accessible_screens


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='profile.full_name', read_only=True)
    role = serializers.CharField(source='profile.role', read_only=True)

    class Meta:
        model = CustomUser
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name', 'role', 'phone',
            'is_active', 'last_login_at'
        ]
        read_only_fields = ['id', 'email', 'is_active', 'last_login_at']


class RegisterSerializer(serializers.Serializer):
    """Public sign-up; new accounts always start as cashiers"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=17, required=False, allow_blank=True)

    def validate_email(self, value):
        if CustomUser.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("An account with this email already exists.")
        return value

    @transaction.atomic
    def create(self, validated_data):
        full_name = validated_data.pop('full_name', '')
        user = CustomUser.objects.create_user(
            email=validated_data['email'],
            password=validated_data['password'],
            phone=validated_data.get('phone', ''),
        )
        # the post_save signal already created the profile
        if full_name:
            user.profile.full_name = full_name
            user.profile.save(update_fields=['full_name', 'updated_at'])
        return user


class StaffCreateSerializer(RegisterSerializer):
    """Admins create staff accounts with a chosen role"""
    role = serializers.ChoiceField(choices=Profile.ROLE_CHOICES, default=Profile.DEFAULT_ROLE)

    @transaction.atomic
    def create(self, validated_data):
        role = validated_data.pop('role', Profile.DEFAULT_ROLE)
        user = super().create(validated_data)
        user.profile.role = role
        user.profile.save(update_fields=['role', 'updated_at'])
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')

        user = authenticate(username=email, password=password)
        if not user:
            raise serializers.ValidationError('Invalid email or password')

        if not user.is_active:
            raise serializers.ValidationError('User account is disabled')

        attrs['user'] = user
        return attrs


class ProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(source='user.id', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)
    is_active = serializers.BooleanField(source='user.is_active', read_only=True)
    permissions = serializers.SerializerMethodField()
    screens = serializers.SerializerMethodField()

    class Meta:
        model = Profile
        fields = [
            'user_id', 'email', 'phone', 'full_name', 'role', 'is_active',
            'permissions', 'screens', 'created_at', 'updated_at'
        ]
        read_only_fields = ['role', 'created_at', 'updated_at']

    def get_permissions(self, obj):
        return permissions_for_role(obj.role)

    def get_screens(self, obj):
        return accessible_screens(obj.role)


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Profile.ROLE_CHOICES)

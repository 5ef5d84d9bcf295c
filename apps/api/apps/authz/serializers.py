"""
Authz serializers: account payloads and request validation for /api/auth.
"""
from rest_framework import serializers

from apps.authz.models import RoleChoices, User
from apps.authz.validators import validate_password_strength


class UserSerializer(serializers.ModelSerializer):
    """Public view of an account (never includes the password hash)."""
    role = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'role',
            'is_active',
            'last_login',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_role(self, obj):
        # Use prefetched assignments when available
        assignments = list(obj.user_roles.all())
        return assignments[0].role.name if assignments else None


class UserCreateSerializer(serializers.Serializer):
    """Used by both self-registration and admin user creation."""
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(write_only=True, validators=[validate_password_strength])
    first_name = serializers.CharField(min_length=1, max_length=100)
    last_name = serializers.CharField(min_length=1, max_length=100)
    role = serializers.ChoiceField(choices=RoleChoices.choices, required=False)

    def validate_email(self, value):
        return value.strip().lower()


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class ProfileUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=255, required=False)
    first_name = serializers.CharField(min_length=1, max_length=100, required=False)
    last_name = serializers.CharField(min_length=1, max_length=100, required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('At least one field must be provided')
        return attrs


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField(write_only=True)
    newPassword = serializers.CharField(write_only=True, validators=[validate_password_strength])

    def validate(self, attrs):
        if attrs['currentPassword'] == attrs['newPassword']:
            raise serializers.ValidationError({
                'newPassword': 'New password must be different from the current password'
            })
        return attrs


class RefreshTokenSerializer(serializers.Serializer):
    refreshToken = serializers.CharField(required=False, allow_blank=True)


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetSerializer(serializers.Serializer):
    token = serializers.CharField()
    newPassword = serializers.CharField(write_only=True, validators=[validate_password_strength])


class UserRoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=RoleChoices.choices)

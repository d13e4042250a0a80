from django.contrib.auth.password_validation import validate_password
from django.core.validators import RegexValidator
from rest_framework import serializers

from .models import User

# Usernames end up inside game store keys; keep them to a safe alphabet.
username_validator = RegexValidator(
    regex=r'^[A-Za-z0-9_-]{3,20}$',
    message='Username must be 3-20 letters, digits, underscores or hyphens',
)


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for account display."""

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class UserRegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    username = serializers.CharField(max_length=20, validators=[username_validator])
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""

    username = serializers.CharField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )

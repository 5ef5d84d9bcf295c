"""
Password policy for staff accounts.
"""
import re

from rest_framework import serializers

PASSWORD_MIN_LENGTH = 8
PASSWORD_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).+$')


def validate_password_strength(value):
    """At least 8 characters with a lowercase letter, an uppercase letter and a digit."""
    if len(value) < PASSWORD_MIN_LENGTH:
        raise serializers.ValidationError(
            f'Password must be at least {PASSWORD_MIN_LENGTH} characters long'
        )
    if not PASSWORD_PATTERN.match(value):
        raise serializers.ValidationError(
            'Password must contain at least one lowercase letter, one uppercase letter, and one number'
        )
    return value

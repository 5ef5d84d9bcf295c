"""
Optional bearer authentication for endpoints that also serve anonymous callers.
"""
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken


class OptionalJWTAuthentication(JWTAuthentication):
    """Treats an invalid or expired bearer token as an anonymous request."""

    def authenticate(self, request):
        try:
            return super().authenticate(request)
        except InvalidToken:
            return None

"""
Authentication integration.

Bearer-token extraction and JWT validation, consumed by the API
dependencies.
"""

from .tokens import get_bearer_token, make_jwt, validate_jwt

__all__ = ["get_bearer_token", "make_jwt", "validate_jwt"]

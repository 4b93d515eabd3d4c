"""OAuth2 bearer authentication for Django REST Framework.

Access tokens are JWTs signed with the shared ``JWT_SECRET`` and validated
locally. Authentication is skipped entirely when
``OAUTH2_SERVICE_ENABLED`` is off.
"""

from typing import Any

from django.conf import settings

import jwt
import structlog
from rest_framework import authentication, exceptions

logger = structlog.get_logger(__name__)


class OAuth2User:
    """Container for the claims of an authenticated access token.

    This is not a Django User model.
    """

    def __init__(self, user_id: str, client_id: str, scopes: list[str]):
        """Initialize OAuth2 user.

        Args:
            user_id: User ID from token (or client_id for client_credentials)
            client_id: OAuth2 client ID
            scopes: List of granted scopes
        """
        self.id = user_id
        self.user_id = user_id
        self.client_id = client_id
        self.scopes = scopes
        self.is_authenticated = True

    def has_scope(self, scope: str) -> bool:
        """Check if the token grants ``scope``."""
        return scope in self.scopes

    def has_any_scope(self, *scopes: str) -> bool:
        """Check if the token grants at least one of ``scopes``."""
        return any(scope in self.scopes for scope in scopes)

    def __str__(self):
        """String representation."""
        return f"OAuth2User(user_id={self.user_id}, client_id={self.client_id})"


class OAuth2Authentication(authentication.BaseAuthentication):
    """Bearer token authentication using locally validated JWTs."""

    def authenticate(self, request):
        """Authenticate the request using the Authorization header.

        Returns:
            Tuple of (user, token) or None if authentication not attempted

        Raises:
            AuthenticationFailed: If the header is malformed or the token invalid
        """
        if not settings.OAUTH2_SERVICE_ENABLED:
            return None

        auth_header = request.headers.get("authorization")
        if not auth_header:
            return None

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise exceptions.AuthenticationFailed("Invalid authorization header format")

        token = parts[1]
        token_data = self._validate_via_jwt(token)

        user = OAuth2User(
            user_id=token_data.get("sub") or token_data.get("client_id") or "unknown",
            client_id=token_data.get("client_id") or "unknown",
            scopes=token_data.get("scopes", []),
        )

        return (user, token)

    def _validate_via_jwt(self, token: str) -> dict[str, Any]:
        """Verify the JWT signature and standard claims.

        Raises:
            AuthenticationFailed: If token is invalid
        """
        if not settings.JWT_SECRET:
            logger.error("JWT_SECRET not configured but local validation is enabled")
            raise exceptions.AuthenticationFailed("JWT validation not configured")

        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=["HS256", "HS384", "HS512"],
                options={
                    "verify_signature": True,
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_nbf": True,
                },
            )
        except jwt.ExpiredSignatureError as e:
            logger.info("JWT token has expired")
            raise exceptions.AuthenticationFailed("Token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid JWT token", error=str(e))
            raise exceptions.AuthenticationFailed("Invalid token") from e

        token_type = payload.get("type")
        if token_type != "access_token":
            logger.warning("Invalid token type", token_type=token_type)
            raise exceptions.AuthenticationFailed(f"Invalid token type: {token_type}")

        scopes = payload.get("scopes", [])
        if isinstance(scopes, str):
            scopes = scopes.split()

        return {
            "sub": payload.get("sub"),
            "client_id": payload.get("client_id"),
            "scopes": scopes,
        }

    def authenticate_header(self, _request):
        """Return WWW-Authenticate header value for 401 responses."""
        return "Bearer"

"""Scope based permissions for the delivery API."""

from django.conf import settings

from rest_framework.permissions import BasePermission

from delivery.constants import ADMIN_SCOPE, CLIENT_SCOPE


class _ScopePermission(BasePermission):
    required_scopes: tuple[str, ...] = ()
    message = "You do not have permission to perform this action"

    def has_permission(self, request, view):
        # Open access when the OAuth2 layer is switched off (local runs).
        if not settings.OAUTH2_SERVICE_ENABLED:
            return True
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False
        has_any_scope = getattr(user, "has_any_scope", None)
        return bool(has_any_scope and has_any_scope(*self.required_scopes))


class HasClientScope(_ScopePermission):
    """Granted to application backends and client apps (or admins)."""

    required_scopes = (CLIENT_SCOPE, ADMIN_SCOPE)
    message = f"Requires {CLIENT_SCOPE} or {ADMIN_SCOPE} scope"


class HasAdminScope(_ScopePermission):
    """Granted to operators only."""

    required_scopes = (ADMIN_SCOPE,)
    message = f"Requires {ADMIN_SCOPE} scope"

"""Tests for OAuth2 authentication and scope permissions."""

from datetime import UTC, datetime, timedelta
from unittest.mock import Mock

from django.test import RequestFactory, SimpleTestCase, override_settings

from rest_framework import exceptions

from delivery.auth.oauth2 import OAuth2Authentication, OAuth2User
from delivery.auth.permissions import HasAdminScope, HasClientScope
from tests.base import make_access_token


class TestOAuth2Authentication(SimpleTestCase):
    """Test suite for OAuth2Authentication."""

    def setUp(self):
        """Set up test fixtures."""
        self.factory = RequestFactory()
        self.auth = OAuth2Authentication()

    def _request(self, authorization=None):
        headers = {"HTTP_AUTHORIZATION": authorization} if authorization else {}
        return self.factory.get("/api/v1/delivery/metrics", **headers)

    def test_valid_access_token(self):
        """Test a signed access token yields an OAuth2User."""
        token = make_access_token(["delivery:client"], sub="backend-1")

        user, raw = self.auth.authenticate(self._request(f"Bearer {token}"))

        self.assertEqual(raw, token)
        self.assertEqual(user.user_id, "backend-1")
        self.assertEqual(user.client_id, "test-client")
        self.assertTrue(user.has_scope("delivery:client"))

    def test_space_separated_scopes(self):
        """Test scopes given as one string are split."""
        token = make_access_token("delivery:client delivery:admin")

        user, _ = self.auth.authenticate(self._request(f"Bearer {token}"))

        self.assertEqual(user.scopes, ["delivery:client", "delivery:admin"])

    def test_no_header_skips_authentication(self):
        """Test requests without credentials are left to the permissions."""
        self.assertIsNone(self.auth.authenticate(self._request()))

    def test_malformed_header(self):
        """Test a non-bearer header is rejected."""
        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.authenticate(self._request("Basic dXNlcjpwYXNz"))

    def test_wrong_signature(self):
        """Test a token signed with another secret is rejected."""
        token = make_access_token(["delivery:client"], secret="other-secret")

        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.authenticate(self._request(f"Bearer {token}"))

    def test_expired_token(self):
        """Test an expired token is rejected."""
        past = datetime.now(UTC) - timedelta(hours=1)
        token = make_access_token(
            ["delivery:client"], iat=past, exp=past + timedelta(minutes=5)
        )

        with self.assertRaises(exceptions.AuthenticationFailed) as ctx:
            self.auth.authenticate(self._request(f"Bearer {token}"))

        self.assertIn("expired", str(ctx.exception.detail))

    def test_refresh_token_is_not_accepted(self):
        """Test only access tokens authenticate API calls."""
        token = make_access_token(["delivery:client"], type="refresh_token")

        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.authenticate(self._request(f"Bearer {token}"))

    @override_settings(OAUTH2_SERVICE_ENABLED=False)
    def test_disabled_oauth2_skips_authentication(self):
        """Test nothing is validated when OAuth2 is switched off."""
        self.assertIsNone(self.auth.authenticate(self._request("Bearer junk")))

    @override_settings(JWT_SECRET=None)
    def test_missing_secret(self):
        """Test validation fails closed without a configured secret."""
        token = make_access_token(["delivery:client"])

        with self.assertRaises(exceptions.AuthenticationFailed):
            self.auth.authenticate(self._request(f"Bearer {token}"))


class TestScopePermissions(SimpleTestCase):
    """Test suite for the scope permissions."""

    def _request(self, user):
        return Mock(user=user)

    def test_client_scope(self):
        """Test client endpoints accept client and admin tokens."""
        client = OAuth2User("svc", "app", ["delivery:client"])
        admin = OAuth2User("ops", "console", ["delivery:admin"])
        other = OAuth2User("svc", "app", ["recipes:read"])

        permission = HasClientScope()

        self.assertTrue(permission.has_permission(self._request(client), None))
        self.assertTrue(permission.has_permission(self._request(admin), None))
        self.assertFalse(permission.has_permission(self._request(other), None))

    def test_admin_scope(self):
        """Test admin endpoints refuse client tokens."""
        client = OAuth2User("svc", "app", ["delivery:client"])

        self.assertFalse(HasAdminScope().has_permission(self._request(client), None))

    def test_anonymous_is_refused(self):
        """Test a request without user is refused."""
        self.assertFalse(HasClientScope().has_permission(self._request(None), None))

    @override_settings(OAUTH2_SERVICE_ENABLED=False)
    def test_open_when_oauth2_disabled(self):
        """Test permissions are lifted when OAuth2 is switched off."""
        self.assertTrue(HasAdminScope().has_permission(self._request(None), None))

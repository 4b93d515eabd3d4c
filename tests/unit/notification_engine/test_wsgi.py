"""Unit tests for notification_engine.wsgi module."""

import unittest

from notification_engine import wsgi


class TestWSGIModule(unittest.TestCase):
    """Tests for WSGI configuration module."""

    def test_wsgi_application_is_created(self):
        """Test that WSGI application object is created."""
        self.assertIsNotNone(wsgi.application)


if __name__ == "__main__":
    unittest.main()

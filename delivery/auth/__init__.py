"""Authentication for the delivery API."""

"""Constants used throughout the delivery engine."""

# HTTP Headers
REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# Performance Thresholds
SLOW_REQUEST_THRESHOLD = 1.0  # seconds

# OAuth2 scopes
CLIENT_SCOPE = "delivery:client"
ADMIN_SCOPE = "delivery:admin"

# Analytics delivery methods (channel values plus the mailbox drain)
FALLBACK_DELIVERY_METHOD = "fallback"

# Broadcast ids are "<broadcast id>:<user id>"
BROADCAST_ID_SEPARATOR = ":"

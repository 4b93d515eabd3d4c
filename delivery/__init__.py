"""Real-time notification delivery engine."""

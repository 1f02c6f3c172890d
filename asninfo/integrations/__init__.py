"""Integrations with external services (object storage upload, heartbeat)."""

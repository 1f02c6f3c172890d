"""Shared utilities: logging, HTTP client, and small helpers."""

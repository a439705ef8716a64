"""Shared helpers: filesystem, logging setup, schema validation."""

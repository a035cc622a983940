"""Huifu merchant gateway: per-tenant credential registry and signed API calls."""

__version__ = "0.1.0"

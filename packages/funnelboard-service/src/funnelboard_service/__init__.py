"""Funnelboard - multi-tenant marketing analytics service."""

__version__ = "0.1.0"

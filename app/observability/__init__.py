"""Observability for the demo service.

Prometheus instruments live in a registry object built at startup and injected into
the app; structlog carries the per-request context for JSON access logs.
"""

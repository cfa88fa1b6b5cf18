"""Infrastructure layer for Beach Radar.

Adapters for PostgreSQL, in-memory stubs, observability and metrics.
"""

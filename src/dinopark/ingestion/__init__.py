"""Ingestion layer.

This package turns raw feed payloads into typed events and applies them
to the entity store.
"""

__all__: list[str] = []

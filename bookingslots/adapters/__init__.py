"""
Adapters layer - Repository implementations.
"""

from .memory_store import InMemoryBookingStore, InMemoryCatalog

__all__ = ["InMemoryBookingStore", "InMemoryCatalog"]

"""Repository package for RC Gateway.

This module exports the record store interface and its implementations.
"""

from rcgateway.repositories.base import CacheStats, RecordStore
from rcgateway.repositories.memory import InMemoryRCDetailsRepository
from rcgateway.repositories.rc_details import RCDetailsRepository

__all__ = [
    # Base
    "RecordStore",
    "CacheStats",
    # Implementations
    "RCDetailsRepository",
    "InMemoryRCDetailsRepository",
]

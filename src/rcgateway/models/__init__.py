"""Models package for RC Gateway.

This module exports the Base class and all model classes.
"""

from rcgateway.models.base import (
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from rcgateway.models.rc_details import RCDetails, rc_details_table

__all__ = [
    # Base and Mixins
    "Base",
    "UUIDPrimaryKeyMixin",
    "TimestampMixin",
    # RC cache
    "RCDetails",
    "rc_details_table",
]

"""
StarLookup Errors

Exception hierarchy shared by the lookup layer and the store adapters.
"""

from typing import Optional


class StarLookupError(Exception):
    """Base exception for StarLookup"""
    pass


class StoreError(StarLookupError):
    """Raised when a store operation fails"""
    pass


class StoreExecutionError(StoreError):
    """Raised when a store fails to execute a query"""

    def __init__(self, message: str, extent: Optional[str] = None):
        super().__init__(message)
        self.extent = extent


class MisuseError(StarLookupError, ValueError):
    """Raised when a caller violates a lookup contract"""
    pass


class ObservationError(StarLookupError):
    """Raised when a record cannot be observed"""
    pass


__all__ = [
    "StarLookupError", "StoreError", "StoreExecutionError",
    "MisuseError", "ObservationError"
]

"""
Synth Backend: Custom Exception Hierarchy
==========================================

What:  Defines application-specific exceptions for the service and HTTP layers.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services; caught by global handlers.

The store itself never raises: it reports absence with `None` (or `False`
for delete-by-match operations). Services that need a record translate
that absence into NotFoundError.

Exception Hierarchy:
    SynthError (base)
    ├── NotFoundError    → 404 Not Found
    └── SnapshotError    → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class SynthError(Exception):
    """
    Base exception for all Synth application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(SynthError):
    """
    Raised when a requested record does not exist.

    What:    A service asked the store for a record and got `None` back.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class SnapshotError(SynthError):
    """
    Raised when a store snapshot cannot be read or written.

    When:    Unreadable JSON, unsupported snapshot version, disk errors.
    HTTP:    500 Internal Server Error

    The message returned to clients is generic; the file path and the
    underlying OS or parse error live in `context` and are logged only.
    """

    def __init__(
        self,
        message: str = "Store snapshot operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

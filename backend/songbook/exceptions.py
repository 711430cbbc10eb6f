"""
Songbook Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for the data-access and access-control layers.
How:   Each exception carries a user-facing message and an optional context dict.
       Global exception handlers (registered in main.py) translate them into
       JSON error responses with the matching HTTP status code.
Who:   Raised by SongStore, AccessResolver, CollaborationService and the
       identity dependency.

Exception Hierarchy:
    SongbookError (base)
    ├── NotFoundError               → 404 Not Found
    ├── AuthenticationError         → 401 Unauthorized
    ├── AuthorizationError          → 403 Forbidden
    ├── PersistenceInvariantError   → 500 Internal Server Error
    └── DatabaseError               → 500 Internal Server Error

Propagation:
    NotFoundError always propagates as raised. AuthorizationError from the
    ownership check may be superseded by a successful collaborator check
    (see services/access_resolver.py); nothing else is caught and re-interpreted.
"""

from typing import Any, Dict, Optional


class SongbookError(Exception):
    """
    Base exception for all Songbook application errors.

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


class NotFoundError(SongbookError):
    """
    Raised when a referenced song does not exist.

    Write paths raise it when zero rows were affected; read paths raise it
    when the query matched nothing.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class AuthenticationError(SongbookError):
    """
    Raised when the caller is not identified: the identity header is missing,
    or it names a user that does not exist.

    HTTP: 401 Unauthorized
    """

    def __init__(
        self,
        message: str = "The caller could not be identified",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(SongbookError):
    """
    Raised when the song exists but the caller has no rights on it.

    HTTP: 403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to access this resource",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PersistenceInvariantError(SongbookError):
    """
    Raised when a write that must produce an identifier did not.

    A store contract violation rather than bad client input, so it maps to 500.
    """

    def __init__(
        self,
        message: str = "The song could not be saved",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SongbookError):
    """
    Raised when a database operation fails unexpectedly.

    The client only ever sees the generic message; the wrapped exception type
    goes into `context` for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)

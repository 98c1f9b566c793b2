"""
Auth error taxonomy.

Every error is an HTTPException so route handlers and dependencies can
raise it directly; FastAPI renders it as `{"detail": message}`.
"""

from __future__ import annotations

from fastapi import HTTPException


class Unauthenticated(HTTPException):
    """No principal, or the wrong kind of principal, in the session."""
    
    def __init__(self, detail: str = "Unauthorized - Please log in"):
        super().__init__(status_code=401, detail=detail)


class Forbidden(HTTPException):
    """Authenticated, but lacking the required capability."""
    
    def __init__(self, detail: str = "Forbidden - Insufficient permissions"):
        super().__init__(status_code=403, detail=detail)


class InvalidCredentials(HTTPException):
    """
    Login failed.
    
    Same message for an unknown identifier and a wrong secret.
    """
    
    def __init__(self):
        super().__init__(status_code=401, detail="Invalid credentials")


class NotFound(HTTPException):
    """Tenant-scoped resource absent, or owned by another tenant."""
    
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class BadRequest(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class Internal(HTTPException):
    def __init__(self, detail: str = "Internal Server Error"):
        super().__init__(status_code=500, detail=detail)


class SessionError(Exception):
    """
    The session store failed to load, persist, rotate or destroy a session.

    `detail` is the client-facing message; the exception text stays in logs.
    """

    def __init__(self, message: str, detail: str = "Internal Server Error"):
        super().__init__(message)
        self.detail = detail

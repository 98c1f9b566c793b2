"""
HTTP middleware: request logging and the session lifecycle.
"""

from __future__ import annotations

import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from libris.auth.errors import Internal, SessionError
from libris.auth.session import SessionStore

logger = logging.getLogger(__name__)


def _internal_error(exc: SessionError) -> JSONResponse:
    error = Internal(exc.detail)
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Load the client's session before the handler, persist it after.

    The store is read once per request. A destroyed session always gets its
    cookie cleared, whatever the handler returned.
    """

    def __init__(
        self,
        app,
        cookie_name: str,
        max_age: int,
        secure: bool = False,
    ):
        super().__init__(app)
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure

    async def dispatch(self, request: Request, call_next):
        store: SessionStore = request.app.state.session_store
        try:
            session = await store.load(request.cookies.get(self.cookie_name))
        except SessionError as exc:
            logger.exception("session.load_failed path=%s", request.url.path)
            return _internal_error(exc)

        request.state.session = session
        response = await call_next(request)

        if session.destroyed:
            response.delete_cookie(self.cookie_name, path="/")
        elif session.modified:
            try:
                await store.save(session)
            except SessionError as exc:
                logger.exception("session.save_failed path=%s", request.url.path)
                return _internal_error(exc)
            response.set_cookie(
                self.cookie_name,
                session.token,
                max_age=self.max_age,
                httponly=True,
                samesite="lax",
                secure=self.secure,
                path="/",
            )
        return response


async def request_logging_middleware(request: Request, call_next):
    """Log one line per request with status and elapsed time."""
    start = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        logger.info(
            "request method=%s path=%s status=%s elapsed_ms=%s",
            request.method,
            request.url.path,
            response.status_code if response is not None else "error",
            int((time.perf_counter() - start) * 1000),
        )

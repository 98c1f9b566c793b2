"""
Session store adapter.

Server-side sessions keyed by an opaque token that the client presents in a
cookie. A session holds at most one principal plus the tenant hint resolved
for it at login. The session middleware loads a session once per request and
persists it after the handler; gates only ever read the loaded copy.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import Request
from pydantic import BaseModel, ValidationError

from libris.auth.errors import SessionError
from libris.auth.principal import Owner, Principal, Student, User
from libris.storage.base import CacheStorage

logger = logging.getLogger(__name__)


class SessionState(BaseModel):
    """What is persisted for one session token."""
    
    principal: Principal | None = None
    tenant_id: str | None = None


class Session:
    """
    One client's session for the duration of a request.
    
    `set` only mutates this copy; the middleware writes it back.
    `regenerate` and `destroy` hit the store immediately.
    """
    
    def __init__(
        self,
        token: str,
        store: SessionStore,
        state: SessionState | None = None,
        is_new: bool = False,
    ):
        self.token = token
        self.is_new = is_new
        self.modified = False
        self.destroyed = False
        self._store = store
        self._state = state or SessionState()
    
    @property
    def state(self) -> SessionState:
        return self._state
    
    @property
    def tenant_hint(self) -> str | None:
        return self._state.tenant_id
    
    def get(self) -> Owner | User | Student | None:
        """Current principal, or None for an anonymous session."""
        return self._state.principal
    
    def set(self, principal: Owner | User | Student, tenant_id: str | None = None) -> None:
        """Make `principal` the only principal of this session."""
        if self.destroyed:
            # A destroyed token is never reused.
            self.token = self._store.new_token()
            self.destroyed = False
            self.is_new = True
        self._state = SessionState(principal=principal, tenant_id=tenant_id)
        self.modified = True

    async def regenerate(self) -> None:
        """
        Move this session to a fresh token.

        Every login calls this before writing its principal, so a token the
        client presented beforehand never carries the new principal. The old
        token is dropped from the store.
        """
        if not self.is_new:
            try:
                await self._store.delete(self.token)
            except Exception as exc:
                logger.error("session.regenerate_failed error=%s", type(exc).__name__)
                raise SessionError("could not rotate session") from exc
        self.token = self._store.new_token()
        self.is_new = True
        self.destroyed = False
        self.modified = True

    async def destroy(self) -> None:
        """
        Invalidate this session.
        
        The session is marked destroyed first so the cookie is cleared on the
        way out even if the store delete fails; that failure is re-raised.
        """
        self.destroyed = True
        self._state = SessionState()
        try:
            await self._store.delete(self.token)
        except Exception as exc:
            logger.error("session.destroy_failed error=%s", type(exc).__name__)
            raise SessionError(
                "could not destroy session",
                detail="Could not log out, please try again.",
            ) from exc


class SessionStore:
    """Sessions on top of a CacheStorage backend."""
    
    def __init__(self, cache: CacheStorage, ttl_seconds: int, prefix: str = "session:"):
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix
    
    def _key(self, token: str) -> str:
        return f"{self.prefix}{token}"
    
    @staticmethod
    def new_token() -> str:
        return secrets.token_urlsafe(32)
    
    def new_session(self) -> Session:
        return Session(self.new_token(), store=self, is_new=True)
    
    async def load(self, token: str | None) -> Session:
        """
        Load the session for `token`.
        
        An absent, expired or unreadable token yields a fresh empty session
        under a new token.
        """
        if not token:
            return self.new_session()
        
        try:
            data: Any = await self.cache.get(self._key(token))
        except Exception as exc:
            raise SessionError("could not load session") from exc
        
        if data is None:
            return self.new_session()
        
        try:
            state = SessionState.model_validate(data)
        except ValidationError:
            logger.warning("session.corrupt token_prefix=%s", token[:6])
            return self.new_session()
        
        return Session(token, store=self, state=state)
    
    async def save(self, session: Session) -> None:
        try:
            await self.cache.set(
                self._key(session.token),
                session.state.model_dump(mode="json"),
                ttl=self.ttl_seconds,
            )
        except Exception as exc:
            raise SessionError("could not save session") from exc
    
    async def delete(self, token: str) -> None:
        await self.cache.delete(self._key(token))


def get_session(request: Request) -> Session:
    """The session loaded for this request by the session middleware."""
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError("SessionMiddleware is not installed")
    return session

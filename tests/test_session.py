"""
Tests for the session store adapter.
"""

import pytest

from libris.auth.errors import SessionError
from libris.auth.session import SessionStore
from libris.storage.local import InMemoryCacheStorage


class FailingDeleteCache(InMemoryCacheStorage):
    async def delete(self, key):
        raise ConnectionError("redis went away")


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_set_then_get_within_request(self, session_store, staff_user):
        session = session_store.new_session()
        assert session.get() is None

        session.set(staff_user, tenant_id="lib_a")
        assert session.get() == staff_user
        assert session.tenant_hint == "lib_a"
        assert session.modified

    @pytest.mark.asyncio
    async def test_round_trip_through_store(self, session_store, owner):
        session = session_store.new_session()
        session.set(owner, tenant_id=owner.id)
        await session_store.save(session)

        loaded = await session_store.load(session.token)
        assert loaded.token == session.token
        assert loaded.get() == owner
        assert loaded.tenant_hint == owner.id
        assert not loaded.is_new

    @pytest.mark.asyncio
    async def test_set_replaces_previous_principal(self, session_store, owner, student):
        session = session_store.new_session()
        session.set(owner, tenant_id=owner.id)
        session.set(student, tenant_id=student.tenant_id)
        assert session.get() == student

    @pytest.mark.asyncio
    async def test_destroy(self, session_store, owner):
        session = session_store.new_session()
        session.set(owner)
        await session_store.save(session)

        await session.destroy()
        assert session.get() is None
        assert session.destroyed

        reloaded = await session_store.load(session.token)
        assert reloaded.get() is None
        assert reloaded.token != session.token

    @pytest.mark.asyncio
    async def test_destroy_failure_still_marks_destroyed(self, owner):
        store = SessionStore(FailingDeleteCache(), ttl_seconds=60)
        session = store.new_session()
        session.set(owner)

        with pytest.raises(SessionError):
            await session.destroy()
        assert session.destroyed
        assert session.get() is None

    @pytest.mark.asyncio
    async def test_set_after_destroy_uses_new_token(self, session_store, owner, staff_user):
        session = session_store.new_session()
        session.set(owner)
        old_token = session.token
        await session.destroy()

        session.set(staff_user)
        assert session.token != old_token
        assert not session.destroyed


class TestRegeneration:
    @pytest.mark.asyncio
    async def test_loaded_session_moves_to_new_token(self, session_store, staff_user, owner):
        session = session_store.new_session()
        session.set(staff_user, tenant_id="lib_a")
        await session_store.save(session)

        loaded = await session_store.load(session.token)
        await loaded.regenerate()
        loaded.set(owner, tenant_id=owner.id)
        await session_store.save(loaded)

        assert loaded.token != session.token
        assert await session_store.cache.get(f"session:{session.token}") is None
        assert (await session_store.load(session.token)).get() is None
        assert (await session_store.load(loaded.token)).get() == owner

    @pytest.mark.asyncio
    async def test_new_session_skips_store(self):
        store = SessionStore(FailingDeleteCache(), ttl_seconds=60)
        session = store.new_session()
        old_token = session.token

        await session.regenerate()
        assert session.token != old_token
        assert session.modified

    @pytest.mark.asyncio
    async def test_store_failure_raises(self, owner):
        cache = FailingDeleteCache()
        store = SessionStore(cache, ttl_seconds=60)
        session = store.new_session()
        session.set(owner)
        await store.save(session)
        loaded = await store.load(session.token)

        with pytest.raises(SessionError) as exc_info:
            await loaded.regenerate()
        assert exc_info.value.detail == "Internal Server Error"


class TestLoading:
    @pytest.mark.asyncio
    async def test_missing_token_gets_fresh_session(self, session_store):
        session = await session_store.load(None)
        assert session.is_new
        assert session.get() is None

    @pytest.mark.asyncio
    async def test_unknown_token_is_not_adopted(self, session_store):
        session = await session_store.load("forged-token")
        assert session.is_new
        assert session.token != "forged-token"

    @pytest.mark.asyncio
    async def test_corrupt_state_gets_fresh_session(self, session_store):
        await session_store.cache.set("session:bad", {"principal": {"kind": "guest"}})
        session = await session_store.load("bad")
        assert session.is_new
        assert session.get() is None

    @pytest.mark.asyncio
    async def test_expired_session_is_anonymous(self, staff_user):
        store = SessionStore(InMemoryCacheStorage(), ttl_seconds=-1)
        session = store.new_session()
        session.set(staff_user)
        await store.save(session)

        assert (await store.load(session.token)).get() is None

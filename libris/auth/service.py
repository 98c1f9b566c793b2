"""
Credential verification and principal lifecycle.

Login turns a submitted secret into a principal and writes it into the
session; refresh re-reads the principal from storage so role and permission
changes apply without logging in again.
"""

from __future__ import annotations

import logging
import secrets

from libris.auth.errors import BadRequest, InvalidCredentials, NotFound, Unauthenticated
from libris.auth.passwords import burn_verification, hash_password, verify_password
from libris.auth.principal import Owner, Student, User
from libris.auth.session import Session
from libris.storage.base import StorageProvider
from libris.storage.repositories import (
    LibraryRecord,
    LibraryRepository,
    StudentRecord,
    StudentRepository,
    UserRecord,
    UserRepository,
)

logger = logging.getLogger(__name__)

SUSPENDED_MESSAGE = "Library account is suspended. Please contact support."


def owner_from_record(library: LibraryRecord) -> Owner:
    return Owner(
        id=library.id,
        library_code=library.library_code,
        library_name=library.library_name,
        owner_name=library.owner_name,
        owner_email=library.owner_email,
    )


def user_from_record(user: UserRecord) -> User:
    return User(
        id=user.id,
        username=user.username,
        role=user.role,
        permissions=user.permissions,
    )


def student_from_record(student: StudentRecord) -> Student:
    return Student(id=student.id, tenant_id=student.library_id, name=student.name)


class AuthService:
    """Login, registration, refresh and logout for every principal kind."""

    def __init__(self, storage: StorageProvider):
        self.libraries = LibraryRepository(storage.metadata)
        self.users = UserRepository(storage.metadata)
        self.students = StudentRepository(storage.metadata)

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    async def login_user(self, session: Session, username: str, password: str) -> User:
        record = await self.users.find_by_username(username)
        if record is None:
            burn_verification(password)
            raise InvalidCredentials()
        if not verify_password(password, record.password_hash):
            raise InvalidCredentials()

        user = user_from_record(record)
        await session.regenerate()
        session.set(user, tenant_id=record.library_id)
        logger.info("auth.login kind=user user_id=%s", user.id)
        return user

    async def login_owner(self, session: Session, phone: str, password: str) -> Owner:
        library = await self.libraries.find_by_phone(phone)
        if library is None:
            burn_verification(password)
            raise InvalidCredentials()
        if not verify_password(password, library.password_hash):
            raise InvalidCredentials()
        if not library.is_active:
            logger.warning("auth.login_suspended library_id=%s", library.id)
            raise Unauthenticated(SUSPENDED_MESSAGE)

        owner = owner_from_record(library)
        await session.regenerate()
        session.set(owner, tenant_id=owner.id)
        logger.info("auth.login kind=owner library_code=%s", owner.library_code)
        return owner

    async def login_student(
        self, session: Session, library_code: str, phone: str, password: str
    ) -> Student:
        library = await self.libraries.find_by_code(library_code)
        record = None
        if library is not None:
            record = await self.students.find_by_phone(library.id, phone)
        if record is None:
            burn_verification(password)
            raise InvalidCredentials()
        if not verify_password(password, record.password_hash):
            raise InvalidCredentials()

        student = student_from_record(record)
        await session.regenerate()
        session.set(student, tenant_id=student.tenant_id)
        logger.info("auth.login kind=student student_id=%s", student.id)
        return student

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    async def register_owner(
        self,
        session: Session,
        *,
        owner_name: str,
        owner_email: str,
        owner_phone: str,
        library_name: str,
        password: str,
        library_code: str | None = None,
    ) -> Owner:
        if await self.libraries.find_by_phone(owner_phone) is not None:
            raise BadRequest("Phone number already registered")
        if library_code:
            if not await self.libraries.code_available(library_code):
                raise BadRequest("Library code already taken")
        else:
            library_code = await self._unused_library_code()

        library = await self.libraries.create(
            library_code=library_code,
            library_name=library_name,
            owner_name=owner_name,
            owner_email=owner_email,
            owner_phone=owner_phone,
            password_hash=hash_password(password),
        )
        owner = owner_from_record(library)
        await session.regenerate()
        session.set(owner, tenant_id=owner.id)
        logger.info("auth.register library_code=%s", owner.library_code)
        return owner

    async def _unused_library_code(self) -> str:
        while True:
            code = f"LIB{secrets.token_hex(3).upper()}"
            if await self.libraries.code_available(code):
                return code

    # -------------------------------------------------------------------------
    # Refresh / logout
    # -------------------------------------------------------------------------

    async def refresh(self, session: Session) -> Owner | User | Student:
        """Overwrite the session principal with its canonical stored form."""
        principal = session.get()

        if isinstance(principal, Owner):
            library = await self.libraries.get(principal.id)
            if library is None:
                raise NotFound("Library owner not found")
            fresh = owner_from_record(library)
            session.set(fresh, tenant_id=fresh.id)
        elif isinstance(principal, User):
            record = await self.users.get(principal.id)
            if record is None:
                raise NotFound("User not found")
            fresh = user_from_record(record)
            session.set(fresh, tenant_id=record.library_id)
        elif isinstance(principal, Student):
            record = await self.students.get(principal.tenant_id, principal.id)
            if record is None:
                raise NotFound("Student not found")
            fresh = student_from_record(record)
            session.set(fresh, tenant_id=fresh.tenant_id)
        else:
            raise BadRequest("No active session to refresh.")

        logger.info("auth.refresh kind=%s id=%s", fresh.kind, fresh.id)
        return fresh

    async def logout(self, session: Session) -> None:
        principal = session.get()
        await session.destroy()
        logger.info(
            "auth.logout kind=%s id=%s",
            principal.kind if principal else "anonymous",
            principal.id if principal else None,
        )

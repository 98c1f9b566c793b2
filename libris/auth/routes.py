# =============================================================================
# Auth API Routes
# =============================================================================
#
# Staff / students (prefix /api/auth):
#   POST /login            - User (admin/staff) login
#   POST /student/login    - Student login
#   GET|POST /logout       - Destroy the session (any principal)
#   GET  /status           - Current session principal
#   GET  /refresh          - Re-read principal from storage
#
# Owners (prefix /api/owner-auth):
#   POST /register         - Create a library and log its owner in
#   POST /login            - Owner login
#   POST /logout           - Destroy the session
#   GET  /status           - Current owner, if any
#   GET  /check-code/{code} - Library code availability
#
# =============================================================================

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from libris.auth.context import RequestContext
from libris.auth.errors import BadRequest
from libris.auth.gates import require_any
from libris.auth.principal import Owner, Student, User, dump_principal
from libris.auth.service import AuthService
from libris.auth.session import Session, get_session

LIBRARY_CODE_RE = re.compile(r"^[A-Z0-9]{3,20}$")

router = APIRouter(prefix="/api/auth", tags=["auth"])
owner_router = APIRouter(prefix="/api/owner-auth", tags=["owner-auth"])


def get_auth_service(request: Request) -> AuthService:
    return AuthService(request.app.state.storage)


# =============================================================================
# Request Models
# =============================================================================


class _Request(BaseModel):
    # Accept both snake_case and the frontend's camelCase keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(_Request):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class StudentLoginRequest(_Request):
    library_code: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    password: str = Field(min_length=1)


class OwnerLoginRequest(_Request):
    phone: str = Field(min_length=1)
    password: str = Field(min_length=1)


class OwnerRegisterRequest(_Request):
    owner_name: str = Field(min_length=1)
    owner_email: EmailStr
    owner_phone: str = Field(min_length=1)
    library_name: str = Field(min_length=1)
    password: str = Field(min_length=1)
    library_code: str | None = None


def _validate_code(code: str) -> str:
    code = code.upper()
    if not LIBRARY_CODE_RE.match(code):
        raise BadRequest("Library code must be 3-20 characters, letters and numbers only.")
    return code


# =============================================================================
# Staff / student endpoints
# =============================================================================


@router.post("/login")
async def login(
    data: LoginRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """Authenticate an admin/staff user."""
    user = await service.login_user(session, data.username, data.password)
    return {"message": "Login successful", "user": dump_principal(user)}


@router.post("/student/login")
async def student_login(
    data: StudentLoginRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    student = await service.login_student(session, data.library_code, data.phone, data.password)
    return {"message": "Login successful", "student": dump_principal(student)}


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """Logout for all principal kinds."""
    await service.logout(session)
    return {"message": "Logout successful"}


@router.get("/status")
async def status(session: Session = Depends(get_session)):
    """Who is logged in, if anyone."""
    principal = session.get()
    if isinstance(principal, Owner):
        return {"isAuthenticated": True, "userType": "owner", "owner": dump_principal(principal)}
    if isinstance(principal, User):
        return {"isAuthenticated": True, "userType": "user", "user": dump_principal(principal)}
    if isinstance(principal, Student):
        return {"isAuthenticated": True, "userType": "student", "student": dump_principal(principal)}
    return {"isAuthenticated": False, "user": None, "owner": None}


@router.get("/refresh")
async def refresh(
    ctx: RequestContext = Depends(require_any()),
    service: AuthService = Depends(get_auth_service),
):
    """
    Refresh the session with up-to-date stored values.

    Role and permission changes take effect without logging in again.
    """
    fresh = await service.refresh(ctx.session)
    return {"message": "Session refreshed", fresh.kind: dump_principal(fresh)}


# =============================================================================
# Owner endpoints
# =============================================================================


@owner_router.post("/register", status_code=201)
async def register(
    data: OwnerRegisterRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """Register a new library. The owner is logged in on success."""
    owner = await service.register_owner(
        session,
        owner_name=data.owner_name,
        owner_email=data.owner_email,
        owner_phone=data.owner_phone,
        library_name=data.library_name,
        password=data.password,
        library_code=_validate_code(data.library_code) if data.library_code else None,
    )
    return {"message": "Library registered successfully", "library": dump_principal(owner)}


@owner_router.post("/login")
async def owner_login(
    data: OwnerLoginRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    owner = await service.login_owner(session, data.phone, data.password)
    return {"message": "Login successful", "owner": dump_principal(owner)}


@owner_router.post("/logout")
async def owner_logout(
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    await service.logout(session)
    return {"message": "Logout successful"}


@owner_router.get("/status")
async def owner_status(session: Session = Depends(get_session)):
    principal = session.get()
    if isinstance(principal, Owner):
        return {"isAuthenticated": True, "owner": dump_principal(principal)}
    return {"isAuthenticated": False, "owner": None}


@owner_router.get("/check-code/{code}")
async def check_code(code: str, service: AuthService = Depends(get_auth_service)):
    """Is a library code still free?"""
    code = _validate_code(code)
    return {"available": await service.libraries.code_available(code), "code": code}

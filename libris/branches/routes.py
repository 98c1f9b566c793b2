"""
Branch routes.

Reads are open to anyone who manages branches or students; writes need
manage_branches. Every query is scoped to the request's library, so a branch
of another library answers 404 exactly like a missing one.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from libris.auth import NotFound, Permission, RequestContext, require_permissions
from libris.storage.repositories import BranchRepository

router = APIRouter(prefix="/api/branches", tags=["branches"])


def get_branch_repository(request: Request) -> BranchRepository:
    return BranchRepository(request.app.state.storage.metadata)


class BranchRequest(BaseModel):
    name: str = Field(min_length=1)
    code: str | None = None


@router.get("")
async def list_branches(
    ctx: RequestContext = Depends(
        require_permissions(Permission.MANAGE_BRANCHES, Permission.MANAGE_LIBRARY_STUDENTS)
    ),
    repo: BranchRepository = Depends(get_branch_repository),
):
    branches = await repo.list(ctx.tenant_id)
    return {"branches": [b.model_dump() for b in branches]}


@router.post("", status_code=201)
async def create_branch(
    data: BranchRequest,
    ctx: RequestContext = Depends(require_permissions(Permission.MANAGE_BRANCHES)),
    repo: BranchRepository = Depends(get_branch_repository),
):
    branch = await repo.create(ctx.tenant_id, name=data.name, code=data.code)
    return branch.model_dump()


@router.put("/{branch_id}")
async def update_branch(
    branch_id: str,
    data: BranchRequest,
    ctx: RequestContext = Depends(require_permissions(Permission.MANAGE_BRANCHES)),
    repo: BranchRepository = Depends(get_branch_repository),
):
    branch = await repo.update(ctx.tenant_id, branch_id, name=data.name, code=data.code)
    if branch is None:
        raise NotFound("Branch not found")
    return branch.model_dump()


@router.delete("/{branch_id}")
async def delete_branch(
    branch_id: str,
    ctx: RequestContext = Depends(require_permissions(Permission.MANAGE_BRANCHES)),
    repo: BranchRepository = Depends(get_branch_repository),
):
    if not await repo.delete(ctx.tenant_id, branch_id):
        raise NotFound("Branch not found")
    return {"message": "Branch deleted"}

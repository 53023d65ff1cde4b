# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from school_inventory.api.deps import AuthDep, RepositoryDep
from school_inventory.models.enums import RequestStatus
from school_inventory.schemas.request import (
    RequestListResponse,
    RequestResponse,
    SubmitRequestPayload,
    SubmitRequestResponse,
    TransitionPayload,
)
from school_inventory.services import request as request_service

requests_router = APIRouter(prefix="/requests", tags=["requests"])


@requests_router.post("", response_model=SubmitRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    payload: SubmitRequestPayload,
    repo: RepositoryDep,
    auth: AuthDep,
) -> SubmitRequestResponse:
    """Submit a new item request."""
    return await request_service.submit_request(repo, auth, payload)


@requests_router.get("", response_model=RequestListResponse)
async def list_requests(
    repo: RepositoryDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=255),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> RequestListResponse:
    """List the requests visible to the caller's role."""
    return await request_service.list_requests_for_actor(repo, auth, status_filter, search, offset, limit)


@requests_router.get("/mine", response_model=RequestListResponse)
async def list_own_requests(
    repo: RepositoryDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=255),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> RequestListResponse:
    """List the caller's own requests."""
    return await request_service.list_own_requests(repo, auth, status_filter, search, offset, limit)


@requests_router.get("/department", response_model=RequestListResponse)
async def list_department_requests(
    repo: RepositoryDep,
    auth: AuthDep,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None, max_length=255),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> RequestListResponse:
    """List requests from the caller's department (department heads, admins, stock managers)."""
    return await request_service.list_department_requests(repo, auth, status_filter, search, offset, limit)


@requests_router.get("/{request_id}", response_model=RequestResponse)
async def get_request(
    request_id: uuid.UUID,
    repo: RepositoryDep,
    auth: AuthDep,
) -> RequestResponse:
    """Get a single item request."""
    return await request_service.get_request(repo, auth, request_id)


@requests_router.put("/{request_id}/status", response_model=RequestResponse)
async def update_request_status(
    request_id: uuid.UUID,
    payload: TransitionPayload,
    repo: RepositoryDep,
    auth: AuthDep,
) -> RequestResponse:
    """Approve, reject, fulfill or cancel an item request."""
    return await request_service.transition_request(repo, auth, request_id, payload)

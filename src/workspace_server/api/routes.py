"""FastAPI routes for the workspace resource server."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..errors import (
    ClusterOperationError,
    ResourceKeyConflictError,
    ResourceKeyExistsError,
    ResourceNotFoundError,
)
from ..services.lifecycle import WorkspaceResourceService
from .schemas import SyncStateRead, WorkspaceResourceCreate, WorkspaceResourceRead, WorkspaceResourceUpdate

router = APIRouter()


def get_resource_service(request: Request) -> WorkspaceResourceService:
    service = getattr(request.app.state, "resource_service", None)
    if service is None:
        raise RuntimeError("WorkspaceResourceService dependency not configured")
    return service


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/workspace-resources", response_model=List[WorkspaceResourceRead])
def list_resources(service: WorkspaceResourceService = Depends(get_resource_service)) -> list:
    return service.find_all()


@router.get("/workspace-resources/{resource_id}", response_model=WorkspaceResourceRead)
def get_resource(
    resource_id: int,
    service: WorkspaceResourceService = Depends(get_resource_service),
):
    try:
        return service.find_one(resource_id)
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post(
    "/workspace-resources",
    response_model=WorkspaceResourceRead,
    status_code=status.HTTP_201_CREATED,
)
def create_resource(
    payload: WorkspaceResourceCreate,
    service: WorkspaceResourceService = Depends(get_resource_service),
):
    try:
        return service.create(payload.model_dump(exclude_unset=True))
    except ResourceKeyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ClusterOperationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.patch("/workspace-resources/{resource_id}", response_model=WorkspaceResourceRead)
def update_resource(
    resource_id: int,
    payload: WorkspaceResourceUpdate,
    service: WorkspaceResourceService = Depends(get_resource_service),
):
    try:
        return service.update(resource_id, payload.model_dump(exclude_unset=True))
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ResourceKeyConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.delete("/workspace-resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resource(
    resource_id: int,
    service: WorkspaceResourceService = Depends(get_resource_service),
) -> Response:
    try:
        service.remove(resource_id)
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ClusterOperationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/workspace-resources/{resource_id}/status", response_model=SyncStateRead)
def resource_status(
    resource_id: int,
    service: WorkspaceResourceService = Depends(get_resource_service),
) -> dict:
    try:
        return service.sync_state(resource_id)
    except ResourceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


__all__ = ["router"]

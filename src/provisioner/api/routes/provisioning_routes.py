"""Provisioning API routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from provisioner.api.dependencies.services import get_service_container, ServiceContainer
from provisioner.api.schemas.provisioning_schemas import (
    CreateProvisioningRunRequest,
    CreateProvisioningRunResponse,
    ProvisioningErrorResponse,
    ProvisioningResultResponse,
    ProvisioningRunListResponse,
    ProvisioningRunResponse,
)
from provisioner.domain.errors import (
    ProvisioningError,
    ProvisioningLockError,
    ProvisioningRunNotFoundError,
    ResultNotFoundError,
)
from provisioner.domain.models.base import generate_id
from provisioner.domain.models.provisioning import ProvisioningRequest, ProvisioningRun
from provisioner.domain.services.provisioning_service import ProvisioningService


router = APIRouter(prefix="/provisioning", tags=["provisioning"])


def _get_provisioning_service(
    container: Annotated[ServiceContainer, Depends(get_service_container)],
) -> ProvisioningService:
    return container.provisioning_service


def _to_response(run: ProvisioningRun) -> ProvisioningRunResponse:
    return ProvisioningRunResponse.model_validate(run)


@router.post(
    "/runs",
    response_model=CreateProvisioningRunResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_409_CONFLICT: {"description": "Another run holds the result slot"},
        status.HTTP_502_BAD_GATEWAY: {"model": ProvisioningErrorResponse},
    },
)
async def create_provisioning_run(
    request: CreateProvisioningRunRequest,
    container: Annotated[ServiceContainer, Depends(get_service_container)],
    service: Annotated[ProvisioningService, Depends(_get_provisioning_service)],
) -> CreateProvisioningRunResponse | JSONResponse:
    """Provision a DAO with the configured admin key."""
    chain = container.settings.chain
    if not chain.admin_private_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No admin signing key is configured",
        )

    run_id = generate_id()
    provisioning_request = ProvisioningRequest(
        admin_signing_key=chain.admin_private_key,
        rpc_endpoint=request.rpc_url or chain.rpc_url,
        dao_name=request.dao_name,
    )
    try:
        result = await service.run(provisioning_request, run_id=run_id)
    except ProvisioningLockError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except ProvisioningError as e:
        error = ProvisioningErrorResponse(stage=e.stage, error=str(e), run_id=run_id)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY, content=error.model_dump()
        )

    run = await service.get_run(run_id)
    return CreateProvisioningRunResponse(
        run=_to_response(run),
        result=ProvisioningResultResponse.model_validate(result),
    )


@router.get("/runs", response_model=ProvisioningRunListResponse)
async def list_provisioning_runs(
    service: Annotated[ProvisioningService, Depends(_get_provisioning_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ProvisioningRunListResponse:
    """List recent provisioning runs, newest first."""
    runs = await service.list_runs(limit=limit)
    return ProvisioningRunListResponse(
        items=[_to_response(r) for r in runs],
        total=len(runs),
        limit=limit,
    )


@router.get("/runs/{run_id}", response_model=ProvisioningRunResponse)
async def get_provisioning_run(
    run_id: str,
    service: Annotated[ProvisioningService, Depends(_get_provisioning_service)],
) -> ProvisioningRunResponse:
    """Get one provisioning run."""
    try:
        run = await service.get_run(run_id)
    except ProvisioningRunNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return _to_response(run)


@router.get("/result", response_model=ProvisioningResultResponse)
async def get_provisioning_result(
    service: Annotated[ProvisioningService, Depends(_get_provisioning_service)],
) -> ProvisioningResultResponse:
    """Get the addresses of the last provisioned DAO."""
    try:
        result = await service.latest_result()
    except ResultNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return ProvisioningResultResponse.model_validate(result)

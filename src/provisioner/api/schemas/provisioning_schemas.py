"""API schemas for provisioning endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from provisioner.domain.models.provisioning import ProvisioningStage


class CreateProvisioningRunRequest(BaseModel):
    rpc_url: str | None = Field(default=None, min_length=1, max_length=512)
    dao_name: str | None = Field(default=None, min_length=1, max_length=200)


class ProvisioningResultResponse(BaseModel):
    dao_address: str
    token_voting_plugin_address: str
    erc20_token_address: str

    model_config = {"from_attributes": True}


class ProvisioningRunResponse(BaseModel):
    id: str
    rpc_endpoint: str
    stage: ProvisioningStage
    smart_account_address: str | None = None
    token_address: str | None = None
    dao_address: str | None = None
    voting_plugin_address: str | None = None
    failed_stage: ProvisioningStage | None = None
    error_type: str = ""
    error_message: str = ""
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class CreateProvisioningRunResponse(BaseModel):
    run: ProvisioningRunResponse
    result: ProvisioningResultResponse


class ProvisioningRunListResponse(BaseModel):
    items: list[ProvisioningRunResponse]
    total: int
    limit: int


class ProvisioningErrorResponse(BaseModel):
    stage: str
    error: str
    run_id: str

"""
Asset API Endpoints.

Each request opens its own connection to the ledger and makes exactly one
contract call.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from services.asset_bridge.connection import (
    connect_to_fabric,
    get_fabric_settings,
    get_transport,
)
from shared.config import FabricSettings
from shared.fabric import LedgerTransport
from shared.logging import get_logger
from shared.models import ErrorResponse, MessageResponse


logger = get_logger(__name__)

router = APIRouter(prefix="/assets", tags=["assets"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "model": ErrorResponse,
        "description": "Connection, identity or chaincode failure",
    },
}


class CreateAssetRequest(BaseModel):
    """Request to create an asset on the ledger."""

    id: str = Field(..., min_length=1, description="Asset identifier")
    value: str | int | float | bool | list[Any] | dict[str, Any] = Field(
        ..., description="Asset data; non-string values are sent as JSON text"
    )

    def chaincode_value(self) -> str:
        """Value as the string argument passed to the chaincode."""
        if isinstance(self.value, str):
            return self.value
        return json.dumps(self.value, separators=(",", ":"))


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create an asset",
)
async def create_asset(
    request: CreateAssetRequest,
    fabric: FabricSettings = Depends(get_fabric_settings),
    transport: LedgerTransport = Depends(get_transport),
) -> MessageResponse:
    """Submit ``CreateAsset(id, value)``."""
    async with connect_to_fabric(fabric, transport) as contract:
        await contract.submit_transaction("CreateAsset", request.id, request.chaincode_value())

    logger.info("asset_created", asset_id=request.id)
    return MessageResponse(message="Asset created successfully")


@router.get(
    "",
    response_class=PlainTextResponse,
    responses=ERROR_RESPONSES,
    summary="List all assets",
)
async def list_assets(
    fabric: FabricSettings = Depends(get_fabric_settings),
    transport: LedgerTransport = Depends(get_transport),
) -> PlainTextResponse:
    """Evaluate ``GetAllAssets`` and return the raw result."""
    async with connect_to_fabric(fabric, transport) as contract:
        result = await contract.evaluate_transaction("GetAllAssets")

    return PlainTextResponse(result.decode("utf-8", errors="replace"))


@router.get(
    "/{asset_id}",
    response_class=PlainTextResponse,
    responses=ERROR_RESPONSES,
    summary="Read an asset",
)
async def read_asset(
    asset_id: str,
    fabric: FabricSettings = Depends(get_fabric_settings),
    transport: LedgerTransport = Depends(get_transport),
) -> PlainTextResponse:
    """Evaluate ``ReadAsset(id)`` and return the raw result."""
    async with connect_to_fabric(fabric, transport) as contract:
        result = await contract.evaluate_transaction("ReadAsset", asset_id)

    return PlainTextResponse(result.decode("utf-8", errors="replace"))

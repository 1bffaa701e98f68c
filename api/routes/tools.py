"""
api/routes/tools.py — Name-addressed access to the analysis tools.

Endpoints:
    POST /tools/call  — run estimate_tempo or detect_key with a params dict
    GET  /tools/list  — parameter schemas of every discovered tool

Unlike /analyze/*, a rejected input here is not an HTTP error: the tool's
ToolResult comes back as-is with success=False, the error text, and the
offending argument in metadata. Only an unregistered name is a 404.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from tools.registry import get_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


class ToolCallRequest(BaseModel):
    """Body of POST /tools/call, e.g.
    {"name": "estimate_tempo", "params": {"samples": [...], "tick_rate_hz": 60}}.
    """

    name: str
    params: dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    """ToolResult fields: data holds bpm/key values, metadata the supporting ones."""

    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None


@router.post("/call", response_model=ToolCallResponse)
def call_tool(request: ToolCallRequest) -> ToolCallResponse:
    """Run one analysis tool.

    Raises:
        404: No tool registered under request.name; the detail lists the
             registered names.
    """
    registry = get_registry()
    tool = registry.get(request.name)
    if tool is None:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown tool '{request.name}'. Registered: {registry.names}",
        )

    result = tool(**request.params)
    if not result.success:
        logger.info("%s rejected input: %s", request.name, result.error)

    return ToolCallResponse(
        success=result.success,
        data=result.data,
        error=result.error,
        metadata=result.metadata,
    )


@router.get("/list")
def list_tools() -> list[dict[str, Any]]:
    """Name, description and parameters of each tool, in discovery order."""
    return get_registry().list_tools()

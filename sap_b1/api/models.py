"""
sap_b1.api.models - Pydantic models for API requests/responses
===============================================================
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


EXAMPLE_PATH = "Items?$select=ItemCode,ItemName"


class OperationModel(BaseModel):
    """One Service Layer operation."""

    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = Field(
        default="GET",
        description="HTTP verb",
    )
    path: str = Field(
        default=EXAMPLE_PATH,
        description="Path relative to the service root",
        json_schema_extra={"example": EXAMPLE_PATH},
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra request headers",
    )
    body: Optional[Any] = Field(
        default=None,
        description="JSON payload",
        json_schema_extra={"example": {"ItemName": "Widget"}},
    )


class ExecuteRequest(OperationModel):
    """Request model for a single call."""

    page: Optional[int] = Field(
        default=None,
        ge=0,
        description="Zero-based page; adds $skip",
        json_schema_extra={"example": 0},
    )
    page_size: Optional[int] = Field(
        default=None,
        gt=0,
        description="Sets Prefer: odata.maxpagesize",
        json_schema_extra={"example": 20},
    )
    timeout: Optional[float] = Field(
        default=None,
        ge=0,
        description="Per-call timeout in seconds, 0 waits forever",
    )


class ExecuteResponse(BaseModel):
    """Response model for a single call."""

    items: List[Any]
    previous: Optional[bool] = None
    next: Optional[bool] = None
    next_link: Optional[str] = None
    data: Optional[Any] = None


class BatchRequestModel(BaseModel):
    """Request model for $batch."""

    transaction: bool = Field(
        default=False,
        description="Run the operations as one changeset",
    )
    operations: List[OperationModel] = Field(
        ...,
        min_length=1,
        description="Operations in execution order",
    )
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = Field(default=None, ge=0)


class BatchRecordModel(BaseModel):
    """One decoded batch response part."""

    content_id: Optional[str] = None
    http_code: Optional[int] = None
    http_status: Optional[str] = None
    body: Optional[Any] = None
    error: Optional[str] = None


class BatchResponseModel(BaseModel):
    """Response model for $batch."""

    count: int
    records: List[BatchRecordModel]

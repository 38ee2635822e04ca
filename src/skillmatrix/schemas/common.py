"""Schemas shared across routers."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Body returned for every handled error."""

    error: str = Field(..., description="Error class name")
    detail: str = Field(..., description="Human-readable error message")
    context: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class CountResponse(BaseModel):
    """A single count value."""

    count: int

"""Pydantic schemas for request/response validation."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ErrorResponseSchema(BaseModel):
    """Schema for error responses."""

    error: str
    message: str
    status: int
    details: Optional[dict] = None


class HealthCheckSchema(BaseModel):
    """Schema for health check response."""

    status: str
    timestamp: datetime
    environment: str
    embeddings: str
    cache: dict


class AppInfoSchema(BaseModel):
    """Schema for app info response."""

    name: str
    version: str
    environment: str
    debug: bool
    timestamp: datetime


from nexus.schemas.match_schema import (
    InsightsQuerySchema,
    MatchQuerySchema,
    MatchResultSchema,
    SearchInsightsSchema,
    SubscoresSchema,
)

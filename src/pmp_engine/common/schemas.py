"""Shared Pydantic schemas for PMP-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "pmp-engine"


class ErrorResponse(BaseModel):
    error: str
    code: str

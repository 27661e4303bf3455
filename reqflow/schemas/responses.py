"""
schemas/responses.py — Shared response wrappers

Called by: routers/*.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import BaseModel


class PaginatedResponse(BaseModel):
    total: int = 0
    limit: int = 50
    offset: int = 0


class PortalResponse(BaseModel):
    role: str
    portal: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = ""

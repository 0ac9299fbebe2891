"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Error envelope returned by every failing route."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Human-readable message, or a list of field errors for 422 responses.",
        examples=["Title is required", "Urgent task not found"],
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error kind for domain failures.",
        examples=["validation", "not_found", "conflict", "store"],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )

"""Common reusable schema primitives."""

from __future__ import annotations

from sqlmodel import SQLModel


class OkResponse(SQLModel):
    """Standard success marker for mutations without a resource body."""

    ok: bool = True

"""Thin wrapper around fastapi-pagination for async SQLModel statements."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from fastapi_pagination.ext.sqlmodel import paginate as _paginate

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

Transformer = Callable[[Sequence[Any]], Sequence[Any]]


async def paginate(
    session: AsyncSession,
    statement: SelectOfScalar[Any],
    *,
    transformer: Transformer | None = None,
) -> Any:
    """Execute *statement* as a limit/offset page using the request's params."""
    if transformer is None:
        return await _paginate(session, statement)
    return await _paginate(session, statement, transformer=transformer)

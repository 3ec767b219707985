"""Dialect-specific INSERT constructs (ON CONFLICT support)."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def upsert_insert(db: AsyncSession, model: Any) -> Any:  # noqa: ANN401
    """Return an INSERT for `model` that supports on_conflict_do_* on the session's dialect."""
    dialect = db.get_bind().dialect.name
    try:
        factory = _INSERTS[dialect]
    except KeyError:
        msg = f"ON CONFLICT inserts are not supported on dialect '{dialect}'"
        raise RuntimeError(msg) from None
    return factory(model)

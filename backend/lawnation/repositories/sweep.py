"""Candidate selection shared by the maintenance sweep queries."""

from __future__ import annotations

from sqlalchemy import String, cast, literal, or_


def entity_key(prefix: str, id_column):
    """SQL form of the job entity id, e.g. ``version:12``."""
    return literal(f"{prefix}:", String) + cast(id_column, String)


def retryable_first(stmt, history, key, id_column):
    """Drop exhausted or in-flight entities; never-attempted first, then least recently attempted."""
    if history is None:
        return stmt.order_by(id_column.asc())
    return (
        stmt.outerjoin(history, history.c.entity_id == key)
        .where(or_(history.c.entity_id.is_(None), history.c.retryable == 1))
        .order_by(history.c.last_queued_at.asc().nulls_first(), id_column.asc())
    )

"""Sorting helper shared by the list endpoints."""

from __future__ import annotations

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from fakturace.core.database import Base


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
    allowed_fields: set[str] | None = None,
) -> Query:  # type: ignore[type-arg]
    """Apply ordering to a SQLAlchemy query.

    Args:
        query: The query to sort.
        model: The mapped class the sort field belongs to.
        order_by: ``"field:direction"`` (e.g. ``"issue_date:asc"``). Unknown
            fields fall back to the default ordering.
        default_field: Column used when ``order_by`` is missing or invalid.
        default_direction: ``"asc"`` or ``"desc"``.
        allowed_fields: Optional whitelist of sortable columns.

    Returns:
        The ordered query.
    """
    field = default_field
    direction = default_direction

    if order_by:
        name, _, candidate_direction = order_by.partition(":")
        permitted = allowed_fields is None or name in allowed_fields
        if permitted and hasattr(model, name):
            field = name
            direction = candidate_direction if candidate_direction in ("asc", "desc") else "asc"

    column = getattr(model, field)
    order_func = asc if direction == "asc" else desc
    # Secondary key keeps pagination stable when the sort column has ties.
    return query.order_by(order_func(column), desc(model.id))

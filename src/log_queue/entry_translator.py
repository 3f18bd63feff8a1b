"""Conversion between queue table rows and Pydantic entries."""

from sqlalchemy import Row

from .schemas import Entry


def row_to_entry(row: Row) -> Entry:
    """Convert a queue table row to a Pydantic Entry.

    Args:
        row: Row selected as (id, message, time)

    Returns:
        Pydantic Entry with the row's fields
    """
    return Entry(id=row.id, message=row.message, time=row.time)

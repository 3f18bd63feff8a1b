"""Queue table definition, one table per queue name."""

import re

from sqlalchemy import BigInteger, Column, Index, Integer, MetaData, Table, Text

# SQLite only auto-assigns ids for a column declared exactly INTEGER PRIMARY KEY
QueueId = BigInteger().with_variant(Integer, "sqlite")

_QUEUE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_queue_name(queue_name: str) -> str:
    """Validate a queue name for use as both a file name and a table name.

    Args:
        queue_name: Logical queue name

    Returns:
        The unchanged queue name

    Raises:
        ValueError: If the name is empty or not a plain identifier
    """
    if not queue_name or not _QUEUE_NAME_RE.match(queue_name):
        raise ValueError(
            f"Queue name must be a plain identifier (letters, digits, underscore): {queue_name!r}"
        )
    return queue_name


def build_queue_table(queue_name: str, metadata: MetaData | None = None) -> Table:
    """Build the table holding the entries of one queue.

    Layout:
    - id: auto-increment primary key, never reused (sqlite_autoincrement)
    - message: unbounded text payload
    - time: monotonic clock reading in nanoseconds at insertion
    - <queue_name>_id_index on id, <queue_name>_time_index on time

    Args:
        queue_name: Logical queue name, also used as the table name
        metadata: MetaData to attach the table to (new one if None)

    Returns:
        SQLAlchemy Table (not created in any database)
    """
    _ = validate_queue_name(queue_name)
    metadata = metadata if metadata is not None else MetaData()

    table = Table(
        queue_name,
        metadata,
        Column("id", QueueId, primary_key=True, autoincrement=True),
        Column("message", Text, nullable=False),
        Column("time", BigInteger, nullable=False),
        sqlite_autoincrement=True,
    )
    _ = Index(f"{queue_name}_id_index", table.c.id)
    _ = Index(f"{queue_name}_time_index", table.c.time)
    return table

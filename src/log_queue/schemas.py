"""
Pydantic schemas for queue entries.
Shared between producers and the consumer side of the queue.
"""

from pydantic import BaseModel, ConfigDict, Field


class Entry(BaseModel):
    """One queued log record.

    Entries are values: the store owns the underlying rows and callers only
    ever see copies.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1, description="Store-assigned id, defines FIFO order")
    message: str = Field(..., description="Log record payload")
    time: int = Field(..., description="Monotonic clock reading (ns) at insertion")

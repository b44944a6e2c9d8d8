"""Data models for storage layer."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ChangeEvent:
    """A key written to the shared store by some viewing context."""

    change_id: int
    key: str
    origin: str  # Context that performed the write
    changed_at: datetime

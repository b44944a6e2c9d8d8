"""Storage module: shared key/value store, schema and change feed."""

from matchboard.storage.changes import ChangeFeed, ChangeSubscriber
from matchboard.storage.database import Database
from matchboard.storage.models import ChangeEvent

__all__ = [
    "ChangeEvent",
    "ChangeFeed",
    "ChangeSubscriber",
    "Database",
]

"""Presentation match collection: validation, seeding, merge, persistence."""

from matchboard.presentation.admin import MatchAdmin
from matchboard.presentation.defaults import DEFAULT_TEMPLATES, create_default_matches
from matchboard.presentation.models import (
    DEFAULT_ID_PREFIX,
    REMOTE_ID_PREFIX,
    MatchRecord,
    PredictionEntry,
    PredictionUser,
    RecentMatchStat,
    RemoteMatchRecord,
)
from matchboard.presentation.reconcile import (
    DEFAULT_PROBABILITIES,
    Reconciler,
    merge_matches,
)
from matchboard.presentation.remote import PresentationApiClient
from matchboard.presentation.store import PresentationStore
from matchboard.presentation.sync import PresentationSync
from matchboard.presentation.validation import (
    Checked,
    parse_remote_matches,
    sanitize_collection,
)

__all__ = [
    # Records
    "MatchRecord",
    "PredictionEntry",
    "PredictionUser",
    "RecentMatchStat",
    "RemoteMatchRecord",
    "DEFAULT_ID_PREFIX",
    "REMOTE_ID_PREFIX",
    # Validation
    "Checked",
    "sanitize_collection",
    "parse_remote_matches",
    # Seeding and merge
    "DEFAULT_TEMPLATES",
    "create_default_matches",
    "DEFAULT_PROBABILITIES",
    "Reconciler",
    "merge_matches",
    # Persistence and sync
    "PresentationStore",
    "PresentationApiClient",
    "PresentationSync",
    "MatchAdmin",
]

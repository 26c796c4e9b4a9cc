"""Service draft versioning — optimistic concurrency and publish lifecycle."""

from prohub.versioning.repository import ServiceVersionRepository
from prohub.versioning.states import TRANSITIONS, next_state
from prohub.versioning.store import DraftStore

__all__ = [
    "DraftStore",
    "ServiceVersionRepository",
    "TRANSITIONS",
    "next_state",
]

"""
Insertion Placement Engine
──────────────────────────
Finds where a new title belongs in an existing ranked partition by asking
the user a sequence of "which is better?" questions, binary-search style.

Each question halves the remaining search range, so placing into a list of
N items takes at most ceil(log2(N + 1)) answers.

Session lifecycle:
  comparing ──(range empty)──▶ done
      │
      └──(cancel)──▶ cancelled

A session never writes to the store. Persisting the result is a separate,
single step (app.services.ranking_service.commit_placement).
"""
import logging
import math
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from app.db.models import MediaTypeEnum, TierEnum
from app.services.rank_store import media_type_value

logger = logging.getLogger(__name__)


class PlacementState(str, Enum):
    COMPARING = "comparing"
    DONE = "done"
    CANCELLED = "cancelled"


class PlacementStateError(Exception):
    """Raised when an action is not valid in the session's current state."""


class PlacementNotFoundError(Exception):
    """Raised when a placement session id is unknown or already closed."""


@dataclass
class PlacementCandidate:
    """The new title being placed, with its pre-selected tier."""

    catalog_id: int
    title: str
    media_type: MediaTypeEnum
    tier: TierEnum
    overview: str = ""
    poster_path: str | None = None
    release_date: str | None = None
    review: str | None = None


class PlacementSession:
    """Binary-insertion state machine for one new title."""

    def __init__(self, candidate: PlacementCandidate, partition: list[Any]) -> None:
        self.candidate = candidate
        # Snapshot, best rank first. Held for the whole session.
        self.partition = sorted(partition, key=lambda item: item.rank)
        self.lower = 0
        self.upper = len(self.partition)
        self.comparison_count = 0
        self.state = PlacementState.COMPARING
        if self.upper == 0:
            self.state = PlacementState.DONE

    @property
    def is_done(self) -> bool:
        return self.state == PlacementState.DONE

    @property
    def mid(self) -> int | None:
        if self.state != PlacementState.COMPARING:
            return None
        return self.lower + (self.upper - self.lower) // 2

    @property
    def current_comparison(self) -> Any | None:
        """The existing item the candidate should be compared against next."""
        mid = self.mid
        return None if mid is None else self.partition[mid]

    @property
    def final_rank(self) -> int | None:
        """1-based insertion rank, available once the session is done."""
        if self.state != PlacementState.DONE:
            return None
        return self.lower + 1

    @property
    def estimated_total(self) -> int:
        """Worst-case number of comparisons for this partition size."""
        n = len(self.partition)
        if n == 0:
            return 0
        return max(math.ceil(math.log2(n + 1)), self.comparison_count)

    @property
    def progress(self) -> tuple[int, int]:
        return self.comparison_count, self.estimated_total

    def record_choice(self, new_is_better: bool) -> None:
        """Apply one user decision and advance the search range."""
        mid = self.mid
        if mid is None:
            raise PlacementStateError(
                f"Cannot record a choice while session is {self.state.value}"
            )

        if new_is_better:
            self.upper = mid
        else:
            self.lower = mid + 1
        self.comparison_count += 1

        if self.lower >= self.upper:
            self.state = PlacementState.DONE

    def cancel(self) -> None:
        """Abandon the session. Valid until it is committed; no writes to undo."""
        self.state = PlacementState.CANCELLED


def find_insertion_rank(partition: list[Any], beats) -> tuple[int, int]:
    """
    Run a full placement session non-interactively.

    *beats(existing_item)* answers "is the new item better than this one?".
    Returns (insertion_rank, comparison_count). Used for bulk placement and
    to check the interactive flow against a known order.
    """
    candidate = PlacementCandidate(
        catalog_id=0,
        title="",
        media_type=MediaTypeEnum.MOVIE,
        tier=TierEnum.GOOD,
    )
    session = PlacementSession(candidate, partition)
    while not session.is_done:
        session.record_choice(bool(beats(session.current_comparison)))
    return session.final_rank, session.comparison_count


class SessionRegistry:
    """
    In-process registry of open placement sessions.

    At most one session per media type is open at a time. Opening a new one
    supersedes an abandoned session for the same partition, which would
    otherwise insert from a stale snapshot.

    Sync FastAPI handlers run in a threadpool, so every access to the map
    holds the lock.
    """

    def __init__(self) -> None:
        self._sessions: dict[UUID, PlacementSession] = {}
        self._lock = threading.Lock()

    def open(self, session: PlacementSession) -> UUID:
        media_type = media_type_value(session.candidate.media_type)
        session_id = uuid.uuid4()
        with self._lock:
            stale = [
                sid for sid, other in self._sessions.items()
                if media_type_value(other.candidate.media_type) == media_type
            ]
            superseded = [(sid, self._sessions.pop(sid)) for sid in stale]
            self._sessions[session_id] = session

        for sid, old in superseded:
            if old.state == PlacementState.COMPARING:
                old.cancel()
            logger.info("Superseded %s placement session %s", media_type, sid)
        return session_id

    def get(self, session_id: UUID) -> PlacementSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise PlacementNotFoundError(f"Placement session {session_id} not found")
        return session

    def close(self, session_id: UUID) -> PlacementSession | None:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

"""
Data models for Grade Notifier.

A grade row is kept exactly as the portal renders it: a list of cell
strings. Only two columns carry meaning here, and RecordLayout is the one
place that knows which ones.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

# One row of the grade report, cells in on-page order
GradeRecord = List[str]

# Rows in on-page order, header excluded
Table = List[GradeRecord]


class RecordLayout(BaseModel):
    """
    Positions of the meaningful columns in a grade row.

    Attributes:
        identity_column: Column used to match a row across runs (subject name)
        status_column: Column whose change is worth reporting (grade)
    """
    identity_column: int = Field(default=2, ge=0)
    status_column: int = Field(default=7, ge=0)

    @classmethod
    def from_settings(cls, settings) -> "RecordLayout":
        return cls(
            identity_column=settings.identity_column,
            status_column=settings.status_column,
        )

    def identity_of(self, record: GradeRecord) -> Optional[str]:
        """Subject cell of a row, or None if the row is too short to have one."""
        if self.identity_column < len(record):
            return record[self.identity_column]
        return None

    def status_of(self, record: GradeRecord) -> Optional[str]:
        """Grade cell of a row, or None if the row is too short to have one."""
        if self.status_column < len(record):
            return record[self.status_column]
        return None


class RunState(str, Enum):
    """Stages a monitoring run moves through."""
    IDLE = "idle"
    SESSION_OPEN = "session_open"
    AUTHENTICATED = "authenticated"
    SCRAPED = "scraped"
    COMPARED = "compared"
    NOTIFIED = "notified"
    NO_CHANGE = "no_change"
    FAILED = "failed"
    CLOSED = "closed"


class FailureReason(str, Enum):
    """Why a run ended in the failed state."""
    AUTHENTICATION = "authentication"
    EXTRACTION = "extraction"
    PERSISTENCE = "persistence"
    DELIVERY = "delivery"
    UNEXPECTED = "unexpected"


class RunResult(BaseModel):
    """
    Outcome of one monitoring run.

    Attributes:
        states: Every state the run passed through, in order
        changes: Rows whose grade changed
        delivery_id: Message id returned by the SMS gateway
        failure: Reason the run failed, if it did
        error: Message of the error that caused the failure
    """
    states: List[RunState] = Field(default_factory=list)
    changes: Table = Field(default_factory=list)
    delivery_id: Optional[str] = None
    failure: Optional[FailureReason] = None
    error: Optional[str] = None

    @property
    def final_state(self) -> Optional[RunState]:
        return self.states[-1] if self.states else None

    @property
    def failed(self) -> bool:
        return RunState.FAILED in self.states

    def reached(self, state: RunState) -> bool:
        return state in self.states

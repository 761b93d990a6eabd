"""
Ledger record types.

- Participant: challenge member with a derived total_points
- ActivityRecord: one logged workout/steps submission, frozen once stored
- WeeklyBonusRecord: one consistency award for a participant and week
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional

ACTIVE = "Active"
INACTIVE = "Inactive"
ADMIN = "admin"
PARTICIPANT = "participant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Participant:
    """Challenge member. total_points is a cache rebuilt from the ledger."""
    id: str
    name: str
    team: str
    employee_id: str = ""
    email: str = ""
    status: str = ACTIVE
    role: str = PARTICIPANT
    total_points: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN


@dataclass(frozen=True)
class ActivityDraft:
    """Scored submission waiting to be appended to the ledger."""
    participant_id: str
    date: date
    workout_type: str
    duration_minutes: int
    points_earned: int
    steps_count: int = 0
    category_id: Optional[str] = None
    activity_details: str = ""
    proof_filename: Optional[str] = None


@dataclass(frozen=True)
class ActivityRecord:
    id: str
    participant_id: str
    date: date
    workout_type: str
    duration_minutes: int
    points_earned: int
    steps_count: int = 0
    category_id: Optional[str] = None
    activity_details: str = ""
    proof_filename: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def category_key(self) -> str:
        """Identifier a category filter matches against."""
        return self.category_id or self.workout_type


@dataclass(frozen=True)
class BonusDraft:
    participant_id: str
    week_start_date: date
    week_end_date: date
    days_active: int
    points_earned: int


@dataclass(frozen=True)
class WeeklyBonusRecord:
    id: str
    participant_id: str
    week_start_date: date
    week_end_date: date
    days_active: int
    points_earned: int
    created_at: datetime = field(default_factory=utcnow)

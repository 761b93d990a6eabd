# src/fitpoints/ledger.py

import threading
import uuid
from contextlib import ExitStack
from dataclasses import asdict, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Set

from .config import settings
from .errors import ParticipantNotFoundError, RecomputeError, ValidationError
from .metrics import points_credited_total, recompute_total
from .records import (
    ACTIVE, ADMIN, INACTIVE, PARTICIPANT,
    ActivityDraft, ActivityRecord, BonusDraft, Participant, WeeklyBonusRecord, utcnow,
)
from .utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)

STATUSES = (ACTIVE, INACTIVE)
ROLES = (ADMIN, PARTICIPANT)
EDITABLE_FIELDS = ("name", "team", "employee_id", "email", "status", "role")


class LedgerStore:
    """Append-only activity and bonus ledger with derived participant totals.

    Mutations for one participant are serialized by a per-participant lock.
    The collections themselves sit behind a store lock, so readers always copy
    a complete snapshot rather than a half-applied append.
    """

    def __init__(self):
        self._participants: Dict[str, Participant] = {}
        self._activities: List[ActivityRecord] = []
        self._bonuses: List[WeeklyBonusRecord] = []
        self._lock = threading.RLock()
        self._participant_locks: Dict[str, threading.RLock] = {}

    def _lock_for(self, participant_id: str) -> threading.RLock:
        with self._lock:
            return self._participant_locks.setdefault(participant_id, threading.RLock())

    # Participants

    @staticmethod
    def _check_participant_fields(fields: dict) -> None:
        for key in ("name", "team", "employee_id", "email"):
            if key in fields and not isinstance(fields[key], str):
                raise ValidationError(f"Participant {key} must be text")
        for key in ("name", "team"):
            if key in fields and not fields[key].strip():
                raise ValidationError(f"Participant {key} is required")
        if "status" in fields and fields["status"] not in STATUSES:
            raise ValidationError(f"Status must be one of {', '.join(STATUSES)}")
        if "role" in fields and fields["role"] not in ROLES:
            raise ValidationError(f"Role must be one of {', '.join(ROLES)}")

    def add_participant(self, name: str, team: str, employee_id: str = "", email: str = "",
                        role: str = PARTICIPANT, status: str = ACTIVE,
                        participant_id: Optional[str] = None) -> Participant:
        fields = dict(name=name, team=team, employee_id=employee_id, email=email, role=role, status=status)
        self._check_participant_fields(fields)
        participant = Participant(id=participant_id or str(uuid.uuid4()), **fields)
        with self._lock:
            if participant.id in self._participants:
                raise ValidationError(f"Participant already exists: {participant.id}")
            self._participants[participant.id] = participant
        logger.info(f"Added participant {participant.id} ({participant.name}, {participant.team})")
        return replace(participant)

    def update_participant(self, participant_id: str, **changes) -> Participant:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        self._check_participant_fields(changes)
        with self._lock_for(participant_id), self._lock:
            participant = self._participants.get(participant_id)
            if participant is None:
                raise ParticipantNotFoundError(participant_id)
            for key, value in changes.items():
                setattr(participant, key, value)
            participant.updated_at = utcnow()
            logger.info(f"Updated participant {participant_id}: {sorted(changes)}")
            return replace(participant)

    def get_participant(self, participant_id: str) -> Participant:
        with self._lock:
            participant = self._participants.get(participant_id)
            if participant is None:
                raise ParticipantNotFoundError(participant_id)
            return replace(participant)

    def list_participants(self, status: Optional[str] = None, search: Optional[str] = None) -> List[Participant]:
        with self._lock:
            participants = [replace(p) for p in self._participants.values()]
        if status:
            participants = [p for p in participants if p.status == status]
        if search:
            term = search.lower()
            participants = [
                p for p in participants
                if term in p.name.lower() or term in p.email.lower() or term in p.employee_id.lower()
            ]
        return participants

    # Ledger mutations

    def append(self, draft: ActivityDraft) -> ActivityRecord:
        """Store an already-scored activity and rebuild the owner's total."""
        if draft.points_earned < 0:
            raise ValidationError("Points cannot be negative")
        with self._lock_for(draft.participant_id):
            with self._lock:
                if draft.participant_id not in self._participants:
                    raise ParticipantNotFoundError(draft.participant_id)
                record = ActivityRecord(id=f"act_{uuid.uuid4().hex}", **asdict(draft))
                self._activities.append(record)
            self.recompute(draft.participant_id)
        points_credited_total.labels(source="activity").inc(record.points_earned)
        logger.info(f"Appended {record.id} for {record.participant_id}: {record.points_earned} pts on {record.date}")
        return record

    def recompute(self, participant_id: str) -> int:
        """Overwrite total_points with the fold of the participant's ledger."""
        with self._lock_for(participant_id), self._lock:
            participant = self._participants.get(participant_id)
            if participant is None:
                recompute_total.labels(status="error").inc()
                logger.error(f"Recompute requested for unknown participant {participant_id}")
                raise RecomputeError(participant_id, "participant not found")
            activity_points = sum(a.points_earned for a in self._activities if a.participant_id == participant_id)
            bonus_points = sum(b.points_earned for b in self._bonuses if b.participant_id == participant_id)
            participant.total_points = activity_points + bonus_points
            participant.updated_at = utcnow()
            total = participant.total_points
        recompute_total.labels(status="success").inc()
        logger.debug(f"Recomputed {participant_id}: {activity_points} activity + {bonus_points} bonus")
        return total

    def recompute_all(self) -> None:
        for participant_id in sorted(self.participant_ids()):
            self.recompute(participant_id)

    def award_bonuses(self, drafts: Iterable[BonusDraft]) -> List[WeeklyBonusRecord]:
        """Append a batch of weekly bonuses, all or nothing.

        Pairs already awarded for that week start are skipped. Every affected
        participant is recomputed exactly once after the batch lands.
        """
        drafts = list(drafts)
        for d in drafts:
            if d.points_earned < 0 or d.days_active < 0:
                raise ValidationError("Bonus points and active days cannot be negative")
            if d.week_end_date < d.week_start_date:
                raise ValidationError("Week end must not precede week start")

        participant_ids = sorted({d.participant_id for d in drafts})
        with ExitStack() as stack:
            for participant_id in participant_ids:
                stack.enter_context(self._lock_for(participant_id))
            with self._lock:
                missing = [pid for pid in participant_ids if pid not in self._participants]
                if missing:
                    raise ParticipantNotFoundError(missing[0])
                awarded = {(b.participant_id, b.week_start_date) for b in self._bonuses}
                created = []
                for d in drafts:
                    key = (d.participant_id, d.week_start_date)
                    if key in awarded:
                        logger.info(f"Skipping bonus for {d.participant_id}: week {d.week_start_date} already awarded")
                        continue
                    awarded.add(key)
                    created.append(WeeklyBonusRecord(id=f"bonus_{uuid.uuid4().hex}", **asdict(d)))
                self._bonuses.extend(created)
            for participant_id in sorted({b.participant_id for b in created}):
                self.recompute(participant_id)

        for bonus in created:
            points_credited_total.labels(source="bonus").inc(bonus.points_earned)
        logger.info(f"Awarded {len(created)} of {len(drafts)} requested weekly bonuses")
        return created

    def restore(self, participants: Iterable[Participant], activities: Iterable[ActivityRecord],
                bonuses: Iterable[WeeklyBonusRecord]) -> None:
        """Replace the ledger with persisted records and rebuild every total."""
        with self._lock:
            self._participants = {p.id: replace(p) for p in participants}
            self._activities = sorted(activities, key=lambda a: a.created_at)
            self._bonuses = sorted(bonuses, key=lambda b: b.created_at)
        self.recompute_all()

    # Reads

    def participant_ids(self) -> Set[str]:
        with self._lock:
            return set(self._participants)

    def activities(self, start: Optional[date] = None, end: Optional[date] = None,
                   participant_id: Optional[str] = None) -> List[ActivityRecord]:
        """Snapshot of activities in insertion order, optionally bounded (inclusive)."""
        with self._lock:
            records = list(self._activities)
        return [
            a for a in records
            if (start is None or a.date >= start)
            and (end is None or a.date <= end)
            and (participant_id is None or a.participant_id == participant_id)
        ]

    def activities_for(self, participant_id: str) -> List[ActivityRecord]:
        """Participant's activities, newest date first, then newest created first."""
        ordered = sorted(enumerate(self.activities(participant_id=participant_id)),
                         key=lambda item: (item[1].date, item[1].created_at, item[0]), reverse=True)
        return [a for _, a in ordered]

    def bonuses(self, participant_id: Optional[str] = None,
                week_start: Optional[date] = None) -> List[WeeklyBonusRecord]:
        with self._lock:
            records = list(self._bonuses)
        return [
            b for b in records
            if (participant_id is None or b.participant_id == participant_id)
            and (week_start is None or b.week_start_date == week_start)
        ]

    def awarded_participants(self, week_start: date) -> Set[str]:
        return {b.participant_id for b in self.bonuses(week_start=week_start)}

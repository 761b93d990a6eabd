"""
Reporting rollups over the ledger.

Everything here reads a snapshot of the store and returns plain dataclasses;
nothing mutates the ledger.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from .catalog import ScoringCatalog
from .config import settings
from .ledger import LedgerStore
from .metrics import aggregate_duration
from .periods import DateRange, week_bounds
from .records import ActivityRecord, Participant


@dataclass
class CategoryBreakdown:
    category: str
    minutes: int = 0
    points: int = 0
    activities: int = 0


@dataclass
class ParticipantBreakdown:
    participant_id: str
    name: str
    team: str
    minutes: int = 0
    points: int = 0
    activities: int = 0

    @property
    def average_minutes(self) -> Optional[float]:
        if not self.activities:
            return None
        return self.minutes / self.activities


@dataclass
class Totals:
    minutes: int = 0
    points: int = 0
    steps: int = 0
    activities: int = 0
    participants: int = 0


@dataclass
class Aggregate:
    date_range: DateRange
    totals: Totals
    by_category: List[CategoryBreakdown] = field(default_factory=list)
    by_participant: List[ParticipantBreakdown] = field(default_factory=list)


@dataclass
class DashboardMetrics:
    total_participants: int
    active_today: int
    total_workout_minutes: int
    total_steps: int
    total_points_today: int


@dataclass
class DayPoints:
    date: date
    points: int = 0
    minutes: int = 0
    activities: int = 0

    @property
    def day(self) -> str:
        return self.date.strftime("%a")


@dataclass
class ParticipantSummary:
    participant: Participant
    today_points: int
    weekly_active_days: int
    total_activities: int
    current_streak: int
    week: List[DayPoints]
    recent_activities: List[ActivityRecord]


def filter_activities(activities: Iterable[ActivityRecord], date_range: DateRange,
                      category: Optional[str] = None,
                      participant: Optional[str] = None) -> List[ActivityRecord]:
    """Records inside the inclusive range that match every filter given."""
    return [
        a for a in activities
        if a.date in date_range
        and (category is None or a.category_key == category)
        and (participant is None or a.participant_id == participant)
    ]


@aggregate_duration.time()
def aggregate(store: LedgerStore, date_range: DateRange, category: Optional[str] = None,
              participant: Optional[str] = None, catalog: Optional[ScoringCatalog] = None) -> Aggregate:
    activities = filter_activities(store.activities(date_range.start, date_range.end),
                                   date_range, category, participant)
    participants = {p.id: p for p in store.list_participants()}

    totals = Totals(
        minutes=sum(a.duration_minutes for a in activities),
        points=sum(a.points_earned for a in activities),
        steps=sum(a.steps_count for a in activities),
        activities=len(activities),
        participants=len({a.participant_id for a in activities}),
    )

    by_category: Dict[str, CategoryBreakdown] = {}
    by_participant: Dict[str, ParticipantBreakdown] = {}
    for a in activities:
        label = catalog.label_for(a.category_id, a.workout_type) if catalog else a.workout_type
        group = by_category.setdefault(label, CategoryBreakdown(category=label))
        group.minutes += a.duration_minutes
        group.points += a.points_earned
        group.activities += 1

        if a.participant_id not in by_participant:
            owner = participants.get(a.participant_id)
            by_participant[a.participant_id] = ParticipantBreakdown(
                participant_id=a.participant_id,
                name=owner.name if owner else a.participant_id,
                team=owner.team if owner else "",
            )
        row = by_participant[a.participant_id]
        row.minutes += a.duration_minutes
        row.points += a.points_earned
        row.activities += 1

    # sorted() is stable, so ties keep first-encounter order
    return Aggregate(
        date_range=date_range,
        totals=totals,
        by_category=sorted(by_category.values(), key=lambda g: g.minutes, reverse=True),
        by_participant=sorted(by_participant.values(), key=lambda r: r.minutes, reverse=True),
    )


def dashboard_metrics(store: LedgerStore, day: Optional[date] = None) -> DashboardMetrics:
    """Headline numbers for the admin overview on a given day."""
    day = day or date.today()
    today = store.activities(day, day)
    return DashboardMetrics(
        total_participants=len(store.participant_ids()),
        active_today=len({a.participant_id for a in today}),
        total_workout_minutes=sum(a.duration_minutes for a in today),
        total_steps=sum(a.steps_count for a in today),
        total_points_today=sum(a.points_earned for a in today),
    )


def daily_streak(active_dates: Iterable[date], today: date) -> int:
    """Consecutive active days counting back from today."""
    days = set(active_dates)
    streak = 0
    current = today
    while current in days:
        streak += 1
        current -= timedelta(days=1)
    return streak


def participant_summary(store: LedgerStore, participant_id: str, today: Optional[date] = None,
                        recent_limit: Optional[int] = None) -> ParticipantSummary:
    today = today or date.today()
    recent_limit = settings.recent_activity_limit if recent_limit is None else recent_limit
    participant = store.get_participant(participant_id)
    history = store.activities_for(participant_id)

    week = week_bounds(today)
    chart = {day: DayPoints(date=day) for day in week.days()}
    for a in history:
        if a.date in chart:
            bucket = chart[a.date]
            bucket.points += a.points_earned
            bucket.minutes += a.duration_minutes
            bucket.activities += 1

    return ParticipantSummary(
        participant=participant,
        today_points=sum(a.points_earned for a in history if a.date == today),
        weekly_active_days=sum(1 for bucket in chart.values() if bucket.activities),
        total_activities=len(history),
        current_streak=daily_streak((a.date for a in history), today),
        week=list(chart.values()),
        recent_activities=history[:recent_limit],
    )


def leaderboard(store: LedgerStore, limit: Optional[int] = None) -> List[Participant]:
    """Active participants by total points, highest first."""
    limit = settings.leaderboard_limit if limit is None else limit
    ranked = sorted(store.list_participants(status="Active"), key=lambda p: p.total_points, reverse=True)
    return ranked[:limit]

# src/fitpoints/consistency.py

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .config import settings
from .errors import ValidationError
from .ledger import LedgerStore
from .metrics import bonus_batches_total
from .periods import DateRange, week_window
from .records import BonusDraft, WeeklyBonusRecord
from .rules import consistency_tier
from .utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)

AWARDED = "awarded"
NOTHING_ELIGIBLE = "nothing_eligible"

@dataclass
class ConsistencyRow:
    participant_id: str
    name: str
    team: str
    active_days: int
    bonus_points: int
    bonus_label: str
    already_awarded: bool

    @property
    def eligible(self) -> bool:
        return self.bonus_points > 0 and not self.already_awarded

@dataclass
class WeekReport:
    week: DateRange
    rows: List[ConsistencyRow] = field(default_factory=list)

    @property
    def eligible(self) -> List[ConsistencyRow]:
        return [row for row in self.rows if row.eligible]

    @property
    def pending_points(self) -> int:
        return sum(row.bonus_points for row in self.eligible)

@dataclass
class AwardOutcome:
    status: str
    week: DateRange
    records: List[WeeklyBonusRecord] = field(default_factory=list)

def evaluate_week(store: LedgerStore, week_offset: int = 0, today: Optional[date] = None) -> WeekReport:
    """Distinct active days and bonus tier for every active participant."""
    week = week_window(week_offset, today)
    activities = store.activities(week.start, week.end)
    awarded = store.awarded_participants(week.start)

    rows = []
    for participant in store.list_participants(status="Active"):
        days = {a.date for a in activities if a.participant_id == participant.id}
        tier = consistency_tier(len(days))
        rows.append(ConsistencyRow(
            participant_id=participant.id,
            name=participant.name,
            team=participant.team,
            active_days=len(days),
            bonus_points=tier.points,
            bonus_label=tier.label,
            already_awarded=participant.id in awarded,
        ))

    rows.sort(key=lambda row: row.active_days, reverse=True)
    return WeekReport(week=week, rows=rows)

def evaluate(store: LedgerStore, week_offset: int = 0, today: Optional[date] = None) -> List[ConsistencyRow]:
    return evaluate_week(store, week_offset, today).rows

def award(store: LedgerStore, week_offset: int = 0, confirmed: bool = False,
          today: Optional[date] = None) -> AwardOutcome:
    """Award the week's consistency bonuses once the operator has confirmed."""
    if not confirmed:
        raise ValidationError("Awarding consistency bonuses requires confirmation")

    report = evaluate_week(store, week_offset, today)
    eligible = report.eligible
    if not eligible:
        logger.info(f"No bonuses to award for week starting {report.week.start}")
        bonus_batches_total.labels(outcome=NOTHING_ELIGIBLE).inc()
        return AwardOutcome(status=NOTHING_ELIGIBLE, week=report.week)

    drafts = [
        BonusDraft(
            participant_id=row.participant_id,
            week_start_date=report.week.start,
            week_end_date=report.week.end,
            days_active=row.active_days,
            points_earned=row.bonus_points,
        )
        for row in eligible
    ]
    records = store.award_bonuses(drafts)
    if not records:
        # a concurrent award already wrote every pair
        logger.info(f"Bonuses for week starting {report.week.start} were already awarded")
        bonus_batches_total.labels(outcome=NOTHING_ELIGIBLE).inc()
        return AwardOutcome(status=NOTHING_ELIGIBLE, week=report.week)
    bonus_batches_total.labels(outcome=AWARDED).inc()
    logger.info(f"Awarded bonuses to {len(records)} participants for week starting {report.week.start}")
    return AwardOutcome(status=AWARDED, week=report.week, records=records)

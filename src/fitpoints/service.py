# src/fitpoints/service.py

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .aggregator import (
    Aggregate, DashboardMetrics, ParticipantSummary,
    aggregate, dashboard_metrics, filter_activities, leaderboard, participant_summary,
)
from .catalog import CategoryCatalog, ScoringCatalog, build_catalog
from .config import settings
from .consistency import AwardOutcome, WeekReport, award, evaluate_week
from .errors import CatalogModeError, ParticipantNotFoundError, ValidationError
from .ledger import LedgerStore
from .metrics import activities_submitted_total
from .periods import DateRange, resolve_period
from .records import ActivityDraft, ActivityRecord, Participant
from .rules import STEPS_ONLY
from .scoring import score, whole_number
from .utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)

@dataclass(frozen=True)
class ActivitySubmission:
    participant_id: str
    selector: str
    duration_minutes: int
    activity_details: str
    steps_count: int = 0
    date: Optional[date] = None
    proof_filename: Optional[str] = None

class ChallengeEngine:
    """The engine's external calls over one owned store and one catalog."""

    def __init__(self, store: Optional[LedgerStore] = None, catalog: Optional[ScoringCatalog] = None):
        self.store = store if store is not None else LedgerStore()
        self.catalog = catalog if catalog is not None else build_catalog()

    @property
    def categories(self) -> CategoryCatalog:
        if not isinstance(self.catalog, CategoryCatalog):
            raise CatalogModeError("Categories are only editable when scoring by points per minute")
        return self.catalog

    def _draft(self, submission: ActivitySubmission, today: date) -> ActivityDraft:
        participant = self.store.get_participant(submission.participant_id)
        if not participant.is_active:
            raise ValidationError(f"Participant {participant.id} is inactive")

        selector = (submission.selector or "").strip()
        if not selector:
            raise ValidationError("Please select a workout category")

        details = (submission.activity_details or "").strip()
        if not details:
            raise ValidationError("Please provide activity details")

        duration = whole_number(submission.duration_minutes, "Duration")
        steps = whole_number(submission.steps_count or 0, "Steps")
        steps_only = not isinstance(self.catalog, CategoryCatalog) and selector == STEPS_ONLY
        if duration < 1 and not steps_only:
            raise ValidationError("Duration must be at least 1 minute")

        day = submission.date or today
        if day > today:
            raise ValidationError("Activities cannot be logged for a future date")

        points = score(self.catalog, selector, duration, steps)
        if isinstance(self.catalog, CategoryCatalog):
            category_id, workout_type = selector, self.catalog.get(selector).name
        else:
            category_id, workout_type = None, selector

        return ActivityDraft(
            participant_id=participant.id,
            date=day,
            workout_type=workout_type,
            category_id=category_id,
            duration_minutes=duration,
            steps_count=steps,
            points_earned=points,
            activity_details=details,
            proof_filename=submission.proof_filename,
        )

    def submit_activity(self, submission: ActivitySubmission, today: Optional[date] = None) -> ActivityRecord:
        """Score a submission and append it; rejected input leaves the ledger untouched."""
        try:
            draft = self._draft(submission, today or date.today())
            record = self.store.append(draft)
        except (ValidationError, ParticipantNotFoundError) as e:
            activities_submitted_total.labels(status="rejected").inc()
            logger.warning(f"Rejected submission from {submission.participant_id}: {e}")
            raise
        activities_submitted_total.labels(status="accepted").inc()
        return record

    def resolve_range(self, period: str = "week", start: Optional[date] = None,
                      end: Optional[date] = None, today: Optional[date] = None) -> DateRange:
        return resolve_period(period, today=today, custom_start=start, custom_end=end)

    def query_activities(self, period: str = "week", start: Optional[date] = None, end: Optional[date] = None,
                         category: Optional[str] = None, participant: Optional[str] = None,
                         today: Optional[date] = None) -> List[ActivityRecord]:
        date_range = self.resolve_range(period, start, end, today)
        records = self.store.activities(date_range.start, date_range.end)
        return filter_activities(records, date_range, category, participant)

    def aggregate(self, period: str = "week", start: Optional[date] = None, end: Optional[date] = None,
                  category: Optional[str] = None, participant: Optional[str] = None,
                  today: Optional[date] = None) -> Aggregate:
        date_range = self.resolve_range(period, start, end, today)
        return aggregate(self.store, date_range, category=category, participant=participant, catalog=self.catalog)

    def evaluate_consistency(self, week_offset: int = 0, today: Optional[date] = None) -> WeekReport:
        return evaluate_week(self.store, week_offset, today)

    def award_consistency_bonuses(self, week_offset: int = 0, confirmed: bool = False,
                                  today: Optional[date] = None) -> AwardOutcome:
        return award(self.store, week_offset, confirmed=confirmed, today=today)

    def get_participant(self, participant_id: str) -> Participant:
        return self.store.get_participant(participant_id)

    def participant_summary(self, participant_id: str, today: Optional[date] = None) -> ParticipantSummary:
        return participant_summary(self.store, participant_id, today)

    def dashboard(self, day: Optional[date] = None) -> DashboardMetrics:
        return dashboard_metrics(self.store, day)

    def leaderboard(self, limit: Optional[int] = None) -> List[Participant]:
        return leaderboard(self.store, limit)

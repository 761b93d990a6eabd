# src/fitpoints/api.py

import datetime as dt
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request  # type: ignore
from fastapi.responses import JSONResponse  # type: ignore
from pydantic import BaseModel

from .config import settings
from .errors import (
    CatalogModeError, CategoryNotFoundError, ParticipantNotFoundError, RecomputeError, ValidationError,
)
from .service import ActivitySubmission, ChallengeEngine
from .utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)


class Schema(BaseModel):
    class Config:
        from_attributes = True


class ParticipantIn(Schema):
    name: str
    team: str
    employee_id: str = ""
    email: str = ""
    role: str = "participant"


class ParticipantPatch(Schema):
    name: Optional[str] = None
    team: Optional[str] = None
    employee_id: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None
    role: Optional[str] = None


class ParticipantOut(Schema):
    id: str
    employee_id: str
    name: str
    team: str
    email: str
    status: str
    role: str
    total_points: int
    created_at: datetime
    updated_at: datetime


class ActivityIn(Schema):
    participant_id: str
    selector: str
    duration_minutes: int
    activity_details: str
    steps_count: int = 0
    date: Optional[dt.date] = None
    proof_filename: Optional[str] = None


class ActivityOut(Schema):
    id: str
    participant_id: str
    date: dt.date
    workout_type: str
    category_id: Optional[str] = None
    duration_minutes: int
    steps_count: int
    points_earned: int
    activity_details: str
    proof_filename: Optional[str] = None
    created_at: datetime


class RangeOut(Schema):
    start: dt.date
    end: dt.date


class TotalsOut(Schema):
    minutes: int
    points: int
    steps: int
    activities: int
    participants: int


class CategoryBreakdownOut(Schema):
    category: str
    minutes: int
    points: int
    activities: int


class ParticipantBreakdownOut(Schema):
    participant_id: str
    name: str
    team: str
    minutes: int
    points: int
    activities: int
    average_minutes: Optional[float] = None


class AggregateOut(Schema):
    date_range: RangeOut
    totals: TotalsOut
    by_category: List[CategoryBreakdownOut]
    by_participant: List[ParticipantBreakdownOut]


class DashboardOut(Schema):
    total_participants: int
    active_today: int
    total_workout_minutes: int
    total_steps: int
    total_points_today: int


class DayPointsOut(Schema):
    date: dt.date
    day: str
    points: int
    minutes: int
    activities: int


class SummaryOut(Schema):
    participant: ParticipantOut
    today_points: int
    weekly_active_days: int
    total_activities: int
    current_streak: int
    week: List[DayPointsOut]
    recent_activities: List[ActivityOut]


class ConsistencyRowOut(Schema):
    participant_id: str
    name: str
    team: str
    active_days: int
    bonus_points: int
    bonus_label: str
    already_awarded: bool


class WeekReportOut(Schema):
    week: RangeOut
    rows: List[ConsistencyRowOut]
    pending_points: int


class AwardIn(Schema):
    week_offset: int = 0
    confirmed: bool = False


class BonusOut(Schema):
    id: str
    participant_id: str
    week_start_date: dt.date
    week_end_date: dt.date
    days_active: int
    points_earned: int
    created_at: datetime


class AwardOut(Schema):
    status: str
    week: RangeOut
    records: List[BonusOut]


class CategoryIn(Schema):
    name: str
    points_per_minute: int


class CategoryPatch(Schema):
    name: Optional[str] = None
    points_per_minute: Optional[int] = None


class CategoryOut(Schema):
    id: str
    name: str
    points_per_minute: int
    created_at: datetime


def create_app(engine: ChallengeEngine, session_factory=None) -> FastAPI:
    """HTTP surface over a challenge engine.

    When a session factory is given, every mutation is mirrored to the
    database before the response is sent.
    """
    app = FastAPI(title="fitpoints")
    app.state.engine = engine

    async def persist():
        if session_factory is None:
            return
        from .models.database import save_store
        async with session_factory() as db:
            await save_store(db, engine.store, engine.catalog)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(CatalogModeError)
    async def catalog_mode_handler(request: Request, exc: CatalogModeError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ParticipantNotFoundError)
    async def not_found_handler(request: Request, exc: ParticipantNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RecomputeError)
    async def recompute_error_handler(request: Request, exc: RecomputeError):
        logger.error(f"Recompute failed on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "scoring_mode": engine.catalog.mode}

    # Participants

    @app.post("/participants", response_model=ParticipantOut, status_code=201)
    async def add_participant(body: ParticipantIn):
        participant = engine.store.add_participant(**body.model_dump())
        await persist()
        return ParticipantOut.model_validate(participant)

    @app.get("/participants", response_model=List[ParticipantOut])
    async def list_participants(status: Optional[str] = None, search: Optional[str] = None):
        return [ParticipantOut.model_validate(p) for p in engine.store.list_participants(status, search)]

    @app.get("/participants/{participant_id}", response_model=ParticipantOut)
    async def get_participant(participant_id: str):
        return ParticipantOut.model_validate(engine.get_participant(participant_id))

    @app.patch("/participants/{participant_id}", response_model=ParticipantOut)
    async def update_participant(participant_id: str, body: ParticipantPatch):
        participant = engine.store.update_participant(participant_id, **body.model_dump(exclude_none=True))
        await persist()
        return ParticipantOut.model_validate(participant)

    @app.get("/participants/{participant_id}/summary", response_model=SummaryOut)
    async def participant_summary(participant_id: str):
        return SummaryOut.model_validate(engine.participant_summary(participant_id))

    # Activities

    @app.post("/activities", response_model=ActivityOut, status_code=201)
    async def submit_activity(body: ActivityIn):
        record = engine.submit_activity(ActivitySubmission(**body.model_dump()))
        await persist()
        return ActivityOut.model_validate(record)

    @app.get("/activities", response_model=List[ActivityOut])
    async def query_activities(period: str = "week", start: Optional[dt.date] = None, end: Optional[dt.date] = None,
                               category: Optional[str] = None, participant: Optional[str] = None):
        records = engine.query_activities(period, start, end, category=category, participant=participant)
        return [ActivityOut.model_validate(r) for r in records]

    # Reports

    @app.get("/reports/aggregate", response_model=AggregateOut)
    async def aggregate(period: str = "week", start: Optional[dt.date] = None, end: Optional[dt.date] = None,
                        category: Optional[str] = None, participant: Optional[str] = None):
        return AggregateOut.model_validate(
            engine.aggregate(period, start, end, category=category, participant=participant)
        )

    @app.get("/reports/dashboard", response_model=DashboardOut)
    async def dashboard(day: Optional[dt.date] = None):
        return DashboardOut.model_validate(engine.dashboard(day))

    @app.get("/leaderboard", response_model=List[ParticipantOut])
    async def leaderboard(limit: Optional[int] = None):
        return [ParticipantOut.model_validate(p) for p in engine.leaderboard(limit)]

    # Consistency bonuses

    @app.get("/consistency", response_model=WeekReportOut)
    async def consistency(week_offset: int = 0):
        return WeekReportOut.model_validate(engine.evaluate_consistency(week_offset))

    @app.post("/consistency/award", response_model=AwardOut)
    async def award_bonuses(body: AwardIn):
        outcome = engine.award_consistency_bonuses(body.week_offset, confirmed=body.confirmed)
        if outcome.records:
            await persist()
        return AwardOut.model_validate(outcome)

    # Categories (rate-based deployments)

    @app.get("/categories", response_model=List[CategoryOut])
    async def list_categories():
        return [CategoryOut.model_validate(c) for c in engine.categories.all()]

    @app.post("/categories", response_model=CategoryOut, status_code=201)
    async def add_category(body: CategoryIn):
        category = engine.categories.add(body.name, body.points_per_minute)
        await persist()
        return CategoryOut.model_validate(category)

    @app.patch("/categories/{category_id}", response_model=CategoryOut)
    async def update_category(category_id: str, body: CategoryPatch):
        try:
            category = engine.categories.update(category_id, body.name, body.points_per_minute)
        except CategoryNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        await persist()
        return CategoryOut.model_validate(category)

    @app.delete("/categories/{category_id}", status_code=204)
    async def delete_category(category_id: str):
        try:
            engine.categories.delete(category_id)
        except CategoryNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        await persist()

    return app

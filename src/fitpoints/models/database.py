from datetime import timezone
from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy import select, text

from .base import Base
from .ledger import ActivityRow, CategoryRow, ParticipantRow, WeeklyBonusRow
from ..catalog import CategoryCatalog, ScoringCatalog
from ..config import settings
from ..ledger import LedgerStore
from ..records import ActivityRecord, Participant, WeeklyBonusRecord
from ..utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)

# Create async engine
engine = create_async_engine(settings.database_url, echo=False)

# Create async session factory
async_session = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

async def init_db(bind: Optional[AsyncEngine] = None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session

async def check_db_connection(bind: Optional[AsyncEngine] = None) -> bool:
    """Check if the database connection is working."""
    try:
        async with (bind or engine).connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database connection error: {e}")
        return False

def _aware(value):
    # SQLite hands timestamps back without tzinfo
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

async def save_store(db: AsyncSession, store: LedgerStore, catalog: Optional[ScoringCatalog] = None) -> None:
    """Mirror the in-memory ledger into the database.

    Participants and categories are upserted. Activities and bonuses are
    append-only: rows already present are never rewritten.
    """
    for p in store.list_participants():
        await db.merge(ParticipantRow(
            id=p.id, employee_id=p.employee_id, name=p.name, team=p.team, email=p.email,
            status=p.status, role=p.role, total_points=p.total_points,
            created_at=p.created_at, updated_at=p.updated_at,
        ))
    await db.flush()

    known_activities = set((await db.execute(select(ActivityRow.id))).scalars().all())
    for a in store.activities():
        if a.id not in known_activities:
            db.add(ActivityRow(
                id=a.id, participant_id=a.participant_id, date=a.date, workout_type=a.workout_type,
                category_id=a.category_id, duration_minutes=a.duration_minutes, steps_count=a.steps_count,
                points_earned=a.points_earned, activity_details=a.activity_details,
                proof_filename=a.proof_filename, created_at=a.created_at,
            ))

    known_bonuses = set((await db.execute(select(WeeklyBonusRow.id))).scalars().all())
    for b in store.bonuses():
        if b.id not in known_bonuses:
            db.add(WeeklyBonusRow(
                id=b.id, participant_id=b.participant_id, week_start_date=b.week_start_date,
                week_end_date=b.week_end_date, days_active=b.days_active,
                points_earned=b.points_earned, created_at=b.created_at,
            ))

    if isinstance(catalog, CategoryCatalog):
        current = {c.id: c for c in catalog.all()}
        for row in (await db.execute(select(CategoryRow))).scalars().all():
            if row.id not in current:
                await db.delete(row)
        await db.flush()
        for c in current.values():
            await db.merge(CategoryRow(id=c.id, name=c.name, points_per_minute=c.points_per_minute,
                                       created_at=c.created_at))

    await db.commit()
    logger.info("Saved ledger to database")

async def load_store(db: AsyncSession, catalog: Optional[ScoringCatalog] = None) -> LedgerStore:
    """Rebuild a store from the database; totals are recomputed, not trusted."""
    participants = [
        Participant(
            id=r.id, employee_id=r.employee_id, name=r.name, team=r.team, email=r.email,
            status=r.status, role=r.role, created_at=_aware(r.created_at), updated_at=_aware(r.updated_at),
        )
        for r in (await db.execute(select(ParticipantRow))).scalars().all()
    ]
    activities = [
        ActivityRecord(
            id=r.id, participant_id=r.participant_id, date=r.date, workout_type=r.workout_type,
            category_id=r.category_id, duration_minutes=r.duration_minutes, steps_count=r.steps_count,
            points_earned=r.points_earned, activity_details=r.activity_details,
            proof_filename=r.proof_filename, created_at=_aware(r.created_at),
        )
        for r in (await db.execute(select(ActivityRow))).scalars().all()
    ]
    bonuses = [
        WeeklyBonusRecord(
            id=r.id, participant_id=r.participant_id, week_start_date=r.week_start_date,
            week_end_date=r.week_end_date, days_active=r.days_active, points_earned=r.points_earned,
            created_at=_aware(r.created_at),
        )
        for r in (await db.execute(select(WeeklyBonusRow))).scalars().all()
    ]

    if isinstance(catalog, CategoryCatalog):
        rows = (await db.execute(select(CategoryRow))).scalars().all()
        # once categories are stored they are authoritative; seeds only fill an empty table
        if rows:
            for seeded in catalog.all():
                catalog.delete(seeded.id)
            for r in rows:
                catalog.add(r.name, r.points_per_minute, category_id=r.id, created_at=_aware(r.created_at))

    store = LedgerStore()
    store.restore(participants, activities, bonuses)
    logger.info(f"Loaded {len(participants)} participants, {len(activities)} activities, {len(bonuses)} bonuses")
    return store

"""
Tests for mirroring the ledger into SQLAlchemy tables and loading it back.

Runs against a throwaway SQLite file through aiosqlite; each test drives its
coroutine with asyncio.run.
"""
import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from conftest import MONDAY, SUNDAY, TODAY, make_draft
from fitpoints.catalog import CATEGORY_RATE, CategoryCatalog, build_catalog
from fitpoints.models.database import check_db_connection, init_db, load_store, save_store
from fitpoints.models.ledger import ActivityRow, CategoryRow, WeeklyBonusRow
from fitpoints.records import BonusDraft


@pytest.fixture
def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fitpoints.db'}")
    asyncio.run(init_db(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


def run(coro):
    return asyncio.run(coro)


async def save(session_factory, store, catalog=None):
    async with session_factory() as db:
        await save_store(db, store, catalog)


async def load(session_factory, catalog=None):
    async with session_factory() as db:
        return await load_store(db, catalog)


async def count(session_factory, model):
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(model))).scalar()


class TestPersistence:
    def test_connection_check(self, db_engine):
        assert run(check_db_connection(db_engine)) is True

    def test_round_trip(self, session_factory, store, alice, bob):
        store.append(make_draft(alice.id, points=180, steps=9000))
        store.append(make_draft(bob.id, points=100))
        store.award_bonuses([BonusDraft(participant_id=alice.id, week_start_date=MONDAY, week_end_date=SUNDAY,
                                        days_active=5, points_earned=800)])
        run(save(session_factory, store))

        loaded = run(load(session_factory))
        assert loaded.get_participant(alice.id).total_points == 980
        assert loaded.get_participant(bob.id).total_points == 100
        assert loaded.get_participant(alice.id).email == "alice@example.com"
        assert {a.id for a in loaded.activities()} == {a.id for a in store.activities()}
        assert loaded.awarded_participants(MONDAY) == {alice.id}
        assert loaded.activities(participant_id=alice.id)[0].steps_count == 9000

    def test_saving_twice_does_not_duplicate(self, session_factory, store, alice):
        store.append(make_draft(alice.id))
        run(save(session_factory, store))
        store.append(make_draft(alice.id))
        run(save(session_factory, store))
        assert run(count(session_factory, ActivityRow)) == 2
        assert run(count(session_factory, WeeklyBonusRow)) == 0

    def test_loaded_store_accepts_new_records(self, session_factory, store, alice):
        store.append(make_draft(alice.id, day=TODAY, points=50))
        run(save(session_factory, store))
        loaded = run(load(session_factory))
        loaded.append(make_draft(alice.id, day=TODAY, points=25))
        assert loaded.get_participant(alice.id).total_points == 75
        assert [a.points_earned for a in loaded.activities_for(alice.id)] == [25, 50]

    def test_categories_round_trip(self, session_factory, store, rate_catalog):
        rate_catalog.delete("cat-cycling")
        rate_catalog.add("Rowing", 4, category_id="cat-rowing")
        run(save(session_factory, store, rate_catalog))
        assert run(count(session_factory, CategoryRow)) == 2

        seeded = CategoryCatalog()
        seeded.add("Running", 9, category_id="cat-fresh-seed")
        run(load(session_factory, seeded))
        assert {c.id: c.points_per_minute for c in seeded.all()} == {"cat-running": 7, "cat-rowing": 4}

    def test_deleted_seed_category_stays_deleted(self, session_factory, store):
        catalog = build_catalog(CATEGORY_RATE, {"Running": 7, "Cycling": 5})
        running = next(c for c in catalog.all() if c.name == "Running")
        catalog.delete(running.id)
        run(save(session_factory, store, catalog))

        restarted = build_catalog(CATEGORY_RATE, {"Running": 7, "Cycling": 5})
        run(load(session_factory, restarted))
        assert [c.name for c in restarted.all()] == ["Cycling"]

    def test_renamed_seed_category_keeps_one_name(self, session_factory, store):
        catalog = build_catalog(CATEGORY_RATE, {"Running": 7, "Cycling": 5})
        running = next(c for c in catalog.all() if c.name == "Running")
        catalog.update(running.id, name="Trail Running")
        run(save(session_factory, store, catalog))

        restarted = build_catalog(CATEGORY_RATE, {"Running": 7, "Cycling": 5})
        run(load(session_factory, restarted))
        assert [c.name for c in restarted.all()] == ["Cycling", "Trail Running"]
        assert restarted.get(running.id).points_per_minute == 7

    def test_seed_kept_when_no_categories_stored(self, session_factory, store):
        restarted = build_catalog(CATEGORY_RATE, {"Running": 7, "Cycling": 5})
        run(load(session_factory, restarted))
        assert [c.name for c in restarted.all()] == ["Cycling", "Running"]
        assert run(count(session_factory, CategoryRow)) == 0

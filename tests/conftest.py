"""
Pytest configuration and fixtures

Every test builds its own in-memory ledger, so nothing leaks between tests.
Dates are pinned to a known week: TODAY is Wednesday 2026-10-14, the week
runs Monday 2026-10-12 to Sunday 2026-10-18.
"""
import pytest
from datetime import date, timedelta

from fitpoints.catalog import CategoryCatalog, WorkoutCatalog
from fitpoints.ledger import LedgerStore
from fitpoints.records import ActivityDraft
from fitpoints.service import ChallengeEngine

TODAY = date(2026, 10, 14)
MONDAY = date(2026, 10, 12)
SUNDAY = date(2026, 10, 18)


def make_draft(participant_id, day=TODAY, points=100, minutes=30, workout_type="Simple Cardio",
               steps=0, category_id=None):
    return ActivityDraft(
        participant_id=participant_id,
        date=day,
        workout_type=workout_type,
        category_id=category_id,
        duration_minutes=minutes,
        steps_count=steps,
        points_earned=points,
        activity_details="logged in test",
    )


def week_day(offset):
    """Day of the pinned week, 0 = Monday."""
    return MONDAY + timedelta(days=offset)


@pytest.fixture
def store():
    return LedgerStore()


@pytest.fixture
def alice(store):
    return store.add_participant(name="Alice", team="Blue", employee_id="E001", email="alice@example.com",
                                 participant_id="p-alice")


@pytest.fixture
def bob(store):
    return store.add_participant(name="Bob", team="Red", employee_id="E002", email="bob@example.com",
                                 participant_id="p-bob")


@pytest.fixture
def workout_engine(store):
    return ChallengeEngine(store=store, catalog=WorkoutCatalog())


@pytest.fixture
def rate_catalog():
    catalog = CategoryCatalog()
    catalog.add("Running", 7, category_id="cat-running")
    catalog.add("Cycling", 5, category_id="cat-cycling")
    return catalog


@pytest.fixture
def rate_engine(store, rate_catalog):
    return ChallengeEngine(store=store, catalog=rate_catalog)

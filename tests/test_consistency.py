"""
Tests for weekly consistency evaluation and the confirmed award batch.
"""
import pytest

from conftest import MONDAY, SUNDAY, TODAY, make_draft, week_day
from fitpoints.consistency import AWARDED, NOTHING_ELIGIBLE, award, evaluate, evaluate_week
from fitpoints.errors import ValidationError


def log_days(store, participant_id, offsets, points=100):
    for offset in offsets:
        store.append(make_draft(participant_id, day=week_day(offset), points=points))


class TestEvaluate:
    def test_five_active_days(self, store, alice):
        log_days(store, alice.id, range(5))
        row = evaluate(store, 0, today=TODAY)[0]
        assert row.active_days == 5
        assert row.bonus_points == 800
        assert row.bonus_label == "5 days/week"
        assert not row.already_awarded

    def test_repeat_day_not_double_counted(self, store, alice):
        log_days(store, alice.id, range(5))
        log_days(store, alice.id, [2])
        assert evaluate(store, 0, today=TODAY)[0].active_days == 5

    def test_zero_point_activity_counts_as_active(self, store, alice):
        log_days(store, alice.id, range(3), points=0)
        row = evaluate(store, 0, today=TODAY)[0]
        assert row.active_days == 3
        assert row.bonus_points == 500

    def test_every_day(self, store, alice):
        log_days(store, alice.id, range(7))
        row = evaluate(store, 0, today=TODAY)[0]
        assert (row.bonus_points, row.bonus_label) == (1000, "Every day")

    def test_below_lowest_tier(self, store, alice):
        log_days(store, alice.id, [0, 1])
        row = evaluate(store, 0, today=TODAY)[0]
        assert (row.bonus_points, row.bonus_label) == (0, "No bonus")

    def test_only_days_inside_week_count(self, store, alice):
        log_days(store, alice.id, [-1, 0, 1, 7])
        assert evaluate(store, 0, today=TODAY)[0].active_days == 2

    def test_week_offset(self, store, alice):
        log_days(store, alice.id, [-7, -6, -5])
        report = evaluate_week(store, 1, today=TODAY)
        assert report.week.start == week_day(-7)
        assert report.rows[0].active_days == 3

    def test_inactive_participants_skipped(self, store, alice, bob):
        store.update_participant(bob.id, status="Inactive")
        assert [r.participant_id for r in evaluate(store, 0, today=TODAY)] == [alice.id]

    def test_sorted_by_active_days(self, store, alice, bob):
        log_days(store, alice.id, [0])
        log_days(store, bob.id, [0, 1, 2])
        assert [r.participant_id for r in evaluate(store, 0, today=TODAY)] == [bob.id, alice.id]

    def test_pending_points(self, store, alice, bob):
        log_days(store, alice.id, range(5))
        log_days(store, bob.id, range(3))
        assert evaluate_week(store, 0, today=TODAY).pending_points == 1300


class TestAward:
    def test_requires_confirmation(self, store, alice):
        log_days(store, alice.id, range(5))
        with pytest.raises(ValidationError):
            award(store, 0, confirmed=False, today=TODAY)
        assert store.bonuses() == []

    def test_awards_eligible_only(self, store, alice, bob):
        log_days(store, alice.id, range(5))
        log_days(store, bob.id, [0])
        outcome = award(store, 0, confirmed=True, today=TODAY)
        assert outcome.status == AWARDED
        assert [(b.participant_id, b.points_earned, b.days_active) for b in outcome.records] == [
            (alice.id, 800, 5)
        ]
        bonus = outcome.records[0]
        assert (bonus.week_start_date, bonus.week_end_date) == (MONDAY, SUNDAY)
        assert store.get_participant(alice.id).total_points == 500 + 800

    def test_flagged_after_award(self, store, alice):
        log_days(store, alice.id, range(3))
        award(store, 0, confirmed=True, today=TODAY)
        assert evaluate(store, 0, today=TODAY)[0].already_awarded

    def test_second_award_changes_nothing(self, store, alice):
        log_days(store, alice.id, range(5))
        award(store, 0, confirmed=True, today=TODAY)
        after_first = store.get_participant(alice.id).total_points
        outcome = award(store, 0, confirmed=True, today=TODAY)
        assert outcome.status == NOTHING_ELIGIBLE
        assert store.get_participant(alice.id).total_points == after_first
        assert len(store.bonuses()) == 1

    def test_batch_already_written_by_concurrent_award(self, store, alice, monkeypatch):
        log_days(store, alice.id, range(5))
        original = store.award_bonuses

        def award_raced(drafts):
            # another caller lands the same batch first
            original(drafts)
            return original(drafts)

        monkeypatch.setattr(store, "award_bonuses", award_raced)
        outcome = award(store, 0, confirmed=True, today=TODAY)
        assert outcome.status == NOTHING_ELIGIBLE
        assert outcome.records == []
        assert len(store.bonuses()) == 1
        assert store.get_participant(alice.id).total_points == 500 + 800

    def test_partial_rerun_awards_newcomers(self, store, alice, bob):
        log_days(store, alice.id, range(5))
        award(store, 0, confirmed=True, today=TODAY)
        log_days(store, bob.id, range(3))
        outcome = award(store, 0, confirmed=True, today=TODAY)
        assert [b.participant_id for b in outcome.records] == [bob.id]

    def test_nothing_eligible(self, store, alice):
        log_days(store, alice.id, [0])
        outcome = award(store, 0, confirmed=True, today=TODAY)
        assert outcome.status == NOTHING_ELIGIBLE
        assert outcome.records == []
        assert store.bonuses() == []

    def test_award_for_past_week(self, store, alice):
        log_days(store, alice.id, [-7, -6, -5, -4, -3, -2, -1])
        outcome = award(store, 1, confirmed=True, today=TODAY)
        assert outcome.records[0].points_earned == 1000
        assert outcome.records[0].week_start_date == week_day(-7)

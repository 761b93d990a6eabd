# src/fitpoints/models/ledger.py

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel
from ..records import utcnow

class ParticipantRow(Base, TimestampedModel):
    __tablename__ = "participants"

    employee_id  = Column(String, nullable=False, default="")
    name         = Column(String, nullable=False)
    team         = Column(String, nullable=False)
    email        = Column(String, nullable=False, default="")
    status       = Column(String(16), nullable=False, default="Active")
    role         = Column(String(16), nullable=False, default="participant")
    # cache of the ledger fold, rebuilt on load
    total_points = Column(Integer, nullable=False, default=0)
    updated_at   = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    activities   = relationship("ActivityRow", back_populates="participant")
    bonuses      = relationship("WeeklyBonusRow", back_populates="participant")


class ActivityRow(Base, TimestampedModel):
    __tablename__ = "activities"

    participant_id   = Column(String(64), ForeignKey("participants.id"), nullable=False, index=True)
    date             = Column(Date, nullable=False, index=True)
    workout_type     = Column(String, nullable=False)
    category_id      = Column(String(64), nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    steps_count      = Column(Integer, nullable=False, default=0)
    points_earned    = Column(Integer, nullable=False)
    activity_details = Column(Text, nullable=False, default="")
    proof_filename   = Column(String, nullable=True)

    participant      = relationship("ParticipantRow", back_populates="activities")


class WeeklyBonusRow(Base, TimestampedModel):
    __tablename__ = "weekly_bonuses"
    __table_args__ = (
        UniqueConstraint("participant_id", "week_start_date", name="uq_weekly_bonus_participant_week"),
    )

    participant_id  = Column(String(64), ForeignKey("participants.id"), nullable=False, index=True)
    week_start_date = Column(Date, nullable=False, index=True)
    week_end_date   = Column(Date, nullable=False)
    days_active     = Column(Integer, nullable=False)
    points_earned   = Column(Integer, nullable=False)

    participant     = relationship("ParticipantRow", back_populates="bonuses")


class CategoryRow(Base, TimestampedModel):
    __tablename__ = "workout_categories"

    name              = Column(String, nullable=False, unique=True)
    points_per_minute = Column(Integer, nullable=False)

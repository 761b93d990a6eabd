# src/fitpoints/rules.py

from dataclasses import dataclass
from typing import Sequence

STEPS_ONLY = "Steps Only"
NO_BONUS_LABEL = "No bonus"

@dataclass(frozen=True)
class WorkoutRule:
    points: int
    min_duration: int
    icon: str = ""

@dataclass(frozen=True)
class StepSlab:
    steps: int
    points: int

@dataclass(frozen=True)
class ConsistencyTier:
    days: int
    points: int
    label: str

# Fixed workout catalog: flat points once the minimum duration is met
WORKOUT_TYPES = {
    "Any Sport":                        WorkoutRule(points=150, min_duration=30, icon="🟢"),
    "Simple Cardio":                    WorkoutRule(points=100, min_duration=15, icon="🟡"),
    "Intense Cardio":                   WorkoutRule(points=180, min_duration=30, icon="🔴"),
    "Bodyweight / Functional Training": WorkoutRule(points=200, min_duration=30, icon="🔵"),
    "Gym Training":                     WorkoutRule(points=200, min_duration=30, icon="🟣"),
    "Yoga / Meditation / Stretching":   WorkoutRule(points=120, min_duration=30, icon="🟢"),
    "Bodyweight Challenge":             WorkoutRule(points=150, min_duration=15, icon="🔥"),
    STEPS_ONLY:                         WorkoutRule(points=0, min_duration=0, icon="👟"),
}

# Highest threshold first
STEP_SLABS = (
    StepSlab(steps=20000, points=500),
    StepSlab(steps=15000, points=300),
    StepSlab(steps=10000, points=150),
    StepSlab(steps=8000, points=80),
)

CONSISTENCY_BONUSES = (
    ConsistencyTier(days=7, points=1000, label="Every day"),
    ConsistencyTier(days=5, points=800, label="5 days/week"),
    ConsistencyTier(days=3, points=500, label="3 days/week"),
)

def step_points(steps: int, slabs: Sequence[StepSlab] = STEP_SLABS) -> int:
    """Flat bonus of the highest slab the step count reaches, else 0."""
    for slab in slabs:
        if steps >= slab.steps:
            return slab.points
    return 0

def consistency_tier(active_days: int, tiers: Sequence[ConsistencyTier] = CONSISTENCY_BONUSES) -> ConsistencyTier:
    """Highest tier whose day threshold is met; a zero tier below the lowest."""
    for tier in tiers:
        if active_days >= tier.days:
            return tier
    return ConsistencyTier(days=0, points=0, label=NO_BONUS_LABEL)

# src/fitpoints/scoring.py

from .catalog import CategoryCatalog, ScoringCatalog, WorkoutCatalog
from .errors import ValidationError
from .rules import STEPS_ONLY, step_points

def whole_number(value, field: str) -> int:
    """Reject negative, boolean and non-integral input instead of clamping it."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be a whole number")
        value = int(value)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    return value

def workout_points(catalog: WorkoutCatalog, workout_type: str, duration_minutes: int) -> int:
    rule = catalog.resolve(workout_type)
    if workout_type == STEPS_ONLY:
        return 0
    if duration_minutes < rule.min_duration:
        return 0
    return rule.points

def score(catalog: ScoringCatalog, selector: str, duration_minutes, steps_count=0) -> int:
    """Points for one submission under the deployment's catalog.

    The workout catalog pays flat points once the minimum duration is met plus
    the step slab bonus. The rate catalog pays points_per_minute * duration and
    ignores steps.
    """
    duration = whole_number(duration_minutes, "Duration")
    steps = whole_number(steps_count or 0, "Steps")

    if isinstance(catalog, WorkoutCatalog):
        return workout_points(catalog, selector, duration) + step_points(steps)

    if isinstance(catalog, CategoryCatalog):
        category = catalog.get(selector)
        return category.points_per_minute * duration

    raise TypeError(f"Unsupported catalog: {type(catalog).__name__}")

# src/fitpoints/catalog.py

import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Union

from .config import settings
from .errors import CategoryNotFoundError, DuplicateCategoryError, ValidationError
from .rules import WORKOUT_TYPES, WorkoutRule
from .utils.logging import setup_logger

logger = setup_logger(__name__, level=settings.log_level)

WORKOUT_CATALOG = "workout_catalog"
CATEGORY_RATE = "category_rate"


@dataclass
class WorkoutCategory:
    id: str
    name: str
    points_per_minute: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class WorkoutCatalog:
    """Fixed table of named workout types with flat points and a minimum duration."""

    mode = WORKOUT_CATALOG

    def __init__(self, rules: Optional[Mapping[str, WorkoutRule]] = None):
        self.rules: Dict[str, WorkoutRule] = dict(WORKOUT_TYPES if rules is None else rules)

    def resolve(self, selector: str) -> WorkoutRule:
        rule = self.rules.get(selector)
        if rule is None:
            raise CategoryNotFoundError(selector)
        return rule

    def names(self) -> List[str]:
        return list(self.rules)

    def label_for(self, category_id: Optional[str], workout_type: str) -> str:
        return workout_type


class CategoryCatalog:
    """User-managed categories, each scored at a points-per-minute rate."""

    mode = CATEGORY_RATE

    def __init__(self):
        self._categories: Dict[str, WorkoutCategory] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _clean(name: Optional[str], points_per_minute) -> None:
        if name is not None and not name.strip():
            raise ValidationError("Please enter a category name")
        if points_per_minute is not None:
            if isinstance(points_per_minute, bool) or not isinstance(points_per_minute, int):
                raise ValidationError("Points per minute must be a whole number")
            if points_per_minute < 1:
                raise ValidationError("Points per minute must be at least 1")

    def _check_unique(self, name: str, exclude_id: Optional[str] = None) -> None:
        for category in self._categories.values():
            if category.id != exclude_id and category.name.lower() == name.lower():
                raise DuplicateCategoryError(name)

    def add(self, name: str, points_per_minute: int, category_id: Optional[str] = None,
            created_at: Optional[datetime] = None) -> WorkoutCategory:
        self._clean(name, points_per_minute)
        name = name.strip()
        with self._lock:
            self._check_unique(name)
            category = WorkoutCategory(
                id=category_id or str(uuid.uuid4()),
                name=name,
                points_per_minute=points_per_minute,
            )
            if created_at is not None:
                category.created_at = created_at
            self._categories[category.id] = category
        logger.info(f"Added category {category.name} at {points_per_minute} pts/min")
        return replace(category)

    def update(self, category_id: str, name: Optional[str] = None,
               points_per_minute: Optional[int] = None) -> WorkoutCategory:
        self._clean(name, points_per_minute)
        with self._lock:
            category = self._categories.get(category_id)
            if category is None:
                raise CategoryNotFoundError(category_id)
            if name is not None:
                self._check_unique(name.strip(), exclude_id=category_id)
                category.name = name.strip()
            if points_per_minute is not None:
                category.points_per_minute = points_per_minute
            logger.info(f"Updated category {category_id}: {category.name} at {category.points_per_minute} pts/min")
            return replace(category)

    def delete(self, category_id: str) -> None:
        with self._lock:
            if self._categories.pop(category_id, None) is None:
                raise CategoryNotFoundError(category_id)
        logger.info(f"Deleted category {category_id}")

    def get(self, category_id: str) -> WorkoutCategory:
        with self._lock:
            category = self._categories.get(category_id)
            if category is None:
                raise CategoryNotFoundError(category_id)
            return replace(category)

    def all(self) -> List[WorkoutCategory]:
        with self._lock:
            return sorted((replace(c) for c in self._categories.values()), key=lambda c: c.name.lower())

    def label_for(self, category_id: Optional[str], workout_type: str) -> str:
        with self._lock:
            category = self._categories.get(category_id) if category_id else None
        return category.name if category else workout_type


ScoringCatalog = Union[WorkoutCatalog, CategoryCatalog]


def build_catalog(mode: Optional[str] = None, categories: Optional[Mapping[str, int]] = None) -> ScoringCatalog:
    """Build the one catalog shape a deployment scores against."""
    mode = mode or settings.scoring_mode
    if mode == WORKOUT_CATALOG:
        if categories:
            logger.warning("Ignoring seeded categories: deployment scores with the workout catalog")
        return WorkoutCatalog()
    if mode == CATEGORY_RATE:
        catalog = CategoryCatalog()
        seed = settings.default_categories if categories is None else categories
        for name, rate in seed.items():
            catalog.add(name, rate)
        return catalog
    raise ValidationError(f"Unknown scoring mode: {mode}")

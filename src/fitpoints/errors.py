"""Exceptions raised by the scoring and ledger engine."""


class ValidationError(ValueError):
    """Input rejected before anything in the ledger changed."""


class CategoryNotFoundError(ValidationError):
    def __init__(self, selector):
        super().__init__(f"Category not found: {selector}")
        self.selector = selector


class DuplicateCategoryError(ValidationError):
    def __init__(self, name):
        super().__init__(f"Category already exists: {name}")
        self.name = name


class CatalogModeError(ValidationError):
    """Operation belongs to the other scoring catalog shape."""


class ParticipantNotFoundError(LookupError):
    def __init__(self, participant_id):
        super().__init__(f"Participant not found: {participant_id}")
        self.participant_id = participant_id


class RecomputeError(RuntimeError):
    """A participant total could not be rebuilt from the ledger."""

    def __init__(self, participant_id, reason):
        super().__init__(f"Failed to recompute points for {participant_id}: {reason}")
        self.participant_id = participant_id

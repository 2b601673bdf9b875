"""Exceptions raised at the boundaries of the analytics toolkit.

The analyzers themselves never raise for missing input; these are
reserved for loading external state and for pattern store I/O.
"""


class NovelFactoryError(Exception):
    """Base class for all novel_factory errors."""

    pass


class NovelStateError(NovelFactoryError):
    """A novel state file could not be read or failed validation."""

    pass


class PatternStoreError(NovelFactoryError):
    """The recurring pattern store failed to read or write."""

    pass


class PatternNotFoundError(PatternStoreError):
    """A status update referenced a pattern id the store does not hold."""

    def __init__(self, pattern_id: str):
        self.pattern_id = pattern_id
        super().__init__(f"Recurring pattern not found: {pattern_id}")

from .cache import ActivePatternsCache
from .detector import RecurringPatternDetector, build_pattern_description
from .store import InMemoryPatternStore, JsonPatternStore, PatternStore

__all__ = [
    "ActivePatternsCache",
    "InMemoryPatternStore",
    "JsonPatternStore",
    "PatternStore",
    "RecurringPatternDetector",
    "build_pattern_description",
]

"""Persistence for recurring issue patterns.

``PatternStore`` is the narrow interface the detector depends on. Any
backend works as long as saving an occurrence increments its pattern's
``occurrence_count`` atomically; the detector re-reads the count after
writing instead of incrementing a local copy.
"""

import json
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..exceptions import PatternNotFoundError, PatternStoreError
from ..models.patterns import PatternOccurrence, RecurringIssuePattern


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def pattern_id_for(issue_type: str, location: str) -> str:
    return f"pattern-{issue_type}-{location}"


class PatternStore(ABC):
    """Storage operations for recurring patterns and their occurrences."""

    @abstractmethod
    def get_or_create_pattern(
        self,
        issue_type: str,
        location: str,
        description: str,
        threshold: int,
        now: Optional[datetime] = None,
    ) -> RecurringIssuePattern:
        """Return the pattern for (issue_type, location), creating it if absent."""

    @abstractmethod
    def save_pattern_occurrence(self, occurrence: PatternOccurrence):
        """Append an occurrence and bump its pattern's count in one step."""

    @abstractmethod
    def save_recurring_pattern(self, pattern: RecurringIssuePattern):
        """Persist pattern metadata. The stored occurrence count is kept."""

    @abstractmethod
    def get_active_recurring_patterns(self) -> List[RecurringIssuePattern]:
        pass

    @abstractmethod
    def get_all_recurring_patterns(self) -> List[RecurringIssuePattern]:
        pass

    @abstractmethod
    def update_pattern_status(self, pattern_id: str, is_active: bool, now: Optional[datetime] = None):
        """Activate or resolve a pattern.

        Raises:
            PatternNotFoundError: If no pattern has this id.
        """


class InMemoryPatternStore(PatternStore):
    """Thread-safe store backed by dictionaries. Returns copies, never live records."""

    def __init__(self):
        self._lock = threading.RLock()
        self._patterns: Dict[str, RecurringIssuePattern] = {}
        self._occurrences: List[PatternOccurrence] = []

    @property
    def occurrences(self) -> List[PatternOccurrence]:
        with self._lock:
            return [o.model_copy() for o in self._occurrences]

    def _commit(self):
        """Hook run after every mutation while the lock is held."""
        pass

    def get_or_create_pattern(self, issue_type, location, description, threshold, now=None):
        with self._lock:
            pattern_id = pattern_id_for(issue_type, location)
            pattern = self._patterns.get(pattern_id)
            if pattern is None:
                now = now or utc_now()
                pattern = RecurringIssuePattern(
                    id=pattern_id,
                    issue_type=issue_type,
                    location=location,
                    pattern_description=description,
                    threshold_count=threshold,
                    first_detected_at=now,
                    last_seen_at=now,
                )
                self._patterns[pattern_id] = pattern
                self._commit()
                logger.debug("Created recurring pattern {}", pattern_id)
            return pattern.model_copy()

    def save_pattern_occurrence(self, occurrence):
        with self._lock:
            pattern = self._patterns.get(occurrence.pattern_id)
            if pattern is None:
                raise PatternNotFoundError(occurrence.pattern_id)
            self._occurrences.append(occurrence.model_copy())
            pattern.occurrence_count += 1
            pattern.last_seen_at = occurrence.detected_at
            pattern.is_active = True
            pattern.resolved_at = None
            self._commit()

    def save_recurring_pattern(self, pattern):
        with self._lock:
            existing = self._patterns.get(pattern.id)
            count = existing.occurrence_count if existing else pattern.occurrence_count
            self._patterns[pattern.id] = pattern.model_copy(update={"occurrence_count": count})
            self._commit()

    def get_active_recurring_patterns(self):
        with self._lock:
            return [p.model_copy() for p in self._patterns.values() if p.is_active]

    def get_all_recurring_patterns(self):
        with self._lock:
            return [p.model_copy() for p in self._patterns.values()]

    def update_pattern_status(self, pattern_id, is_active, now=None):
        with self._lock:
            pattern = self._patterns.get(pattern_id)
            if pattern is None:
                raise PatternNotFoundError(pattern_id)
            pattern.is_active = is_active
            pattern.resolved_at = None if is_active else (now or utc_now())
            self._commit()


class JsonPatternStore(InMemoryPatternStore):
    """In-memory store mirrored to a JSON file after every write."""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()
        self._persisted = self._snapshot()

    def _snapshot(self):
        return (
            {pid: p.model_copy() for pid, p in self._patterns.items()},
            list(self._occurrences),
        )

    def _rollback(self):
        patterns, occurrences = self._persisted
        self._patterns = {pid: p.model_copy() for pid, p in patterns.items()}
        self._occurrences = list(occurrences)

    def _load(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            patterns = [RecurringIssuePattern.model_validate(p) for p in data.get("patterns", [])]
            occurrences = [PatternOccurrence.model_validate(o) for o in data.get("occurrences", [])]
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PatternStoreError(f"Cannot load pattern store {self.path}: {e}") from e

        self._patterns = {p.id: p for p in patterns}
        self._occurrences = occurrences
        logger.debug("Loaded {} patterns from {}", len(patterns), self.path)

    def _commit(self):
        data = {
            "patterns": [p.model_dump(mode="json") for p in self._patterns.values()],
            "occurrences": [o.model_dump(mode="json") for o in self._occurrences],
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            # Memory must keep matching the file after a failed write
            self._rollback()
            raise PatternStoreError(f"Cannot write pattern store {self.path}: {e}") from e
        self._persisted = self._snapshot()

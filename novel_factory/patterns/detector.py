"""Recurring editorial issue detection.

Editorial reviews report issues tagged with a type and a location in the
chapter. The detector groups them by (type, location), records every
issue as an occurrence and reports the patterns whose occurrence count
has reached its threshold. Patterns that stop recurring are resolved by
a staleness sweep.

Pattern tracking supports prompt tuning; it must never break the caller.
Store failures are logged and the detector degrades to cached or empty
results. Explicit status changes requested by the caller are the
exception and re-raise.
"""

import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Union

from loguru import logger
from pydantic import ValidationError

from ..config import PatternConfig
from ..exceptions import PatternStoreError
from ..models.patterns import (
    EditorIssue,
    PatternDetectionResult,
    PatternOccurrence,
    PatternStatistics,
    RecurringIssuePattern,
)
from .cache import ActivePatternsCache
from .store import PatternStore, utc_now

LOCATION_DESCRIPTIONS = {
    "start": "at chapter start",
    "end": "at chapter end",
    "transition": "in transitions",
    "middle": "in middle sections",
}
TYPE_DESCRIPTIONS = {
    "transition": "transition/flow issues",
    "gap": "narrative gaps",
    "continuity": "continuity issues",
    "time_skip": "unexplained time skips",
    "character_consistency": "character consistency issues",
    "plot_hole": "plot holes",
    "grammar": "grammar issues",
    "style": "style inconsistencies",
    "formatting": "formatting issues",
    "paragraph_structure": "paragraph structure issues",
    "sentence_structure": "sentence structure issues",
}

IssueInput = Union[EditorIssue, dict]


def build_pattern_description(issue_type: str, location: str, count: int) -> str:
    type_desc = TYPE_DESCRIPTIONS.get(issue_type, "issues")
    location_desc = LOCATION_DESCRIPTIONS.get(location, "in middle sections")
    return f"{type_desc} {location_desc} ({count} occurrences)"


def _validate(issue: IssueInput) -> Optional[EditorIssue]:
    if isinstance(issue, EditorIssue):
        return issue
    try:
        return EditorIssue.model_validate(issue)
    except ValidationError as e:
        logger.warning("Skipping invalid editor issue {!r}: {} error(s)", issue, e.error_count())
        return None


def _valid_issues(issues: Iterable[IssueInput]) -> List[EditorIssue]:
    return [i for i in (_validate(issue) for issue in issues) if i is not None]


class RecurringPatternDetector:
    """Tracks recurring editorial issues against a pattern store.

    Args:
        store: Pattern persistence backend.
        cache: Active pattern cache. A fresh one is created if omitted.
        clock: Returns the current time; timestamps and staleness use it.
        config: Thresholds and cache TTL.
    """

    def __init__(
        self,
        store: PatternStore,
        cache: Optional[ActivePatternsCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
        config: Optional[PatternConfig] = None,
    ):
        self.config = config or PatternConfig()
        self.store = store
        self.cache = cache or ActivePatternsCache(self.config.cache_ttl_seconds)
        self.clock = clock or utc_now

    def detect_recurring_patterns(
        self,
        issues: Iterable[IssueInput],
        novel_id: str,
        report_id: Optional[str] = None,
    ) -> PatternDetectionResult:
        """Record a batch of issues and report threshold crossings.

        Invalid issues are logged and skipped. A pattern lands in
        ``detected_patterns`` only in the batch that takes its count from
        below the threshold to at or above it; later batches report it in
        ``updated_patterns``.
        """
        groups: Dict[str, List[EditorIssue]] = defaultdict(list)
        for issue in _valid_issues(issues):
            groups[issue.key].append(issue)

        result = PatternDetectionResult()
        for group in groups.values():
            try:
                self._record_group(group, novel_id, report_id, result)
            except PatternStoreError as e:
                logger.error("Pattern tracking failed for {}: {}", group[0].key, e)

        if result.occurrence_count:
            self.cache.invalidate()
        return result

    def _record_group(
        self,
        group: List[EditorIssue],
        novel_id: str,
        report_id: Optional[str],
        result: PatternDetectionResult,
    ):
        first = group[0]
        threshold = self.config.threshold_count
        now = self.clock()
        before = self.store.get_or_create_pattern(
            first.type,
            first.location,
            build_pattern_description(first.type, first.location, len(group)),
            threshold,
            now,
        )

        saved = 0
        for issue in group:
            occurrence = PatternOccurrence(
                id=uuid.uuid4().hex,
                pattern_id=before.id,
                novel_id=novel_id,
                issue_id=issue.id,
                chapter_number=issue.chapter_number,
                chapter_id=issue.chapter_id,
                report_id=report_id,
                detected_at=now,
            )
            try:
                self.store.save_pattern_occurrence(occurrence)
            except PatternStoreError as e:
                logger.error("Failed to save occurrence of {}: {}", before.id, e)
                continue
            saved += 1
            result.occurrence_count += 1

        if not saved:
            return

        # Re-read so the count reflects every writer, not just this batch.
        after = self.store.get_or_create_pattern(
            first.type, first.location, before.pattern_description, threshold, now
        )
        after.pattern_description = build_pattern_description(
            after.issue_type, after.location, after.occurrence_count
        )
        after.last_seen_at = now
        after.is_active = True
        after.resolved_at = None

        if after.above_threshold and not before.above_threshold:
            result.detected_patterns.append(after)
            logger.info(
                "New recurring pattern detected: {} at {} ({} occurrences)",
                after.issue_type, after.location, after.occurrence_count,
            )
        elif after.above_threshold:
            result.updated_patterns.append(after)

        self.store.save_recurring_pattern(after)

    def get_active_patterns(self, force_refresh: bool = False) -> List[RecurringIssuePattern]:
        """Active patterns, served from cache while it is fresh.

        When the store fails, the last cached list is returned even if
        expired, or an empty list if nothing was ever cached.
        """
        if not force_refresh:
            cached = self.cache.get()
            if cached is not None:
                return cached

        try:
            patterns = self.store.get_active_recurring_patterns()
        except PatternStoreError as e:
            logger.error("Error fetching active patterns: {}", e)
            stale = self.cache.stale()
            if stale is not None:
                logger.warning("Using stale cached patterns due to fetch error")
                return stale
            return []

        self.cache.store(patterns)
        return patterns

    def get_all_patterns(self) -> List[RecurringIssuePattern]:
        try:
            return self.store.get_all_recurring_patterns()
        except PatternStoreError as e:
            logger.error("Error fetching all patterns: {}", e)
            return []

    def _set_status(self, pattern_id: str, is_active: bool):
        self.store.update_pattern_status(pattern_id, is_active, self.clock())
        self.cache.invalidate()

    def mark_pattern_resolved(self, pattern_id: str):
        """Resolve a pattern.

        Raises:
            PatternStoreError: If the store rejects the update, including
                ``PatternNotFoundError`` for an unknown id.
        """
        try:
            self._set_status(pattern_id, False)
        except PatternStoreError as e:
            logger.error("Error marking pattern {} as resolved: {}", pattern_id, e)
            raise

    def reactivate_pattern(self, pattern_id: str):
        try:
            self._set_status(pattern_id, True)
        except PatternStoreError as e:
            logger.error("Error reactivating pattern {}: {}", pattern_id, e)
            raise

    def _days_since_seen(self, pattern: RecurringIssuePattern, now: datetime) -> float:
        return (now - pattern.last_seen_at) / timedelta(days=1)

    def _resolve_quietly(self, pattern: RecurringIssuePattern) -> bool:
        try:
            self.mark_pattern_resolved(pattern.id)
        except PatternStoreError:
            return False
        return True

    def auto_resolve_stale_patterns(self) -> int:
        """Resolve active patterns unseen for ``auto_resolution_days``.

        Returns:
            The number of patterns resolved.
        """
        now = self.clock()
        resolved = 0
        for pattern in self.get_all_patterns():
            if not pattern.is_active:
                continue
            days = self._days_since_seen(pattern, now)
            if days < self.config.auto_resolution_days:
                continue
            logger.info(
                "Auto-resolving stale pattern: {} at {} (not seen for {} days)",
                pattern.issue_type, pattern.location, round(days),
            )
            if self._resolve_quietly(pattern):
                resolved += 1

        if resolved:
            logger.info("Auto-resolved {} stale patterns", resolved)
        return resolved

    def check_pattern_resolution(
        self, analyzed_issues: Iterable[IssueInput], chapter_numbers: List[int]
    ) -> int:
        """Resolve active patterns that a clean analysis no longer shows.

        A pattern absent from ``analyzed_issues`` becomes a candidate once it
        has gone unseen for ``clean_chapters_for_resolution`` days (one
        chapter a day), but is only resolved after the full
        ``auto_resolution_days``.

        Returns:
            The number of patterns resolved.
        """
        active = self.get_active_patterns()
        if not active:
            return 0

        found = {issue.key for issue in _valid_issues(analyzed_issues)}
        now = self.clock()
        resolved = 0
        for pattern in active:
            if pattern.key in found:
                continue
            days = self._days_since_seen(pattern, now)
            if days < self.config.clean_chapters_for_resolution:
                continue
            logger.debug(
                "Pattern {} absent from chapters {} and unseen for {} days",
                pattern.key, chapter_numbers, round(days),
            )
            if days >= self.config.auto_resolution_days and self._resolve_quietly(pattern):
                resolved += 1

        if resolved:
            logger.info("Resolved {} patterns absent from recent clean analysis", resolved)
        return resolved

    def get_pattern_statistics(self) -> PatternStatistics:
        patterns = self.get_all_patterns()
        if not patterns:
            return PatternStatistics()

        active = [p for p in patterns if p.is_active]
        types = Counter(p.issue_type for p in patterns)
        locations = Counter(p.location for p in patterns)
        by_age = sorted(patterns, key=lambda p: p.first_detected_at)
        return PatternStatistics(
            total_patterns=len(patterns),
            active_patterns=len(active),
            resolved_patterns=len(patterns) - len(active),
            patterns_above_threshold=sum(1 for p in active if p.above_threshold),
            most_common_type=types.most_common(1)[0][0],
            most_common_location=locations.most_common(1)[0][0],
            oldest_pattern=by_age[0],
            newest_pattern=by_age[-1],
        )

"""Editorial issue and recurring pattern records."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

IssueType = Literal[
    "gap",
    "transition",
    "grammar",
    "continuity",
    "time_skip",
    "character_consistency",
    "plot_hole",
    "style",
    "formatting",
    "paragraph_structure",
    "sentence_structure",
]
IssueLocation = Literal["start", "middle", "end", "transition"]


class EditorIssue(BaseModel):
    """A single problem reported by an editorial review of a chapter."""

    id: str
    type: IssueType
    location: IssueLocation
    chapter_number: int = 0
    chapter_id: Optional[str] = None
    severity: Literal["minor", "major"] = "minor"
    description: str = ""
    suggestion: str = ""
    auto_fixable: bool = False

    @property
    def key(self) -> str:
        return f"{self.type}|{self.location}"


class RecurringIssuePattern(BaseModel):
    """Aggregate record for one (issue type, location) pair.

    ``occurrence_count`` is owned by the store: it only moves when an
    occurrence is saved, never through ``save_recurring_pattern``.
    """

    id: str
    issue_type: IssueType
    location: IssueLocation
    pattern_description: str = ""
    occurrence_count: int = Field(default=0, ge=0)
    threshold_count: int = Field(default=5, gt=0)
    is_active: bool = True
    first_detected_at: datetime
    last_seen_at: datetime
    resolved_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        return f"{self.issue_type}|{self.location}"

    @property
    def above_threshold(self) -> bool:
        return self.occurrence_count >= self.threshold_count


class PatternOccurrence(BaseModel):
    """Append-only link between a pattern and one issue instance."""

    id: str
    pattern_id: str
    novel_id: str
    issue_id: str
    chapter_number: int = 0
    chapter_id: Optional[str] = None
    report_id: Optional[str] = None
    detected_at: datetime


class PatternDetectionResult(BaseModel):
    detected_patterns: List[RecurringIssuePattern] = Field(
        default_factory=list, description="Patterns that crossed the threshold in this batch"
    )
    updated_patterns: List[RecurringIssuePattern] = Field(
        default_factory=list, description="Patterns already above the threshold"
    )
    occurrence_count: int = 0


class PatternStatistics(BaseModel):
    total_patterns: int = 0
    active_patterns: int = 0
    resolved_patterns: int = 0
    patterns_above_threshold: int = 0
    most_common_type: Optional[str] = None
    most_common_location: Optional[str] = None
    oldest_pattern: Optional[RecurringIssuePattern] = None
    newest_pattern: Optional[RecurringIssuePattern] = None

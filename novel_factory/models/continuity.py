"""Continuity tracking models: plot threads, character state, promises,
presence and the plot-thread validation report."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Priority = Literal["high", "medium", "low"]
ThreadType = Literal[
    "meeting",
    "commitment",
    "pursuit",
    "question",
    "conflict",
    "checklist",
    "character_arc",
]


class PlotThread(BaseModel):
    """An unresolved narrative obligation, recomputed on every extraction."""

    id: str
    description: str
    introduced_in_chapter: Optional[int] = None
    status: Literal["active", "resolved", "pending"] = "active"
    thread_type: ThreadType = "conflict"
    priority: Priority = "medium"
    related_arc_id: Optional[str] = None


class CharacterState(BaseModel):
    character_id: str
    character_name: str
    current_location: Optional[str] = None
    emotional_state: Optional[str] = None
    active_goals: List[str] = Field(default_factory=list)
    recent_actions: List[str] = Field(default_factory=list)
    current_situation: Optional[str] = None


class StoryStateSummary(BaseModel):
    character_states: List[CharacterState] = Field(default_factory=list)
    active_plot_threads: List[PlotThread] = Field(default_factory=list)
    current_locations: List[str] = Field(default_factory=list)
    temporal_context: str = "Recent events"
    unresolved_questions: List[str] = Field(default_factory=list)


class PromiseCommitment(BaseModel):
    id: str
    type: Literal["meeting", "promise", "intention", "investigation", "task"]
    description: str
    introduced_in_chapter: int
    introduced_in_chapter_id: str
    status: Literal["pending", "fulfilled", "forgotten"] = "pending"
    chapters_since_introduction: int = 0
    priority: Priority = "medium"
    context: str = Field(default="", description="Text surrounding the promise")
    involved_characters: List[str] = Field(default_factory=list)


class OverduePromise(PromiseCommitment):
    is_overdue: bool = True
    overdue_by_chapters: int = 0


class CharacterPresence(BaseModel):
    character_id: str
    character_name: str
    chapters_appeared: List[int] = Field(default_factory=list)
    last_appearance_chapter: Optional[int] = None
    chapters_since_last_appearance: int = 0
    recent_activity_level: Literal["high", "medium", "low", "none"] = "none"
    was_active_recently: bool = False
    activity_context: Optional[str] = None


class MissingCharacterWarning(BaseModel):
    character_id: str
    character_name: str
    last_appearance_chapter: int
    chapters_since_last_appearance: int
    warning_level: Literal["critical", "warning", "info"]
    message: str
    suggestion: str


class ValidationWarning(BaseModel):
    type: Literal[
        "missing_character",
        "overdue_promise",
        "thread_not_addressed",
        "promise_not_fulfilled",
    ]
    severity: Literal["high", "medium", "low"]
    message: str
    suggestion: str
    context: Optional[str] = None


class ValidationIssue(BaseModel):
    """A blocking continuity error."""

    type: Literal["critical_thread_ignored", "mandatory_character_missing"]
    message: str
    suggestion: str
    context: Optional[str] = None


class PlotThreadValidationResult(BaseModel):
    is_valid: bool
    warnings: List[ValidationWarning] = Field(default_factory=list)
    errors: List[ValidationIssue] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    high_priority_threads_addressed: int = 0
    high_priority_threads_ignored: int = 0


class RelatedEntity(BaseModel):
    type: str
    name: str


class OpenPlotPoint(BaseModel):
    id: str
    type: Literal["question", "promise", "commitment", "conflict", "pursuit", "thread", "mystery"]
    description: str
    introduced_chapter: int
    age: int = Field(description="Chapters since introduction")
    priority: Literal["critical", "high", "medium", "low"]
    urgency: Literal["must address", "should address", "optional"]
    related_entity: Optional[RelatedEntity] = None


class OpenPlotPointsContext(BaseModel):
    high_priority: List[OpenPlotPoint] = Field(default_factory=list)
    medium_priority: List[OpenPlotPoint] = Field(default_factory=list)
    low_priority: List[OpenPlotPoint] = Field(default_factory=list)
    formatted_context: str = ""
    recommendations: List[str] = Field(default_factory=list)

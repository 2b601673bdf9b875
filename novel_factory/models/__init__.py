from .novel import Arc, ArcChecklistItem, Chapter, Character, LogicAudit, NovelState, StoryThread
from .analysis import (
    ContentStructureMetrics,
    HeroJourneyAnalysis,
    HeroJourneyStage,
    ProseQuality,
    ProseQualityAnalysis,
    StoryBeat,
    StoryStructureAnalysis,
    ThreeActStructure,
)
from .continuity import (
    CharacterPresence,
    CharacterState,
    MissingCharacterWarning,
    OpenPlotPoint,
    OpenPlotPointsContext,
    OverduePromise,
    PlotThread,
    PlotThreadValidationResult,
    PromiseCommitment,
    StoryStateSummary,
    ValidationIssue,
    ValidationWarning,
)
from .patterns import (
    EditorIssue,
    PatternDetectionResult,
    PatternOccurrence,
    PatternStatistics,
    RecurringIssuePattern,
)

__all__ = [
    "Arc",
    "ArcChecklistItem",
    "Chapter",
    "Character",
    "LogicAudit",
    "NovelState",
    "StoryThread",
    "ContentStructureMetrics",
    "HeroJourneyAnalysis",
    "HeroJourneyStage",
    "ProseQuality",
    "ProseQualityAnalysis",
    "StoryBeat",
    "StoryStructureAnalysis",
    "ThreeActStructure",
    "CharacterPresence",
    "CharacterState",
    "MissingCharacterWarning",
    "OpenPlotPoint",
    "OpenPlotPointsContext",
    "OverduePromise",
    "PlotThread",
    "PlotThreadValidationResult",
    "PromiseCommitment",
    "StoryStateSummary",
    "ValidationIssue",
    "ValidationWarning",
    "EditorIssue",
    "PatternDetectionResult",
    "PatternOccurrence",
    "PatternStatistics",
    "RecurringIssuePattern",
]

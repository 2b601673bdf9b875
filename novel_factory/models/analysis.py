"""Result models produced by the prose, structure and journey analyzers."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Cadence = Literal["oscillating", "rising", "falling", "stable", "neutral"]
BeatType = Literal[
    "inciting_incident",
    "plot_point_1",
    "midpoint",
    "plot_point_2",
    "climax",
    "resolution",
]
Pace = Literal["slow", "medium", "fast"]


class ProseQuality(BaseModel):
    """Prose metrics for a single chapter."""

    id: str
    novel_id: str = ""
    chapter_id: str
    sentence_variety_score: float = Field(ge=0, le=100)
    average_sentence_length: float = 0.0
    vocabulary_sophistication: float = Field(ge=0, le=100)
    flesch_kincaid_score: float = Field(ge=0, le=100)
    show_tell_balance: float = Field(ge=0, le=100, description="Percentage of 'show' sentences")
    rhythm_score: float = Field(ge=0, le=100)
    cadence_pattern: Cadence = "neutral"
    cliches_detected: List[str] = Field(default_factory=list)
    tropes_detected: List[str] = Field(default_factory=list)
    unique_elements: List[str] = Field(default_factory=list)


class ProseQualityAnalysis(BaseModel):
    prose_qualities: List[ProseQuality] = Field(default_factory=list)
    overall_prose_score: float = 0
    sentence_variety_score: float = 0
    vocabulary_sophistication_score: float = 0
    show_tell_balance_score: float = 0
    rhythm_score: float = 0
    cliches_detected: List[str] = Field(default_factory=list)
    tropes_detected: List[str] = Field(default_factory=list)
    unique_elements: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

    def summary(self) -> str:
        lines = [
            f"Overall prose score: {self.overall_prose_score}/100",
            f"  Sentence variety:  {self.sentence_variety_score}",
            f"  Vocabulary:        {self.vocabulary_sophistication_score}",
            f"  Show/tell balance: {self.show_tell_balance_score}",
            f"  Rhythm:            {self.rhythm_score}",
        ]
        if self.cliches_detected:
            lines.append(f"  Clichés: {', '.join(self.cliches_detected)}")
        return "\n".join(lines)


class StoryBeat(BaseModel):
    id: str
    novel_id: str = ""
    beat_type: BeatType
    chapter_number: int
    chapter_id: str
    description: str
    strength_score: float = Field(ge=0, le=100)
    position_percentage: float = Field(ge=0, le=100)


class Act(BaseModel):
    start_chapter: int = 0
    end_chapter: int = 0
    percentage: float = 0
    beats: List[StoryBeat] = Field(default_factory=list)


class ThreeActStructure(BaseModel):
    act1: Act = Field(default_factory=Act)
    act2: Act = Field(default_factory=Act)
    act3: Act = Field(default_factory=Act)


class NarrativeElements(BaseModel):
    conflict_density: float = Field(default=0, ge=0, le=100)
    character_moments: int = 0
    tension_shifts: int = 0
    scene_transitions: int = 0


class PacingProfile(BaseModel):
    opening_pace: Pace = "medium"
    middle_pace: Pace = "medium"
    ending_pace: Pace = "medium"
    pacing_variety: float = Field(default=0, ge=0, le=100)


class ContentStructureMetrics(BaseModel):
    total_word_count: int = 0
    act1_word_count: int = 0
    act2_word_count: int = 0
    act3_word_count: int = 0
    act1_word_percentage: float = 0
    act2_word_percentage: float = 0
    act3_word_percentage: float = 0
    narrative_elements: NarrativeElements = Field(default_factory=NarrativeElements)
    pacing: PacingProfile = Field(default_factory=PacingProfile)


class StoryStructureAnalysis(BaseModel):
    total_chapters: int = 0
    three_act_structure: ThreeActStructure = Field(default_factory=ThreeActStructure)
    detected_beats: List[StoryBeat] = Field(default_factory=list)
    overall_structure_score: float = Field(default=0, ge=0, le=100)
    recommendations: List[str] = Field(default_factory=list)
    content_metrics: Optional[ContentStructureMetrics] = None

    def summary(self) -> str:
        acts = self.three_act_structure
        lines = [
            f"Structure score: {self.overall_structure_score}/100 ({self.total_chapters} chapters)",
            f"  Act 1: ch {acts.act1.start_chapter}-{acts.act1.end_chapter} ({acts.act1.percentage:.1f}%)",
            f"  Act 2: ch {acts.act2.start_chapter}-{acts.act2.end_chapter} ({acts.act2.percentage:.1f}%)",
            f"  Act 3: ch {acts.act3.start_chapter}-{acts.act3.end_chapter} ({acts.act3.percentage:.1f}%)",
        ]
        for beat in self.detected_beats:
            lines.append(
                f"  {beat.beat_type}: ch {beat.chapter_number} "
                f"at {beat.position_percentage:.1f}% (strength {beat.strength_score})"
            )
        return "\n".join(lines)


class HeroJourneyStage(BaseModel):
    id: str
    novel_id: str = ""
    stage_number: int = Field(ge=1, le=12)
    stage_name: str
    chapter_number: Optional[int] = None
    chapter_id: Optional[str] = None
    character_id: Optional[str] = None
    is_complete: bool = False
    quality_score: float = Field(default=0, ge=0, le=100)
    notes: str = ""


class HeroJourneyAnalysis(BaseModel):
    stages: List[HeroJourneyStage] = Field(default_factory=list)
    completion_percentage: float = Field(default=0, ge=0, le=100)
    missing_stages: List[int] = Field(default_factory=list)
    weak_stages: List[HeroJourneyStage] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    overall_journey_score: float = Field(default=0, ge=0, le=100)

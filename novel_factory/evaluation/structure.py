"""Three-act structure analysis: act boundaries, story beats, content
metrics (word share, narrative elements, pacing) and an overall score."""

import math
from typing import Callable, List, NamedTuple, Optional, Sequence

from loguru import logger

from ..models.analysis import (
    Act,
    ContentStructureMetrics,
    NarrativeElements,
    PacingProfile,
    StoryBeat,
    StoryStructureAnalysis,
    ThreeActStructure,
)
from ..models.novel import Chapter, NovelState
from .metrics import clamp_score, split_words

NO_CHAPTERS_MESSAGE = "No chapters available for analysis"

CONFLICT_WORDS = [
    "fight", "argue", "conflict", "battle", "struggle", "oppose", "clash",
    "confront", "challenge", "resist", "defy", "attack", "defend", "threat",
    "danger", "risk", "enemy", "rival", "antagonist", "obstacle", "problem",
]
CHARACTER_WORDS = [
    "realize", "understand", "feel", "emotion", "thought", "decide",
    "change", "grow", "learn", "remember", "regret", "hope", "fear",
    "love", "hate", "trust", "doubt", "believe", "question", "reflect",
]
TENSION_WORDS = [
    "suddenly", "unexpected", "surprise", "shock", "twist", "reveal",
    "but", "however", "although", "despite", "yet", "instead", "until",
]
SCENE_WORDS = [
    "later", "meanwhile", "elsewhere", "next day", "morning", "evening",
    "arrived", "left", "entered", "walked", "traveled", "returned",
]
ACTION_WORDS = ["run", "fight", "chase", "escape", "rush", "attack", "race"]

REQUIRED_BEATS = ["inciting_incident", "plot_point_1", "midpoint", "plot_point_2", "climax"]
ALL_BEATS = REQUIRED_BEATS + ["resolution"]


def _text(chapter: Chapter) -> str:
    return chapter.full_text.lower()


def _count_terms(text: str, terms: Sequence[str]) -> int:
    return sum(1 for term in terms if term in text)


def _audit_friction(chapter: Chapter) -> str:
    return chapter.logic_audit.the_friction.lower() if chapter.logic_audit else ""


def _audit_result(chapter: Chapter) -> str:
    return chapter.logic_audit.resulting_value.lower() if chapter.logic_audit else ""


def _is_but(chapter: Chapter) -> bool:
    return chapter.logic_audit is not None and chapter.logic_audit.causality_type == "But"


def _is_therefore(chapter: Chapter) -> bool:
    return chapter.logic_audit is not None and chapter.logic_audit.causality_type == "Therefore"


def is_inciting_incident(chapter: Chapter) -> bool:
    friction = _audit_friction(chapter)
    if _is_but(chapter) and ("conflict" in friction or "change" in friction):
        return True
    indicators = [
        "suddenly", "unexpected", "strange", "discovery", "meeting",
        "arrival", "change", "crisis", "begins", "starts", "encounter",
    ]
    return _count_terms(_text(chapter), indicators) >= 2


def is_plot_point_1(chapter: Chapter) -> bool:
    text = _text(chapter)
    indicators = [
        "decide", "choice", "commit", "leave", "enter", "accept",
        "refuse", "agrees", "cannot return", "point of no return",
    ]
    if _is_therefore(chapter) and _count_terms(text, indicators):
        return True
    return _count_terms(text, ["new world", "journey begins", "adventure starts"]) > 0


def is_midpoint(chapter: Chapter) -> bool:
    text = _text(chapter)
    revelations = [
        "reveal", "discover", "truth", "secret", "betrayal",
        "realization", "understand", "learn", "revealed",
    ]
    if chapter.logic_audit is not None and _count_terms(text, revelations):
        return True
    reversals = [
        "seem to win", "appears successful", "momentary victory",
        "seems defeated", "appears to fail", "momentary loss",
    ]
    return _count_terms(text, reversals) > 0


def is_plot_point_2(chapter: Chapter) -> bool:
    indicators = [
        "lowest point", "darkest moment", "all is lost",
        "final confrontation", "prepare for battle", "last chance",
    ]
    if _count_terms(_text(chapter), indicators):
        return True
    friction = _audit_friction(chapter)
    return _is_but(chapter) and any(w in friction for w in ("conflict", "danger", "crisis"))


def is_climax(chapter: Chapter) -> bool:
    indicators = [
        "final battle", "climax", "ultimate", "final confrontation",
        "decisive moment", "final fight", "showdown", "confrontation",
    ]
    if _count_terms(_text(chapter), indicators):
        return True
    result = _audit_result(chapter)
    return any(w in result for w in ("victory", "defeat", "resolve"))


def is_resolution(chapter: Chapter) -> bool:
    indicators = [
        "aftermath", "after", "conclusion", "ending", "finally",
        "resolve", "resolved", "peace", "new beginning", "end",
    ]
    if _count_terms(_text(chapter), indicators):
        return True
    result = _audit_result(chapter)
    return _is_therefore(chapter) and any(w in result for w in ("resolve", "conclude", "peace"))


class BeatRule(NamedTuple):
    beat_type: str
    window: tuple
    ideal: float
    spread: float
    description: str
    detect: Callable[[Chapter], bool]


BEAT_RULES = [
    BeatRule("inciting_incident", (0, 10), 5, 10,
             "The story begins with an event that sets the main plot in motion", is_inciting_incident),
    BeatRule("plot_point_1", (20, 30), 25, 5,
             "First major turning point that propels protagonist into Act 2", is_plot_point_1),
    BeatRule("midpoint", (45, 55), 50, 5,
             "Major revelation or reversal that shifts the story direction", is_midpoint),
    BeatRule("plot_point_2", (70, 80), 75, 5,
             "Second major turning point that propels protagonist into Act 3", is_plot_point_2),
    BeatRule("climax", (85, 95), 90, 5,
             "The ultimate confrontation or final test", is_climax),
    BeatRule("resolution", (90, 100), 95, 5,
             "The aftermath and conclusion of the story", is_resolution),
]


def beat_strength(rule: BeatRule, position: float, chapter: Chapter) -> float:
    """Strength 0-100 from distance to the ideal position, audit and length."""
    distance = abs(position - rule.ideal)
    position_score = max(0, 100 - (distance / rule.spread) * 50)
    score = (50 + position_score) / 2

    if chapter.logic_audit is not None:
        score += 10
    if len(chapter.full_text) > 1000:
        score += 5

    return clamp_score(round(score))


def split_acts(total: int) -> tuple:
    """Chapter ordinals closing acts 1 and 2 for a 25/50/25 split."""
    return math.ceil(total * 0.25), math.ceil(total * 0.75)


def act_proportion_score(actual: float, ideal: float) -> float:
    deviation = abs(actual - ideal)
    if deviation <= 5:
        return 100
    return max(0, 100 - deviation * 2)


def _word_count(chapters: Sequence[Chapter]) -> int:
    return sum(len(split_words(ch.content)) for ch in chapters)


def _pace(chapters: Sequence[Chapter]) -> str:
    if not chapters:
        return "medium"

    avg_words = _word_count(chapters) / len(chapters)
    action_density = sum(_count_terms(ch.content.lower(), ACTION_WORDS) for ch in chapters) / len(chapters)

    if avg_words < 1500 and action_density > 2:
        return "fast"
    if avg_words > 3000 and action_density < 1:
        return "slow"
    return "medium"


class StoryStructureAnalyzer:
    """Analyze a novel against the classic three-act structure.

    Chapters are placed by their ordinal position in number order, so
    identical input always yields identical acts, beats and scores.
    """

    def analyze(self, state: NovelState) -> StoryStructureAnalysis:
        chapters = state.sorted_chapters()
        total = len(chapters)
        if total == 0:
            logger.info("No chapters to analyze for structure")
            return StoryStructureAnalysis(recommendations=[NO_CHAPTERS_MESSAGE])

        logger.info("Analyzing story structure for {} chapters", total)
        act1_end, act2_end = split_acts(total)
        acts = [chapters[:act1_end], chapters[act1_end:act2_end], chapters[act2_end:]]

        structure = ThreeActStructure(
            act1=Act(start_chapter=1, end_chapter=act1_end, percentage=len(acts[0]) / total * 100),
            act2=Act(start_chapter=act1_end + 1, end_chapter=act2_end, percentage=len(acts[1]) / total * 100),
            act3=Act(start_chapter=act2_end + 1, end_chapter=total, percentage=len(acts[2]) / total * 100),
        )

        metrics = self.content_metrics(chapters, acts)
        beats = self.detect_beats(chapters, state.id)

        ordinal = {ch.id: i + 1 for i, ch in enumerate(chapters)}
        for beat in beats:
            position = ordinal[beat.chapter_id]
            if position <= act1_end:
                structure.act1.beats.append(beat)
            elif position <= act2_end:
                structure.act2.beats.append(beat)
            else:
                structure.act3.beats.append(beat)

        score = self.structure_score(structure, beats, metrics, total)
        analysis = StoryStructureAnalysis(
            total_chapters=total,
            three_act_structure=structure,
            detected_beats=beats,
            overall_structure_score=score,
            content_metrics=metrics,
        )
        analysis.recommendations = self._recommendations(analysis)

        logger.info("Structure analysis complete: {} beats, score={}", len(beats), score)
        return analysis

    def detect_beats(self, chapters: Sequence[Chapter], novel_id: str = "") -> List[StoryBeat]:
        total = len(chapters)
        beats = []
        for index, chapter in enumerate(chapters):
            position = (index + 1) / total * 100
            for rule in BEAT_RULES:
                low, high = rule.window
                if low <= position <= high and rule.detect(chapter):
                    logger.debug("Beat {} found in chapter {}", rule.beat_type, chapter.number)
                    beats.append(StoryBeat(
                        id=f"beat-{rule.beat_type}-{chapter.id}",
                        novel_id=novel_id,
                        beat_type=rule.beat_type,
                        chapter_number=chapter.number,
                        chapter_id=chapter.id,
                        description=rule.description,
                        strength_score=beat_strength(rule, position, chapter),
                        position_percentage=position,
                    ))
        return beats

    def content_metrics(
        self, chapters: Sequence[Chapter], acts: Sequence[Sequence[Chapter]]
    ) -> ContentStructureMetrics:
        counts = [_word_count(act) for act in acts]
        total_words = sum(counts)

        def share(n: int) -> float:
            return n / total_words * 100 if total_words > 0 else 0

        conflict = character = tension = scene = 0
        for chapter in chapters:
            text = chapter.content.lower()
            conflict += _count_terms(text, CONFLICT_WORDS)
            character += _count_terms(text, CHARACTER_WORDS)
            tension += _count_terms(text, TENSION_WORDS)
            scene += _count_terms(text, SCENE_WORDS)

        density = min(100, conflict / (total_words / 1000) * 10) if total_words > 0 else 0

        paces = [_pace(act) for act in acts]
        variety = {3: 100, 2: 60}.get(len(set(paces)), 30)

        return ContentStructureMetrics(
            total_word_count=total_words,
            act1_word_count=counts[0],
            act2_word_count=counts[1],
            act3_word_count=counts[2],
            act1_word_percentage=share(counts[0]),
            act2_word_percentage=share(counts[1]),
            act3_word_percentage=share(counts[2]),
            narrative_elements=NarrativeElements(
                conflict_density=round(density),
                character_moments=character,
                tension_shifts=tension,
                scene_transitions=scene,
            ),
            pacing=PacingProfile(
                opening_pace=paces[0],
                middle_pace=paces[1],
                ending_pace=paces[2],
                pacing_variety=variety,
            ),
        )

    @staticmethod
    def _act_percentages(structure: ThreeActStructure, metrics: ContentStructureMetrics) -> List[float]:
        if metrics.total_word_count > 0:
            return [metrics.act1_word_percentage, metrics.act2_word_percentage, metrics.act3_word_percentage]
        return [structure.act1.percentage, structure.act2.percentage, structure.act3.percentage]

    def structure_score(
        self,
        structure: ThreeActStructure,
        beats: Sequence[StoryBeat],
        metrics: ContentStructureMetrics,
        total_chapters: int,
    ) -> float:
        """Equal-weighted blend of act proportions, beats, narrative
        elements and chapter length."""
        percents = self._act_percentages(structure, metrics)
        proportion = sum(
            act_proportion_score(p, ideal) for p, ideal in zip(percents, (25, 50, 25))
        ) / 3

        found = {b.beat_type for b in beats}
        coverage = sum(1 for b in REQUIRED_BEATS if b in found) / len(REQUIRED_BEATS) * 100
        strength = sum(b.strength_score for b in beats) / len(beats) if beats else 50
        beat_score = coverage * 0.6 + strength * 0.4

        elements = metrics.narrative_elements
        density = elements.conflict_density
        if 40 <= density <= 70:
            conflict_score = 100
        elif density < 40:
            conflict_score = density / 40 * 100
        else:
            conflict_score = max(0, 100 - (density - 70) * 2)
        narrative = (
            conflict_score
            + min(100, elements.character_moments / 50 * 100)
            + min(100, elements.tension_shifts / 30 * 100)
            + metrics.pacing.pacing_variety
        ) / 4

        avg_words = metrics.total_word_count / max(1, total_chapters)
        if 1500 <= avg_words <= 4000:
            length_score = 100
        elif avg_words < 1500:
            length_score = avg_words / 1500 * 100
        else:
            length_score = max(50, 100 - (avg_words - 4000) / 100)

        score = (proportion + beat_score + narrative + length_score) * 0.25
        return clamp_score(round(score))

    def _recommendations(self, analysis: StoryStructureAnalysis) -> List[str]:
        recs: List[str] = []
        metrics = analysis.content_metrics
        act1, act2, act3 = self._act_percentages(analysis.three_act_structure, metrics)

        if act1 < 20:
            recs.append(f"Act 1 is shorter than ideal ({act1:.1f}% vs 25% by word count). Consider adding more character introduction and world-building.")
        elif act1 > 30:
            recs.append(f"Act 1 is longer than ideal ({act1:.1f}% vs 25% by word count). Consider tightening the opening or moving content to Act 2.")

        if act2 < 45:
            recs.append(f"Act 2 is shorter than ideal ({act2:.1f}% vs 50% by word count). Consider adding more rising action and complications.")
        elif act2 > 60:
            recs.append(f"Act 2 is longer than ideal ({act2:.1f}% vs 50% by word count). Consider condensing the middle or removing filler.")

        if act3 < 20:
            recs.append(f"Act 3 is shorter than ideal ({act3:.1f}% vs 25% by word count). Consider expanding the climax or resolution.")
        elif act3 > 30:
            recs.append(f"Act 3 is longer than ideal ({act3:.1f}% vs 25% by word count). Consider tightening the ending.")

        found = {b.beat_type for b in analysis.detected_beats}
        for beat_type in ALL_BEATS:
            if beat_type not in found:
                recs.append(f"Missing beat: {beat_type.replace('_', ' ')}. Consider adding this story element.")

        elements = metrics.narrative_elements
        pacing = metrics.pacing
        if elements.conflict_density < 30:
            recs.append(f"Low conflict density ({elements.conflict_density:.0f}/100). Add more obstacles, challenges, or tension.")
        elif elements.conflict_density > 80:
            recs.append(f"Very high conflict density ({elements.conflict_density:.0f}/100). Consider adding quieter moments for contrast.")

        if elements.character_moments < 15:
            recs.append("Limited character development moments. Add more introspection, emotional reactions, and growth.")
        if pacing.pacing_variety < 50:
            recs.append("Pacing is too uniform. Vary the pace between acts for better rhythm.")
        if pacing.opening_pace == "slow" and pacing.ending_pace == "slow":
            recs.append("Both opening and ending are slow-paced. Consider energizing at least one.")

        avg_words = metrics.total_word_count / max(1, analysis.total_chapters)
        if avg_words < 1000:
            recs.append(f"Chapters are quite short (avg {round(avg_words)} words). Consider expanding key scenes.")

        score = analysis.overall_structure_score
        if score < 40:
            recs.append("Structure needs significant work. Focus on establishing clear act boundaries and key story beats.")
        elif score < 60:
            recs.append("Structure is developing. Review act proportions and ensure key beats are clearly defined.")
        elif score < 80:
            recs.append("Good structure foundation. Fine-tune proportions and strengthen weaker beats.")
        else:
            recs.append("Strong structure! The story follows proven narrative patterns effectively.")

        return recs


def analyze_story_structure(state: NovelState) -> StoryStructureAnalysis:
    return StoryStructureAnalyzer().analyze(state)

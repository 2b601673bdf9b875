"""Hero's Journey tracking.

Maps Campbell's twelve-stage monomyth onto a novel's chapters. Each stage
has an expected window (a share of the story) and a keyword detector; the
first chapter inside the window that the detector accepts becomes the
stage. First-match-wins keeps results reproducible, but foreshadowing
language early in a window can claim a stage before the real event.
"""

import math
from typing import Callable, List, NamedTuple, Optional, Sequence

from loguru import logger

from ..models.analysis import HeroJourneyAnalysis, HeroJourneyStage
from ..models.novel import Chapter, Character, NovelState
from .detectors import Detector, KeywordDetector
from .metrics import clamp_score

NO_PROTAGONIST_MESSAGE = "No protagonist found. The Hero's Journey requires a main character."


class StageInfo(NamedTuple):
    number: int
    name: str
    description: str
    expected_position: float
    window: Callable[[int], range]
    detector: Optional[Detector]


def _span(start: float, end: float) -> Callable[[int], range]:
    return lambda n: range(math.ceil(n * start), min(math.ceil(n * end) + 1, n))


def _early(extra: int) -> Callable[[int], range]:
    return lambda n: range(1, min(math.ceil(n * 0.1) + extra, n))


HERO_JOURNEY_STAGES = [
    StageInfo(1, "Ordinary World", "The hero's normal life before the adventure", 2,
              lambda n: range(0, min(1, n)), None),
    StageInfo(2, "Call to Adventure", "The hero receives a challenge or quest", 8,
              _early(1), KeywordDetector([
                  "call", "quest", "mission", "invitation", "summons",
                  "challenge", "adventure", "journey begins", "must go"])),
    StageInfo(3, "Refusal of Call", "The hero hesitates or refuses the call", 10,
              _early(3), KeywordDetector([
                  "refuse", "hesitate", "decline", "doubt", "uncertain",
                  "not ready", "cannot", "unwilling", "afraid to"])),
    StageInfo(4, "Meeting the Mentor", "The hero meets a guide or teacher", 15,
              _span(0.1, 0.25), KeywordDetector([
                  "mentor", "teacher", "master", "guide", "elder",
                  "wise", "instructor", "training", "learn from"])),
    StageInfo(5, "Crossing the Threshold", "The hero leaves the ordinary world", 25,
              _span(0.2, 0.3), KeywordDetector([
                  "leaves", "enters", "new world", "unknown", "beyond",
                  "cross", "threshold", "point of no return", "journey begins"])),
    StageInfo(6, "Tests, Allies, and Enemies", "The hero faces challenges and meets companions", 37,
              _span(0.25, 0.5), KeywordDetector([
                  "test", "challenge", "trial", "obstacle", "ally", "friend", "companion",
                  "partner", "team", "enemy", "foe", "opponent", "antagonist"])),
    StageInfo(7, "Approach to the Inmost Cave", "The hero approaches the greatest challenge", 50,
              _span(0.45, 0.55), KeywordDetector([
                  "approaching", "nearing", "final challenge", "greatest danger",
                  "innermost", "deepest", "ultimate test", "prepare for battle"])),
    StageInfo(8, "Ordeal", "The hero faces the greatest fear or challenge", 50,
              _span(0.45, 0.55), KeywordDetector([
                  "ordeal", "greatest fear", "darkest moment", "all is lost",
                  "final test", "ultimate challenge", "life or death"])),
    StageInfo(9, "Reward (Seizing the Sword)", "The hero gains something valuable", 55,
              _span(0.5, 0.6), KeywordDetector([
                  "reward", "gain", "achieve", "obtain", "treasure",
                  "power", "knowledge", "victory", "elixir", "sword"])),
    StageInfo(10, "The Road Back", "The hero begins the journey home", 75,
              _span(0.7, 0.8), KeywordDetector([
                  "return", "journey home", "back", "going back",
                  "heading back", "retreat", "withdraw"])),
    StageInfo(11, "Resurrection", "The hero faces a final test", 87,
              _span(0.85, 0.9), KeywordDetector([
                  "resurrect", "reborn", "transformed", "final test",
                  "last challenge", "rise again", "final battle"])),
    StageInfo(12, "Return with the Elixir", "The hero returns changed with a gift", 95,
              lambda n: range(math.ceil(n * 0.9), n), KeywordDetector([
                  "return", "home", "changed", "gift", "elixir",
                  "wisdom", "power", "blessing", "transformation"])),
]

_STAGES_BY_NUMBER = {stage.number: stage for stage in HERO_JOURNEY_STAGES}


def get_hero_journey_stage_info(stage_number: int) -> Optional[StageInfo]:
    return _STAGES_BY_NUMBER.get(stage_number)


def get_all_hero_journey_stages() -> List[StageInfo]:
    return list(HERO_JOURNEY_STAGES)


def stage_quality(chapter: Chapter, position: float, stage: StageInfo) -> float:
    """Quality 0-100 for a stage placed at ``position`` percent of the story."""
    score = 50.0
    distance = abs(position - stage.expected_position)
    if distance <= 10:
        score += 30
    elif distance <= 20:
        score += 20
    else:
        score += max(0, 10 - (distance - 20) / 2)

    if chapter.logic_audit is not None:
        score += 10
    if len(chapter.content) > 1000:
        score += 10

    return clamp_score(round(score))


def detect_hero_journey_stages(
    chapters: Sequence[Chapter], protagonist: Character, novel_id: str = ""
) -> List[HeroJourneyStage]:
    """Scan each stage window in chapter order and keep the first match."""
    total = len(chapters)
    stages = []
    for stage in HERO_JOURNEY_STAGES:
        for index in stage.window(total):
            chapter = chapters[index]
            if stage.detector is not None and not stage.detector.matches(chapter.full_text):
                continue

            position = (index + 1) / total * 100
            stages.append(HeroJourneyStage(
                id=f"journey-{stage.number}-{chapter.id}",
                novel_id=novel_id,
                stage_number=stage.number,
                stage_name=stage.name,
                chapter_number=chapter.number,
                chapter_id=chapter.id,
                character_id=protagonist.id,
                is_complete=True,
                quality_score=stage_quality(chapter, position, stage),
                notes=f"Detected in chapter {chapter.number}",
            ))
            logger.debug("Stage {} ({}) found in chapter {}", stage.number, stage.name, chapter.number)
            break
    return stages


def _recommendations(
    stages: Sequence[HeroJourneyStage],
    missing: Sequence[int],
    weak: Sequence[HeroJourneyStage],
    completion: float,
) -> List[str]:
    recs = []
    if completion < 50:
        recs.append(
            f"Only {completion:.0f}% of hero's journey stages detected. Consider adding missing stages."
        )
    if missing:
        names = ", ".join(_STAGES_BY_NUMBER[n].name for n in missing)
        recs.append(f"Missing stages: {names}. Consider incorporating these elements.")
    if weak:
        names = ", ".join(s.stage_name for s in weak)
        recs.append(f"Weak stages detected: {names}. Consider strengthening these moments.")
    if completion >= 80 and all(s.quality_score >= 70 for s in stages):
        recs.append("Excellent hero's journey structure! The story follows the classic pattern well.")
    return recs


def analyze_hero_journey(state: NovelState) -> HeroJourneyAnalysis:
    """Detect monomyth stages for the novel's protagonist.

    A novel without a protagonist yields an empty journey with every
    stage listed as missing.
    """
    protagonist = state.protagonist()
    if protagonist is None:
        logger.info("No protagonist; skipping hero's journey detection")
        return HeroJourneyAnalysis(
            missing_stages=[s.number for s in HERO_JOURNEY_STAGES],
            recommendations=[NO_PROTAGONIST_MESSAGE],
        )

    chapters = state.sorted_chapters()
    logger.info("Tracking hero's journey for {} across {} chapters", protagonist.name, len(chapters))
    stages = detect_hero_journey_stages(chapters, protagonist, state.id)

    completed = [s for s in stages if s.is_complete]
    completion = len(completed) / len(HERO_JOURNEY_STAGES) * 100
    found = {s.stage_number for s in stages}
    missing = [s.number for s in HERO_JOURNEY_STAGES if s.number not in found]
    weak = [s for s in stages if s.quality_score < 50]

    if stages:
        mean_quality = sum(s.quality_score for s in stages) / len(stages)
        score = round(mean_quality * 0.7 + completion * 0.3)
    else:
        score = 0

    logger.info("Hero's journey: {}/12 stages, score={}", len(stages), score)
    return HeroJourneyAnalysis(
        stages=stages,
        completion_percentage=completion,
        missing_stages=missing,
        weak_stages=weak,
        recommendations=_recommendations(stages, missing, weak, completion),
        overall_journey_score=clamp_score(score),
    )

"""Open plot point inventory.

Gathers every storyline the novel has not resolved yet, from extracted
plot threads, the writer's tracked story threads, recent unanswered
questions and unfinished arc checklist items, and ranks them for the
next chapter's prompt.
"""

import re
from typing import List, Optional

from loguru import logger

from ..config import ContinuityConfig
from ..models.continuity import OpenPlotPoint, OpenPlotPointsContext, RelatedEntity
from ..models.novel import NovelState
from .story_state import extract_active_plot_threads

THREAD_TYPE_MAP = {
    "question": "question",
    "commitment": "commitment",
    "conflict": "conflict",
    "pursuit": "pursuit",
    "meeting": "promise",
}
STORY_THREAD_TYPE_MAP = {
    "promise": "promise",
    "mystery": "mystery",
    "conflict": "conflict",
    "quest": "pursuit",
}

_QUESTION_RE = re.compile(r"[^.!?]*\?")
_URGENCY_ORDER = {"must address": 3, "should address": 2, "optional": 1}


def _by_urgency(points: List[OpenPlotPoint]) -> List[OpenPlotPoint]:
    return sorted(points, key=lambda p: (-_URGENCY_ORDER[p.urgency], -p.age))


def _collect(state: NovelState, config: ContinuityConfig) -> List[OpenPlotPoint]:
    chapters = state.sorted_chapters()
    current = chapters[-1].number if chapters else 0
    points: List[OpenPlotPoint] = []

    threads = extract_active_plot_threads(
        chapters, state.plot_ledger, state.character_codex, config
    )
    for thread in threads:
        # Checklist items are listed with their arc below.
        if thread.thread_type == "checklist":
            continue
        introduced = thread.introduced_in_chapter or 1
        age = current - introduced
        points.append(OpenPlotPoint(
            id=thread.id,
            type=THREAD_TYPE_MAP.get(thread.thread_type, "thread"),
            description=thread.description,
            introduced_chapter=introduced,
            age=age,
            priority=thread.priority,
            urgency="should address" if thread.priority == "high" or age > 10 else "optional",
        ))

    for story_thread in state.story_threads:
        if story_thread.status not in ("active", "paused"):
            continue
        age = current - story_thread.introduced_chapter
        if story_thread.priority == "critical":
            urgency = "must address"
        elif story_thread.priority == "high" or age > 15:
            urgency = "should address"
        else:
            urgency = "optional"
        related = None
        if story_thread.related_entity_id and story_thread.related_entity_type:
            related = RelatedEntity(
                type=story_thread.related_entity_type,
                name=f"Entity {story_thread.related_entity_id[:8]}",
            )
        points.append(OpenPlotPoint(
            id=story_thread.id,
            type=STORY_THREAD_TYPE_MAP.get(story_thread.type, "thread"),
            description=story_thread.description or story_thread.title,
            introduced_chapter=story_thread.introduced_chapter,
            age=age,
            priority=story_thread.priority,
            urgency=urgency,
            related_entity=related,
        ))

    for chapter in chapters[-10:]:
        for index, match in enumerate(_QUESTION_RE.findall(chapter.content)[:3]):
            question = match.strip()
            if not 10 < len(question) < 200:
                continue
            age = current - chapter.number
            points.append(OpenPlotPoint(
                id=f"open-question-{chapter.id}-{index}",
                type="question",
                description=question,
                introduced_chapter=chapter.number,
                age=age,
                priority="medium" if age > 5 else "low",
                urgency="should address" if age > 10 else "optional",
            ))

    for arc in state.plot_ledger:
        if arc.status != "active":
            continue
        for item in arc.checklist:
            if item.completed:
                continue
            introduced = item.source_chapter_number or arc.started_at_chapter or 1
            age = current - introduced
            points.append(OpenPlotPoint(
                id=f"checklist-{arc.id}-{item.id}",
                type="commitment",
                description=item.label,
                introduced_chapter=introduced,
                age=age,
                priority="high",
                urgency="should address" if age > 3 else "optional",
                related_entity=RelatedEntity(type="arc", name=arc.title),
            ))

    return points


def _recommendations(points: List[OpenPlotPoint], high_count: int) -> List[str]:
    recommendations = []
    must = sum(1 for p in points if p.urgency == "must address")
    should = sum(1 for p in points if p.urgency == "should address")
    old = sum(1 for p in points if p.age > 15)

    if must:
        recommendations.append(
            f"Address at least {min(must, 2)} critical/high-priority plot points this chapter"
        )
    if should:
        recommendations.append(f"Consider addressing {min(should, 3)} medium-priority plot points")
    if high_count > 5:
        recommendations.append(
            f"Warning: {high_count} high-priority plot points pending - consider resolving some soon"
        )
    if old:
        recommendations.append(f"{old} plot points are over 15 chapters old - review for resolution")
    return recommendations


def _format(
    high: List[OpenPlotPoint],
    medium: List[OpenPlotPoint],
    low: List[OpenPlotPoint],
    recommendations: List[str],
) -> str:
    sections = ["[OPEN PLOT POINTS - Unresolved Storylines]", ""]

    if high:
        sections.append("HIGH PRIORITY:")
        for i, point in enumerate(high[:8], 1):
            sections.append(f"{i}. [{point.type.upper()}] {point.description[:200]}")
            sections.append(f"   - Introduced: Ch {point.introduced_chapter}, {point.age} chapters ago")
            sections.append(f"   - Urgency: {point.urgency.upper()}")
            if point.related_entity:
                sections.append(
                    f"   - Related to: {point.related_entity.type} - {point.related_entity.name}"
                )
            sections.append("")

    if medium:
        sections.append("MEDIUM PRIORITY:")
        for i, point in enumerate(medium[:5], 1):
            sections.append(
                f"{i}. [{point.type.upper()}] {point.description[:150]} "
                f"(Ch {point.introduced_chapter}, {point.age} chapters ago)"
            )
        sections.append("")

    # A long tail of low-priority points is noise in a prompt.
    if low and len(low) <= 5:
        sections.append("LOW PRIORITY:")
        for i, point in enumerate(low[:3], 1):
            sections.append(
                f"{i}. [{point.type.upper()}] {point.description[:100]} (Ch {point.introduced_chapter})"
            )
        sections.append("")

    if recommendations:
        sections.append("RECOMMENDATIONS:")
        sections.extend(f"- {rec}" for rec in recommendations)
        sections.append("")

    if not (high or medium or low):
        sections.append("No open plot points detected.")

    return "\n".join(sections)


def get_open_plot_points(
    state: NovelState, config: Optional[ContinuityConfig] = None
) -> OpenPlotPointsContext:
    """Rank every unresolved storyline and render it for a prompt.

    Points are bucketed by priority (critical joins high) and ordered by
    urgency then age. Each bucket in the result holds at most ten points.
    """
    config = config or ContinuityConfig()
    points = _collect(state, config)

    high = _by_urgency([p for p in points if p.priority in ("critical", "high")])
    medium = _by_urgency([p for p in points if p.priority == "medium"])
    low = _by_urgency([p for p in points if p.priority == "low"])
    recommendations = _recommendations(points, len(high))

    logger.debug(
        "Open plot points: {} high, {} medium, {} low", len(high), len(medium), len(low)
    )
    return OpenPlotPointsContext(
        high_priority=high[:10],
        medium_priority=medium[:10],
        low_priority=low[:10],
        formatted_context=_format(high, medium, low, recommendations),
        recommendations=recommendations,
    )

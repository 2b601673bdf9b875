"""Story state extraction for chapter generation prompts.

Collects what the story currently owes the reader: open plot threads
(active arcs, unfinished checklist items, questions, conflicts, meetings,
commitments, pursuits, lapsed character arcs) and where each character
stands (location, mood, recent actions, situation, goals).
"""

import re
from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..config import ContinuityConfig
from ..evaluation.metrics import split_fragments
from ..models.continuity import CharacterState, PlotThread, StoryStateSummary
from ..models.novel import Arc, Chapter, Character, NovelState
from .text import context_around, lowered_text, mentions, mentions_any, near_keyword

QUESTION_PATTERNS = [
    re.compile(r"what (will|should|might|could) (happen|occur|take place)", re.IGNORECASE),
    re.compile(r"how (will|should|can|might) (.*?)(\?|\.)", re.IGNORECASE),
    re.compile(r"why (did|does|will|should)", re.IGNORECASE),
    re.compile(r"(who|where|when) (will|should|might|could)", re.IGNORECASE),
]

MEETING_PATTERNS = [
    re.compile(r"\b(we'll|we will|they'll|they will|he'll|he will|she'll|she will|i'll|i will)\s+(meet|gather|come together|reconvene|assemble|convene)", re.IGNORECASE),
    re.compile(r"\b(set up|arranged|scheduled|planned|agreed to)\s+(a |an |the )?(meeting|gathering|appointment|rendezvous|conference)", re.IGNORECASE),
    re.compile(r"\b(meet|meeting|gathering|appointment)\s+(at|in|with|tomorrow|later|soon|next)", re.IGNORECASE),
    re.compile(r"\b(promised|agreed|vowed|swore|committed)\s+(to\s+)?(meet|gather|see|visit)", re.IGNORECASE),
]

COMMITMENT_PATTERNS = [
    re.compile(r"\b(will|shall|going to|planning to|intend to|promised to|agreed to|vowed to|swore to)\s+(investigate|find out|discover|learn|explore|check|examine|look into|figure out|determine)", re.IGNORECASE),
    re.compile(r"\b(promised|agreed|vowed|committed|swore)\s+(to\s+)?(investigate|find|discover|help|assist|support|protect|defend|do)", re.IGNORECASE),
    re.compile(r"\b(commitment|promise|vow|oath|pledge)\s+(to\s+)?(investigate|find|discover|help|do)", re.IGNORECASE),
]

PURSUIT_PATTERNS = [
    re.compile(r"\b(following|following around|trying to get|trying to find|trying to discover|attempting to|seeking to|pursuing|tracking|hunting|stalking)", re.IGNORECASE),
    re.compile(r"\b(wanted to see|needs to see|must see|should meet|needs to meet|must meet)", re.IGNORECASE),
    re.compile(r"\b(after|pursuing|chasing|tracking|investigating)\s+(him|her|them|the\s+main\s+character|the\s+protagonist)", re.IGNORECASE),
]

UNRESOLVED_MARKERS = ["however", "but", "yet", "still", "unresolved", "pending", "uncertain"]
ARC_ACTIVITY_KEYWORDS = ["active", "pursuing", "following", "investigating", "trying", "wanted", "needed"]

LOCATION_KEYWORDS = [
    "in", "at", "within", "inside", "outside", "near", "beside",
    "realm", "sect", "palace", "temple", "forest", "mountain", "city", "village",
]
PLACE_NOUNS = ["realm", "sect", "palace", "temple", "forest", "mountain", "city", "village", "territory"]

EMOTIONS: Dict[str, List[str]] = {
    "angry": ["angry", "furious", "rage", "enraged", "fuming"],
    "happy": ["happy", "joy", "pleased", "delighted", "elated"],
    "sad": ["sad", "depressed", "melancholy", "grief", "sorrow"],
    "anxious": ["anxious", "worried", "nervous", "fearful", "concerned"],
    "determined": ["determined", "resolved", "focused", "committed"],
    "confused": ["confused", "uncertain", "puzzled", "bewildered"],
}

ACTION_VERBS = [
    "went", "did", "said", "thought", "decided", "moved", "fought",
    "trained", "cultivated", "met", "left", "arrived", "discovered",
]
GOAL_KEYWORDS = ["goal", "plan", "need", "must", "will", "intend", "want"]

TIME_MARKERS = [
    ("Immediate aftermath", ["immediately", "now", "at once", "instantly"]),
    ("Shortly after recent events", ["soon", "shortly", "moment", "brief"]),
    ("Some time after recent events", ["later", "after", "then", "subsequently"]),
]

_QUESTION_RE = re.compile(r"[^.!?]*\?")
_PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}


def _strip(word: str) -> str:
    return re.sub(r"[^\w']", "", word).lower()


def _pattern_threads(
    chapter: Chapter,
    patterns: Sequence[re.Pattern],
    kind: str,
    label: str,
    radius: int,
    status: str,
) -> List[PlotThread]:
    content = chapter.content
    threads = []
    for pattern in patterns:
        for match in list(pattern.finditer(content))[:2]:
            context = context_around(content, match.start(), match.end(), radius)
            threads.append(PlotThread(
                id=f"{kind}-{chapter.id}-{len(threads)}",
                description=f"{label}: {context[:150]}",
                introduced_in_chapter=chapter.number,
                status=status,
                priority="high",
                thread_type=kind,
            ))
    return threads


def _chapter_threads(chapter: Chapter) -> List[PlotThread]:
    threads: List[PlotThread] = []

    questions = []
    for pattern in QUESTION_PATTERNS:
        for match in list(pattern.finditer(chapter.content))[:2]:
            questions.append(PlotThread(
                id=f"question-{chapter.id}-{len(questions)}",
                description=match.group(0).strip(),
                introduced_in_chapter=chapter.number,
                status="active",
                priority="medium",
                thread_type="question",
            ))
    threads.extend(questions)

    audit = chapter.logic_audit
    if audit is not None and audit.causality_type == "But" and audit.resulting_value:
        if mentions_any(audit.resulting_value, UNRESOLVED_MARKERS):
            threads.append(PlotThread(
                id=f"conflict-{chapter.id}",
                description=audit.resulting_value,
                introduced_in_chapter=chapter.number,
                status="active",
                priority="medium",
                thread_type="conflict",
            ))

    threads.extend(_pattern_threads(chapter, MEETING_PATTERNS, "meeting", "Meeting/arrangement", 30, "pending"))
    threads.extend(_pattern_threads(chapter, COMMITMENT_PATTERNS, "commitment", "Character commitment", 40, "pending"))
    threads.extend(_pattern_threads(chapter, PURSUIT_PATTERNS, "pursuit", "Character pursuit/tracking", 40, "active"))
    return threads


def _character_arc_threads(chapters: Sequence[Chapter], characters: Sequence[Character]) -> List[PlotThread]:
    last_number = chapters[-1].number
    recent = chapters[-6:]
    threads = []
    for character in characters:
        appearances = [ch.number for ch in chapters if mentions(ch, character.name)]
        if not appearances:
            continue

        last_seen = max(appearances)
        since = last_number - last_seen
        if not 2 <= since <= 5:
            continue

        active = any(
            mentions(ch, character.name)
            and near_keyword(ch.full_text, character.name, ARC_ACTIVITY_KEYWORDS)
            for ch in recent
        )
        if active:
            threads.append(PlotThread(
                id=f"character-arc-{character.id}",
                description=(
                    f'Character "{character.name}" was active {since} chapter(s) ago '
                    "but hasn't appeared since. Follow up on their storyline."
                ),
                introduced_in_chapter=last_seen,
                status="active",
                priority="medium",
                thread_type="character_arc",
            ))
    return threads


def extract_active_plot_threads(
    chapters: Sequence[Chapter],
    arcs: Sequence[Arc],
    characters: Optional[Sequence[Character]] = None,
    config: Optional[ContinuityConfig] = None,
) -> List[PlotThread]:
    """Collect unresolved plot threads, highest priority first.

    Arcs are the single source of truth for checklist commitments; this
    function only projects them into threads and never mutates them.

    Args:
        chapters: Chapters in any order; they are sorted by number.
        arcs: Plot ledger arcs.
        characters: Optional codex used to detect lapsed character arcs.
        config: Window and limit settings.

    Returns:
        Threads deduplicated by id, sorted by priority then introduction
        chapter, capped at ``config.max_plot_threads``.
    """
    config = config or ContinuityConfig()
    chapters = sorted(chapters, key=lambda c: c.number)
    threads: List[PlotThread] = []

    for arc in arcs:
        if arc.status != "active":
            continue
        threads.append(PlotThread(
            id=f"arc-{arc.id}",
            description=arc.description,
            introduced_in_chapter=arc.started_at_chapter,
            status="active",
            priority="medium",
            thread_type="conflict",
            related_arc_id=arc.id,
        ))
        for item in arc.checklist:
            if item.completed:
                continue
            threads.append(PlotThread(
                id=f"checklist-{item.id}",
                description=item.label,
                introduced_in_chapter=item.source_chapter_number,
                status="pending",
                priority="high",
                thread_type="checklist",
                related_arc_id=arc.id,
            ))

    for chapter in chapters[-config.recent_chapter_window:]:
        threads.extend(_chapter_threads(chapter))

    if characters and len(chapters) >= 3:
        threads.extend(_character_arc_threads(chapters, characters))

    unique: Dict[str, PlotThread] = {}
    for thread in threads:
        existing = unique.get(thread.id)
        if existing is None or (thread.priority == "high" and existing.priority != "high"):
            unique[thread.id] = thread

    ordered = sorted(
        unique.values(),
        key=lambda t: (-_PRIORITY_ORDER[t.priority], t.introduced_in_chapter or 0),
    )
    logger.debug("Extracted {} plot threads ({} before dedupe)", len(ordered), len(threads))
    return ordered[: config.max_plot_threads]


def _location(chapters: Sequence[Chapter], name: str) -> Optional[str]:
    name_parts = name.lower().split()
    if not name_parts:
        return None
    lowered_name = name.lower()
    for chapter in chapters:
        for sentence in split_fragments(chapter.content):
            if lowered_name not in sentence.lower():
                continue
            words = sentence.split()
            lowered = [w.lower() for w in words]
            start = next(
                (i for i in range(len(words)) if name_parts[0] in lowered[i]),
                None,
            )
            if start is None:
                continue
            after = start + len(name_parts)
            following = words[after:after + 4]
            if len(following) < 2:
                continue
            for offset, word in enumerate(following):
                if _strip(word) in LOCATION_KEYWORDS:
                    location = " ".join(following[offset:offset + 4]).strip(" ,;:")
                    if len(location) > 3:
                        return location
    return None


def _emotion(text: str) -> Optional[str]:
    for emotion, keywords in EMOTIONS.items():
        if mentions_any(text, keywords):
            return emotion
    return None


def _recent_actions(chapter: Chapter, name: str) -> List[str]:
    lowered_name = name.lower()
    sentences = [s for s in split_fragments(chapter.content) if lowered_name in s.lower()]
    actions: List[str] = []
    for sentence in sentences[-3:]:
        words = sentence.split()
        stripped = [_strip(w) for w in words]
        for verb in ACTION_VERBS:
            if verb not in stripped:
                continue
            index = stripped.index(verb)
            if index >= len(words) - 1:
                continue
            phrase = " ".join(words[max(0, index - 2):index + 4]).strip()
            if 10 < len(phrase) < 100:
                actions.append(phrase)
    return actions[:3]


def _situation(chapter: Chapter, name: str) -> Optional[str]:
    last_paragraph = chapter.content.split("\n\n")[-1]
    if name.lower() in last_paragraph.lower():
        return last_paragraph[:200].strip()
    if chapter.summary:
        return chapter.summary[:200].strip()
    return None


def _goals(character: Character) -> List[str]:
    goals = []
    for source in (character.goals, character.notes):
        for sentence in split_fragments(source):
            if mentions_any(sentence, GOAL_KEYWORDS):
                goals.append(sentence[:150])
    return goals[:3]


def extract_character_states(
    chapters: Sequence[Chapter], characters: Sequence[Character]
) -> List[CharacterState]:
    """Infer where each character stands from the last five chapters.

    Characters absent from those chapters get a bare state carrying only
    their id and name.
    """
    if not chapters or not characters:
        return []

    recent = sorted(chapters, key=lambda c: c.number)[-5:]
    states = []
    for character in characters:
        present = [ch for ch in recent if mentions(ch, character.name)]
        if not present:
            states.append(CharacterState(character_id=character.id, character_name=character.name))
            continue

        latest = present[-1]
        states.append(CharacterState(
            character_id=character.id,
            character_name=character.name,
            current_location=_location(present, character.name),
            emotional_state=_emotion(" ".join(lowered_text(ch) for ch in present)),
            active_goals=_goals(character),
            recent_actions=_recent_actions(latest, character.name),
            current_situation=_situation(latest, character.name),
        ))
    return states


def _current_locations(chapters: Sequence[Chapter]) -> List[str]:
    locations: List[str] = []
    for chapter in chapters:
        content = chapter.content.lower()
        for noun in PLACE_NOUNS:
            for match in re.finditer(rf"\b{noun}\s+\w+", content):
                if match.group(0) not in locations:
                    locations.append(match.group(0))
    return locations[:5]


def _temporal_context(chapter: Optional[Chapter]) -> str:
    if chapter is None or chapter.logic_audit is None:
        return "Recent events"
    text = f"{chapter.logic_audit.resulting_value} {chapter.summary}".lower()
    for label, markers in TIME_MARKERS:
        if mentions_any(text, markers):
            return label
    return "Recent events"


def _unresolved_questions(chapters: Sequence[Chapter]) -> List[str]:
    questions = []
    for chapter in chapters:
        for match in _QUESTION_RE.findall(chapter.content)[:2]:
            question = match.strip()
            if 10 < len(question) < 150:
                questions.append(question)
    return questions[:5]


def build_story_state_summary(
    state: NovelState, config: Optional[ContinuityConfig] = None
) -> StoryStateSummary:
    config = config or ContinuityConfig()
    chapters = state.sorted_chapters()
    recent = chapters[-config.recent_chapter_window:]

    summary = StoryStateSummary(
        character_states=extract_character_states(recent, state.character_codex),
        active_plot_threads=extract_active_plot_threads(
            chapters, state.plot_ledger, state.character_codex, config
        ),
        current_locations=_current_locations(recent),
        temporal_context=_temporal_context(recent[-1] if recent else None),
        unresolved_questions=_unresolved_questions(recent),
    )
    logger.info(
        "Story state: {} characters, {} threads, {} open questions",
        len(summary.character_states),
        len(summary.active_plot_threads),
        len(summary.unresolved_questions),
    )
    return summary


def format_story_state_summary(summary: StoryStateSummary) -> str:
    """Render a summary as line-oriented text for a generation prompt."""
    sections: List[str] = []

    if summary.character_states:
        sections.append("CHARACTER STATES:")
        for state in summary.character_states[:5]:
            parts = [state.character_name]
            if state.current_location:
                parts.append(f"Location: {state.current_location}")
            if state.emotional_state:
                parts.append(f"Emotional State: {state.emotional_state}")
            if state.current_situation:
                parts.append(f"Situation: {state.current_situation[:100]}")
            sections.append(f"- {' | '.join(parts)}")

    if summary.active_plot_threads:
        sections.append("\nACTIVE PLOT THREADS:")
        for thread in summary.active_plot_threads[:5]:
            introduced = (
                f" (Introduced Ch {thread.introduced_in_chapter})"
                if thread.introduced_in_chapter
                else ""
            )
            sections.append(f"- {thread.description[:150]}{introduced}")

    if summary.current_locations:
        sections.append(f"\nCURRENT LOCATIONS: {', '.join(summary.current_locations)}")

    sections.append(f"\nTEMPORAL CONTEXT: {summary.temporal_context}")

    if summary.unresolved_questions:
        sections.append("\nUNRESOLVED QUESTIONS:")
        for question in summary.unresolved_questions:
            sections.append(f"- {question}")

    return "\n".join(sections)

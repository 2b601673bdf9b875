"""Promise and commitment tracking.

Finds meeting arrangements, explicit promises and stated intentions in
chapter prose, then checks later chapters for signs that each one was
kept. Promises left pending for more than five chapters are considered
forgotten.
"""

import re
from typing import List, NamedTuple, Optional, Sequence

from loguru import logger

from ..config import ContinuityConfig
from ..models.continuity import OverduePromise, PromiseCommitment
from ..models.novel import Chapter, NovelState
from .text import context_around, lowered_text, mentions_any


class PromiseRule(NamedTuple):
    kind: str
    pattern: re.Pattern
    priority: str
    label: str
    radius: int


_VERBS = (
    "investigate|find out|discover|learn|explore|check|examine|look into"
    "|figure out|determine|help|assist|support|protect|defend"
)

PROMISE_RULES = [
    PromiseRule(
        "meeting",
        re.compile(r"\b(we'll|we will|they'll|they will|he'll|he will|she'll|she will|i'll|i will)\s+(meet|gather|come together|reconvene|assemble|convene)", re.IGNORECASE),
        "high", "Meeting arrangement", 50,
    ),
    PromiseRule(
        "meeting",
        re.compile(r"\b(set up|arranged|scheduled|planned|agreed to)\s+(a |an |the )?(meeting|gathering|appointment|rendezvous|conference)", re.IGNORECASE),
        "high", "Meeting arrangement", 50,
    ),
    PromiseRule(
        "meeting",
        re.compile(r"\b(meet|meeting|gathering|appointment)\s+(at|in|with|tomorrow|later|soon|next|tonight)", re.IGNORECASE),
        "high", "Meeting arrangement", 50,
    ),
    PromiseRule(
        "promise",
        re.compile(rf"\b(promised|agreed|vowed|committed|swore)\s+(to\s+)?({_VERBS}|do)", re.IGNORECASE),
        "high", "Character promise", 60,
    ),
    PromiseRule(
        "promise",
        re.compile(rf"\b(will|shall|going to|planning to|intend to)\s+({_VERBS})", re.IGNORECASE),
        "medium", "Character promise", 60,
    ),
    PromiseRule(
        "intention",
        re.compile(r"\b(wanted to|needed to|must|should|ought to)\s+(see|meet|find|discover|investigate|get|learn|know)", re.IGNORECASE),
        "medium", "Character intention", 60,
    ),
    PromiseRule(
        "intention",
        re.compile(r"\b(trying to|attempting to|seeking to)\s+(get|find|discover|learn|investigate|see|meet)", re.IGNORECASE),
        "medium", "Character intention", 60,
    ),
]

NOT_NAMES = {
    "The", "This", "That", "There", "Then", "When", "What", "Where", "Who",
    "How", "Why", "Chapter", "Meeting", "Gathering",
}
MEETING_OCCURRED = ["met", "gathered", "came together", "assembled"]
COMPLETION_KEYWORDS = [
    "completed", "finished", "done", "accomplished", "fulfilled", "solved", "found", "discovered",
]
_FILLER = {"the", "and", "but", "was", "were", "that", "this"}
FORGOTTEN_AFTER = 5

_PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}


def involved_characters(context: str, limit: int = 3) -> List[str]:
    """Guess the names in a passage: capitalized words that are not sentence filler."""
    names = []
    for word in context.split()[:20]:
        if len(word) > 2 and "A" <= word[0] <= "Z" and word not in NOT_NAMES:
            names.append(re.sub(r"[.,!?;:]", "", word))
    return names[:limit]


def extract_promises_from_chapter(chapter: Chapter) -> List[PromiseCommitment]:
    content = chapter.content
    promises: List[PromiseCommitment] = []
    counters = {"meeting": 0, "promise": 0, "intention": 0}

    for rule in PROMISE_RULES:
        for match in rule.pattern.finditer(content):
            context = context_around(content, match.start(), match.end(), rule.radius)
            index = counters[rule.kind]
            counters[rule.kind] += 1
            promises.append(PromiseCommitment(
                id=f"{rule.kind}-{chapter.id}-{index}",
                type=rule.kind,
                description=f"{rule.label}: {match.group(0)}",
                introduced_in_chapter=chapter.number,
                introduced_in_chapter_id=chapter.id,
                priority=rule.priority,
                context=context,
                involved_characters=involved_characters(context) if rule.kind == "meeting" else [],
            ))
    return promises


def _key_terms(description: str) -> List[str]:
    return [t for t in description.lower().split() if len(t) > 3 and t not in _FILLER]


def is_fulfilled(promise: PromiseCommitment, later_chapters: Sequence[Chapter]) -> bool:
    """Whether any later chapter shows the promise being kept.

    A meeting counts as kept only when a chapter describes a meeting taking
    place and names everyone involved. Anything else needs one of its key
    terms plus a completion word in the same chapter.
    """
    terms = _key_terms(promise.description)
    for chapter in later_chapters:
        text = lowered_text(chapter)
        if promise.type == "meeting":
            if (
                promise.involved_characters
                and mentions_any(text, MEETING_OCCURRED)
                and all(name.lower() in text for name in promise.involved_characters)
            ):
                return True
        elif mentions_any(text, terms) and mentions_any(text, COMPLETION_KEYWORDS):
            return True
    return False


def track_promises(chapters: Sequence[Chapter], current_chapter_number: int) -> List[PromiseCommitment]:
    """Extract every promise and classify it as pending, fulfilled or forgotten."""
    promises = []
    for chapter in chapters:
        promises.extend(extract_promises_from_chapter(chapter))

    for promise in promises:
        age = current_chapter_number - promise.introduced_in_chapter
        later = [
            ch for ch in chapters
            if promise.introduced_in_chapter < ch.number <= current_chapter_number
        ]
        promise.chapters_since_introduction = age
        if is_fulfilled(promise, later):
            promise.status = "fulfilled"
        elif age > FORGOTTEN_AFTER:
            promise.status = "forgotten"
        else:
            promise.status = "pending"

    logger.debug("Tracked {} promises up to chapter {}", len(promises), current_chapter_number)
    return promises


def get_overdue_promises(
    state: NovelState,
    current_chapter_number: int,
    config: Optional[ContinuityConfig] = None,
) -> List[OverduePromise]:
    """Pending promises at least ``overdue_threshold`` chapters old.

    Ordered by priority, then by how far past the threshold they are.
    """
    threshold = (config or ContinuityConfig()).overdue_threshold
    overdue = [
        OverduePromise(
            **promise.model_dump(),
            overdue_by_chapters=promise.chapters_since_introduction - threshold,
        )
        for promise in track_promises(state.chapters, current_chapter_number)
        if promise.status == "pending" and promise.chapters_since_introduction >= threshold
    ]
    overdue.sort(key=lambda p: (-_PRIORITY_ORDER[p.priority], -p.overdue_by_chapters))
    return overdue


def get_high_priority_pending_promises(
    state: NovelState, current_chapter_number: int
) -> List[PromiseCommitment]:
    pending = [
        p for p in track_promises(state.chapters, current_chapter_number)
        if p.status == "pending" and p.priority == "high"
    ]
    return sorted(pending, key=lambda p: -p.chapters_since_introduction)

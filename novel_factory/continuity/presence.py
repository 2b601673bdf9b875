"""Character presence tracking across chapters."""

from typing import Dict, List, Optional, Sequence

from loguru import logger

from ..config import ContinuityConfig
from ..models.continuity import CharacterPresence, MissingCharacterWarning
from ..models.novel import Chapter, Character, NovelState
from .text import context_around, mentions, near_keyword

ACTIVE_KEYWORDS = [
    "following", "pursuing", "tracking", "investigating",
    "trying to", "wanted to", "needed to", "attempting",
    "active", "present", "was there", "participated",
]

_LEVEL_ORDER = {"critical": 3, "warning": 2, "info": 1}


def _activity_context(chapter: Chapter, name: str) -> Optional[str]:
    text = chapter.full_text
    if not near_keyword(text, name, ACTIVE_KEYWORDS):
        return None
    start = text.lower().find(name.lower())
    return context_around(text, start, start + len(name), 50)


def _activity_level(appearances: int) -> str:
    if appearances >= 3:
        return "high"
    if appearances == 2:
        return "medium"
    if appearances == 1:
        return "low"
    return "none"


def track_character_presence(
    chapters: Sequence[Chapter], characters: Sequence[Character]
) -> List[CharacterPresence]:
    """Appearance history for every character, in codex order.

    ``chapters`` must already be in reading order; the last one is treated
    as the current chapter.
    """
    last_number = chapters[-1].number if chapters else 0
    recent = chapters[-5:]
    presence = []
    for character in characters:
        appeared = []
        context = None
        for chapter in chapters:
            if mentions(chapter, character.name):
                appeared.append(chapter.number)
                context = _activity_context(chapter, character.name) or context

        last_seen = appeared[-1] if appeared else None
        since = last_number - last_seen if last_seen is not None else last_number
        presence.append(CharacterPresence(
            character_id=character.id,
            character_name=character.name,
            chapters_appeared=appeared,
            last_appearance_chapter=last_seen,
            chapters_since_last_appearance=since,
            recent_activity_level=_activity_level(
                sum(1 for ch in recent if mentions(ch, character.name))
            ),
            was_active_recently=2 <= since <= 5 and context is not None,
            activity_context=context,
        ))
    return presence


def detect_missing_characters(
    chapters: Sequence[Chapter],
    characters: Sequence[Character],
    config: Optional[ContinuityConfig] = None,
) -> List[MissingCharacterWarning]:
    """Warn about non-protagonists who were active but have dropped out.

    A character who was doing something two to five chapters ago and is
    absent from the last ``check_last_chapters`` chapters gets a warning
    whose level grows with the gap. Recurring characters (three or more
    appearances) who have been gone for a while get an info notice.
    Critical warnings come first.
    """
    config = config or ContinuityConfig()
    limit = config.max_chapters_since_appearance
    last_number = chapters[-1].number if chapters else 0
    tail = chapters[-config.check_last_chapters:] if config.check_last_chapters else []
    protagonists = {c.id for c in characters if c.is_protagonist}

    warnings: Dict[str, MissingCharacterWarning] = {}
    for presence in track_character_presence(chapters, characters):
        if presence.character_id in protagonists:
            continue
        name = presence.character_name
        since = presence.chapters_since_last_appearance
        if any(mentions(ch, name) for ch in tail):
            continue

        if presence.was_active_recently and presence.last_appearance_chapter:
            if since >= limit:
                level = "critical"
            elif since >= 3:
                level = "warning"
            else:
                level = "info"
            activity = (
                f"Last activity: {presence.activity_context[:100]}"
                if presence.activity_context
                else ""
            )
            warnings[presence.character_id] = MissingCharacterWarning(
                character_id=presence.character_id,
                character_name=name,
                last_appearance_chapter=presence.last_appearance_chapter,
                chapters_since_last_appearance=since,
                warning_level=level,
                message=(
                    f'Character "{name}" was active {since} chapter(s) ago '
                    f"but hasn't appeared since. {activity}"
                ).strip(),
                suggestion=(
                    f'Consider including "{name}" in the next chapter '
                    "to follow up on their storyline."
                ),
            )
        elif len(presence.chapters_appeared) >= 3 and 3 < since <= limit:
            warnings[presence.character_id] = MissingCharacterWarning(
                character_id=presence.character_id,
                character_name=name,
                last_appearance_chapter=presence.last_appearance_chapter or last_number,
                chapters_since_last_appearance=since,
                warning_level="info",
                message=(
                    f'Recurring character "{name}" appeared in '
                    f"{len(presence.chapters_appeared)} chapter(s) but hasn't appeared "
                    f"in the last {since} chapter(s)."
                ),
                suggestion=f'Consider reintroducing "{name}" if their storyline is still relevant.',
            )

    ordered = sorted(warnings.values(), key=lambda w: -_LEVEL_ORDER[w.warning_level])
    if ordered:
        logger.debug("{} character(s) missing from recent chapters", len(ordered))
    return ordered


def get_characters_who_should_appear(
    state: NovelState, config: Optional[ContinuityConfig] = None
) -> List[Character]:
    """Characters with a critical or warning-level absence."""
    by_id = {c.id: c for c in state.character_codex}
    warnings = detect_missing_characters(state.sorted_chapters(), state.character_codex, config)
    return [
        by_id[w.character_id]
        for w in warnings
        if w.warning_level in ("critical", "warning") and w.character_id in by_id
    ]

"""Post-generation continuity validation.

After a new chapter is written, checks it against what earlier chapters
set up: high-priority plot threads, characters due to reappear and
overdue promises. The result's ``is_valid`` flag is a hard gate callers
can use to reject or regenerate the chapter.
"""

import re
from typing import List, Optional

from loguru import logger

from ..config import ContinuityConfig
from ..models.continuity import (
    MissingCharacterWarning,
    PlotThreadValidationResult,
    ValidationIssue,
    ValidationWarning,
)
from ..models.novel import Chapter, NovelState
from .presence import detect_missing_characters
from .promises import get_overdue_promises
from .story_state import extract_active_plot_threads
from .text import extract_keywords, lowered_text, mentions_any

CRITICAL_THREAD_TYPES = {"meeting", "commitment", "checklist"}
MEETING_HAPPENED_RE = re.compile(r"\b(met|gathered|came together|assembled|reconvened)\b")


def validate_plot_thread_resolution(
    state: NovelState,
    new_chapter: Chapter,
    config: Optional[ContinuityConfig] = None,
) -> PlotThreadValidationResult:
    """Validate a freshly generated chapter against earlier obligations.

    A thread counts as addressed when any of its description keywords
    appears in the new chapter. Ignored meeting, commitment and checklist
    threads are errors; other ignored threads are warnings.

    Args:
        state: Novel state before the new chapter is committed.
        new_chapter: The generated chapter under review.
        config: Continuity thresholds.

    Returns:
        The validation report. ``is_valid`` is False if there are any
        errors or any high-severity warnings.
    """
    config = config or ContinuityConfig()
    current = new_chapter.number
    previous = [ch for ch in state.sorted_chapters() if ch.number < current]
    new_text = lowered_text(new_chapter)

    warnings: List[ValidationWarning] = []
    errors: List[ValidationIssue] = []
    suggestions: List[str] = []

    threads = extract_active_plot_threads(
        previous, state.plot_ledger, state.character_codex, config
    )
    addressed = ignored = 0
    for thread in (t for t in threads if t.priority == "high"):
        if mentions_any(new_text, extract_keywords(thread.description)):
            addressed += 1
            continue

        ignored += 1
        if thread.thread_type in CRITICAL_THREAD_TYPES:
            errors.append(ValidationIssue(
                type="critical_thread_ignored",
                message=f'Critical high-priority plot thread was not addressed: "{thread.description[:100]}"',
                suggestion=(
                    f"This thread ({thread.thread_type}) was introduced in Chapter "
                    f"{thread.introduced_in_chapter} and should be addressed. "
                    "Consider including it in the next chapter."
                ),
                context=thread.description,
            ))
        else:
            warnings.append(ValidationWarning(
                type="thread_not_addressed",
                severity="high",
                message=f'High-priority plot thread was not addressed: "{thread.description[:100]}"',
                suggestion=(
                    f"This thread was introduced in Chapter {thread.introduced_in_chapter}. "
                    "Consider addressing it soon."
                ),
                context=thread.description,
            ))

    missing = detect_missing_characters(
        previous + [new_chapter], state.character_codex, config
    )
    for warning in missing:
        if warning.character_name.lower() in new_text:
            continue
        if warning.warning_level == "critical":
            errors.append(ValidationIssue(
                type="mandatory_character_missing",
                message=(
                    f'Critical character "{warning.character_name}" should appear but '
                    f"hasn't. Last appeared in Chapter {warning.last_appearance_chapter}."
                ),
                suggestion=warning.suggestion,
                context=warning.message,
            ))
        elif warning.warning_level == "warning":
            warnings.append(ValidationWarning(
                type="missing_character",
                severity="medium",
                message=warning.message,
                suggestion=warning.suggestion,
                context=warning.message,
            ))

    overdue = get_overdue_promises(state, current, config)
    for promise in overdue:
        mentioned = mentions_any(new_text, extract_keywords(promise.description))
        severity = "high" if promise.priority == "high" else "medium"
        if promise.type == "meeting":
            # Meetings clear only on meeting-occurred language, never on keywords.
            if MEETING_HAPPENED_RE.search(new_text):
                continue
            warnings.append(ValidationWarning(
                type="promise_not_fulfilled",
                severity=severity,
                message=(
                    f"Promised meeting from Chapter {promise.introduced_in_chapter} "
                    f'was not fulfilled: "{promise.description[:100]}"'
                ),
                suggestion=(
                    f"This meeting was promised {promise.chapters_since_introduction} "
                    "chapter(s) ago. Consider fulfilling it soon or explaining why it didn't happen."
                ),
                context=promise.context,
            ))
        elif not mentioned:
            warnings.append(ValidationWarning(
                type="overdue_promise",
                severity=severity,
                message=(
                    f"Overdue promise from Chapter {promise.introduced_in_chapter} "
                    f'was not addressed: "{promise.description[:100]}"'
                ),
                suggestion=(
                    f"This promise was made {promise.chapters_since_introduction} chapter(s) ago "
                    f"({promise.overdue_by_chapters} chapter(s) overdue). Consider addressing it."
                ),
                context=promise.context,
            ))

    if ignored:
        suggestions.append(
            f"Address {ignored} high-priority plot thread(s) that were not resolved in this chapter."
        )
    critical_missing = [w for w in missing if w.warning_level == "critical"]
    if critical_missing:
        names = ", ".join(w.character_name for w in critical_missing)
        suggestions.append(
            f"Include {len(critical_missing)} missing character(s) who should appear: {names}"
        )
    critical_promises = [p for p in overdue if p.priority == "high" and p.overdue_by_chapters > 2]
    if critical_promises:
        suggestions.append(
            f"Fulfill {len(critical_promises)} overdue high-priority promise(s) "
            "that are more than 2 chapters overdue."
        )

    is_valid = not errors and not any(w.severity == "high" for w in warnings)
    logger.info(
        "Chapter {} continuity: {} ({} errors, {} warnings)",
        current, "passed" if is_valid else "failed", len(errors), len(warnings),
    )
    return PlotThreadValidationResult(
        is_valid=is_valid,
        warnings=warnings,
        errors=errors,
        suggestions=suggestions,
        high_priority_threads_addressed=addressed,
        high_priority_threads_ignored=ignored,
    )


def validate_character_presence(
    state: NovelState,
    new_chapter: Chapter,
    config: Optional[ContinuityConfig] = None,
) -> List[MissingCharacterWarning]:
    chapters = [ch for ch in state.sorted_chapters() if ch.number != new_chapter.number]
    return detect_missing_characters(chapters + [new_chapter], state.character_codex, config)


def get_validation_summary(result: PlotThreadValidationResult) -> str:
    """Plain-text report of a validation result."""
    sections: List[str] = []

    if result.errors:
        sections.append(f"ERRORS ({len(result.errors)}):")
        for i, error in enumerate(result.errors, 1):
            sections.append(f"  {i}. {error.message}")
            sections.append(f"     -> {error.suggestion}")

    if result.warnings:
        sections.append(f"WARNINGS ({len(result.warnings)}):")
        for i, warning in enumerate(result.warnings[:5], 1):
            sections.append(f"  {i}. [{warning.severity.upper()}] {warning.message}")
            sections.append(f"     -> {warning.suggestion}")

    if result.suggestions:
        sections.append("SUGGESTIONS:")
        for i, suggestion in enumerate(result.suggestions, 1):
            sections.append(f"  {i}. {suggestion}")

    sections.append("\nSUMMARY:")
    sections.append(f"  - High-priority threads addressed: {result.high_priority_threads_addressed}")
    sections.append(f"  - High-priority threads ignored: {result.high_priority_threads_ignored}")
    sections.append(f"  - Validation status: {'PASSED' if result.is_valid else 'FAILED'}")
    return "\n".join(sections)

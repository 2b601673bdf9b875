"""Text metrics primitives shared by the narrative analyzers."""

import math
import re
from typing import List, Sequence

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_TERMINATOR_RE = re.compile(r"[.!?]")
_VOWEL_GROUP_RE = re.compile(r"[aeiouy]+")
_NON_ALPHA_RE = re.compile(r"[^a-z]")


def split_sentences(text: str) -> List[str]:
    """Split text into sentences on runs of `.`, `!` and `?`.

    Text without any terminal punctuation yields no sentences at all,
    so callers can tell "analysis unavailable" apart from a one-sentence
    chapter. A trailing fragment after the last terminator is kept.

    Args:
        text: Input text to segment.

    Returns:
        List of trimmed, non-empty sentences.
    """
    if not text or not _TERMINATOR_RE.search(text):
        return []

    sentences = SENTENCE_SPLIT_RE.split(text)
    return [s.strip() for s in sentences if s.strip()]


def split_fragments(text: str) -> List[str]:
    """Split on terminal punctuation without requiring any to be present.

    Used by the continuity heuristics, which scan whatever text exists.
    """
    return [s.strip() for s in SENTENCE_SPLIT_RE.split(text or "") if s.strip()]


def split_words(text: str) -> List[str]:
    """Split text on whitespace, discarding empty tokens."""
    return text.split() if text else []


def estimate_syllables(word: str) -> int:
    """Approximate the syllable count of a single English word.

    Counts vowel groups (``[aeiouy]+``) and drops one for a trailing
    silent ``e``. This is a heuristic and is not phonetically exact;
    it never returns less than 1.
    """
    clean = _NON_ALPHA_RE.sub("", word.lower())
    if not clean:
        return 1

    syllables = len(_VOWEL_GROUP_RE.findall(clean))
    if clean.endswith("e"):
        syllables -= 1

    return max(1, syllables)


def variance(values: Sequence[float]) -> float:
    """Population variance. Returns 0.0 for an empty sequence."""
    if not values:
        return 0.0

    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation."""
    return math.sqrt(variance(values))


def sentence_lengths(sentences: Sequence[str]) -> List[int]:
    """Word count of each sentence."""
    return [len(split_words(s)) for s in sentences]


def average_sentence_length(text: str) -> float:
    """Total words divided by sentence count; 0.0 when there are no sentences."""
    sentences = split_sentences(text)
    if not sentences:
        return 0.0

    return len(split_words(text)) / len(sentences)


def calculate_flesch_kincaid(text: str) -> float:
    """Flesch reading-ease approximation.

    ``206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words)``,
    rounded to two decimals. The raw value is returned unclamped; it can
    fall outside 0-100 for very long sentences or very short words.

    Returns:
        The score, or 0 when the text has no sentences or no words.
    """
    sentences = split_sentences(text)
    words = split_words(text)

    if not sentences or not words:
        return 0

    syllables = sum(estimate_syllables(w) for w in words)
    avg_sentence_len = len(words) / len(sentences)
    avg_syllables = syllables / len(words)

    score = 206.835 - (1.015 * avg_sentence_len) - (84.6 * avg_syllables)
    return round(score, 2)


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp a score into [low, high]."""
    return max(low, min(high, value))

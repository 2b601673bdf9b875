"""Small text helpers shared by the continuity trackers."""

import re
from typing import Iterable, List, Sequence

from ..models.novel import Chapter

KEYWORD_STOPWORDS = {
    "this", "that", "with", "from", "into", "them", "they", "their", "there",
    "then", "were", "will", "would", "could", "should", "might", "been",
    "have", "meet", "meeting", "gather", "promised", "agreed",
}

_NON_WORD_RE = re.compile(r"[^\w\s]")


def lowered_text(chapter: Chapter) -> str:
    """Content and summary of a chapter, lowercased."""
    return chapter.full_text.lower()


def mentions(chapter: Chapter, name: str) -> bool:
    return bool(name.strip()) and name.lower() in lowered_text(chapter)


def context_around(text: str, start: int, end: int, radius: int) -> str:
    """Slice ``radius`` characters either side of ``text[start:end]``."""
    return text[max(0, start - radius):min(len(text), end + radius)].strip()


def near_keyword(text: str, name: str, keywords: Iterable[str], distance: int = 100) -> bool:
    """True when any keyword occurs within ``distance`` characters of the name."""
    lowered = text.lower()
    name = name.lower()
    name_positions = [m.start() for m in re.finditer(re.escape(name), lowered)]
    if not name_positions:
        return False

    for keyword in keywords:
        for match in re.finditer(re.escape(keyword), lowered):
            if any(abs(match.start() - pos) < distance for pos in name_positions):
                return True
    return False


def extract_keywords(text: str) -> List[str]:
    """Distinct words longer than three letters, minus connective filler."""
    words = _NON_WORD_RE.sub(" ", text.lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) > 3 and word not in KEYWORD_STOPWORDS and word not in keywords:
            keywords.append(word)
    return keywords


def mentions_any(text: str, keywords: Sequence[str]) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)

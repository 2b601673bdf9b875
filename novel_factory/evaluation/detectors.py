"""Keyword and regex detectors used by the prose analyzer.

Every detector exposes ``detect(text) -> list[str]`` returning the matched
terms (not counts), so vocabularies can be swapped per genre without
touching the scoring code.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import StyleConfig

GENERAL_CLICHES = [
    "in the blink of an eye",
    "time stood still",
    "heart skipped a beat",
    "all hell broke loose",
    "broke the silence",
    "dead as a doornail",
    "easier said than done",
    "fit as a fiddle",
    "last but not least",
    "once in a blue moon",
    "piece of cake",
    "raining cats and dogs",
    "under the weather",
    "burn the midnight oil",
    "hit the nail on the head",
    "at the end of the day",
    "think outside the box",
    "blessing in disguise",
    "calm before the storm",
    "devil's advocate",
    "method to the madness",
    "better late than never",
    "actions speak louder than words",
    "all's well that ends well",
    "beauty is in the eye of the beholder",
]

CULTIVATION_CLICHES = [
    "heaven defying talent",
    "peerless genius",
    "shocking discovery",
    "unprecedented breakthrough",
    "realm of cultivation",
    "trash to treasure",
    "young master",
    "arrogant junior",
    "face slapping",
]

GENERAL_TROPES = [
    "chosen one",
    "hero's journey",
    "mentor death",
    "power of friendship",
    "training montage",
    "false defeat",
    "hidden power",
    "revenge story",
    "coming of age",
    "fish out of water",
]

CULTIVATION_TROPES = [
    "reincarnation",
    "system",
    "cheat ability",
    "hidden master",
    "overpowered mc",
    "cultivation breakthrough",
    "face saving",
    "treasure hunting",
    "auction scene",
    "tournament arc",
]

GENRE_CLICHES: Dict[str, List[str]] = {
    "xianxia": CULTIVATION_CLICHES,
    "xuanhuan": CULTIVATION_CLICHES,
    "general": [],
}

GENRE_TROPES: Dict[str, List[str]] = {
    "xianxia": CULTIVATION_TROPES,
    "xuanhuan": CULTIVATION_TROPES,
    "general": [],
}

TELL_PATTERNS = [
    r"\b(is|was|are|were|be|been)\s+\w+",
    r"\bfelt\s+\w+",
    r"\bknew\s+that",
    r"\bthought\s+that",
    r"\bseemed\s+to",
    r"\bappeared\s+to",
]

SHOW_PATTERNS = [
    r"\b(saw|heard|felt|tasted|smelled|watched|listened|observed)",
    r"\b(breathed|sighed|laughed|cried|gasped|chuckled|smiled|frowned)",
    r"\b(hands|eyes|face|voice|body|gesture)",
    r'"[^"]*"',
]


class Detector:
    """Base interface: find vocabulary matches in a piece of text."""

    def detect(self, text: str) -> List[str]:
        raise NotImplementedError

    def matches(self, text: str) -> bool:
        return bool(self.detect(text))


class KeywordDetector(Detector):
    """Case-insensitive substring match against a fixed term list."""

    def __init__(self, terms: Iterable[str]):
        seen = set()
        self.terms = []
        for term in terms:
            lowered = term.lower()
            if lowered and lowered not in seen:
                seen.add(lowered)
                self.terms.append(lowered)

    def detect(self, text: str) -> List[str]:
        lowered = text.lower()
        return [term for term in self.terms if term in lowered]


class RegexDetector(Detector):
    """Case-insensitive regex search; returns the source of each matching pattern."""

    def __init__(self, patterns: Sequence[str], flags: int = re.IGNORECASE):
        self.patterns = [re.compile(p, flags) for p in patterns]

    def detect(self, text: str) -> List[str]:
        return [p.pattern for p in self.patterns if p.search(text)]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


def cliche_detector(style: Optional[StyleConfig] = None) -> KeywordDetector:
    """General clichés plus the genre list and any configured extras."""
    style = style or StyleConfig()
    return KeywordDetector(
        GENERAL_CLICHES + GENRE_CLICHES[style.genre] + style.extra_cliches
    )


def trope_detector(style: Optional[StyleConfig] = None) -> KeywordDetector:
    style = style or StyleConfig()
    return KeywordDetector(
        GENERAL_TROPES + GENRE_TROPES[style.genre] + style.extra_tropes
    )


def tell_detector() -> RegexDetector:
    return RegexDetector(TELL_PATTERNS)


def show_detector() -> RegexDetector:
    return RegexDetector(SHOW_PATTERNS)

"""Prose quality scoring: sentence variety, vocabulary, show vs tell,
rhythm and cadence, plus cliché/trope/unique-element detection."""

import re
from typing import List, Optional, Sequence

from loguru import logger

from ..config import ProseConfig, StyleConfig
from ..models.analysis import ProseQuality, ProseQualityAnalysis
from ..models.novel import Chapter, NovelState
from .detectors import (
    Detector,
    cliche_detector,
    show_detector,
    tell_detector,
    trope_detector,
)
from .metrics import (
    average_sentence_length,
    calculate_flesch_kincaid,
    clamp_score,
    sentence_lengths,
    split_sentences,
    split_words,
    variance,
)

NO_CHAPTERS_MESSAGE = "No chapters available for prose quality analysis"

_NON_WORD_RE = re.compile(r"[^\w]")
_COMPLEX_FORM_RE = re.compile(r"[a-z]{3,}ed$|[a-z]{3,}ing$|[a-z]{3,}tion$")
_ALLITERATION_RE = re.compile(r"\b(\w)\w*\s+\1\w*", re.IGNORECASE)
_REPETITION_RE = re.compile(r"\b(\w+\s+){2,}", re.IGNORECASE)

_COMMON_WORDS = {
    "the", "a", "an", "is", "was", "are", "were", "be", "been",
    "he", "she", "it", "they", "we", "you", "i",
    "of", "in", "on", "at", "to", "for", "with", "by",
}
_MODIFIER_PATTERNS = [
    re.compile(r"^[a-z]+(ed|ing)$"),
    re.compile(r"^[a-z]+(ly)$"),
]


def analyze_sentence_variety(text: str) -> float:
    """Score how close the short/medium/long sentence mix is to 30/50/20.

    Short is under 10 words, medium 10-24, long 25 or more. All three
    bands present earns +10; a length variance under 50 costs 10.

    Returns:
        Score 0-100, or 50 when the text has no sentences.
    """
    lengths = sentence_lengths(split_sentences(text))
    if not lengths:
        return 50

    total = len(lengths)
    short = sum(1 for n in lengths if n < 10)
    medium = sum(1 for n in lengths if 10 <= n < 25)
    long_ = sum(1 for n in lengths if n >= 25)

    short_score = 100 - abs(short / total - 0.3) * 200
    medium_score = 100 - abs(medium / total - 0.5) * 200
    long_score = 100 - abs(long_ / total - 0.2) * 200

    score = short_score * 0.3 + medium_score * 0.5 + long_score * 0.2

    if short and medium and long_:
        score += 10
    if variance(lengths) < 50:
        score -= 10

    return clamp_score(round(score))


def analyze_vocabulary_sophistication(text: str) -> float:
    """50 x type-token ratio + 50 x share of long or inflected words."""
    words = split_words(text)
    if not words:
        return 0

    cleaned = [_NON_WORD_RE.sub("", w.lower()) for w in words]
    diversity = len(set(cleaned)) / len(words)

    sophisticated = sum(
        1 for w in cleaned if len(w) >= 7 or _COMPLEX_FORM_RE.search(w)
    )
    sophistication = sophisticated / len(words)

    score = diversity * 50 + sophistication * 50

    # Balanced vocabulary: varied but not ornate
    if 0.3 <= diversity <= 0.6 and 0.1 <= sophistication <= 0.3:
        score += 10

    return clamp_score(round(score))


def analyze_show_tell_balance(
    text: str,
    show: Optional[Detector] = None,
    tell: Optional[Detector] = None,
) -> float:
    """Percentage of classified sentences that show rather than tell.

    A sentence matching both indicator sets counts half to each side.

    Returns:
        Show percentage rounded to two decimals, or 50 when no sentence
        matches either set.
    """
    show = show or show_detector()
    tell = tell or tell_detector()

    show_count = 0.0
    tell_count = 0.0
    for sentence in split_sentences(text):
        has_show = show.matches(sentence)
        has_tell = tell.matches(sentence)
        if has_show and has_tell:
            show_count += 0.5
            tell_count += 0.5
        elif has_show:
            show_count += 1
        elif has_tell:
            tell_count += 1

    total = show_count + tell_count
    if total == 0:
        return 50

    return round(show_count / total * 100, 2)


def structure_variety(sentences: Sequence[str]) -> float:
    """Share (0-100) of consecutive sentences whose openings differ."""
    if not sentences:
        return 0

    differing = 0
    for prev, curr in zip(sentences, sentences[1:]):
        if prev.strip()[:3].lower() != curr.strip()[:3].lower():
            differing += 1

    return differing / len(sentences) * 100


def analyze_rhythm(text: str) -> float:
    """Score rhythm from length variance, alliteration, repetition and
    variety of sentence openings. Needs at least three sentences; fewer
    scores a neutral 50."""
    sentences = split_sentences(text)
    if len(sentences) < 3:
        return 50

    score = 50.0
    spread = variance(sentence_lengths(sentences))
    if 30 <= spread <= 150:
        score += 20
    elif spread < 30:
        score -= 15
    elif spread > 200:
        score -= 10

    alliterations = sum(1 for _ in _ALLITERATION_RE.finditer(text))
    if alliterations:
        score += min(15, alliterations * 2)

    repetitions = sum(1 for _ in _REPETITION_RE.finditer(text))
    if repetitions:
        score += min(10, repetitions)

    score += structure_variety(sentences) * 0.1

    return clamp_score(round(score))


def detect_cadence_pattern(text: str) -> str:
    """Classify the shape of sentence lengths across the text.

    Returns one of ``oscillating``, ``rising``, ``falling``, ``stable``,
    or ``neutral`` when there are fewer than three sentences.
    """
    lengths = sentence_lengths(split_sentences(text))
    if len(lengths) < 3:
        return "neutral"

    rising = falling = oscillating = 0
    for prev, curr, nxt in zip(lengths, lengths[1:], lengths[2:]):
        if (curr > prev and curr > nxt) or (curr < prev and curr < nxt):
            oscillating += 1
        elif curr > prev:
            rising += 1
        elif curr < prev:
            falling += 1

    if oscillating / len(lengths) > 0.3:
        return "oscillating"
    if rising > falling * 1.5:
        return "rising"
    if falling > rising * 1.5:
        return "falling"
    return "stable"


def _is_unusual_pair(first: str, second: str) -> bool:
    # Case-folded before matching, so capitalisation alone is not a modifier
    first = _NON_WORD_RE.sub("", first.lower())
    second = _NON_WORD_RE.sub("", second.lower())

    if first in _COMMON_WORDS or second in _COMMON_WORDS:
        return False

    return len(second) > 3 and any(p.match(first) for p in _MODIFIER_PATTERNS)


def detect_unique_elements(text: str, limit: int = 10) -> List[str]:
    """Find distinctive modifier + word pairings in longer sentences."""
    elements: List[str] = []
    for sentence in split_sentences(text):
        if len(sentence) <= 50:
            continue
        words = split_words(sentence)
        for first, second in zip(words, words[1:]):
            if _is_unusual_pair(first, second):
                phrase = f"{first} {second}"
                if phrase not in elements:
                    elements.append(phrase)
                    if len(elements) >= limit:
                        return elements
    return elements


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values))


class ProseQualityAnalyzer:
    """Score chapter prose and aggregate the results for a novel."""

    def __init__(
        self,
        config: Optional[ProseConfig] = None,
        style: Optional[StyleConfig] = None,
    ):
        self.config = config or ProseConfig()
        self.style = style or StyleConfig()
        self.cliches = cliche_detector(self.style)
        self.tropes = trope_detector(self.style)
        self.show = show_detector()
        self.tell = tell_detector()

    def analyze_chapter(self, chapter: Chapter, novel_id: str = "") -> ProseQuality:
        content = chapter.content or ""
        logger.debug("Scoring prose for chapter {} ({} chars)", chapter.number, len(content))

        return ProseQuality(
            id=f"prose-{chapter.id}",
            novel_id=novel_id,
            chapter_id=chapter.id,
            sentence_variety_score=analyze_sentence_variety(content),
            average_sentence_length=round(average_sentence_length(content), 2),
            vocabulary_sophistication=analyze_vocabulary_sophistication(content),
            flesch_kincaid_score=clamp_score(calculate_flesch_kincaid(content)),
            show_tell_balance=analyze_show_tell_balance(content, self.show, self.tell),
            rhythm_score=analyze_rhythm(content),
            cadence_pattern=detect_cadence_pattern(content),
            cliches_detected=self.cliches.detect(content),
            tropes_detected=self.tropes.detect(content),
            unique_elements=detect_unique_elements(content, self.config.max_unique_elements),
        )

    def show_tell_balance_score(self, qualities: Sequence[ProseQuality]) -> float:
        """Distance of the average show percentage from the ideal, as 0-100."""
        if not qualities:
            return 50
        avg_show = _mean([q.show_tell_balance for q in qualities])
        distance = abs(avg_show - self.config.ideal_show_percentage)
        return round(max(0, 100 - distance * 2))

    def analyze(self, state: NovelState) -> ProseQualityAnalysis:
        chapters = state.sorted_chapters()
        if not chapters:
            logger.info("No chapters to analyze for prose quality")
            return ProseQualityAnalysis(recommendations=[NO_CHAPTERS_MESSAGE])

        logger.info("Analyzing prose quality for {} chapters", len(chapters))
        qualities = [self.analyze_chapter(ch, state.id) for ch in chapters]

        variety = _mean([q.sentence_variety_score for q in qualities])
        vocabulary = _mean([q.vocabulary_sophistication for q in qualities])
        show_tell = self.show_tell_balance_score(qualities)
        rhythm = _mean([q.rhythm_score for q in qualities])
        overall = round(variety * 0.25 + vocabulary * 0.25 + show_tell * 0.25 + rhythm * 0.25)

        cliches = _union(q.cliches_detected for q in qualities)
        tropes = _union(q.tropes_detected for q in qualities)
        unique = _union(q.unique_elements for q in qualities)

        analysis = ProseQualityAnalysis(
            prose_qualities=qualities,
            overall_prose_score=clamp_score(overall),
            sentence_variety_score=variety,
            vocabulary_sophistication_score=vocabulary,
            show_tell_balance_score=show_tell,
            rhythm_score=rhythm,
            cliches_detected=cliches,
            tropes_detected=tropes,
            unique_elements=unique,
        )
        analysis.recommendations = self._recommendations(analysis)

        logger.info("Prose analysis complete: overall_score={}", analysis.overall_prose_score)
        return analysis

    def _recommendations(self, analysis: ProseQualityAnalysis) -> List[str]:
        recs: List[str] = []
        overall = analysis.overall_prose_score

        if overall < 60:
            recs.append(
                f"Overall prose quality score is {overall:.0f}/100. "
                "Focus on sentence variety, vocabulary, and show vs tell balance."
            )

        if analysis.cliches_detected:
            shown = analysis.cliches_detected[: self.config.max_recommended_cliches]
            recs.append(
                f"Clichés detected: {', '.join(shown)}. "
                "Consider replacing with original expressions."
            )

        avg_show = _mean([q.show_tell_balance for q in analysis.prose_qualities])
        ideal = self.config.ideal_show_percentage
        if avg_show < 60:
            recs.append(
                f"Show vs tell balance is {avg_show:.0f}% show (ideal: {ideal:.0f}%). "
                "Consider showing more through action and sensory details."
            )
        elif avg_show > 85:
            recs.append(
                f"Show vs tell balance is {avg_show:.0f}% show. "
                "Consider using some telling for efficiency."
            )

        if analysis.sentence_variety_score < 60:
            recs.append(
                f"Sentence variety score is {analysis.sentence_variety_score:.0f}/100. "
                "Vary sentence lengths for better rhythm."
            )

        if analysis.vocabulary_sophistication_score < 50:
            recs.append(
                f"Vocabulary sophistication is {analysis.vocabulary_sophistication_score:.0f}/100. "
                "Consider using more varied and precise word choices."
            )

        if overall >= 75 and not analysis.cliches_detected and len(analysis.unique_elements) >= 3:
            recs.append("Excellent prose quality! Good variety, original language, and strong balance.")

        return recs


def _union(groups) -> List[str]:
    merged: List[str] = []
    for group in groups:
        for item in group:
            if item not in merged:
                merged.append(item)
    return merged


def analyze_prose_quality(
    state: NovelState,
    config: Optional[ProseConfig] = None,
    style: Optional[StyleConfig] = None,
) -> ProseQualityAnalysis:
    """Convenience wrapper around :class:`ProseQualityAnalyzer`."""
    return ProseQualityAnalyzer(config, style).analyze(state)

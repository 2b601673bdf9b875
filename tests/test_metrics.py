"""Tests for novel_factory.evaluation.metrics."""

import pytest

from novel_factory.evaluation.metrics import (
    average_sentence_length,
    calculate_flesch_kincaid,
    clamp_score,
    estimate_syllables,
    sentence_lengths,
    split_fragments,
    split_sentences,
    split_words,
    std_dev,
    variance,
)


# ---------------------------------------------------------------------------
# Sentence and word splitting
# ---------------------------------------------------------------------------


class TestSplitSentences:
    def test_splits_on_terminators(self):
        """Each of `.`, `!` and `?` ends a sentence."""
        assert split_sentences("One. Two! Three?") == ["One", "Two", "Three"]

    def test_runs_of_terminators_count_once(self):
        """Runs like ?! and ... end one sentence, not several."""
        assert split_sentences("What?! Really...") == ["What", "Really"]

    def test_trailing_fragment_is_kept(self):
        """Words after the last terminator form a final sentence."""
        assert split_sentences("Hello. world") == ["Hello", "world"]

    def test_no_terminator_yields_nothing(self):
        """Text without punctuation has no measurable sentences."""
        assert split_sentences("no punctuation at all") == []

    def test_empty_text(self):
        """Empty text -> no sentences."""
        assert split_sentences("") == []


class TestSplitFragments:
    def test_unpunctuated_text_is_one_fragment(self):
        """Fragments do not need terminal punctuation."""
        assert split_fragments("no punctuation at all") == ["no punctuation at all"]

    def test_none_is_empty(self):
        """None is treated as empty text."""
        assert split_fragments(None) == []


def test_split_words_discards_empty_tokens():
    assert split_words("  a   b\tc\n") == ["a", "b", "c"]
    assert split_words("") == []


def test_sentence_lengths():
    assert sentence_lengths(["one two", "three"]) == [2, 1]


# ---------------------------------------------------------------------------
# Syllables and statistics
# ---------------------------------------------------------------------------


class TestEstimateSyllables:
    @pytest.mark.parametrize("word,expected", [
        ("cat", 1),
        ("cake", 1),
        ("the", 1),
        ("beautiful", 3),
        ("Cultivation!", 4),
    ])
    def test_vowel_groups(self, word, expected):
        """Syllables are counted as vowel groups minus a silent e."""
        assert estimate_syllables(word) == expected

    def test_never_below_one(self):
        """Words without vowels still count one syllable."""
        assert estimate_syllables("") == 1
        assert estimate_syllables("123") == 1


class TestVariance:
    def test_population_variance(self):
        """Variance divides by n, not n - 1."""
        values = [2, 4, 4, 4, 5, 5, 7, 9]
        assert variance(values) == pytest.approx(4.0)
        assert std_dev(values) == pytest.approx(2.0)

    def test_empty(self):
        """No values -> 0.0 rather than a division error."""
        assert variance([]) == 0.0
        assert std_dev([]) == 0.0


def test_average_sentence_length():
    assert average_sentence_length("One two three. Four five six.") == pytest.approx(3.0)
    assert average_sentence_length("no sentences here") == 0.0


# ---------------------------------------------------------------------------
# Readability
# ---------------------------------------------------------------------------


class TestFleschKincaid:
    def test_known_value(self):
        """Hand-computed reading ease for a three-word sentence."""
        # 3 words, 1 sentence, 3 syllables
        assert calculate_flesch_kincaid("The cat sat.") == pytest.approx(119.19)

    def test_raw_value_is_not_clamped(self):
        """Very easy text can score above 100."""
        assert calculate_flesch_kincaid("The cat sat.") > 100

    def test_no_sentences(self):
        """Empty or unpunctuated text -> 0."""
        assert calculate_flesch_kincaid("") == 0
        assert calculate_flesch_kincaid("words but no terminator") == 0


def test_clamp_score():
    assert clamp_score(150) == 100
    assert clamp_score(-5) == 0
    assert clamp_score(42.5) == 42.5

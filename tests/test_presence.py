"""Tests for character presence tracking."""

from novel_factory.config import ContinuityConfig
from novel_factory.continuity.presence import (
    detect_missing_characters,
    get_characters_who_should_appear,
    track_character_presence,
)
from novel_factory.models import Character

ACTIVE = "Lin Mei was pursuing the thief."


def _chapters(chapter_factory, active_in, total, text=ACTIVE):
    return [chapter_factory(n, text if n in active_in else "Rain fell on the quiet village.") for n in range(1, total + 1)]


class TestTrackCharacterPresence:
    def test_appearance_history(self, chapter_factory, side_character):
        """Appearances, gap since the last one and activity level are recorded."""
        chapters = _chapters(chapter_factory, {1, 2, 3}, 6)
        presence = track_character_presence(chapters, [side_character])[0]

        assert presence.chapters_appeared == [1, 2, 3]
        assert presence.last_appearance_chapter == 3
        assert presence.chapters_since_last_appearance == 3
        assert presence.recent_activity_level == "medium"
        assert presence.was_active_recently
        assert "pursuing" in presence.activity_context

    def test_never_appeared(self, chapter_factory, side_character):
        """A character never named counts every chapter as absent."""
        presence = track_character_presence(_chapters(chapter_factory, set(), 4), [side_character])[0]
        assert presence.last_appearance_chapter is None
        assert presence.chapters_since_last_appearance == 4
        assert presence.recent_activity_level == "none"
        assert not presence.was_active_recently

    def test_activity_requires_keyword(self, chapter_factory, side_character):
        """Being named without an activity keyword is not activity."""
        chapters = _chapters(chapter_factory, {1}, 4, text="Lin Mei smiled.")
        presence = track_character_presence(chapters, [side_character])[0]
        assert presence.activity_context is None
        assert not presence.was_active_recently


class TestDetectMissingCharacters:
    def test_warning_level(self, chapter_factory, side_character):
        """Three chapters absent after activity -> warning."""
        warnings = detect_missing_characters(_chapters(chapter_factory, {1, 2, 3}, 6), [side_character])

        assert len(warnings) == 1
        warning = warnings[0]
        assert warning.warning_level == "warning"
        assert warning.last_appearance_chapter == 3
        assert warning.message.startswith('Character "Lin Mei" was active 3 chapter(s) ago but hasn\'t appeared since. Last activity:')
        assert warning.suggestion == 'Consider including "Lin Mei" in the next chapter to follow up on their storyline.'

    def test_critical_at_limit(self, chapter_factory, side_character):
        """Five chapters absent after activity -> critical."""
        warnings = detect_missing_characters(_chapters(chapter_factory, {1}, 6), [side_character])
        assert warnings[0].warning_level == "critical"
        assert warnings[0].chapters_since_last_appearance == 5

    def test_info_when_recent(self, chapter_factory, side_character):
        """A short lookback window downgrades the gap to info."""
        config = ContinuityConfig(check_last_chapters=1)
        warnings = detect_missing_characters(_chapters(chapter_factory, {1, 2}, 4), [side_character], config)
        assert warnings[0].warning_level == "info"

    def test_protagonist_skipped(self, chapter_factory):
        """The protagonist is never reported missing."""
        hero = Character(id="hero", name="Lin Mei", is_protagonist=True)
        assert detect_missing_characters(_chapters(chapter_factory, {1, 2, 3}, 6), [hero]) == []

    def test_present_in_last_chapters(self, chapter_factory, side_character):
        """A character in the recent chapters is not missing."""
        chapters = _chapters(chapter_factory, {1, 2, 3, 6}, 6)
        assert detect_missing_characters(chapters, [side_character]) == []

    def test_recurring_character_notice(self, chapter_factory, side_character):
        """A recurring but inactive character gets an info notice."""
        chapters = _chapters(chapter_factory, {1, 2, 3}, 7, text="Lin Mei smiled.")
        warnings = detect_missing_characters(chapters, [side_character])

        assert len(warnings) == 1
        assert warnings[0].warning_level == "info"
        assert warnings[0].message == (
            "Recurring character \"Lin Mei\" appeared in 3 chapter(s) but hasn't appeared in the last 4 chapter(s)."
        )

    def test_critical_sorted_first(self, chapter_factory):
        """Critical warnings come before lesser ones."""
        early = Character(id="early", name="Wu Zhen")
        late = Character(id="late", name="Lin Mei")
        chapters = [
            chapter_factory(1, "Wu Zhen was tracking the envoy."),
            chapter_factory(2),
            chapter_factory(3, ACTIVE),
            chapter_factory(4),
            chapter_factory(5),
            chapter_factory(6),
        ]
        warnings = detect_missing_characters(chapters, [late, early])
        assert [w.character_id for w in warnings] == ["early", "late"]
        assert [w.warning_level for w in warnings] == ["critical", "warning"]


def test_characters_who_should_appear(state_factory, chapter_factory, side_character, protagonist):
    state = state_factory(_chapters(chapter_factory, {1, 2, 3}, 6), [protagonist, side_character])
    assert [c.id for c in get_characters_who_should_appear(state)] == ["mei"]

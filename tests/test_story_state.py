"""Tests for plot thread and character state extraction."""

from novel_factory.config import ContinuityConfig
from novel_factory.continuity.story_state import (
    build_story_state_summary,
    extract_active_plot_threads,
    extract_character_states,
    format_story_state_summary,
)
from novel_factory.models import Character, LogicAudit, StoryStateSummary


# ---------------------------------------------------------------------------
# Plot threads
# ---------------------------------------------------------------------------


class TestExtractActivePlotThreads:
    def test_arc_and_checklist_threads(self, chapter_factory, active_arc):
        """An active arc yields its own thread plus one per open checklist item."""
        threads = extract_active_plot_threads([chapter_factory(1)], [active_arc])
        by_id = {t.id: t for t in threads}

        assert set(by_id) == {"arc-a1", "checklist-i1"}
        checklist = by_id["checklist-i1"]
        assert checklist.status == "pending"
        assert checklist.priority == "high"
        assert checklist.thread_type == "checklist"
        assert checklist.related_arc_id == "a1"
        assert checklist.introduced_in_chapter == 2
        # high priority first
        assert threads[0].id == "checklist-i1"

    def test_completed_arcs_are_ignored(self, chapter_factory, active_arc):
        """Completed arcs contribute no threads."""
        active_arc.status = "completed"
        assert extract_active_plot_threads([chapter_factory(1)], [active_arc]) == []

    def test_does_not_mutate_arcs(self, chapter_factory, active_arc):
        """Extraction leaves the input arcs unchanged."""
        before = active_arc.model_dump()
        extract_active_plot_threads([chapter_factory(1)], [active_arc])
        assert active_arc.model_dump() == before

    def test_meeting_threads(self, chapter_factory):
        """Meeting language becomes high-priority pending threads with context."""
        chapter = chapter_factory(1, "Chen told Lan that we will meet at the Jade Pavilion.")
        threads = extract_active_plot_threads([chapter], [])

        meetings = [t for t in threads if t.thread_type == "meeting"]
        assert [t.id for t in meetings] == ["meeting-c1-0", "meeting-c1-1"]
        assert all(t.priority == "high" and t.status == "pending" for t in meetings)
        assert meetings[0].description.startswith("Meeting/arrangement: ")
        assert "Jade Pavilion" in meetings[0].description

    def test_conflict_from_but_audit(self, chapter_factory, but_audit):
        """A "But" logic audit leaves an open conflict thread."""
        threads = extract_active_plot_threads([chapter_factory(3, audit=but_audit)], [])
        conflict = next(t for t in threads if t.id == "conflict-c3")
        assert conflict.description == "The sect is still hostile"
        assert conflict.introduced_in_chapter == 3

    def test_questions_from_recent_chapters(self, chapter_factory):
        """Only questions in the last five chapters become threads."""
        chapters = [chapter_factory(1, "Why did the elder lie?")]
        chapters += [chapter_factory(n) for n in range(2, 8)]
        threads = extract_active_plot_threads(chapters, [])
        # chapter 1 is outside the five-chapter window
        assert not any(t.thread_type == "question" for t in threads)

        chapters[-1] = chapter_factory(7, "Why did the elder lie?")
        threads = extract_active_plot_threads(chapters, [])
        assert [t.id for t in threads if t.thread_type == "question"] == ["question-c7-0"]

    def test_lapsed_character_arc(self, chapter_factory, side_character):
        """A character who went quiet after being active becomes a thread."""
        chapters = [chapter_factory(n, "Lin Mei was pursuing the thief.") for n in range(1, 4)]
        chapters += [chapter_factory(n) for n in range(4, 7)]
        threads = extract_active_plot_threads(chapters, [], [side_character])

        arc = next(t for t in threads if t.id == "character-arc-mei")
        assert arc.thread_type == "character_arc"
        assert arc.introduced_in_chapter == 3
        assert arc.description.startswith('Character "Lin Mei" was active 3 chapter(s) ago')

    def test_limit_and_order(self, chapter_factory, active_arc, but_audit):
        """The thread list is capped, highest priority first."""
        chapters = [chapter_factory(1, audit=but_audit)]
        threads = extract_active_plot_threads(chapters, [active_arc], config=ContinuityConfig(max_plot_threads=2))
        assert len(threads) == 2
        assert threads[0].priority == "high"

    def test_unsorted_input(self, chapter_factory):
        """Chapters are ordered by number before scanning."""
        chapters = [chapter_factory(n) for n in (3, 1, 2)]
        chapters[0] = chapter_factory(3, "How will they escape?")
        threads = extract_active_plot_threads(chapters, [])
        assert threads[0].introduced_in_chapter == 3


# ---------------------------------------------------------------------------
# Character states
# ---------------------------------------------------------------------------


class TestExtractCharacterStates:
    CONTENT = (
        "Lin Mei stood in the Azure Sect courtyard, furious at the elders. "
        "Lin Mei decided to leave the sect before dawn."
    )

    def test_absent_character_gets_bare_state(self, chapter_factory, side_character):
        """A character absent from recent chapters gets only id and name."""
        states = extract_character_states([chapter_factory(1)], [side_character])
        assert states[0].character_name == "Lin Mei"
        assert states[0].current_location is None
        assert states[0].recent_actions == []

    def test_inferred_state(self, chapter_factory, side_character):
        """Location, emotion, actions, situation and goals are inferred from text."""
        states = extract_character_states([chapter_factory(1, self.CONTENT)], [side_character])
        state = states[0]

        assert state.current_location == "in the Azure"
        assert state.emotional_state == "angry"
        assert state.recent_actions == ["Lin Mei decided to leave the"]
        assert state.current_situation.startswith("Lin Mei stood")
        assert state.active_goals == ["She must find her brother"]

    def test_situation_falls_back_to_summary(self, chapter_factory, side_character):
        """Not in the last paragraph -> situation comes from the chapter summary."""
        chapter = chapter_factory(1, "Lin Mei waited.\n\nThe bell rang.", summary="Lin Mei waits for news.")
        states = extract_character_states([chapter], [side_character])
        assert states[0].current_situation == "Lin Mei waits for news."

    def test_blank_name(self, chapter_factory):
        """A whitespace-only name never matches text, so the state stays bare."""
        states = extract_character_states([chapter_factory(1, self.CONTENT)], [Character(id="x", name=" ")])
        assert states[0].current_location is None
        assert states[0].recent_actions == []
        assert states[0].current_situation is None

    def test_no_input(self, side_character):
        """No chapters -> no states."""
        assert extract_character_states([], [side_character]) == []


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class TestStoryStateSummary:
    def test_locations_questions_and_time(self, state_factory, chapter_factory):
        """Locations, open questions and temporal context are collected."""
        audit = LogicAudit(resulting_value="He left immediately")
        chapters = [
            chapter_factory(1, "They reached the sect gates. Who sent the assassin?"),
            chapter_factory(2, "Nothing stirred.", audit=audit),
        ]
        summary = build_story_state_summary(state_factory(chapters))

        assert summary.current_locations == ["sect gates"]
        assert summary.unresolved_questions == ["Who sent the assassin?"]
        assert summary.temporal_context == "Immediate aftermath"

    def test_default_temporal_context(self, state_factory, chapter_factory):
        """No time cue -> "Recent events"."""
        summary = build_story_state_summary(state_factory([chapter_factory(1)]))
        assert summary.temporal_context == "Recent events"

    def test_empty_state(self, state_factory):
        """No chapters -> an empty summary."""
        summary = build_story_state_summary(state_factory([]))
        assert summary == StoryStateSummary()


class TestFormatStoryStateSummary:
    def test_sections(self, state_factory, chapter_factory, side_character, active_arc):
        """Formatted text lists character states, then threads, then time."""
        chapters = [chapter_factory(1, TestExtractCharacterStates.CONTENT)]
        summary = build_story_state_summary(state_factory(chapters, [side_character], [active_arc]))
        text = format_story_state_summary(summary)

        assert text.startswith("CHARACTER STATES:\n- Lin Mei | Location: in the Azure | Emotional State: angry")
        assert "\nACTIVE PLOT THREADS:\n- Win the spirit herb (Introduced Ch 2)" in text
        assert "TEMPORAL CONTEXT: Recent events" in text

    def test_empty_summary(self):
        """An empty summary formats to the temporal line only."""
        assert format_story_state_summary(StoryStateSummary()).strip() == "TEMPORAL CONTEXT: Recent events"

"""Tests for the open plot point inventory."""

from novel_factory.continuity import get_open_plot_points
from novel_factory.models import StoryThread


def filler_chapters(factory, count):
    return [factory(n) for n in range(1, count + 1)]


class TestGetOpenPlotPoints:
    def test_empty_state(self, state_factory):
        """No chapters -> empty buckets and a placeholder context."""
        context = get_open_plot_points(state_factory([]))

        assert context.high_priority == []
        assert context.recommendations == []
        assert context.formatted_context.endswith("No open plot points detected.")

    def test_critical_story_thread(self, state_factory, chapter_factory):
        """An open critical thread is high priority; resolved threads are skipped."""
        threads = [
            StoryThread(
                id="t1",
                title="The stolen sword",
                type="quest",
                priority="critical",
                introduced_chapter=1,
                related_entity_id="abcdef123456",
                related_entity_type="character",
            ),
            StoryThread(id="t2", title="Old feud", status="resolved", priority="critical"),
        ]
        state = state_factory(filler_chapters(chapter_factory, 3), story_threads=threads)
        context = get_open_plot_points(state)

        [point] = context.high_priority
        assert point.id == "t1"
        assert point.type == "pursuit"
        assert point.urgency == "must address"
        assert point.age == 2
        assert point.related_entity.name == "Entity abcdef12"
        assert context.recommendations == [
            "Address at least 1 critical/high-priority plot points this chapter"
        ]
        assert "1. [PURSUIT] The stolen sword" in context.formatted_context
        assert "   - Related to: character - Entity abcdef12" in context.formatted_context

    def test_checklist_listed_once_with_arc(self, state_factory, chapter_factory, active_arc):
        """Checklist items appear under their arc id only, not duplicated."""
        state = state_factory(filler_chapters(chapter_factory, 6), arcs=[active_arc])
        context = get_open_plot_points(state)

        ids = [p.id for p in context.high_priority + context.medium_priority]
        assert "checklist-a1-i1" in ids
        assert "checklist-i1" not in ids

        [item] = context.high_priority
        assert item.type == "commitment"
        assert item.age == 4
        assert item.urgency == "should address"
        assert item.related_entity.type == "arc"
        assert item.related_entity.name == "Sect Trials"

        [arc_point] = context.medium_priority
        assert arc_point.id == "arc-a1"
        assert arc_point.urgency == "optional"
        assert context.recommendations == ["Consider addressing 1 medium-priority plot points"]

    def test_unanswered_questions(self, state_factory, chapter_factory):
        """Old questions rank medium, questions from the latest chapter rank low."""
        chapters = [chapter_factory(1, "Where did the elder hide the jade slip?")]
        chapters += [chapter_factory(n) for n in range(2, 8)]
        chapters.append(chapter_factory(8, "Rain fell. Was it a trap?"))
        context = get_open_plot_points(state_factory(chapters))

        [old] = context.medium_priority
        assert old.id == "open-question-c1-0"
        assert old.description == "Where did the elder hide the jade slip?"
        assert old.age == 7
        assert old.urgency == "optional"

        [fresh] = context.low_priority
        assert fresh.description == "Was it a trap?"
        assert fresh.age == 0

        formatted = context.formatted_context
        assert "1. [QUESTION] Where did the elder hide the jade slip? (Ch 1, 7 chapters ago)" in formatted
        assert "LOW PRIORITY:\n1. [QUESTION] Was it a trap? (Ch 8)" in formatted
        assert "RECOMMENDATIONS:" not in formatted

    def test_buckets_are_capped(self, state_factory, chapter_factory):
        """Buckets hold at most ten points; the context lists at most eight."""
        threads = [
            StoryThread(id=f"t{i}", title=f"Thread {i}", priority="critical", introduced_chapter=1)
            for i in range(12)
        ]
        state = state_factory(filler_chapters(chapter_factory, 2), story_threads=threads)
        context = get_open_plot_points(state)

        assert len(context.high_priority) == 10
        assert context.recommendations[0] == (
            "Address at least 2 critical/high-priority plot points this chapter"
        )
        assert "Warning: 12 high-priority plot points pending - consider resolving some soon" in (
            context.recommendations
        )
        assert "8. [CONFLICT]" in context.formatted_context
        assert "9. [CONFLICT]" not in context.formatted_context

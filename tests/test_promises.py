"""Tests for promise extraction and tracking."""

from novel_factory.config import ContinuityConfig
from novel_factory.continuity.promises import (
    extract_promises_from_chapter,
    get_high_priority_pending_promises,
    get_overdue_promises,
    involved_characters,
    track_promises,
)

MEETING = "Chen told Lan they will meet at dawn."
PROTECT = "He promised to protect the village."
INVESTIGATE = "She will investigate the tomb."


class TestExtractPromises:
    def test_meeting_arrangements(self, chapter_factory):
        """Two meeting phrasings in one sentence -> two meeting promises with participants."""
        promises = extract_promises_from_chapter(chapter_factory(1, MEETING))

        assert [p.id for p in promises] == ["meeting-c1-0", "meeting-c1-1"]
        first = promises[0]
        assert first.type == "meeting"
        assert first.priority == "high"
        assert first.description == "Meeting arrangement: they will meet"
        assert first.involved_characters == ["Chen", "Lan"]
        assert first.introduced_in_chapter_id == "c1"

    def test_promises_and_intentions(self, chapter_factory):
        """Explicit promises, plans and wishes are typed and prioritised separately."""
        text = f"{PROTECT} {INVESTIGATE} He wanted to see the master."
        promises = extract_promises_from_chapter(chapter_factory(2, text))
        by_id = {p.id: p for p in promises}

        assert by_id["promise-c2-0"].description == "Character promise: promised to protect"
        assert by_id["promise-c2-0"].priority == "high"
        assert by_id["promise-c2-1"].description == "Character promise: will investigate"
        assert by_id["promise-c2-1"].priority == "medium"
        assert by_id["intention-c2-0"].description == "Character intention: wanted to see"
        assert by_id["promise-c2-0"].involved_characters == []

    def test_nothing_to_extract(self, chapter_factory):
        """Plain description yields no promises."""
        assert extract_promises_from_chapter(chapter_factory(1)) == []

    def test_involved_characters_filters_common_words(self):
        """Capitalised stopwords and short names are not characters; at most three are kept."""
        assert involved_characters("The Elder and Chen. Then Lan, Wu, Bai and Gu") == ["Elder", "Chen", "Lan"]


class TestTrackPromises:
    def test_meeting_fulfilled_when_everyone_meets(self, chapter_factory):
        """A later "met" naming every participant fulfils the meeting."""
        chapters = [chapter_factory(1, MEETING), chapter_factory(2, "Chen met Lan at the gate.")]
        promises = track_promises(chapters, 2)
        assert {p.status for p in promises} == {"fulfilled"}

    def test_meeting_needs_all_participants(self, chapter_factory):
        """A meeting missing a participant stays pending."""
        chapters = [chapter_factory(1, MEETING), chapter_factory(2, "Chen met a stranger.")]
        assert {p.status for p in track_promises(chapters, 2)} == {"pending"}

    def test_promise_fulfilled_by_completion(self, chapter_factory):
        """A key term plus a completion word fulfils a promise."""
        chapters = [
            chapter_factory(1, PROTECT),
            chapter_factory(2, "The village was protected and the task completed."),
        ]
        assert track_promises(chapters, 2)[0].status == "fulfilled"

    def test_forgotten_after_five_chapters(self, chapter_factory):
        """More than five chapters without follow-up -> forgotten."""
        chapters = [chapter_factory(1, PROTECT)] + [chapter_factory(n) for n in range(2, 8)]
        promise = track_promises(chapters, 7)[0]
        assert promise.chapters_since_introduction == 6
        assert promise.status == "forgotten"

    def test_pending_while_young(self, chapter_factory):
        """A recent promise stays pending."""
        chapters = [chapter_factory(1, PROTECT), chapter_factory(2)]
        promise = track_promises(chapters, 3)[0]
        assert promise.chapters_since_introduction == 2
        assert promise.status == "pending"


class TestOverduePromises:
    def test_threshold_and_ordering(self, state_factory, chapter_factory):
        """Overdue promises sort by priority, then by chapters overdue."""
        chapters = [
            chapter_factory(1, PROTECT),
            chapter_factory(2, INVESTIGATE),
            chapter_factory(3),
            chapter_factory(4),
        ]
        overdue = get_overdue_promises(state_factory(chapters), 5)

        assert [p.id for p in overdue] == ["promise-c1-0", "promise-c2-0"]
        assert overdue[0].is_overdue
        assert overdue[0].overdue_by_chapters == 1
        assert overdue[1].overdue_by_chapters == 0

    def test_custom_threshold(self, state_factory, chapter_factory):
        """A lower overdue threshold flags promises sooner."""
        state = state_factory([chapter_factory(1, PROTECT), chapter_factory(2)])
        assert get_overdue_promises(state, 3) == []
        assert len(get_overdue_promises(state, 3, ContinuityConfig(overdue_threshold=2))) == 1

    def test_high_priority_pending(self, state_factory, chapter_factory):
        """Only high-priority pending promises are returned."""
        state = state_factory([chapter_factory(1, PROTECT), chapter_factory(2, INVESTIGATE)])
        pending = get_high_priority_pending_promises(state, 3)
        assert [p.id for p in pending] == ["promise-c1-0"]

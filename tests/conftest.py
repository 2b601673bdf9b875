"""Shared fixtures for the analytics tests."""

import pytest

from novel_factory.models import Arc, ArcChecklistItem, Chapter, Character, LogicAudit, NovelState

FILLER = "Rain fell on the quiet village."


def make_chapter(number, content=FILLER, summary="", audit=None, chapter_id=None):
    return Chapter(
        id=chapter_id or f"c{number}",
        number=number,
        title=f"Chapter {number}",
        content=content,
        summary=summary,
        logic_audit=audit,
    )


def make_state(chapters, characters=None, arcs=None, story_threads=None):
    return NovelState(
        id="novel-1",
        title="Azure Sky",
        genre="xianxia",
        chapters=chapters,
        character_codex=characters or [],
        plot_ledger=arcs or [],
        story_threads=story_threads or [],
    )


@pytest.fixture
def chapter_factory():
    return make_chapter


@pytest.fixture
def state_factory():
    return make_state


@pytest.fixture
def protagonist():
    return Character(id="hero", name="Han Li", is_protagonist=True)


@pytest.fixture
def side_character():
    return Character(id="mei", name="Lin Mei", goals="She must find her brother.")


@pytest.fixture
def active_arc():
    return Arc(
        id="a1",
        title="Sect Trials",
        description="Han Li competes in the outer sect trials",
        status="active",
        started_at_chapter=1,
        checklist=[
            ArcChecklistItem(id="i1", label="Win the spirit herb", source_chapter_number=2),
            ArcChecklistItem(id="i2", label="Meet the elder", completed=True, completed_at=3),
        ],
    )


@pytest.fixture
def but_audit():
    return LogicAudit(
        starting_value="Calm",
        the_friction="A rival sect attacks",
        the_choice="Han Li flees",
        resulting_value="The sect is still hostile",
        causality_type="But",
    )

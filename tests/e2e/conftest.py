"""Shared fixtures for end-to-end tests."""

import json
import pytest

from novel_factory.models import Arc, ArcChecklistItem, Chapter, Character, LogicAudit, NovelState


SAMPLE_CHAPTERS = [
    (
        "Arrival",
        "Han Li climbed the stone steps of the Azure Cloud Sect at dawn. The outer disciples "
        "stared at his patched robes. He felt the weight of their contempt, yet he kept walking. "
        "Spirit qi drifted through the courtyard like morning mist.",
    ),
    (
        "The Outer Court",
        "Han Li trained beneath the old pine until his palms bled. Elder Wu watched from the "
        "pavilion and said nothing. Why did the elder choose him? The question burned in his chest.",
    ),
    (
        "Rivals",
        "Zhao Feng blocked the path to the library. \"Trash like you has no place here,\" he sneered. "
        "Han Li clenched his fists. The crowd gathered, eager for blood.",
    ),
    (
        "The First Trial",
        "Suddenly the ground shook. A beast from the northern mountain had broken through the wards. "
        "Han Li drew his wooden sword and stepped forward while the others fled.",
    ),
    (
        "Shadows",
        "Lin Mei was tracking the thief across the rooftops of the city. Elder Wu promised to protect "
        "the outer disciples until the wards were restored. Han Li cultivated through the night.",
    ),
    (
        "Breakthrough",
        "Han Li sat in the cave as qi roared through his meridians. His body trembled. The bottleneck "
        "shattered and a new clarity filled his mind.",
    ),
    (
        "Arrangements",
        "Chen told Lan they will meet at the Jade Pavilion. Han Li overheard from the stairway and "
        "frowned. Something in their voices felt wrong.",
    ),
    (
        "Quiet Before the Storm",
        "Rain fell over the sect for three days. Han Li polished his sword and waited for the "
        "tournament bells.",
    ),
]


def build_sample_state() -> NovelState:
    chapters = [
        Chapter(id=f"ch{n}", number=n, title=title, content=content)
        for n, (title, content) in enumerate(SAMPLE_CHAPTERS, 1)
    ]
    chapters[3].logic_audit = LogicAudit(
        starting_value="Peaceful training",
        the_friction="A beast breaks the wards",
        the_choice="Han Li fights",
        resulting_value="The sect is still in danger",
        causality_type="But",
    )
    return NovelState(
        id="azure-sky",
        title="Azure Sky",
        genre="xianxia",
        chapters=chapters,
        character_codex=[
            Character(id="hero", name="Han Li", is_protagonist=True, goals="He must reach the inner sect."),
            Character(id="mei", name="Lin Mei"),
            Character(id="wu", name="Elder Wu"),
        ],
        plot_ledger=[
            Arc(
                id="trials",
                title="Outer Sect Trials",
                description="Han Li fights for a place in the sect",
                started_at_chapter=1,
                checklist=[
                    ArcChecklistItem(id="herb", label="Claim the spirit herb", source_chapter_number=4),
                ],
            )
        ],
    )


@pytest.fixture
def sample_state():
    return build_sample_state()


@pytest.fixture
def sample_state_file(tmp_path, sample_state):
    path = tmp_path / "state.json"
    path.write_text(sample_state.model_dump_json(by_alias=True), encoding="utf-8")
    return path


@pytest.fixture
def editorial_reports():
    """Three editorial reports; time-skip issues at chapter start recur in each."""
    reports = []
    for number in (6, 7, 8):
        reports.append([
            {"id": f"r{number}-1", "type": "time_skip", "location": "start", "chapter_number": number},
            {"id": f"r{number}-2", "type": "time_skip", "location": "start", "chapter_number": number},
            {"id": f"r{number}-3", "type": "grammar", "location": "middle", "chapter_number": number},
        ])
    return reports


@pytest.fixture
def issues_file(tmp_path, editorial_reports):
    path = tmp_path / "issues.json"
    path.write_text(json.dumps({"issues": editorial_reports[0]}), encoding="utf-8")
    return path

"""Novel state models consumed by the analyzers.

Field names are snake_case in Python; the camelCase names used by the
persisted novel state (``logicAudit``, ``characterCodex``, ...) are
accepted as aliases so state exported by the writing app loads as-is.
"""

import json
from pathlib import Path
from typing import List, Literal, Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from ..exceptions import NovelStateError


class StateModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LogicAudit(StateModel):
    """Causal audit of a chapter: value -> friction -> choice -> new value."""

    starting_value: str = ""
    the_friction: str = ""
    the_choice: str = ""
    resulting_value: str = ""
    causality_type: Literal["Therefore", "But"] = "Therefore"


class Chapter(StateModel):
    id: str
    number: int
    title: str = ""
    content: str = ""
    summary: str = ""
    logic_audit: Optional[LogicAudit] = None

    @property
    def full_text(self) -> str:
        return f"{self.content} {self.summary}"


class Character(StateModel):
    id: str
    name: str
    is_protagonist: bool = False
    notes: str = ""
    goals: str = ""
    personality: str = ""
    current_cultivation: str = ""
    status: Literal["Alive", "Deceased", "Unknown"] = "Alive"


class ArcChecklistItem(StateModel):
    id: str
    label: str
    completed: bool = False
    completed_at: Optional[int] = None
    source_chapter_number: Optional[int] = None


class Arc(StateModel):
    id: str
    title: str
    description: str = ""
    status: Literal["active", "completed"] = "active"
    started_at_chapter: Optional[int] = None
    ended_at_chapter: Optional[int] = None
    target_chapters: Optional[int] = None
    checklist: List[ArcChecklistItem] = Field(default_factory=list)


class StoryThread(StateModel):
    """A tracked storyline maintained by the writing app."""

    id: str
    title: str
    type: str = "conflict"
    status: Literal["active", "paused", "resolved", "abandoned"] = "active"
    priority: Literal["critical", "high", "medium", "low"] = "medium"
    description: str = ""
    introduced_chapter: int = 1
    last_updated_chapter: Optional[int] = None
    related_entity_id: Optional[str] = None
    related_entity_type: Optional[str] = None


class NovelState(StateModel):
    id: str = ""
    title: str = ""
    genre: str = ""
    chapters: List[Chapter] = Field(default_factory=list)
    character_codex: List[Character] = Field(default_factory=list)
    plot_ledger: List[Arc] = Field(default_factory=list)
    story_threads: List[StoryThread] = Field(default_factory=list)

    def sorted_chapters(self) -> List[Chapter]:
        return sorted(self.chapters, key=lambda c: c.number)

    def protagonist(self) -> Optional[Character]:
        for character in self.character_codex:
            if character.is_protagonist:
                return character
        return None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "NovelState":
        """Load a novel state snapshot from a JSON or YAML file.

        Raises:
            NovelStateError: If the file cannot be read or parsed, or the
                data does not validate.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise NovelStateError(f"Cannot read novel state {path}: {e}") from e

        try:
            state = cls.model_validate(data or {})
        except ValidationError as e:
            raise NovelStateError(f"Invalid novel state {path}: {e}") from e

        logger.debug(
            "Loaded novel state '{}' ({} chapters, {} characters)",
            state.title, len(state.chapters), len(state.character_codex),
        )
        return state

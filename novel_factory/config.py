from pathlib import Path
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
import yaml

Genre = Literal["xianxia", "xuanhuan", "general"]


class ProseConfig(BaseModel):
    ideal_show_percentage: float = Field(default=70.0, ge=0, le=100)
    max_unique_elements: int = Field(default=10, gt=0)
    max_recommended_cliches: int = Field(default=5, gt=0)


class ContinuityConfig(BaseModel):
    recent_chapter_window: int = Field(default=5, gt=0)
    max_plot_threads: int = Field(default=15, gt=0)
    overdue_threshold: int = Field(default=3, gt=0)
    check_last_chapters: int = Field(default=2, gt=0)
    max_chapters_since_appearance: int = Field(default=5, gt=0)


class PatternConfig(BaseModel):
    threshold_count: int = Field(default=5, gt=0)
    auto_resolution_days: int = Field(default=30, gt=0)
    clean_chapters_for_resolution: int = Field(default=10, gt=0)
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    store_path: Optional[Path] = Field(default=None)


class StyleConfig(BaseModel):
    """Genre vocabulary selection for the cliché and trope detectors."""

    genre: Genre = Field(default="xianxia")
    extra_cliches: List[str] = Field(default_factory=list)
    extra_tropes: List[str] = Field(default_factory=list)


class AnalyticsConfig(BaseModel):
    prose: ProseConfig = Field(default_factory=ProseConfig)
    continuity: ContinuityConfig = Field(default_factory=ContinuityConfig)
    patterns: PatternConfig = Field(default_factory=PatternConfig)
    style: StyleConfig = Field(default_factory=StyleConfig)
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    @classmethod
    def from_yaml(cls, path: Path) -> "AnalyticsConfig":
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    def to_yaml(self, path: Path):
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

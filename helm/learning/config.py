from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from helm import ARGS_DIR
from helm.clock import DAY_NAMES


logger = logging.getLogger(__name__)

CONFIG_PATH = ARGS_DIR / "intelligence.yaml"


# =============================================================================
# PatternDetectionConfig (intelligence.pattern_detection)
# =============================================================================

class PatternDetectionConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    lookback_days: int = Field(default=30, ge=1)
    min_peak_count: int = Field(default=3, ge=1)
    min_focus_sample: int = Field(default=5, ge=1)
    struggling_rate: float = Field(default=0.3, ge=0.0, le=1.0)
    strong_rate: float = Field(default=0.7, ge=0.0, le=1.0)
    avoidance_age_days: int = Field(default=7, ge=1)
    avoidance_min_count: int = Field(default=2, ge=1)
    min_mood_day_count: int = Field(default=2, ge=1)
    min_energy_days: int = Field(default=3, ge=1)
    high_energy: float = Field(default=7.0, ge=1, le=10)
    low_energy: float = Field(default=4.0, ge=1, le=10)
    min_mood_days: int = Field(default=2, ge=1)
    productive_avg_tasks: float = Field(default=3.0, ge=0)
    unproductive_avg_tasks: float = Field(default=1.0, ge=0)
    min_entity_pairs: int = Field(default=2, ge=1)
    min_entity_mentions: int = Field(default=3, ge=1)
    max_entities: int = Field(default=10, ge=1)


# =============================================================================
# NudgeConfig (intelligence.nudges)
# =============================================================================

class NudgeConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    due_soon_days: int = Field(default=3, ge=0)
    stale_age_days: int = Field(default=7, ge=1)
    stale_min_count: int = Field(default=3, ge=1)
    breakdown_rate: float = Field(default=0.4, ge=0.0, le=1.0)


# =============================================================================
# JournalConfig (intelligence.journal)
# =============================================================================

class JournalConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    goal_days: list[str] = Field(default_factory=lambda: ["monday", "wednesday", "friday"])
    streak_cap: int = Field(default=365, ge=1)

    @field_validator("goal_days")
    @classmethod
    def _known_days(cls, value: list[str]) -> list[str]:
        days = [d.lower() for d in value]
        unknown = [d for d in days if d not in DAY_NAMES]
        if unknown:
            raise ValueError(f"Unknown day names: {unknown}")
        return days


class IntelligenceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    pattern_detection: PatternDetectionConfig = Field(default_factory=PatternDetectionConfig)
    nudges: NudgeConfig = Field(default_factory=NudgeConfig)
    journal: JournalConfig = Field(default_factory=JournalConfig)


def load_config(path: Path | None = None) -> IntelligenceConfig:
    """Load configuration from YAML file, falling back to defaults."""
    path = path or CONFIG_PATH
    if not path.exists():
        return IntelligenceConfig()

    with open(path) as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    return IntelligenceConfig.model_validate(raw.get("intelligence", {}))


__all__ = [
    "CONFIG_PATH",
    "IntelligenceConfig",
    "JournalConfig",
    "NudgeConfig",
    "PatternDetectionConfig",
    "load_config",
]

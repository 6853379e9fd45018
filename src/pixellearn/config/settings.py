"""Configuration model for PixelLearn."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class UsedQuestionScope(str, Enum):
    SESSION = "session"
    GLOBAL = "global"


class LevelingConfig(BaseModel):
    min_level: int = Field(default=1, ge=1)
    max_level: int = 65
    correct_to_level_up: int = Field(default=2, ge=1)

    @model_validator(mode="after")
    def _check_range(self) -> "LevelingConfig":
        if self.max_level < self.min_level:
            raise ValueError(
                f"max_level ({self.max_level}) must be >= min_level ({self.min_level})"
            )
        return self


class ContentConfig(BaseModel):
    content_dir: Optional[Path] = None
    questions_per_level: int = Field(default=100, ge=1)
    seed: Optional[int] = None


class Settings(BaseModel):
    leveling: LevelingConfig = Field(default_factory=LevelingConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    used_question_scope: UsedQuestionScope = UsedQuestionScope.GLOBAL
    data_dir: Path = Path.home() / ".pixellearn"
    log_level: str = "WARNING"

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        if config_path is None:
            # the file save() writes under an overridden data_dir
            data_dir = os.environ.get("PIXELLEARN_DATA_DIR")
            base = Path(data_dir) if data_dir else Path.home() / ".pixellearn"
            config_path = base / "config.yaml"
        data: dict = {}
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        if os.environ.get("PIXELLEARN_DATA_DIR"):
            data["data_dir"] = os.environ["PIXELLEARN_DATA_DIR"]
        if os.environ.get("PIXELLEARN_LOG_LEVEL"):
            data["log_level"] = os.environ["PIXELLEARN_LOG_LEVEL"]
        return cls(**data)

    def save(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.data_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False)

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
import yaml

class IncrementalConfig(BaseModel):
    min_start_percentage: float = Field(default=50, ge=0, le=100)
    enable_background_generation: bool = Field(default=True)
    background_task_delay: int = Field(default=1000, ge=0)  # milliseconds
    # Reserved: the background loop runs one task at a time.
    max_concurrent_tasks: int = Field(default=2, gt=0)
    enable_waiting_dialogues: bool = Field(default=True)
    retry_failed_segments: bool = Field(default=True)
    max_retry_attempts: int = Field(default=3, gt=0)
    min_extra_chars: int = Field(default=500, ge=0)

class SaveConfig(BaseModel):
    save_slot_count: int = Field(default=10, gt=0)
    enable_auto_save: bool = Field(default=True)
    auto_save_interval: int = Field(default=10, gt=0)
    enable_quick_save: bool = Field(default=True)
    storage_prefix: str = Field(default="paper_game_")
    storage_dir: Path = Field(default=Path("data/saves"))

class Config(BaseModel):
    incremental: IncrementalConfig = Field(default_factory=IncrementalConfig)
    saves: SaveConfig = Field(default_factory=SaveConfig)
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(mode="json"), f, default_flow_style=False, allow_unicode=True)

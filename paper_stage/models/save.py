"""Persisted game session state.

These are pydantic models so an instance serializes to a single JSON object
and datetimes come back as ``datetime`` when it is read again.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from .text import Language, MultiLanguageContent


class GameState(BaseModel):
    segment: str = ""
    scene: str = ""
    dialogue_index: int = Field(default=0, ge=0)
    variables: dict[str, Any] = Field(default_factory=dict)
    backlog: list[str] = Field(default_factory=list)


class GameProgress(BaseModel):
    current_segment: str = "segment_intro"
    available_segments: list[str] = Field(default_factory=list)
    completed_segments: list[str] = Field(default_factory=list)
    total_progress: int = Field(default=0, ge=0, le=100)
    current_dialogue_index: int = Field(default=0, ge=0)
    current_scene: str = "start"


class SaveData(BaseModel):
    document_id: str
    document_title: MultiLanguageContent
    saved_at: datetime = Field(default_factory=datetime.now)
    game_state: GameState
    progress: GameProgress
    available_segments: list[str] = Field(default_factory=list)
    screenshot_url: Optional[str] = None
    label: Optional[str] = None
    description: Optional[MultiLanguageContent] = None


class GameSettings(BaseModel):
    language: Language = "zh"
    text_speed: int = Field(default=5, ge=0, le=10)
    auto_speed: int = Field(default=5, ge=0, le=10)
    bgm_volume: int = Field(default=80, ge=0, le=100)
    voice_volume: int = Field(default=100, ge=0, le=100)
    se_volume: int = Field(default=80, ge=0, le=100)


class Unlocks(BaseModel):
    cg_unlocked: list[str] = Field(default_factory=list)
    music_unlocked: list[str] = Field(default_factory=list)
    endings_seen: list[str] = Field(default_factory=list)


class GameInstance(BaseModel):
    document_id: str
    document_title: MultiLanguageContent
    created_at: datetime = Field(default_factory=datetime.now)
    last_played_at: datetime = Field(default_factory=datetime.now)
    save_slots: list[Optional[SaveData]] = Field(default_factory=list)
    quick_save: Optional[SaveData] = None
    auto_save: Optional[SaveData] = None
    game_progress: GameProgress = Field(default_factory=GameProgress)
    generation_progress: Optional[dict[str, Any]] = None
    settings: GameSettings = Field(default_factory=GameSettings)
    unlocks: Unlocks = Field(default_factory=Unlocks)

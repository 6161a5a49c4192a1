"""Data models for segmentation and incremental generation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .document import DocumentSection, ParsedDocument
from .script import GenerationOptions, Scene
from .text import MultiLanguageContent


class SegmentKind(str, Enum):
    INTRO = "intro"
    METHODS = "methods"
    RESULTS = "results"
    CONCLUSION = "conclusion"
    EXTRA = "extra"


class TaskStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SegmentStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class SegmentEventType(str, Enum):
    STARTED = "segment_started"
    COMPLETED = "segment_completed"
    FAILED = "segment_failed"
    GAME_READY = "game_ready"


@dataclass
class Segment:
    id: str
    priority: int
    kind: SegmentKind
    content: list[DocumentSection] = field(default_factory=list)
    estimated_units: int = 4
    must_generate_first: bool = False
    title: MultiLanguageContent = field(default_factory=MultiLanguageContent)
    description: MultiLanguageContent = field(default_factory=MultiLanguageContent)


@dataclass
class GenerationTask:
    segment_id: str
    document: ParsedDocument
    options: GenerationOptions
    estimated_time: int = 0  # seconds
    status: TaskStatus = TaskStatus.QUEUED
    attempts: int = 0
    last_error: str | None = None


@dataclass
class SegmentProgress:
    segment_id: str
    status: SegmentStatus
    progress: int
    message: MultiLanguageContent
    error: str | None = None
    scenes: list[Scene] | None = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class GenerationProgress:
    total_segments: int = 0
    completed_segments: int = 0
    overall_progress: int = 0
    can_start_game: bool = False
    segments: list[SegmentProgress] = field(default_factory=list)
    estimated_time_remaining: int = 0

    def summary(self) -> dict:
        """Compact, JSON-safe view used by the save store."""
        return {
            "total_segments": self.total_segments,
            "completed_segments": self.completed_segments,
            "overall_progress": self.overall_progress,
            "can_start_game": self.can_start_game,
            "estimated_time_remaining": self.estimated_time_remaining,
            "segments": {s.segment_id: s.status.value for s in self.segments},
        }


@dataclass(frozen=True)
class SegmentEvent:
    type: SegmentEventType
    segment_id: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class WaitingDialogue:
    character_id: str
    content: MultiLanguageContent
    context: str = "generating"  # generating, loading, transition

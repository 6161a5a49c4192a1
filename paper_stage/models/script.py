"""Scene-level output of the per-segment generator."""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from .text import MultiLanguageContent


@dataclass
class DialogueLine:
    character_id: str = ""
    text: str = ""
    voice: str | None = None


@dataclass
class Scene:
    name: str = ""
    title: str = ""
    lines: list[DialogueLine] = field(default_factory=list)
    segment_id: str = ""
    scene_type: str = "content"  # introduction, content, summary, discussion
    objectives: list[str] = field(default_factory=list)


@dataclass
class GenerationOptions:
    primary_language: str = "zh"
    characters: list[str] = field(default_factory=lambda: ["nene", "murasame", "nanami", "meguru"])
    complexity: str = "intermediate"  # simple, intermediate, advanced
    audience: str = "general"  # general, academic, student
    max_lines_per_scene: int = 12


@dataclass
class ScriptMetadata:
    title: MultiLanguageContent
    paper_title: MultiLanguageContent
    timestamp: datetime = field(default_factory=datetime.now)
    version: str = "1.0.0"
    supported_languages: list[str] = field(default_factory=lambda: ["zh", "jp", "en"])
    primary_language: str = "zh"
    characters: list[str] = field(default_factory=list)
    total_duration: int = 0  # seconds


@dataclass
class PlayableScript:
    metadata: ScriptMetadata
    scenes: list[Scene] = field(default_factory=list)

    @property
    def dialogue_count(self) -> int:
        return sum(len(scene.lines) for scene in self.scenes)

    def to_dict(self) -> dict:
        meta = self.metadata
        return {
            "metadata": {
                "title": meta.title.model_dump(),
                "paper_title": meta.paper_title.model_dump(),
                "timestamp": meta.timestamp.isoformat(),
                "version": meta.version,
                "supported_languages": list(meta.supported_languages),
                "primary_language": meta.primary_language,
                "characters": list(meta.characters),
                "total_duration": meta.total_duration,
            },
            "scenes": [asdict(scene) for scene in self.scenes],
        }

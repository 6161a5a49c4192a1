from .document import (
    SectionType,
    DocumentSection,
    DocumentMetadata,
    ParsedDocument,
)
from .text import MultiLanguageContent
from .script import (
    DialogueLine,
    Scene,
    GenerationOptions,
    ScriptMetadata,
    PlayableScript,
)
from .segment import (
    SegmentKind,
    TaskStatus,
    SegmentStatus,
    SegmentEventType,
    Segment,
    GenerationTask,
    SegmentProgress,
    GenerationProgress,
    SegmentEvent,
    WaitingDialogue,
)
from .save import (
    GameState,
    GameProgress,
    SaveData,
    GameSettings,
    Unlocks,
    GameInstance,
)

__all__ = [
    "SectionType",
    "DocumentSection",
    "DocumentMetadata",
    "ParsedDocument",
    "MultiLanguageContent",
    "DialogueLine",
    "Scene",
    "GenerationOptions",
    "ScriptMetadata",
    "PlayableScript",
    "SegmentKind",
    "TaskStatus",
    "SegmentStatus",
    "SegmentEventType",
    "Segment",
    "GenerationTask",
    "SegmentProgress",
    "GenerationProgress",
    "SegmentEvent",
    "WaitingDialogue",
    "GameState",
    "GameProgress",
    "SaveData",
    "GameSettings",
    "Unlocks",
    "GameInstance",
]

from .segmentation import SegmentationStrategy, count_words
from .events import SegmentEventBus, SegmentEventListener
from .waiting import WaitingDialoguePool, DEFAULT_WAITING_DIALOGUES
from .generator import (
    IncrementalGenerator,
    IncrementalGenerationResult,
    SceneGenerator,
    SegmentContentStore,
)

__all__ = [
    "SegmentationStrategy",
    "count_words",
    "SegmentEventBus",
    "SegmentEventListener",
    "WaitingDialoguePool",
    "DEFAULT_WAITING_DIALOGUES",
    "IncrementalGenerator",
    "IncrementalGenerationResult",
    "SceneGenerator",
    "SegmentContentStore",
]

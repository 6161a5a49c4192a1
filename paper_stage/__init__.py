"""Incremental paper-to-visual-novel generation with progress and save slots."""

from .config import Config, IncrementalConfig, SaveConfig
from .errors import SaveSystemError, InstanceNotFoundError, SlotOutOfRangeError, EmptySlotError, InvalidSlotError
from .incremental import IncrementalGenerator, IncrementalGenerationResult, SegmentationStrategy
from .ingest import load_document
from .outline import OutlineSceneGenerator
from .saves import SaveSystem, MemoryStorage, FileStorage

__version__ = "0.1.0"

__all__ = [
    "Config",
    "IncrementalConfig",
    "SaveConfig",
    "SaveSystemError",
    "InstanceNotFoundError",
    "SlotOutOfRangeError",
    "EmptySlotError",
    "InvalidSlotError",
    "IncrementalGenerator",
    "IncrementalGenerationResult",
    "SegmentationStrategy",
    "load_document",
    "OutlineSceneGenerator",
    "SaveSystem",
    "MemoryStorage",
    "FileStorage",
]

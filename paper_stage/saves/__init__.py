from .storage import StorageBackend, MemoryStorage, FileStorage
from .save_system import SaveSystem

__all__ = [
    "StorageBackend",
    "MemoryStorage",
    "FileStorage",
    "SaveSystem",
]

"""Per-document game instances with manual, quick and auto save slots."""

import threading
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional, Union

from loguru import logger

from ..config import SaveConfig
from ..errors import (
    EmptySlotError,
    InstanceNotFoundError,
    InvalidSlotError,
    SaveSystemError,
    SlotOutOfRangeError,
)
from ..models.save import GameInstance, GameProgress, GameSettings, GameState, SaveData
from ..models.segment import GenerationProgress, SegmentEvent, SegmentEventType
from ..models.text import MultiLanguageContent
from .storage import FileStorage, StorageBackend

if TYPE_CHECKING:
    from ..incremental.generator import IncrementalGenerator

SlotRef = Union[int, str]  # manual slot index, "quick" or "auto"

UNLOCK_FIELDS = {
    "cg": "cg_unlocked",
    "music": "music_unlocked",
    "ending": "endings_seen",
}

QUICK_SAVE_DESCRIPTION = MultiLanguageContent(zh="快速存档", jp="クイックセーブ", en="Quick Save")
AUTO_SAVE_DESCRIPTION = MultiLanguageContent(zh="自动存档", jp="オートセーブ", en="Auto Save")


def _ratio(part: int, whole: int) -> int:
    return min(100, int(part * 100 / whole + 0.5)) if whole > 0 else 0


class SaveSystem:
    """
    Owns every persisted game instance.

    Each instance is stored as one JSON document keyed by document id. All
    operations on an unknown document id raise ``InstanceNotFoundError``;
    arguments are validated before anything is mutated.
    """

    def __init__(
        self,
        config: Optional[SaveConfig] = None,
        storage: Optional[StorageBackend] = None,
    ):
        self.config = config or SaveConfig()
        if storage is None:
            storage = FileStorage(self.config.storage_dir, prefix=self.config.storage_prefix)
        self.storage = storage
        self._instances: dict[str, GameInstance] = {}
        self._lock = threading.RLock()
        self.load_all()

    # -- instances -----------------------------------------------------------

    def create_instance(
        self,
        document_id: str,
        title: Union[str, MultiLanguageContent],
        first_segment: str = "segment_intro",
    ) -> GameInstance:
        if isinstance(title, str):
            title = MultiLanguageContent.same(title)

        with self._lock:
            if document_id in self._instances:
                logger.warning(f"Replacing existing game instance: {document_id}")
            instance = GameInstance(
                document_id=document_id,
                document_title=title,
                save_slots=[None] * self.config.save_slot_count,
                game_progress=GameProgress(current_segment=first_segment),
            )
            self._instances[document_id] = instance
            self._persist(instance)

        logger.info(f"Created game instance {document_id}")
        return instance.model_copy(deep=True)

    def get_instance(self, document_id: str) -> Optional[GameInstance]:
        """Detached copy; mutate through the store methods."""
        with self._lock:
            instance = self._instances.get(document_id)
            return instance.model_copy(deep=True) if instance is not None else None

    def list_instances(self) -> list[GameInstance]:
        """Most recently played first."""
        with self._lock:
            ordered = sorted(self._instances.values(), key=lambda i: i.last_played_at, reverse=True)
            return [instance.model_copy(deep=True) for instance in ordered]

    def delete_instance(self, document_id: str) -> None:
        with self._lock:
            self._require(document_id)
            del self._instances[document_id]
            self.storage.remove(document_id)
        logger.info(f"Deleted game instance {document_id}")

    # -- saving --------------------------------------------------------------

    def save(
        self,
        document_id: str,
        slot_index: int,
        state: Union[GameState, dict],
        screenshot_url: Optional[str] = None,
        label: Optional[str] = None,
    ) -> SaveData:
        """Write a manual save into ``slot_index``."""
        with self._lock:
            instance = self._require(document_id)
            self._check_slot(slot_index)
            state = GameState.model_validate(state)

            save_data = self._snapshot(
                instance,
                state,
                screenshot_url=screenshot_url,
                label=label,
                description=self._describe(instance, state),
            )
            instance.save_slots[slot_index] = save_data
            instance.last_played_at = datetime.now()
            self._persist(instance)

        logger.debug(f"Saved {document_id} to slot {slot_index}")
        return save_data.model_copy(deep=True)

    def quick_save(
        self,
        document_id: str,
        state: Union[GameState, dict],
        screenshot_url: Optional[str] = None,
    ) -> SaveData:
        with self._lock:
            instance = self._require(document_id)
            if not self.config.enable_quick_save:
                raise SaveSystemError("Quick save is disabled")
            save_data = self._snapshot(
                instance,
                GameState.model_validate(state),
                screenshot_url=screenshot_url,
                label="Quick Save",
                description=QUICK_SAVE_DESCRIPTION,
            )
            instance.quick_save = save_data
            instance.last_played_at = datetime.now()
            self._persist(instance)
        return save_data.model_copy(deep=True)

    def auto_save(
        self,
        document_id: str,
        state: Union[GameState, dict],
        screenshot_url: Optional[str] = None,
    ) -> SaveData:
        with self._lock:
            instance = self._require(document_id)
            if not self.config.enable_auto_save:
                raise SaveSystemError("Auto save is disabled")
            save_data = self._snapshot(
                instance,
                GameState.model_validate(state),
                screenshot_url=screenshot_url,
                label="Auto Save",
                description=AUTO_SAVE_DESCRIPTION,
            )
            instance.auto_save = save_data
            instance.last_played_at = datetime.now()
            self._persist(instance)
        return save_data.model_copy(deep=True)

    def is_auto_save_due(self, dialogue_index: int) -> bool:
        return (
            self.config.enable_auto_save
            and dialogue_index > 0
            and dialogue_index % self.config.auto_save_interval == 0
        )

    def delete_save(self, document_id: str, slot_index: int) -> None:
        with self._lock:
            instance = self._require(document_id)
            self._check_slot(slot_index)
            instance.save_slots[slot_index] = None
            self._persist(instance)

    # -- loading -------------------------------------------------------------

    def load(self, document_id: str, slot: SlotRef) -> SaveData:
        """
        Load a save by manual slot index, ``"quick"`` or ``"auto"``.

        Only ``last_played_at`` changes; generation state is left alone.
        """
        with self._lock:
            instance = self._require(document_id)

            if slot == "quick":
                save_data = instance.quick_save
            elif slot == "auto":
                save_data = instance.auto_save
            else:
                self._check_slot(slot)
                save_data = instance.save_slots[slot]

            if save_data is None:
                raise EmptySlotError(slot)

            instance.last_played_at = datetime.now()
            self._persist(instance)
            return save_data.model_copy(deep=True)

    def load_quick_save(self, document_id: str) -> SaveData:
        return self.load(document_id, "quick")

    def load_auto_save(self, document_id: str) -> SaveData:
        return self.load(document_id, "auto")

    # -- progress ------------------------------------------------------------

    def update_progress(self, document_id: str, **changes) -> GameProgress:
        with self._lock:
            instance = self._require(document_id)
            unknown = set(changes) - set(GameProgress.model_fields)
            if unknown:
                raise ValueError(f"Unknown progress fields: {sorted(unknown)}")

            merged = {**instance.game_progress.model_dump(), **changes}
            instance.game_progress = GameProgress.model_validate(merged)
            self._recalculate(instance)
            instance.last_played_at = datetime.now()
            self._persist(instance)
            return instance.game_progress.model_copy(deep=True)

    def add_available_segment(self, document_id: str, segment_id: str) -> None:
        with self._lock:
            instance = self._require(document_id)
            progress = instance.game_progress
            if segment_id in progress.available_segments:
                return
            progress.available_segments.append(segment_id)
            self._recalculate(instance)
            self._persist(instance)
        logger.debug(f"{document_id}: segment {segment_id} now available")

    def complete_segment(self, document_id: str, segment_id: str) -> None:
        """Mark a segment as played through. It becomes available if it was not."""
        with self._lock:
            instance = self._require(document_id)
            progress = instance.game_progress
            if segment_id in progress.completed_segments:
                return
            if segment_id not in progress.available_segments:
                progress.available_segments.append(segment_id)
            progress.completed_segments.append(segment_id)
            self._recalculate(instance)
            self._persist(instance)

    def update_settings(self, document_id: str, **changes) -> GameSettings:
        with self._lock:
            instance = self._require(document_id)
            unknown = set(changes) - set(GameSettings.model_fields)
            if unknown:
                raise ValueError(f"Unknown settings: {sorted(unknown)}")
            instance.settings = GameSettings.model_validate(
                {**instance.settings.model_dump(), **changes}
            )
            self._persist(instance)
            return instance.settings.model_copy()

    def unlock(self, document_id: str, kind: str, item: str) -> None:
        if kind not in UNLOCK_FIELDS:
            raise ValueError(f"Unknown unlock kind '{kind}'. Supported: {list(UNLOCK_FIELDS)}")
        with self._lock:
            instance = self._require(document_id)
            unlocked = getattr(instance.unlocks, UNLOCK_FIELDS[kind])
            if item not in unlocked:
                unlocked.append(item)
                self._persist(instance)

    def record_generation_progress(self, document_id: str, progress: GenerationProgress) -> None:
        with self._lock:
            instance = self._require(document_id)
            instance.generation_progress = progress.summary()
            self._persist(instance)

    def follow_generation(
        self, document_id: str, generator: "IncrementalGenerator"
    ) -> Callable[[], None]:
        """
        Keep an instance in step with a generation run.

        Segments already produced are made available right away; later ones
        as their ``segment_completed`` events arrive. Returns the unsubscribe
        handle of the underlying listener.
        """
        self._require(document_id)
        for segment_id in generator.store.generated_ids():
            self.add_available_segment(document_id, segment_id)
        if generator.segments:
            self.record_generation_progress(document_id, generator.calculate_progress())

        def on_event(event: SegmentEvent) -> None:
            if event.type == SegmentEventType.COMPLETED:
                self.add_available_segment(document_id, event.segment_id)
            if event.type in (SegmentEventType.COMPLETED, SegmentEventType.FAILED):
                self.record_generation_progress(document_id, generator.calculate_progress())

        return generator.subscribe(on_event)

    # -- bookkeeping ---------------------------------------------------------

    def stats(self) -> dict:
        total_saves = 0
        for instance in self._instances.values():
            total_saves += sum(1 for s in instance.save_slots if s is not None)
            total_saves += int(instance.quick_save is not None)
            total_saves += int(instance.auto_save is not None)
        return {
            "total_instances": len(self._instances),
            "total_saves": total_saves,
            "storage_used": self.storage.size(),
        }

    def load_all(self) -> int:
        """Read every stored instance. Undecodable entries are skipped."""
        loaded = 0
        for key in self.storage.keys():
            data = self.storage.get(key)
            if not data:
                continue
            try:
                instance = GameInstance.model_validate_json(data)
            except ValueError as e:
                logger.warning(f"Failed to load game instance {key}: {e}")
                continue

            missing = self.config.save_slot_count - len(instance.save_slots)
            if missing > 0:
                instance.save_slots.extend([None] * missing)
            self._instances[instance.document_id] = instance
            loaded += 1

        if loaded:
            logger.info(f"Loaded {loaded} game instances")
        return loaded

    def _require(self, document_id: str) -> GameInstance:
        instance = self._instances.get(document_id)
        if instance is None:
            raise InstanceNotFoundError(document_id)
        return instance

    def _check_slot(self, slot_index: int) -> None:
        if isinstance(slot_index, bool) or not isinstance(slot_index, int):
            raise InvalidSlotError(slot_index)
        if not 0 <= slot_index < self.config.save_slot_count:
            raise SlotOutOfRangeError(slot_index, self.config.save_slot_count)

    def _snapshot(
        self,
        instance: GameInstance,
        state: GameState,
        screenshot_url: Optional[str],
        label: Optional[str],
        description: MultiLanguageContent,
    ) -> SaveData:
        return SaveData(
            document_id=instance.document_id,
            document_title=instance.document_title,
            game_state=state.model_copy(deep=True),
            progress=instance.game_progress.model_copy(deep=True),
            # Only segments the generator has already produced
            available_segments=list(instance.game_progress.available_segments),
            screenshot_url=screenshot_url or None,
            label=label or None,
            description=description,
        )

    @staticmethod
    def _describe(instance: GameInstance, state: GameState) -> MultiLanguageContent:
        progress = instance.game_progress.total_progress
        return MultiLanguageContent(
            zh=f"进度 {progress}% - {state.scene}",
            jp=f"進捗 {progress}% - {state.scene}",
            en=f"Progress {progress}% - {state.scene}",
        )

    @staticmethod
    def _recalculate(instance: GameInstance) -> None:
        progress = instance.game_progress
        total = len(progress.available_segments)
        if total > 0:
            progress.total_progress = _ratio(len(progress.completed_segments), total)

    def _persist(self, instance: GameInstance) -> None:
        self.storage.set(instance.document_id, instance.model_dump_json())

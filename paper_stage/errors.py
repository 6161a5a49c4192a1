"""Exceptions raised by the progress and save store."""


class SaveSystemError(Exception):
    """Base class for save store contract violations."""
    pass


class InstanceNotFoundError(SaveSystemError):
    """No game instance is registered for the document id."""

    def __init__(self, document_id: str):
        super().__init__(f"Game instance not found: {document_id}")
        self.document_id = document_id


class SlotOutOfRangeError(SaveSystemError, IndexError):
    """Manual save slot index outside [0, save_slot_count)."""

    def __init__(self, slot_index: int, slot_count: int):
        super().__init__(
            f"Invalid save slot: {slot_index} (valid slots: 0-{slot_count - 1})"
        )
        self.slot_index = slot_index
        self.slot_count = slot_count


class EmptySlotError(SaveSystemError):
    """The requested slot holds no save data."""

    def __init__(self, slot):
        super().__init__(f"Save slot is empty: {slot}")
        self.slot = slot


class InvalidSlotError(SaveSystemError, ValueError):
    """Slot reference is neither an int index nor ``"quick"``/``"auto"``."""

    def __init__(self, slot):
        super().__init__(f"Unknown save slot: {slot!r}")
        self.slot = slot

"""Shared fixtures for paper_stage tests."""

import pytest

from paper_stage.config import SaveConfig
from paper_stage.models.document import DocumentMetadata, DocumentSection, ParsedDocument, SectionType
from paper_stage.models.script import DialogueLine, Scene
from paper_stage.saves import MemoryStorage, SaveSystem


def words(n: int, word: str = "word") -> str:
    """Text that counts as exactly ``n`` words."""
    return " ".join([word] * n)


def make_document(*sections: tuple, title: str = "Attention Is All You Need") -> ParsedDocument:
    """Build a document from (SectionType, word_count) pairs."""
    doc_sections = [
        DocumentSection(type=section_type, title=section_type.value.title(), content=words(count), position=i)
        for i, (section_type, count) in enumerate(sections)
    ]
    return ParsedDocument(
        metadata=DocumentMetadata(title=title),
        sections=doc_sections,
        raw_text="\n\n".join(s.content for s in doc_sections),
    )


class RecordingSleep:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeSceneGenerator:
    """Scene generator stub that can fail a set number of times per segment."""

    def __init__(self, failures=None, always_fail=()):
        self.failures = dict(failures or {})
        self.always_fail = set(always_fail)
        self.calls = []

    def __call__(self, segment, document, options):
        self.calls.append(segment.id)
        if segment.id in self.always_fail:
            raise RuntimeError(f"generator down for {segment.id}")
        if self.failures.get(segment.id, 0) > 0:
            self.failures[segment.id] -= 1
            raise RuntimeError(f"transient failure for {segment.id}")
        return [
            Scene(
                name=f"{segment.id}_01",
                title=segment.title.en,
                lines=[DialogueLine(character_id="nene", text=f"line {i}") for i in range(segment.estimated_units)],
                segment_id=segment.id,
            )
        ]

    def count(self, segment_id: str) -> int:
        return self.calls.count(segment_id)


@pytest.fixture
def three_part_document():
    """intro 8 units, methods 10 units, results 12 units."""
    return make_document(
        (SectionType.INTRODUCTION, 400),
        (SectionType.METHODS, 500),
        (SectionType.RESULTS, 600),
    )


@pytest.fixture
def full_document():
    return make_document(
        (SectionType.ABSTRACT, 150),
        (SectionType.INTRODUCTION, 300),
        (SectionType.METHODS, 500),
        (SectionType.RESULTS, 700),
        (SectionType.DISCUSSION, 300),
        (SectionType.CONCLUSION, 200),
        (SectionType.APPENDIX, 400),
    )


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def save_system(memory_storage):
    return SaveSystem(SaveConfig(), storage=memory_storage)


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def scene_generator_factory():
    return FakeSceneGenerator

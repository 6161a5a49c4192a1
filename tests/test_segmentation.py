import pytest

from paper_stage.config import IncrementalConfig
from paper_stage.incremental import SegmentationStrategy, count_words
from paper_stage.models.document import DocumentMetadata, DocumentSection, ParsedDocument, SectionType
from paper_stage.models.segment import SegmentKind

def test_count_words_latin():
    assert count_words("The quick brown fox") == 4

def test_count_words_cjk_counts_half():
    assert count_words("你好世界") == 2
    assert count_words("paper 論文です") == 1 + 2

def test_count_words_strips_math():
    assert count_words("energy $E = mc^2$ is conserved") == 3
    assert count_words("see $$\\sum_i x_i$$ below") == 2

def test_three_part_document_meets_threshold(three_part_document):
    strategy = SegmentationStrategy()
    segments = strategy.segment_document(three_part_document)

    assert [s.id for s in segments] == ["segment_intro", "segment_methods", "segment_results"]
    assert [s.estimated_units for s in segments] == [8, 10, 12]
    assert [s.must_generate_first for s in segments] == [True, True, False]
    assert strategy.coverage_percentage(segments) == pytest.approx(60.0)

def test_higher_threshold_promotes_next_segment(three_part_document):
    strategy = SegmentationStrategy(IncrementalConfig(min_start_percentage=70))
    segments = strategy.segment_document(three_part_document)

    assert all(s.must_generate_first for s in segments)
    assert strategy.background_segments(segments) == []

def test_promotion_stops_once_threshold_reached(full_document):
    strategy = SegmentationStrategy()
    segments = strategy.segment_document(full_document)

    ids = [s.id for s in strategy.priority_segments(segments)]
    assert ids == ["segment_intro", "segment_methods", "segment_results"]
    assert [s.id for s in strategy.background_segments(segments)] == [
        "segment_conclusion", "segment_extra"
    ]
    assert strategy.coverage_percentage(segments) >= 50

def test_segments_ordered_by_priority(full_document):
    segments = SegmentationStrategy().segment_document(full_document)

    assert [s.priority for s in segments] == [1, 2, 3, 4, 5]
    assert len({s.id for s in segments}) == len(segments)
    conclusion = next(s for s in segments if s.kind == SegmentKind.CONCLUSION)
    assert [sec.type for sec in conclusion.content] == [SectionType.DISCUSSION, SectionType.CONCLUSION]

def test_first_segment_forced_when_no_default_priority(document_factory):
    document = document_factory((SectionType.RESULTS, 600), (SectionType.CONCLUSION, 200))
    strategy = SegmentationStrategy()
    segments = strategy.segment_document(document)

    assert [s.id for s in segments] == ["segment_results", "segment_conclusion"]
    assert segments[0].must_generate_first is True
    # 12 of 16 units already covers the threshold
    assert segments[1].must_generate_first is False

@pytest.mark.parametrize("word_count,units", [(10, 4), (400, 8), (5000, 20)])
def test_units_are_clamped(document_factory, word_count, units):
    document = document_factory((SectionType.INTRODUCTION, word_count))
    segments = SegmentationStrategy().segment_document(document)

    assert segments[0].estimated_units == units

def test_subsections_count_toward_units():
    section = DocumentSection(
        type=SectionType.METHODS,
        content=" ".join(["word"] * 250),
        subsections=[DocumentSection(type=SectionType.OTHER, content=" ".join(["word"] * 250))],
    )
    document = ParsedDocument(metadata=DocumentMetadata(title="T"), sections=[section])

    segments = SegmentationStrategy().segment_document(document)
    assert segments[0].estimated_units == 10

def test_short_extras_are_skipped(document_factory):
    document = document_factory((SectionType.INTRODUCTION, 400))
    document.sections.append(DocumentSection(type=SectionType.REFERENCES, title="References", content="[1] A."))

    segments = SegmentationStrategy().segment_document(document)
    assert [s.id for s in segments] == ["segment_intro"]

def test_long_extras_are_kept(document_factory):
    document = document_factory((SectionType.INTRODUCTION, 400), (SectionType.APPENDIX, 400))

    segments = SegmentationStrategy().segment_document(document)
    assert [s.id for s in segments] == ["segment_intro", "segment_extra"]

def test_extra_only_document_is_kept():
    document = ParsedDocument(
        metadata=DocumentMetadata(title="Notes"),
        sections=[DocumentSection(type=SectionType.OTHER, title="Notes", content="A short note.")],
    )

    segments = SegmentationStrategy().segment_document(document)
    assert len(segments) == 1
    assert segments[0].kind == SegmentKind.EXTRA
    assert segments[0].must_generate_first is True

def test_empty_document_has_no_segments():
    assert SegmentationStrategy().segment_document(ParsedDocument()) == []

def test_raw_text_fallback():
    document = ParsedDocument(
        metadata=DocumentMetadata(title="Untitled draft"),
        raw_text=" ".join(["word"] * 300),
    )

    segments = SegmentationStrategy().segment_document(document)
    assert len(segments) == 1
    assert segments[0].id == "segment_intro"
    assert segments[0].must_generate_first is True
    assert segments[0].estimated_units == 6
    assert segments[0].content[0].title == "Untitled draft"

def test_time_estimates(three_part_document):
    strategy = SegmentationStrategy()
    segments = strategy.segment_document(three_part_document)

    assert strategy.estimate_generation_time(segments[0]) == 24
    assert strategy.estimate_total_time(segments) == 90

def test_localized_titles(three_part_document):
    segments = SegmentationStrategy().segment_document(three_part_document)

    assert segments[0].title.en == "Opening Introduction"
    assert segments[0].title.zh == "开场介绍"
    assert segments[1].description.get("jp") == "研究で採用された方法と技術を深く理解する"

def test_update_config(three_part_document):
    strategy = SegmentationStrategy()
    strategy.update_config(min_start_percentage=100)

    assert strategy.config.min_start_percentage == 100
    segments = strategy.segment_document(three_part_document)
    assert strategy.coverage_percentage(segments) == 100

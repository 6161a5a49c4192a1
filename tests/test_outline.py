import pytest

from paper_stage.incremental import SegmentationStrategy
from paper_stage.models.document import DocumentMetadata, DocumentSection, ParsedDocument, SectionType
from paper_stage.models.script import GenerationOptions
from paper_stage.outline import OutlineSceneGenerator, shorten, split_sentences

def test_split_sentences():
    assert split_sentences("One here. Two there!  Three?") == ["One here.", "Two there!", "Three?"]
    assert split_sentences("第一句。第二句！") == ["第一句。", "第二句！"]
    assert split_sentences("   ") == []

def test_shorten():
    assert shorten("short", 10) == "short"
    assert shorten("a" * 20, 10) == "aaaaaaa..."

@pytest.fixture
def document():
    return ParsedDocument(
        metadata=DocumentMetadata(title="Paper"),
        sections=[
            DocumentSection(
                type=SectionType.INTRODUCTION,
                title="Introduction",
                content="Transformers changed everything. They rely on attention. Nothing else is needed.",
            ),
            DocumentSection(
                type=SectionType.METHODS,
                title="Method",
                content="We stack layers.",
                subsections=[DocumentSection(type=SectionType.OTHER, title="Attention", content="Queries meet keys.")],
            ),
        ],
    )

def segment_for(document, segment_id):
    segments = SegmentationStrategy().segment_document(document)
    return next(s for s in segments if s.id == segment_id)

def test_one_scene_per_section(document):
    generator = OutlineSceneGenerator()
    options = GenerationOptions(primary_language="en")

    scenes = generator(segment_for(document, "segment_methods"), document, options)

    assert [s.name for s in scenes] == ["segment_methods_01", "segment_methods_02"]
    assert [s.title for s in scenes] == ["Method", "Attention"]
    assert all(s.segment_id == "segment_methods" for s in scenes)
    assert scenes[0].scene_type == "content"
    assert scenes[0].objectives == ["Deep dive into methods and techniques used"]

def test_lines_rotate_characters(document):
    options = GenerationOptions(primary_language="en", characters=["nene", "meguru"])

    scene = OutlineSceneGenerator()(segment_for(document, "segment_intro"), document, options)[0]

    assert scene.lines[0].text == 'Let\'s look at "Introduction".'
    assert [line.character_id for line in scene.lines] == ["nene", "meguru", "nene", "meguru"]
    assert scene.lines[1].text == "Transformers changed everything."
    assert scene.scene_type == "introduction"

def test_lines_capped_per_scene(document):
    options = GenerationOptions(primary_language="zh", max_lines_per_scene=2)

    scene = OutlineSceneGenerator()(segment_for(document, "segment_intro"), document, options)[0]

    assert len(scene.lines) == 2
    assert scene.lines[0].text == "我们来看看「Introduction」。"

def test_long_sentences_are_shortened(document):
    document.sections[0].content = "word " * 100 + "end."
    options = GenerationOptions(primary_language="en")

    scene = OutlineSceneGenerator(max_line_chars=40)(segment_for(document, "segment_intro"), document, options)[0]

    assert len(scene.lines[1].text) == 40
    assert scene.lines[1].text.endswith("...")

def test_segment_without_content_raises(document):
    document.sections[0].content = "  "
    segment = segment_for(document, "segment_intro")

    with pytest.raises(ValueError, match="no content"):
        OutlineSceneGenerator()(segment, document, GenerationOptions())

import re
from typing import Optional

from loguru import logger

from ..config import IncrementalConfig
from ..models.document import DocumentSection, ParsedDocument, SectionType
from ..models.segment import Segment, SegmentKind
from ..models.text import MultiLanguageContent

SEGMENT_TITLES = {
    SegmentKind.INTRO: MultiLanguageContent(zh="开场介绍", jp="オープニング紹介", en="Opening Introduction"),
    SegmentKind.METHODS: MultiLanguageContent(zh="研究方法", jp="研究方法", en="Research Methods"),
    SegmentKind.RESULTS: MultiLanguageContent(zh="研究结果", jp="研究結果", en="Research Results"),
    SegmentKind.CONCLUSION: MultiLanguageContent(zh="结论总结", jp="結論まとめ", en="Conclusions"),
    SegmentKind.EXTRA: MultiLanguageContent(zh="附加内容", jp="追加コンテンツ", en="Additional Content"),
}

SEGMENT_DESCRIPTIONS = {
    SegmentKind.INTRO: MultiLanguageContent(
        zh="了解论文的背景和研究目标",
        jp="論文の背景と研究目的を理解する",
        en="Understand the background and research objectives",
    ),
    SegmentKind.METHODS: MultiLanguageContent(
        zh="深入了解研究采用的方法和技术",
        jp="研究で採用された方法と技術を深く理解する",
        en="Deep dive into methods and techniques used",
    ),
    SegmentKind.RESULTS: MultiLanguageContent(
        zh="探索研究发现的主要结果",
        jp="研究で発見された主な結果を探る",
        en="Explore the key findings of the research",
    ),
    SegmentKind.CONCLUSION: MultiLanguageContent(
        zh="总结研究意义和未来展望",
        jp="研究の意義と今後の展望をまとめる",
        en="Summarize significance and future directions",
    ),
    SegmentKind.EXTRA: MultiLanguageContent(
        zh="补充材料和深入讨论",
        jp="補足資料と詳細な議論",
        en="Supplementary materials and in-depth discussion",
    ),
}

SECTION_TO_SEGMENT = {
    SectionType.TITLE: SegmentKind.INTRO,
    SectionType.ABSTRACT: SegmentKind.INTRO,
    SectionType.INTRODUCTION: SegmentKind.INTRO,
    SectionType.METHODS: SegmentKind.METHODS,
    SectionType.RESULTS: SegmentKind.RESULTS,
    SectionType.DISCUSSION: SegmentKind.CONCLUSION,
    SectionType.CONCLUSION: SegmentKind.CONCLUSION,
    SectionType.REFERENCES: SegmentKind.EXTRA,
    SectionType.ACKNOWLEDGMENTS: SegmentKind.EXTRA,
    SectionType.APPENDIX: SegmentKind.EXTRA,
    SectionType.OTHER: SegmentKind.EXTRA,
}

# (kind, priority, generated before playback by default)
SEGMENT_ORDER = [
    (SegmentKind.INTRO, 1, True),
    (SegmentKind.METHODS, 2, True),
    (SegmentKind.RESULTS, 3, False),
    (SegmentKind.CONCLUSION, 4, False),
    (SegmentKind.EXTRA, 5, False),
]

MIN_UNITS = 4
MAX_UNITS = 20
WORDS_PER_UNIT = 50
SECONDS_PER_UNIT = 3

MATH_PATTERN = re.compile(r"\$\$?[^$]+\$\$?")
LATIN_WORD_PATTERN = re.compile(r"[a-zA-Z]+")
CJK_PATTERN = re.compile(r"[\u4e00-\u9fff\u3040-\u309f\u30a0-\u30ff]")


def count_words(text: str) -> int:
    """
    Count words in mixed Latin/CJK text.

    Inline and display math is stripped first. Each CJK character counts
    as half a word.
    """
    clean_text = MATH_PATTERN.sub(" ", text)
    latin_words = len(LATIN_WORD_PATTERN.findall(clean_text))
    cjk_chars = len(CJK_PATTERN.findall(clean_text))
    return latin_words + int(cjk_chars * 0.5)


def _section_words(section: DocumentSection) -> int:
    return count_words(section.content) + sum(
        _section_words(sub) for sub in section.subsections
    )


def _section_chars(section: DocumentSection) -> int:
    return len(section.content) + sum(_section_chars(sub) for sub in section.subsections)


class SegmentationStrategy:
    """Cuts a parsed document into ordered, independently generatable segments."""

    def __init__(self, config: Optional[IncrementalConfig] = None):
        self.config = config or IncrementalConfig()

    def segment_document(self, document: ParsedDocument) -> list[Segment]:
        """
        Segment a document into incremental generation units.

        Returns:
            Segments ordered by priority. The must-generate-first subset
            covers at least ``min_start_percentage`` of the estimated units,
            or every segment when the document is too small to split.
        """
        groups = self.group_sections(document.sections)

        if not groups:
            if not document.raw_text.strip():
                logger.warning("Document has no sections and no text, nothing to segment")
                return []
            logger.warning("No usable sections, using raw text as a single segment")
            fallback = DocumentSection(
                type=SectionType.OTHER,
                title=document.metadata.title or "Full Text",
                content=document.raw_text,
            )
            segment = self.create_segment(SegmentKind.INTRO, 1, [fallback], True)
            return [segment]

        segments = []
        for kind, priority, first in SEGMENT_ORDER:
            sections = groups.get(kind)
            if not sections:
                continue
            if kind == SegmentKind.EXTRA and segments and not self.should_include_extras(sections):
                total = sum(_section_chars(s) for s in sections)
                logger.debug(f"Skipping short extra content ({total} chars)")
                continue
            segments.append(self.create_segment(kind, priority, sections, first))

        self.repair_threshold(segments)

        logger.info(
            f"Segmented '{document.metadata.title}' into {len(segments)} segments, "
            f"{len(self.priority_segments(segments))} before playback "
            f"({self.coverage_percentage(segments):.0f}% of estimated units)"
        )
        return segments

    def group_sections(self, sections: list[DocumentSection]) -> dict[SegmentKind, list[DocumentSection]]:
        groups: dict[SegmentKind, list[DocumentSection]] = {}
        for section in sections:
            kind = SECTION_TO_SEGMENT.get(section.type, SegmentKind.EXTRA)
            groups.setdefault(kind, []).append(section)
        return groups

    def create_segment(
        self,
        kind: SegmentKind,
        priority: int,
        sections: list[DocumentSection],
        must_generate_first: bool,
    ) -> Segment:
        return Segment(
            id=f"segment_{kind.value}",
            priority=priority,
            kind=kind,
            content=list(sections),
            estimated_units=self.estimate_units(sections),
            must_generate_first=must_generate_first,
            title=SEGMENT_TITLES[kind],
            description=SEGMENT_DESCRIPTIONS[kind],
        )

    def estimate_units(self, sections: list[DocumentSection]) -> int:
        # Roughly one dialogue line per 50 words
        total_words = sum(_section_words(s) for s in sections)
        return max(MIN_UNITS, min(MAX_UNITS, total_words // WORDS_PER_UNIT))

    def should_include_extras(self, sections: list[DocumentSection]) -> bool:
        return sum(_section_chars(s) for s in sections) > self.config.min_extra_chars

    def repair_threshold(self, segments: list[Segment]) -> None:
        """Promote segments in priority order until coverage meets the threshold."""
        if not segments:
            return

        ordered = sorted(segments, key=lambda s: s.priority)
        if not any(s.must_generate_first for s in ordered):
            ordered[0].must_generate_first = True
            logger.debug(f"No priority segment, promoting {ordered[0].id}")

        total_units = sum(s.estimated_units for s in ordered)
        covered = sum(s.estimated_units for s in ordered if s.must_generate_first)
        threshold = self.config.min_start_percentage

        for segment in ordered:
            if covered * 100 >= threshold * total_units:
                break
            if segment.must_generate_first:
                continue
            segment.must_generate_first = True
            covered += segment.estimated_units
            logger.debug(
                f"Promoted {segment.id} to reach start threshold "
                f"({covered}/{total_units} units)"
            )

    def coverage_percentage(self, segments: list[Segment]) -> float:
        total_units = sum(s.estimated_units for s in segments)
        if total_units == 0:
            return 0.0
        covered = sum(s.estimated_units for s in segments if s.must_generate_first)
        return covered * 100 / total_units

    def priority_segments(self, segments: list[Segment]) -> list[Segment]:
        return sorted((s for s in segments if s.must_generate_first), key=lambda s: s.priority)

    def background_segments(self, segments: list[Segment]) -> list[Segment]:
        return sorted((s for s in segments if not s.must_generate_first), key=lambda s: s.priority)

    def estimate_generation_time(self, segment: Segment) -> int:
        """Seconds, at roughly three seconds per dialogue line."""
        return segment.estimated_units * SECONDS_PER_UNIT

    def estimate_total_time(self, segments: list[Segment]) -> int:
        return sum(self.estimate_generation_time(s) for s in segments)

    def update_config(self, **changes) -> None:
        self.config = self.config.model_copy(update=changes)

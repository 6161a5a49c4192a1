"""
Document loading with registry-based reader dispatch.

Structured inputs (JSON/YAML produced by an upstream extractor) are read
as-is. Markdown, plain text and PDF are split on headings and each heading
is classified into a section type by keyword.
"""

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

from .models.document import DocumentMetadata, DocumentSection, ParsedDocument, SectionType

SECTION_KEYWORDS = [
    (SectionType.ABSTRACT, ["abstract", "summary", "摘要", "概要", "要旨"]),
    (SectionType.INTRODUCTION, ["introduction", "background", "motivation", "引言", "介绍", "绪论", "はじめに", "序論"]),
    (SectionType.METHODS, ["method", "methods", "methodology", "approach", "materials", "experimental setup", "方法", "手法"]),
    (SectionType.RESULTS, ["results", "experiments", "evaluation", "findings", "结果", "实验", "結果", "実験"]),
    (SectionType.DISCUSSION, ["discussion", "analysis", "讨论", "分析", "考察"]),
    (SectionType.CONCLUSION, ["conclusion", "conclusions", "future work", "结论", "总结", "結論", "まとめ"]),
    (SectionType.REFERENCES, ["references", "bibliography", "参考文献"]),
    (SectionType.ACKNOWLEDGMENTS, ["acknowledgments", "acknowledgements", "致谢", "謝辞"]),
    (SectionType.APPENDIX, ["appendix", "supplementary", "附录", "付録"]),
]

NUMBER_PREFIX = re.compile(r"^\s*(?:[0-9]+(?:\.[0-9]+)*\.?|[IVXLC]+\.)\s*")
PDF_HEADING = re.compile(
    r"^\s*(?:[0-9]+(?:\.[0-9]+)*\.?|[IVXLC]+\.)\s+[A-Z\u4e00-\u9fff].{0,80}$"
)


def detect_section_type(title: str) -> SectionType:
    """Classify a heading by keyword. Unknown headings are OTHER."""
    text = NUMBER_PREFIX.sub("", title).strip().lower()
    if not text:
        return SectionType.OTHER
    for section_type, keywords in SECTION_KEYWORDS:
        for keyword in keywords:
            if keyword.isascii():
                if text.startswith(keyword) or keyword in text.split():
                    return section_type
            elif keyword in text:
                return section_type
    return SectionType.OTHER


def _heading_level(title: str) -> int:
    match = re.match(r"^\s*([0-9]+(?:\.[0-9]+)*)", title)
    if not match:
        return 1
    return match.group(1).rstrip(".").count(".") + 1


def split_sections(text: str, headings: list[tuple[int, str, int]]) -> list[DocumentSection]:
    """
    Build sections from (line_index, title, level) heading markers.

    Returns:
        One section per heading, holding the text up to the next heading.
    """
    lines = text.splitlines()
    sections = []
    for i, (line_no, title, level) in enumerate(headings):
        end = headings[i + 1][0] if i + 1 < len(headings) else len(lines)
        content = "\n".join(lines[line_no + 1:end]).strip()
        sections.append(
            DocumentSection(
                type=detect_section_type(title),
                title=title,
                content=content,
                level=level,
                position=i,
            )
        )
    return sections


class DocumentReader(ABC):
    """Abstract base class for document readers."""

    @abstractmethod
    def extensions(self) -> list[str]:
        ...

    @abstractmethod
    def read(self, path: Path) -> ParsedDocument:
        ...

    def can_read(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions()


class JSONDocumentReader(DocumentReader):
    def extensions(self) -> list[str]:
        return [".json"]

    def read(self, path: Path) -> ParsedDocument:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return ParsedDocument.from_dict(data)


class YAMLDocumentReader(DocumentReader):
    def extensions(self) -> list[str]:
        return [".yaml", ".yml"]

    def read(self, path: Path) -> ParsedDocument:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return ParsedDocument.from_dict(data)


class MarkdownDocumentReader(DocumentReader):
    """Splits on ``#`` headings. The first level-1 heading is the title."""

    HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")

    def extensions(self) -> list[str]:
        return [".md", ".markdown", ".txt"]

    def read(self, path: Path) -> ParsedDocument:
        text = path.read_text(encoding="utf-8")
        lines = text.splitlines()

        title = ""
        title_line = -1
        headings = []
        for line_no, line in enumerate(lines):
            match = self.HEADING.match(line)
            if not match:
                continue
            level = len(match.group(1))
            heading = match.group(2)
            if level == 1 and not title and not headings:
                title, title_line = heading, line_no
                continue
            headings.append((line_no, heading, level))

        sections = split_sections(text, headings)
        if title and headings:
            # Text between the title and the first heading reads as an abstract
            preface = "\n".join(lines[title_line + 1:headings[0][0]]).strip()
            if preface:
                sections.insert(0, DocumentSection(type=SectionType.ABSTRACT, title="Abstract", content=preface))
                for i, section in enumerate(sections):
                    section.position = i

        logger.info(f"Read {len(sections)} sections from {path.name}")
        return ParsedDocument(
            metadata=DocumentMetadata(title=title or path.stem),
            sections=sections,
            raw_text=text,
        )


class PDFDocumentReader(DocumentReader):
    """Extracts text with pdfplumber and splits on numbered or keyword headings."""

    def extensions(self) -> list[str]:
        return [".pdf"]

    def read(self, path: Path) -> ParsedDocument:
        import pdfplumber

        logger.info(f"Reading PDF: {path.name}")
        pages = []
        with pdfplumber.open(path) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages.append(page_text)
        text = "\n".join(pages)
        lines = text.splitlines()

        headings = []
        for line_no, line in enumerate(lines):
            stripped = line.strip()
            if not stripped or len(stripped) > 80:
                continue
            is_numbered = PDF_HEADING.match(stripped) is not None
            is_keyword = len(stripped.split()) <= 4 and detect_section_type(stripped) != SectionType.OTHER
            if is_numbered or is_keyword:
                headings.append((line_no, stripped, _heading_level(stripped)))

        title = next((l.strip() for l in lines if l.strip()), path.stem)
        sections = split_sections(text, headings)
        logger.info(f"Extracted {len(sections)} sections, {len(text)} chars from {path.name}")
        return ParsedDocument(
            metadata=DocumentMetadata(title=title),
            sections=sections,
            raw_text=text,
        )


class ReaderRegistry:
    """Maps file extensions to reader instances."""

    def __init__(self):
        self._readers: dict[str, DocumentReader] = {}

    def register(self, reader: DocumentReader) -> None:
        for ext in reader.extensions():
            self._readers[ext] = reader
            logger.debug(f"Registered reader {reader.__class__.__name__} for {ext}")

    def get_reader(self, path: Path) -> Optional[DocumentReader]:
        return self._readers.get(path.suffix.lower())

    def supported_extensions(self) -> list[str]:
        return list(self._readers.keys())

    def read_file(self, path: Path) -> ParsedDocument:
        """
        Read a document using the reader registered for its extension.

        Raises:
            ValueError: If no reader is registered for the file extension.
        """
        reader = self.get_reader(path)
        if reader is None:
            raise ValueError(
                f"Unsupported file extension '{path.suffix}'. "
                f"Supported: {self.supported_extensions()}"
            )
        return reader.read(path)


registry = ReaderRegistry()
registry.register(JSONDocumentReader())
registry.register(YAMLDocumentReader())
registry.register(MarkdownDocumentReader())
registry.register(PDFDocumentReader())


def load_document(path: Path) -> ParsedDocument:
    """Convenience function: read a single document using the global registry."""
    return registry.read_file(Path(path))

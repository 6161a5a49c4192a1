"""Structured document handed over by the structure extractor."""

import re
from dataclasses import dataclass, field
from enum import Enum
from hashlib import sha1


class SectionType(str, Enum):
    TITLE = "title"
    ABSTRACT = "abstract"
    INTRODUCTION = "introduction"
    METHODS = "methods"
    RESULTS = "results"
    DISCUSSION = "discussion"
    CONCLUSION = "conclusion"
    REFERENCES = "references"
    ACKNOWLEDGMENTS = "acknowledgments"
    APPENDIX = "appendix"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "SectionType":
        """Lenient lookup; unknown types become OTHER."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass
class DocumentSection:
    type: SectionType = SectionType.OTHER
    title: str = ""
    content: str = ""
    level: int = 1
    position: int = 0
    subsections: list["DocumentSection"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "DocumentSection":
        return cls(
            type=SectionType.parse(data.get("type", "other")),
            title=data.get("title", ""),
            content=data.get("content", ""),
            level=int(data.get("level", 1)),
            position=int(data.get("position", 0)),
            subsections=[cls.from_dict(s) for s in data.get("subsections", [])],
        )


@dataclass
class DocumentMetadata:
    title: str = ""
    authors: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    abstract: str = ""


@dataclass
class ParsedDocument:
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    sections: list[DocumentSection] = field(default_factory=list)
    raw_text: str = ""
    id: str = ""

    @property
    def document_id(self) -> str:
        """Explicit id if set, else a slug of the title plus a short content hash."""
        if self.id:
            return self.id
        slug = re.sub(r"[^a-zA-Z0-9]+", "-", self.metadata.title).strip("-").lower()[:40]
        digest = sha1(
            (self.metadata.title + "\n" + self.raw_text).encode("utf-8")
        ).hexdigest()[:10]
        return f"{slug}-{digest}" if slug else digest

    @classmethod
    def from_dict(cls, data: dict) -> "ParsedDocument":
        meta = data.get("metadata", {}) or {}
        return cls(
            metadata=DocumentMetadata(
                title=meta.get("title", ""),
                authors=list(meta.get("authors", [])),
                keywords=list(meta.get("keywords", [])),
                abstract=meta.get("abstract", "") or "",
            ),
            sections=[DocumentSection.from_dict(s) for s in data.get("sections", [])],
            raw_text=data.get("raw_text", "") or "",
            id=data.get("id", "") or "",
        )

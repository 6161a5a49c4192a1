"""Offline scene generator: turns section text into dialogue without an LLM."""

import re

from .models.document import DocumentSection, ParsedDocument
from .models.script import DialogueLine, GenerationOptions, Scene
from .models.segment import Segment, SegmentKind

SENTENCE_END = re.compile(r"(?<=[.!?。！？])\s+|(?<=[。！？])")

SCENE_TYPES = {
    SegmentKind.INTRO: "introduction",
    SegmentKind.METHODS: "content",
    SegmentKind.RESULTS: "content",
    SegmentKind.CONCLUSION: "summary",
    SegmentKind.EXTRA: "discussion",
}

OPENERS = {
    "zh": "我们来看看「{title}」。",
    "jp": "「{title}」を見てみましょう。",
    "en": "Let's look at \"{title}\".",
}


def split_sentences(text: str) -> list[str]:
    text = re.sub(r"\s+", " ", text).strip()
    if not text:
        return []
    return [s.strip() for s in SENTENCE_END.split(text) if s.strip()]


def shorten(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars - 3].rstrip() + "..."


def _flatten(sections: list[DocumentSection]) -> list[DocumentSection]:
    flat = []
    for section in sections:
        flat.append(section)
        flat.extend(_flatten(section.subsections))
    return flat


class OutlineSceneGenerator:
    """
    Deterministic stand-in for the LLM scene generator.

    Each non-empty section becomes one scene. The characters take turns,
    one sentence per line, capped at ``options.max_lines_per_scene``.
    """

    def __init__(self, max_line_chars: int = 160):
        self.max_line_chars = max_line_chars

    def __call__(
        self, segment: Segment, document: ParsedDocument, options: GenerationOptions
    ) -> list[Scene]:
        sections = [s for s in _flatten(segment.content) if s.content.strip()]
        if not sections:
            raise ValueError(f"Segment {segment.id} has no content to turn into scenes")

        language = options.primary_language
        characters = options.characters or ["narrator"]
        opener = OPENERS.get(language, OPENERS["en"])
        max_lines = max(1, options.max_lines_per_scene)

        scenes = []
        turn = 0
        for index, section in enumerate(sections, 1):
            title = section.title or segment.title.get(language)
            lines = [DialogueLine(character_id=characters[turn % len(characters)], text=opener.format(title=title))]
            turn += 1

            for sentence in split_sentences(section.content)[:max_lines - 1]:
                lines.append(
                    DialogueLine(
                        character_id=characters[turn % len(characters)],
                        text=shorten(sentence, self.max_line_chars),
                    )
                )
                turn += 1

            scenes.append(
                Scene(
                    name=f"{segment.id}_{index:02d}",
                    title=title,
                    lines=lines,
                    segment_id=segment.id,
                    scene_type=SCENE_TYPES.get(segment.kind, "content"),
                    objectives=[segment.description.get(language)],
                )
            )
        return scenes

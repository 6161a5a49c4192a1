"""Filler lines shown while a segment is still being generated."""

import random
from typing import Optional

from ..models.segment import WaitingDialogue
from ..models.text import MultiLanguageContent

WAITING_CONTEXTS = ("generating", "loading", "transition")

DEFAULT_WAITING_DIALOGUES = [
    WaitingDialogue(
        character_id="nene",
        content=MultiLanguageContent(
            zh="让我想想这个部分该怎么解释...",
            jp="この部分をどう説明すればいいか考えてみますね...",
            en="Let me think about how to explain this part...",
        ),
        context="generating",
    ),
    WaitingDialogue(
        character_id="murasame",
        content=MultiLanguageContent(
            zh="诶诶！这里有些复杂的概念呢，稍等一下！",
            jp="えぇ！ここは少し複雑な概念がありますね、ちょっと待ってください！",
            en="Wow! There are some complex concepts here, just a moment!",
        ),
        context="generating",
    ),
    WaitingDialogue(
        character_id="nanami",
        content=MultiLanguageContent(
            zh="这部分内容需要仔细分析，请稍候...",
            jp="この部分は慎重に分析する必要があります、少々お待ちください...",
            en="This part requires careful analysis, please wait...",
        ),
        context="generating",
    ),
    WaitingDialogue(
        character_id="meguru",
        content=MultiLanguageContent(
            zh="让我整理一下接下来要讲解的内容。",
            jp="次に説明する内容を整理させてください。",
            en="Let me organize the content for the next section.",
        ),
        context="transition",
    ),
]


class WaitingDialoguePool:
    def __init__(
        self,
        dialogues: Optional[list[WaitingDialogue]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.dialogues = list(DEFAULT_WAITING_DIALOGUES if dialogues is None else dialogues)
        self.rng = rng or random.Random()

    def add(self, dialogue: WaitingDialogue) -> None:
        if dialogue.context not in WAITING_CONTEXTS:
            raise ValueError(
                f"Unknown waiting context '{dialogue.context}'. Supported: {list(WAITING_CONTEXTS)}"
            )
        self.dialogues.append(dialogue)

    def pick(self, context: str) -> Optional[WaitingDialogue]:
        """Uniform random choice among the lines for ``context``."""
        matching = [d for d in self.dialogues if d.context == context]
        if not matching:
            return None
        return self.rng.choice(matching)

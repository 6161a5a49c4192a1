from typing import Literal

from pydantic import BaseModel, ConfigDict

Language = Literal["zh", "jp", "en"]


class MultiLanguageContent(BaseModel):
    """A display string in Chinese, Japanese and English."""

    model_config = ConfigDict(frozen=True)

    zh: str = ""
    jp: str = ""
    en: str = ""

    @classmethod
    def same(cls, text: str) -> "MultiLanguageContent":
        return cls(zh=text, jp=text, en=text)

    def get(self, language: str = "en") -> str:
        value = getattr(self, language, None) if language in ("zh", "jp", "en") else None
        return value or self.en

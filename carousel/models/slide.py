from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SlideContent(BaseModel):
    """
    One paragraph-derived unit of text destined for exactly one slide.

    Attributes:
        body_text: Paragraph text with highlight markers stripped
        highlight: Text that was delimited by the first ``**...**`` pair,
            kept in its original case (uppercased at layout time)
        char_count: ``len(body_text)``, for statistics only
    """
    model_config = ConfigDict(frozen=True)

    body_text: str
    highlight: Optional[str] = None
    char_count: int = 0

    @model_validator(mode='before')
    @classmethod
    def _derive_char_count(cls, data):
        if isinstance(data, dict) and 'char_count' not in data:
            data = {**data, 'char_count': len(data.get('body_text') or '')}
        return data

    @model_validator(mode='after')
    def _empty_highlight_is_none(self):
        if self.highlight is not None and not self.highlight:
            raise ValueError("highlight must be non-empty when present")
        return self


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class HeaderAnchors(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: Point
    slide_number: Point


class FooterAnchors(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: Point
    arrow: Point


class BadgeBox(BaseModel):
    """Highlight badge: position, size and its already-wrapped, uppercased lines."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float
    line_height: float
    text: str
    lines: List[str] = Field(default_factory=list)


class TextBox(BaseModel):
    """Region reserved for the body; lines are wrapped against `width` at draw time."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    max_height: float

    @property
    def bottom(self) -> float:
        return self.y + self.max_height


class SlideLayout(BaseModel):
    """Geometric plan for one slide, a pure function of content, theme and position."""
    model_config = ConfigDict(frozen=True)

    header: HeaderAnchors
    badge: Optional[BadgeBox] = None
    text_box: TextBox
    footer: FooterAnchors
    slide_number: str

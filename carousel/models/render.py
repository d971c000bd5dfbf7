from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field

from carousel.config import settings
from carousel.models.slide import SlideContent, SlideLayout
from carousel.models.theme import ThemeMetrics


class OverflowMode(str, Enum):
    TRUNCATE = "truncate"
    SHRINK_TO_FIT = "shrink-to-fit"


class RenderConfig(BaseModel):
    """User-facing strings and policy that cannot be derived from content or theme."""
    model_config = ConfigDict(frozen=True)

    username: str = ""
    footer_text: str = ""
    slide_number: str = ""
    overflow_mode: OverflowMode = Field(default_factory=lambda: OverflowMode(settings.OVERFLOW_MODE))
    min_font_size: float = Field(default=settings.MIN_FONT_SIZE, gt=0)

    def for_slide(self, slide_index: int, total_slides: int) -> "RenderConfig":
        return self.model_copy(update={'slide_number': f"{slide_index + 1}/{total_slides}"})


class RenderRequest(BaseModel):
    """Everything needed to lay out and draw one slide."""
    model_config = ConfigDict(frozen=True)

    content: SlideContent
    theme: ThemeMetrics
    slide_index: int = Field(ge=0)
    total_slides: int = Field(ge=1)
    config: RenderConfig


@dataclass(frozen=True)
class OverflowWarning:
    """Non-fatal: the body did not fit its box at the theme's font size."""
    slide_index: int
    total_lines: int
    drawn_lines: int
    font_size: float
    mode: OverflowMode

    @property
    def message(self) -> str:
        if self.mode is OverflowMode.SHRINK_TO_FIT:
            return (f"Slide {self.slide_index + 1}: text does not fit even at {self.font_size:g}px, "
                    f"{self.total_lines - self.drawn_lines} line(s) dropped")
        return (f"Slide {self.slide_index + 1}: {self.total_lines - self.drawn_lines} "
                f"line(s) of body text dropped")


@dataclass
class RenderedSlide:
    """A drawn slide plus what was actually placed on it."""
    index: int
    image: Image.Image
    layout: SlideLayout
    body_lines: List[str] = field(default_factory=list)
    body_font_size: float = 0.0
    warning: Optional[OverflowWarning] = None

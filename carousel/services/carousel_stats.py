"""
Summary statistics for a generated carousel.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from carousel.models.render import RenderedSlide
from carousel.models.slide import SlideContent

# Rough size of one 1080x1080 PNG slide
AVERAGE_SLIDE_KB = 400


class CarouselStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_slides: int
    total_chars: int
    average_chars_per_slide: int
    slides_with_badge: int
    canvas_size: Optional[str] = None
    estimated_file_size: str
    overflow_warnings: int = 0
    timestamp: str


def estimate_file_size(slide_count: int) -> str:
    total_mb = slide_count * AVERAGE_SLIDE_KB / 1024
    return f"~{total_mb:.1f} MB"


def carousel_stats(units: List[SlideContent], slides: Optional[List[RenderedSlide]] = None) -> CarouselStats:
    slides = slides or []
    total_chars = sum(unit.char_count for unit in units)
    canvas_size = None
    if slides:
        width, height = slides[0].image.size
        canvas_size = f"{width}x{height}"

    return CarouselStats(
        total_slides=len(units),
        total_chars=total_chars,
        average_chars_per_slide=round(total_chars / len(units)) if units else 0,
        slides_with_badge=sum(1 for unit in units if unit.highlight),
        canvas_size=canvas_size,
        estimated_file_size=estimate_file_size(len(slides)),
        overflow_warnings=sum(1 for slide in slides if slide.warning),
        timestamp=datetime.now(timezone.utc).isoformat()
    )

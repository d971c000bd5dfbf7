"""
Exception hierarchy for carousel generation.

Content-shaped problems (unbalanced highlight markers, overflowing body
text) never raise; they degrade. Only configuration and drawing failures
are fatal, and the pipeline reports them for the whole batch.
"""

from typing import Optional, Dict, Any


class CarouselError(Exception):
    """Base exception for all carousel errors"""

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.cause = cause
        self.context = context or {}

    def __str__(self):
        parts = [super().__str__()]
        if self.cause:
            parts.append(f" (caused by: {type(self.cause).__name__}: {str(self.cause)})")
        if self.context:
            parts.append(f" Context: {self.context}")
        return "".join(parts)


# === Configuration exceptions ===

class ConfigurationError(CarouselError):
    """A required theme metric or setting is absent or invalid"""
    pass


class ThemeNotFoundError(ConfigurationError):
    """Requested theme id is not in the catalog"""

    def __init__(self, theme_id: str, **kwargs):
        super().__init__(f"Theme '{theme_id}' not found", **kwargs)
        self.theme_id = theme_id
        self.context.setdefault('theme_id', theme_id)


# === Rendering exceptions ===

class RenderError(CarouselError):
    """A drawing primitive failed (font unavailable, invalid paint, ...)"""
    pass


class TextOverflowError(CarouselError):
    """Text does not fit its box even at the minimum font size"""

    def __init__(self, message: str, min_font_size: float, line_count: int, **kwargs):
        super().__init__(message, **kwargs)
        self.min_font_size = min_font_size
        self.line_count = line_count


# === Orchestration exceptions ===

class GenerationFailedError(CarouselError):
    """A slide failed, so the whole batch is reported as failed"""

    def __init__(self, slide_index: int, total_slides: int, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.slide_index = slide_index
        self.total_slides = total_slides
        self.context.update({
            'slide_index': slide_index,
            'total_slides': total_slides
        })


class GenerationCancelled(CarouselError):
    """Batch generation was stopped before every slide was rendered"""

    def __init__(self, completed: int, total_slides: int, **kwargs):
        super().__init__(f"Generation cancelled after {completed}/{total_slides} slides", **kwargs)
        self.completed = completed
        self.total_slides = total_slides

"""
Layout Engine - computes the geometry of one carousel slide.

Header and footer sit in fixed zones at the top and bottom of the canvas.
An optional highlight badge comes first in the content area, the body box
takes what is left above the footer zone. Line breaking is greedy word
fill against widths reported by the injected measurement port.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from carousel.exceptions import ConfigurationError, TextOverflowError
from carousel.models.render import OverflowMode
from carousel.models.slide import (
    BadgeBox,
    FooterAnchors,
    HeaderAnchors,
    Point,
    SlideContent,
    SlideLayout,
    TextBox
)
from carousel.models.theme import FontSpec, ThemeMetrics
from carousel.services.font_metrics_service import MeasurementPort
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)

# Geometry shared by every theme (pixels)
MAX_BADGE_WIDTH = 900
HEADER_BASELINE = 138
CONTENT_TOP = 250
BADGE_X = 90
BADGE_GAP = 40
FOOTER_ZONE = 150
FOOTER_TEXT_OFFSET = 60
FOOTER_ARROW_OFFSET = 55

SHRINK_STEP = 2
_EPSILON = 1e-6


@dataclass
class BadgeMetrics:
    """Size of the highlight badge before it is placed on the canvas."""
    text: str
    lines: List[str]
    width: float
    height: float
    line_height: float


@dataclass
class FontFit:
    font_size: float
    lines: List[str]


@dataclass
class BodyPlan:
    """Body lines as they will be painted, plus the overflow bookkeeping."""
    font: FontSpec
    line_height: float
    lines: List[str]
    visible_lines: List[str]
    positions: List[float] = field(default_factory=list)
    mode: OverflowMode = OverflowMode.TRUNCATE
    shrink_failed: bool = False

    @property
    def overflowed(self) -> bool:
        return len(self.visible_lines) < len(self.lines)


def wrap_text(text: str, max_width: float, font: FontSpec, measure: MeasurementPort) -> List[str]:
    """Greedy word wrap.

    Words are joined with single spaces; a word that would push the line past
    ``max_width`` starts a new line unless the line is empty. A single word
    wider than ``max_width`` sits alone on its line and is never split.
    """
    words = text.split()
    lines: List[str] = []
    current_line = ''

    for word in words:
        test_line = f"{current_line} {word}" if current_line else word
        if current_line and measure.measure_width(test_line, font) > max_width:
            lines.append(current_line)
            current_line = word
        else:
            current_line = test_line

    if current_line:
        lines.append(current_line)

    return lines


def center_vertically(line_count: int, box_y: float, box_height: float, line_height: float) -> List[float]:
    """Top y of each line when a block of lines is centred in a box.

    A block taller than the box starts at the top edge instead of above it.
    """
    total_height = line_count * line_height
    start_y = box_y + max((box_height - total_height) / 2, 0)
    return [start_y + i * line_height for i in range(line_count)]


def validate_theme(theme: Union[ThemeMetrics, Dict[str, Any]]) -> ThemeMetrics:
    """Accept resolved metrics or raw theme data; anything incomplete is a configuration error."""
    if isinstance(theme, ThemeMetrics):
        return theme
    if isinstance(theme, dict):
        return ThemeMetrics.from_dict(theme)
    raise ConfigurationError(f"Expected ThemeMetrics, got {type(theme).__name__}")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class LayoutEngine:
    """Pure layout calculations over a measurement port."""

    def __init__(self, measure: MeasurementPort):
        self.measure = measure

    def wrap_text(self, text: str, max_width: float, font: FontSpec) -> List[str]:
        return wrap_text(text, max_width, font, self.measure)

    def calculate_layout(
        self,
        content: SlideContent,
        theme: ThemeMetrics,
        slide_index: int,
        total: int
    ) -> SlideLayout:
        """
        Compute header/footer anchors, the badge box and the body box.

        Args:
            content: The slide's content unit
            theme: Resolved theme metrics
            slide_index: Zero-based position in the carousel
            total: Number of slides in the carousel

        Returns:
            SlideLayout for this slide
        """
        theme = validate_theme(theme)
        width, height = theme.width, theme.height
        padding = theme.spacing.padding

        def anchor(x: float, y: float) -> Point:
            return Point(x=_clamp(x, 0, width), y=_clamp(y, 0, height))

        header = HeaderAnchors(
            username=anchor(padding, HEADER_BASELINE),
            slide_number=anchor(width - padding, HEADER_BASELINE)
        )
        footer = FooterAnchors(
            text=anchor(padding, height - FOOTER_TEXT_OFFSET),
            arrow=anchor(width - padding, height - FOOTER_ARROW_OFFSET)
        )

        # Nothing in the content area may reach into the footer zone
        content_bottom = max(0.0, height - FOOTER_ZONE)
        current_y = min(CONTENT_TOP, content_bottom)
        badge = None

        if content.highlight:
            metrics = self.calculate_badge_layout(
                content.highlight, theme, max_height=content_bottom - current_y
            )
            badge = BadgeBox(
                x=_clamp(BADGE_X, 0, width),
                y=current_y,
                width=metrics.width,
                height=metrics.height,
                line_height=metrics.line_height,
                text=metrics.text,
                lines=metrics.lines
            )
            current_y = min(current_y + metrics.height + BADGE_GAP, content_bottom)

        text_box = TextBox(
            x=padding,
            y=current_y,
            width=max(0.0, width - padding * 2),
            max_height=max(0.0, content_bottom - current_y)
        )

        logger.debug(
            f"[LAYOUT] slide {slide_index + 1}/{total}: badge={'yes' if badge else 'no'}, "
            f"text_box=({text_box.x:.0f},{text_box.y:.0f}) {text_box.width:.0f}x{text_box.max_height:.0f}"
        )

        return SlideLayout(
            header=header,
            badge=badge,
            text_box=text_box,
            footer=footer,
            slide_number=f"{slide_index + 1}/{total}"
        )

    def calculate_badge_layout(
        self,
        text: str,
        theme: ThemeMetrics,
        max_height: Optional[float] = None
    ) -> BadgeMetrics:
        """Uppercase, wrap and size the highlight badge.

        With ``max_height`` the badge keeps only the lines that fit in it;
        the first line is always kept and the height is capped.
        """
        badge_text = text.upper()
        font = theme.fonts.badge
        horizontal_padding = theme.spacing.badge_padding
        max_text_width = MAX_BADGE_WIDTH - horizontal_padding * 2

        lines = self.wrap_text(badge_text, max_text_width, font)
        if not lines:
            lines = [badge_text]

        line_height = font.size * theme.spacing.badge_line_height
        base_height = theme.spacing.badge_height

        if max_height is not None and line_height > 0:
            spare = max(0.0, max_height - base_height)
            fitting = 1 + int((spare + _EPSILON) // line_height)
            if len(lines) > fitting:
                logger.info(f"[LAYOUT] Badge text cut from {len(lines)} to {fitting} line(s)")
                lines = lines[:fitting]

        max_line_width = max(self.measure.measure_width(line, font) for line in lines)
        badge_width = min(MAX_BADGE_WIDTH, max_line_width + horizontal_padding * 2)

        extra_lines = max(0, len(lines) - 1)
        badge_height = base_height + extra_lines * line_height
        if max_height is not None:
            badge_height = min(badge_height, max(0.0, max_height))

        return BadgeMetrics(
            text=badge_text,
            lines=lines,
            width=badge_width,
            height=badge_height,
            line_height=line_height
        )

    def fit_body_lines(
        self,
        text: str,
        box: TextBox,
        font: FontSpec,
        line_height_multiplier: float
    ) -> BodyPlan:
        """Truncation policy: lines whose bottom would pass the box are dropped."""
        lines = self.wrap_text(text, box.width, font)
        line_height = font.size * line_height_multiplier
        visible: List[str] = []
        positions: List[float] = []

        for i, line in enumerate(lines):
            if (i + 1) * line_height > box.max_height + _EPSILON:
                break
            visible.append(line)
            positions.append(box.y + i * line_height)

        return BodyPlan(
            font=font,
            line_height=line_height,
            lines=lines,
            visible_lines=visible,
            positions=positions,
            mode=OverflowMode.TRUNCATE
        )

    def calculate_optimal_font_size(
        self,
        text: str,
        box: TextBox,
        font: FontSpec,
        min_font_size: float,
        line_height_multiplier: float
    ) -> FontFit:
        """
        Shrink the font in fixed steps until the wrapped text fits the box.

        Starts at ``font.size``; raises ``TextOverflowError`` when even
        ``min_font_size`` does not fit.
        """
        font_size = font.size
        lines: List[str] = []

        while font_size >= min_font_size - _EPSILON:
            lines = self.wrap_text(text, box.width, font.with_size(font_size))
            total_height = len(lines) * font_size * line_height_multiplier

            if total_height <= box.max_height + _EPSILON:
                return FontFit(font_size=font_size, lines=lines)

            font_size -= SHRINK_STEP

        raise TextOverflowError(
            "Text too long for slide",
            min_font_size=min_font_size,
            line_count=len(lines),
            context={'box_height': box.max_height}
        )

    def plan_body(
        self,
        text: str,
        box: TextBox,
        theme: ThemeMetrics,
        mode: OverflowMode = OverflowMode.TRUNCATE,
        min_font_size: Optional[float] = None
    ) -> BodyPlan:
        """Wrap the body once and apply the overflow policy."""
        font = theme.fonts.body
        multiplier = theme.spacing.line_height

        if mode is OverflowMode.TRUNCATE:
            return self.fit_body_lines(text, box, font, multiplier)

        floor_size = min(min_font_size if min_font_size is not None else font.size, font.size)
        try:
            fit = self.calculate_optimal_font_size(text, box, font, floor_size, multiplier)
        except TextOverflowError as e:
            logger.info(f"[LAYOUT] {e}; truncating at {floor_size:g}px")
            plan = self.fit_body_lines(text, box, font.with_size(floor_size), multiplier)
            plan.mode = OverflowMode.SHRINK_TO_FIT
            plan.shrink_failed = True
            return plan

        fitted_font = font.with_size(fit.font_size)
        line_height = fit.font_size * multiplier
        return BodyPlan(
            font=fitted_font,
            line_height=line_height,
            lines=fit.lines,
            visible_lines=list(fit.lines),
            positions=[box.y + i * line_height for i in range(len(fit.lines))],
            mode=OverflowMode.SHRINK_TO_FIT
        )

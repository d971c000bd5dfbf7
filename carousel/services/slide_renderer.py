"""
Slide Renderer - rasterizes a computed slide layout into a Pillow image.

Drawing order: background, header, badge, body, footer. The body is wrapped
here, once, against the live font metrics and the box reserved by the
layout engine; the badge reuses the lines the layout engine already wrapped.
"""

import math
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from carousel.exceptions import CarouselError, RenderError
from carousel.models.render import OverflowMode, OverflowWarning, RenderConfig, RenderedSlide
from carousel.models.slide import SlideContent, SlideLayout
from carousel.models.theme import FontSpec, LinearGradient, Paint, ThemeMetrics
from carousel.services.font_metrics_service import FontResolver, MeasurementPort, PillowMeasurement
from carousel.services.layout_engine import BodyPlan, LayoutEngine, center_vertically, validate_theme
from carousel.setup_logging_optimized import get_logger
from carousel.utils.colors import RGBA, parse_color

logger = get_logger(__name__)

ARROW_GLYPH = '→'
ARROW_FONT = FontSpec(family='Arial, sans-serif', size=40, weight='normal')

# Pillow anchors: left/right x, alphabetic baseline or ascender (top)
_LEFT_BASELINE = 'ls'
_RIGHT_BASELINE = 'rs'
_LEFT_TOP = 'la'


def _color(value: str, role: str) -> Optional[RGBA]:
    try:
        return parse_color(value)
    except ValueError as e:
        raise RenderError(f"Invalid {role} colour {value!r}", cause=e) from e


def render_linear_gradient(size: Tuple[int, int], gradient: LinearGradient) -> Image.Image:
    """Render a CSS-style linear gradient as an RGBA image.

    The gradient line passes through the centre at ``gradient.angle``
    (0deg up, 90deg right) and is long enough that the stop positions
    0% and 100% land on the canvas corners, as in CSS.
    """
    width, height = size
    angle = math.radians(gradient.angle)
    dx, dy = math.sin(angle), -math.cos(angle)
    length = abs(width * dx) + abs(height * dy) or 1.0

    xs = np.arange(width, dtype=np.float64) + 0.5 - width / 2
    ys = np.arange(height, dtype=np.float64) + 0.5 - height / 2
    t = (xs[np.newaxis, :] * dx + ys[:, np.newaxis] * dy) / length + 0.5
    t = np.clip(t, 0.0, 1.0)

    positions = []
    colors = []
    last = 0.0
    for stop in gradient.stops:
        rgba = _color(stop.color, 'gradient stop') or (0, 0, 0, 0)
        # Stops never move backwards
        last = max(last, stop.position)
        positions.append(last)
        colors.append(rgba)

    channels = [
        np.interp(t, positions, [c[i] for c in colors])
        for i in range(4)
    ]
    pixels = np.clip(np.rint(np.stack(channels, axis=-1)), 0, 255).astype(np.uint8)
    return Image.fromarray(pixels, 'RGBA')


class SlideRenderer:
    """Draws slides onto freshly allocated Pillow surfaces."""

    def __init__(self, measure: Optional[MeasurementPort] = None, resolver: Optional[FontResolver] = None):
        self.resolver = resolver or FontResolver()
        self.measure = measure or PillowMeasurement(self.resolver)

    def render(
        self,
        content: SlideContent,
        theme: ThemeMetrics,
        config: RenderConfig,
        slide_index: int = 0,
        total: int = 1
    ) -> RenderedSlide:
        """Lay out and draw a single slide."""
        theme = validate_theme(theme)
        layout = LayoutEngine(self.measure).calculate_layout(content, theme, slide_index, total)
        return self.draw(layout, content, theme, config, slide_index=slide_index)

    def draw(
        self,
        layout: SlideLayout,
        content: SlideContent,
        theme: ThemeMetrics,
        config: RenderConfig,
        slide_index: int = 0,
        measure: Optional[MeasurementPort] = None
    ) -> RenderedSlide:
        """
        Paint one slide.

        Args:
            layout: Geometry from the layout engine
            content: The slide's content unit (body is wrapped here)
            theme: Resolved theme metrics
            config: Username, footer text, slide number and overflow policy
            slide_index: Zero-based slide position, for error context and warnings
            measure: Measurement port to wrap the body with; defaults to the renderer's own

        Returns:
            RenderedSlide with the image and what was drawn

        Raises:
            RenderError: a drawing primitive failed
        """
        measure = measure or self.measure
        try:
            img = Image.new('RGB', (theme.width, theme.height), color='#FFFFFF')
            # RGBA draw mode blends translucent fills onto the RGB surface
            draw = ImageDraw.Draw(img, 'RGBA')

            self._draw_background(img, draw, theme.background)
            self._draw_header(draw, layout, theme, config)
            if layout.badge:
                self._draw_badge(draw, layout, theme)
            plan = LayoutEngine(measure).plan_body(
                content.body_text,
                layout.text_box,
                theme,
                mode=config.overflow_mode,
                min_font_size=config.min_font_size
            )
            self._draw_body(draw, plan, layout, theme)
            self._draw_footer(draw, layout, theme, config)
        except CarouselError as e:
            e.context.setdefault('slide_index', slide_index)
            raise
        except (OSError, ValueError, TypeError) as e:
            raise RenderError(f"Failed to draw slide {slide_index + 1}", cause=e,
                              context={'slide_index': slide_index}) from e

        warning = None
        if plan.overflowed:
            warning = OverflowWarning(
                slide_index=slide_index,
                total_lines=len(plan.lines),
                drawn_lines=len(plan.visible_lines),
                font_size=plan.font.size,
                mode=plan.mode
            )
            logger.warning(f"[RENDER] {warning.message}")
        elif plan.mode is OverflowMode.SHRINK_TO_FIT and plan.font.size != theme.fonts.body.size:
            logger.info(f"[RENDER] Slide {slide_index + 1}: body shrunk to {plan.font.size:g}px")

        return RenderedSlide(
            index=slide_index,
            image=img,
            layout=layout,
            body_lines=list(plan.visible_lines),
            body_font_size=plan.font.size,
            warning=warning
        )

    def _draw_background(self, img: Image.Image, draw: ImageDraw.ImageDraw, paint: Paint):
        if isinstance(paint, LinearGradient):
            gradient = render_linear_gradient(img.size, paint)
            img.paste(gradient, (0, 0), gradient)
            return

        color = _color(paint, 'background')
        if color is not None:
            draw.rectangle([0, 0, img.width, img.height], fill=color)

    def _text(self, draw, xy, text: str, font: FontSpec, color: Optional[RGBA], anchor: str):
        if not text or color is None:
            return
        draw.text(xy, text, font=self.resolver.get_font(font), fill=color, anchor=anchor)

    def _draw_header(self, draw, layout: SlideLayout, theme: ThemeMetrics, config: RenderConfig):
        color = _color(theme.colors.header_text, 'header')
        font = theme.fonts.header
        username = layout.header.username
        number = layout.header.slide_number

        self._text(draw, (username.x, username.y), config.username, font, color, _LEFT_BASELINE)
        self._text(draw, (number.x, number.y), config.slide_number or layout.slide_number,
                   font, color, _RIGHT_BASELINE)

    def _draw_badge(self, draw, layout: SlideLayout, theme: ThemeMetrics):
        badge = layout.badge
        fill = _color(theme.colors.badge, 'badge')
        if fill is not None:
            draw.rectangle(
                [badge.x, badge.y, badge.x + badge.width - 1, badge.y + badge.height - 1],
                fill=fill
            )

        text_color = _color(theme.colors.badge_text, 'badge text')
        lines = badge.lines or [badge.text]
        tops = center_vertically(len(lines), badge.y, badge.height, badge.line_height)
        for line, top in zip(lines, tops):
            self._text(draw, (badge.x + theme.spacing.badge_padding, top), line,
                       theme.fonts.badge, text_color, _LEFT_TOP)

    def _draw_body(self, draw, plan: BodyPlan, layout: SlideLayout, theme: ThemeMetrics):
        color = _color(theme.colors.body_text, 'body')
        x = layout.text_box.x
        for line, y in zip(plan.visible_lines, plan.positions):
            self._text(draw, (x, y), line, plan.font, color, _LEFT_BASELINE)

    def _draw_footer(self, draw, layout: SlideLayout, theme: ThemeMetrics, config: RenderConfig):
        if not config.footer_text:
            return

        color = _color(theme.colors.footer_text, 'footer')
        text_at = layout.footer.text
        arrow_at = layout.footer.arrow
        self._text(draw, (text_at.x, text_at.y), config.footer_text, theme.fonts.footer,
                   color, _LEFT_BASELINE)
        self._text(draw, (arrow_at.x, arrow_at.y), ARROW_GLYPH, ARROW_FONT, color, _RIGHT_BASELINE)

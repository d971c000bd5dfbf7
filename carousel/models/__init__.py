from .slide import (
    SlideContent,
    Point,
    HeaderAnchors,
    FooterAnchors,
    BadgeBox,
    TextBox,
    SlideLayout
)
from .theme import (
    FontSpec,
    ColorStop,
    LinearGradient,
    Paint,
    ThemeFonts,
    ThemeColors,
    ThemeSpacing,
    CanvasFormat,
    ThemeDefinition,
    ThemeMetrics
)
from .render import (
    OverflowMode,
    RenderConfig,
    RenderRequest,
    OverflowWarning,
    RenderedSlide
)

__all__ = [
    'SlideContent',
    'Point',
    'HeaderAnchors',
    'FooterAnchors',
    'BadgeBox',
    'TextBox',
    'SlideLayout',
    'FontSpec',
    'ColorStop',
    'LinearGradient',
    'Paint',
    'ThemeFonts',
    'ThemeColors',
    'ThemeSpacing',
    'CanvasFormat',
    'ThemeDefinition',
    'ThemeMetrics',
    'OverflowMode',
    'RenderConfig',
    'RenderRequest',
    'OverflowWarning',
    'RenderedSlide'
]

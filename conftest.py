"""
Pytest configuration and fixtures for the carousel tests.

Layout assertions use a fixed-advance measurement so that pixel numbers
can be worked out by hand: every character is ``font.size * 0.5`` wide.
With the ``theme`` fixture (body 20px, padding 90 on a 1080 canvas) a body
character is 10px and the body box is 900px, i.e. 90 characters per line.
"""

import sys
from pathlib import Path
from typing import Any, Dict

import pytest

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from carousel.models.render import RenderConfig  # noqa: E402
from carousel.models.theme import FontSpec, ThemeMetrics  # noqa: E402
from carousel.services.font_metrics_service import FontResolver  # noqa: E402
from carousel.services.layout_engine import LayoutEngine  # noqa: E402
from carousel.services.slide_renderer import SlideRenderer  # noqa: E402


class FixedAdvanceMeasurement:
    """Every character advances ``font.size * ratio`` pixels."""

    def __init__(self, ratio: float = 0.5):
        self.ratio = ratio
        self.calls = 0

    def measure_width(self, text: str, font: FontSpec) -> float:
        self.calls += 1
        return len(text) * font.size * self.ratio


def make_theme_data(**overrides: Any) -> Dict[str, Any]:
    """Raw camelCase theme metrics; nested dicts in ``overrides`` are merged."""
    data: Dict[str, Any] = {
        'themeId': 'test',
        'width': 1080,
        'height': 1080,
        'background': '#FFFFFF',
        'fonts': {
            'header': {'family': 'sans-serif', 'size': 20},
            'badge': {'family': 'sans-serif', 'size': 50, 'weight': 'bold'},
            'body': {'family': 'sans-serif', 'size': 20},
            'footer': {'family': 'sans-serif', 'size': 20},
        },
        'colors': {
            'badge': '#00B341',
            'badgeText': '#FFFFFF',
            'bodyText': '#000000',
            'headerText': '#999999',
            'footerText': '#AAAAAA',
        },
        'spacing': {
            'padding': 90,
            'lineHeight': 1.5,
            'badgeHeight': 100,
            'badgePadding': 50,
            'badgeLineHeight': 1.2,
        },
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return data


@pytest.fixture
def measure() -> FixedAdvanceMeasurement:
    return FixedAdvanceMeasurement()


@pytest.fixture
def theme() -> ThemeMetrics:
    return ThemeMetrics.from_dict(make_theme_data())


@pytest.fixture
def engine(measure) -> LayoutEngine:
    return LayoutEngine(measure)


@pytest.fixture
def renderer(measure) -> SlideRenderer:
    """Renderer drawing with whatever font Pillow can find, sized by the fake measure."""
    return SlideRenderer(measure=measure, resolver=FontResolver(font_dirs=[], strict=False))


@pytest.fixture
def config() -> RenderConfig:
    return RenderConfig(username="@tester", footer_text="swipe")

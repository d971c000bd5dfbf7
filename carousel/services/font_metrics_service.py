"""
Font Metrics Service - the measurement port used by layout and rendering.

Every width the layout engine and the renderer need comes from a
``MeasurementPort``. ``PillowMeasurement`` measures with real TrueType
fonts; ``EstimatedMeasurement`` approximates from per-family ratios when
no font files are available. ``CachedMeasurement`` wraps either so one
slide's sizing and drawing passes share the same numbers.
"""

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from PIL import ImageFont

from carousel.config import settings
from carousel.exceptions import RenderError
from carousel.models.theme import FontSpec
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)


class MeasurementPort(Protocol):
    """Measures the advance width of a single-line text run in pixels."""

    def measure_width(self, text: str, font: FontSpec) -> float:
        ...


# CSS generic / system aliases that all land on the platform sans-serif
_SANS_ALIASES = {
    'sans-serif', '-apple-system', 'blinkmacsystemfont', 'system', 'system-ui',
    'sf pro', 'sf pro display', 'sf pro text', 'helvetica', 'helvetica neue', 'arial',
    'inter', 'roboto', 'open sans', 'montserrat', 'poppins'
}

# (regular, bold) candidates per family, first existing wins
FONT_PATHS: Dict[str, List[Tuple[str, str]]] = {
    'Inter': [
        ('/usr/share/fonts/truetype/inter/Inter-Regular.ttf', '/usr/share/fonts/truetype/inter/Inter-Bold.ttf'),
    ],
    'Montserrat': [
        ('/usr/share/fonts/truetype/montserrat/Montserrat-Regular.ttf', '/usr/share/fonts/truetype/montserrat/Montserrat-Black.ttf'),
    ],
    'Open Sans': [
        ('/usr/share/fonts/truetype/open-sans/OpenSans-Regular.ttf', '/usr/share/fonts/truetype/open-sans/OpenSans-Bold.ttf'),
    ],
    'Poppins': [
        ('/usr/share/fonts/truetype/poppins/Poppins-Regular.ttf', '/usr/share/fonts/truetype/poppins/Poppins-Bold.ttf'),
    ],
    'Arial': [
        ('/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf', '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf'),
        ('/Library/Fonts/Arial.ttf', '/Library/Fonts/Arial Bold.ttf'),
        ('C:\\Windows\\Fonts\\arial.ttf', 'C:\\Windows\\Fonts\\arialbd.ttf'),
    ],
    'sans-serif': [
        ('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf'),
        ('/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf', '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf'),
        ('/usr/share/fonts/dejavu/DejaVuSans.ttf', '/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf'),
        ('/System/Library/Fonts/Helvetica.ttc', '/System/Library/Fonts/Helvetica.ttc'),
        ('C:\\Windows\\Fonts\\arial.ttf', 'C:\\Windows\\Fonts\\arialbd.ttf'),
    ],
}

_FONT_SUFFIXES = ('.ttf', '.otf', '.ttc')
_BOLD_TOKENS = ('bold', 'black', 'heavy', 'extrabold')


def _normalize(name: str) -> str:
    return name.lower().replace(' ', '').replace('-', '').replace('_', '')


class FontResolver:
    """Maps a ``FontSpec`` to a loaded Pillow font.

    Lookup order per family in the font's fallback list: configured font
    directories (file stem matches the family), then the ``FONT_PATHS``
    table, then the platform sans-serif for generic/system names. If no
    candidate exists, Pillow's bundled font is used unless ``strict``.
    """

    def __init__(self, font_dirs: Optional[List[str]] = None, strict: Optional[bool] = None):
        self.font_dirs = [Path(d) for d in (font_dirs if font_dirs is not None else settings.FONT_DIRS)]
        self.strict = settings.STRICT_FONTS if strict is None else strict
        self._font_cache: Dict[Tuple[Optional[str], int], ImageFont.ImageFont] = {}
        self._path_cache: Dict[Tuple[str, bool], Optional[str]] = {}
        self._dir_index: Optional[Dict[str, List[Path]]] = None
        self._lock = threading.Lock()

    def _scan_dirs(self) -> Dict[str, List[Path]]:
        if self._dir_index is None:
            index: Dict[str, List[Path]] = {}
            for directory in self.font_dirs:
                if not directory.is_dir():
                    logger.warning(f"Font directory does not exist: {directory}")
                    continue
                for path in sorted(directory.rglob('*')):
                    if path.suffix.lower() in _FONT_SUFFIXES:
                        family = _normalize(path.stem.split('-')[0])
                        index.setdefault(family, []).append(path)
            self._dir_index = index
        return self._dir_index

    def _from_dirs(self, family: str, bold: bool) -> Optional[str]:
        candidates = self._scan_dirs().get(_normalize(family), [])
        if not candidates:
            return None
        for path in candidates:
            is_bold_file = any(tok in path.stem.lower() for tok in _BOLD_TOKENS)
            if is_bold_file == bold:
                return str(path)
        return str(candidates[0])

    def _from_table(self, family: str, bold: bool) -> Optional[str]:
        key = family if family in FONT_PATHS else None
        if key is None and family.lower() in _SANS_ALIASES:
            key = 'sans-serif'
        for regular, heavy in FONT_PATHS.get(key, []):
            path = heavy if bold else regular
            if os.path.exists(path):
                return path
            if os.path.exists(regular):
                return regular
        return None

    def resolve_path(self, font: FontSpec) -> Optional[str]:
        """Return the file used for ``font``, or None for the bundled fallback."""
        bold = font.is_bold
        cache_key = (font.family, bold)
        if cache_key in self._path_cache:
            return self._path_cache[cache_key]

        path = None
        for family in font.families:
            path = self._from_dirs(family, bold) or self._from_table(family, bold)
            if path:
                break

        if path is None:
            if self.strict:
                raise RenderError(f"No font file found for '{font.family}'",
                                  context={'weight': font.weight})
            logger.warning(f"Font '{font.family}' not found, using Pillow's bundled font")

        self._path_cache[cache_key] = path
        return path

    def get_font(self, font: FontSpec) -> ImageFont.ImageFont:
        """Get font with caching"""
        size = max(1, int(round(font.size)))
        path = self.resolve_path(font)
        cache_key = (path, size)

        with self._lock:
            if cache_key in self._font_cache:
                return self._font_cache[cache_key]
            try:
                if path is None:
                    loaded = ImageFont.load_default(size=size)
                else:
                    loaded = ImageFont.truetype(path, size)
            except (OSError, ValueError) as e:
                raise RenderError(f"Failed to load font '{font.family}'", cause=e,
                                  context={'path': path, 'size': size}) from e
            self._font_cache[cache_key] = loaded
            return loaded


class PillowMeasurement:
    """Measures text with the same Pillow fonts the renderer draws with."""

    def __init__(self, resolver: Optional[FontResolver] = None):
        self.resolver = resolver or FontResolver()

    def measure_width(self, text: str, font: FontSpec) -> float:
        if not text:
            return 0.0
        return float(self.resolver.get_font(font).getlength(text))


@dataclass
class FontMetrics:
    """Stores pre-calculated metrics for a font family."""
    family: str
    avg_char_width_ratio: float  # Average character width relative to font size
    space_width_ratio: float  # Width of space character relative to font size

    # Character width multipliers for common characters (relative to avg)
    char_width_factors: Dict[str, float] = field(default=None)

    def __post_init__(self):
        if self.char_width_factors is None:
            self.char_width_factors = {
                'i': 0.4, 'l': 0.4, 'I': 0.4, '1': 0.6,
                'w': 1.3, 'W': 1.5, 'M': 1.5, 'm': 1.3,
                ' ': self.space_width_ratio / self.avg_char_width_ratio
            }


class EstimatedMeasurement:
    """Fast width estimate from per-family ratios, no font files needed."""

    FONT_METRICS_DB = {
        "Inter": FontMetrics(family="Inter", avg_char_width_ratio=0.55, space_width_ratio=0.25),
        "Arial": FontMetrics(family="Arial", avg_char_width_ratio=0.56, space_width_ratio=0.28),
        "Helvetica": FontMetrics(family="Helvetica", avg_char_width_ratio=0.56, space_width_ratio=0.28),
        "Open Sans": FontMetrics(family="Open Sans", avg_char_width_ratio=0.55, space_width_ratio=0.26),
        "Montserrat": FontMetrics(family="Montserrat", avg_char_width_ratio=0.58, space_width_ratio=0.27),
        "Poppins": FontMetrics(family="Poppins", avg_char_width_ratio=0.57, space_width_ratio=0.26),
        "SF Pro": FontMetrics(family="SF Pro", avg_char_width_ratio=0.55, space_width_ratio=0.25),
    }
    DEFAULT_FAMILY = "Inter"
    BOLD_FACTOR = 1.08

    def get_font_metrics(self, font: FontSpec) -> FontMetrics:
        for family in font.families:
            if family in self.FONT_METRICS_DB:
                return self.FONT_METRICS_DB[family]
        return self.FONT_METRICS_DB[self.DEFAULT_FAMILY]

    def measure_width(self, text: str, font: FontSpec) -> float:
        metrics = self.get_font_metrics(font)
        avg_char_width = font.size * metrics.avg_char_width_ratio

        width = 0.0
        for char in text:
            if char in metrics.char_width_factors:
                width += avg_char_width * metrics.char_width_factors[char]
            elif char.isupper():
                width += avg_char_width * 1.2
            else:
                width += avg_char_width

        return width * self.BOLD_FACTOR if font.is_bold else width


class CachedMeasurement:
    """Memoises another port for the lifetime of one slide's pipeline run."""

    def __init__(self, inner: MeasurementPort):
        self.inner = inner
        self._cache: Dict[Tuple[str, str, float, str], float] = {}

    def measure_width(self, text: str, font: FontSpec) -> float:
        key = (text, font.family, font.size, font.weight)
        width = self._cache.get(key)
        if width is None:
            width = self.inner.measure_width(text, font)
            self._cache[key] = width
        return width

    @property
    def cache_size(self) -> int:
        return len(self._cache)

"""
Theme Catalog - the built-in visual themes and canvas format presets.

The catalog is an immutable value: "adding" or "removing" a theme returns a
new catalog, and the caller keeps whichever theme is currently selected.
``resolve_theme`` turns a catalog entry plus a format key into the fully
materialised ``ThemeMetrics`` the layout engine and renderer consume.
"""

import json
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import ValidationError

from carousel.config import settings
from carousel.exceptions import ConfigurationError, ThemeNotFoundError
from carousel.models.theme import CanvasFormat, ThemeDefinition, ThemeMetrics
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)

FORMATS = {
    'square': {'width': 1080, 'height': 1080},
    'portrait': {'width': 1080, 'height': 1350},
}

FALLBACK_FORMAT = 'square'


def _font(family: str, size: int, weight: str = 'normal') -> Dict[str, Any]:
    return {'family': family, 'size': size, 'weight': weight}


BUILTIN_THEMES: List[Dict[str, Any]] = [
    {
        'id': 'dengi_market',
        'name': 'Денги Маркет',
        'formats': FORMATS,
        'defaultFormat': 'square',
        'background': '#FFFFFF',
        'fonts': {
            'header': _font('SF Pro, -apple-system, BlinkMacSystemFont, sans-serif', 28),
            'badge': _font('System, -apple-system, BlinkMacSystemFont, sans-serif', 58, '900'),
            'body': _font('SF Pro, -apple-system, BlinkMacSystemFont, sans-serif', 38),
            'footer': _font('SF Pro, -apple-system, BlinkMacSystemFont, sans-serif', 32, '300'),
        },
        'colors': {
            'badge': '#00B341',
            'badgeText': '#FFFFFF',
            'bodyText': '#000000',
            'headerText': '#999999',
            'footerText': '#AAAAAA',
        },
        'spacing': {'padding': 86, 'lineHeight': 1.5, 'badgeHeight': 100, 'badgePadding': 60},
    },
    {
        'id': 'minimal',
        'name': 'Минимализм',
        'formats': FORMATS,
        'defaultFormat': 'square',
        'background': '#F5F5F5',
        'fonts': {
            'header': _font('Inter, -apple-system, sans-serif', 24),
            'badge': _font('Inter, -apple-system, sans-serif', 48, 'bold'),
            'body': _font('Inter, -apple-system, sans-serif', 32),
            'footer': _font('Inter, -apple-system, sans-serif', 28, '300'),
        },
        'colors': {
            'badge': '#000000',
            'badgeText': '#FFFFFF',
            'bodyText': '#1A1A1A',
            'headerText': '#666666',
            'footerText': '#999999',
        },
        'spacing': {'padding': 64, 'lineHeight': 1.6, 'badgeHeight': 80, 'badgePadding': 50},
    },
    {
        'id': 'vibrant',
        'name': 'Яркий',
        'formats': FORMATS,
        'defaultFormat': 'square',
        'background': '#FFFFFF',
        'fonts': {
            'header': _font('Montserrat, -apple-system, sans-serif', 28),
            'badge': _font('Montserrat, -apple-system, sans-serif', 52, '900'),
            'body': _font('Open Sans, -apple-system, sans-serif', 36),
            'footer': _font('Open Sans, -apple-system, sans-serif', 30, '300'),
        },
        'colors': {
            'badge': '#667eea',
            'badgeText': '#FFFFFF',
            'bodyText': '#2D3748',
            'headerText': '#718096',
            'footerText': '#A0AEC0',
        },
        'spacing': {'padding': 80, 'lineHeight': 1.5, 'badgeHeight': 90, 'badgePadding': 55},
    },
    {
        'id': 'dark',
        'name': 'Тёмный',
        'formats': FORMATS,
        'defaultFormat': 'square',
        'background': '#1A202C',
        'fonts': {
            'header': _font('SF Pro, -apple-system, sans-serif', 28),
            'badge': _font('SF Pro, -apple-system, sans-serif', 54, '900'),
            'body': _font('SF Pro, -apple-system, sans-serif', 38),
            'footer': _font('SF Pro, -apple-system, sans-serif', 32, '300'),
        },
        'colors': {
            'badge': '#48BB78',
            'badgeText': '#FFFFFF',
            'bodyText': '#F7FAFC',
            'headerText': '#A0AEC0',
            'footerText': '#718096',
        },
        'spacing': {'padding': 86, 'lineHeight': 1.5, 'badgeHeight': 95, 'badgePadding': 58},
    },
    {
        'id': 'gradient',
        'name': 'Градиент',
        'formats': FORMATS,
        'defaultFormat': 'square',
        'background': 'linear-gradient(135deg, #667eea 0%, #764ba2 100%)',
        'fonts': {
            'header': _font('Poppins, -apple-system, sans-serif', 26),
            'badge': _font('Poppins, -apple-system, sans-serif', 50, 'bold'),
            'body': _font('Poppins, -apple-system, sans-serif', 36),
            'footer': _font('Poppins, -apple-system, sans-serif', 30, '300'),
        },
        'colors': {
            'badge': '#FFFFFF',
            'badgeText': '#667eea',
            'bodyText': '#FFFFFF',
            'headerText': 'rgba(255,255,255,0.8)',
            'footerText': 'rgba(255,255,255,0.7)',
        },
        'spacing': {'padding': 80, 'lineHeight': 1.5, 'badgeHeight': 85, 'badgePadding': 52},
    },
]


def _definition(data: Dict[str, Any]) -> ThemeDefinition:
    try:
        return ThemeDefinition.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid theme definition '{data.get('id', '?')}'", cause=e
        ) from e


def resolve_canvas_size(theme: ThemeDefinition, format_key: Optional[str] = None) -> CanvasFormat:
    """Pick the canvas size for a format key.

    Unknown keys fall back to the theme's default format, then to ``square``.
    """
    key = format_key or theme.default_format or FALLBACK_FORMAT
    canvas = (
        theme.formats.get(key)
        or theme.formats.get(theme.default_format)
        or theme.formats.get(FALLBACK_FORMAT)
    )
    if canvas is None:
        raise ConfigurationError(
            f"Theme '{theme.id}' has no usable canvas format",
            context={'requested': key, 'available': sorted(theme.formats)}
        )
    if format_key and format_key not in theme.formats:
        logger.warning(f"Format '{format_key}' not defined for theme '{theme.id}', using {canvas.width}x{canvas.height}")
    return canvas


def materialize(theme: ThemeDefinition, format_key: Optional[str] = None) -> ThemeMetrics:
    """Resolve the canvas once and produce plain metrics for one generation run."""
    canvas = resolve_canvas_size(theme, format_key)
    return ThemeMetrics(
        theme_id=theme.id,
        width=canvas.width,
        height=canvas.height,
        background=theme.background,
        fonts=theme.fonts,
        colors=theme.colors,
        spacing=theme.spacing
    )


class ThemeCatalog(Mapping):
    """Read-only mapping of theme id to ``ThemeDefinition``."""

    def __init__(self, themes: Optional[Mapping[str, ThemeDefinition]] = None):
        if themes is None:
            themes = {t['id']: _definition(t) for t in BUILTIN_THEMES}
        self._themes = MappingProxyType(dict(themes))

    @classmethod
    def builtin(cls) -> "ThemeCatalog":
        return cls()

    def __getitem__(self, theme_id: str) -> ThemeDefinition:
        return self._themes[theme_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._themes)

    def __len__(self) -> int:
        return len(self._themes)

    def get_theme(self, theme_id: str) -> ThemeDefinition:
        try:
            return self._themes[theme_id]
        except KeyError:
            raise ThemeNotFoundError(theme_id, context={'available': sorted(self._themes)}) from None

    def list_themes(self) -> List[Dict[str, Any]]:
        """Summaries for a theme picker."""
        summaries = []
        for theme in self._themes.values():
            background = theme.background if isinstance(theme.background, str) else theme.background.css()
            summaries.append({
                'id': theme.id,
                'name': theme.name,
                'formats': sorted(theme.formats),
                'preview': {
                    'background': background,
                    'badge': theme.colors.badge
                }
            })
        return summaries

    def format_presets(self, theme_id: Optional[str] = None) -> Dict[str, CanvasFormat]:
        if theme_id is not None:
            return dict(self.get_theme(theme_id).formats)
        return {key: CanvasFormat(**size) for key, size in FORMATS.items()}

    def with_theme(self, theme: Union[ThemeDefinition, Dict[str, Any]]) -> "ThemeCatalog":
        """New catalog with one more theme. Existing ids are not overwritten."""
        definition = theme if isinstance(theme, ThemeDefinition) else _definition(theme)
        if definition.id in self._themes:
            raise ConfigurationError(f"Theme '{definition.id}' already exists")
        return ThemeCatalog({**self._themes, definition.id: definition})

    def replace_theme(self, theme_id: str, **updates: Any) -> "ThemeCatalog":
        """New catalog where ``theme_id`` has the given top-level fields replaced."""
        unknown = [k for k in updates if k not in ThemeDefinition.model_fields]
        if unknown:
            raise ConfigurationError(f"Unknown theme fields: {', '.join(unknown)}")
        data = self.get_theme(theme_id).model_dump()
        data.update(updates)
        data['id'] = theme_id
        return ThemeCatalog({**self._themes, theme_id: _definition(data)})

    def without_theme(self, theme_id: str) -> "ThemeCatalog":
        self.get_theme(theme_id)
        return ThemeCatalog({k: v for k, v in self._themes.items() if k != theme_id})

    def export_theme(self, theme_id: str) -> str:
        theme = self.get_theme(theme_id)
        data = theme.model_dump(by_alias=True)
        if not isinstance(theme.background, str):
            data['background'] = theme.background.css()
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_theme(self, raw: str) -> "ThemeCatalog":
        """New catalog with a theme parsed from JSON; an existing id is replaced."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError("Theme JSON is not valid", cause=e) from e
        if not isinstance(data, dict) or not data.get('id'):
            raise ConfigurationError("Theme must have an id")
        definition = _definition(data)
        return ThemeCatalog({**self._themes, definition.id: definition})

    def resolve_theme(
        self,
        theme: Union[str, ThemeDefinition, None] = None,
        format_key: Optional[str] = None
    ) -> ThemeMetrics:
        """Theme id or definition plus format key to ready-to-use metrics."""
        if theme is None:
            theme = settings.DEFAULT_THEME
        definition = self.get_theme(theme) if isinstance(theme, str) else theme
        return materialize(definition, format_key or settings.DEFAULT_FORMAT)

"""Theme catalog: built-in themes, format resolution and immutable updates."""

import json

import pytest

from carousel.exceptions import ConfigurationError, ThemeNotFoundError
from carousel.models.theme import LinearGradient, ThemeDefinition
from carousel.services.theme_catalog import ThemeCatalog, materialize, resolve_canvas_size


@pytest.fixture
def catalog():
    return ThemeCatalog.builtin()


def test_builtin_themes(catalog):
    assert set(catalog) == {'dengi_market', 'minimal', 'vibrant', 'dark', 'gradient'}
    assert len(catalog) == 5


def test_get_theme(catalog):
    theme = catalog.get_theme('dengi_market')

    assert theme.fonts.badge.size == 58
    assert theme.fonts.badge.is_bold
    assert theme.colors.badge == '#00B341'
    assert theme.spacing.badge_line_height == pytest.approx(1.1)


def test_unknown_theme(catalog):
    with pytest.raises(ThemeNotFoundError) as exc_info:
        catalog.get_theme('neon')
    assert exc_info.value.theme_id == 'neon'
    assert 'dark' in exc_info.value.context['available']


def test_gradient_theme_background_is_parsed(catalog):
    background = catalog['gradient'].background

    assert isinstance(background, LinearGradient)
    assert background.angle == 135
    assert [s.position for s in background.stops] == [0.0, 1.0]


def test_resolve_canvas_size(catalog):
    dark = catalog['dark']

    assert (resolve_canvas_size(dark, 'portrait').width, resolve_canvas_size(dark, 'portrait').height) == (1080, 1350)
    assert resolve_canvas_size(dark, 'story').height == 1080
    assert resolve_canvas_size(dark).height == 1080


def test_resolve_theme_materializes_metrics(catalog):
    metrics = catalog.resolve_theme('minimal', 'portrait')

    assert metrics.theme_id == 'minimal'
    assert (metrics.width, metrics.height) == (1080, 1350)
    assert metrics.spacing.padding == 64


def test_materialize_accepts_definition(catalog):
    metrics = materialize(catalog['vibrant'], 'square')
    assert metrics.colors.badge == '#667eea'


def test_list_themes(catalog):
    summaries = {s['id']: s for s in catalog.list_themes()}

    assert summaries['dark']['preview'] == {'background': '#1A202C', 'badge': '#48BB78'}
    assert summaries['gradient']['preview']['background'].startswith('linear-gradient(135deg')
    assert summaries['minimal']['formats'] == ['portrait', 'square']


def test_with_theme_returns_new_catalog(catalog):
    data = json.loads(catalog.export_theme('minimal'))
    data['id'] = 'minimal_copy'

    extended = catalog.with_theme(data)

    assert 'minimal_copy' in extended
    assert 'minimal_copy' not in catalog


def test_with_theme_refuses_duplicates(catalog):
    with pytest.raises(ConfigurationError):
        catalog.with_theme(catalog['dark'])


def test_replace_theme(catalog):
    updated = catalog.replace_theme('dark', name='Night', background='#000000')

    assert updated['dark'].name == 'Night'
    assert updated['dark'].background == '#000000'
    assert catalog['dark'].name == 'Тёмный'


def test_replace_theme_rejects_unknown_fields(catalog):
    with pytest.raises(ConfigurationError):
        catalog.replace_theme('dark', glow=True)


def test_without_theme(catalog):
    smaller = catalog.without_theme('vibrant')

    assert 'vibrant' not in smaller
    assert 'vibrant' in catalog
    with pytest.raises(ThemeNotFoundError):
        catalog.without_theme('neon')


def test_export_uses_camel_case(catalog):
    data = json.loads(catalog.export_theme('dengi_market'))

    assert data['defaultFormat'] == 'square'
    assert data['colors']['badgeText'] == '#FFFFFF'
    assert data['spacing']['badgeHeight'] == 100


def test_import_replaces_existing_theme(catalog):
    data = json.loads(catalog.export_theme('gradient'))
    data['name'] = 'Sunset'

    updated = catalog.import_theme(json.dumps(data))

    assert updated['gradient'].name == 'Sunset'
    assert updated['gradient'].background == catalog['gradient'].background


@pytest.mark.parametrize("raw", ["{not json", "[]", '{"name": "no id"}'])
def test_import_rejects_bad_input(catalog, raw):
    with pytest.raises(ConfigurationError):
        catalog.import_theme(raw)


def test_catalog_is_read_only(catalog):
    with pytest.raises(TypeError):
        catalog['dark'] = catalog['minimal']


def test_theme_definitions_are_frozen(catalog):
    with pytest.raises(Exception):
        catalog['dark'].name = 'changed'
    assert isinstance(catalog['dark'], ThemeDefinition)


def test_format_presets(catalog):
    presets = catalog.format_presets()

    assert presets['portrait'].height == 1350
    assert catalog.format_presets('dark')['square'].width == 1080

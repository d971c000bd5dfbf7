"""Measurement ports and font resolution."""

import pytest

from carousel.exceptions import RenderError
from carousel.models.theme import FontSpec
from carousel.services.font_metrics_service import (
    CachedMeasurement,
    EstimatedMeasurement,
    FontResolver,
    PillowMeasurement
)
from conftest import FixedAdvanceMeasurement

INTER = FontSpec(family='Inter, sans-serif', size=40)


def test_cached_measurement_reuses_results():
    inner = FixedAdvanceMeasurement()
    cached = CachedMeasurement(inner)

    first = cached.measure_width("hello", INTER)
    second = cached.measure_width("hello", INTER)
    cached.measure_width("hello", INTER.with_size(20))

    assert first == second == 100
    assert inner.calls == 2
    assert cached.cache_size == 2


def test_estimated_measurement_scales_with_size():
    estimate = EstimatedMeasurement()
    small = estimate.measure_width("Carousel", INTER.with_size(20))
    large = estimate.measure_width("Carousel", INTER)
    assert large == pytest.approx(small * 2)


def test_estimated_measurement_bold_is_wider():
    estimate = EstimatedMeasurement()
    regular = estimate.measure_width("Carousel", INTER)
    bold = estimate.measure_width("Carousel", FontSpec(family='Inter', size=40, weight='700'))
    assert bold == pytest.approx(regular * EstimatedMeasurement.BOLD_FACTOR)


def test_estimated_measurement_unknown_family_uses_default():
    estimate = EstimatedMeasurement()
    unknown = FontSpec(family='Nope', size=40)
    assert estimate.measure_width("abc", unknown) == estimate.measure_width("abc", INTER)


def test_pillow_measurement_with_fallback_font():
    measure = PillowMeasurement(FontResolver(font_dirs=[], strict=False))
    font = FontSpec(family='No Such Family', size=30)

    assert measure.measure_width("", font) == 0.0
    short = measure.measure_width("ab", font)
    long = measure.measure_width("abababab", font)
    assert 0 < short < long


def test_strict_resolver_refuses_unknown_family():
    resolver = FontResolver(font_dirs=[], strict=True)

    with pytest.raises(RenderError):
        resolver.resolve_path(FontSpec(family='No Such Family', size=30))


def test_font_dirs_are_searched_by_stem(tmp_path):
    (tmp_path / 'Brand-Regular.ttf').write_bytes(b'')
    (tmp_path / 'Brand-Bold.ttf').write_bytes(b'')
    resolver = FontResolver(font_dirs=[str(tmp_path)], strict=True)

    regular = resolver.resolve_path(FontSpec(family='Brand', size=20))
    bold = resolver.resolve_path(FontSpec(family='Brand', size=20, weight='bold'))

    assert regular.endswith('Brand-Regular.ttf')
    assert bold.endswith('Brand-Bold.ttf')


def test_unreadable_font_file_is_a_render_error(tmp_path):
    (tmp_path / 'Broken-Regular.ttf').write_bytes(b'not a font')
    resolver = FontResolver(font_dirs=[str(tmp_path)], strict=True)

    with pytest.raises(RenderError):
        resolver.get_font(FontSpec(family='Broken', size=20))


def test_font_weight_parsing():
    assert FontSpec(family='x', size=1, weight=900).is_bold
    assert FontSpec(family='x', size=1, weight='bold').is_bold
    assert not FontSpec(family='x', size=1, weight='300').is_bold
    assert FontSpec(family='"SF Pro", sans-serif', size=1).families == ['SF Pro', 'sans-serif']

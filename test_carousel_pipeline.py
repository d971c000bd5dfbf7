"""Orchestration: ordering, parallelism, fail-fast and cancellation."""

import threading

import pytest

from carousel.exceptions import ConfigurationError, GenerationCancelled, GenerationFailedError, RenderError
from carousel.models.render import RenderRequest
from carousel.models.slide import SlideContent
from carousel.models.theme import ThemeMetrics
from carousel.services.carousel_pipeline import CarouselPipeline
from carousel.services.slide_renderer import SlideRenderer
from conftest import make_theme_data

TEXT = (
    "**First** opening slide\n\n"
    "Second slide without a badge\n\n"
    "**Third** more text here\n\n"
    "Fourth and last"
)


class FailingRenderer(SlideRenderer):
    """Fails on one slide index."""

    def __init__(self, fail_at: int, **kwargs):
        super().__init__(**kwargs)
        self.fail_at = fail_at

    def draw(self, layout, content, theme, config, slide_index=0, measure=None):
        if slide_index == self.fail_at:
            raise RenderError("boom")
        return super().draw(layout, content, theme, config, slide_index=slide_index, measure=measure)


def _units(count):
    return [SlideContent(body_text=f"slide body {i}") for i in range(count)]


def test_empty_input_yields_empty_output(renderer, theme, config):
    pipeline = CarouselPipeline(renderer=renderer)
    assert pipeline.generate([], theme, config) == []
    assert pipeline.generate_from_text("", theme, config) == []


def test_generate_from_text(renderer, theme, config):
    slides = CarouselPipeline(renderer=renderer).generate_from_text(TEXT, theme, config)

    assert len(slides) == 4
    assert [s.layout.badge is not None for s in slides] == [True, False, True, False]
    assert [s.layout.slide_number for s in slides] == ["1/4", "2/4", "3/4", "4/4"]


@pytest.mark.parametrize("workers", [1, 4])
def test_order_is_preserved(renderer, theme, config, workers):
    units = _units(9)

    slides = CarouselPipeline(renderer=renderer, max_workers=workers).generate(units, theme, config)

    assert [s.index for s in slides] == list(range(9))
    assert [s.body_lines[0] for s in slides] == [u.body_text for u in units]


def test_parallel_matches_sequential_pixels(renderer, theme, config):
    units = _units(4)
    sequential = CarouselPipeline(renderer=renderer, max_workers=1).generate(units, theme, config)
    parallel = CarouselPipeline(renderer=renderer, max_workers=3).generate(units, theme, config)

    for a, b in zip(sequential, parallel):
        assert a.image.tobytes() == b.image.tobytes()


def test_theme_dict_is_validated_before_drawing(renderer, config):
    data = make_theme_data()
    del data['fonts']

    with pytest.raises(ConfigurationError):
        CarouselPipeline(renderer=renderer).generate(_units(2), data, config)


def test_theme_dict_is_accepted(renderer, config):
    slides = CarouselPipeline(renderer=renderer).generate(_units(1), make_theme_data(), config)
    assert slides[0].image.size == (1080, 1080)


@pytest.mark.parametrize("workers", [1, 3])
def test_failing_slide_fails_the_batch(measure, theme, config, workers):
    renderer = FailingRenderer(fail_at=2, measure=measure)
    pipeline = CarouselPipeline(renderer=renderer, max_workers=workers)

    with pytest.raises(GenerationFailedError) as exc_info:
        pipeline.generate(_units(5), theme, config)

    error = exc_info.value
    assert error.slide_index == 2
    assert error.total_slides == 5
    assert isinstance(error.cause, RenderError)


@pytest.mark.parametrize("workers", [1, 3])
def test_unexpected_error_is_wrapped_with_slide_index(measure, theme, config, workers):
    class BrokenRenderer(SlideRenderer):
        def draw(self, layout, content, theme, config, slide_index=0, measure=None):
            if slide_index == 1:
                raise RuntimeError("disk full")
            return super().draw(layout, content, theme, config, slide_index=slide_index, measure=measure)

    pipeline = CarouselPipeline(renderer=BrokenRenderer(measure=measure), max_workers=workers)

    with pytest.raises(GenerationFailedError) as exc_info:
        pipeline.generate(_units(4), theme, config)

    assert exc_info.value.slide_index == 1
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_bad_theme_colour_fails_the_batch(renderer, config):
    theme = ThemeMetrics.from_dict(make_theme_data(colors={'headerText': '#zzzzzz'}))

    with pytest.raises(GenerationFailedError) as exc_info:
        CarouselPipeline(renderer=renderer).generate(_units(3), theme, config)

    assert exc_info.value.slide_index == 0


@pytest.mark.parametrize("workers", [1, 2])
def test_cancel_before_start(renderer, theme, config, workers):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(GenerationCancelled) as exc_info:
        CarouselPipeline(renderer=renderer, max_workers=workers).generate(
            _units(3), theme, config, cancel_event=cancel
        )

    assert exc_info.value.completed == 0
    assert exc_info.value.total_slides == 3


def test_cancel_midway_keeps_finished_work(measure, theme, config):
    cancel = threading.Event()

    class CancellingRenderer(SlideRenderer):
        def draw(self, layout, content, theme, config, slide_index=0, measure=None):
            slide = super().draw(layout, content, theme, config, slide_index=slide_index, measure=measure)
            if slide_index == 1:
                cancel.set()
            return slide

    pipeline = CarouselPipeline(renderer=CancellingRenderer(measure=measure), max_workers=1)

    with pytest.raises(GenerationCancelled) as exc_info:
        pipeline.generate(_units(5), theme, config, cancel_event=cancel)

    assert exc_info.value.completed == 2


def test_overflow_is_a_warning_not_an_error(renderer, theme, config):
    units = [SlideContent(body_text=' '.join(['x' * 85] * 30)), SlideContent(body_text="fits")]

    slides = CarouselPipeline(renderer=renderer).generate(units, theme, config)

    assert slides[0].warning is not None
    assert slides[1].warning is None


def test_render_images(renderer, theme, config):
    images = CarouselPipeline(renderer=renderer).render_images(_units(2), theme, config)
    assert [im.size for im in images] == [(1080, 1080), (1080, 1080)]


def test_render_slide_from_request(renderer, theme, config):
    request = RenderRequest(
        content=SlideContent(body_text="body", highlight="hot"),
        theme=theme,
        slide_index=2,
        total_slides=3,
        config=config.for_slide(2, 3)
    )

    slide = CarouselPipeline(renderer=renderer).render_slide(request)

    assert slide.index == 2
    assert slide.layout.slide_number == "3/3"
    assert slide.layout.badge.lines == ["HOT"]

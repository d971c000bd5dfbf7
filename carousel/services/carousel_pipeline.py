"""
Carousel Pipeline - segment, lay out and draw every slide of a carousel.

Slides are independent, so they can be drawn on a thread pool; results are
placed by index and always come back in input order. Any slide failure
fails the whole batch.
"""

import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Union, Any

from PIL import Image

from carousel.config import settings
from carousel.exceptions import GenerationCancelled, GenerationFailedError
from carousel.models.render import RenderConfig, RenderedSlide, RenderRequest
from carousel.models.slide import SlideContent
from carousel.models.theme import ThemeMetrics
from carousel.services.font_metrics_service import CachedMeasurement
from carousel.services.layout_engine import LayoutEngine, validate_theme
from carousel.services.slide_renderer import SlideRenderer
from carousel.services.text_segmenter import segment
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)


class CarouselPipeline:
    """Runs Layout Engine then Rasterizer for each content unit."""

    def __init__(self, renderer: Optional[SlideRenderer] = None, max_workers: Optional[int] = None):
        self.renderer = renderer or SlideRenderer()
        self.max_workers = max(1, max_workers if max_workers is not None else settings.MAX_PARALLEL_SLIDES)

    def render_slide(self, request: RenderRequest) -> RenderedSlide:
        """Layout and draw one slide with a measurement cache shared by both steps."""
        measure = CachedMeasurement(self.renderer.measure)
        layout = LayoutEngine(measure).calculate_layout(
            request.content, request.theme, request.slide_index, request.total_slides
        )
        return self.renderer.draw(layout, request.content, request.theme, request.config,
                                  slide_index=request.slide_index, measure=measure)

    def _request(self, units, theme, config, index) -> RenderRequest:
        total = len(units)
        return RenderRequest(
            content=units[index],
            theme=theme,
            slide_index=index,
            total_slides=total,
            config=config.for_slide(index, total)
        )

    def generate(
        self,
        units: List[SlideContent],
        theme: Union[ThemeMetrics, Dict[str, Any]],
        config: RenderConfig,
        cancel_event: Optional[threading.Event] = None
    ) -> List[RenderedSlide]:
        """
        Render every content unit, preserving input order.

        Args:
            units: Content units from the segmenter
            theme: Resolved theme metrics (validated before any drawing)
            config: Base render config; the slide number is filled per slide
            cancel_event: When set, slides not yet started are skipped

        Returns:
            One RenderedSlide per unit, ``[]`` for no units

        Raises:
            ConfigurationError: theme metrics are incomplete
            GenerationFailedError: a slide failed to lay out or draw
            GenerationCancelled: cancel_event was set before all slides finished
        """
        theme = validate_theme(theme)
        total = len(units)
        if total == 0:
            logger.info("[PIPELINE] No content units, nothing to render")
            return []

        logger.info(f"[PIPELINE] Rendering {total} slide(s) with theme '{theme.theme_id}' "
                    f"({theme.width}x{theme.height}), workers={self.max_workers}")

        if self.max_workers <= 1 or total == 1:
            results = self._generate_sequential(units, theme, config, cancel_event)
        else:
            results = self._generate_parallel(units, theme, config, cancel_event)

        warnings = sum(1 for r in results if r.warning)
        if warnings:
            logger.warning(f"[PIPELINE] {warnings} slide(s) had body text overflow")
        logger.info(f"[PIPELINE] Rendered {total} slide(s)")
        return results

    def _fail(self, index: int, total: int, error: Exception) -> GenerationFailedError:
        logger.error(f"[PIPELINE] Slide {index + 1}/{total} failed: {error}")
        return GenerationFailedError(index, total, f"Slide {index + 1} of {total} failed", cause=error)

    def _generate_sequential(self, units, theme, config, cancel_event) -> List[RenderedSlide]:
        total = len(units)
        results: List[RenderedSlide] = []
        for index in range(total):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"[PIPELINE] Cancelled after {index}/{total} slides")
                raise GenerationCancelled(index, total)
            try:
                results.append(self.render_slide(self._request(units, theme, config, index)))
            except Exception as e:
                raise self._fail(index, total, e) from e
        return results

    def _generate_parallel(self, units, theme, config, cancel_event) -> List[RenderedSlide]:
        total = len(units)
        results: List[Optional[RenderedSlide]] = [None] * total

        def run(index: int) -> Optional[RenderedSlide]:
            # Work not yet started when cancel is requested is discarded
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self.render_slide(self._request(units, theme, config, index))

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="carousel-slide") as pool:
            futures: Dict[Future, int] = {pool.submit(run, i): i for i in range(total)}
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)

            failed = sorted(
                (futures[f] for f in done if f.exception() is not None)
            )
            if failed:
                for f in pending:
                    f.cancel()
                index = failed[0]
                error = next(f for f in done if futures[f] == index).exception()
                raise self._fail(index, total, error) from error

            for future, index in futures.items():
                results[index] = future.result()

        completed = sum(1 for r in results if r is not None)
        if completed < total:
            logger.info(f"[PIPELINE] Cancelled after {completed}/{total} slides")
            raise GenerationCancelled(completed, total)
        return results

    def generate_from_text(
        self,
        raw: str,
        theme: Union[ThemeMetrics, Dict[str, Any]],
        config: RenderConfig,
        cancel_event: Optional[threading.Event] = None
    ) -> List[RenderedSlide]:
        return self.generate(segment(raw), theme, config, cancel_event=cancel_event)

    def render_images(
        self,
        units: List[SlideContent],
        theme: Union[ThemeMetrics, Dict[str, Any]],
        config: RenderConfig
    ) -> List[Image.Image]:
        return [slide.image for slide in self.generate(units, theme, config)]

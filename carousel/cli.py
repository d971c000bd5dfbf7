"""
Command line entry point: render a carousel from a text file.

    carousel-render post.txt --theme dark --format portrait --out ./out
"""

import argparse
import json
import sys
from typing import List, Optional

from carousel.config import settings
from carousel.exceptions import CarouselError
from carousel.models.render import OverflowMode, RenderConfig
from carousel.services.carousel_pipeline import CarouselPipeline
from carousel.services.carousel_stats import carousel_stats
from carousel.services.text_segmenter import segment
from carousel.services.theme_catalog import ThemeCatalog
from carousel.services.validator import Validator
from carousel.setup_logging_optimized import get_logger, setup_logging
from carousel.utils.images import save_slides

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render carousel slides from text")
    parser.add_argument("input", nargs="?", default="-", help="Text file, or - for stdin")
    parser.add_argument("--theme", default=settings.DEFAULT_THEME, help="Theme id")
    parser.add_argument("--format", default=settings.DEFAULT_FORMAT, help="Canvas format key (square, portrait)")
    parser.add_argument("--username", default=settings.DEFAULT_USERNAME, help="Header username")
    parser.add_argument("--footer", default=settings.DEFAULT_FOOTER, help="Footer text")
    parser.add_argument(
        "--overflow",
        choices=[mode.value for mode in OverflowMode],
        default=settings.OVERFLOW_MODE,
        help="Body overflow policy"
    )
    parser.add_argument("--workers", type=int, default=settings.MAX_PARALLEL_SLIDES, help="Slides drawn in parallel")
    parser.add_argument("--out", default=settings.RENDER_OUTPUT_DIR, help="Output directory")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.input == "-":
        raw = sys.stdin.read()
    else:
        with open(args.input, encoding="utf-8") as f:
            raw = f.read()

    validator = Validator()
    units = segment(raw)
    report = validator.validate_all(raw, {'username': args.username, 'footer': args.footer})
    report = validator.adjust_slide_warnings(report, len(units))
    for warning in report.warnings:
        logger.warning(warning)
    if not report.is_valid:
        for error in report.errors:
            logger.error(error)
        return 2

    config = RenderConfig(
        username=args.username,
        footer_text=args.footer,
        overflow_mode=OverflowMode(args.overflow)
    )

    try:
        theme = ThemeCatalog.builtin().resolve_theme(args.theme, args.format)
        slides = CarouselPipeline(max_workers=args.workers).generate(units, theme, config)
    except CarouselError as e:
        logger.error(f"Carousel generation failed: {e}")
        return 1

    save_slides(slides, args.out)
    print(json.dumps(carousel_stats(units, slides).model_dump(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())

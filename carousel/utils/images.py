"""
PNG encoding helpers for rendered slides.
"""

import base64
import io
from pathlib import Path
from typing import List, Union

from PIL import Image

from carousel.models.render import RenderedSlide
from carousel.setup_logging_optimized import get_logger

logger = get_logger(__name__)


def image_to_png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format='PNG')
    return buffer.getvalue()


def image_to_data_url(image: Image.Image) -> str:
    image_base64 = base64.b64encode(image_to_png_bytes(image)).decode('utf-8')
    return f"data:image/png;base64,{image_base64}"


def save_slides(
    slides: List[RenderedSlide],
    out_dir: Union[str, Path],
    basename: str = 'slide'
) -> List[Path]:
    """Write ``{basename}-{n}.png`` for each slide, numbered from 1."""
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    written = []
    for slide in slides:
        target = out_path / f"{basename}-{slide.index + 1}.png"
        slide.image.save(target, format='PNG')
        written.append(target)

    logger.info(f"Saved {len(written)} slide(s) to {out_path}")
    return written

"""
Configuration settings for carousel generation.
"""

import os

from dotenv import load_dotenv

from carousel.setup_logging_optimized import get_logger

load_dotenv()

logger = get_logger(__name__)

#==============================================================================
# THEME DEFAULTS
#==============================================================================

DEFAULT_THEME = os.getenv('CAROUSEL_THEME', 'dengi_market')
DEFAULT_FORMAT = os.getenv('CAROUSEL_FORMAT', 'square')

#==============================================================================
# RENDER CONFIG DEFAULTS
#==============================================================================

DEFAULT_USERNAME = os.getenv('CAROUSEL_USERNAME', '@dengi_market')
DEFAULT_FOOTER = os.getenv('CAROUSEL_FOOTER', 'ваш любимый ломбард')

# Body overflow policy: "truncate" drops lines past the box,
# "shrink-to-fit" steps the body font down until the text fits
OVERFLOW_MODES = ('truncate', 'shrink-to-fit')


def parse_overflow_mode(value: str) -> str:
    """Known overflow policy name, or "truncate" for anything else."""
    mode = (value or '').strip().lower()
    if mode not in OVERFLOW_MODES:
        logger.warning(f"[CONFIG] Unknown overflow mode {value!r}, using 'truncate'")
        return 'truncate'
    return mode


OVERFLOW_MODE = parse_overflow_mode(os.getenv('CAROUSEL_OVERFLOW_MODE', 'truncate'))

# Smallest body size the shrink-to-fit policy may reach (pixels)
MIN_FONT_SIZE = float(os.getenv('CAROUSEL_MIN_FONT_SIZE', '20'))

#==============================================================================
# FONT RESOLUTION
#==============================================================================

# Extra directories searched for .ttf/.otf files, os.pathsep separated
FONT_DIRS = [p for p in os.getenv('CAROUSEL_FONT_DIRS', '').split(os.pathsep) if p]

# When enabled, a theme font that cannot be resolved is a render error
# instead of falling back to Pillow's bundled font
STRICT_FONTS = os.getenv('CAROUSEL_STRICT_FONTS', 'false').lower() == 'true'

#==============================================================================
# PARALLELISM
#==============================================================================

MAX_PARALLEL_SLIDES = int(os.getenv('CAROUSEL_MAX_PARALLEL_SLIDES', '1'))

#==============================================================================
# INPUT VALIDATION (upstream of the core)
#==============================================================================

MAX_TEXT_LENGTH = int(os.getenv('CAROUSEL_MAX_TEXT_LENGTH', '5000'))
MIN_TEXT_LENGTH = int(os.getenv('CAROUSEL_MIN_TEXT_LENGTH', '10'))
MAX_SLIDES = int(os.getenv('CAROUSEL_MAX_SLIDES', '10'))

#==============================================================================
# OUTPUT
#==============================================================================

RENDER_OUTPUT_DIR = os.getenv('CAROUSEL_OUTPUT_DIR', './carousel_out')

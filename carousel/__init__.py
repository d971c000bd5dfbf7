"""Text-to-carousel slide composition, layout and rasterization."""

__version__ = "0.3.0"

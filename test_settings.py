import importlib

from carousel.config import settings
from carousel.models.render import OverflowMode, RenderConfig


def test_unknown_overflow_mode_falls_back_to_truncate():
    assert settings.parse_overflow_mode("sideways") == "truncate"
    assert settings.parse_overflow_mode("") == "truncate"
    assert settings.parse_overflow_mode(" Shrink-To-Fit ") == "shrink-to-fit"


def test_render_config_follows_overflow_setting(monkeypatch):
    monkeypatch.setattr(settings, "OVERFLOW_MODE", "shrink-to-fit")

    assert RenderConfig().overflow_mode is OverflowMode.SHRINK_TO_FIT
    assert RenderConfig(overflow_mode="truncate").overflow_mode is OverflowMode.TRUNCATE


def test_environment_is_read_with_prefix(monkeypatch):
    monkeypatch.setenv("CAROUSEL_MAX_PARALLEL_SLIDES", "4")
    monkeypatch.setenv("CAROUSEL_OVERFLOW_MODE", "sideways")
    try:
        importlib.reload(settings)

        assert settings.MAX_PARALLEL_SLIDES == 4
        assert settings.OVERFLOW_MODE == "truncate"
    finally:
        monkeypatch.delenv("CAROUSEL_MAX_PARALLEL_SLIDES")
        monkeypatch.delenv("CAROUSEL_OVERFLOW_MODE")
        importlib.reload(settings)

import logging


def setup_logging(level: str = "INFO") -> None:
    """Minimal logging setup for the carousel package and its scripts.

    - Sets root logger level
    - Ensures a basic StreamHandler is attached once
    """
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    level_value = getattr(logging, str(level).upper(), None)
    root.setLevel(level_value if isinstance(level_value, int) else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger after ensuring logging is initialized."""
    if not logging.getLogger().handlers:
        setup_logging()
    return logging.getLogger(name)

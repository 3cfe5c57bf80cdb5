import logging

LOG_FORMAT = "%(levelname)s: [%(name)s] %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    """Attach a console handler to the ``app`` logger tree (once)."""
    logger = logging.getLogger("app")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

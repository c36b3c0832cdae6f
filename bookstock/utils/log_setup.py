# bookstock/utils/log_setup.py
import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach the stream handler to the package logger once.

    Args:
        level: Name of the log level for the ``bookstock`` logger

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("bookstock")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger

import logging
import sys

def configure_logging(level=None):
    """Send log records to stderr so stdout stays a clean JSON stream."""
    if level is None:
        from .config import get_log_level
        level = get_log_level()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Re-configuring must not stack handlers
    if root_logger.handlers:
        root_logger.handlers.clear()

    root_logger.addHandler(handler)

    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))

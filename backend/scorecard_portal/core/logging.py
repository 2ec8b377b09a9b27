import logging
import sys

_HANDLER_NAME = "scorecard-portal-stdout"


def setup_logging(level: str = "INFO") -> None:
    """Send application logs to stdout; safe to call more than once."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    if any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    )
    root_logger.addHandler(handler)

    # Collaborator clients log every request at INFO
    for noisy in ("sqlalchemy", "httpx", "httpcore", "aiosqlite"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a single stdout handler.

    Safe to call more than once; an existing handler is reused.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_storefront", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._storefront = True
        root.addHandler(handler)

    # sqlalchemy echoes every statement at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

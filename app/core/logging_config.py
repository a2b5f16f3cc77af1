# app/core/logging_config.py
import logging
import sys
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = "INFO", format_string: Optional[str] = None) -> logging.Logger:
    """
    Set up the root logger with a single stdout handler.

    Calling it again only adjusts the level, so app reloads and test
    clients do not stack duplicate handlers.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if any(getattr(h, "_project_api_handler", False) for h in root.handlers):
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    handler._project_api_handler = True
    root.addHandler(handler)

    # uvicorn access lines duplicate the request logger
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return root

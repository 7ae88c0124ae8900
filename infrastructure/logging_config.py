"""
Logging setup for the seating service.

Modules log through `logging.getLogger(__name__)`; only `bootstrap` calls
`setup_logging`.
"""

import logging
import sys

_HANDLER_NAME = "seating-console"


class HumanReadableFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )


def setup_logging(level: str = "INFO") -> None:
    """Install one console handler on the root logger (safe to call twice)."""

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(HumanReadableFormatter())
    root.addHandler(handler)

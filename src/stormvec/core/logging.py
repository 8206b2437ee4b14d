"""Logging setup for CLI entrypoints."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # Third-party libraries stay quiet unless something is wrong.
    for name in ("matplotlib", "fiona", "pyogrio", "shapely"):
        logging.getLogger(name).setLevel(logging.WARNING)

"""Main CLI entrypoint."""

from __future__ import annotations

import argparse
import logging
import sys

from stormvec.cli import config, plot, run, validate
from stormvec.core.config import ConfigError
from stormvec.core.errors import StormVecError
from stormvec.core.logging import setup_logging
from stormvec.data.io import DatasetIOError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stormvec", description="Gridded storm-motion vector fields")
    subparsers = parser.add_subparsers(dest="command")

    run.register(subparsers)
    validate.register(subparsers)
    plot.register(subparsers)
    config.register(subparsers)

    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=getattr(args, "verbose", False))

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return int(args.func(args))
    except (StormVecError, ConfigError, DatasetIOError) as exc:
        logger.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        print("Interrupted")
        return 130


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))

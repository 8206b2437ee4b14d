"""Implementation of `stormvec config`."""

from __future__ import annotations

import argparse

import yaml

from stormvec.core.config import DEFAULT_CONFIG


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("config", help="Print the default configuration")
    parser.set_defaults(func=cmd_config)


def cmd_config(args: argparse.Namespace) -> int:
    del args
    print(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False))
    return 0

"""Command line front end for the GPSPoint codec.

Usage:
    python -m gpspoint info FILE
    python -m gpspoint normalize IN OUT [--relative]
"""

from __future__ import annotations

import argparse
import sys

from loguru import logger

from gpspoint import __version__
from gpspoint.config import settings
from gpspoint.exporters.gpspoint import write_path
from gpspoint.layer import TrwLayer
from gpspoint.parsers.gpspoint import read_path
from gpspoint.paths import FileRefFormat


def _load(path: str) -> TrwLayer | None:
    layer = TrwLayer()
    try:
        ok = read_path(layer, path)
    except OSError as e:
        logger.error(f"Cannot read {path}: {e}")
        return None
    if not ok:
        logger.error(f"{path} does not look like a GPSPoint file")
        return None
    return layer


def cmd_info(args: argparse.Namespace) -> int:
    layer = _load(args.file)
    if layer is None:
        return 1
    summary = layer.summary()
    print(f"{args.file}:")
    for key, count in summary.items():
        print(f"  {key:<12} {count}")
    return 0


def cmd_normalize(args: argparse.Namespace) -> int:
    layer = _load(args.input)
    if layer is None:
        return 1
    ref_format = FileRefFormat.RELATIVE if args.relative else None
    try:
        write_path(layer, args.output, ref_format)
    except OSError as e:
        logger.error(f"Cannot write {args.output}: {e}")
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gpspoint",
        description="Inspect and rewrite GPSPoint track files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_info = sub.add_parser("info", help="Count waypoints, tracks and routes")
    p_info.add_argument("file", help="GPSPoint file")
    p_info.set_defaults(func=cmd_info)

    p_norm = sub.add_parser("normalize", help="Read a file and write it back out")
    p_norm.add_argument("input", help="Source GPSPoint file")
    p_norm.add_argument("output", help="Destination file")
    p_norm.add_argument(
        "--relative", action="store_true",
        help="Write image references relative to the output file",
    )
    p_norm.set_defaults(func=cmd_normalize)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else settings.log_level)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

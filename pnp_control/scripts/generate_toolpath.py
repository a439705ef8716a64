#!/usr/bin/env python3
"""
Generate Toolpath Script.

Turn a board part list and a feed description into pick-and-place G-code.

Usage:
    python -m pnp_control.scripts.generate_toolpath board.pos --feeds feeds.conf
    python -m pnp_control.scripts.generate_toolpath board.yaml -f feeds.conf -o board.gcode
    python -m pnp_control.scripts.generate_toolpath board.pos -f feeds.conf --side top --strict

Exit status:
    0  program generated (possibly with skipped parts)
    1  configuration or input error, nothing generated
    2  --strict and at least one part was skipped
"""

from __future__ import annotations

import argparse
import logging
import sys

from pnp_control.configs.loader import ConfigError, load_config
from pnp_control.feeds.config import FeedConfigError, load_feed_config
from pnp_control.gcode.generator import GCodeError, ToolpathGenerator
from pnp_control.job_ir.placements import PlacementFileError, load_placements
from pnp_control.utils import fs
from pnp_control.utils.logging_config import push_context, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SKIPPED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate pick-and-place G-code from a part list",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Placement files: KiCad .pos, or placements.v1 .yaml/.yml",
    )
    parser.add_argument(
        "placements",
        type=str,
        help="Placement list (.pos, .yaml, .yml)",
    )
    parser.add_argument(
        "--feeds",
        "-f",
        type=str,
        required=True,
        help="Feed description file (Board:/Tape: directives)",
    )
    parser.add_argument(
        "--machine",
        "-m",
        type=str,
        help="Machine configuration YAML (default: shipped machine.yaml)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write G-code to this file instead of stdout",
    )
    parser.add_argument(
        "--side",
        choices=["top", "bottom", "all"],
        default="all",
        help="Only place parts on this board side",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 if any part was skipped",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic verbosity (stderr)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit diagnostics as JSON lines",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level, json=args.log_json, context={"app": "pnp"})

    # Fatal: nothing is generated unless every input loads cleanly.
    try:
        config = load_config(args.machine)
        feeds = load_feed_config(args.feeds)
        requests = load_placements(args.placements, side=args.side)
    except (ConfigError, FeedConfigError, PlacementFileError, OSError) as e:
        logger.error("%s", e)
        return EXIT_ERROR

    push_context(board=args.placements)
    gen = ToolpathGenerator(config, feeds)
    try:
        result = gen.generate(requests)
    except GCodeError as e:
        logger.error("%s", e)
        return EXIT_ERROR

    if args.output:
        try:
            fs.atomic_write_text(result.gcode, args.output)
        except (RuntimeError, OSError) as e:
            logger.error("%s", e)
            return EXIT_ERROR
        logger.info("G-code written to %s", args.output)
    else:
        sys.stdout.write(result.gcode)
        sys.stdout.flush()

    for usage in feeds.usage():
        logger.info(
            "Tape %s: used %d of %d (%d left)",
            " ".join(usage.keys), usage.used, usage.capacity, usage.remaining,
        )
    if result.skipped:
        names = ", ".join(s.request.component_name for s in result.skipped)
        logger.warning("%d part(s) skipped: %s", len(result.skipped), names)
        if args.strict:
            return EXIT_SKIPPED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

"""
Command-line entry point: benchmark a solver on one problem file.

Usage:
    packt-bench solver.jar problems/p10.txt results.csv
    packt-bench ./solver < p10.txt >> results.csv
    packt-bench solver.py p10.txt --config sweep.yaml -v
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from packt_bench.config import load_config
from packt_bench.core.errors import ConfigError, ProblemParseError
from packt_bench.core.problem import parse_problem
from packt_bench.monitoring.records import RecordWriter
from packt_bench.runner.sweep import SweepRunner

logger = logging.getLogger("packt_bench")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="packt-bench",
        description="Benchmark a packing solver across a grid of tuning parameters",
    )
    parser.add_argument("solver", type=Path, help="Solver executable, jar-file or script")
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        help="Problem file (default: stdin)",
    )
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        help="CSV output file, appended to if it exists (default: stdout)",
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="More logging (-v for debug)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument(
        "--no-notify",
        action="store_true",
        help="Disable Telegram progress notifications",
    )
    return parser


def configure_logging(verbose: int = 0, quiet: bool = False) -> None:
    """Log to stderr; stdout is reserved for CSV records."""
    if quiet:
        level = logging.WARNING
    elif verbose > 0:
        level = logging.DEBUG
    else:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def _read_problem_text(path: Optional[Path]) -> str:
    try:
        if path is None:
            return sys.stdin.read()
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ProblemParseError(f"problem text is not valid UTF-8: {e}") from e


def _open_output(path: Optional[Path]) -> tuple[TextIO, bool]:
    """Return the output stream and whether it still needs a header row."""
    if path is None:
        return sys.stdout, True
    stream = path.open("a", encoding="utf-8", newline="")
    return stream, stream.tell() == 0


async def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    filename = args.input.name if args.input is not None else ""

    problem = parse_problem(_read_problem_text(args.input))
    logger.debug(
        "Parsed %s: %d rectangles, %s, rotation %s",
        filename or "<stdin>",
        problem.n,
        problem.variant,
        "allowed" if problem.allow_rotation else "not allowed",
    )

    stream, needs_header = _open_output(args.output)
    try:
        runner = SweepRunner(
            args.solver,
            config=config,
            send_telegram_updates=False if args.no_notify else None,
        )
        await runner.run(problem, filename, RecordWriter(stream, write_header=needs_header))
    finally:
        if stream is not sys.stdout:
            stream.close()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        return asyncio.run(run(args))
    except (ConfigError, ProblemParseError) as e:
        logger.error("%s", e)
    except OSError as e:
        logger.error("I/O error: %s", e)
    return 1


if __name__ == "__main__":
    sys.exit(main())

"""Command-line interface for zebu."""

import argparse
import datetime
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

from .config import load_config
from .errors import ZebuError
from .lassie import lassie
from .measures import available_measures
from .output import write_lassie
from .significance import chisqtest, permtest
from .significance.correction import available_methods
from .version import __version__

logger = logging.getLogger("zebu")

log_level_map = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _breaks_item(value: str) -> Tuple[str, Union[int, List[float]]]:
    """Parse COLUMN=N (equal-width bins) or COLUMN=e1,e2,... (bin edges)."""
    column, sep, spec = value.partition("=")
    if not sep or not column or not spec:
        raise argparse.ArgumentTypeError(
            f"invalid breaks '{value}': expected COLUMN=N or COLUMN=e1,e2,..."
        )
    try:
        if "," in spec:
            return column, [float(edge) for edge in spec.split(",")]
        return column, int(spec)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid breaks '{value}': not a number")


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser for the zebu CLI."""
    parser = argparse.ArgumentParser(
        description="zebu: Local association measures between categorical variables."
    )

    # General Options
    general_group = parser.add_argument_group("General Options")
    general_group.add_argument(
        "--version",
        action="version",
        version=f"zebu {__version__}",
        help="Show the current version and exit",
    )
    general_group.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        default="INFO",
        help="Set the logging level",
    )
    general_group.add_argument(
        "--log-file", help="Path to a file to write logs to (in addition to stderr)."
    )
    general_group.add_argument(
        "-c",
        "--config",
        help="Path to configuration file",
        default=None,
    )

    # Core Input/Output
    io_group = parser.add_argument_group("Core Input/Output")
    io_group.add_argument("-i", "--input", help="Input table (delimited text)", required=True)
    io_group.add_argument(
        "-o",
        "--output-file",
        default="stdout",
        help="Output file name or 'stdout'/'-' for stdout (default: stdout)",
    )
    io_group.add_argument("--sep", help="Field delimiter of input and output (default: ',')")
    io_group.add_argument("--html-report", help="Also write an HTML report to this path")

    # Association
    assoc_group = parser.add_argument_group("Local Association")
    assoc_group.add_argument(
        "-s", "--select", nargs="+", help="Columns to analyse (default: all columns)"
    )
    assoc_group.add_argument(
        "-m",
        "--measure",
        choices=available_measures(),
        help="Local association measure (default from config: z)",
    )
    assoc_group.add_argument(
        "--continuous",
        nargs="+",
        help="Columns to discretize (default: numeric columns with many distinct values)",
    )
    assoc_group.add_argument(
        "--default-breaks",
        type=int,
        help="Number of equal-width bins for continuous columns (default: 4)",
    )
    assoc_group.add_argument(
        "--breaks",
        type=_breaks_item,
        action="append",
        metavar="COLUMN=SPEC",
        help="Bins for one column: COLUMN=N or COLUMN=e1,e2,... (repeatable)",
    )

    # Significance
    sig_group = parser.add_argument_group("Significance")
    test_choice = sig_group.add_mutually_exclusive_group()
    test_choice.add_argument(
        "--permtest", action="store_true", help="Run a permutation test (any measure)"
    )
    test_choice.add_argument(
        "--chisqtest",
        action="store_true",
        help="Run the analytic chi-squared residual test (measure chisq, two variables)",
    )
    sig_group.add_argument("--nb", type=int, help="Number of permutations (default: 1000)")
    sig_group.add_argument(
        "--p-adjust",
        choices=available_methods(),
        help="Multiple testing correction across cells (default: BH)",
    )
    sig_group.add_argument("--seed", type=int, help="Random seed for the permutation test")
    sig_group.add_argument(
        "--workers",
        type=int,
        help="Worker processes for the permutation test; -1 uses all CPUs (default: 1)",
    )
    return parser


def _setting(args: argparse.Namespace, cfg: Dict[str, Any], name: str) -> Any:
    """CLI value if given, otherwise the configuration value."""
    value = getattr(args, name, None)
    return cfg.get(name) if value is None else value


def main(argv: Optional[List[str]] = None) -> int:
    """Run main entry point for the zebu CLI.

    Steps:
        1. Parse arguments.
        2. Configure logging and load config.
        3. Read and discretize the input table, estimate local association.
        4. Optionally run a significance test.
        5. Write the table (and the HTML report if requested).
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    parser = create_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    logging.getLogger("zebu").setLevel(log_level_map[args.log_level])

    # If a log file is specified, add a file handler
    if args.log_file:
        log_file_path = Path(args.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(args.log_file)
        fh.setLevel(log_level_map[args.log_level])
        fh.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(fh)
        logger.debug(f"Logging to file enabled: {args.log_file}")

    start_time = datetime.datetime.now()
    logger.info(f"Run started at {start_time.isoformat()}")
    logger.debug(f"CLI arguments: {args}")

    try:
        cfg: Dict[str, Any] = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    logger.debug(f"Configuration loaded: {cfg}")

    sep = _setting(args, cfg, "sep")
    breaks = dict(cfg.get("breaks") or {})
    breaks.update(dict(args.breaks or []))
    if args.permtest:
        significance = "permtest"
    elif args.chisqtest:
        significance = "chisqtest"
    else:
        significance = cfg.get("significance")

    try:
        data = pd.read_csv(args.input, sep=sep)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Could not read input table '{args.input}': {e}")
        return 1
    logger.info(f"Read {data.shape[0]} rows and {data.shape[1]} columns from {args.input}")

    try:
        result = lassie(
            data,
            select=args.select,
            measure=_setting(args, cfg, "measure"),
            continuous=_setting(args, cfg, "continuous") or None,
            breaks=breaks,
            default_breaks=_setting(args, cfg, "default_breaks"),
        )
        if significance == "permtest":
            permtest(
                result,
                nb=_setting(args, cfg, "nb"),
                p_adjust=_setting(args, cfg, "p_adjust"),
                seed=_setting(args, cfg, "seed"),
                workers=_setting(args, cfg, "workers"),
            )
        elif significance == "chisqtest":
            chisqtest(result, p_adjust=_setting(args, cfg, "p_adjust"))
        elif significance:
            raise ValueError(
                f"Unknown significance test '{significance}': choose permtest or chisqtest"
            )
    except (ZebuError, ValueError) as e:
        logger.error(str(e))
        return 1

    if args.output_file in ("stdout", "-"):
        write_lassie(result, sys.stdout, sep=sep)
    else:
        write_lassie(result, args.output_file, sep=sep)

    if args.html_report:
        from .report import generate_html_report

        generate_html_report(result, args.html_report, top=cfg.get("report_top", 20))

    logger.info(f"Run finished in {datetime.datetime.now() - start_time}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Command line interface for reshaping CSV files.

This module provides a command line interface over
:class:`tidyground.ReshapePipeline`, each ``--spread``
and ``--sum`` option adds a step to the pipeline.

The results are written to a CSV file or printed to the
console in a tabular format using the :mod:`tidyground.utils.tabulate` module.
"""

import argparse
import logging
import sys

from tidyground.compute import ReshapeError
from tidyground.pipeline import ReshapePipeline, RowSum, Spread
from tidyground.utils import tabulate

log = logging.getLogger(__name__)


def parse_spread(text: str) -> tuple[str, str | None]:
    """Parse a ``column[:missing_column]`` option."""
    column, _, missing_column = text.partition(":")
    if not column:
        raise argparse.ArgumentTypeError(f"Invalid spread {text!r}, expected COLUMN[:MISSING_COLUMN]")
    return column, missing_column or None


def parse_row_sum(text: str) -> RowSum:
    try:
        return RowSum.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Spread multi-value columns of a CSV file into indicator columns."
    )
    parser.add_argument("input", type=str, help="The CSV file to reshape.")
    parser.add_argument(
        "-o", "--output", help="Where to write the result. Prints a preview when omitted."
    )
    parser.add_argument(
        "-s",
        "--spread",
        action="append",
        type=parse_spread,
        default=[],
        metavar="COLUMN[:MISSING_COLUMN]",
        help="Spread a multi-value column. Can be provided multiple times.",
    )
    parser.add_argument(
        "--sum",
        action="append",
        type=parse_row_sum,
        default=[],
        metavar="NAME=START:END",
        help="Append a column summing the columns from START to END. Can be provided multiple times.",
    )
    parser.add_argument("-d", "--delimiter", default=";", help="Separator of the tokens in a cell.")
    parser.add_argument("--na", default="NULL", help="Text marking missing cells.")
    parser.add_argument("--trim", action="store_true", help="Strip whitespace around tokens.")
    parser.add_argument(
        "--drop-empty",
        action="store_true",
        help="Drop rows that have no tokens instead of keeping them with all indicators false.",
    )
    parser.add_argument(
        "--first-seen-order",
        action="store_true",
        help="Add indicator columns in the order tokens are found instead of sorting them.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and run the pipeline."""
    args = build_parser().parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    spreads = [
        Spread(
            column,
            delimiter=args.delimiter,
            missing_column=missing_column,
            trim=args.trim,
            keep_empty=not args.drop_empty,
            sort_columns=not args.first_seen_order,
        )
        for column, missing_column in args.spread
    ]
    pipeline = ReshapePipeline(args.input, spreads=spreads, row_sums=args.sum, na=args.na)

    try:
        if args.output:
            pipeline.write_csv(args.output)
        else:
            print(tabulate.tabulate(pipeline.execute()))
    except ReshapeError as e:
        log.debug("Pipeline failed", exc_info=True)
        print(f"Unable to reshape {args.input}, {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

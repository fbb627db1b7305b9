"""
Command line entry point: run one strategy, compare both, or generate
synthetic input.
"""

import argparse
import logging
import sys

from .config import DEFAULT_SAMPLE_BOUND, resolve_config
from .coordinator.orchestrator import compare_strategies, run_pipeline
from .errors import SubjectsByLocationError
from .strategies import DEFAULT_ARENA_CAPACITY, STRATEGIES
from .synthetic import generate_records, write_records

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def _config_from_args(args):
    return resolve_config(
        date=args.date,
        input=args.input,
        output=args.output,
        sample_bound=args.sample_bound,
        strategy=getattr(args, 'strategy', None),
        num_map_tasks=args.num_map,
        num_reduce_tasks=args.num_reduce,
        max_workers=args.max_workers,
        use_combiner=not args.no_combiner,
        seed=args.seed,
        arena_capacity=args.arena_capacity,
        log_level=args.log_level,
    )


def run_command(args):
    """Run one strategy and write its report."""
    report = run_pipeline(_config_from_args(args))
    print(f"Strategy: {report.strategy}")
    print(f"Report: {report.output_path} ({report.lines_written} lines)")
    print(f"Aggregation time: {report.aggregation_ms} ms")


def compare_command(args):
    """Run both strategies on one sample and report the difference."""
    report = compare_strategies(_config_from_args(args), repeats=args.repeats)

    for name, run in report.runs.items():
        metrics = run.metrics
        print(f"{name}: {run.aggregation_ms} ms, {run.lines_written} lines -> {run.output_path}")
        if metrics:
            print(f"  intermediate pairs: {metrics.intermediate_pairs}, "
                  f"largest group: {metrics.largest_group}, "
                  f"peak RSS: {metrics.peak_rss_bytes / (1024 * 1024):.1f} MB")
    print(f"Grouped strategy slower by {report.slowdown_ms:.1f} ms (mean of {args.repeats} runs)")

    if args.metrics_out:
        report.save_to_file(args.metrics_out)
        print(f"Metrics saved to {args.metrics_out}")
    if args.plot:
        from .plotting import plot_comparison
        plot_comparison(report.timings_ms, args.plot, report.records_sampled)
        print(f"Chart saved to {args.plot}")
    if args.summary:
        from .plotting import write_summary_table
        write_summary_table(report.timings_ms, args.summary)
        print(f"Summary table saved to {args.summary}")


def generate_command(args):
    """Write a synthetic event file."""
    written = write_records(args.path, generate_records(
        args.count, hot_share=args.hot_share, seed=args.seed
    ))
    print(f"Wrote {written} records to {args.path}")


def _add_run_options(parser, with_strategy: bool):
    parser.add_argument("--date", help="Export date (YYYYMMDD), defaults to today")
    parser.add_argument("--input", help="Input path or URL, overrides the date-derived GDELT URL")
    parser.add_argument("--output", help="Output directory prefix, defaults to <tmp>/gdelt-<date>")
    parser.add_argument("--sample-bound", type=int, default=DEFAULT_SAMPLE_BOUND,
                        help="Maximum number of records sampled")
    if with_strategy:
        parser.add_argument("--strategy", choices=STRATEGIES, default=STRATEGIES[0],
                            help="Aggregation strategy")
    parser.add_argument("--num-map", type=int, default=4, help="Number of map tasks")
    parser.add_argument("--num-reduce", type=int, default=2, help="Number of reduce tasks")
    parser.add_argument("--max-workers", type=int, default=4, help="Worker threads")
    parser.add_argument("--no-combiner", action="store_true",
                        help="Disable map-side combining for the per-key strategy")
    parser.add_argument("--seed", type=int, help="Random seed for sampling")
    parser.add_argument("--arena-capacity", type=int, default=DEFAULT_ARENA_CAPACITY,
                        help="Maximum subjects a grouped reducer may hold for one location")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Event frequency per (location, subject) pair")
    parser.add_argument("--log-level", default="INFO", help="Logging level")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    run_parser = subparsers.add_parser("run", help="Run one aggregation strategy")
    _add_run_options(run_parser, with_strategy=True)

    compare_parser = subparsers.add_parser("compare", help="Compare both strategies")
    _add_run_options(compare_parser, with_strategy=False)
    compare_parser.add_argument("--repeats", type=int, default=1, help="Runs per strategy")
    compare_parser.add_argument("--metrics-out", help="Write comparison metrics as JSON")
    compare_parser.add_argument("--plot", help="Write a timing chart (PNG)")
    compare_parser.add_argument("--summary", help="Write a markdown timing table")

    generate_parser = subparsers.add_parser("generate", help="Generate synthetic input")
    generate_parser.add_argument("path", help="File to write")
    generate_parser.add_argument("--count", type=int, default=100000, help="Number of records")
    generate_parser.add_argument("--hot-share", type=float, default=0.5,
                                 help="Fraction of records in the busiest location")
    generate_parser.add_argument("--seed", type=int, help="Random seed")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    commands = {
        "run": run_command,
        "compare": compare_command,
        "generate": generate_command,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        command(args)
    except SubjectsByLocationError as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())

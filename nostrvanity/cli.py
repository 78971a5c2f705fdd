"""
Command-line interface for nostrvanity.

Usage:
    python -m nostrvanity --patterns abc
    python -m nostrvanity -p abc,xyz --match-type suffix --workers 8
    python -m nostrvanity --file patterns.txt --continuous --output found.csv --csv
    python -m nostrvanity -p nostr --estimate
"""

import argparse
import logging
import sys

import coloredlogs

from nostrvanity import __version__
from nostrvanity.coordinator import DEFAULT_BATCH_SIZE, SearchCoordinator
from nostrvanity.errors import VanityError
from nostrvanity.export import OutputSink
from nostrvanity.matcher import MatchKind, PatternMatcher
from nostrvanity.state import MatchEvent, SearchStats
from nostrvanity.verify import verify_candidate

logger = logging.getLogger(__name__)

LOG_FORMAT = "(%(threadName)-10s) (%(funcName)s) %(message)s"


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nostrvanity",
        description="Nostr vanity npub address generator",
        epilog=(
            "Examples:\n"
            "  nostrvanity --patterns abc\n"
            "  nostrvanity -p abc,xyz --match-type suffix --workers 8\n"
            "  nostrvanity --file patterns.txt --continuous -o found.csv --csv\n"
            "  nostrvanity -p nostr --estimate\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"nostrvanity {__version__}"
    )

    parser.add_argument(
        "--patterns", "-p", metavar="LIST",
        help="Comma-separated list of patterns to search for",
    )
    parser.add_argument(
        "--file", "-f", metavar="PATH",
        help="File with one pattern per line (blank lines and # comments skipped)",
    )
    parser.add_argument(
        "--match-type", "-m", default="prefix",
        choices=[k.value for k in MatchKind],
        help="Where the pattern must appear (default: prefix)",
    )
    parser.add_argument(
        "--case-sensitive", "-c", action="store_true",
        help="Case sensitive matching",
    )
    parser.add_argument(
        "--workers", "-w", "--threads", "-t", dest="workers", type=int, default=0,
        help="Number of workers (default: all cores)",
    )
    parser.add_argument(
        "--continuous", action="store_true",
        help="Continue searching after finding the first match",
    )
    parser.add_argument(
        "--batch-size", type=int, default=DEFAULT_BATCH_SIZE,
        help=f"Candidates per batch (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--max-time", type=float, metavar="SECONDS",
        help="Stop after this many seconds (continuous mode default: 3600)",
    )
    parser.add_argument(
        "--threads-only", action="store_true",
        help="Run workers as threads instead of processes",
    )
    parser.add_argument(
        "--output", "-o", metavar="PATH",
        help="Append results to this file",
    )
    parser.add_argument(
        "--csv", action="store_true",
        help="Write the output file as CSV",
    )
    parser.add_argument(
        "--estimate", "--dry-run", action="store_true",
        help="Show time estimates for the patterns and exit",
    )
    parser.add_argument(
        "--no-verify", action="store_true",
        help="Skip re-deriving the public key from each result",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Minimal output (just the result npub)",
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0,
        help="More log output (-v info, -vv debug)",
    )

    return parser


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    coloredlogs.install(
        level=level, logger=logging.getLogger("nostrvanity"), fmt=LOG_FORMAT
    )


def parse_patterns_string(value: str) -> list[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def read_patterns_from_file(path: str) -> list[str]:
    patterns = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.append(line)
    return patterns


def collect_patterns(args: argparse.Namespace) -> list[str]:
    patterns = []
    if args.patterns:
        patterns.extend(parse_patterns_string(args.patterns))
    if args.file:
        patterns.extend(read_patterns_from_file(args.file))
    return patterns


def format_time(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    elif seconds < 86400:
        return f"{seconds / 3600:.1f}h"
    else:
        return f"{seconds / 86400:.1f}d"


def format_rate(rate: float) -> str:
    if rate < 1000:
        return f"{rate:.0f}"
    elif rate < 1_000_000:
        return f"{rate / 1000:.1f}K"
    else:
        return f"{rate / 1_000_000:.2f}M"


def progress_callback(stats: SearchStats) -> None:
    sys.stderr.write(
        f"\r  Attempts: {stats.attempts:,}  |  "
        f"Rate: {format_rate(stats.rate)}/sec  |  "
        f"Found: {stats.results_found}  |  "
        f"Elapsed: {format_time(stats.elapsed)}  "
    )
    sys.stderr.flush()


def print_estimates(search: SearchCoordinator) -> None:
    print(
        f"Time estimates (assuming ~100k keys/sec per core, "
        f"{search.num_workers} cores):"
    )
    print()
    for value, difficulty in search.get_estimates():
        print(
            f"  Pattern '{value}' ({len(value)} chars): "
            f"~{difficulty['estimated_time']} "
            f"(~{difficulty['expected_attempts']:,} attempts)"
        )


def report_verification(event: MatchEvent, quiet: bool) -> None:
    v = verify_candidate(event.candidate)
    if v["error"]:
        logger.error("Verification of %s failed: %s", event.candidate.npub, v["error"])
        return
    ok = v["npub_match"] and v["hex_match"]
    if not ok:
        logger.error(
            "Verification mismatch for %s: derived %s", event.candidate.npub, v["derived_npub"]
        )
    if not quiet:
        print(f"Verification: {'PASS' if ok else 'FAIL'}")


def main(argv: list[str] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        patterns = collect_patterns(args)
        matcher = PatternMatcher.from_strings(
            patterns, MatchKind(args.match_type), args.case_sensitive
        )
        search = SearchCoordinator(
            matcher,
            num_workers=args.workers,
            continuous=args.continuous,
            batch_size=args.batch_size,
            max_runtime=args.max_time,
            use_processes=not args.threads_only,
        )
    except (VanityError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.estimate:
        print_estimates(search)
        return 0

    if not args.quiet:
        print(f"nostrvanity v{__version__}")
        print(f"  Patterns:   {', '.join(matcher.values)}")
        print(f"  Match type: {args.match_type}")
        print(f"  Workers:    {search.num_workers}")
        print(f"  Mode:       {'continuous' if args.continuous else 'first match'}")
        print()
        search.on_progress = progress_callback

    sink = OutputSink(output=args.output, csv_format=args.csv, quiet=args.quiet)

    def handle_match(event: MatchEvent) -> None:
        if not args.quiet:
            sys.stderr.write("\n")
        sink.consume(event)
        if not args.no_verify:
            report_verification(event, args.quiet)

    search.on_match = handle_match

    if not args.quiet:
        print("Searching...")

    try:
        results = search.run_blocking()
    except (VanityError, OSError) as e:
        if not args.quiet:
            sys.stderr.write("\n")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        sys.stderr.write("\n")
        if sink.saved_path:
            print(f"\n  Saved to: {sink.saved_path}")
        print(f"  Total attempts: {search.attempts:,}")

    if not results:
        reason = "time limit reached" if search.time_limit_reached else "search was interrupted"
        print(f"No results found ({reason}).", file=sys.stderr)
        return 0 if args.continuous else 1

    return 0

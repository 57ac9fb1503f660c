"""
Command-Line Interface for GigMatch Recs
========================================

Usage:
    python -m gigmatch_recs.cli <snapshot.json> --user <user_id> [options]

    or, once installed

    gigmatch-recs <snapshot.json> --user <user_id> [options]

The snapshot is a JSON file with the app's event rows and viewer profiles:

    {
      "events": [{"id": ..., "title": ..., "description": ...,
                  "start_time": ..., "participants_going": [...],
                  "participants_maybe": [...]}],
      "profiles": {"<user_id>": {"genres": [...], "instruments": [...]}}
    }

Options:
    --user, -u      Viewer to rank events for
    --num, -n       Number of recommendations (default: 10)
    --now           Reference time (ISO-8601, default: current UTC time)
    --output, -o    Output file path (default: stdout)
    --format        Output format: json, csv or simple (default: json)
    --verbose, -v   Debug logging and tracebacks on error
"""

import argparse
import logging
import sys

from . import logging_config  # noqa: F401  # ensure config applied early
from .catalog import load_snapshot
from .config import NUM_RECOMMENDATIONS, OUTPUT_FORMAT
from .recommender import RecommendationEngine, RecommendationOutput
from .utils import parse_timestamp

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='gigmatch-recs',
        description='GigMatch Recs - upcoming event recommendations for musicians',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s snapshot.json --user user-1
  %(prog)s snapshot.json -u user-1 -n 5 --format simple
  %(prog)s snapshot.json -u user-1 --now 2024-05-01T00:00:00Z -o recs.json

Environment Variables:
  GIGMATCH_LOG_LEVEL                    Logging level (default: INFO)
  GIGMATCH_MAX_CONCURRENT_EVENTS        Events scored at once (default: 16)
  GIGMATCH_MAX_CONCURRENT_PARTICIPANTS  History lookups per event (default: 8)
        """
    )

    parser.add_argument(
        'snapshot',
        type=str,
        help='Path to a JSON snapshot of events and profiles'
    )

    parser.add_argument(
        '-u', '--user',
        type=str,
        required=True,
        help='User id to rank events for'
    )

    parser.add_argument(
        '-n', '--num',
        type=int,
        default=NUM_RECOMMENDATIONS,
        help=f'Number of recommendations to return (default: {NUM_RECOMMENDATIONS})'
    )

    parser.add_argument(
        '--now',
        type=str,
        default=None,
        help='Reference time separating past from upcoming events (ISO-8601)'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output file path (default: print to stdout)'
    )

    parser.add_argument(
        '--format',
        type=str,
        choices=['json', 'csv', 'simple'],
        default=OUTPUT_FORMAT,
        help=f'Output format (default: {OUTPUT_FORMAT})'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    return parser


def format_output(result: RecommendationOutput, fmt: str) -> str:
    """Format recommendation output based on requested format."""
    if fmt == 'json':
        return result.to_json(indent=2)

    elif fmt == 'csv':
        lines = ['event_id,title,start_time,score,explanation']
        for rec in result.recommendations:
            # Escape quotes
            title = (rec.title or '').replace('"', '""')
            explanation = rec.explanation.replace('"', '""')
            lines.append(
                f'{rec.event_id},"{title}",{rec.start_time.isoformat()},{rec.score:.4f},"{explanation}"'
            )
        return '\n'.join(lines)

    elif fmt == 'simple':
        lines = [
            f"Recommendations for: {result.user_id}",
            f"   Upcoming events: {result.upcoming_count}",
            "",
            "Top {0} Events:".format(len(result.recommendations)),
            "-" * 50,
        ]
        for i, rec in enumerate(result.recommendations, 1):
            lines.append(f"{i:2}. {rec.title}")
            lines.append(f"    When: {rec.start_time:%a %m/%d %H:%M}")
            lines.append(f"    Score: {rec.score:.4f}")
            lines.append(f"    Why: {rec.explanation}")
            lines.append(f"    Event ID: {rec.event_id}")
            lines.append("")
        return '\n'.join(lines)

    return result.to_json()


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        now = parse_timestamp(args.now) if args.now else None
        clock = (lambda: now) if now else None

        catalog, profiles = load_snapshot(args.snapshot, clock=clock)
        engine = RecommendationEngine(catalog, profiles)

        result = engine.recommend_sync(
            args.user,
            now=now,
            n_recommendations=args.num
        )

        output = format_output(result, args.format)

        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output)
            logger.info("Recommendations saved to: %s", args.output)
        else:
            print(output)

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            logger.exception("Ranking failed")
        return 1


if __name__ == '__main__':
    sys.exit(main())

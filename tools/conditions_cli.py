#!/usr/bin/env python3
# =============================================================================
# SUPERIOR SURF ENGINE - CONDITIONS CLI
# =============================================================================
#
# Command-line interface for the aggregation engine.
#
# Commands:
#   aggregate --spot ID --file observations.json [--json] [--timeline]
#   spots
#   describe --spot ID
#
# The observations file holds a JSON list of observation objects, or an
# object with an "observations" list.
#
# =============================================================================

import argparse
import json
import logging
import sys
from pathlib import Path

# Setup project root
BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR))

from models.data_models import Observation, parse_timestamp
from shared.exceptions import ConfigurationError, InvalidInputError, NoDataError
from shared.logging_config import setup_logging
from surf_engine.aggregation import create_engine
from surf_engine.config import configured_log_level
from surf_engine.spot_profiles import load_spot_profiles, spot_documentation, wind_rose

logger = logging.getLogger("tools.conditions_cli")

NO_DATA_MESSAGE = "No data available"


# =============================================================================
# FORMATTING
# =============================================================================


def _fmt_metric(metric, digits=1):
    """Format a blended metric or return 'N/A'."""
    if metric is None:
        return "N/A"
    text = f"{metric.value:.{digits}f} {metric.unit.value}"
    if metric.direction is not None:
        text += f" from {metric.direction.value}"
    text += f" (confidence {metric.confidence:.2f}"
    if metric.conflict:
        text += ", CONFLICT"
    return text + ")"


def print_conditions(result):
    """Print one AggregatedConditions record to stdout."""
    rng = result.wave_height.range
    print()
    print("=" * 60)
    print(f"{result.spot_name.upper()} - {result.surf_likelihood.value.upper()}")
    print("=" * 60)
    print(f"Time:          {result.timestamp.strftime('%Y-%m-%d %H:%M')} UTC")
    print(f"Rating:        {result.rating}/10")
    print(f"Waves:         {rng.min:.1f}-{rng.max:.1f} ft "
          f"(confidence {result.wave_height.confidence:.2f}, {result.wave_height.provenance.value})")
    print(f"Period:        {_fmt_metric(result.wave_period, 0)}")
    print(f"Wind:          {_fmt_metric(result.wind, 0)} - {result.wind_quality.value}")
    print(f"Water temp:    {_fmt_metric(result.water_temp, 0)}")
    if result.swell:
        swells = ", ".join(
            f"{s.height_ft:.1f}ft"
            + (f" @ {s.period_s:.0f}s" if s.period_s else "")
            + (f" {s.direction.value}" if s.direction else "")
            for s in result.swell
        )
        print(f"Swell:         {swells}")
    print()
    print(result.surf_report)
    print(result.conditions)
    if result.notes:
        print()
        print("--- NOTES ---")
        for note in result.notes:
            print(f"  - {note}")
    if result.recommendations:
        print()
        print("--- RECOMMENDATIONS ---")
        for rec in result.recommendations:
            print(f"  - {rec}")
    print()


def load_observations(path):
    """Read observations from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("observations", [])
    if not isinstance(data, list):
        raise InvalidInputError(f"{path} must contain a list of observations")
    return [Observation.from_dict(item) for item in data]


# =============================================================================
# CLI COMMANDS
# =============================================================================


def cmd_aggregate(args):
    """Aggregate observations from a file for one spot."""
    engine = create_engine(args.config, args.spots)
    observations = load_observations(args.file)

    try:
        if args.timeline:
            results = engine.aggregate_timeline(args.spot, observations, bucket_minutes=args.bucket_minutes)
            if not results:
                raise NoDataError("No bucket produced conditions", spot_id=args.spot)
        else:
            as_of = parse_timestamp(args.as_of) if args.as_of else None
            results = [engine.aggregate(args.spot, observations, as_of=as_of)]
    except NoDataError as e:
        logger.info(f"Aggregation failed: {e}")
        print(NO_DATA_MESSAGE)
        return 1

    if args.json:
        payload = [r.to_dict() for r in results]
        print(json.dumps(payload if args.timeline else payload[0], indent=2, sort_keys=True, ensure_ascii=False))
    else:
        for result in results:
            print_conditions(result)
    return 0


def cmd_spots(args):
    """List configured spot profiles."""
    store = load_spot_profiles(args.spots)
    print(f"{'SPOT':<16}{'NAME':<26}{'SHORE':<13}{'GOOD':>6}{'FIRING':>8}  CONFIDENCE")
    for profile in store:
        t = profile.thresholds
        confidence = t.threshold_confidence.value if t.threshold_confidence else "-"
        marker = " (fallback)" if profile.is_fallback else ""
        print(
            f"{profile.spot_id:<16}{profile.name:<26}{profile.shore_orientation.value:<13}"
            f"{t.good_min:>6.1f}{t.firing_min:>8.1f}  {confidence}{marker}"
        )
    return 0


def cmd_describe(args):
    """Print documentation and wind rose for one spot."""
    store = load_spot_profiles(args.spots)
    profile = store.get(args.spot)
    if not store.is_known(args.spot):
        print(f"Unknown spot {args.spot!r}; showing fallback profile")
        print()
    print(spot_documentation(profile))
    print()
    print(wind_rose(profile))
    return 0


# =============================================================================
# MAIN
# =============================================================================


def build_parser():
    parser = argparse.ArgumentParser(
        description="Superior Surf Engine - Conditions CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python tools/conditions_cli.py aggregate --spot stoneypoint --file obs.json
  python tools/conditions_cli.py aggregate --spot parkpoint --file obs.json --json
  python tools/conditions_cli.py aggregate --spot marquette --file series.json --timeline
  python tools/conditions_cli.py spots
  python tools/conditions_cli.py describe --spot parkpoint
        """,
    )
    parser.add_argument("--config", default=None, help="Path to engine.yaml")
    parser.add_argument("--spots", default=None, help="Path to spots.yaml")
    parser.add_argument("--log-level", default=None, help="Logging level (default: SURF_LOG_LEVEL or WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # aggregate
    agg_parser = subparsers.add_parser("aggregate", help="Aggregate observations for a spot")
    agg_parser.add_argument("--spot", required=True, help="Spot id, e.g. stoneypoint")
    agg_parser.add_argument("--file", required=True, help="JSON file with observations")
    agg_parser.add_argument("--as-of", default=None, help="Time bucket (ISO8601, default: latest observation)")
    agg_parser.add_argument("--json", action="store_true", help="Print JSON instead of a report")
    agg_parser.add_argument("--timeline", action="store_true", help="Aggregate per time bucket")
    agg_parser.add_argument("--bucket-minutes", type=int, default=60, help="Bucket width for --timeline")
    agg_parser.set_defaults(func=cmd_aggregate)

    # spots
    spots_parser = subparsers.add_parser("spots", help="List configured spots")
    spots_parser.set_defaults(func=cmd_spots)

    # describe
    describe_parser = subparsers.add_parser("describe", help="Describe one spot")
    describe_parser.add_argument("--spot", required=True, help="Spot id")
    describe_parser.set_defaults(func=cmd_describe)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(level=args.log_level or configured_log_level("WARNING"))

    try:
        return args.func(args)
    except (ConfigurationError, InvalidInputError, OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

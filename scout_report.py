#!/usr/bin/env python3
"""
FRC Scouting Report CLI

Scores scouting submissions and prints per-team aggregates (averages,
consistency, uptime, CLANK / RPMAGIC / GOBLIN).

Rows come from an exported JSON file, or from the hosted database when
SUPABASE_URL and SUPABASE_KEY are set.

Usage:
    python scout_report.py --data exports/scouting_data.json
    python scout_report.py --season 2026 --team 6897
    python scout_report.py --notes notes.json
"""

import argparse
import json
import sys
from pathlib import Path

import polars as pl

from frcscout import ScoutingDataFetcher, compute_score
from frcscout.config import get_config, get_point_values
from frcscout.logging_config import get_logger, setup_logging
from frcscout.schemas import PointValues
from frcscout.utils import load_json, load_rows, save_json
from frcscout.validators import validate_all_records, validate_team_aggregate

logger = get_logger('report')


def print_team_report(fetcher: ScoutingDataFetcher, team_number: int, points: PointValues) -> None:
    """Print one team's matches and aggregate."""
    records = fetcher.records_for_team(team_number)
    if not records:
        print(f"No scouting data for team {team_number}")
        return

    print(f"\nTeam {team_number} - {len(records)} matches")
    print("-" * 60)
    for record in records:
        print(
            f"  {record.match_id:<28} auto {record.autonomous_points:>5.1f}"
            f"  teleop {record.teleop_points:>5.1f}  endgame {record.endgame_points:>5.1f}"
            f"  total {record.final_score:>6.1f}"
        )

    aggregate = fetcher.team_aggregate(team_number, points)
    print("-" * 60)
    for name, value in aggregate.as_dict().items():
        if name == 'formula_flags':
            continue
        print(f"  {name:<26} {value}")
    for flag in aggregate.formula_flags:
        print(f"  ⚠️  {flag}")


def main():
    parser = argparse.ArgumentParser(description="FRC Scouting Report")
    parser.add_argument(
        "--data", "-d",
        default=None,
        help="Exported scouting_data JSON file (defaults to the hosted database)",
    )
    parser.add_argument(
        "--season", "-y",
        type=int,
        default=None,
        help="Season year (defaults to current_season in data/scouting_config.json)",
    )
    parser.add_argument(
        "--event", "-e",
        default=None,
        help="Only report matches of this event (defaults to event_key in data/scouting_config.json)",
    )
    parser.add_argument(
        "--team", "-t",
        type=int,
        default=None,
        help="Only report this team number",
    )
    parser.add_argument(
        "--notes", "-n",
        default=None,
        help="Score a single notes JSON file and exit",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write the team summary to this JSON file",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress detailed output",
    )

    args = parser.parse_args()

    config = get_config()
    setup_logging(level="WARNING" if args.quiet else config.log_level, log_to_file=False)
    season = args.season or config.current_season

    try:
        points = get_point_values(season)
    except KeyError as e:
        print(f"❌ {e}")
        sys.exit(1)

    if args.notes:
        score = compute_score(load_json(args.notes), points)
        print(json.dumps({**score.rounded(), 'breakdown': score.breakdown}, indent=2))
        return

    rows = None
    if args.data:
        data_path = Path(args.data)
        if not data_path.exists():
            print(f"❌ Data file not found: {data_path}")
            sys.exit(1)
        rows = load_rows(data_path)
        logger.info(f"Loaded {len(rows)} rows from {data_path}")

    fetcher = ScoutingDataFetcher(season=season, rows=rows, event_key=args.event or config.event_key)

    if args.team is not None:
        print_team_report(fetcher, args.team, points)
        return

    print(f"Scoring {season} scouting data...")

    records = [r for team in fetcher.team_numbers() for r in fetcher.records_for_team(team)]
    errors, warnings = validate_all_records(records, points)
    aggregates = fetcher.team_aggregates(points)
    logger.info(f"Scored {len(records)} matches for {len(aggregates)} teams")
    for team, aggregate in aggregates.items():
        warnings.extend(validate_team_aggregate(team, aggregate))

    if not args.quiet:
        for warning in warnings:
            print(f"⚠️  {warning}")
    for error in errors:
        print(f"❌ {error}")

    summary = fetcher.summary_frame(points)
    if summary.is_empty():
        print(f"No scouting data for {season}")
        return

    print("\n" + "=" * 60)
    print("TEAM RANKINGS")
    print("=" * 60)
    columns = ['team_number', 'match_count', 'avg_total_score', 'consistency',
               'uptime_pct', 'clank', 'rpmagic', 'goblin']
    with pl.Config(tbl_rows=-1, tbl_hide_dataframe_shape=True):
        print(summary.select(columns))

    if args.output:
        save_json(args.output, {
            'season': season,
            'teams': {str(team): aggregate.as_dict() for team, aggregate in aggregates.items()},
        })
        print(f"Summary saved: {args.output}")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Post-event validation: score the pre-event ranking against the finish and
recommend metric weights.

Usage:
    # One event:
    python validate.py --season 2026 --tournament "Genesis Invitational"

    # Force a course type and ignore cached metric analysis:
    python validate.py --season 2026 --slug genesis-invitational --course-type TECHNICAL --force

    # Whole season (classification roster, calibration, bias trends, weight guide):
    python validate.py --season 2026 --all

    # Stricter thresholds from profiles.yaml:
    python validate.py --season 2026 --all --profile strict
"""

import argparse
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

load_dotenv()

from golf_validation import config
from golf_validation.errors import ValidationError
from golf_validation.logging_config import setup_logging
from golf_validation.services.validation_service import (
    STATUS_OK,
    ValidationConfig,
    ValidationService,
)


def _print_event(event):
    print(f"\n  {event.tournament} ({event.season}): {event.status}")
    if event.reason:
        print(f"    {event.reason}")
    if event.evaluation is not None:
        ev = event.evaluation
        print(f"    Matched players: {ev.matched_players} "
              f"(predictions {ev.predictions}, results {ev.results})")
        print(f"    Spearman: {ev.correlation:.3f}   RMSE: {ev.rmse:.1f}")
        rates = "  ".join(f"top{w}: {v:.0f}%" for w, v in ev.hit_rates.items())
        print(f"    Hit rates: {rates}")
    if event.analysis is not None:
        cached = " (cached)" if event.metric_analysis_skipped else ""
        print(f"    Course type: {event.analysis.course_type} "
              f"[{event.analysis.course_type_source}]{cached}")
        strongest = sorted(event.analysis.metrics, key=lambda m: -abs(m.correlation))[:5]
        for m in strongest:
            print(f"      {m.metric:<42} r={m.correlation:+.3f}  delta={m.delta:+.3f}")


def main():
    parser = argparse.ArgumentParser(description="Golf ranking post-event validation")
    parser.add_argument("--season", "-s", required=True, help="Season folder under the data root (e.g. 2026)")
    parser.add_argument("--tournament", "-t", default=None, help="Tournament name or slug")
    parser.add_argument("--slug", default=None, help="Tournament folder slug (alias for --tournament)")
    parser.add_argument("--all", action="store_true", help="Validate every event in the season")
    parser.add_argument("--course-type", choices=config.COURSE_TYPES, default=None,
                        help="Use this course type instead of classifying")
    parser.add_argument("--data-root", default=None, help=f"Data root (default: {config.DATA_ROOT})")
    parser.add_argument("--profile", default=None, help="Run profile from profiles.yaml")
    parser.add_argument("--force", action="store_true", help="Recompute metric analysis even when fresh")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ERROR")
    args = parser.parse_args()

    setup_logging(level=args.log_level)

    tournament = args.slug or args.tournament
    if not args.all and not tournament:
        parser.error("give --tournament/--slug or --all")
    if args.all and args.course_type:
        parser.error("--course-type applies to a single event; set season course types in tournaments.yaml")

    cfg = ValidationConfig(
        season=args.season,
        tournament=tournament,
        data_root=args.data_root,
        course_type=args.course_type,
        profile=args.profile,
        force=args.force,
    )

    try:
        service = ValidationService.from_config(cfg)
        print(f"{'='*60}")
        print("  POST-EVENT VALIDATION")
        print(f"  Season: {cfg.season}")
        print(f"  Data: {service.data_root}")
        print(f"{'='*60}")

        if args.all:
            season = service.run_season(cfg.season, force=cfg.force)
            for event in season.events:
                _print_event(event)
            counts = season.counts()
            print(f"\n  Processed {counts[STATUS_OK]}, skipped {counts['skipped']}, errors {counts['error']}")
            if season.calibration is not None:
                print(f"  Top 5 predicted in top 20: {season.calibration.top5_ratio * 100:.1f}%")
                print(f"  Top 10 predicted in top 30: {season.calibration.top10_ratio * 100:.1f}%")
            chronic = [b.metric for b in season.bias_trends if b.status == "CHRONIC"]
            if chronic:
                print(f"  Chronic model bias: {', '.join(chronic)}")
            outputs = season.outputs
        else:
            event = service.run_event(cfg.season, tournament, course_type=cfg.course_type, force=cfg.force)
            _print_event(event)
            outputs = event.outputs
    except ValidationError as e:
        print(f"\nError: {e}", file=sys.stderr)
        sys.exit(2)

    if outputs:
        print(f"\n  Wrote {len(outputs)} files to {os.path.dirname(outputs[-1])}")
    print(f"{'='*60}")


if __name__ == "__main__":
    main()

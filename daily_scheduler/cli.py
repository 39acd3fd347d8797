"""
Command-line interface for the daily scheduler.
"""

import argparse
import sys
import yaml
from pydantic import ValidationError

from .config import load_config
from .engine import SchedulingEngine, validate_schedule
from .export import excel_persister
from .history import load_history, save_history, update_rotation_history
from .ingest import load_skeleton, validate_skeleton
from .logging import setup_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Daily Scheduler - camp activity scheduling engine"
    )

    parser.add_argument(
        "--config",
        required=True,
        help="Path to YAML configuration file"
    )

    parser.add_argument(
        "--skeleton",
        required=True,
        help="Path to the day's master skeleton (YAML, Excel or CSV)"
    )

    parser.add_argument(
        "--out",
        help="Path to output Excel file"
    )

    parser.add_argument(
        "--history",
        help="Path to rotation history YAML (optional)"
    )

    parser.add_argument(
        "--history-out",
        help="Where to save the updated history (defaults to --history)"
    )

    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Only validate the configuration and skeleton"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    try:
        # Load configuration
        print("Loading configuration...")
        config = load_config(args.config)

        log_level = "DEBUG" if args.verbose else config.logging.level
        setup_logging(json_output=config.logging.json_output, log_level=log_level)

        # Load skeleton
        print("Loading master skeleton...")
        events = load_skeleton(args.skeleton)
        print(f"Loaded {len(events)} skeleton events")

        issues = validate_skeleton(events, config)
        _print_issues("skeleton", issues)

        if args.validate_only:
            print("Validation complete. Exiting.")
            sys.exit(1 if issues['errors'] else 0)

        if not args.out:
            parser.error("--out is required unless --validate-only is given")

        # Load history
        history = load_history(args.history)
        if args.history:
            print(f"Loaded history for {len(history.counts)} bunks")

        # Run
        print("Running scheduler...")
        engine = SchedulingEngine(config)
        result = engine.run(
            lambda: events,
            history=history,
            persist=excel_persister(config, args.out),
        )

        if not result.ok:
            print(f"ERROR: {result.error}")
            sys.exit(1)

        if result.warnings:
            print(f"{len(result.warnings)} warnings during the run:")
            for warning in result.warnings:
                print(f"  - [{warning.code}] {warning.message}")

        # Validate final schedule
        print("\nValidating final schedule...")
        violations = validate_schedule(result.schedule, config)
        if not violations['errors']:
            print("No errors found in final schedule!")
        _print_issues("final schedule", violations)

        # Save history
        history_out = args.history_out or args.history
        if history_out:
            updated = update_rotation_history(history, result.schedule, config)
            save_history(updated, history_out)
            print(f"History saved to {history_out}")

        # Print summary
        print("\n" + "="*50)
        print("SCHEDULING COMPLETE")
        print("="*50)

        stats = result.schedule.get_summary_stats()
        print(f"Total bunks: {stats.get('total_bunks', 0)}")
        print(f"Total slots: {stats.get('total_slots', 0)}")
        print(f"Day range: {stats.get('day_range', {}).get('start', 'N/A')} to {stats.get('day_range', {}).get('end', 'N/A')}")

        if 'resource_distribution' in stats:
            print(f"Resource distribution: {stats['resource_distribution']}")

        print(f"\nSchedule exported to: {args.out}")

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"ERROR: Invalid YAML: {e}")
        sys.exit(1)
    except ValidationError as e:
        print(f"ERROR: Invalid configuration: {e}")
        sys.exit(1)
    except ValueError as e:
        print(f"ERROR: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


def _print_issues(name: str, issues) -> None:
    if issues['errors']:
        print(f"ERRORS found in {name}:")
        for error in issues['errors']:
            print(f"  - {error}")

    if issues['warnings']:
        print(f"WARNINGS found in {name}:")
        for warning in issues['warnings']:
            print(f"  - {warning}")


if __name__ == "__main__":
    main()

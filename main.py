#!/usr/bin/env python3
"""
AI Workout Routine Generator
Main entry point for the command-line tool.
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

from routine_generator.config import load_config
from routine_generator.errors import INVALID_ARGUMENT, RoutineError
from routine_generator.generation_client import GenerationClientProvider
from routine_generator.log_store import WorkoutLogStore
from routine_generator.routine_generator import RoutineGenerator
from routine_generator.schedule_params import DAYS_OF_WEEK


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate a weekly workout routine with an AI model.")
    parser.add_argument("--request", required=True, help="Path to a request JSON file (onboardingData, previousRoutineData)")
    parser.add_argument("--user-id", required=True, help="Authenticated user id to generate for")
    parser.add_argument("--config", default="config.yaml", help="Path to config.yaml")
    parser.add_argument("--strict", action="store_true", help="Abort on the first invalid exercise instead of repairing it")
    parser.add_argument("--output", help="Output folder (defaults to config output.folder)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def print_banner():
    """Print welcome banner."""
    banner = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║        AI WORKOUT ROUTINE GENERATOR                          ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
    """
    print(banner)


def print_routine(routine):
    print(f"\n{routine['name']} ({routine['durationInWeeks']} weeks)")
    for day in DAYS_OF_WEEK:
        exercises = routine["dailyWorkouts"][day]
        if not exercises:
            print(f"\n{day.capitalize()}: rest")
            continue
        print(f"\n{day.capitalize()}:")
        for exercise in exercises:
            line = f"  - {exercise['name']}: {exercise['sets']} x {exercise['reps']}"
            if exercise["weightSuggestionKg"] != "N/A":
                line += f" @ {exercise['weightSuggestionKg']}"
            line += f" (rest {exercise['restBetweenSetsSeconds']}s)"
            print(line)


def load_request(path):
    """Read the request JSON file; unreadable or malformed files are invalid-argument."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as exc:
        raise RoutineError(INVALID_ARGUMENT, f"Could not read request file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise RoutineError(INVALID_ARGUMENT, f"Request file {path} is not valid JSON: {exc}") from exc


def save_routine(routine, output_folder):
    """Write the routine JSON to the output folder and return its path."""
    os.makedirs(output_folder, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = os.path.join(output_folder, f"routine_{timestamp}.json")
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(routine, f, indent=2, ensure_ascii=False)
    return filepath


def main(argv=None):
    """Main application flow."""
    args = parse_args(argv)
    print_banner()

    print("Loading configuration...")
    try:
        config = load_config(args.config)
    except RoutineError as e:
        print(f"\n❌ Configuration error [{e.code}]: {e.message}")
        sys.exit(1)

    level = "DEBUG" if args.verbose else (config.get("logging", {}) or {}).get("level", "INFO")
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        request_data = load_request(args.request)
    except RoutineError as e:
        print(f"\n❌ Invalid request [{e.code}]: {e.message}")
        sys.exit(1)

    log_store = None
    db_path = (config.get("database", {}) or {}).get("path")
    if db_path and os.path.exists(db_path):
        log_store = WorkoutLogStore(db_path)
        log_store.init_schema()
    else:
        print("No workout history database found. Continuing without performance history.")

    generator = RoutineGenerator(config, GenerationClientProvider(config), log_store=log_store)

    print("\n" + "=" * 60)
    print("GENERATING WORKOUT ROUTINE")
    print("=" * 60)

    try:
        routine = generator.generate(
            request_data,
            auth={"uid": args.user_id},
            strict=True if args.strict else None,
        )
    except RoutineError as e:
        print(f"\n❌ Routine generation failed [{e.code}]: {e.message}")
        sys.exit(1)
    finally:
        if log_store is not None:
            log_store.close()

    print("\n" + "=" * 60)
    print("YOUR GENERATED ROUTINE")
    print("=" * 60)
    print_routine(routine)

    output_folder = args.output or (config.get("output", {}) or {}).get("folder", "output")
    filepath = save_routine(routine, output_folder)

    print("\n" + "=" * 60)
    print("✓ ALL DONE!")
    print("=" * 60)
    print(f"\nRoutine saved to: {filepath}\n")
    return routine


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nExiting...")
        sys.exit(0)
    except Exception as e:
        print(f"\n❌ Unexpected error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

"""
Validation and normalization of generated routines.

The default policy repairs per-exercise defects in place and only fails when the
top-level shape is unusable. Strict mode aborts on the first invalid exercise.
"""

import json
import logging
import math
import re

from routine_generator.errors import INTERNAL, RoutineError
from routine_generator.schedule_params import DAYS_OF_WEEK


logger = logging.getLogger(__name__)

FALLBACK_NAME = "Unnamed exercise"
FALLBACK_SETS = 3
FALLBACK_REPS = "10"
FALLBACK_DESCRIPTION_INVALID = "Instructions for this exercise are currently unavailable."
FALLBACK_DESCRIPTION_EMPTY = "How to perform: Detailed instructions will be available soon."
FALLBACK_WEIGHT = "N/A"
FALLBACK_REST_SECONDS = 60

CODE_FENCE_RE = re.compile(r"^```\w*\s*\n?|\n?\s*```$")


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_nonempty_string(value):
    return isinstance(value, str) and bool(value.strip())


def parse_routine_response(text):
    """Parse raw provider text into a dict; any failure is an internal error."""
    raw = (text or "").strip()
    if raw.startswith("```"):
        raw = CODE_FENCE_RE.sub("", raw).strip()

    if not raw:
        logger.error("Received empty or whitespace-only JSON string from AI.")
        raise RoutineError(INTERNAL, "The AI's response was not in the expected JSON format. Please try again.")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse AI JSON: %s | preview=%s", exc, raw[:1000])
        raise RoutineError(
            INTERNAL,
            "The AI's response was not in the expected JSON format. Please try again.",
        ) from exc

    if not isinstance(parsed, dict):
        logger.error("AI JSON result is not an object: %s", type(parsed).__name__)
        raise RoutineError(INTERNAL, "The AI's response was not in the expected JSON format. Please try again.")
    return parsed


def validate_top_level(routine):
    """Reject routines whose name, duration or dailyWorkouts cannot be salvaged."""
    name = routine.get("name")
    duration = routine.get("durationInWeeks")
    daily = routine.get("dailyWorkouts")

    if not _is_nonempty_string(name) or not _is_number(duration) or duration <= 0 or not isinstance(daily, dict):
        logger.error(
            "Parsed routine has invalid top-level structure: name=%r duration=%r dailyWorkouts=%s",
            name,
            duration,
            type(daily).__name__,
        )
        raise RoutineError(INTERNAL, "AI generated invalid structure (name, duration, or dailyWorkouts).")


def normalize_daily_workouts(daily):
    """Return a dict with exactly the 7 lowercase weekday keys, each a list."""
    by_lower = {}
    for key, value in daily.items():
        lowered = str(key).strip().lower()
        if lowered in DAYS_OF_WEEK and lowered not in by_lower:
            by_lower[lowered] = value

    normalized = {}
    for day in DAYS_OF_WEEK:
        if day not in by_lower:
            logger.warning("Day '%s' was missing from AI response, adding as rest day.", day)
            normalized[day] = []
        elif not isinstance(by_lower[day], list):
            logger.error("Exercises for day '%s' is not an array in AI response: %r", day, by_lower[day])
            normalized[day] = []
        else:
            normalized[day] = list(by_lower[day])
    return normalized


def _exercise_defects(exercise):
    defects = []
    if not _is_nonempty_string(exercise.get("name")):
        defects.append("name")
    sets = exercise.get("sets")
    if not _is_number(sets) or sets <= 0 or sets != int(sets):
        defects.append("sets")
    if not _is_nonempty_string(exercise.get("reps")):
        defects.append("reps")
    if not isinstance(exercise.get("description"), str):
        defects.append("description")
    return defects


def repair_exercise(exercise, day, strict=False):
    """
    Return a repaired copy of one exercise.

    Invalid required fields get fallbacks; optional fields are coerced to their
    defaults. Unknown keys are preserved.
    """
    defects = _exercise_defects(exercise)
    if defects:
        logger.error("Invalid exercise structure on day '%s' (%s): %r", day, ", ".join(defects), exercise)
        if strict:
            raise RoutineError(
                INTERNAL,
                f"AI generated an invalid exercise on {day}.",
                details={"day": day, "fields": defects},
            )

    repaired = dict(exercise)

    if "name" in defects:
        repaired["name"] = FALLBACK_NAME
    else:
        repaired["name"] = exercise["name"].strip()

    if "sets" in defects:
        repaired["sets"] = FALLBACK_SETS
    else:
        repaired["sets"] = int(exercise["sets"])

    if "reps" in defects:
        reps = exercise.get("reps")
        repaired["reps"] = str(reps) if _is_number(reps) and reps > 0 else FALLBACK_REPS
    else:
        repaired["reps"] = exercise["reps"].strip()

    description = exercise.get("description")
    if not isinstance(description, str):
        description = FALLBACK_DESCRIPTION_INVALID
    description = description.strip()
    repaired["description"] = description or FALLBACK_DESCRIPTION_EMPTY

    weight = exercise.get("weightSuggestionKg")
    repaired["weightSuggestionKg"] = weight.strip() if _is_nonempty_string(weight) else FALLBACK_WEIGHT

    rest = exercise.get("restBetweenSetsSeconds")
    repaired["restBetweenSetsSeconds"] = rest if _is_number(rest) and rest >= 0 else FALLBACK_REST_SECONDS

    uses_weight = exercise.get("usesWeight")
    repaired["usesWeight"] = uses_weight if isinstance(uses_weight, bool) else True
    is_timed = exercise.get("isTimed")
    repaired["isTimed"] = is_timed if isinstance(is_timed, bool) else False

    target = exercise.get("targetDurationSeconds")
    if repaired["isTimed"] and _is_number(target) and target > 0:
        repaired["targetDurationSeconds"] = target
    else:
        repaired.pop("targetDurationSeconds", None)

    return repaired


def reconcile_schedule(daily, schedule):
    """
    Compare the days that received workouts with what was requested.

    Observational only: the result is logged and returned, the routine is untouched.
    """
    generated_days = [day for day in DAYS_OF_WEEK if daily.get(day)]
    schedule = schedule or {}
    expected_count = schedule.get("workout_days_count", 0)
    expected_days = list(schedule.get("specified_days") or [])

    if schedule.get("use_specified_days") and expected_days:
        if len(generated_days) != expected_count:
            status = "count_mismatch"
            logger.warning(
                "AI Discrepancy: expected %d specific workout days, got %d. Requested: %s, generated: %s.",
                expected_count,
                len(generated_days),
                ", ".join(expected_days),
                ", ".join(generated_days),
            )
        elif set(generated_days) != set(expected_days):
            status = "day_mismatch"
            logger.warning(
                "AI Discrepancy: generated %d workout days, but not the exact days requested. Requested: %s, generated: %s.",
                len(generated_days),
                ", ".join(expected_days),
                ", ".join(generated_days),
            )
        else:
            status = "match"
            logger.info("AI Adherence: workouts generated on the requested days: %s.", ", ".join(generated_days))
    elif not generated_days and expected_count > 0:
        status = "no_workout_days"
        logger.warning("AI generated a routine with no workout days, though %d were requested.", expected_count)
    else:
        status = "ok"
        logger.info(
            "AI generated %d workout days (requested around %d).",
            len(generated_days),
            expected_count,
        )

    return {
        "status": status,
        "generated_days": generated_days,
        "expected_days": expected_days,
        "expected_count": expected_count,
    }


def normalize_routine(routine, schedule=None, strict=False):
    """
    Validate and normalize a parsed routine.

    Returns:
        New dict with name, durationInWeeks and dailyWorkouts (all 7 days).
    """
    validate_top_level(routine)
    daily = normalize_daily_workouts(routine["dailyWorkouts"])

    for day in DAYS_OF_WEEK:
        repaired = []
        for exercise in daily[day]:
            if not isinstance(exercise, dict):
                logger.error("Dropping non-object exercise entry on day '%s': %r", day, exercise)
                if strict:
                    raise RoutineError(
                        INTERNAL,
                        f"AI generated an invalid exercise on {day}.",
                        details={"day": day},
                    )
                continue
            repaired.append(repair_exercise(exercise, day, strict=strict))
        daily[day] = repaired

    if schedule is not None:
        reconciliation = reconcile_schedule(daily, schedule)
        if strict and reconciliation["status"] in ("count_mismatch", "day_mismatch", "no_workout_days"):
            raise RoutineError(
                INTERNAL,
                "AI generated a schedule that does not match the requested workout days.",
                details=reconciliation,
            )

    return {
        "name": routine["name"].strip(),
        "durationInWeeks": routine["durationInWeeks"],
        "dailyWorkouts": daily,
    }

"""
Per-exercise performance summaries derived from logged sessions of a previous routine.
"""

import logging
import math
import re
from datetime import datetime, timedelta, timezone


logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 14
DEFAULT_MAX_RECORDS = 30

LEADING_INT_RE = re.compile(r"^\s*(\d+)")
LOAD_RE = re.compile(r"(\d+(?:\.\d+)?)")
NON_LOAD_LABELS = {"n/a", "na", "bodyweight", "body weight", "bw"}


def _parse_reps(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value <= 0:
            return None
        return int(value) or None
    match = LEADING_INT_RE.match(str(value))
    reps = int(match.group(1)) if match else 0
    return reps if reps > 0 else None


def _parse_weight(value):
    """Extract a positive kg load; bodyweight and N/A entries are not loads."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        load = float(value)
    else:
        text = str(value).strip()
        if not text or text.lower() in NON_LOAD_LABELS:
            return None
        match = LOAD_RE.search(text)
        if not match:
            return None
        load = float(match.group(1))
    return load if load > 0 else None


def parse_timestamp(value):
    """
    Parse an expiry/generation timestamp into a naive UTC datetime.

    Accepts datetimes, ISO-8601 strings (trailing 'Z' allowed), epoch seconds
    and epoch milliseconds. Returns None when the value is unusable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000.0 if abs(value) > 1e11 else float(value)
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _exercise_key(exercise):
    exercise_id = str(exercise.get("exercise_id") or "").strip()
    if exercise_id:
        return exercise_id
    return str(exercise.get("exercise_name") or "").strip()


def summarize_sessions(sessions):
    """
    Reduce logged sessions (newest first) into per-exercise statistics.

    Returns:
        Dict[str, dict] keyed by exercise id (or name) with keys:
            exerciseName, averageReps, maxWeightLiftedKg, completionRate,
            targetReps, targetWeight, repsPerformed, weightsLiftedKg,
            sessions, completedSessions
    """
    accumulated = {}
    for session in sessions or []:
        for exercise in session.get("exercises", []):
            key = _exercise_key(exercise)
            if not key:
                continue

            entry = accumulated.get(key)
            if entry is None:
                entry = {
                    "exerciseName": str(exercise.get("exercise_name") or key).strip(),
                    "targetReps": exercise.get("target_reps"),
                    "targetWeight": exercise.get("target_weight"),
                    "repsPerformed": [],
                    "weightsLiftedKg": [],
                    "sessions": 0,
                    "completedSessions": 0,
                }
                accumulated[key] = entry

            entry["sessions"] += 1
            if exercise.get("completed"):
                entry["completedSessions"] += 1

            for performed in exercise.get("sets", []):
                reps = _parse_reps(performed.get("reps"))
                if reps is not None:
                    entry["repsPerformed"].append(reps)
                weight = _parse_weight(performed.get("weight"))
                if weight is not None:
                    entry["weightsLiftedKg"].append(weight)

    summary = {}
    for key, entry in accumulated.items():
        reps = entry["repsPerformed"]
        weights = entry["weightsLiftedKg"]
        sessions_count = entry["sessions"]
        summary[key] = {
            "exerciseName": entry["exerciseName"],
            "averageReps": round(sum(reps) / len(reps), 1) if reps else None,
            "maxWeightLiftedKg": max(weights) if weights else None,
            "completionRate": (
                round(entry["completedSessions"] / sessions_count * 100) if sessions_count else None
            ),
            "targetReps": entry["targetReps"],
            "targetWeight": entry["targetWeight"],
            "repsPerformed": reps,
            "weightsLiftedKg": weights,
            "sessions": sessions_count,
            "completedSessions": entry["completedSessions"],
        }
    return summary


def build_performance_summary(
    log_store,
    user_id,
    routine_id,
    expires_at=None,
    lookback_days=DEFAULT_LOOKBACK_DAYS,
    max_records=DEFAULT_MAX_RECORDS,
):
    """
    Query the log store for a previous routine and summarize it.

    Store failures are logged and degrade to an empty summary.
    """
    if not routine_id or log_store is None:
        return {}

    since = until = None
    expiry = parse_timestamp(expires_at)
    if expiry is not None:
        until = expiry
        since = expiry - timedelta(days=lookback_days)
    elif expires_at is not None:
        logger.warning("Unparseable routine expiry %r; querying logs without a time window.", expires_at)

    try:
        sessions = log_store.fetch_recent_sessions(
            user_id,
            routine_id,
            since=since,
            until=until,
            limit=max_records,
        )
    except Exception as exc:
        logger.error(
            "Failed to fetch workout logs for user %s, routine %s: %s. Continuing without performance data.",
            user_id,
            routine_id,
            exc,
        )
        return {}

    summary = summarize_sessions(sessions)
    logger.info(
        "Built performance summary for routine %s from %d session(s): %d exercise(s).",
        routine_id,
        len(sessions),
        len(summary),
    )
    return summary

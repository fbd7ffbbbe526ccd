"""
Resolve how many workout days to request and whether specific weekdays are mandatory.
"""

import logging
import re


logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
DEFAULT_WORKOUT_DAYS = 3

LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def _parse_positive_int(value):
    match = LEADING_INT_RE.match(str(value or ""))
    if not match:
        return None
    number = int(match.group(1))
    return number if number > 0 else None


def _clamp(value, low=1, high=7):
    return max(low, min(high, value))


def parse_frequency(frequency):
    """
    Parse "N" or "N-M" into (min_freq, max_freq).

    Non-numeric or zero parts count as 1 so a schedule never ends up with zero days.
    Returns None when no frequency was given at all.
    """
    if frequency is None:
        return None
    text = str(frequency).strip()
    if not text:
        return None

    parts = text.split("-", 1)
    min_freq = _parse_positive_int(parts[0]) or 1
    if len(parts) > 1:
        max_freq = _parse_positive_int(parts[1]) or min_freq
    else:
        max_freq = min_freq
    if max_freq < min_freq:
        max_freq = min_freq
    return min_freq, max_freq


def normalize_weekdays(days):
    """Lower-case, de-duplicate and order weekday names; unknown names are dropped."""
    if not days:
        return []
    if isinstance(days, str):
        days = [days]

    wanted = set()
    for day in days:
        name = str(day or "").strip().lower()
        if name in DAYS_OF_WEEK:
            wanted.add(name)
        elif name:
            logger.warning("Ignoring unknown weekday '%s' in workout_days.", day)
    return [day for day in DAYS_OF_WEEK if day in wanted]


def resolve_schedule_parameters(frequency=None, workout_days=None):
    """
    Derive the scheduling parameters for one request.

    Returns:
        dict with keys:
            workout_days_count: int in [1, 7]
            use_specified_days: True when the listed days are mandatory
            specified_days: mandated days (empty unless use_specified_days)
            preferred_days: soft preference days (empty when mandated or absent)
            frequency: (min_freq, max_freq) or None
    """
    days = normalize_weekdays(workout_days)
    freq_range = parse_frequency(frequency)
    use_specified_days = False

    if freq_range:
        min_freq, max_freq = freq_range
        if days and min_freq <= len(days) <= max_freq:
            count = len(days)
            use_specified_days = True
            logger.info(
                "User selected %d specific days, which fits frequency %s. Requesting exactly: %s.",
                count,
                frequency,
                ", ".join(days),
            )
        elif days:
            count = min(max_freq, 7)
            logger.info(
                "User selected %d specific days, but frequency is %s. Requesting %d days, preferring: %s.",
                len(days),
                frequency,
                count,
                ", ".join(days),
            )
        else:
            count = min(max_freq, 7)
            logger.info("No specific days selected. Using max of frequency %s: %d days.", frequency, count)
    elif days:
        count = len(days)
        use_specified_days = True
        logger.warning("Frequency not specified. Using the %d selected days.", count)
    else:
        count = DEFAULT_WORKOUT_DAYS
        logger.warning("Frequency not specified. Defaulting to %d workout days.", count)

    return {
        "workout_days_count": _clamp(count),
        "use_specified_days": use_specified_days,
        "specified_days": list(days) if use_specified_days else [],
        "preferred_days": [] if use_specified_days else list(days),
        "frequency": freq_range,
    }

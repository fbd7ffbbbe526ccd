"""
Fixed weekly muscle-split templates keyed by the number of training days.
"""

import copy


SPLIT_EXPERIENCE_LEVELS = {"intermediate", "advanced", "expert"}

MUSCLE_SPLITS = {
    2: [
        {
            "name": "Upper Body",
            "target_muscles": ["chest", "back", "shoulders", "biceps", "triceps"],
            "theme": "Compound upper-body pushing and pulling",
        },
        {
            "name": "Lower Body & Core",
            "target_muscles": ["quadriceps", "hamstrings", "glutes", "calves", "core"],
            "theme": "Squat and hinge patterns with trunk stability",
        },
    ],
    3: [
        {
            "name": "Push",
            "target_muscles": ["chest", "shoulders", "triceps"],
            "theme": "Horizontal and vertical pressing",
        },
        {
            "name": "Pull",
            "target_muscles": ["back", "rear delts", "biceps"],
            "theme": "Rows, pulldowns and elbow flexion",
        },
        {
            "name": "Legs",
            "target_muscles": ["quadriceps", "hamstrings", "glutes", "calves"],
            "theme": "Squat, hinge and single-leg work",
        },
    ],
    4: [
        {
            "name": "Chest & Triceps",
            "target_muscles": ["chest", "triceps"],
            "theme": "Pressing strength and triceps volume",
        },
        {
            "name": "Back & Biceps",
            "target_muscles": ["back", "biceps", "rear delts"],
            "theme": "Vertical and horizontal pulling",
        },
        {
            "name": "Legs",
            "target_muscles": ["quadriceps", "hamstrings", "glutes", "calves"],
            "theme": "Lower-body strength",
        },
        {
            "name": "Shoulders & Core",
            "target_muscles": ["shoulders", "core"],
            "theme": "Overhead work, lateral delts and anti-rotation",
        },
    ],
    5: [
        {
            "name": "Chest",
            "target_muscles": ["chest"],
            "theme": "Flat, incline and fly variations",
        },
        {
            "name": "Back",
            "target_muscles": ["lats", "upper back", "lower back"],
            "theme": "Width and thickness",
        },
        {
            "name": "Legs",
            "target_muscles": ["quadriceps", "hamstrings", "glutes", "calves"],
            "theme": "Heavy compound leg work",
        },
        {
            "name": "Shoulders",
            "target_muscles": ["front delts", "side delts", "rear delts", "traps"],
            "theme": "Overhead pressing and raises",
        },
        {
            "name": "Arms & Core",
            "target_muscles": ["biceps", "triceps", "forearms", "core"],
            "theme": "Isolation volume and trunk work",
        },
    ],
}


def select_muscle_split(days_count, experience=None):
    """
    Pick the split template for a resolved day count and experience level.

    Five or more days only get the 5-theme split for trained lifters; everyone
    else stays on the 4-theme split.
    """
    level = (experience or "").strip().lower()

    if days_count <= 2:
        themes = 2
    elif days_count == 3:
        themes = 3
    elif days_count == 4:
        themes = 4
    elif level in SPLIT_EXPERIENCE_LEVELS:
        themes = 5
    else:
        themes = 4

    return {"themes": themes, "days": copy.deepcopy(MUSCLE_SPLITS[themes])}


def format_split_for_prompt(split, workout_days_count):
    """Render the split as day-by-day theme assignments, cycling when days exceed themes."""
    if not split or not split.get("days"):
        return []

    lines = [f"Use this {split['themes']}-theme muscle split across the {workout_days_count} workout days, in order:"]
    days = split["days"]
    for index in range(workout_days_count):
        day = days[index % len(days)]
        muscles = ", ".join(day["target_muscles"])
        lines.append(f"  - Workout day {index + 1}: {day['name']} ({muscles}) - {day['theme']}")
    return lines

"""
Prompt construction for AI routine generation.

The composer is pure: it turns the onboarding profile, the resolved schedule and
optional history into one prompt string. No I/O happens here.
"""

import json

from routine_generator.muscle_splits import format_split_for_prompt


DEFAULT_EXERCISE_COUNT = "Include 4-6 exercises per workout day."

EXERCISE_COUNT_BY_DURATION = {
    "15-30": "Include 3-4 exercises per workout day (short sessions, minimal rest).",
    "30-45": "Include 4-5 exercises per workout day.",
    "45-60": "Include 5-6 exercises per workout day.",
    "60-90": "Include 6-8 exercises per workout day.",
    "90+": "Include 7-9 exercises per workout day.",
}

EXAMPLE_ROUTINE = {
    "name": "Foundational Strength Builder",
    "durationInWeeks": 6,
    "dailyWorkouts": {
        "monday": [
            {
                "name": "Dumbbell Goblet Squat",
                "sets": 3,
                "reps": "8-12",
                "weightSuggestionKg": "Moderate",
                "restBetweenSetsSeconds": 90,
                "description": (
                    "1. Hold one dumbbell upright against your chest.\n"
                    "2. Stand with feet slightly wider than hips.\n"
                    "3. Sit your hips down between your heels, keeping your chest tall.\n"
                    "4. Drive through the whole foot to stand back up."
                ),
                "usesWeight": True,
                "isTimed": False,
            },
            {
                "name": "Incline Push-up",
                "sets": 3,
                "reps": "AMRAP",
                "weightSuggestionKg": "Bodyweight",
                "restBetweenSetsSeconds": 60,
                "description": (
                    "- Hands on a bench, slightly wider than shoulders.\n"
                    "- Keep a straight line from head to heels.\n"
                    "- Lower your chest to the bench edge, then press away."
                ),
                "usesWeight": False,
                "isTimed": False,
            },
        ],
        "tuesday": [],
        "wednesday": [
            {
                "name": "Romanian Deadlift",
                "sets": 3,
                "reps": "10",
                "weightSuggestionKg": "40",
                "restBetweenSetsSeconds": 90,
                "description": (
                    "1. Hold the bar at hip height with soft knees.\n"
                    "2. Push your hips back and slide the bar down your thighs.\n"
                    "3. Stop when you feel a hamstring stretch, back flat.\n"
                    "4. Squeeze your glutes to return to standing."
                ),
                "usesWeight": True,
                "isTimed": False,
            },
            {
                "name": "Side Plank",
                "sets": 2,
                "reps": "Hold each side",
                "weightSuggestionKg": "N/A",
                "restBetweenSetsSeconds": 45,
                "description": (
                    "1. Lie on your side with the elbow under the shoulder.\n"
                    "2. Lift your hips until your body forms a straight line.\n"
                    "3. Hold without letting the hips sag, then switch sides."
                ),
                "usesWeight": False,
                "isTimed": True,
                "targetDurationSeconds": 30,
            },
        ],
        "thursday": [],
        "friday": [
            {
                "name": "Seated Cable Row",
                "sets": 4,
                "reps": "10-12",
                "weightSuggestionKg": "Moderate",
                "restBetweenSetsSeconds": 75,
                "description": (
                    "1. Sit tall with a slight bend in the knees.\n"
                    "2. Pull the handle to your lower ribs, squeezing the shoulder blades.\n"
                    "3. Return slowly until the arms are straight."
                ),
                "usesWeight": True,
                "isTimed": False,
            }
        ],
        "saturday": [],
        "sunday": [],
    },
}


def _join(values):
    if isinstance(values, str):
        values = [values]
    return ", ".join(str(v) for v in values)


def _profile_section(onboarding, schedule):
    lines = [
        "\n--- User Profile & Preferences ---",
        f"- Primary Fitness Goal: {onboarding.get('goal') or 'Not specified'}",
        f"- Gender: {onboarding.get('gender') or 'Not specified'}",
        f"- Experience Level: {onboarding.get('experience') or 'Beginner'}",
    ]

    count = schedule["workout_days_count"]
    if schedule["use_specified_days"] and schedule["specified_days"]:
        lines.append(
            f"- CRITICAL: User wants to train on THESE EXACT {count} DAYS: {_join(schedule['specified_days'])}. "
            "You MUST schedule workouts for all these specified days. Other days must be rest days."
        )
    else:
        lines.append(f"- Desired Training Days Per Week: {count} days.")
        if schedule["preferred_days"]:
            lines.append(
                f"- Preferred Workout Days (select {count} from this list if possible, "
                f"otherwise choose suitable days): {_join(schedule['preferred_days'])}"
            )
    return lines


def _exercise_count_line(onboarding, table):
    duration = str(onboarding.get("session_duration") or "").strip()
    instruction = table.get(duration, DEFAULT_EXERCISE_COUNT)
    if duration and duration in table:
        return [f"- Session Length: {duration} minutes. {instruction}"]
    return [f"- Session Length: not specified. {instruction}"]


def _equipment_and_focus_section(onboarding):
    lines = []
    equipment = onboarding.get("equipment") or []
    if equipment:
        lines.append(f"- Available Equipment: {_join(equipment)}")
    else:
        lines.append("- Available Equipment: Bodyweight only")

    focus_areas = onboarding.get("focus_areas") or []
    if focus_areas:
        lines.append(f"- Specific Body Part Focus: {_join(focus_areas)}")
    return lines


def _physical_stats_section(onboarding):
    stats = onboarding.get("physical_stats")
    if not isinstance(stats, dict) or not stats:
        return []

    lines = ["- Physical Statistics:"]
    if stats.get("age") is not None:
        lines.append(f"  - Age: {stats['age']} years")
    if stats.get("weight_kg") is not None:
        lines.append(f"  - Current Weight: {stats['weight_kg']} kg")
    if stats.get("height_m") is not None:
        lines.append(f"  - Height: {stats['height_m']} meters")
    if stats.get("target_weight_kg") is not None:
        lines.append(f"  - Target Weight: {stats['target_weight_kg']} kg")
    return lines if len(lines) > 1 else []


def _format_performance_line(entry):
    parts = [entry["exerciseName"]]
    targets = []
    if entry.get("targetReps"):
        targets.append(f"{entry['targetReps']} reps")
    if entry.get("targetWeight"):
        targets.append(f"@ {entry['targetWeight']} kg")
    if targets:
        parts.append(f"target {' '.join(targets)}")
    if entry.get("averageReps") is not None:
        parts.append(f"avg {entry['averageReps']} reps")
    if entry.get("maxWeightLiftedKg") is not None:
        parts.append(f"max {entry['maxWeightLiftedKg']:g} kg")
    if entry.get("completionRate") is not None:
        parts.append(f"completed {entry['completionRate']}% of {entry['sessions']} session(s)")
    return "  - " + " | ".join(parts)


def _previous_routine_section(previous_routine, performance_summary, use_performance):
    previous_routine = previous_routine or {}
    has_reference = bool(previous_routine.get("name") or previous_routine.get("id"))
    has_summary = use_performance and bool(performance_summary)
    if not has_reference and not has_summary:
        return []

    lines = ["\n--- Previous Routine Context ---"]
    if previous_routine.get("name"):
        lines.append(f"- Previous Plan Name: {previous_routine['name']}")
    if previous_routine.get("durationInWeeks") is not None:
        lines.append(f"- Previous Plan Duration: {previous_routine['durationInWeeks']} weeks")

    if has_summary:
        lines.append("- Logged performance on the previous plan (most recent sessions):")
        for entry in performance_summary.values():
            lines.append(_format_performance_line(entry))
        lines.append(
            "- Progression rules: where completion is 90% or higher and average reps reached the "
            "target, increase load slightly (about 2.5-5%) or add one rep per set. Where completion "
            "is below 70%, keep or reduce the load. Keep exercises the user performed well unless "
            "variation is needed, and swap exercises that were rarely completed."
        )
    else:
        lines.append("Ensure the new routine offers appropriate progression or variation.")
    return lines


def _muscle_split_section(muscle_split, schedule):
    lines = format_split_for_prompt(muscle_split, schedule["workout_days_count"])
    if not lines:
        return []
    return ["\n--- Muscle Split ---"] + lines


def _output_format_section():
    return [
        "\n--- Output Structure & Instructions ---",
        "1. Generate 'name' (string) for the routine.",
        "2. Generate 'durationInWeeks' (number, typically 4-8 weeks).",
        "3. Provide a 'dailyWorkouts' object containing keys for ALL 7 days of the week "
        "(\"monday\" through \"sunday\"), in lowercase.",
        "   - Workout days MUST have an array of exercise objects.",
        "   - ALL other days (rest days) MUST have an empty array [].",
        "4. Each exercise object MUST have:",
        "   - \"name\": string (clear and concise exercise name)",
        "   - \"sets\": number (positive integer)",
        "   - \"reps\": string (e.g., \"8-12\", \"AMRAP\", \"To Failure\", \"30s\")",
        "   - \"description\": string (step-by-step instructions on HOW TO PERFORM the exercise. "
        "Use a numbered list ('1. ...\\n2. ...') or bullets prefixed with '-'. Put each step on a new "
        "line using '\\n'. Cover key form points, common mistakes and muscle engagement.)",
        "5. Include these exercise properties:",
        "   - \"weightSuggestionKg\": string (e.g., \"60\", \"Bodyweight\", \"Light\", \"Moderate\", \"Heavy\", \"N/A\")",
        "   - \"restBetweenSetsSeconds\": number (e.g., 45, 60, 90, 120)",
        "   - \"usesWeight\": boolean (true if external weight is used or can be added; false for "
        "pure bodyweight, most cardio and timed holds)",
        "   - \"isTimed\": boolean (true if the set is performed for a duration, e.g. plank or intervals)",
        "   - \"targetDurationSeconds\": number (ONLY when isTimed is true and there is a specific "
        "target in seconds; omit it otherwise)",
    ]


def compose_prompt(
    onboarding,
    schedule,
    previous_routine=None,
    performance_summary=None,
    muscle_split=None,
    options=None,
):
    """
    Build the full generation prompt.

    Args:
        onboarding: onboarding profile dict (snake_case keys)
        schedule: output of resolve_schedule_parameters
        previous_routine: previousRoutineData dict or None
        performance_summary: output of build_performance_summary or None
        muscle_split: output of select_muscle_split or None
        options: feature flags: muscle_split, performance_progression,
            exercise_count_table

    Returns:
        Prompt text
    """
    options = options or {}
    table = options.get("exercise_count_table") or EXERCISE_COUNT_BY_DURATION
    use_split = options.get("muscle_split", True)
    use_performance = options.get("performance_progression", True)

    sections = [
        "You are an expert fitness coach AI. Your task is to generate a personalized weekly "
        "workout routine from the user's profile and preferences. Your entire output MUST be a "
        "single, valid JSON object conforming to the structure below. Do not include explanatory "
        "text, markdown formatting or anything outside the JSON object."
    ]
    sections.extend(_profile_section(onboarding, schedule))
    sections.extend(_exercise_count_line(onboarding, table))
    sections.extend(_equipment_and_focus_section(onboarding))
    sections.extend(_physical_stats_section(onboarding))
    sections.extend(_previous_routine_section(previous_routine, performance_summary, use_performance))
    if use_split:
        sections.extend(_muscle_split_section(muscle_split, schedule))
    sections.extend(_output_format_section())
    sections.append("\n--- JSON Structure Example (Your output MUST follow this format PRECISELY) ---")
    sections.append(json.dumps(EXAMPLE_ROUTINE, indent=2))
    sections.append(
        "\nIMPORTANT: Your entire response MUST be only the JSON object. No other text, apologies "
        "or explanations. Use '\\n' between steps in each exercise 'description'."
    )
    return "\n".join(sections)

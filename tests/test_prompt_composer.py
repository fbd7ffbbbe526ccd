import json
import unittest

from routine_generator.muscle_splits import select_muscle_split
from routine_generator.prompt_composer import (
    DEFAULT_EXERCISE_COUNT,
    EXAMPLE_ROUTINE,
    EXERCISE_COUNT_BY_DURATION,
    compose_prompt,
)
from routine_generator.routine_validator import normalize_routine
from routine_generator.schedule_params import resolve_schedule_parameters


ONBOARDING = {
    "goal": "Build muscle",
    "gender": "male",
    "experience": "intermediate",
    "frequency": "3-5",
    "workout_days": ["monday", "wednesday", "friday"],
    "equipment": ["dumbbells", "bench"],
    "focus_areas": ["chest"],
    "session_duration": "45-60",
    "physical_stats": {"age": 30, "weight_kg": 80, "height_m": 1.8},
}

PERFORMANCE = {
    "Bench Press": {
        "exerciseName": "Bench Press",
        "averageReps": 9.0,
        "maxWeightLiftedKg": 40.0,
        "completionRate": 100,
        "targetReps": "8-10",
        "targetWeight": "40",
        "repsPerformed": [8, 10],
        "weightsLiftedKg": [40.0],
        "sessions": 2,
        "completedSessions": 2,
    }
}


class PromptComposerTests(unittest.TestCase):
    def setUp(self):
        self.schedule = resolve_schedule_parameters(ONBOARDING["frequency"], ONBOARDING["workout_days"])

    def test_mandated_days_and_profile_facts(self):
        prompt = compose_prompt(ONBOARDING, self.schedule)
        self.assertIn("THESE EXACT 3 DAYS: monday, wednesday, friday", prompt)
        self.assertIn("- Primary Fitness Goal: Build muscle", prompt)
        self.assertIn("- Available Equipment: dumbbells, bench", prompt)
        self.assertIn("- Specific Body Part Focus: chest", prompt)
        self.assertIn("  - Height: 1.8 meters", prompt)
        self.assertNotIn("Target Weight", prompt)
        self.assertIn(EXERCISE_COUNT_BY_DURATION["45-60"], prompt)

    def test_single_string_equipment_and_focus_are_not_split_into_letters(self):
        onboarding = dict(ONBOARDING, equipment="dumbbells", focus_areas="glutes")
        prompt = compose_prompt(onboarding, self.schedule)
        self.assertIn("- Available Equipment: dumbbells\n", prompt)
        self.assertIn("- Specific Body Part Focus: glutes", prompt)
        self.assertNotIn("d, u, m", prompt)

    def test_preferred_days_when_not_mandated(self):
        schedule = resolve_schedule_parameters("3-5", ["monday"])
        prompt = compose_prompt({"goal": "Lose fat"}, schedule)
        self.assertIn("- Desired Training Days Per Week: 5 days.", prompt)
        self.assertIn("select 5 from this list if possible", prompt)
        self.assertIn("- Available Equipment: Bodyweight only", prompt)
        self.assertIn("- Experience Level: Beginner", prompt)
        self.assertIn(DEFAULT_EXERCISE_COUNT, prompt)

    def test_performance_summary_drives_progression_section(self):
        prompt = compose_prompt(
            ONBOARDING,
            self.schedule,
            previous_routine={"id": "r1", "name": "Phase 1", "durationInWeeks": 4},
            performance_summary=PERFORMANCE,
        )
        self.assertIn("- Previous Plan Name: Phase 1", prompt)
        self.assertIn("Bench Press | target 8-10 reps @ 40 kg | avg 9.0 reps | max 40 kg", prompt)
        self.assertIn("Progression rules", prompt)
        self.assertNotIn("appropriate progression or variation", prompt)

    def test_generic_progression_note_without_summary(self):
        prompt = compose_prompt(ONBOARDING, self.schedule, previous_routine={"name": "Phase 1"}, performance_summary={})
        self.assertIn("Ensure the new routine offers appropriate progression or variation.", prompt)

    def test_performance_flag_off_falls_back_to_generic_note(self):
        prompt = compose_prompt(
            ONBOARDING,
            self.schedule,
            previous_routine={"name": "Phase 1"},
            performance_summary=PERFORMANCE,
            options={"performance_progression": False},
        )
        self.assertNotIn("Bench Press |", prompt)
        self.assertIn("appropriate progression or variation", prompt)

    def test_no_previous_routine_section_without_reference(self):
        prompt = compose_prompt(ONBOARDING, self.schedule)
        self.assertNotIn("Previous Routine Context", prompt)

    def test_muscle_split_flag(self):
        split = select_muscle_split(3, "intermediate")
        with_split = compose_prompt(ONBOARDING, self.schedule, muscle_split=split)
        without_split = compose_prompt(ONBOARDING, self.schedule, muscle_split=split, options={"muscle_split": False})
        self.assertIn("Workout day 1: Push", with_split)
        self.assertNotIn("Muscle Split", without_split)

    def test_custom_exercise_count_table(self):
        prompt = compose_prompt(
            ONBOARDING,
            self.schedule,
            options={"exercise_count_table": {"45-60": "Exactly five exercises."}},
        )
        self.assertIn("Exactly five exercises.", prompt)

    def test_example_routine_is_valid_and_already_normalized(self):
        prompt = compose_prompt(ONBOARDING, self.schedule)
        self.assertIn(json.dumps(EXAMPLE_ROUTINE, indent=2), prompt)
        self.assertEqual(normalize_routine(EXAMPLE_ROUTINE), EXAMPLE_ROUTINE)


if __name__ == "__main__":
    unittest.main()

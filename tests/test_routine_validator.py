import copy
import json
import unittest

from routine_generator.errors import INTERNAL, RoutineError
from routine_generator.routine_validator import (
    FALLBACK_DESCRIPTION_EMPTY,
    FALLBACK_DESCRIPTION_INVALID,
    normalize_daily_workouts,
    normalize_routine,
    parse_routine_response,
    reconcile_schedule,
    repair_exercise,
)
from routine_generator.schedule_params import DAYS_OF_WEEK, resolve_schedule_parameters


def _exercise(**overrides):
    exercise = {
        "name": "Squat",
        "sets": 3,
        "reps": "10",
        "weightSuggestionKg": "60",
        "restBetweenSetsSeconds": 90,
        "description": "1. Brace.\n2. Sit down.\n3. Stand up.",
        "usesWeight": True,
        "isTimed": False,
    }
    exercise.update(overrides)
    return exercise


def _routine(daily):
    return {"name": "Strength Block", "durationInWeeks": 4, "dailyWorkouts": daily}


class ParseRoutineResponseTests(unittest.TestCase):
    def test_empty_and_invalid_json_are_internal_errors(self):
        for text in ["", "   ", "not json", "[1, 2]"]:
            with self.assertRaises(RoutineError) as ctx:
                parse_routine_response(text)
            self.assertEqual(ctx.exception.code, INTERNAL)

    def test_strips_markdown_fence(self):
        parsed = parse_routine_response('```json\n{"name": "A"}\n```')
        self.assertEqual(parsed, {"name": "A"})


class NormalizeRoutineTests(unittest.TestCase):
    def test_missing_sunday_is_added_as_rest_day(self):
        daily = {day: [] for day in DAYS_OF_WEEK if day != "sunday"}
        daily["monday"] = [_exercise()]
        routine = normalize_routine(_routine(daily))
        self.assertEqual(routine["dailyWorkouts"]["sunday"], [])
        self.assertEqual(routine["dailyWorkouts"]["monday"][0]["name"], "Squat")
        self.assertEqual(list(routine["dailyWorkouts"].keys()), DAYS_OF_WEEK)

    def test_day_keys_match_case_insensitively_and_non_lists_become_empty(self):
        daily = normalize_daily_workouts({"Monday": [_exercise()], "TUESDAY": "rest", "funday": [_exercise()]})
        self.assertEqual(len(daily["monday"]), 1)
        self.assertEqual(daily["tuesday"], [])
        self.assertNotIn("funday", daily)

    def test_wrong_description_type_gets_fallback(self):
        daily = {"monday": [{"name": "Squat", "sets": 3, "reps": "10", "description": 123}]}
        routine = normalize_routine(_routine(daily))
        exercise = routine["dailyWorkouts"]["monday"][0]
        self.assertEqual(exercise["description"], FALLBACK_DESCRIPTION_INVALID)
        self.assertEqual(exercise["name"], "Squat")
        self.assertEqual(exercise["sets"], 3)
        self.assertEqual(exercise["reps"], "10")

    def test_negative_duration_fails_without_partial_result(self):
        with self.assertRaises(RoutineError) as ctx:
            normalize_routine({"name": "Plan", "durationInWeeks": -1, "dailyWorkouts": {}})
        self.assertEqual(ctx.exception.code, INTERNAL)

    def test_top_level_shape_violations(self):
        bad_routines = [
            {"name": "", "durationInWeeks": 4, "dailyWorkouts": {}},
            {"name": "Plan", "durationInWeeks": "4", "dailyWorkouts": {}},
            {"name": "Plan", "durationInWeeks": True, "dailyWorkouts": {}},
            {"name": "Plan", "durationInWeeks": 4, "dailyWorkouts": None},
        ]
        for routine in bad_routines:
            with self.assertRaises(RoutineError):
                normalize_routine(routine)

    def test_optional_fields_are_coerced_to_defaults(self):
        exercise = repair_exercise(
            {
                "name": " Plank ",
                "sets": 3.0,
                "reps": "Hold",
                "description": "   ",
                "weightSuggestionKg": 20,
                "restBetweenSetsSeconds": -5,
                "usesWeight": "no",
                "isTimed": "yes",
                "targetDurationSeconds": 45,
            },
            "monday",
        )
        self.assertEqual(exercise["name"], "Plank")
        self.assertEqual(exercise["sets"], 3)
        self.assertEqual(exercise["description"], FALLBACK_DESCRIPTION_EMPTY)
        self.assertEqual(exercise["weightSuggestionKg"], "N/A")
        self.assertEqual(exercise["restBetweenSetsSeconds"], 60)
        self.assertTrue(exercise["usesWeight"])
        self.assertFalse(exercise["isTimed"])
        self.assertNotIn("targetDurationSeconds", exercise)

    def test_timed_exercise_keeps_only_positive_duration(self):
        kept = repair_exercise(_exercise(isTimed=True, targetDurationSeconds=60), "monday")
        self.assertEqual(kept["targetDurationSeconds"], 60)
        dropped = repair_exercise(_exercise(isTimed=True, targetDurationSeconds=0), "monday")
        self.assertNotIn("targetDurationSeconds", dropped)

    def test_invalid_required_fields_get_fallbacks(self):
        exercise = repair_exercise({"sets": 0, "reps": 12, "description": "Go."}, "friday")
        self.assertEqual(exercise["name"], "Unnamed exercise")
        self.assertEqual(exercise["sets"], 3)
        self.assertEqual(exercise["reps"], "12")

    def test_non_object_exercises_are_dropped(self):
        routine = normalize_routine(_routine({"monday": ["Squat", _exercise()]}))
        self.assertEqual(len(routine["dailyWorkouts"]["monday"]), 1)

    def test_renormalizing_is_idempotent(self):
        daily = {
            "Monday": [_exercise(description="  Brace and squat.  "), _exercise(name="Plank", isTimed=True, targetDurationSeconds=30)],
            "wednesday": [{"name": "Row", "sets": 4, "reps": "8", "description": 5}],
        }
        once = normalize_routine(_routine(daily))
        twice = normalize_routine(copy.deepcopy(once))
        self.assertEqual(json.dumps(once, sort_keys=True), json.dumps(twice, sort_keys=True))

    def test_input_routine_is_not_mutated(self):
        original = _routine({"monday": [_exercise(description=42)]})
        snapshot = copy.deepcopy(original)
        normalize_routine(original)
        self.assertEqual(original, snapshot)


class StrictModeTests(unittest.TestCase):
    def test_strict_mode_aborts_on_first_invalid_exercise(self):
        daily = {"monday": [{"name": "Squat", "sets": 3, "reps": "10", "description": 123}]}
        with self.assertRaises(RoutineError) as ctx:
            normalize_routine(_routine(daily), strict=True)
        self.assertEqual(ctx.exception.code, INTERNAL)
        self.assertEqual(ctx.exception.details["fields"], ["description"])

    def test_strict_mode_fails_on_schedule_mismatch(self):
        schedule = resolve_schedule_parameters("2-3", ["monday", "friday"])
        daily = {"monday": [_exercise()], "tuesday": [_exercise()]}
        with self.assertRaises(RoutineError):
            normalize_routine(_routine(daily), schedule=schedule, strict=True)

    def test_lenient_mode_only_observes_schedule_mismatch(self):
        schedule = resolve_schedule_parameters("2-3", ["monday", "friday"])
        daily = {"monday": [_exercise()], "tuesday": [_exercise()]}
        routine = normalize_routine(_routine(daily), schedule=schedule)
        self.assertEqual(len(routine["dailyWorkouts"]["tuesday"]), 1)


class ReconcileScheduleTests(unittest.TestCase):
    def test_statuses(self):
        schedule = resolve_schedule_parameters("2-3", ["monday", "friday"])
        empty = {day: [] for day in DAYS_OF_WEEK}

        matching = dict(empty, monday=[_exercise()], friday=[_exercise()])
        self.assertEqual(reconcile_schedule(matching, schedule)["status"], "match")

        wrong_days = dict(empty, monday=[_exercise()], tuesday=[_exercise()])
        self.assertEqual(reconcile_schedule(wrong_days, schedule)["status"], "day_mismatch")

        too_many = dict(matching, sunday=[_exercise()])
        self.assertEqual(reconcile_schedule(too_many, schedule)["status"], "count_mismatch")

        loose = resolve_schedule_parameters("3-4", None)
        self.assertEqual(reconcile_schedule(empty, loose)["status"], "no_workout_days")
        result = reconcile_schedule(matching, loose)
        self.assertEqual(result["status"], "ok")
        self.assertEqual(result["generated_days"], ["monday", "friday"])


if __name__ == "__main__":
    unittest.main()

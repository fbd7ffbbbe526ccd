"""
AI-powered weekly routine generation request handler.
"""

import logging

from routine_generator.errors import (
    ABORTED,
    INTERNAL,
    INVALID_ARGUMENT,
    UNAUTHENTICATED,
    RoutineError,
)
from routine_generator.generation_client import AUTH, BLOCKED, GenerationError
from routine_generator.muscle_splits import select_muscle_split
from routine_generator.performance_history import build_performance_summary
from routine_generator.prompt_composer import compose_prompt
from routine_generator.routine_validator import normalize_routine, parse_routine_response
from routine_generator.schedule_params import resolve_schedule_parameters


logger = logging.getLogger(__name__)


def _classify_generation_error(exc):
    if exc.kind == BLOCKED:
        return RoutineError(
            ABORTED,
            f"{exc.message} Please try rephrasing your request or check content policies.",
            details=exc.detail,
        )
    if exc.kind == AUTH:
        return RoutineError(
            UNAUTHENTICATED,
            "AI service authentication failed. Please check API key configuration.",
        )
    return RoutineError(INTERNAL, f"{exc.message} Please try again later.", details=exc.detail)


def validate_request(request_data):
    """Return (onboarding, previous_routine) or raise invalid-argument."""
    if not isinstance(request_data, dict):
        raise RoutineError(INVALID_ARGUMENT, "Request payload must be an object.")

    onboarding = request_data.get("onboardingData")
    if not isinstance(onboarding, dict) or not onboarding:
        raise RoutineError(
            INVALID_ARGUMENT,
            "Valid 'onboardingData' object is required to generate a routine.",
        )

    previous_routine = request_data.get("previousRoutineData")
    if previous_routine is not None and not isinstance(previous_routine, dict):
        raise RoutineError(INVALID_ARGUMENT, "'previousRoutineData' must be an object when provided.")

    return onboarding, previous_routine or {}


class RoutineGenerator:
    """Generates validated weekly routines through an external text-generation model."""

    def __init__(self, config, client_provider, log_store=None):
        """
        Initialize the routine generator.

        Args:
            config: Full configuration dictionary (see config.load_config)
            client_provider: GenerationClientProvider (anything with get())
            log_store: WorkoutLogStore for performance history, or None
        """
        self.config = config
        self.client_provider = client_provider
        self.log_store = log_store

        prompt_config = config.get("prompt", {}) or {}
        self.use_muscle_split = prompt_config.get("muscle_split", True)
        self.use_performance = prompt_config.get("performance_progression", True)
        self.exercise_count_table = prompt_config.get("exercise_count_table")
        self.strict = bool((config.get("validation", {}) or {}).get("strict", False))

        history = config.get("history", {}) or {}
        self.lookback_days = history.get("lookback_days", 14)
        self.max_records = history.get("max_records", 30)

    def _resolve_client(self):
        try:
            return self.client_provider.get()
        except RoutineError:
            raise
        except Exception as exc:
            logger.error("Generation client could not be initialized: %s", exc)
            raise RoutineError(
                INTERNAL,
                "AI Service is currently unavailable due to a configuration problem.",
            ) from exc

    def _performance_summary(self, user_id, previous_routine):
        if not self.use_performance or self.log_store is None:
            return {}
        return build_performance_summary(
            self.log_store,
            user_id,
            previous_routine.get("id"),
            expires_at=previous_routine.get("expiresAt"),
            lookback_days=self.lookback_days,
            max_records=self.max_records,
        )

    def build_prompt(self, onboarding, previous_routine, user_id):
        """Resolve scheduling inputs and compose the prompt. Returns (prompt, schedule)."""
        schedule = resolve_schedule_parameters(
            onboarding.get("frequency"),
            onboarding.get("workout_days"),
        )

        muscle_split = None
        if self.use_muscle_split:
            muscle_split = select_muscle_split(
                schedule["workout_days_count"],
                onboarding.get("experience"),
            )

        performance_summary = self._performance_summary(user_id, previous_routine)

        prompt = compose_prompt(
            onboarding,
            schedule,
            previous_routine=previous_routine,
            performance_summary=performance_summary,
            muscle_split=muscle_split,
            options={
                "muscle_split": self.use_muscle_split,
                "performance_progression": self.use_performance,
                "exercise_count_table": self.exercise_count_table,
            },
        )
        return prompt, schedule

    def generate(self, request_data, auth=None, strict=None):
        """
        Generate a routine for an authenticated caller.

        Args:
            request_data: {"onboardingData": {...}, "previousRoutineData": {...}}
            auth: caller identity dict with 'uid', or None
            strict: override the configured validation policy

        Returns:
            Routine dict with name, durationInWeeks and all 7 dailyWorkouts keys

        Raises:
            RoutineError with code unauthenticated, invalid-argument, aborted or internal
        """
        client = self._resolve_client()

        if not isinstance(auth, dict) or not auth.get("uid"):
            raise RoutineError(UNAUTHENTICATED, "The function must be called by an authenticated user.")
        user_id = auth["uid"]
        logger.info("User %s authenticated. Requesting AI routine via %s.", user_id, getattr(client, "provider", "provider"))

        onboarding, previous_routine = validate_request(request_data)
        prompt, schedule = self.build_prompt(onboarding, previous_routine, user_id)
        logger.info("Final prompt built for user %s (%d chars).", user_id, len(prompt))

        try:
            response_text = client.generate(prompt)
        except GenerationError as exc:
            raise _classify_generation_error(exc) from exc

        parsed = parse_routine_response(response_text)
        routine = normalize_routine(
            parsed,
            schedule=schedule,
            strict=self.strict if strict is None else strict,
        )
        logger.info("Generated and validated routine for user %s: %s", user_id, routine["name"])
        return routine

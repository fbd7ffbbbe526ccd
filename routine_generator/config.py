"""
Configuration loading and API credential resolution.
"""

import copy
import logging
import os

import yaml
from dotenv import load_dotenv

from routine_generator.errors import ConfigurationError


logger = logging.getLogger(__name__)

RUNTIME_ENV_VAR = "ROUTINE_RUNTIME"
LOCAL_RUNTIME = "local"
DEPLOYED_RUNTIME = "deployed"

DEFAULT_CONFIG = {
    "runtime": LOCAL_RUNTIME,
    "generation": {
        "provider": "gemini",
        "temperature": 0.3,
        "timeout": 120,
        "gemini": {
            "model": "gemini-2.5-flash",
            "max_output_tokens": 8192,
            "api_key_env": "GEMINI_API_KEY",
            "api_key_secret_file": "/run/secrets/GEMINI_API_KEY",
        },
        "claude": {
            "model": "claude-sonnet-4-5",
            "max_tokens": 8192,
            "api_key_env": "ANTHROPIC_API_KEY",
            "api_key_secret_file": "/run/secrets/ANTHROPIC_API_KEY",
        },
    },
    "validation": {
        "strict": False,
    },
    "prompt": {
        "muscle_split": True,
        "performance_progression": True,
    },
    "history": {
        "lookback_days": 14,
        "max_records": 30,
    },
    "database": {
        "path": "data/workout_history.db",
    },
    "output": {
        "folder": "output",
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base, override):
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path="config.yaml"):
    """
    Load configuration from YAML and fill in defaults.

    A missing file is not an error: the defaults are returned.
    """
    if not config_path or not os.path.exists(config_path):
        logger.info("No config file at %s, using defaults.", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {config_path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level.")

    return _deep_merge(DEFAULT_CONFIG, loaded)


def get_runtime(config, environ=None):
    """Return 'local' or 'deployed'; the environment variable wins over config."""
    env = os.environ if environ is None else environ
    runtime = (env.get(RUNTIME_ENV_VAR) or config.get("runtime") or LOCAL_RUNTIME).strip().lower()
    if runtime not in (LOCAL_RUNTIME, DEPLOYED_RUNTIME):
        raise ConfigurationError(f"Unknown runtime '{runtime}' (expected 'local' or 'deployed').")
    return runtime


def provider_settings(config):
    """Return (provider_name, provider_section) for the configured provider."""
    generation = config.get("generation", {}) or {}
    provider = (generation.get("provider") or "").strip().lower()
    section = generation.get(provider)
    if not provider or not isinstance(section, dict):
        raise ConfigurationError(f"No settings for generation provider '{provider}'.")
    return provider, section


def _read_secret_file(path):
    if not path or not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read().strip() or None


def resolve_api_key(config, environ=None):
    """
    Resolve the provider API key for the current runtime.

    local:    .env / process environment (api_key_env)
    deployed: mounted secret file (api_key_secret_file), then environment
    """
    runtime = get_runtime(config, environ)
    provider, section = provider_settings(config)
    env_name = section.get("api_key_env")

    if runtime == LOCAL_RUNTIME:
        if environ is None:
            load_dotenv()
        env = os.environ if environ is None else environ
        api_key = env.get(env_name) if env_name else None
        if not api_key:
            logger.warning(
                "%s not found in the local environment; %s routine generation will fail without it.",
                env_name,
                provider,
            )
            raise ConfigurationError(
                "AI Service (local) is not configured correctly. API key is missing.",
                details={"provider": provider, "api_key_env": env_name},
            )
        return api_key

    api_key = _read_secret_file(section.get("api_key_secret_file"))
    if not api_key and env_name:
        env = os.environ if environ is None else environ
        api_key = env.get(env_name)
    if not api_key:
        logger.error("API key secret for %s is not available in the deployed runtime.", provider)
        raise ConfigurationError(
            "AI Service API Key configuration error (secret missing).",
            details={"provider": provider},
        )
    return api_key

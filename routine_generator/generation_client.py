"""
Text-generation provider clients.

Each client sends one prompt and returns the raw text payload. Provider failures
are classified into GenerationError so callers never inspect provider-specific
exception shapes.
"""

import logging

import anthropic
from google import genai
from google.genai import types as genai_types

from routine_generator.config import provider_settings, resolve_api_key
from routine_generator.errors import ConfigurationError


logger = logging.getLogger(__name__)

BLOCKED = "blocked"
EMPTY = "empty"
AUTH = "auth"
TRANSPORT = "transport"

INVALID_KEY_MARKERS = ("api key not valid", "api_key_invalid", "invalid x-api-key", "invalid api key")

SAFETY_SETTINGS = [
    genai_types.SafetySetting(
        category=genai_types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        threshold=genai_types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    genai_types.SafetySetting(
        category=genai_types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        threshold=genai_types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    genai_types.SafetySetting(
        category=genai_types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        threshold=genai_types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
    genai_types.SafetySetting(
        category=genai_types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        threshold=genai_types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    ),
]


class GenerationError(Exception):
    """Classified provider failure: blocked, empty, auth or transport."""

    def __init__(self, kind, message, detail=None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail


def _enum_name(value):
    if value is None:
        return ""
    return str(getattr(value, "name", value)).upper()


def _looks_like_invalid_key(message):
    text = (message or "").lower()
    return any(marker in text for marker in INVALID_KEY_MARKERS)


class GeminiGenerationClient:
    """Gemini client with fixed safety thresholds and JSON output mode."""

    provider = "gemini"

    def __init__(self, api_key, model, temperature=0.3, max_output_tokens=8192, timeout=None, client=None):
        if client is None:
            http_options = genai_types.HttpOptions(timeout=int(timeout * 1000)) if timeout else None
            client = genai.Client(api_key=api_key, http_options=http_options)
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    def _build_config(self):
        return genai_types.GenerateContentConfig(
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            response_mime_type="application/json",
            safety_settings=SAFETY_SETTINGS,
        )

    def generate(self, prompt):
        """Send the prompt and return the response text."""
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=self._build_config(),
            )
        except Exception as exc:
            message = str(exc)
            logger.error("Error calling Gemini API: %s", message)
            if _looks_like_invalid_key(message):
                raise GenerationError(AUTH, "AI service authentication failed.", detail=message) from exc
            raise GenerationError(TRANSPORT, "Failed to communicate with the AI service.", detail=message) from exc

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None) if feedback is not None else None
        if block_reason:
            reason = _enum_name(block_reason)
            logger.warning("AI request blocked. Reason: %s", reason)
            raise GenerationError(BLOCKED, f"AI content generation was blocked: {reason}.", detail=reason)

        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            logger.error("AI returned no candidates.")
            raise GenerationError(EMPTY, "AI service returned an empty response.")

        candidate = candidates[0]
        if _enum_name(getattr(candidate, "finish_reason", None)) == "SAFETY":
            logger.warning("AI candidate stopped by safety filter.")
            raise GenerationError(BLOCKED, "AI content generation was blocked: SAFETY.", detail="SAFETY")

        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []
        text = "".join(getattr(part, "text", None) or "" for part in parts)
        if not text.strip():
            logger.error("AI returned empty content parts.")
            raise GenerationError(EMPTY, "AI service returned an empty response.")

        logger.info("Received response from Gemini (%d chars).", len(text))
        return text


class ClaudeGenerationClient:
    """Claude client; JSON output is requested through the prompt."""

    provider = "claude"

    def __init__(self, api_key, model, max_tokens=8192, temperature=0.3, timeout=120, client=None):
        self.client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate(self, prompt):
        """Send the prompt and return the response text."""
        try:
            message = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[
                    {
                        "role": "user",
                        "content": prompt
                    }
                ]
            )
        except anthropic.AuthenticationError as exc:
            logger.error("Claude API authentication failed: %s", exc)
            raise GenerationError(AUTH, "AI service authentication failed.", detail=str(exc)) from exc
        except Exception as exc:
            message = str(exc)
            logger.error("Error calling Claude API: %s", message)
            if _looks_like_invalid_key(message):
                raise GenerationError(AUTH, "AI service authentication failed.", detail=message) from exc
            raise GenerationError(TRANSPORT, "Failed to communicate with the AI service.", detail=message) from exc

        if getattr(message, "stop_reason", None) == "refusal":
            logger.warning("AI request refused by the model.")
            raise GenerationError(BLOCKED, "AI content generation was blocked: refusal.", detail="refusal")

        text = "".join(
            getattr(block, "text", "") or ""
            for block in (getattr(message, "content", None) or [])
            if getattr(block, "type", "text") == "text"
        )
        if not text.strip():
            logger.error("AI returned no text content.")
            raise GenerationError(EMPTY, "AI service returned an empty response.")

        logger.info("Received response from Claude (%d chars).", len(text))
        return text


def create_generation_client(config, api_key):
    """Build the configured provider client."""
    provider, section = provider_settings(config)
    generation = config.get("generation", {}) or {}
    temperature = generation.get("temperature", 0.3)
    timeout = generation.get("timeout", 120)

    if provider == "gemini":
        client = GeminiGenerationClient(
            api_key=api_key,
            model=section["model"],
            temperature=temperature,
            max_output_tokens=section.get("max_output_tokens", 8192),
            timeout=timeout,
        )
    elif provider == "claude":
        client = ClaudeGenerationClient(
            api_key=api_key,
            model=section["model"],
            max_tokens=section.get("max_tokens", 8192),
            temperature=temperature,
            timeout=timeout,
        )
    else:
        raise ConfigurationError(f"Unsupported generation provider '{provider}'.")

    logger.info("Generation client initialized with %s model %s.", provider, section["model"])
    return client


class GenerationClientProvider:
    """
    Lazily builds the generation client on first use and caches it.

    Two concurrent cold starts may each build a client; the last one wins and
    both are usable.
    """

    def __init__(self, config, environ=None, factory=None):
        self.config = config
        self.environ = environ
        self.factory = factory or create_generation_client
        self._client = None

    def get(self):
        if self._client is None:
            api_key = resolve_api_key(self.config, self.environ)
            self._client = self.factory(self.config, api_key)
        return self._client

    def reset(self):
        self._client = None

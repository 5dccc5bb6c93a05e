"""OpenAI chat-completions adapter that returns parsed JSON objects."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from openai import OpenAI, OpenAIError, RateLimitError

from sprint_report_generator.core.errors import TextGenerationError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"

_MAX_RETRIES = 4
_BACKOFF_BASE = 1.0  # seconds
_TEMPERATURE = 0.7
_MAX_TOKENS = 2000


class TextGenerator(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> dict[str, Any]: ...


class OpenAITextClient:
    """Send a system and user prompt, get a JSON object back."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        *,
        client: OpenAI | None = None,
    ) -> None:
        self._model = model
        # Rate limits are retried here, not inside the SDK.
        self._client = client or OpenAI(api_key=api_key, max_retries=0)

    @property
    def model(self) -> str:
        return self._model

    def complete(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        """Run one chat completion in JSON mode.

        Raises :class:`TextGenerationError` when the call fails or the
        response is empty or not a JSON object.
        """
        response = self._create_with_retry(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
        )
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise TextGenerationError("OpenAI returned an empty response")
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise TextGenerationError(f"OpenAI returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise TextGenerationError("OpenAI response is not a JSON object")
        return data

    # -- internals ------------------------------------------------------------

    def _create_with_retry(self, messages: list[dict[str, str]]) -> Any:
        for attempt in range(_MAX_RETRIES):
            try:
                return self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    response_format={"type": "json_object"},
                    temperature=_TEMPERATURE,
                    max_tokens=_MAX_TOKENS,
                )
            except RateLimitError as exc:
                if attempt < _MAX_RETRIES - 1:
                    delay = _BACKOFF_BASE * (2**attempt)
                    logger.warning("Rate limited, retrying in %.1fs", delay)
                    time.sleep(delay)
                    continue
                raise TextGenerationError(f"OpenAI rate limit: {exc}") from exc
            except OpenAIError as exc:
                raise TextGenerationError(f"OpenAI request failed: {exc}") from exc

        raise TextGenerationError("OpenAI request failed")  # unreachable


@dataclass(frozen=True)
class CompletionResult:
    """Outcome of a completion that must not raise."""

    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def safe_complete(
    llm: TextGenerator, system_prompt: str, user_prompt: str
) -> CompletionResult:
    """Call *llm* and turn any failure into a :class:`CompletionResult`."""
    try:
        data = llm.complete(system_prompt, user_prompt)
    except Exception as exc:
        logger.warning("Text generation failed: %s", exc)
        return CompletionResult(error=str(exc) or exc.__class__.__name__)
    if not isinstance(data, dict):
        logger.warning("Text generation returned %s instead of a JSON object", type(data).__name__)
        return CompletionResult(error="response is not a JSON object")
    return CompletionResult(data=data)

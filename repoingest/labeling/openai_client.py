"""CompletionClient over the OpenAI chat completions API.

Reads OPENAI_API_KEY / OPENAI_BASE_URL through the SDK, so any
OpenAI-compatible endpoint works.
"""

from __future__ import annotations

import logging
import os

import openai
from openai import OpenAI

from repoingest.config import DEFAULT_LABEL_MODEL
from repoingest.core.errors import LabelError

logger = logging.getLogger(__name__)

LABEL_MODEL_ENV = "REPOINGEST_LABEL_MODEL"


class OpenAICompletionClient:
    """Satisfies the CompletionClient protocol."""

    def __init__(
        self,
        model: str | None = None,
        client: OpenAI | None = None,
        temperature: float = 0.0,
    ) -> None:
        self.model = model or os.environ.get(LABEL_MODEL_ENV, DEFAULT_LABEL_MODEL)
        self.temperature = temperature
        self._client = client or OpenAI()

    def complete(self, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except openai.RateLimitError as exc:
            raise LabelError("<completion>", f"rate limited: {exc}") from exc
        except openai.APIError as exc:
            raise LabelError("<completion>", str(exc)) from exc

        content = response.choices[0].message.content or ""
        logger.debug("completion_received model=%s chars=%d", self.model, len(content))
        return content

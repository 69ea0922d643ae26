"""
openai_utils.py
Chat-completion client used by the classification and synthesis stages.
"""

import logging
from typing import Dict, List, Optional, Protocol

from openai import OpenAI, OpenAIError

from services.constants import (
    CLASSIFIER_MODEL,
    NARRATIVE_MODEL,
    OPENAI_API_KEY,
    SYNTHESIS_MODEL,
)
from services.errors import TransientBackendError

logger = logging.getLogger(__name__)

INTENT_MODELS = {
    "classification": CLASSIFIER_MODEL,
    "summarization": SYNTHESIS_MODEL,
    "generation": NARRATIVE_MODEL,
}


class ChatCompletion(Protocol):
    def is_available(self) -> bool:
        ...

    def complete(
        self,
        messages: List[Dict[str, str]],
        intent: str,
        response_format: str = "text",
        temperature: float = 0.2,
    ) -> str:
        ...


class ChatCompletionClient:
    """
    Thin wrapper over the OpenAI chat completions API.

    Failed calls are not retried, by the SDK or here: they raise
    TransientBackendError immediately and the calling stage falls back.
    """

    def __init__(self, api_key: str = OPENAI_API_KEY, models: Optional[Dict[str, str]] = None):
        self.api_key = api_key
        self.models = dict(INTENT_MODELS)
        if models:
            self.models.update(models)
        self._client: Optional[OpenAI] = None

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    def complete(
        self,
        messages: List[Dict[str, str]],
        intent: str,
        response_format: str = "text",
        temperature: float = 0.2,
    ) -> str:
        """
        Run one chat completion.

        Args:
            messages: OpenAI-style role/content messages
            intent: "classification", "summarization" or "generation", selects the model
            response_format: "json" asks for a JSON object, "text" for free text
            temperature: Sampling temperature

        Returns:
            The assistant message text
        """
        if not self.is_available():
            raise TransientBackendError("OPENAI_API_KEY is not configured")

        model = self.models.get(intent, SYNTHESIS_MODEL)
        kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format == "json":
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._get_client().chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.error(f"OpenAI API call failed for intent '{intent}': {e}")
            raise TransientBackendError(f"Chat completion failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise TransientBackendError(f"Chat completion for intent '{intent}' returned no content")
        return content

"""Google Generative AI provider."""

import json
import re
from typing import Any, Dict, Optional

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

from cogassess.providers.base import BaseLLMProvider, RetryConfig

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block, which Gemini often adds."""
    return _FENCE_RE.sub("", text.strip()).strip()


class GoogleProvider(BaseLLMProvider):
    """Gemini integration used to generate assessment content."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-pro",
        retry_config: Optional[RetryConfig] = None,
    ):
        super().__init__(api_key, model)
        genai.configure(api_key=api_key)
        self.client = genai.GenerativeModel(model)
        self.retry_config = retry_config

    def _generate(self, prompt: str, temperature: float, max_tokens: int, **kwargs: Any) -> str:
        generation_config = GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            **kwargs,
        )

        def call() -> str:
            try:
                response = self.client.generate_content(
                    prompt,
                    generation_config=generation_config,
                )
                # .text raises ValueError when the candidate was blocked
                return response.text or ""
            except Exception as e:
                raise self._handle_api_error(e) from e

        return self._execute_with_retry(call, self.retry_config)

    def generate_completion(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> str:
        return self._generate(prompt, temperature, max_tokens, **kwargs)

    def generate_structured_completion(
        self,
        prompt: str,
        response_format: Dict[str, Any],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Generate a JSON completion.

        Gemini has no native JSON mode here, so the schema is appended to the
        prompt and the reply is parsed after stripping markdown fences.

        Raises:
            LLMProviderError: If the API call fails
            ValueError: If the reply is not a JSON object
        """
        json_prompt = (
            f"{prompt}\n\n"
            f"Respond with valid JSON matching this schema: {json.dumps(response_format)}\n"
            f"Your response must be only valid JSON with no additional text."
        )
        text = self._generate(json_prompt, temperature, max_tokens, **kwargs)
        try:
            parsed = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse JSON response: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

    def count_tokens(self, text: str) -> int:
        # Rough approximation: 1 token ~ 4 characters
        return len(text) // 4

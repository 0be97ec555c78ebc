"""
Text completion service
Wraps the OpenAI chat completions API behind a small JSON-only interface
"""
import os
import random
import time
import logging
from typing import Optional, Callable

import openai
from openai import OpenAI

from config import get_completion_settings

logger = logging.getLogger(__name__)

# Errors worth another attempt: quota/rate limits, timeouts, dropped connections, 5xx
RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class CompletionError(Exception):
    """Raised when the completion service cannot produce a response"""
    pass


class TextCompletionService:
    """
    JSON-mode chat completion client with exponential backoff.

    Any failure surfaces as CompletionError so callers only handle one type.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[OpenAI] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the completion service

        Args:
            api_key: OpenAI API key (defaults to environment variable)
            client: Preconfigured OpenAI client, mainly for tests
            model: Model name (defaults to config/matching.json)
            temperature: Sampling temperature
            max_tokens: Maximum output tokens
            timeout: Per-request timeout in seconds
            max_retries: Attempts before giving up
            sleep: Sleep function used between attempts
        """
        settings = get_completion_settings()
        self.model = model or settings["model"]
        self.temperature = settings["temperature"] if temperature is None else temperature
        self.max_tokens = max_tokens or settings["max_tokens"]
        self.timeout = timeout or settings["timeout_seconds"]
        self.max_retries = max(1, max_retries or settings["max_retries"])
        self._sleep = sleep

        if client is not None:
            self.client = client
        else:
            self.api_key = api_key or os.getenv("OPENAI_API_KEY")
            if not self.api_key:
                raise ValueError("OpenAI API key is required. Set OPENAI_API_KEY environment variable.")
            # Retries are handled here so the backoff policy is visible and testable
            self.client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Request a JSON object completion

        Args:
            prompt: User message
            system_prompt: Optional system message

        Returns:
            Raw message content (may be empty)

        Raises:
            CompletionError: after retries are exhausted or on a non-retryable error
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        for attempt in range(self.max_retries):
            try:
                response = self.client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    response_format={"type": "json_object"},
                    temperature=self.temperature,
                    max_tokens=self.max_tokens
                )
                return response.choices[0].message.content or ""
            except RETRYABLE_ERRORS as e:
                if attempt < self.max_retries - 1:
                    wait_time = (2 ** attempt) + random.uniform(0, 1)
                    logger.warning(
                        f"Completion failed ({type(e).__name__}), waiting {wait_time:.1f}s "
                        f"before retry {attempt + 2}/{self.max_retries}"
                    )
                    self._sleep(wait_time)
                    continue
                raise CompletionError(f"Completion failed after {self.max_retries} attempts: {e}") from e
            except Exception as e:
                raise CompletionError(f"Completion failed: {e}") from e

        raise CompletionError("Max retries exceeded")

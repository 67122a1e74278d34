"""
OpenAI API Client for the Imposter game.

Talks to OpenAI or any OpenAI-compatible endpoint (a local Ollama
server at http://localhost:11434/v1, for example). Failures come back
as an unsuccessful AIResponse; callers never see the library's
exceptions.
"""

import os
import time
import logging
from typing import Optional, Dict, Any, List
from dataclasses import dataclass

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)

class AIError(Exception):
    """Base exception for AI-related errors."""
    pass

class RateLimitError(AIError):
    """Raised when the API rate limit is exceeded."""
    pass

class ContentFilterError(AIError):
    """Raised when the API returns no usable content."""
    pass

@dataclass
class AIResponse:
    """Response from the completion API."""
    content: str
    tokens_used: int
    model_used: str
    success: bool = True
    error_message: Optional[str] = None

    @classmethod
    def failure(cls, model: str, error_message: str) -> 'AIResponse':
        return cls(content="", tokens_used=0, model_used=model, success=False,
                   error_message=error_message)

class OpenAIClient:
    """
    Chat-completion client with a per-request timeout and bounded retries.

    With ``max_retries=1`` a call makes exactly one request, so it never
    blocks for longer than ``timeout`` seconds.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini",
                 base_url: Optional[str] = None, timeout: float = 30.0,
                 max_retries: int = 3):
        """
        Args:
            api_key: API key (defaults to OPENAI_API_KEY)
            model: Model name
            base_url: OpenAI-compatible endpoint; local servers need no key
            timeout: Per-request timeout in seconds
            max_retries: Total attempts per completion
        """
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = 1.0
        self.api_key = api_key or os.getenv('OPENAI_API_KEY') or ("not-needed" if base_url else None)
        self.client = None

        if not self.api_key:
            logger.error("OpenAI API key not provided")
            return

        try:
            # Retries are handled by generate_completion
            self.client = OpenAI(api_key=self.api_key, base_url=base_url,
                                 timeout=timeout, max_retries=0)
            logger.info(f"OpenAI client initialized (model: {model}, endpoint: {base_url or 'default'})")
        except Exception as e:
            logger.error(f"Failed to initialize OpenAI client: {e}")

    def is_available(self) -> bool:
        return self.client is not None

    def generate_completion(self, messages: List[Dict[str, str]],
                            max_tokens: int = 150,
                            temperature: float = 0.7) -> AIResponse:
        """
        Run one chat completion.

        Args:
            messages: Conversation in OpenAI message format
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            AIResponse; success is False when every attempt failed
        """
        if not self.is_available():
            return AIResponse.failure(self.model, "OpenAI client not available")

        last_error = None
        for attempt in range(1, self.max_retries + 1):
            if attempt > 1:
                delay = self.backoff_seconds * (2 ** (attempt - 2))
                logger.warning(f"Retrying completion in {delay}s (attempt {attempt}): {last_error}")
                time.sleep(delay)

            try:
                return self._request(messages, max_tokens, temperature)
            except openai.AuthenticationError as e:
                return AIResponse.failure(self.model, f"API key invalid: {e}")
            except openai.RateLimitError as e:
                last_error = RateLimitError(f"Rate limit exceeded: {e}")
            except openai.APITimeoutError as e:
                last_error = AIError(f"Request timed out after {self.timeout}s: {e}")
            except openai.APIConnectionError as e:
                last_error = AIError(f"Connection failed: {e}")
            except Exception as e:
                last_error = AIError(f"Unexpected error: {e}")

        error_message = f"Failed after {self.max_retries} attempt(s): {last_error}"
        logger.error(error_message)
        return AIResponse.failure(self.model, error_message)

    def _request(self, messages: List[Dict[str, str]], max_tokens: int, temperature: float) -> AIResponse:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=self.timeout
        )

        content = response.choices[0].message.content
        if not content:
            raise ContentFilterError("Empty response from completion API")

        tokens_used = response.usage.total_tokens if response.usage else 0
        logger.debug(f"Completion succeeded: {tokens_used} tokens used")
        return AIResponse(content=content.strip(), tokens_used=tokens_used, model_used=self.model)

    def get_status(self) -> Dict[str, Any]:
        """Client configuration and availability."""
        return {
            'available': self.is_available(),
            'model': self.model,
            'base_url': self.base_url,
            'has_api_key': bool(self.api_key),
            'timeout': self.timeout,
            'max_retries': self.max_retries
        }

"""
Claude API service for video analysis.

Thin async wrapper over Anthropic's Claude API with retry logic, token
tracking and JSON extraction from model replies.

Key Features:
    - Async/await support for non-blocking operations
    - Exponential backoff retry logic with jitter
    - Token counting and cost estimation
    - JSON extraction from fenced or bare replies

Example:
    >>> service = ClaudeService()
    >>> data = await service.complete_json(prompt, system=SYSTEM_PROMPT)
"""

from __future__ import annotations

import asyncio
import json
import random
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

import anthropic
from anthropic import APIError, APIStatusError, RateLimitError

from content_engine.config.settings import Settings, get_settings
from content_engine.utils.logger import get_logger
from content_engine.utils.retry import ConfigurationError

logger = get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Token costs per model (per 1K tokens)
TOKEN_COSTS = {
    "claude-sonnet-4-20250514": {"input": 0.003, "output": 0.015},
    "claude-3-5-sonnet-20241022": {"input": 0.003, "output": 0.015},
    "claude-3-haiku-20240307": {"input": 0.00025, "output": 0.00125},
}

MAX_BACKOFF_SECONDS = 60


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class TokenUsage:
    """Token usage tracking for a single request."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float = 0.0
    model: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def calculate_cost(self, model: str) -> float:
        """Calculate estimated cost based on token usage."""
        if model in TOKEN_COSTS:
            costs = TOKEN_COSTS[model]
            input_cost = (self.input_tokens / 1000) * costs["input"]
            output_cost = (self.output_tokens / 1000) * costs["output"]
            self.estimated_cost = input_cost + output_cost
        return self.estimated_cost


# =============================================================================
# Custom Exceptions
# =============================================================================

class ClaudeServiceError(Exception):
    """Base exception for Claude service errors."""
    pass


class AuthenticationFailedError(ClaudeServiceError):
    pass


class InvalidResponseError(ClaudeServiceError):
    """Raised when a reply cannot be parsed as JSON."""
    def __init__(self, message: str, raw_response: str):
        super().__init__(message)
        self.raw_response = raw_response


class MaxRetriesExceededError(ClaudeServiceError):
    """Raised when max retries are exceeded."""
    pass


# =============================================================================
# Main Service Class
# =============================================================================

class ClaudeService:
    """
    Claude API client used by the video analyzer.

    Attributes:
        settings: Application settings
        client: Anthropic API client
        token_usage_history: List of token usage records
        total_cost: Running total of API costs
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        api_key: Optional[str] = None,
        max_retries: int = 3,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """
        Initialize the Claude service.

        Args:
            settings: Application settings instance
            api_key: Override API key (uses settings if not provided)
            max_retries: Maximum attempts for retryable failures
            client: Pre-built Anthropic client
        """
        self.settings = settings or get_settings()
        if api_key is None and self.settings.anthropic_api_key is not None:
            api_key = self.settings.anthropic_api_key.get_secret_value()
        if client is None and not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not set")

        self.max_retries = max_retries
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key)

        self.token_usage_history: list[TokenUsage] = []
        self.total_cost: float = 0.0

        logger.info(
            "ClaudeService initialized",
            model=self.settings.claude_model,
            max_retries=self.max_retries,
        )

    async def __aenter__(self) -> "ClaudeService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client connection."""
        await self.client.close()
        logger.info(
            "ClaudeService closed",
            total_requests=len(self.token_usage_history),
            total_cost=f"${self.total_cost:.4f}",
        )

    # =========================================================================
    # Core API Methods
    # =========================================================================

    async def _call_api(
        self,
        messages: list[dict[str, str]],
        system: str = "",
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> tuple[str, TokenUsage]:
        """
        Make an API call with retry logic.

        Rate limits, 5xx responses and connection errors are retried with
        backoff; 401 and other 4xx responses fail immediately.

        Returns:
            Tuple of (response_text, token_usage)

        Raises:
            ClaudeServiceError: On API errors after retries exhausted
        """
        max_tokens = max_tokens or self.settings.claude_max_tokens
        if temperature is None:
            temperature = self.settings.analysis_temperature

        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                start_time = time.time()

                kwargs: dict[str, Any] = {
                    "model": self.settings.claude_model,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "messages": messages,
                }
                if system:
                    kwargs["system"] = system
                response = await self.client.messages.create(**kwargs)

                elapsed = time.time() - start_time
                response_text = "".join(
                    getattr(block, "text", "") for block in response.content
                )

                usage = TokenUsage(
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                    total_tokens=response.usage.input_tokens + response.usage.output_tokens,
                    model=self.settings.claude_model,
                )
                usage.calculate_cost(self.settings.claude_model)
                self.token_usage_history.append(usage)
                self.total_cost += usage.estimated_cost

                logger.info(
                    "API call successful",
                    attempt=attempt + 1,
                    elapsed_seconds=f"{elapsed:.2f}",
                    input_tokens=usage.input_tokens,
                    output_tokens=usage.output_tokens,
                    cost=f"${usage.estimated_cost:.4f}",
                )
                return response_text, usage

            except RateLimitError as e:
                last_error = e
                wait_time = self._calculate_backoff(attempt, base=30)
                logger.warning(
                    "Rate limit hit, backing off",
                    attempt=attempt + 1,
                    wait_seconds=wait_time,
                    error=str(e),
                )
                await asyncio.sleep(wait_time)

            except APIStatusError as e:
                last_error = e
                if e.status_code >= 500:
                    wait_time = self._calculate_backoff(attempt)
                    logger.warning(
                        "Server error, retrying",
                        attempt=attempt + 1,
                        status_code=e.status_code,
                        wait_seconds=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                elif e.status_code == 401:
                    logger.error("Authentication failed", error=str(e))
                    raise AuthenticationFailedError(f"Authentication failed: {e}") from e
                else:
                    logger.error("API error", status_code=e.status_code, error=str(e))
                    raise ClaudeServiceError(f"API error: {e}") from e

            except (APIError, asyncio.TimeoutError) as e:
                last_error = e
                wait_time = self._calculate_backoff(attempt)
                logger.warning(
                    "API error, retrying",
                    attempt=attempt + 1,
                    wait_seconds=wait_time,
                    error=str(e),
                )
                await asyncio.sleep(wait_time)

        logger.error(
            "Max retries exceeded",
            max_retries=self.max_retries,
            last_error=str(last_error),
        )
        raise MaxRetriesExceededError(
            f"Failed after {self.max_retries} attempts: {last_error}"
        )

    async def complete_json(
        self,
        prompt: str,
        system: str = "",
        max_tokens: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Send a single-turn prompt and parse the reply as a JSON object.

        Raises:
            InvalidResponseError: If the reply holds no JSON object
            ClaudeServiceError: On API failures
        """
        response_text, _ = await self._call_api(
            messages=[{"role": "user", "content": prompt}],
            system=system,
            max_tokens=max_tokens,
        )
        candidate = self._extract_json(response_text)
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.warning("Reply is not valid JSON", error=str(e), preview=response_text[:200])
            raise InvalidResponseError(f"Invalid JSON in reply: {e}", response_text) from e
        if not isinstance(data, dict):
            raise InvalidResponseError("Reply JSON is not an object", response_text)
        return data

    # =========================================================================
    # Helpers
    # =========================================================================

    def _extract_json(self, text: str) -> str:
        """Extract JSON from text that may contain markdown or other content."""
        code_block_pattern = r"```(?:json)?\s*([\s\S]*?)```"
        matches = re.findall(code_block_pattern, text)
        if matches:
            return matches[0].strip()

        # Outermost braces
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            return text[start:end + 1]

        return text.strip()

    def _calculate_backoff(self, attempt: int, base: float = 1.0) -> float:
        """Calculate exponential backoff with jitter."""
        backoff = base * (2 ** attempt)
        jitter = random.uniform(0, backoff * 0.1)
        return min(backoff + jitter, MAX_BACKOFF_SECONDS)

    def get_usage_stats(self) -> dict[str, Any]:
        """Get usage statistics for the service."""
        if not self.token_usage_history:
            return {
                "total_requests": 0,
                "total_tokens": 0,
                "total_cost": 0.0,
                "avg_tokens_per_request": 0,
            }

        total_tokens = sum(u.total_tokens for u in self.token_usage_history)
        return {
            "total_requests": len(self.token_usage_history),
            "total_tokens": total_tokens,
            "total_input_tokens": sum(u.input_tokens for u in self.token_usage_history),
            "total_output_tokens": sum(u.output_tokens for u in self.token_usage_history),
            "total_cost": self.total_cost,
            "avg_tokens_per_request": total_tokens // len(self.token_usage_history),
        }


__all__ = [
    "ClaudeService",
    "TokenUsage",
    "ClaudeServiceError",
    "AuthenticationFailedError",
    "InvalidResponseError",
    "MaxRetriesExceededError",
]

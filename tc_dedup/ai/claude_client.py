"""
Claude API client usable as the LLM hook of the semantic augmenter.
"""

import logging
import time
from typing import Optional

from anthropic import Anthropic

from tc_dedup.config.ai_config import AIConfig

logger = logging.getLogger(__name__)


class ClaudeClient:
    """Client for interacting with Claude API.

    Instances are callable, ``client(prompt) -> text``, so one can be passed
    straight to the duplicate analysis engine as its LLM hook.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize Claude client.

        Args:
            api_key: Anthropic API key (if None, will try to get from environment)
            model: Model name (defaults to AI_MODEL)
            timeout: Request timeout in seconds (defaults to AI_HOOK_TIMEOUT)
        """
        if api_key is None:
            api_key = AIConfig.api_key()
            if not api_key:
                raise ValueError(
                    "ANTHROPIC_API_KEY not found. Please set it in .env file or environment variable."
                )

        self.client = Anthropic(api_key=api_key, timeout=timeout or AIConfig.HOOK_TIMEOUT)
        self.model = model or AIConfig.MODEL
        self.max_tokens = AIConfig.MAX_TOKENS
        self.rate_limit_delay = AIConfig.RATE_LIMIT_DELAY
        self.last_request_time = 0.0

    def _rate_limit(self):
        """Implement rate limiting."""
        current_time = time.time()
        time_since_last = current_time - self.last_request_time
        if time_since_last < self.rate_limit_delay:
            time.sleep(self.rate_limit_delay - time_since_last)
        self.last_request_time = time.time()

    def analyze(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Send a prompt to Claude and get response.

        A rate-limited request is retried once after a pause; any other
        failure propagates to the caller.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt

        Returns:
            Claude's response text
        """
        self._rate_limit()

        create_params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            create_params["system"] = system_prompt

        try:
            response = self.client.messages.create(**create_params)
        except Exception as e:
            error_str = str(e)
            if "429" not in error_str and "rate_limit" not in error_str.lower():
                raise
            logger.warning(
                "  [CLAUDE] Rate limit exceeded. Waiting %.0f seconds before retry...",
                AIConfig.RATE_LIMIT_RETRY_WAIT
            )
            time.sleep(AIConfig.RATE_LIMIT_RETRY_WAIT)
            response = self.client.messages.create(**create_params)

        return response.content[0].text

    def __call__(self, prompt: str) -> str:
        return self.analyze(prompt, system_prompt=SYSTEM_PROMPT)


SYSTEM_PROMPT = """You are an expert test automation analyst.
Analyze clusters of duplicated manual and automated test cases and describe
the workflows they share. Answer with JSON only, no prose."""

"""
AI Gateway client - chat completions over the hosted gateway
OpenAI-style API: POST messages, read choices[0].message.content
"""
from typing import List, Optional, Dict
import logging

import requests

from geopulse.core.config import Settings
from geopulse.core.exceptions import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)


class AIGatewayClient:
    """
    Thin client for the chat-completion gateway.
    Raises on any failure; callers decide whether the call is optional.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.url = settings.AI_GATEWAY_URL
        self.api_key = settings.AI_GATEWAY_API_KEY
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Send a chat prompt and return the generated text.

        Args:
            messages: [{"role": ..., "content": ...}, ...]
            model: Gateway model id, e.g. google/gemini-2.5-flash
            temperature: Optional sampling temperature
            max_tokens: Optional completion length cap

        Returns:
            str: Content of the first choice

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamServiceError: On network errors, non-2xx status or a reply without content
        """
        if not self.api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY not configured")

        payload = {"model": model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens

        try:
            response = self.session.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"AI gateway request failed: {e}")
            raise UpstreamServiceError(f"AI API request failed: {e}") from e

        if not response.ok:
            logger.error(f"AI API error: {response.status_code} {response.text[:500]}")
            raise UpstreamServiceError(f"AI API error: {response.status_code}")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamServiceError("AI API returned an unexpected response") from e

        if not isinstance(content, str) or not content.strip():
            raise UpstreamServiceError("AI API returned an empty completion")

        return content

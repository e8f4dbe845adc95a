"""Client for OpenAI-compatible chat completion endpoints."""
import json
from typing import Dict, List, Optional

import requests
from requests.exceptions import RequestException

from ..config.manager import ApiConfig
from ..utils.cancellation import CancellationToken
from ..utils.exceptions import ApiError
from ..utils.logger import get_logger

logger = get_logger()


class CompletionClient:
    """Sends one chat completion request per call; no retries."""

    def __init__(self, config: ApiConfig, session: Optional[requests.Session] = None):
        """
        Initialize completion client.

        Args:
            config: API endpoint, key and model
            session: HTTP session to reuse; a new one is created if omitted
        """
        self.config = config
        self.session = session or requests.Session()

    def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> str:
        """
        Submit ``messages`` and return the assistant reply text.

        Args:
            messages: Ordered list of {"role", "content"} dicts
            temperature: Sampling temperature (config default if None)
            max_tokens: Output length cap (config default if None)
            cancel_token: Checked before transmitting, after the body
                arrives and before decoding it

        Returns:
            Content of choices[0].message.content

        Raises:
            ApiError: transport failure, non-2xx status, error payload or
                missing content
            CancellationError: cancel_token was signalled at a checkpoint
        """
        token = cancel_token or CancellationToken()

        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature if temperature is None else temperature,
            "max_tokens": self.config.max_tokens if max_tokens is None else max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

        logger.debug(
            f"Completion request to {self.config.endpoint}: model={self.config.model}, "
            f"{len(messages)} messages"
        )

        token.raise_if_cancelled("before transmitting")
        try:
            response = self.session.post(
                self.config.endpoint,
                data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                headers=headers
            )
        except RequestException as e:
            token.raise_if_cancelled("after transport failure")
            logger.error(f"Completion request failed: {e}")
            raise ApiError(f"Request to completion API failed: {e}") from e

        body = response.text
        token.raise_if_cancelled("after receiving response")
        logger.debug(f"Completion response: status={response.status_code}, {len(body)} chars")

        token.raise_if_cancelled("before parsing")
        return self._extract_content(response.status_code, body)

    @staticmethod
    def _extract_content(status_code: int, body: str) -> str:
        """Pull choices[0].message.content out of a response body."""
        try:
            data = json.loads(body) if body else None
        except json.JSONDecodeError:
            data = None

        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            message = data["error"].get("message") or "Unknown error"
            raise ApiError(f"API error (HTTP {status_code}): {message}")

        if not 200 <= status_code < 300:
            raise ApiError(f"API returned HTTP {status_code}: {body[:200]}")

        if not isinstance(data, dict):
            raise ApiError("API returned a non-JSON response")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if content is None:
            raise ApiError("The content cannot be obtained from the API response")
        return str(content)

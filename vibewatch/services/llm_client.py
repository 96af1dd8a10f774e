"""
Language Model Client

Calls an OpenAI-compatible chat completions endpoint and decodes a
JSON object from the reply.

The output is untrusted: every failure (no key, transport error,
non-200, malformed JSON, non-object JSON) decodes to None so callers
can substitute their static default.
"""

import json
from typing import Any, Dict, Optional
import httpx

from ..config import get_settings
from ..core.logging import get_logger

logger = get_logger(__name__)


class LLMClient:
    """JSON-in / JSON-out language model client."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
    ):
        settings = get_settings()
        self.http = http
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.openai_model
        self.timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    async def complete_json(self, system: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Send a system instruction plus a JSON user payload.

        Returns:
            Decoded JSON object, or None when unavailable/unparsable
        """
        if not self.is_available:
            return None

        body = {
            "model": self.model,
            "response_format": {"type": "json_object"},
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": json.dumps(payload, default=str)},
            ],
        }

        try:
            response = await self.http.post(
                f"{self.base_url}/chat/completions",
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("llm_request_failed", error=str(e))
            return None

        if response.status_code != 200:
            logger.warning("llm_bad_status", status=response.status_code)
            return None

        try:
            text = response.json()["choices"][0]["message"]["content"]
            parsed = json.loads(text)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("llm_unparsable_output", error=str(e))
            return None

        if not isinstance(parsed, dict):
            logger.warning("llm_non_object_output", kind=type(parsed).__name__)
            return None
        return parsed

from __future__ import annotations
import time
from typing import Any, Dict, Optional

import httpx

from ..constants import (
    APP_VERSION,
    CHAT_COMPLETIONS_PATH,
    DIRECT_BACKEND_NAME,
    DIRECT_TIMEOUT_S,
    PRODUCT_NAME,
)
from ..errors import AiServiceError
from .types import ChatCompletionRequest, ChatCompletionResult, EndpointConfig


def build_headers(config: EndpointConfig, version: str = APP_VERSION) -> Dict[str, str]:
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
        "User-Agent": f"{PRODUCT_NAME}/{version}",
    }
    if config.model:
        headers["X-Model"] = config.model
    return headers


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    msg = data.get("message")
    if isinstance(msg, str) and msg:
        return msg
    # OpenAI-style {"error": {"message": ...}}
    err = data.get("error")
    if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
        return err["message"]
    return None


def extract_content(data: Any) -> Optional[str]:
    """choices[0].message.content, or None when any step of the path is missing."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class DirectEndpointClient:
    """OpenAI-compatible chat-completion endpoint behind one long-lived httpx client."""

    def __init__(
        self,
        config: EndpointConfig,
        *,
        version: str = APP_VERSION,
        timeout: float = DIRECT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.headers = build_headers(config, version)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}{CHAT_COMPLETIONS_PATH}"

    async def create(self, req: ChatCompletionRequest) -> ChatCompletionResult:
        t0 = time.perf_counter()
        try:
            r = await self._client.post(CHAT_COMPLETIONS_PATH, json=req.to_payload())
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AiServiceError(
                DIRECT_BACKEND_NAME,
                e.response.status_code,
                _server_message(e.response) or f"Request failed with status code {e.response.status_code}",
            ) from e
        except httpx.HTTPError as e:
            raise AiServiceError(DIRECT_BACKEND_NAME, None, str(e) or type(e).__name__) from e
        latency_ms = int((time.perf_counter() - t0) * 1000)
        try:
            data = r.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return ChatCompletionResult(extract_content(data), r.status_code, latency_ms, data)

    async def aclose(self) -> None:
        await self._client.aclose()

from __future__ import annotations
import logging
import time
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..constants import PRODUCT_NAME, VENDOR_DEFAULT_BASE_URL, VENDOR_TIMEOUT_S
from ..errors import AssistantClientError
from ..logging_utils import level_from_name, log_event
from .types import (
    ApplySuggestionRequest,
    ApplySuggestionResponse,
    AskRequest,
    AskResponse,
    ChatRequest,
    ChatResponse,
    CreditsResponse,
)

M = TypeVar("M", bound=BaseModel)

TOKEN_REFRESH_MARGIN_S = 30.0


class AiAssistantClient:
    """Client for the vendor-managed AI assistant service.

    Authenticates by exchanging the license certificate for a bearer token on
    first use, then calls the assistant endpoints with the caller's user id.
    The token is kept for the lifetime of the client (or until it expires).
    """

    def __init__(
        self,
        *,
        license_cert: str,
        consumer_id: str,
        version: str,
        base_url: str = "",
        log_level: str = "info",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.license_cert = license_cert
        self.consumer_id = consumer_id
        self.version = version
        self.base_url = (base_url or VENDOR_DEFAULT_BASE_URL).rstrip("/")
        self.log_level = level_from_name(log_level)
        self._token: Optional[str] = None
        self._token_expires_at: Optional[float] = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Content-Type": "application/json",
                f"x-{PRODUCT_NAME}-version": version,
                "x-consumer-id": consumer_id,
            },
            timeout=VENDOR_TIMEOUT_S,
            transport=transport,
        )

    def _log(self, event: str, level: int, **fields: Any) -> None:
        if level >= self.log_level:
            log_event(event, level=level, backend="vendor", **fields)

    @staticmethod
    def _raise_for_status(r: httpx.Response) -> None:
        if r.is_success:
            return
        message = r.text or r.reason_phrase
        try:
            data = r.json()
            if isinstance(data, dict) and isinstance(data.get("message"), str):
                message = data["message"]
        except ValueError:
            pass
        raise AssistantClientError(r.status_code, message)

    async def _send(self, path: str, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        try:
            r = await self._client.post(path, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise AssistantClientError(None, str(e) or type(e).__name__) from e
        self._raise_for_status(r)
        try:
            return r.json()
        except ValueError as e:
            raise AssistantClientError(r.status_code, f"invalid JSON in response from {path}") from e

    async def _access_token(self) -> str:
        if self._token and (self._token_expires_at is None or time.time() < self._token_expires_at):
            return self._token
        data = await self._send("/auth/token", {"licenseCert": self.license_cert})
        token = data.get("accessToken") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AssistantClientError(None, "token response carried no accessToken")
        expires_in = data.get("expiresIn")
        try:
            lifetime = float(expires_in) if expires_in is not None else 0.0
        except (TypeError, ValueError):
            lifetime = 0.0
        self._token = token
        if lifetime > 0:
            # refresh early, but never by more than half the lifetime
            self._token_expires_at = time.time() + lifetime - min(TOKEN_REFRESH_MARGIN_S, lifetime / 2)
        else:
            self._token_expires_at = None
        self._log("ai_vendor_token_acquired", logging.DEBUG, expires_in=expires_in)
        return self._token

    async def _post(self, path: str, body: Dict[str, Any], user: Dict[str, str], model: Type[M]) -> M:
        token = await self._access_token()
        self._log("ai_vendor_request", logging.DEBUG, path=path, user_id=user.get("id"))
        data = await self._send(
            path,
            body,
            headers={"Authorization": f"Bearer {token}", "x-user-id": str(user.get("id", ""))},
        )
        try:
            return model.model_validate(data)
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            raise AssistantClientError(None, f"unexpected response shape from {path}: {e}") from e

    async def chat(self, payload: ChatRequest, user: Dict[str, str]) -> ChatResponse:
        return await self._post("/v1/chat", payload.model_dump(by_alias=True, exclude_none=True), user, ChatResponse)

    async def apply_suggestion(self, payload: ApplySuggestionRequest, user: Dict[str, str]) -> ApplySuggestionResponse:
        return await self._post(
            "/v1/chat/apply-suggestion",
            payload.model_dump(by_alias=True, exclude_none=True),
            user,
            ApplySuggestionResponse,
        )

    async def ask_ai(self, payload: AskRequest, user: Dict[str, str]) -> AskResponse:
        return await self._post("/v1/ask-ai", payload.model_dump(by_alias=True, exclude_none=True), user, AskResponse)

    async def generate_ai_credits_credentials(self, user: Dict[str, str]) -> CreditsResponse:
        return await self._post("/v1/cli/ai-credits", {}, user, CreditsResponse)

    async def aclose(self) -> None:
        await self._client.aclose()

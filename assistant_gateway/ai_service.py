"""Workflow-assistant operations over whichever backend the selector picked.

Direct endpoint mode translates each operation into one chat-completion call
and maps the first choice back into the operation's response shape. Vendor
mode hands the request to the assistant client and returns what it returns.
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, List, Optional

from .config import GlobalConfig
from .constants import DEFAULT_MODEL, NO_RESPONSE_TEXT
from .errors import AiServiceError, AssistantSetupError
from .license import License
from .logging_utils import extract_http_error_context, log_event
from .prompts import apply_suggestion_messages, ask_messages, chat_messages
from .providers.assistant import AiAssistantClient
from .providers.selector import BackendSelector
from .providers.types import (
    ActiveBackend,
    ApplySuggestionRequest,
    ApplySuggestionResponse,
    AskRequest,
    AskResponse,
    BackendMode,
    ChatCompletionRequest,
    ChatCompletionResult,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    CreditsResponse,
    DirectEndpointBackend,
    User,
    VendorManagedBackend,
)

_FENCE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.S)


def parse_parameters(content: Optional[str]) -> Dict[str, Any]:
    """JSON object from model output; {} when absent, unparsable or not an object."""
    if not content:
        return {}
    text = content.strip()
    m = _FENCE.match(text)
    if m:
        text = m.group(1).strip()
    try:
        data = json.loads(text)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class AiService:
    def __init__(
        self,
        config: GlobalConfig,
        license: License,
        *,
        selector: Optional[BackendSelector] = None,
    ) -> None:
        self.selector = selector or BackendSelector(config, license)

    @property
    def mode(self) -> Optional[BackendMode]:
        return self.selector.mode

    async def init(self) -> ActiveBackend:
        return await self.selector.ensure_initialized()

    @staticmethod
    def _vendor(backend: ActiveBackend) -> AiAssistantClient:
        if not isinstance(backend, VendorManagedBackend):
            raise AssistantSetupError()
        return backend.client

    async def _complete(
        self,
        operation: str,
        backend: DirectEndpointBackend,
        messages: List[Dict[str, str]],
        user: User,
    ) -> ChatCompletionResult:
        req = ChatCompletionRequest(
            model=backend.config.model or DEFAULT_MODEL,
            messages=messages,
            user=user.id,
        )
        log_event(
            "ai_request_dispatched",
            operation=operation,
            mode=backend.mode.value,
            url=backend.client.url,
            model=req.model,
            user_id=user.id,
        )
        try:
            result = await backend.client.create(req)
        except AiServiceError as e:
            ctx = extract_http_error_context(e.__cause__) if e.__cause__ is not None else {}
            log_event(
                "ai_request_failed",
                level=logging.ERROR,
                operation=operation,
                mode=backend.mode.value,
                status=e.status,
                message=e.message,
                **ctx,
            )
            raise
        log_event(
            "ai_response_received",
            operation=operation,
            status=result.status,
            latency_ms=result.latency_ms,
            has_content=result.content is not None,
        )
        return result

    async def _delegate(self, operation: str, backend: ActiveBackend, user: User, call):
        client = self._vendor(backend)
        log_event("ai_request_dispatched", operation=operation, mode=BackendMode.VENDOR_MANAGED.value, user_id=user.id)
        try:
            return await call(client)
        except Exception as e:
            log_event(
                "ai_request_failed",
                level=logging.ERROR,
                operation=operation,
                mode=BackendMode.VENDOR_MANAGED.value,
                error_type=type(e).__name__,
                message=str(e),
            )
            raise

    async def chat(self, payload: ChatRequest, user: User) -> ChatResponse:
        backend = await self.selector.ensure_initialized()
        if isinstance(backend, DirectEndpointBackend):
            result = await self._complete("chat", backend, chat_messages(payload), user)
            return ChatResponse(
                session_id=payload.session_id,
                messages=[
                    ChatMessage(role="assistant", type="message", text=result.content or NO_RESPONSE_TEXT),
                ],
            )
        return await self._delegate("chat", backend, user, lambda c: c.chat(payload, user.ref()))

    async def apply_suggestion(self, payload: ApplySuggestionRequest, user: User) -> ApplySuggestionResponse:
        backend = await self.selector.ensure_initialized()
        if isinstance(backend, DirectEndpointBackend):
            result = await self._complete("apply_suggestion", backend, apply_suggestion_messages(payload), user)
            return ApplySuggestionResponse(
                session_id=payload.session_id,
                parameters=parse_parameters(result.content),
            )
        return await self._delegate(
            "apply_suggestion", backend, user, lambda c: c.apply_suggestion(payload, user.ref())
        )

    async def ask_ai(self, payload: AskRequest, user: User) -> AskResponse:
        backend = await self.selector.ensure_initialized()
        if isinstance(backend, DirectEndpointBackend):
            result = await self._complete("ask_ai", backend, ask_messages(payload), user)
            return AskResponse(answer=result.content or NO_RESPONSE_TEXT, code="")
        return await self._delegate("ask_ai", backend, user, lambda c: c.ask_ai(payload, user.ref()))

    async def create_free_ai_credits(self, user: User) -> CreditsResponse:
        # vendor only: there is no direct-endpoint translation for credits
        backend = await self.selector.ensure_initialized()
        return await self._delegate(
            "create_free_ai_credits", backend, user, lambda c: c.generate_ai_credits_credentials(user.ref())
        )

    async def aclose(self) -> None:
        await self.selector.aclose()

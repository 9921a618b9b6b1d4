import asyncio
import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from assistant_gateway.ai_service import AiService
from assistant_gateway.config import AiAssistantConfig, GlobalConfig
from assistant_gateway.providers.direct import DirectEndpointClient
from assistant_gateway.providers.selector import BackendSelector


class FakeLicense:
    def __init__(self, enabled: bool = False, cert: str = "cert-123", consumer_id: str = "consumer-1") -> None:
        self.enabled = enabled
        self.cert = cert
        self.consumer_id = consumer_id
        self.cert_loads = 0

    def is_ai_assistant_enabled(self) -> bool:
        return self.enabled

    async def load_cert_str(self) -> str:
        self.cert_loads += 1
        await asyncio.sleep(0)
        return self.cert

    def get_consumer_id(self) -> str:
        return self.consumer_id


def completion(content: Any) -> Dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def direct_config(model: str = "") -> GlobalConfig:
    return GlobalConfig(ai_assistant=AiAssistantConfig(base_url="http://llm.local", api_key="sk-test", model=model))


@pytest.fixture
def fake_license():
    return FakeLicense()


@pytest.fixture
def make_direct_service():
    """Build an AiService in direct-endpoint mode whose HTTP calls go to `handler`.

    Returns (service, seen) where `seen` collects every outbound httpx.Request.
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response], model: str = ""):
        seen: List[httpx.Request] = []

        def wrapped(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        config = direct_config(model)
        lic = FakeLicense()
        selector = BackendSelector(
            config,
            lic,
            environ={},
            direct_factory=lambda cfg: DirectEndpointClient(cfg, transport=httpx.MockTransport(wrapped)),
        )
        return AiService(config, lic, selector=selector), seen

    return _make


def body_of(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content)

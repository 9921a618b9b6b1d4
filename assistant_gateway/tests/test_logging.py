import json
import logging

import httpx
import pytest

from assistant_gateway.ai_service import AiService
from assistant_gateway.config import GlobalConfig
from assistant_gateway.errors import AiServiceError
from assistant_gateway.logging_utils import LOGGER_NAME, level_from_name
from assistant_gateway.providers.assistant import AiAssistantClient
from assistant_gateway.providers.selector import BackendSelector
from assistant_gateway.providers.types import ChatRequest, User
from conftest import FakeLicense, completion


def _events(caplog):
    return [json.loads(r.getMessage()) for r in caplog.records if r.name == LOGGER_NAME]


@pytest.mark.asyncio
async def test_direct_mode_events_and_no_api_key(make_direct_service, caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    responses = iter([
        httpx.Response(200, json=completion("hi")),
        httpx.Response(500, json={"message": "boom"}),
    ])
    svc, _ = make_direct_service(lambda req: next(responses))

    await svc.chat(ChatRequest(session_id="s", payload={}), User(id="u1"))
    with pytest.raises(AiServiceError):
        await svc.chat(ChatRequest(session_id="s", payload={}), User(id="u1"))

    events = _events(caplog)
    names = [e["event"] for e in events]
    assert names.count("ai_backend_selected") == 1
    assert names.count("ai_request_dispatched") == 2
    assert "ai_response_received" in names
    failed = [e for e in events if e["event"] == "ai_request_failed"]
    assert failed[0]["status"] == 500
    assert failed[0]["message"] == "boom"
    selected = next(e for e in events if e["event"] == "ai_backend_selected")
    assert selected["mode"] == "direct_endpoint"
    assert selected["api_key_source"] == {"config": True, "env": False}

    for record in caplog.records:
        assert "sk-test" not in record.getMessage()


@pytest.mark.asyncio
async def test_vendor_mode_never_logs_license_cert(caplog):
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

    def handler(request):
        if request.url.path == "/auth/token":
            return httpx.Response(200, json={"accessToken": "secret-token", "expiresIn": 3600})
        return httpx.Response(200, json={"sessionId": "s", "messages": []})

    lic = FakeLicense(cert="LICENSE-CERT-BODY")
    config = GlobalConfig()
    config.logging.level = "debug"
    sel = BackendSelector(
        config, lic, environ={},
        assistant_factory=lambda **kw: AiAssistantClient(transport=httpx.MockTransport(handler), **kw),
    )
    svc = AiService(config, lic, selector=sel)
    await svc.chat(ChatRequest(session_id="s", payload={}), User(id="u1"))
    await svc.aclose()

    names = [e["event"] for e in _events(caplog)]
    assert "ai_backend_selected" in names
    assert "ai_assistant_unlicensed" in names
    assert "ai_vendor_token_acquired" in names
    for record in caplog.records:
        message = record.getMessage()
        assert "LICENSE-CERT-BODY" not in message
        assert "secret-token" not in message


def test_level_names():
    assert level_from_name("warn") == logging.WARNING
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name(None) == logging.INFO
    assert level_from_name("silent") > logging.CRITICAL

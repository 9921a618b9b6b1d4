import os

import pytest

from assistant_gateway.config import AiAssistantConfig, GlobalConfig, load_env_file, resolve_endpoint_config
from assistant_gateway.license import EnvLicense


def test_from_env_reads_named_variables():
    cfg = GlobalConfig.from_env({
        "N8N_AI_ASSISTANT_BASE_URL": "http://llm.local",
        "N8N_AI_ASSISTANT_API_KEY": "sk",
        "N8N_AI_MODEL": "qwen",
        "N8N_LOG_LEVEL": "debug",
    })
    assert cfg.ai_assistant == AiAssistantConfig(base_url="http://llm.local", api_key="sk", model="qwen")
    assert cfg.logging.level == "debug"


def test_from_env_defaults():
    cfg = GlobalConfig.from_env({})
    assert cfg.ai_assistant.base_url == ""
    assert cfg.logging.level == "info"


def test_structured_config_wins_over_env():
    cfg = GlobalConfig(ai_assistant=AiAssistantConfig(base_url="http://cfg", api_key="", model="cfg-model"))
    env = {"N8N_AI_ASSISTANT_BASE_URL": "http://env", "N8N_AI_ASSISTANT_API_KEY": "sk-env", "N8N_AI_MODEL": "env-model"}
    ep = resolve_endpoint_config(cfg, env)
    assert ep.base_url == "http://cfg"
    assert ep.api_key == "sk-env"
    assert ep.model == "cfg-model"
    assert ep.is_valid


def test_empty_model_resolves_to_none():
    ep = resolve_endpoint_config(GlobalConfig(), {})
    assert ep.model is None
    assert not ep.is_valid


def test_load_env_file_does_not_override(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\nN8N_AI_MODEL=from-file\nN8N_AI_ASSISTANT_API_KEY=\"quoted\"\nBROKEN LINE\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("N8N_AI_MODEL", "from-env")
    monkeypatch.delenv("N8N_AI_ASSISTANT_API_KEY", raising=False)
    load_env_file(env_file)
    assert os.environ["N8N_AI_MODEL"] == "from-env"
    assert os.environ["N8N_AI_ASSISTANT_API_KEY"] == "quoted"
    monkeypatch.delenv("N8N_AI_ASSISTANT_API_KEY")


def test_load_env_file_missing_is_noop(tmp_path):
    load_env_file(tmp_path / "absent.env")


@pytest.mark.asyncio
async def test_env_license(tmp_path):
    cert = tmp_path / "license.cert"
    cert.write_text("FILE-CERT\n", encoding="utf-8")
    lic = EnvLicense({
        "N8N_AI_ASSISTANT_ENABLED": "true",
        "N8N_LICENSE_CERT_FILE": str(cert),
        "N8N_LICENSE_CONSUMER_ID": "cons",
    })
    assert lic.is_ai_assistant_enabled()
    assert await lic.load_cert_str() == "FILE-CERT"
    assert lic.get_consumer_id() == "cons"

    inline = EnvLicense({"N8N_LICENSE_CERT": "INLINE", "N8N_LICENSE_CERT_FILE": str(cert)})
    assert not inline.is_ai_assistant_enabled()
    assert await inline.load_cert_str() == "INLINE"
    assert await EnvLicense({}).load_cert_str() == ""

from __future__ import annotations
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .constants import ENV_API_KEY, ENV_BASE_URL, ENV_LOG_LEVEL, ENV_MODEL, REPO_ROOT
from .providers.types import EndpointConfig


class AiAssistantConfig(BaseModel):
    base_url: str = ""
    api_key: str = ""
    model: str = ""


class LoggingConfig(BaseModel):
    level: str = "info"


class GlobalConfig(BaseModel):
    ai_assistant: AiAssistantConfig = Field(default_factory=AiAssistantConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GlobalConfig":
        env = os.environ if environ is None else environ
        return cls(
            ai_assistant=AiAssistantConfig(
                base_url=env.get(ENV_BASE_URL, ""),
                api_key=env.get(ENV_API_KEY, ""),
                model=env.get(ENV_MODEL, ""),
            ),
            logging=LoggingConfig(level=env.get(ENV_LOG_LEVEL, "info")),
        )


def resolve_endpoint_config(config: GlobalConfig, environ: Optional[Mapping[str, str]] = None) -> EndpointConfig:
    """Structured config first, named env variable when the field is empty."""
    env = os.environ if environ is None else environ
    ai = config.ai_assistant
    model = ai.model or env.get(ENV_MODEL, "")
    return EndpointConfig(
        base_url=ai.base_url or env.get(ENV_BASE_URL, ""),
        api_key=ai.api_key or env.get(ENV_API_KEY, ""),
        model=model or None,
    )


def load_env_file(path: Optional[Path] = None) -> None:
    """Load KEY=VALUE lines from the repo-root .env without overriding the environment (dev convenience)."""
    env_path = path or (REPO_ROOT / ".env")
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        k = k.strip(); v = v.strip().strip('"').strip("'")
        if k and v and k not in os.environ:
            os.environ[k] = v

from __future__ import annotations
import asyncio
import os
from pathlib import Path
from typing import Mapping, Optional, Protocol


class License(Protocol):
    def is_ai_assistant_enabled(self) -> bool: ...

    async def load_cert_str(self) -> str: ...

    def get_consumer_id(self) -> str: ...


class EnvLicense:
    """License state taken from the process environment.

    N8N_LICENSE_CERT holds the certificate inline; N8N_LICENSE_CERT_FILE points
    at a file with it. The inline value wins when both are set.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._env = os.environ if environ is None else environ

    def is_ai_assistant_enabled(self) -> bool:
        return str(self._env.get("N8N_AI_ASSISTANT_ENABLED", "")).lower() in ("1", "true", "yes")

    async def load_cert_str(self) -> str:
        cert = self._env.get("N8N_LICENSE_CERT", "")
        if cert:
            return cert
        cert_file = self._env.get("N8N_LICENSE_CERT_FILE", "")
        if not cert_file:
            return ""
        path = Path(cert_file)
        if not path.exists():
            return ""
        return (await asyncio.to_thread(path.read_text, encoding="utf-8")).strip()

    def get_consumer_id(self) -> str:
        return self._env.get("N8N_LICENSE_CONSUMER_ID", "")

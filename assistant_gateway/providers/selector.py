from __future__ import annotations
import asyncio
import os
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from ..config import GlobalConfig, resolve_endpoint_config
from ..constants import APP_VERSION, ENV_API_KEY, ENV_BASE_URL
from ..license import License
from ..logging_utils import log_event
from .assistant import AiAssistantClient
from .direct import DirectEndpointClient
from .types import ActiveBackend, BackendMode, DirectEndpointBackend, EndpointConfig, VendorManagedBackend

DirectFactory = Callable[[EndpointConfig], DirectEndpointClient]
AssistantFactory = Callable[..., AiAssistantClient]


class BackendSelector:
    """Picks the backend on first use and owns the one client it builds.

    A usable endpoint config (base url + api key, from config or env) wins;
    otherwise the vendor assistant client is built from license state. The
    choice is made once and kept until reset().
    """

    def __init__(
        self,
        config: GlobalConfig,
        license: License,
        *,
        version: str = APP_VERSION,
        environ: Optional[Mapping[str, str]] = None,
        direct_factory: Optional[DirectFactory] = None,
        assistant_factory: Optional[AssistantFactory] = None,
    ) -> None:
        self.config = config
        self.license = license
        self.version = version
        self._environ = environ
        self._direct_factory = direct_factory or (lambda cfg: DirectEndpointClient(cfg, version=self.version))
        self._assistant_factory = assistant_factory or AiAssistantClient
        self._backend: Optional[ActiveBackend] = None
        self._lock = asyncio.Lock()

    @property
    def backend(self) -> Optional[ActiveBackend]:
        return self._backend

    @property
    def mode(self) -> Optional[BackendMode]:
        return self._backend.mode if self._backend is not None else None

    async def ensure_initialized(self) -> ActiveBackend:
        if self._backend is not None:
            return self._backend
        async with self._lock:
            if self._backend is None:
                self._backend = await self._select()
        return self._backend

    def _presence(self, field: str, env_name: str) -> Dict[str, bool]:
        env = os.environ if self._environ is None else self._environ
        return {"config": bool(getattr(self.config.ai_assistant, field)), "env": bool(env.get(env_name))}

    async def _select(self) -> ActiveBackend:
        endpoint = resolve_endpoint_config(self.config, self._environ)
        licensed = self.license.is_ai_assistant_enabled()
        if not licensed:
            # observed, not enforced
            log_event("ai_assistant_unlicensed", level=logging.WARNING, proceeding=True)

        common: Dict[str, Any] = {
            "base_url": endpoint.base_url or None,
            "model": endpoint.model,
            "base_url_source": self._presence("base_url", ENV_BASE_URL),
            "api_key_source": self._presence("api_key", ENV_API_KEY),
            "licensed": licensed,
        }

        if endpoint.is_valid:
            client = self._direct_factory(endpoint)
            log_event("ai_backend_selected", mode=BackendMode.DIRECT_ENDPOINT.value, **common)
            return DirectEndpointBackend(client=client, config=endpoint)

        license_cert = await self.license.load_cert_str()
        consumer_id = self.license.get_consumer_id()
        vendor = self._assistant_factory(
            license_cert=license_cert,
            consumer_id=consumer_id,
            version=self.version,
            base_url=endpoint.base_url,
            log_level=self.config.logging.level,
        )
        log_event(
            "ai_backend_selected",
            mode=BackendMode.VENDOR_MANAGED.value,
            has_license_cert=bool(license_cert),
            consumer_id=consumer_id or None,
            **common,
        )
        return VendorManagedBackend(client=vendor)

    async def reset(self) -> None:
        """Drop the active client; the next call re-reads config and selects again."""
        async with self._lock:
            backend, self._backend = self._backend, None
        if backend is not None:
            await backend.client.aclose()
            log_event("ai_backend_reset", mode=backend.mode.value)

    async def aclose(self) -> None:
        """Close the active client; a later call selects and builds a fresh one."""
        async with self._lock:
            backend, self._backend = self._backend, None
        if backend is not None:
            await backend.client.aclose()

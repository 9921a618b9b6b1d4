from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from .assistant import AiAssistantClient
    from .direct import DirectEndpointClient


class BackendMode(str, Enum):
    VENDOR_MANAGED = "vendor_managed"
    DIRECT_ENDPOINT = "direct_endpoint"


@dataclass(frozen=True)
class EndpointConfig:
    base_url: str
    api_key: str
    model: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return bool(self.base_url) and bool(self.api_key)


@dataclass(frozen=True)
class User:
    id: str
    email: Optional[str] = None

    def ref(self) -> Dict[str, str]:
        return {"id": self.id}


@dataclass(frozen=True)
class VendorManagedBackend:
    client: "AiAssistantClient"
    mode: BackendMode = field(default=BackendMode.VENDOR_MANAGED, init=False)


@dataclass(frozen=True)
class DirectEndpointBackend:
    client: "DirectEndpointClient"
    config: EndpointConfig
    mode: BackendMode = field(default=BackendMode.DIRECT_ENDPOINT, init=False)


# None stands for "not initialized yet"
ActiveBackend = Union[VendorManagedBackend, DirectEndpointBackend]


@dataclass
class ChatCompletionRequest:
    model: str
    messages: List[Dict[str, str]]  # [{role, content}]
    user: str
    stream: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": self.messages,
            "stream": self.stream,
            "user": self.user,
        }


@dataclass
class ChatCompletionResult:
    content: Optional[str]
    status: int
    latency_ms: int
    raw: Dict[str, Any]


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_WireModel):
    session_id: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class ApplySuggestionRequest(_WireModel):
    session_id: str
    suggestion_id: str


class AskRequest(_WireModel):
    question: str
    context: Dict[str, Any] = Field(default_factory=dict)
    for_node: str


class _VendorShaped(_WireModel):
    # vendor responses carry fields we don't model; keep them
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class ChatMessage(_VendorShaped):
    role: str
    type: str
    text: Optional[str] = None


class ChatResponse(_VendorShaped):
    session_id: Optional[str] = None
    messages: List[ChatMessage] = Field(default_factory=list)


class ApplySuggestionResponse(_VendorShaped):
    session_id: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)


class AskResponse(_VendorShaped):
    answer: str = ""
    code: str = ""


class CreditsResponse(_VendorShaped):
    api_key: Optional[str] = None
    url: Optional[str] = None

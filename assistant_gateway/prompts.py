from __future__ import annotations
import json
from typing import Any, Dict, List

from .constants import PRODUCT_NAME
from .providers.types import ApplySuggestionRequest, AskRequest, ChatRequest

APPLY_SUGGESTION_SYSTEM = (
    f"You are an AI assistant helping to apply code suggestions in {PRODUCT_NAME} workflows. "
    "Apply the requested suggestion and return the updated parameters."
)

ASK_SYSTEM = (
    f"You are an AI assistant helping with {PRODUCT_NAME} workflow automation. "
    "Answer the user's question about their workflow or code."
)


def _compact(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def _wire(req: Any) -> Dict[str, Any]:
    return req.model_dump(by_alias=True, exclude_none=True)


def chat_messages(req: ChatRequest) -> List[Dict[str, str]]:
    return [{"role": "user", "content": _compact(_wire(req))}]


def apply_suggestion_messages(req: ApplySuggestionRequest) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": APPLY_SUGGESTION_SYSTEM},
        {"role": "user", "content": f"Apply suggestion: {_compact(_wire(req))}"},
    ]


def ask_messages(req: AskRequest) -> List[Dict[str, str]]:
    context = json.dumps(req.context, ensure_ascii=False, indent=2)
    return [
        {"role": "system", "content": ASK_SYSTEM},
        {
            "role": "user",
            "content": f"Question: {req.question}\n\nContext: {context}\n\nFor node: {req.for_node}",
        },
    ]

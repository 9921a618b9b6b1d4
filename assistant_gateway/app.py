from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .ai_service import AiService
from .config import GlobalConfig, load_env_file
from .constants import APP_VERSION
from .errors import AiServiceError, AssistantClientError, AssistantSetupError
from .license import EnvLicense
from .logging_utils import setup_logging
from .providers.types import (
    ApplySuggestionRequest,
    ApplySuggestionResponse,
    AskRequest,
    AskResponse,
    ChatRequest,
    ChatResponse,
    CreditsResponse,
    User,
)

# Load .env from repo root (dev convenience)
load_env_file()


class Health(BaseModel):
    status: str


class VersionInfo(BaseModel):
    version: str
    mode: Optional[str] = None
    ai_assistant_licensed: bool


def build_service() -> AiService:
    config = GlobalConfig.from_env()
    setup_logging(config.logging.level)
    return AiService(config, EnvLicense())


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.ai.aclose()


app = FastAPI(title="AI Assistant Gateway", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.ai = build_service()


def _user(user_id: Optional[str]) -> User:
    if not user_id:
        raise HTTPException(status_code=400, detail="X-User-Id header required")
    return User(id=user_id)


async def _run(coro):
    try:
        return await coro
    except AssistantSetupError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except (AiServiceError, AssistantClientError) as e:
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/health", response_model=Health)
async def health():
    return Health(status="ok")


@app.get("/version", response_model=VersionInfo)
async def version():
    svc: AiService = app.state.ai
    mode = svc.mode
    return VersionInfo(
        version=APP_VERSION,
        mode=mode.value if mode is not None else None,
        ai_assistant_licensed=svc.selector.license.is_ai_assistant_enabled(),
    )


@app.post("/ai/chat", response_model=ChatResponse)
async def ai_chat(body: ChatRequest, x_user_id: Optional[str] = Header(default=None)):
    user = _user(x_user_id)
    return await _run(app.state.ai.chat(body, user))


@app.post("/ai/chat/apply-suggestion", response_model=ApplySuggestionResponse)
async def ai_apply_suggestion(body: ApplySuggestionRequest, x_user_id: Optional[str] = Header(default=None)):
    user = _user(x_user_id)
    return await _run(app.state.ai.apply_suggestion(body, user))


@app.post("/ai/ask-ai", response_model=AskResponse)
async def ai_ask(body: AskRequest, x_user_id: Optional[str] = Header(default=None)):
    user = _user(x_user_id)
    return await _run(app.state.ai.ask_ai(body, user))


@app.post("/ai/free-credits", response_model=CreditsResponse)
async def ai_free_credits(x_user_id: Optional[str] = Header(default=None)):
    user = _user(x_user_id)
    return await _run(app.state.ai.create_free_ai_credits(user))

from __future__ import annotations
from pathlib import Path

PRODUCT_NAME = "n8n"
APP_VERSION = "1.0.0"

REPO_ROOT = Path(__file__).resolve().parents[1]

# Env fallbacks for the structured ai_assistant config
ENV_BASE_URL = "N8N_AI_ASSISTANT_BASE_URL"
ENV_API_KEY = "N8N_AI_ASSISTANT_API_KEY"
ENV_MODEL = "N8N_AI_MODEL"
ENV_LOG_LEVEL = "N8N_LOG_LEVEL"

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"
DIRECT_TIMEOUT_S = 30.0
DIRECT_BACKEND_NAME = "Custom AI service"
NO_RESPONSE_TEXT = "No response from AI service"

VENDOR_DEFAULT_BASE_URL = "https://ai-assistant.n8n.io"
VENDOR_TIMEOUT_S = 60.0

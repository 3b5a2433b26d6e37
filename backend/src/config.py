"""Configuration for LLM Compare."""

import os
import json
from dotenv import load_dotenv

# Load local env files if present (never commit these).
# - `.env.local` is convenient for local dev.
# - `.env` is the default for docker-compose variable substitution.
load_dotenv(dotenv_path=".env.local", override=False)
load_dotenv(dotenv_path=".env", override=False)

# Environment name (used for warnings/behavior toggles)
ENV = os.getenv("ENV", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OpenRouter API key. Absence is a ConfigurationError at query time, not at import.
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")

# OpenRouter API endpoint
OPENROUTER_API_URL = os.getenv("OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions")

# Site identification headers sent with every upstream call.
SITE_URL = os.getenv("SITE_URL") or os.getenv("NEXT_PUBLIC_SITE_URL") or "http://localhost:3000"
APP_TITLE = os.getenv("APP_TITLE", "OpenRouter LLM Tester")

# httpx connection pool size for the shared client.
OPENROUTER_MAX_CONCURRENCY = int(os.getenv("OPENROUTER_MAX_CONCURRENCY", "8"))


def _parse_optional_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if parsed > 0 else None


# Unset means no timeout: a hung upstream call leaves its endpoint pending.
OPENROUTER_TIMEOUT_SECONDS = _parse_optional_float(os.getenv("OPENROUTER_TIMEOUT_SECONDS"))

# Optional catalog override (JSON list).
# Example:
# [
#   {"id": "openai/gpt-4o", "name": "GPT-4o", "provider": "OpenAI", "color": "#10B981"}
# ]
COMPARE_MODELS_JSON = os.getenv("COMPARE_MODELS_JSON")
COMPARE_MODELS: list[dict[str, str]] | None = json.loads(COMPARE_MODELS_JSON) if COMPARE_MODELS_JSON else None


def _parse_csv_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [v.strip() for v in value.split(",")]
    items = [v for v in items if v]
    return items or None


def cors_allow_origins() -> list[str]:
    configured = _parse_csv_list(os.getenv("CORS_ALLOW_ORIGINS"))
    if configured:
        return configured
    if ENV == "production":
        return [SITE_URL]
    return ["*"]

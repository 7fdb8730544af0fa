"""medialab_providers.config.defaults
===================================

Central place for small, stable default values used across the
medialab_providers package and its service layer. Values here can be
overridden through the settings loader (environment or config file) but
provide sensible fallbacks for local development and tests.

Only plain constants live here. This module imports nothing from other
medialab_providers packages to avoid circular dependencies.
"""

from __future__ import annotations

# ---- Service / HTTP layer ----

# Comma-separated list of allowed origins for the dev server.
SERVICE_CORS_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
SERVICE_DEFAULT_HOST = "127.0.0.1"
SERVICE_DEFAULT_PORT = 8091
# Header carrying the authenticated user id supplied by the upstream auth layer.
USER_ID_HEADER = "X-User-Id"
# Seconds the service waits for in-flight generations on shutdown.
SERVICE_SHUTDOWN_GRACE_SECONDS = 30.0

# Public URL of the application; sent to OpenRouter as the referer.
APP_DEFAULT_URL = "http://localhost:3000"
APP_TITLE = "AI Media Lab"


# ---- Routing ----
ROUTER_DEFAULT_MAX_ATTEMPTS = 3
# Provider value stored on a generation when the caller did not pick one.
AUTO_PROVIDER = "auto"


# ---- Estimation ----
# Prompt tokens are approximated as ceil(len(prompt) / CHARS_PER_TOKEN).
CHARS_PER_TOKEN = 4
TOKENS_PER_PRICE_UNIT = 1_000_000


# ---- Provider base URLs ----
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_API_VERSION = "2023-06-01"
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
OPENROUTER_DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
FAL_DEFAULT_BASE_URL = "https://api.fal.ai"
NANO_BANANA_DEFAULT_BASE_URL = "https://api.banana.dev"


# ---- Provider default models ----
OPENAI_DEFAULT_MODEL = "gpt-4o"
OPENAI_DEFAULT_IMAGE_MODEL = "dall-e-3"
ANTHROPIC_DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"
OPENROUTER_DEFAULT_MODEL = "openai/gpt-4o-mini"
OPENROUTER_DEFAULT_IMAGE_MODEL = "openai/dall-e-3"
NANO_BANANA_DEFAULT_MODEL = "mistral-7b"
VEO3_MODEL = "veo3"


# ---- Submit-then-poll timing (seconds) ----
FAL_POLL_INTERVAL_SECONDS = 1.0
FAL_POLL_TIMEOUT_SECONDS = 60.0
VEO3_POLL_INTERVAL_SECONDS = 2.0
VEO3_POLL_TIMEOUT_SECONDS = 600.0


# ---- SQLite config (infrastructure) ----
SQLITE_BUSY_TIMEOUT_MS = 5000
SQLITE_JOURNAL_MODE = "WAL"
SQLITE_SYNCHRONOUS = "NORMAL"
DEFAULT_DB_FILENAME = "medialab.db"

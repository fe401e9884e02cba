"""
Summarization Configuration

Module-specific settings for page summarization.
"""
import os

# =========================
# LLM Backend Configuration
# =========================

# Backend type: ollama | vllm (falls back to global config)
SUMMARIZATION_LLM_BACKEND = os.getenv("SUMMARIZATION_LLM_BACKEND", os.getenv("LLM_BACKEND", "ollama"))

# Ollama URL for summarization service
SUMMARIZATION_OLLAMA_URL = os.getenv("SUMMARIZATION_OLLAMA_URL", os.getenv("OLLAMA_URL", "http://localhost:11434"))

# VLLM URL for summarization service
SUMMARIZATION_VLLM_URL = os.getenv("SUMMARIZATION_VLLM_URL", os.getenv("VLLM_URL", "http://localhost:8000"))

# =========================
# Model Settings
# =========================

SUMMARIZATION_DEFAULT_MODEL = os.getenv("SUMMARIZATION_DEFAULT_MODEL", os.getenv("DEFAULT_MODEL", "gemma3:4b"))

# =========================
# Summary Style Settings
# =========================

SUMMARIZATION_TYPE = os.getenv("SUMMARIZATION_TYPE", "key-points")
SUMMARIZATION_FORMAT = os.getenv("SUMMARIZATION_FORMAT", "markdown")
SUMMARIZATION_LENGTH = os.getenv("SUMMARIZATION_LENGTH", "short")
SUMMARIZATION_SHARED_CONTEXT = os.getenv(
    "SUMMARIZATION_SHARED_CONTEXT",
    "Summaries for open browser tabs to help users triage content quickly."
)

SUMMARIZATION_SUPPORTED_TYPES = ["key-points", "tldr", "teaser", "headline"]
SUMMARIZATION_SUPPORTED_FORMATS = ["markdown", "plain-text"]
SUMMARIZATION_SUPPORTED_LENGTHS = ["short", "medium", "long"]

# =========================
# Bullet Settings
# =========================

# Upper bound on bullets kept by the parser
SUMMARIZATION_MAX_BULLETS = int(os.getenv("SUMMARIZATION_MAX_BULLETS", "7"))

# Bullets surfaced to callers (progress events and final record)
SUMMARIZATION_DISPLAY_BULLETS = int(os.getenv("SUMMARIZATION_DISPLAY_BULLETS", "3"))

# =========================
# Streaming Settings
# =========================

# Minimum interval between partial emissions when the bullet count is unchanged
SUMMARIZATION_STREAM_THROTTLE_MS = int(os.getenv("SUMMARIZATION_STREAM_THROTTLE_MS", "350"))

# Bound on buffered chunks between the stream reader and the consumer
SUMMARIZATION_STREAM_QUEUE_SIZE = int(os.getenv("SUMMARIZATION_STREAM_QUEUE_SIZE", "64"))

# =========================
# LLM Settings for Summarization
# =========================

SUMMARIZATION_TEMPERATURE = float(os.getenv("SUMMARIZATION_TEMPERATURE", os.getenv("LLM_TEMPERATURE", "0.3")))
SUMMARIZATION_MAX_TOKENS = int(os.getenv("SUMMARIZATION_MAX_TOKENS", "512"))

# =========================
# Connection Settings
# =========================

SUMMARIZATION_CONNECTION_TIMEOUT = int(os.getenv("SUMMARIZATION_CONNECTION_TIMEOUT", "120"))
SUMMARIZATION_CONNECTION_POOL_LIMIT = int(os.getenv("SUMMARIZATION_CONNECTION_POOL_LIMIT", "20"))

"""
Global Configuration

Settings shared by the page summary service: the default LLM endpoint,
model context windows and the Redis connection used by the optional
summary mirror. Module-specific settings live in each package's config.py.

Every value can be overridden via environment variables or a .env file.
"""
import os
from dotenv import load_dotenv

# Load .env before module configs read the environment
load_dotenv()
from functools import lru_cache

# =========================
# Service
# =========================

APP_TITLE = os.getenv("APP_TITLE", "Page Summary API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

# =========================
# LLM Backend Defaults
# =========================

# Summarization settings fall back to these when not set explicitly
LLM_BACKEND = os.getenv("LLM_BACKEND", "ollama")  # ollama | vllm
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
VLLM_URL = os.getenv("VLLM_URL", "http://localhost:8000")
DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "gemma3:4b")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))

# =========================
# Model Context Windows
# =========================

MODEL_CONTEXT_LENGTHS = {
    "gemma3:1b": 32768,
    "gemma3:4b": 8192,
    "gemma3:12b": 8192,
    "llama3.2:3b": 131072,
    "qwen2.5:7b": 32768,
}

DEFAULT_CONTEXT_LENGTH = 8192

# Page text is capped before prompting; warn when a prompt still crowds the window
CONTEXT_WARNING_THRESHOLD = int(os.getenv("CONTEXT_WARNING_THRESHOLD", "80"))  # percent

# =========================
# Redis (summary mirror)
# =========================

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))


@lru_cache(maxsize=32)
def get_model_context_length(model: str) -> int:
    """Context window for a model, falling back to DEFAULT_CONTEXT_LENGTH."""
    return MODEL_CONTEXT_LENGTHS.get(model, DEFAULT_CONTEXT_LENGTH)


def estimate_tokens(text: str) -> int:
    """Rough token count at ~4 characters per token."""
    return len(text) // 4

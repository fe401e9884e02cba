"""
Logging setup for the summary pipeline.

Provides:
- Rotating file handlers for requests, errors and metrics
- Context propagation (request_id, user_id) through contextvars
- Helpers for logging LLM requests, responses and metrics
"""
import json
import logging
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, asdict
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Dict, Any

from .config import (
    LOG_OUTPUT_DIR,
    LOG_LEVEL,
    LOG_MAX_BYTES,
    LOG_BACKUP_COUNT,
    LOG_PREVIEW_LENGTH,
    LOG_DATE_FORMAT,
    LOG_DETAILED_FORMAT,
    LOG_SIMPLE_FORMAT,
    LOG_JSON_FORMAT,
    LOG_FILE_REQUESTS,
    LOG_FILE_ERRORS,
    LOG_FILE_METRICS,
    PIPELINE_LOGGER_NAME,
    LLM_LOGGER_NAME,
    METRICS_LOGGER_NAME,
)

LOG_DIR = Path(LOG_OUTPUT_DIR)

_request_id: ContextVar[str] = ContextVar("request_id", default="-")
_user_id: ContextVar[str] = ContextVar("user_id", default="-")

_configured = False


# =========================
# Context Management
# =========================

def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    return _request_id.get()


def get_user_id() -> str:
    return _user_id.get()


class RequestContext:
    """
    Scope a request_id (and optionally a user_id) for all log records
    emitted inside the block.

    Example:
        with RequestContext(request_id, user_id="u-1"):
            logger.info("[SUMMARY] START")
    """

    def __init__(self, request_id: Optional[str] = None, user_id: Optional[str] = None):
        self.request_id = request_id or generate_request_id()
        self.user_id = user_id
        self._request_token = None
        self._user_token = None

    def __enter__(self) -> "RequestContext":
        self._request_token = _request_id.set(self.request_id)
        if self.user_id:
            self._user_token = _user_id.set(self.user_id)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        _request_id.reset(self._request_token)
        if self._user_token is not None:
            _user_id.reset(self._user_token)


class ContextFilter(logging.Filter):
    """Inject request_id / user_id into every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        record.user_id = _user_id.get()
        return True


# =========================
# Setup
# =========================

def _file_handler(filename: str, level: int, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        LOG_DIR / filename,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(ContextFilter())
    return handler


def setup_logging(level: str = LOG_LEVEL, log_to_files: bool = True) -> logging.Logger:
    """
    Configure pipeline logging. Safe to call more than once.

    Args:
        level: Root level for the pipeline loggers
        log_to_files: Also write rotating files under LOG_OUTPUT_DIR

    Returns:
        The pipeline logger
    """
    global _configured

    logger = logging.getLogger(PIPELINE_LOGGER_NAME)
    if _configured:
        return logger

    logger.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(LOG_SIMPLE_FORMAT, datefmt=LOG_DATE_FORMAT))
    console.addFilter(ContextFilter())
    logger.addHandler(console)

    if log_to_files:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_file_handler(LOG_FILE_REQUESTS, logging.DEBUG, LOG_DETAILED_FORMAT))
        logger.addHandler(_file_handler(LOG_FILE_ERRORS, logging.ERROR, LOG_DETAILED_FORMAT))

        metrics_logger = logging.getLogger(METRICS_LOGGER_NAME)
        metrics_logger.addHandler(_file_handler(LOG_FILE_METRICS, logging.INFO, LOG_JSON_FORMAT))

    _configured = True
    logger.debug(f"[LOGGING] Configured | level={level} | dir={LOG_DIR} | files={log_to_files}")
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the pipeline logger or one of its children."""
    if name:
        return logging.getLogger(f"{PIPELINE_LOGGER_NAME}.{name}")
    return logging.getLogger(PIPELINE_LOGGER_NAME)


def get_llm_logger() -> logging.Logger:
    return logging.getLogger(LLM_LOGGER_NAME)


def get_metrics_logger() -> logging.Logger:
    return logging.getLogger(METRICS_LOGGER_NAME)


# =========================
# LLM Call Logging
# =========================

def _preview(text: str) -> str:
    text = (text or "").replace("\n", " ")
    if len(text) <= LOG_PREVIEW_LENGTH:
        return text
    return text[:LOG_PREVIEW_LENGTH] + "..."


@dataclass
class LLMMetrics:
    """Single metrics line written for every LLM call."""
    request_id: str
    model: str
    backend: str
    task: str
    latency_ms: float
    prompt_chars: int
    response_chars: int
    status: str
    streaming: bool = False
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)


def log_llm_request(
    model: str,
    backend: str,
    task: str,
    prompt: str,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """Log an outgoing LLM request and return the call id used for correlation."""
    call_id = generate_request_id()
    get_llm_logger().info(
        f"[LLM_REQUEST] call_id={call_id} | task={task} | model={model} | backend={backend} | "
        f"temperature={temperature} | max_tokens={max_tokens} | prompt_chars={len(prompt)} | "
        f"preview={_preview(prompt)}"
    )
    return call_id


def log_llm_response(
    call_id: str,
    model: str,
    backend: str,
    response: str,
    latency_ms: float,
    status: str = "success",
    error_message: Optional[str] = None,
) -> None:
    logger = get_llm_logger()
    if status == "success":
        logger.info(
            f"[LLM_RESPONSE] call_id={call_id} | model={model} | backend={backend} | "
            f"latency={latency_ms:.0f}ms | response_chars={len(response)} | preview={_preview(response)}"
        )
    else:
        logger.error(
            f"[LLM_RESPONSE] call_id={call_id} | model={model} | backend={backend} | "
            f"latency={latency_ms:.0f}ms | status={status} | error={error_message}"
        )


def log_llm_metrics(**fields: Any) -> Dict[str, Any]:
    """Write one JSON metrics line for an LLM call; returns the logged payload."""
    metrics = LLMMetrics(**fields)
    get_metrics_logger().info(metrics.to_json())
    return asdict(metrics)


def log_metrics(event: str, **fields: Any) -> Dict[str, Any]:
    """
    Write one JSON metrics line for a pipeline event, stamped with the
    current request context.
    """
    payload = {
        "event": event,
        "request_id": get_request_id(),
        "user_id": get_user_id(),
        "timestamp": datetime.now().isoformat(),
    }
    payload.update(fields)
    get_metrics_logger().info(json.dumps(payload, ensure_ascii=False, default=str))
    return payload

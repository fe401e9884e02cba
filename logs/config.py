"""
Logging Configuration

Settings for the summary pipeline loggers: where rotating files go,
how records are formatted and how much of a prompt or page is previewed.
"""
import os
from pathlib import Path

# =========================
# Logger Names
# =========================

# Every module logs under this namespace (page_summary.resolver, page_summary.api, ...)
PIPELINE_LOGGER_NAME = os.getenv("PIPELINE_LOGGER_NAME", "page_summary")
LLM_LOGGER_NAME = f"{PIPELINE_LOGGER_NAME}.llm"
METRICS_LOGGER_NAME = f"{PIPELINE_LOGGER_NAME}.metrics"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =========================
# Rotating Files
# =========================

LOG_OUTPUT_DIR = os.getenv("LOG_OUTPUT_DIR", str(Path(__file__).parent / "output"))

LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))

LOG_FILE_REQUESTS = os.getenv("LOG_FILE_REQUESTS", "summary_requests.log")
LOG_FILE_ERRORS = os.getenv("LOG_FILE_ERRORS", "summary_errors.log")
LOG_FILE_METRICS = os.getenv("LOG_FILE_METRICS", "summary_metrics.log")

# =========================
# Record Formats
# =========================

# Prompts embed whole pages; only this many characters reach the log
LOG_PREVIEW_LENGTH = int(os.getenv("LOG_PREVIEW_LENGTH", "160"))

LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Console: short, one line per event
LOG_SIMPLE_FORMAT = "%(asctime)s | %(levelname)-7s | %(request_id)-36s | %(message)s"

# Files: adds user and origin for tracing a request across components
LOG_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-7s | %(request_id)-36s | %(user_id)-16s | "
    "%(name)-28s | %(message)s"
)

# Metrics lines are already JSON
LOG_JSON_FORMAT = "%(message)s"

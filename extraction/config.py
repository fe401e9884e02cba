"""
Content Extraction Configuration

Module-specific settings for resolving page content.
"""
import os

# =========================
# Sanitization
# =========================

# Hard cap on sanitized content length (characters)
CONTENT_MAX_LENGTH = int(os.getenv("CONTENT_MAX_LENGTH", "12000"))

# Characters hashed when fingerprinting content
CONTENT_FINGERPRINT_PREFIX = 4096

# =========================
# Fetch Settings
# =========================

# Timeouts in seconds, one per source
CONTENT_FETCH_TIMEOUT = float(os.getenv("CONTENT_FETCH_TIMEOUT", "3.0"))
CONTENT_PROXY_TIMEOUT = float(os.getenv("CONTENT_PROXY_TIMEOUT", "4.0"))
CONTENT_LIVE_TIMEOUT = float(os.getenv("CONTENT_LIVE_TIMEOUT", "3.0"))

CONTENT_USER_AGENT = os.getenv(
    "CONTENT_USER_AGENT",
    "Mozilla/5.0 (compatible; PageSummaryBot/1.0)"
)

CONTENT_CONNECTION_POOL_LIMIT = int(os.getenv("CONTENT_CONNECTION_POOL_LIMIT", "20"))

# Readability proxy, formatted with scheme/host/path/query of the target URL
CONTENT_PROXY_URL_TEMPLATE = os.getenv(
    "CONTENT_PROXY_URL_TEMPLATE",
    "https://r.jina.ai/{scheme}://{host}{path}{query}"
)

# Accepted response content types (regex, case-insensitive)
CONTENT_ACCEPTED_TYPES = r"text|json|xml|html"

# =========================
# Candidate Selection
# =========================

# Direct result at or above this score skips the proxy fetch
CONTENT_HIGH_CONFIDENCE_SCORE = int(os.getenv("CONTENT_HIGH_CONFIDENCE_SCORE", "5"))

# Keyword containers considered per document
CONTENT_MAX_CANDIDATES = int(os.getenv("CONTENT_MAX_CANDIDATES", "12"))

# id/class fragments marking a content container
CONTENT_KEYWORDS = ("content", "article", "main", "body", "post", "entry", "read")

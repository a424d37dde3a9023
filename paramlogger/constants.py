"""
Centralised constants for paramlogger.

Default exclusions, log-field names and logging limits live here so they can
be imported by any module without circular dependencies.
"""

# ── Version ──────────────────────────────────────────────────────
APP_VERSION = "0.1.0"

# ── Default paths ────────────────────────────────────────────────
DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_LOG_FILE = "requests.log"

# ── Redaction ────────────────────────────────────────────────────
# Compared case-insensitively against parameter names.
DEFAULT_EXCLUSIONS = (
    "Password",
    "PasswordConfirmation",
    "CreditCard",
    "CVC",
)
FILTERED_INDICATOR = "[FILTERED]"

# ── Log fields ───────────────────────────────────────────────────
PARAMS_FIELD = "params"
FORM_FIELD = "form"

# Body mimetypes whose fields are logged under ``form``.
MULTIPART_MIMETYPE = "multipart/form-data"
URLENCODED_MIMETYPE = "application/x-www-form-urlencoded"
FORM_MIMETYPES = frozenset({MULTIPART_MIMETYPE, URLENCODED_MIMETYPE})

# ── Logging ──────────────────────────────────────────────────────
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_BACKUP_COUNT = 5
REQUEST_ID_HEADER = "X-Request-ID"
TRACEPARENT_HEADER = "traceparent"

"""Settings service: persistent key-value configuration with secret obfuscation.

Settings are stored in SQLite with base64 encoding for secrets (obfuscation,
not encryption). The SETTINGS_REGISTRY defines all known settings with their
defaults, categories, secret flags, and optional validators. These are
app-wide values; what each browser remembers (last section, connection
details) lives in its own localStorage, encrypted with the
`browser_storage_secret` kept here.
"""
import base64
import logging
import secrets

from db.operations import get_connection
from shared.constants import DEFAULT_ROW_LIMIT

logger = logging.getLogger(__name__)


# --- Validators ---

def _validate_positive_int(value: str) -> str | None:
    """Validate that value is a positive integer string.

    Args:
        value: String to validate.

    Returns:
        Error message string if invalid, None if valid.
    """
    if value and not value.strip().isdigit():
        return f"Must be a positive integer, got '{value}'"
    return None


def _validate_bool(value: str) -> str | None:
    """Validate a 'true'/'false' flag."""
    if value and value.lower() not in ("true", "false"):
        return f"Must be 'true' or 'false', got '{value}'"
    return None


def _validate_log_level(value: str) -> str | None:
    """Validate Python logging level name.

    Args:
        value: Log level string to validate.

    Returns:
        Error message string if invalid, None if valid.
    """
    valid = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    if value and value.upper() not in valid:
        return f"Invalid log level '{value}'. Must be one of: {', '.join(valid)}"
    return None


# --- Settings Registry ---
# Each entry: (default, is_secret, category, validator_fn_or_None)

SETTINGS_REGISTRY = {
    # Browser storage
    "browser_storage_secret":   ("", True, "browser", None),

    # Structure / content
    "content_row_limit":        (str(DEFAULT_ROW_LIMIT), False, "content", _validate_positive_int),
    "null_toggle_always_report": ("true", False, "structure", _validate_bool),

    # System
    "log_level":                ("INFO", False, "system", _validate_log_level),
    "log_retention_days":       ("30", False, "system", _validate_positive_int),
}


def _encode(value: str) -> str:
    """Base64 encode a value for obfuscation (NOT encryption)."""
    if not value:
        return ""
    return base64.b64encode(value.encode("utf-8")).decode("utf-8")


def _decode(value: str) -> str:
    """Base64 decode an obfuscated value."""
    if not value:
        return ""
    try:
        return base64.b64decode(value.encode("utf-8")).decode("utf-8")
    except Exception:
        logger.warning("Failed to base64-decode setting value, returning as-is")
        return value  # Return as-is if not valid base64


def init_settings():
    """Insert default settings if they don't exist yet. Call on app startup.

    Uses INSERT OR IGNORE so stored values are never overwritten.
    """
    with get_connection() as conn:
        for key, (default_value, is_secret, _cat, _val) in SETTINGS_REGISTRY.items():
            stored = _encode(default_value) if is_secret else default_value
            conn.execute(
                "INSERT OR IGNORE INTO settings (key, value, is_secret) VALUES (?, ?, ?)",
                (key, stored, int(is_secret))
            )
        conn.commit()


def get_setting(key: str) -> str:
    """Get a setting value. Decodes secrets automatically.

    Args:
        key: Setting key name.

    Returns:
        The setting value as a string, or the default if not found.
    """
    with get_connection() as conn:
        row = conn.execute(
            "SELECT value, is_secret FROM settings WHERE key = ?", (key,)
        ).fetchone()
    if row is None:
        reg = SETTINGS_REGISTRY.get(key)
        return reg[0] if reg else ""
    value, is_secret = row["value"] or "", row["is_secret"]
    if is_secret:
        return _decode(value)
    return value


def set_setting(key: str, value: str) -> str:
    """Set a setting value. Validates and encodes secrets automatically.

    Args:
        key: Setting key name.
        value: New value to store.

    Returns:
        Empty string on success, error message string on validation failure.
    """
    reg = SETTINGS_REGISTRY.get(key)
    if reg:
        _default, is_secret, _cat, validator = reg
        if validator:
            error = validator(value)
            if error:
                logger.warning("Setting validation failed for '%s': %s", key, error)
                return error
    else:
        is_secret = False

    stored = _encode(value) if is_secret else value
    with get_connection() as conn:
        conn.execute(
            """INSERT INTO settings (key, value, is_secret)
               VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                              updated_at = datetime('now')""",
            (key, stored, int(is_secret))
        )
        conn.commit()
    return ""


def get_bool_setting(key: str) -> bool:
    """Read a 'true'/'false' setting as a bool."""
    return get_setting(key).strip().lower() == "true"


def get_int_setting(key: str) -> int:
    """Read a positive-integer setting, falling back to the registry default."""
    value = get_setting(key).strip()
    if value.isdigit():
        return int(value)
    return int(SETTINGS_REGISTRY[key][0])


def get_browser_secret() -> str:
    """Key gr.BrowserState encrypts per-browser values with.

    Generated and stored on first use so values saved in a browser can
    still be read after the server restarts.
    """
    secret = get_setting("browser_storage_secret")
    if not secret:
        secret = secrets.token_urlsafe(32)
        set_setting("browser_storage_secret", secret)
        logger.info("Generated browser storage secret")
    return secret

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

# section -> (response key, {setting: default}); the default's type is the accepted type.
SETTING_SECTIONS: dict[str, tuple[str, dict[str, Any]]] = {
    "platform": (
        "platformConfig",
        {
            "MAINTENANCE_MODE": False,
            "REGISTRATION_ENABLED": True,
            "EMAIL_NOTIFICATIONS": True,
            "MAX_USERS_PER_ORG": 100,
            "SESSION_TIMEOUT": 24,
            "PASSWORD_MIN_LENGTH": 8,
            "REQUIRE_EMAIL_VERIFICATION": True,
        },
    ),
    "security": (
        "securitySettings",
        {
            "TWO_FACTOR_ENABLED": False,
            "PASSWORD_EXPIRY_DAYS": 90,
            "MAX_LOGIN_ATTEMPTS": 5,
            "LOCKOUT_DURATION": 30,
            "SESSION_SECURITY": "standard",
        },
    ),
    "notifications": (
        "notificationSettings",
        {
            "EMAIL_NOTIFICATIONS": True,
            "SYSTEM_ALERTS": True,
            "USER_ACTIVITY_LOGS": True,
            "ERROR_REPORTING": True,
            "MAINTENANCE_NOTIFICATIONS": True,
        },
    ),
    "integrations": (
        "integrationSettings",
        {
            "JIRA_INTEGRATION_ENABLED": True,
            "SLACK_INTEGRATION_ENABLED": False,
            "EMAIL_SERVICE": "smtp",
            "ANALYTICS_ENABLED": False,
            "BACKUP_ENABLED": True,
        },
    ),
}


@dataclass(frozen=True)
class StoredSettings:
    section: str
    settings: dict[str, Any]
    updated_at: datetime
    updated_by: Optional[int] = None


def _from_env(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            return default
    return raw


def env_defaults(env: Mapping[str, str]) -> dict[str, dict[str, Any]]:
    """Per-section settings with environment variables overriding built-in defaults."""
    out: dict[str, dict[str, Any]] = {}
    for section, (_, defaults) in SETTING_SECTIONS.items():
        values = {}
        for key, default in defaults.items():
            raw = env.get(key)
            values[key] = default if raw is None or raw == "" else _from_env(raw, default)
        out[section] = values
    return out

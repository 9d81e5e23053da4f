from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from .settings_model import StoredSettings


class SettingsRepository(Protocol):
    def get_section(self, section: str) -> Optional[StoredSettings]:
        raise NotImplementedError

    def save_section(self, section: str, settings: dict[str, Any], *, updated_by: int, updated_at: datetime) -> None:
        raise NotImplementedError

from __future__ import annotations

from datetime import datetime

import pytest


@pytest.fixture
def fixed_now() -> datetime:
    # Wednesday, inside the default 08:00-10:00 check-in window
    return datetime(2025, 3, 12, 9, 0)

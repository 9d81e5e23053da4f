from __future__ import annotations

import os
import sys
from pathlib import Path

import importlib

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.worklog_tracker.worklog_tracker.database.bootstrap import ensure_admin_user


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())

    email = os.getenv("ADMIN_EMAIL", "").strip()
    password = os.getenv("ADMIN_PASSWORD", "")
    if not email or not password:
        print("ERROR: set ADMIN_EMAIL and ADMIN_PASSWORD", file=sys.stderr)
        return 1

    created = ensure_admin_user(dict(settings.DB_CONFIG), email=email, password=password)
    print(f"OK: admin {email} {'created' if created else 'already exists'}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

from src.worklog_tracker.worklog_tracker.main import create_app

app = create_app()


if __name__ == "__main__":
    app.run(debug=app.config.get("DEBUG", False))

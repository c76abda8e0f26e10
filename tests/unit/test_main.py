"""Tests for application startup."""

from fastapi.testclient import TestClient

import src.main
from src.services.config import get_settings


class TestLifespan:
    """Test the startup hooks run when the app is served."""

    def test_startup_configures_logging_and_tables(self, monkeypatch):
        """Serving the app installs the log handlers and creates tables."""
        calls = []
        monkeypatch.setattr(
            src.main, "setup_server_logging", lambda *args: calls.append(("logging", args))
        )
        monkeypatch.setattr(src.main, "init_db", lambda: calls.append(("init_db", ())))

        with TestClient(src.main.app) as client:
            assert client.get("/health").json() == {"status": "ok"}

        settings = get_settings()
        assert calls == [
            ("logging", (settings.log_file, settings.log_level)),
            ("init_db", ()),
        ]

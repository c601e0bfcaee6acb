from arbati.core.config import settings
from run_server import uvicorn_options


def test_uvicorn_options_follow_settings(monkeypatch):
    monkeypatch.setattr(settings, "HOST", "0.0.0.0")
    monkeypatch.setattr(settings, "PORT", 8123)
    monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")
    monkeypatch.setattr(settings, "DEBUG", False)

    assert uvicorn_options() == {"host": "0.0.0.0", "port": 8123, "log_level": "warning", "reload": False}

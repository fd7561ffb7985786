import logging
from pathlib import Path

import pytest

from claimtriage.api.core.config import Settings
from claimtriage.api.core.logging import PIIRedactor, redact


def test_settings_parse_environment(monkeypatch):
    monkeypatch.delenv("API_PORT", raising=False)
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.test, https://b.test")
    monkeypatch.setenv("LLM_TEMPERATURE", "3")
    cfg = Settings()
    assert cfg.api_port == 8080
    assert cfg.allowed_origins == ["https://a.test", "https://b.test"]
    assert cfg.llm_temperature == 1.0


def test_database_path_from_url(tmp_path):
    cfg = Settings(DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'x.db'}")
    assert cfg.database_path == Path(tmp_path / "x.db").resolve()
    with pytest.raises(ValueError):
        _ = Settings(DB_URL="postgres://db/claims").database_path


def test_redact_contact_details():
    text = redact("contact jane.doe@example.com or (512) 555-0100 about claim 2026-01-20")
    assert "example.com" not in text
    assert "555-0100" not in text
    assert "2026-01-20" in text


def test_redactor_filter_rewrites_message():
    record = logging.LogRecord("claimtriage", logging.INFO, __file__, 1, "mail bob@example.org", None, None)
    assert PIIRedactor().filter(record) is True
    assert record.getMessage() == "mail [REDACTED]"

"""
Unit tests for backend/assessment/settings.py and logging_config.py

Covers:
  - Settings.from_env() reading .env-style variables
  - Defaults for regulations, company types and providers
  - setup_logging() handler configuration
"""

import logging


def _import_settings():
    from settings import AIProvider, Settings
    return AIProvider, Settings


class TestSettingsFromEnv:
    def test_reads_env(self):
        AIProvider, Settings = _import_settings()
        s = Settings.from_env()
        assert s.app_title == "Compliance Assessment (test)"
        assert s.question_count == 25
        assert s.ai_enabled is True
        assert s.log_level == "WARNING"
        assert s.providers[AIProvider.OPENAI].endpoint == "https://api.openai.test/v1/chat/completions"
        assert s.providers[AIProvider.ANTHROPIC].api_version == "2023-06-01"

    def test_overrides(self, monkeypatch, tmp_path):
        _, Settings = _import_settings()
        monkeypatch.setenv("QUESTION_COUNT", "10")
        monkeypatch.setenv("AI_ENABLED", "false")
        monkeypatch.setenv("CORS_ORIGINS", "http://localhost:8501, http://127.0.0.1:8501")
        monkeypatch.setenv("QUESTIONS_FILE", str(tmp_path / "q.json"))
        s = Settings.from_env()
        assert s.question_count == 10
        assert s.ai_enabled is False
        assert s.cors_origins == ["http://localhost:8501", "http://127.0.0.1:8501"]
        assert s.questions_file == tmp_path / "q.json"

    def test_defaults(self):
        AIProvider, Settings = _import_settings()
        s = Settings()
        assert s.allowed_normatives == ("GDPR", "NIS2", "DORA", "ENS")
        assert "SL" in s.allowed_company_types
        assert set(s.providers) == {AIProvider.OPENAI, AIProvider.ANTHROPIC}
        assert s.questions_file.name == "questions.json"
        assert s.max_company_name_len == 100


class TestSetupLogging:
    def test_single_stdout_handler(self):
        from logging_config import LOG_FORMAT, setup_logging
        root = setup_logging("debug")
        try:
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert root.handlers[0].formatter._fmt == LOG_FORMAT
            assert logging.getLogger("urllib3").level == logging.WARNING
        finally:
            setup_logging("WARNING")

    def test_unknown_level_falls_back_to_info(self):
        from logging_config import setup_logging
        root = setup_logging("chatty")
        try:
            assert root.level == logging.INFO
        finally:
            setup_logging("WARNING")

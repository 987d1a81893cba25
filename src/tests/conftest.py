"""
Shared fixtures for unit and integration tests.
"""

import os
import sys
import pytest
import orjson

# ── Ensure backend modules are importable ──
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(ROOT, "backend", "assessment"))

# ── Fake .env values used by every test ──
ENV_DEFAULTS = {
    "APP_TITLE": "Compliance Assessment (test)",
    "QUESTION_COUNT": "25",
    "MAX_COMPANY_NAME_LEN": "100",
    "AI_ENABLED": "true",
    "AI_TIMEOUT": "20",
    "AI_TEMPERATURE": "0.2",
    "AI_MAX_TOKENS": "800",
    "OPENAI_ENDPOINT": "https://api.openai.test/v1/chat/completions",
    "OPENAI_MODEL": "gpt-4o-mini",
    "ANTHROPIC_ENDPOINT": "https://api.anthropic.test/v1/messages",
    "ANTHROPIC_MODEL": "claude-3-5-sonnet-20240620",
    "ANTHROPIC_VERSION": "2023-06-01",
    "CORS_ORIGINS": "*",
    "SESSION_COOKIE": "assessment_session",
    "SESSION_TTL": "3600",
    "MAX_SESSIONS": "1000",
    "LOG_LEVEL": "WARNING",
}

VALID_TOKEN = "sk-test_0123456789abcdefXYZ"


@pytest.fixture(autouse=True)
def mock_env(monkeypatch):
    """Inject all required env vars so modules never blow up on import."""
    for k, v in ENV_DEFAULTS.items():
        monkeypatch.setenv(k, v)


@pytest.fixture
def sample_questions():
    """Small bank covering every regulation, both answer types and mixed weights."""
    return [
        {"id": "GDPR-01", "normative": "GDPR", "block": "Governance",
         "text": "Is there a designated data protection officer?", "weight": 4, "answerType": "yes_no"},
        {"id": "GDPR-02", "normative": "GDPR", "block": "Security",
         "text": "How mature is the encryption of personal data at rest?", "weight": 2, "answerType": "scale_0_5"},
        {"id": "NIS2-01", "normative": "NIS2", "block": "Incident response",
         "text": "How mature is the incident response plan?", "weight": 5, "answerType": "scale_0_5"},
        {"id": "NIS2-02", "normative": "NIS2", "block": "Risk management",
         "text": "Is there a documented risk assessment?", "weight": 5, "answerType": "yes_no"},
        {"id": "DORA-01", "normative": "DORA", "block": "Third parties",
         "text": "Is there a register of critical ICT providers?", "weight": 3, "answerType": "yes_no"},
        {"id": "ENS-01", "normative": "ENS", "block": "Continuity",
         "text": "How mature is the continuity plan?", "weight": 1, "answerType": "scale_0_5"},
    ]


@pytest.fixture
def sample_bank_json(sample_questions):
    return orjson.dumps({"questions": sample_questions})


@pytest.fixture
def bank(sample_bank_json):
    from question_bank import parse_question_bank
    return parse_question_bank(sample_bank_json)


@pytest.fixture
def engine(bank):
    from engine import ComplianceEngine
    return ComplianceEngine(bank)


@pytest.fixture
def questions_file(tmp_path, sample_bank_json):
    path = tmp_path / "questions.json"
    path.write_bytes(sample_bank_json)
    return path


@pytest.fixture
def settings(questions_file):
    from settings import Settings
    return Settings(questions_file=questions_file)


@pytest.fixture
def session():
    from sessions import SessionStore
    return SessionStore().create()


@pytest.fixture
def home_form_data():
    """A valid home form body, AI disabled."""
    return {
        "nif": "12345678z",
        "name": "Acme Logistics, SL",
        "company_type": "SL",
        "company_size": 50,
        "normatives": ["GDPR", "NIS2"],
        "use_ai": False,
        "provider": None,
        "token": None,
    }

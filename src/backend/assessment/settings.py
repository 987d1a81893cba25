import os
from enum import Enum
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ROOT_DIR = Path(__file__).resolve().parents[3]


class AIProvider(str, Enum):
    """Supported BYOK providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ProviderConfig(BaseModel):
    label: str
    endpoint: str
    default_model: str
    api_version: str | None = None


class Settings(BaseModel):
    """
    Static application configuration.

    Built once from the environment (.env) and handed explicitly to every
    component that needs it; nothing below reads os.environ on its own.
    """
    app_title: str = "Quick Compliance Assessment (GDPR/NIS2/DORA/ENS) - Local"
    questions_file: Path = ROOT_DIR / "data" / "questions.json"
    question_count: int = Field(25, ge=1)

    allowed_normatives: tuple[str, ...] = ("GDPR", "NIS2", "DORA", "ENS")
    allowed_company_types: tuple[str, ...] = (
        "SA", "SL", "Cooperativa", "Autónomo", "Fundación", "Asociación", "Otra",
    )
    max_company_name_len: int = Field(100, ge=2)

    ai_enabled: bool = True
    ai_timeout: int = Field(20, ge=1)
    ai_temperature: float = 0.2
    ai_max_tokens: int = Field(800, ge=1)
    providers: dict[AIProvider, ProviderConfig] = Field(default_factory=lambda: {
        AIProvider.OPENAI: ProviderConfig(
            label="ChatGPT (OpenAI)",
            endpoint="https://api.openai.com/v1/chat/completions",
            default_model="gpt-4o-mini",
        ),
        AIProvider.ANTHROPIC: ProviderConfig(
            label="Claude (Anthropic)",
            endpoint="https://api.anthropic.com/v1/messages",
            default_model="claude-3-5-sonnet-20240620",
            api_version="2023-06-01",
        ),
    })

    cors_origins: list[str] = ["*"]
    session_cookie: str = "assessment_session"
    session_ttl: int = Field(3600, ge=1)
    max_sessions: int = Field(1000, ge=1)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        defaults = cls()

        openai_cfg = defaults.providers[AIProvider.OPENAI]
        anthropic_cfg = defaults.providers[AIProvider.ANTHROPIC]
        providers = {
            AIProvider.OPENAI: ProviderConfig(
                label=openai_cfg.label,
                endpoint=os.getenv("OPENAI_ENDPOINT", openai_cfg.endpoint),
                default_model=os.getenv("OPENAI_MODEL", openai_cfg.default_model),
            ),
            AIProvider.ANTHROPIC: ProviderConfig(
                label=anthropic_cfg.label,
                endpoint=os.getenv("ANTHROPIC_ENDPOINT", anthropic_cfg.endpoint),
                default_model=os.getenv("ANTHROPIC_MODEL", anthropic_cfg.default_model),
                api_version=os.getenv("ANTHROPIC_VERSION", anthropic_cfg.api_version),
            ),
        }

        return cls(
            app_title=os.getenv("APP_TITLE", defaults.app_title),
            questions_file=Path(os.getenv("QUESTIONS_FILE", str(defaults.questions_file))),
            question_count=int(os.getenv("QUESTION_COUNT", defaults.question_count)),
            max_company_name_len=int(os.getenv("MAX_COMPANY_NAME_LEN", defaults.max_company_name_len)),
            ai_enabled=os.getenv("AI_ENABLED", "true").strip().lower() in {"1", "true", "yes", "on"},
            ai_timeout=int(os.getenv("AI_TIMEOUT", defaults.ai_timeout)),
            ai_temperature=float(os.getenv("AI_TEMPERATURE", defaults.ai_temperature)),
            ai_max_tokens=int(os.getenv("AI_MAX_TOKENS", defaults.ai_max_tokens)),
            providers=providers,
            cors_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()],
            session_cookie=os.getenv("SESSION_COOKIE", defaults.session_cookie),
            session_ttl=int(os.getenv("SESSION_TTL", defaults.session_ttl)),
            max_sessions=int(os.getenv("MAX_SESSIONS", defaults.max_sessions)),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()

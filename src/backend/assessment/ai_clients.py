import logging

import orjson
import requests
from pydantic import BaseModel, Field, field_validator

from prompts import ANALYST_SYSTEM_PROMPT
from settings import AIProvider, Settings

logger = logging.getLogger(__name__)

USER_AGENT = "compliance-assessment/1.0 (+local)"
MAX_CONNECT_TIMEOUT = 10
DEFAULT_TEMPERATURE = 0.2


class AIClientError(RuntimeError):
    """Any failure of a provider call: transport, HTTP status or response shape."""


class AnalyzeOptions(BaseModel):
    model: str | None = None
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = Field(None, ge=1)
    timeout_sec: int = Field(20, ge=1)

    @field_validator("temperature", mode="before")
    @classmethod
    def _clamp_temperature(cls, v):
        if isinstance(v, bool):
            return DEFAULT_TEMPERATURE
        try:
            v = float(v)
        except (TypeError, ValueError):
            return DEFAULT_TEMPERATURE
        return min(1.0, max(0.0, v))


def _provider_error(data) -> str:
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
    return ""


class AIClient:
    """Single-shot BYOK client. Subclasses define the wire format of one vendor."""

    vendor = "AI provider"
    default_model = ""
    default_max_tokens: int | None = None

    def __init__(self, endpoint: str, default_model: str | None = None):
        self.endpoint = endpoint
        self.default_model = default_model or self.default_model

    # -- provider specific --
    def _headers(self, credential: str) -> dict:
        raise NotImplementedError

    def _payload(self, model: str, prompt: str, options: AnalyzeOptions) -> dict:
        raise NotImplementedError

    def _extract_text(self, data) -> object:
        raise NotImplementedError

    # -- shared --
    def analyze(self, credential: str, prompt: str, options: AnalyzeOptions | None = None) -> str:
        options = options or AnalyzeOptions()
        model = options.model or self.default_model
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            **self._headers(credential),
        }
        body = orjson.dumps(self._payload(model, prompt, options))
        timeout = (min(options.timeout_sec, MAX_CONNECT_TIMEOUT), options.timeout_sec)

        logger.info("Calling %s (model=%s).", self.vendor, model)
        try:
            r = requests.post(self.endpoint, data=body, headers=headers, timeout=timeout, verify=True)
        except requests.RequestException as e:
            raise AIClientError(f"Connection error with {self.vendor}: {e.__class__.__name__}") from e

        try:
            data = orjson.loads(r.content)
        except orjson.JSONDecodeError:
            data = None

        if not 200 <= r.status_code < 300:
            detail = _provider_error(data)
            logger.warning("%s returned HTTP %s.", self.vendor, r.status_code)
            raise AIClientError(f"{self.vendor} returned HTTP {r.status_code}" + (f" - {detail}" if detail else ""))

        if data is None:
            raise AIClientError("Invalid JSON response from provider.")

        text = self._extract_text(data)
        if text is None:
            detail = _provider_error(data)
            raise AIClientError("Provider response has no usable content" + (f" - {detail}" if detail else "."))
        if not isinstance(text, str) or not text.strip():
            raise AIClientError("Returned content is not text.")
        return text.strip()


class OpenAIClient(AIClient):
    vendor = "OpenAI"
    default_model = "gpt-4o-mini"

    def _headers(self, credential: str) -> dict:
        return {"Authorization": f"Bearer {credential}"}

    def _payload(self, model: str, prompt: str, options: AnalyzeOptions) -> dict:
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": ANALYST_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": options.temperature,
        }
        if options.max_tokens is not None:
            payload["max_tokens"] = options.max_tokens
        return payload

    def _extract_text(self, data):
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            return None
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict) or "content" not in message:
            return None
        return message["content"]


class AnthropicClient(AIClient):
    vendor = "Anthropic"
    default_model = "claude-3-5-sonnet-20240620"
    default_max_tokens = 800

    def __init__(self, endpoint: str, api_version: str = "2023-06-01", default_model: str | None = None):
        super().__init__(endpoint, default_model)
        self.api_version = api_version

    def _headers(self, credential: str) -> dict:
        return {"x-api-key": credential, "anthropic-version": self.api_version}

    def _payload(self, model: str, prompt: str, options: AnalyzeOptions) -> dict:
        return {
            "model": model,
            "system": ANALYST_SYSTEM_PROMPT,
            "max_tokens": options.max_tokens or self.default_max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _extract_text(self, data):
        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list) or not content:
            return None
        first = content[0]
        return first.get("text") if isinstance(first, dict) else ""


def build_client(provider: AIProvider, settings: Settings) -> AIClient:
    cfg = settings.providers[provider]
    if provider is AIProvider.OPENAI:
        return OpenAIClient(cfg.endpoint, default_model=cfg.default_model)
    if provider is AIProvider.ANTHROPIC:
        return AnthropicClient(cfg.endpoint, api_version=cfg.api_version or "2023-06-01",
                               default_model=cfg.default_model)
    raise ValueError(f"Unsupported provider: {provider}")


def options_from_settings(provider: AIProvider, settings: Settings) -> AnalyzeOptions:
    return AnalyzeOptions(
        model=settings.providers[provider].default_model,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
        timeout_sec=settings.ai_timeout,
    )

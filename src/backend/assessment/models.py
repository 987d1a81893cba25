from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from settings import AIProvider

AnswerType = Literal["yes_no", "scale_0_5"]
AnswerValue = str | int | float | bool | None
AnalysisStatus = Literal["disabled", "blocked", "failed", "completed"]


# ---------- Domain ----------
class Question(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    normative: str
    block: str
    text: str
    weight: int = Field(1, ge=1)
    answer_type: AnswerType = Field("yes_no", alias="answerType")


class ScoreResult(BaseModel):
    normatives: dict[str, float] = {}
    blocks: dict[str, dict[str, float]] = {}


class TodoItem(BaseModel):
    normative: str
    block: str
    priority: int = Field(ge=1, le=5)
    question: str
    action: str


class AnsweredQuestion(BaseModel):
    id: str
    normative: str
    block: str
    text: str
    answer: str


class PiiScanResult(BaseModel):
    ok: bool
    matches: list[str] = []


class SessionFormState(BaseModel):
    """Company data kept for one assessment. Only the alias may reach an AI provider."""
    company_alias: str
    nif: str
    name: str
    company_type: str
    company_size: int
    normatives: list[str]
    use_ai: bool = False
    provider: AIProvider | None = None
    token: str | None = None


class PromptContext(BaseModel):
    company_alias: str
    company_type: str
    company_size: int
    normatives: list[str]


# ---------- API ----------
class ProviderOption(BaseModel):
    id: AIProvider
    label: str


class FormOptions(BaseModel):
    normatives: list[str]
    company_types: list[str]
    providers: list[ProviderOption]
    max_company_name_len: int
    ai_enabled: bool


class SessionStartResponse(BaseModel):
    session_id: str
    csrf_token: str
    title: str
    options: FormOptions


class HomeFormRequest(BaseModel):
    csrf_token: str = ""
    nif: str = ""
    name: str = ""
    company_type: str = ""
    company_size: str | int = ""
    normatives: list[str] = []
    use_ai: bool = False
    provider: str | None = None
    token: str | None = None


class ConsentPreview(BaseModel):
    company_alias: str
    company_type: str
    company_size: int
    normatives: list[str]
    use_ai: bool


class QuestionnaireRequest(BaseModel):
    csrf_token: str = ""
    consent: bool = False


class QuestionnaireResponse(BaseModel):
    questions: list[Question]
    has_questions: bool


class ReportRequest(BaseModel):
    csrf_token: str = ""
    answers: dict[str, AnswerValue] = {}


class CompanyDisplay(BaseModel):
    name: str
    nif: str
    company_alias: str
    company_type: str
    company_size: int


class ReportResponse(BaseModel):
    company: CompanyDisplay
    scores: ScoreResult
    todo: list[TodoItem]
    analysis: str
    analysis_status: AnalysisStatus
    pii_matches: list[str] = []
    answered: list[AnsweredQuestion] = []

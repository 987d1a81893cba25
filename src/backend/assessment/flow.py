# flow.py
"""
Page-to-page steps of an assessment: home form -> consent -> questionnaire -> report.

Each step receives the session explicitly and is the only writer of the
session fields it owns: `submit_home_form` writes `form`, `open_questionnaire`
writes `consented`, `build_report` only reads.
"""

import logging
import secrets
from collections.abc import Callable, Mapping

from ai_clients import AIClient, AIClientError, build_client, options_from_settings
from engine import ComplianceEngine, empty_scores
from models import (
    AnswerValue, CompanyDisplay, ConsentPreview, HomeFormRequest, PromptContext,
    QuestionnaireResponse, ReportResponse, ScoreResult, SessionFormState,
)
from pii_scrubber import PiiScrubber
from prompt_builder import build_ai_prompt
from prompts import ANALYSIS_BLOCKED, ANALYSIS_DISABLED, ANALYSIS_UNAVAILABLE
from question_bank import QuestionBank, load_question_bank
from sessions import AssessmentSession
from settings import AIProvider, Settings
from validation import validate_home_form

logger = logging.getLogger(__name__)

ClientFactory = Callable[[AIProvider, Settings], AIClient]


# ---------- Errors ----------
class FlowError(Exception):
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CsrfError(FlowError):
    def __init__(self, message: str = "Invalid CSRF token."):
        super().__init__(message)


class ConsentRequiredError(FlowError):
    def __init__(self, message: str = "Consent is required to continue."):
        super().__init__(message)


class MissingFormError(FlowError):
    status_code = 409

    def __init__(self, message: str = "Company form not submitted yet."):
        super().__init__(message)


class FormValidationError(FlowError):
    status_code = 422

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("Form validation failed.")


# ---------- Helpers ----------
def require_csrf(session: AssessmentSession, token: str | None) -> None:
    if not session.check_csrf(token):
        logger.warning("CSRF check failed.")
        raise CsrfError()


def _require_form(session: AssessmentSession) -> SessionFormState:
    if session.form is None:
        raise MissingFormError()
    return session.form


def new_company_alias() -> str:
    """Random 32-hex alias; draws again when it looks like an IBAN (e.g. "de89...")."""
    scrubber = PiiScrubber()
    while True:
        alias = secrets.token_hex(16)
        if scrubber.match_text(alias) is None:
            return alias


def load_bank(settings: Settings) -> QuestionBank:
    return load_question_bank(settings.questions_file, settings.allowed_normatives)


# ---------- Steps ----------
def submit_home_form(session: AssessmentSession, form: HomeFormRequest, settings: Settings) -> ConsentPreview:
    require_csrf(session, form.csrf_token)

    data, errors = validate_home_form(form, settings)
    if data is None:
        logger.info("Home form rejected (%s).", ", ".join(sorted(errors)))
        raise FormValidationError(errors)

    session.form = SessionFormState(company_alias=new_company_alias(), **data)
    session.consented = False

    return ConsentPreview(
        company_alias=session.form.company_alias,
        company_type=session.form.company_type,
        company_size=session.form.company_size,
        normatives=session.form.normatives,
        use_ai=session.form.use_ai,
    )


def open_questionnaire(
    session: AssessmentSession,
    csrf_token: str,
    consent: bool,
    settings: Settings,
) -> QuestionnaireResponse:
    require_csrf(session, csrf_token)
    if not consent:
        raise ConsentRequiredError()
    form = _require_form(session)
    session.consented = True

    engine = ComplianceEngine(load_bank(settings))
    selected = engine.select_questions(form.normatives, settings.question_count) if engine.has_questions() else []
    logger.info("Questionnaire with %d questions.", len(selected))
    return QuestionnaireResponse(questions=selected, has_questions=bool(selected))


def run_analysis(
    form: SessionFormState,
    scores: ScoreResult,
    answers: Mapping[str, AnswerValue],
    bank: QuestionBank,
    settings: Settings,
    client_factory: ClientFactory | None = None,
) -> tuple[str, str, list[str]]:
    """
    Returns (analysis text, status, pii labels). Never raises for provider
    failures; they become an "unavailable" text.
    """
    if not (form.use_ai and settings.ai_enabled) or form.provider is None or form.token is None \
            or not bank.has_questions():
        return ANALYSIS_DISABLED, "disabled", []

    context = PromptContext(
        company_alias=form.company_alias,
        company_type=form.company_type,
        company_size=form.company_size,
        normatives=form.normatives,
    )
    prompt = build_ai_prompt(context, scores, answers, bank)

    check = PiiScrubber().scan({"prompt": prompt})
    if not check.ok:
        logger.warning("AI request blocked by PII check (%s).", ", ".join(check.matches))
        return ANALYSIS_BLOCKED.format(patterns=", ".join(check.matches)), "blocked", check.matches

    try:
        client = (client_factory or build_client)(form.provider, settings)
        text = client.analyze(form.token, prompt, options_from_settings(form.provider, settings))
    except AIClientError as e:
        logger.warning("AI analysis failed: %s", e)
        return ANALYSIS_UNAVAILABLE.format(reason=e), "failed", []

    return text, "completed", []


def build_report(
    session: AssessmentSession,
    csrf_token: str,
    answers: Mapping[str, AnswerValue],
    settings: Settings,
    client_factory: ClientFactory | None = None,
) -> ReportResponse:
    require_csrf(session, csrf_token)
    form = _require_form(session)
    if not session.consented:
        raise ConsentRequiredError()

    bank = load_bank(settings)
    engine = ComplianceEngine(bank)
    if engine.has_questions():
        scores = engine.score_answers(answers)
        todo = engine.build_todo(answers)
        answered = engine.answered_questions(answers)
    else:
        scores, todo, answered = empty_scores(form.normatives), [], []

    analysis, status, pii_matches = run_analysis(form, scores, answers, bank, settings, client_factory)

    return ReportResponse(
        company=CompanyDisplay(
            name=form.name,
            nif=form.nif,
            company_alias=form.company_alias,
            company_type=form.company_type,
            company_size=form.company_size,
        ),
        scores=scores,
        todo=todo,
        analysis=analysis,
        analysis_status=status,
        pii_matches=pii_matches,
        answered=answered,
    )

import logging

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flow import FlowError, FormValidationError, build_report, open_questionnaire, submit_home_form
from logging_config import setup_logging
from models import (
    ConsentPreview, FormOptions, HomeFormRequest, ProviderOption, QuestionnaireRequest,
    QuestionnaireResponse, ReportRequest, ReportResponse, SessionStartResponse,
)
from sessions import AssessmentSession, SessionStore, get_session_store
from settings import Settings, get_settings

_settings = get_settings()
setup_logging(_settings.log_level)
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; connect-src 'self'; frame-ancestors 'self';"
    ),
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
}

app = FastAPI(title=_settings.app_title, version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins, allow_credentials=False,
    allow_methods=["*"], allow_headers=["*"],
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@app.exception_handler(FlowError)
async def flow_error_handler(request: Request, exc: FlowError):
    content = {"detail": exc.message}
    if isinstance(exc, FormValidationError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content)


def current_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> AssessmentSession:
    session = store.get(request.cookies.get(settings.session_cookie))
    if session is None:
        raise HTTPException(status_code=401, detail="No active assessment session.")
    return session


@app.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "ai_enabled": settings.ai_enabled}


@app.post("/session", response_model=SessionStartResponse)
def start_session(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    """Start a new assessment, discarding any previous one for this browser."""
    store.drop(request.cookies.get(settings.session_cookie))
    session = store.create()
    response.set_cookie(
        settings.session_cookie, session.session_id,
        httponly=True, samesite="lax", secure=request.url.scheme == "https",
    )
    return SessionStartResponse(
        session_id=session.session_id,
        csrf_token=session.csrf_token,
        title=settings.app_title,
        options=FormOptions(
            normatives=list(settings.allowed_normatives),
            company_types=list(settings.allowed_company_types),
            providers=[ProviderOption(id=p, label=cfg.label) for p, cfg in settings.providers.items()],
            max_company_name_len=settings.max_company_name_len,
            ai_enabled=settings.ai_enabled,
        ),
    )


@app.delete("/session", status_code=204)
def end_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
):
    store.drop(request.cookies.get(settings.session_cookie))
    response = Response(status_code=204)
    response.delete_cookie(settings.session_cookie)
    return response


@app.post("/consent", response_model=ConsentPreview)
def consent(
    req: HomeFormRequest,
    session: AssessmentSession = Depends(current_session),
    settings: Settings = Depends(get_settings),
):
    return submit_home_form(session, req, settings)


@app.post("/questionnaire", response_model=QuestionnaireResponse)
def questionnaire(
    req: QuestionnaireRequest,
    session: AssessmentSession = Depends(current_session),
    settings: Settings = Depends(get_settings),
):
    return open_questionnaire(session, req.csrf_token, req.consent, settings)


@app.post("/report", response_model=ReportResponse)
def report(
    req: ReportRequest,
    session: AssessmentSession = Depends(current_session),
    settings: Settings = Depends(get_settings),
):
    return build_report(session, req.csrf_token, req.answers, settings)

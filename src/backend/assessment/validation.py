"""
Validation of the home form: company data, regulation selection and the
optional BYOK provider/token pair.
"""

import re
from collections.abc import Iterable

from models import HomeFormRequest
from settings import AIProvider, Settings

NIF_NIE_CIF_RX = re.compile(
    r"^(?:[0-9]{8}[A-HJ-NP-TV-Z]"
    r"|[XYZ][0-9]{7}[A-HJ-NP-TV-Z]"
    r"|[ABCDEFGHJKLMNPQRSUVW][0-9]{7}[0-9A-J])$"
)
COMPANY_NAME_RX = re.compile(r"^[A-Za-zÀ-ÖØ-öø-ÿ0-9,\-\s]{2,}$")
EMPLOYEE_SIZE_RX = re.compile(r"^[1-9][0-9]{0,5}$")
API_TOKEN_RX = re.compile(r"^[A-Za-z0-9_\-]{20,200}$")


def is_nif_nie_cif(value: str) -> bool:
    """Format check only; control letters/digits are not verified."""
    return bool(NIF_NIE_CIF_RX.match(value.strip().upper()))


def is_company_name(value: str, max_len: int) -> bool:
    value = value.strip()
    if not value or len(value) > max_len:
        return False
    return bool(COMPANY_NAME_RX.match(value))


def is_company_type(value: str, allowed: Iterable[str]) -> bool:
    return value in tuple(allowed)


def is_employee_size(value: str) -> bool:
    return bool(EMPLOYEE_SIZE_RX.match(value))


def filter_normatives(selected: Iterable, allowed: Iterable[str]) -> list[str]:
    """Keep allowed regulations only, without repeats, in the order given."""
    allowed = set(allowed)
    return list(dict.fromkeys(n for n in selected if isinstance(n, str) and n in allowed))


def parse_provider(value: str | None) -> AIProvider | None:
    if not value:
        return None
    try:
        return AIProvider(value)
    except ValueError:
        return None


def parse_api_token(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if API_TOKEN_RX.match(value) else None


def validate_home_form(form: HomeFormRequest, settings: Settings) -> tuple[dict | None, dict[str, str]]:
    """
    Returns (clean data, {}) on success or (None, {field: message}) otherwise.
    Provider and token are dropped when AI was not requested.
    """
    errors: dict[str, str] = {}

    nif = form.nif.strip().upper()
    name = form.name.strip()
    size = str(form.company_size).strip()
    normatives = filter_normatives(form.normatives, settings.allowed_normatives)
    use_ai = bool(form.use_ai) and settings.ai_enabled
    provider = parse_provider(form.provider)
    token = parse_api_token(form.token)

    if not is_nif_nie_cif(nif):
        errors["nif"] = "Invalid NIF/NIE/CIF."
    if not is_company_name(name, settings.max_company_name_len):
        errors["name"] = "Invalid company name."
    if not is_company_type(form.company_type, settings.allowed_company_types):
        errors["company_type"] = "Company type not allowed."
    if not is_employee_size(size):
        errors["company_size"] = "Invalid company size."
    if not normatives:
        errors["normatives"] = "Select at least one regulation."

    if use_ai:
        if provider is None:
            errors["provider"] = "Invalid AI provider."
        if token is None:
            errors["token"] = "Invalid AI API token."
    else:
        provider = None
        token = None

    if errors:
        return None, errors

    return {
        "nif": nif,
        "name": name,
        "company_type": form.company_type,
        "company_size": int(size),
        "normatives": normatives,
        "use_ai": use_ai,
        "provider": provider,
        "token": token,
    }, errors

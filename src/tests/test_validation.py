"""
Unit tests for backend/assessment/validation.py

Covers:
  - Field validators (NIF/NIE/CIF, name, type, size, token, provider)
  - validate_home_form() success and error maps
  - AI fields dropped when AI is off
"""

import pytest


def _import_validation():
    import validation
    return validation


def _form(**overrides):
    from models import HomeFormRequest
    base = {
        "csrf_token": "x",
        "nif": "12345678z",
        "name": "Acme Logistics, SL",
        "company_type": "SL",
        "company_size": 50,
        "normatives": ["GDPR", "NIS2"],
    }
    return HomeFormRequest(**{**base, **overrides})


class TestFieldValidators:
    @pytest.mark.parametrize("value", ["12345678Z", "12345678z", "X1234567L", "B12345678", "A1234567J", " 12345678Z "])
    def test_valid_ids(self, value):
        assert _import_validation().is_nif_nie_cif(value) is True

    @pytest.mark.parametrize("value", ["", "1234567Z", "12345678I", "I12345678", "ABCDEFGHI", "12345678ZZ"])
    def test_invalid_ids(self, value):
        assert _import_validation().is_nif_nie_cif(value) is False

    def test_company_name(self):
        v = _import_validation()
        assert v.is_company_name("Construcciones Núñez-Pérez, SA", 100) is True
        assert v.is_company_name("A", 100) is False
        assert v.is_company_name("Acme & Co", 100) is False
        assert v.is_company_name("x" * 101, 100) is False

    @pytest.mark.parametrize("value,ok", [("1", True), ("999999", True), ("0", False), ("1000000", False), ("05", False), ("", False)])
    def test_employee_size(self, value, ok):
        assert _import_validation().is_employee_size(value) is ok

    def test_filter_normatives(self):
        v = _import_validation()
        assert v.filter_normatives(["NIS2", "SOX", "GDPR", "NIS2", 3], ("GDPR", "NIS2")) == ["NIS2", "GDPR"]

    def test_parse_provider(self):
        v = _import_validation()
        from settings import AIProvider
        assert v.parse_provider("openai") is AIProvider.OPENAI
        assert v.parse_provider("anthropic") is AIProvider.ANTHROPIC
        assert v.parse_provider("gemini") is None
        assert v.parse_provider(None) is None

    def test_parse_api_token(self):
        v = _import_validation()
        assert v.parse_api_token("  sk-test_0123456789abcdefXYZ ") == "sk-test_0123456789abcdefXYZ"
        assert v.parse_api_token("short") is None
        assert v.parse_api_token("sk test with spaces 0123456789") is None
        assert v.parse_api_token(None) is None


class TestValidateHomeForm:
    def test_valid(self, settings):
        data, errors = _import_validation().validate_home_form(_form(), settings)
        assert errors == {}
        assert data["nif"] == "12345678Z"
        assert data["company_size"] == 50
        assert data["normatives"] == ["GDPR", "NIS2"]
        assert data["use_ai"] is False
        assert data["provider"] is None
        assert data["token"] is None

    def test_all_errors(self, settings):
        data, errors = _import_validation().validate_home_form(
            _form(nif="bad", name="!", company_type="LLC", company_size="0", normatives=["SOX"]),
            settings,
        )
        assert data is None
        assert set(errors) == {"nif", "name", "company_type", "company_size", "normatives"}

    def test_ai_requires_provider_and_token(self, settings):
        data, errors = _import_validation().validate_home_form(
            _form(use_ai=True, provider="gemini", token="short"), settings,
        )
        assert data is None
        assert set(errors) == {"provider", "token"}

    def test_ai_fields_kept_when_valid(self, settings):
        from settings import AIProvider
        data, _ = _import_validation().validate_home_form(
            _form(use_ai=True, provider="anthropic", token="sk-test_0123456789abcdefXYZ"), settings,
        )
        assert data["use_ai"] is True
        assert data["provider"] is AIProvider.ANTHROPIC
        assert data["token"] == "sk-test_0123456789abcdefXYZ"

    def test_ai_fields_dropped_when_not_requested(self, settings):
        data, errors = _import_validation().validate_home_form(
            _form(use_ai=False, provider="openai", token="sk-test_0123456789abcdefXYZ"), settings,
        )
        assert errors == {}
        assert data["provider"] is None
        assert data["token"] is None

    def test_ai_disabled_by_settings(self, settings):
        off = settings.model_copy(update={"ai_enabled": False})
        data, errors = _import_validation().validate_home_form(_form(use_ai=True, provider="nope"), off)
        assert errors == {}
        assert data["use_ai"] is False

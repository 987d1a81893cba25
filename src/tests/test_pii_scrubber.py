"""
Unit tests for backend/assessment/pii_scrubber.py

Covers:
  - Detection of each personal-data pattern
  - No false positives on aliases, scores and prompt boilerplate
  - Recursive scan over nested structures
"""

import pytest


def _scrubber():
    from pii_scrubber import PiiScrubber
    return PiiScrubber()


class TestMatchText:
    @pytest.mark.parametrize("text,label", [
        ("contact: dpo@example.com", "email"),
        ("call +34 612 345 678 now", "phone"),
        ("tel 912345678", "phone"),
        ("nif 12345678Z", "NIF"),
        ("nie x1234567l", "NIE"),
        ("cif B12345678", "CIF"),
        ("iban DE89370400440532013000", "IBAN"),
        ("ES9121000418450200051332", "IBAN"),
        ("iban de89370400440532013000", "IBAN"),
        ("tel 1234567", "phone"),
        ("movil 612-345-67", "phone"),
        ("(91) 234 56 78", "phone"),
        ("server 192.168.1.10", "IPv4"),
    ])
    def test_detects(self, text, label):
        assert _scrubber().match_text(text) == label

    @pytest.mark.parametrize("text", [
        "a1b2c3d4e5f60718293a4b5c6d7e8f90",
        "- Company size (employees): 250000",
        "- GDPR-01: 0.40",
        "* NIS2: 66.67%",
        "Define owners, evidence and metrics; 30/60/90-day plan.",
        "version 1.2.3",
        "",
    ])
    def test_clean(self, text):
        assert _scrubber().match_text(text) is None

    def test_generated_aliases_pass(self):
        from flow import new_company_alias
        s = _scrubber()
        for _ in range(200):
            assert s.match_text(f"- Alias: {new_company_alias()}") is None

    def test_alias_redrawn_when_it_looks_like_an_iban(self):
        from unittest.mock import patch
        from flow import new_company_alias
        draws = iter(["de893704004405320130001234abcdef", "a1b2c3d4e5f60718293a4b5c6d7e8f90"])
        with patch("flow.secrets.token_hex", side_effect=lambda n: next(draws)):
            assert new_company_alias() == "a1b2c3d4e5f60718293a4b5c6d7e8f90"

    def test_first_pattern_wins(self):
        assert _scrubber().match_text("dpo@example.com 12345678Z") == "email"


class TestScan:
    def test_ok(self):
        result = _scrubber().scan({"prompt": "nothing personal here"})
        assert result.ok is True
        assert result.matches == []

    def test_nested_structures(self):
        data = {
            "a": ["fine", {"b": ("dpo@example.com",)}],
            "c": {"d": "12345678Z"},
            "e": 42,
            "f": None,
        }
        result = _scrubber().scan(data)
        assert result.ok is False
        assert result.matches == ["email", "NIF"]

    def test_matches_deduplicated(self):
        result = _scrubber().scan(["a@b.io", "c@d.io"])
        assert result.matches == ["email"]

    def test_prompt_with_iban_fails(self):
        prompt = "- Alias: a1b2c3d4e5f60718293a4b5c6d7e8f90\nnote DE89370400440532013000"
        result = _scrubber().scan({"prompt": prompt})
        assert result.ok is False
        assert result.matches == ["IBAN"]

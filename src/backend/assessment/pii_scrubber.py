import re
from collections.abc import Mapping

from models import PiiScanResult

# Country prefixes accepted for IBAN detection; hex strings without one of
# these followed by two check digits are not flagged.
IBAN_COUNTRIES = (
    "ES", "PT", "FR", "DE", "IT", "NL", "BE", "GB", "IE", "LU", "AT", "CH", "PL", "SE", "NO",
    "FI", "DK", "CZ", "SK", "HU", "RO", "BG", "HR", "SI", "LT", "LV", "EE", "GR", "CY", "MT",
)
_OCTET = r"(?:25[0-5]|2[0-4]\d|[01]?\d?\d)"
PHONE_RX = (
    r"(?<![\w+.\-])(?:\+\d{1,3}[ \-]?)?(?:\(\d{2,3}\)[ \-]?)?"
    r"(?:\d{7,12}|\d{3,4}[ \-]\d{3,4}(?:[ \-]?\d{2,4})?|\d{2,3}[ \-]\d{2,3}[ \-]\d{2,4}(?:[ \-]\d{2,4})?)"
    r"(?![\w.\-])"
)


class PiiScrubber:
    """
    Detect personal data in outbound payloads.

    Patterns are checked in order and the first hit on a string wins. The
    scan is a gate, not a redactor: callers must not send a payload whose
    result is not ok.
    """

    PATTERNS = (
        ("email", r"[A-Z0-9._%+\-]+@[A-Z0-9.\-]+\.[A-Z]{2,}", re.IGNORECASE),
        # standalone tokens of 7+ digits, or digit groups split by spaces/dashes
        ("phone", PHONE_RX, 0),
        ("NIF", r"\b[0-9]{8}[A-HJ-NP-TV-Z]\b", re.IGNORECASE),
        ("NIE", r"\b[XYZ][0-9]{7}[A-HJ-NP-TV-Z]\b", re.IGNORECASE),
        ("CIF", r"\b[ABCDEFGHJKLMNPQRSUVW][0-9]{7}[0-9A-J]\b", re.IGNORECASE),
        ("IBAN", r"\b(?:" + "|".join(IBAN_COUNTRIES) + r")\d{2}[A-Z0-9]{10,30}\b", re.IGNORECASE),
        ("IPv4", rf"\b(?:{_OCTET}\.){{3}}{_OCTET}\b", 0),
    )

    def __init__(self):
        self.compiled_patterns = [
            (label, re.compile(pattern, flags)) for label, pattern, flags in self.PATTERNS
        ]

    def match_text(self, text: str) -> str | None:
        """Label of the first pattern found in `text`, or None."""
        for label, rx in self.compiled_patterns:
            if rx.search(text):
                return label
        return None

    def _walk(self, data, matches: list[str]) -> None:
        if isinstance(data, str):
            label = self.match_text(data)
            if label is not None:
                matches.append(label)
        elif isinstance(data, Mapping):
            for value in data.values():
                self._walk(value, matches)
        elif isinstance(data, (list, tuple, set, frozenset)):
            for value in data:
                self._walk(value, matches)

    def scan(self, data) -> PiiScanResult:
        matches: list[str] = []
        self._walk(data, matches)
        return PiiScanResult(ok=not matches, matches=list(dict.fromkeys(matches)))

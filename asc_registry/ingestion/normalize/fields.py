"""
Field Normalizers

Pure, stateless cleaners for one ASC registry field at a time. Every function
accepts any scalar (``None``, NaN, numbers, strings) and returns either a
cleaned value or ``None`` for "absent". Malformed input never raises.

Casing follows Postgres ``INITCAP`` semantics: the value is lower-cased and
the first character of every alphanumeric run is upper-cased, so
``"3RD"`` becomes ``"3rd"`` rather than ``"3Rd"``. Accented letters belong
to the run: ``"PEÑA"`` becomes ``"Peña"``.
"""

import re
from datetime import date, datetime
from typing import Any, NamedTuple, Optional

import pandas as pd


_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"[^0-9]")
_ALNUM_RUN_RE = re.compile(r"[^\W_]+")
_APOSTROPHE_RE = re.compile(r"['`]")
_EXTENSION_RE = re.compile(r"x\s*(\d+)", re.IGNORECASE)
_COMPANY_PUNCT_RE = re.compile(r"[^\w\s]|_")

_HONORIFIC_RE = re.compile(r"^(Dr\.?|Mr\.?|Mrs\.?|Ms\.?|Miss\.?)\s+", re.IGNORECASE)
# Generational/professional suffixes plus OCR-confusable variants ("111", "lll")
_NAME_SUFFIX_RE = re.compile(
    r"\s+(Jr\.?|Sr\.?|III?|IV|VI?|Esq\.?|3rd|MAI|[MP][RS]\.?|\(M\)|111|lll)$",
    re.IGNORECASE,
)
_COMPANY_SUFFIX_RE = re.compile(r"(^|\s+)(LLC|INC|CORP|LTD|PC|PA|LP|LLP)\.?\s*$", re.IGNORECASE)

STATUS_VALUES = ("Active", "Inactive", "Expired", "Suspended", "Revoked", "Surrendered", "Retired")
CERTIFICATION_TYPES = (
    "Certified General",
    "Certified Residential",
    "Licensed",
    "Trainee",
    "Transitional License",
)

_STATUS_LOOKUP = {value.upper(): value for value in STATUS_VALUES}
_CERTIFICATION_LOOKUP = {value.upper(): value for value in CERTIFICATION_TYPES}


class NormalizedPhone(NamedTuple):
    """10-digit US number plus an optional extension"""
    number: str
    extension: Optional[str] = None


def clean_text(value: Any) -> Optional[str]:
    """Trim a value; blank, whitespace-only and missing values become None."""
    if value is None:
        return None
    if not isinstance(value, str):
        if pd.isna(value):
            return None
        value = str(value)
    cleaned = value.strip()
    return cleaned or None


def initcap(value: str) -> str:
    """Lower-case, then capitalise the first character of each alphanumeric run."""
    return _ALNUM_RUN_RE.sub(
        lambda match: match.group(0)[0].upper() + match.group(0)[1:],
        value.lower(),
    )


def normalize_phone(value: Any) -> Optional[NormalizedPhone]:
    """
    Normalize a US phone number.

    Examples:
        "(555) 123-4567"   -> NormalizedPhone("5551234567", None)
        "15551234567"      -> NormalizedPhone("5551234567", None)
        "555-123-4567 x42" -> NormalizedPhone("5551234567", "42")
        "0551234567"       -> None (area code cannot start with 0 or 1)
    """
    text = clean_text(value)
    if text is None or text.upper() == "NONE":
        return None

    digits = _NON_DIGIT_RE.sub("", text)
    extension = None

    extension_matches = _EXTENSION_RE.findall(text)
    if extension_matches:
        extension = extension_matches[-1]
        if digits.endswith(extension):
            digits = digits[: len(digits) - len(extension)]

    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    elif len(digits) != 10:
        return None

    if digits[0] in ("0", "1"):
        return None

    return NormalizedPhone(digits, extension)


def normalize_zip(value: Any) -> Optional[str]:
    """
    Normalize a ZIP code to five digits.

    ZIP+4 keeps the first five digits; 4- and 3-digit values lost their
    leading zeros to spreadsheet tooling and are re-padded.
    """
    text = clean_text(value)
    if text is None:
        return None

    digits = _NON_DIGIT_RE.sub("", text)
    if len(digits) == 5:
        return digits
    if len(digits) == 9:
        return digits[:5]
    if len(digits) in (3, 4):
        return digits.zfill(5)
    return None


def normalize_person_name(value: Any) -> Optional[str]:
    """
    Normalize one person-name field (first, middle or last).

    Examples:
        "  O'BRIEN "          -> "Obrien"
        "Dr. John Smith Jr."  -> "John Smith"

    Honorifics and suffixes are stripped until none remain, so the function
    is idempotent.
    """
    text = clean_text(value)
    if text is None:
        return None

    normalized = initcap(_APOSTROPHE_RE.sub("", text))

    previous = None
    while previous != normalized:
        previous = normalized
        normalized = _HONORIFIC_RE.sub("", normalized)
        normalized = _NAME_SUFFIX_RE.sub("", normalized)

    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
    return normalized or None


def normalize_company_name(value: Any) -> Optional[str]:
    """
    Normalize a company name for grouping.

    Example:
        "ACME APPRAISAL, LLC." -> "Acme Appraisal"

    The legal-entity suffix must be a whole word: "Tampa Valuation" keeps
    its trailing "pa". Stacked suffixes ("Acme Pa Llc") are all removed.
    """
    text = clean_text(value)
    if text is None:
        return None

    normalized = _COMPANY_PUNCT_RE.sub(" ", initcap(text))
    normalized = _WHITESPACE_RE.sub(" ", normalized).strip()
    previous = None
    while previous != normalized:
        previous = normalized
        normalized = _COMPANY_SUFFIX_RE.sub("", normalized).strip()
    return normalized or None


def normalize_address(value: Any) -> Optional[str]:
    """Normalize a street address or city name: INITCAP, then drop apostrophes."""
    text = clean_text(value)
    if text is None:
        return None
    normalized = _APOSTROPHE_RE.sub("", initcap(text)).strip()
    return normalized or None


normalize_city = normalize_address


def normalize_county(value: Any) -> Optional[str]:
    text = clean_text(value)
    if text is None:
        return None
    return initcap(text)


def normalize_state_code(value: Any, fallback: Any = None) -> Optional[str]:
    """Upper-case two-letter state code, falling back to ``fallback`` when blank."""
    text = clean_text(value)
    if text is None:
        text = clean_text(fallback)
    if text is None:
        return None
    return text.upper()


def normalize_date(value: Any) -> Optional[date]:
    """Parse a date; blank or unparseable text is absent."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = clean_text(value)
    if text is None:
        return None

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def normalize_status(value: Any) -> Optional[str]:
    """Map a license status onto its canonical spelling; unknown values pass through trimmed."""
    text = clean_text(value)
    if text is None:
        return None
    return _STATUS_LOOKUP.get(_WHITESPACE_RE.sub(" ", text).upper(), text)


def normalize_certification_type(value: Any) -> Optional[str]:
    """Map a certificate type onto its canonical spelling; unknown values pass through trimmed."""
    text = clean_text(value)
    if text is None:
        return None
    return _CERTIFICATION_LOOKUP.get(_WHITESPACE_RE.sub(" ", text).upper(), text)

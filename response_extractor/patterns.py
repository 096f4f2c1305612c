"""
Lexical patterns shared by the extractor and the chart selector.

Numbers may carry thousands-separating commas; every parse goes through
parse_number() so commas, K/M/B suffixes and non-finite results are handled
in one place.
"""

import math
import re
import string
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Tuple, Union

from response_extractor.models import TimeFamily

Number = Union[int, float]

NUMBER = r"\d+(?:,\d{3})*(?:\.\d+)?"

SUFFIX_SCALE = {
    "K": Decimal(1_000),
    "M": Decimal(1_000_000),
    "B": Decimal(1_000_000_000),
}


def parse_number(raw: str, suffix: Optional[str] = None) -> Optional[Number]:
    """
    Parse a numeric literal, stripping commas and applying a K/M/B suffix.
    Returns None for anything that is not a finite number.
    Integral results come back as int so "10" and "10.0" share one identity.
    """
    if raw is None:
        return None
    try:
        value = Decimal(raw.replace(",", "").strip())
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    if suffix:
        scale = SUFFIX_SCALE.get(suffix.upper())
        if scale is None:
            return None
        value *= scale
    as_float = float(value)
    if not math.isfinite(as_float):
        return None
    if value == value.to_integral_value():
        return int(value)
    return as_float


# Leading number of a cell; trailing text ("10 customers", "12m") is ignored.
# Scale suffixes are uppercase only so "12m" stays twelve minutes.
CELL_NUMBER_PATTERN = re.compile(
    r"(?P<sign>[+-])?\$?(?P<value>\d+(?:,\d{3})*(?:\.\d+)?|\.\d+)"
    r"(?P<suffix>[KMB](?![A-Za-z]))?"
)


def coerce_number(cell: str) -> Optional[Number]:
    """
    Read the leading number of a table/list cell, e.g. "1,200", "$2.5K",
    "-3%", "12.5" or "10 customers". None when the cell does not start with one.
    """
    if not isinstance(cell, str):
        return None
    match = CELL_NUMBER_PATTERN.match(cell.strip())
    if not match:
        return None
    value = parse_number(match.group("value"), match.group("suffix"))
    if value is None:
        return None
    return -value if match.group("sign") == "-" else value


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

LABEL = r"([\w\s]{3,30})"

PERCENT_METRIC_PATTERN = re.compile(rf"{LABEL}:\s*({NUMBER})%", re.IGNORECASE)
CURRENCY_METRIC_PATTERN = re.compile(rf"{LABEL}:\s*\$({NUMBER})([KMB])?", re.IGNORECASE)
# The unit must sit on the same line as its number
UNIT_METRIC_PATTERN = re.compile(rf"{LABEL}:\s*({NUMBER})[ \t]+([A-Za-z]+)", re.IGNORECASE)

# "Acme Corp (Churn: 35%)", "Beta Inc (Value: $12K)"
# Matches the parenthesized call-out only; the entity name is read back
# from the text before it with entity_name().
ENTITY_METRIC_PATTERN = re.compile(
    r"\((?:Churn|Risk|Score|Value):\s*\$?(\d+(?:\.\d+)?)%?\s*([KMB])?\)",
    re.IGNORECASE,
)

ENTITY_NAME_CHARS = frozenset(string.ascii_letters + "&")


def entity_name(prefix: str) -> str:
    """Trailing run of ASCII letters, whitespace and '&' in prefix, stripped."""
    start = len(prefix)
    while start > 0 and (prefix[start - 1] in ENTITY_NAME_CHARS or prefix[start - 1].isspace()):
        start -= 1
    return prefix[start:].strip()


# ---------------------------------------------------------------------------
# Tables and lists
# ---------------------------------------------------------------------------

TABLE_PATTERN = re.compile(
    r"^(?P<header>[ \t]*\|.+\|)[ \t]*\n"
    r"[ \t]*\|(?=[^\n]*-)[-:| \t]+\|[ \t]*\n"
    r"(?P<body>(?:[ \t]*\|.*\|[ \t]*(?:\n|$))+)",
    re.MULTILINE,
)

BULLET_LINE_PATTERN = re.compile(r"^[-•*][ \t]+(?P<item>\S.*)$")
NUMBERED_LINE_PATTERN = re.compile(r"^\d+\.[ \t]+(?P<item>\S.*)$")

# List item value sub-patterns, tried in order by the chart selector
LIST_LABELED_VALUE_PATTERN = re.compile(rf"^(.+?)[:\-]\s*({NUMBER})(?:%|\s|$)")
# Searched from position 1; the label is whatever precedes the match
LIST_PAREN_VALUE_PATTERN = re.compile(rf"\(({NUMBER})\)")
BARE_NUMBER_PATTERN = re.compile(NUMBER)

# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------

MONTH_NAMES = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|"
    r"Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
)
WEEKDAY_NAMES = (
    r"(?:Mon(?:day)?|Tue(?:s(?:day)?)?|Wed(?:nesday)?|Thu(?:r(?:s(?:day)?)?)?|"
    r"Fri(?:day)?|Sat(?:urday)?|Sun(?:day)?)"
)
YEAR = r"(?:19|20)\d{2}"

TIME_VALUE = rf"[\s:]+\$?(?P<value>{NUMBER})(?P<suffix>(?-i:[KMB])(?![A-Za-z]))?"


def _abbreviate(token: str) -> str:
    return token.strip()[:3].title()


def _month_year(token: str) -> str:
    parts = token.replace(",", " ").split()
    return f"{_abbreviate(parts[0])} {parts[-1]}"


def _collapse(token: str) -> str:
    return " ".join(token.split())


def _week(token: str) -> str:
    return f"Week {token.split()[-1]}"


# (family, token regex, date normalizer), in the order they are applied
TEMPORAL_FAMILIES: List[Tuple[TimeFamily, str, Callable[[str], str]]] = [
    (TimeFamily.MONTH, rf"\b(?P<token>{MONTH_NAMES})\b\.?", _abbreviate),
    (TimeFamily.MONTH_YEAR, rf"\b(?P<token>{MONTH_NAMES}\b\.?,?\s+{YEAR})\b", _month_year),
    (TimeFamily.QUARTER, rf"\b(?P<token>Q[1-4](?:\s+{YEAR})?)\b", lambda t: _collapse(t).upper()),
    (TimeFamily.WEEK, r"\b(?P<token>Week\s+\d{1,2})\b", _week),
    (TimeFamily.WEEKDAY, rf"\b(?P<token>{WEEKDAY_NAMES})\b", _abbreviate),
    (TimeFamily.YEAR, rf"\b(?P<token>{YEAR})\b", str.strip),
    (
        TimeFamily.DATE,
        r"\b(?P<token>\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{4}|\d{1,2}-\d{1,2}-\d{4})\b",
        str.strip,
    ),
]

# Token-only patterns: used to decide whether a table column is time-ordered
TEMPORAL_TOKEN_PATTERNS = [
    re.compile(token, re.IGNORECASE) for _, token, _ in TEMPORAL_FAMILIES
]

# Token followed by a value: used to collect time-series points
TIME_SERIES_PATTERNS = [
    (family, re.compile(token + TIME_VALUE, re.IGNORECASE), normalize)
    for family, token, normalize in TEMPORAL_FAMILIES
]


def looks_temporal(text: str) -> bool:
    """True if any temporal family appears anywhere in text."""
    return any(pattern.search(text) for pattern in TEMPORAL_TOKEN_PATTERNS)

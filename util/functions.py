# util/functions.py
import re
from typing import Iterable, Mapping, Optional

_PUNCT_RE = re.compile(r"[^\w\s]+", re.UNICODE)
_SPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D+")


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def collapse_ws(text: str) -> str:
    return _SPACE_RE.sub(" ", text).strip()


def strip_punctuation(text: str) -> str:
    """
    - Lowercase, replace punctuation (and underscores) with spaces, collapse whitespace.
    """
    return collapse_ws(_PUNCT_RE.sub(" ", text.lower()).replace("_", " "))


def digits_only(text: Optional[str]) -> str:
    return _NON_DIGIT_RE.sub("", text or "")


def flatten_text(values: Iterable[Optional[str]]) -> str:
    """Join non-empty values into one lowercased haystack for substring checks."""
    return " | ".join(str(v).strip().lower() for v in values if v is not None and str(v).strip())


def record_haystack(raw_fields: Mapping[str, Optional[str]], content_text: str = "") -> str:
    return flatten_text([*raw_fields.values(), content_text])


# core/fields.py
import re
from typing import Iterable, List, Mapping, Optional, Sequence
import httpx
from core.entities import LeadFields
from core.lookup_tables import (
    ADDRESS_FIELD_ALIASES,
    CITY_FIELD_ALIASES,
    COUNTRY_FIELD_ALIASES,
    FIELD_ALIASES,
    PLACEHOLDER_VALUES,
)
from util.functions import digits_only

Fields = Mapping[str, Optional[str]]

_EMAIL_LOCAL_RE = re.compile(r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~.\-]+$")
_EMAIL_DOMAIN_RE = re.compile(r"^[A-Za-z0-9.\-]+$")
_TLD_RE = re.compile(r"^[A-Za-z]{2,}$")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_KEY_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _present(fields: Fields) -> List[tuple]:
    """(key, trimmed value) pairs whose value is not blank."""
    out = []
    for k, v in fields.items():
        cv = _clean(v)
        if cv is not None:
            out.append((str(k), cv))
    return out


def extract_field(fields: Fields, canonical: str) -> Optional[str]:
    """
    Resolve one attribute from a schema-less row:
      1) exact key
      2) key equal ignoring case
      3) first key whose lowercased form contains `canonical`
    Blank values count as absent. Never raises.
    """
    if not fields or not canonical:
        return None
    exact = _clean(fields.get(canonical)) if canonical in fields else None
    if exact is not None:
        return exact

    wanted = canonical.strip().lower()
    present = _present(fields)
    for k, v in present:
        if k.strip().lower() == wanted:
            return v
    for k, v in present:
        if wanted in k.lower():
            return v
    return None


def _key_words(key: str) -> str:
    """'ContactEmail' / 'contact_email' -> ' contact email '."""
    words = _KEY_SPLIT_RE.split(_CAMEL_RE.sub(" ", key).lower())
    return " " + " ".join(w for w in words if w) + " "


def extract_all_fields(fields: Fields, aliases: Sequence[str]) -> List[str]:
    """
    Every distinct non-empty value reachable through any alias, in alias order.
    Within one alias, key-equal matches come before keys containing the alias
    as whole words ("Work Email" matches "email", "Mailing Address" does not match "mail").
    """
    if not fields:
        return []
    present = [(k, v, _key_words(k)) for k, v in _present(fields)]
    out: List[str] = []
    seen = set()

    def _add(v: str) -> None:
        if v not in seen:
            seen.add(v)
            out.append(v)

    for alias in aliases:
        wanted = alias.strip().lower()
        if not wanted:
            continue
        wanted_words = _key_words(wanted)
        if not wanted_words.strip():
            continue
        for k, v, _ in present:
            if k.strip().lower() == wanted:
                _add(v)
        for k, v, words in present:
            if k.strip().lower() != wanted and wanted_words in words:
                _add(v)
    return out


# ---------------- validators ----------------

def is_valid_email(value: Optional[str]) -> bool:
    if not value:
        return False
    v = value.strip()
    if v.count("@") != 1:
        return False
    local, domain = v.split("@")
    if not local or not domain:
        return False
    for part in (local, domain):
        if part.startswith(".") or part.endswith(".") or ".." in part:
            return False
    if not _EMAIL_LOCAL_RE.match(local) or not _EMAIL_DOMAIN_RE.match(domain):
        return False
    labels = domain.split(".")
    if len(labels) < 2 or any(not lbl or lbl.startswith("-") or lbl.endswith("-") for lbl in labels):
        return False
    return bool(_TLD_RE.match(labels[-1]))


def is_valid_phone(value: Optional[str]) -> bool:
    return 8 <= len(digits_only(value)) <= 15


def is_valid_website(value: Optional[str]) -> bool:
    if not value:
        return False
    v = value.strip()
    if not v or "@" in v or any(ch.isspace() for ch in v):
        return False
    if not _SCHEME_RE.match(v):
        v = "http://" + v
    try:
        url = httpx.URL(v)
    except (httpx.InvalidURL, ValueError):
        return False
    host = url.host or ""
    return url.scheme in ("http", "https") and "." in host.strip(".")


# ---------------- lead attribute resolution ----------------

def is_placeholder(value: Optional[str]) -> bool:
    return value is None or value.strip().lower() in PLACEHOLDER_VALUES


def looks_like_email(value: str) -> bool:
    return "@" in value


def looks_like_phone(value: str) -> bool:
    compact = "".join(value.split())
    digits = digits_only(compact)
    return len(digits) >= 7 and len(digits) >= 0.6 * len(compact)


def _first(values: Iterable[str], ok=lambda v: True) -> Optional[str]:
    for v in values:
        if not is_placeholder(v) and ok(v):
            return v
    return None


def _prefer_valid(values: List[str], validator) -> Optional[str]:
    return _first(values, validator) or _first(values)


def _name_like(value: str) -> bool:
    return not looks_like_email(value) and not looks_like_phone(value)


def resolve_lead_fields(fields: Fields) -> LeadFields:
    """
    Canonical lead attributes from one row. Validated values win over raw ones;
    names that are really emails or phone numbers are skipped.
    """
    company = _first(extract_all_fields(fields, FIELD_ALIASES["company"]), _name_like)

    def _contact_ok(v: str) -> bool:
        return _name_like(v) and (company is None or v.strip().lower() != company.strip().lower())

    contact = _first(extract_all_fields(fields, FIELD_ALIASES["contact"]), _contact_ok)
    email = _prefer_valid(extract_all_fields(fields, FIELD_ALIASES["email"]), is_valid_email)
    phone = _prefer_valid(extract_all_fields(fields, FIELD_ALIASES["phone"]), is_valid_phone)
    website = _prefer_valid(
        extract_all_fields(fields, FIELD_ALIASES["website"]), is_valid_website
    )
    industry = _first(extract_all_fields(fields, FIELD_ALIASES["industry"]))
    region = _first(extract_all_fields(fields, CITY_FIELD_ALIASES)) or _first(
        extract_all_fields(fields, COUNTRY_FIELD_ALIASES)
    )
    address = _first(extract_all_fields(fields, ADDRESS_FIELD_ALIASES))

    return LeadFields(
        company=company,
        contact=contact,
        email=email,
        phone=phone,
        website=website,
        industry=industry,
        region=region,
        address=address,
    )

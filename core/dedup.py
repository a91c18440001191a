# core/dedup.py
import logging
from dataclasses import replace
from typing import Dict, FrozenSet, List, Optional, Sequence, Set
from core.entities import LeadFields, ScoredCandidate
from core.fields import is_placeholder, is_valid_email, resolve_lead_fields
from core.lookup_tables import CORPORATE_SUFFIXES
from util.functions import digits_only, strip_punctuation

logger = logging.getLogger(__name__)

MIN_COMPANY_PHONE_DIGITS = 8
MIN_PHONE_DIGITS = 10


def normalize_company(value: Optional[str]) -> Optional[str]:
    """
    "Acme Pvt. Ltd." -> "acme". Trailing legal-form tokens are dropped; a name made
    only of suffixes is kept as-is so "The Company" does not become unknown.
    """
    if is_placeholder(value):
        return None
    tokens = strip_punctuation(value).split()
    if not tokens:
        return None
    trimmed = list(tokens)
    while trimmed and trimmed[-1] in CORPORATE_SUFFIXES:
        trimmed.pop()
    return " ".join(trimmed or tokens)


def normalize_contact(value: Optional[str]) -> Optional[str]:
    if is_placeholder(value):
        return None
    norm = strip_punctuation(value)
    return norm or None


def normalize_email(value: Optional[str]) -> Optional[str]:
    if not value or not is_valid_email(value):
        return None
    return value.strip().lower()


def normalize_phone(value: Optional[str]) -> str:
    if is_placeholder(value):
        return ""
    return digits_only(value)


class _Identity:
    __slots__ = ("company", "contact", "email", "phone")

    def __init__(self, lf: LeadFields) -> None:
        self.company = normalize_company(lf.company)
        self.contact = normalize_contact(lf.contact)
        self.email = normalize_email(lf.email)
        self.phone = normalize_phone(lf.phone)

    def group_key(self, record_id: str) -> str:
        if self.company:
            return f"company:{self.company}"
        if self.contact or self.email or self.phone:
            return f"contact:{self.contact or ''}|{self.email or ''}|{self.phone}"
        return f"record:{record_id}"


def _identity(candidate: ScoredCandidate) -> _Identity:
    return _Identity(resolve_lead_fields(candidate.record.raw_fields))


def _safe_identity(candidate: ScoredCandidate) -> _Identity:
    """A row whose fields cannot be resolved is kept as its own entity."""
    try:
        return _identity(candidate)
    except Exception as e:
        logger.warning(
            "dedup.identity_failed record=%s err=%s", candidate.record.id, type(e).__name__
        )
        return _Identity(LeadFields())


def fingerprints_for(candidate: ScoredCandidate) -> FrozenSet[str]:
    """
    Up to six "<strategy>:<value>" keys. Candidates sharing any key are one entity.
    """
    return _fingerprints(_identity(candidate))


def _fingerprints(ident: _Identity) -> FrozenSet[str]:
    c, ct, e, ph = ident.company, ident.contact, ident.email, ident.phone
    out: Set[str] = set()
    if c and ct:
        out.add(f"company_contact:{c}|{ct}")
    if c and e:
        out.add(f"company_email:{c}|{e}")
    if c and len(ph) >= MIN_COMPANY_PHONE_DIGITS:
        out.add(f"company_phone:{c}|{ph}")
    if e:
        out.add(f"email:{e}")
    if len(ph) >= MIN_PHONE_DIGITS:
        out.add(f"phone:{ph}")
    if ct and e:
        out.add(f"contact_email:{ct}|{e}")
    return frozenset(out)


def deduplicate(candidates: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    """
    First seen wins. Pass 1 drops any candidate sharing a fingerprint with an
    earlier one (dropped candidates still contribute their fingerprints).
    Pass 2 keeps one candidate per company key, or per contact key when the
    company is unknown.
    """
    owners: Dict[str, Optional[str]] = {}  # fingerprint -> company of first holder
    first_pass: List[tuple] = []
    dropped = 0

    for cand in candidates:
        ident = _safe_identity(cand)
        fps = _fingerprints(ident)
        cand = replace(cand, fingerprints=fps)
        shared = [fp for fp in fps if fp in owners]
        for fp in sorted(shared):
            if owners[fp] != ident.company:
                # same entity key, different company spelling: first seen stays
                logger.debug(
                    "dedup.conflict strategy=%s record=%s kept=%s dropped=%s",
                    fp.split(":", 1)[0],
                    cand.record.id,
                    owners[fp],
                    ident.company,
                )
        for fp in fps:
            owners.setdefault(fp, ident.company)
        if shared:
            dropped += 1
        else:
            first_pass.append((cand, ident))

    out: List[ScoredCandidate] = []
    groups: Set[str] = set()
    for cand, ident in first_pass:
        key = ident.group_key(cand.record.id)
        if key in groups:
            dropped += 1
            continue
        groups.add(key)
        out.append(cand)

    logger.info("dedup.done in=%d out=%d dropped=%d", len(candidates), len(out), dropped)
    return out


def resolve_scored(scored: Sequence[ScoredCandidate]) -> List[ScoredCandidate]:
    """
    Post-scoring identity pass: one entry per company (or contact) key, keeping
    the highest final score (earliest on ties). Result is sorted by score, stable.
    """
    best: Dict[str, ScoredCandidate] = {}
    order: List[str] = []
    for cand in scored:
        key = _safe_identity(cand).group_key(cand.record.id)
        current = best.get(key)
        if current is None:
            best[key] = cand
            order.append(key)
        elif cand.final_score > current.final_score:
            best[key] = cand

    out = [best[k] for k in order]
    out.sort(key=lambda c: c.final_score, reverse=True)
    if len(out) != len(scored):
        logger.info("dedup.resolved in=%d out=%d", len(scored), len(out))
    return out

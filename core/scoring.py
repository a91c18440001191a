# core/scoring.py
import logging
import re
from dataclasses import replace
from datetime import datetime, timezone
from functools import lru_cache
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple
from core.entities import LeadCriteria, LeadFields, ScoredCandidate, SubScores
from core.fields import (
    extract_all_fields,
    is_placeholder,
    is_valid_email,
    is_valid_phone,
    is_valid_website,
    resolve_lead_fields,
)
from core.lookup_tables import (
    ACTIVITY_FIELD_ALIASES,
    ACTIVITY_HIGH_TERMS,
    ACTIVITY_MEDIUM_TERMS,
    ACTIVITY_PREMIUM_TERMS,
    ADDRESS_FIELD_ALIASES,
    BUSINESS_TYPE_TERMS,
    CITY_ALIASES,
    CITY_FIELD_ALIASES,
    COUNTRY_FIELD_ALIASES,
    DIALING_CODES,
    ENGAGEMENT_FIELD_ALIASES,
    ENGAGEMENT_HIGH_TERMS,
    ENGAGEMENT_LOW_TERMS,
    ENGAGEMENT_MEDIUM_TERMS,
    EXPORT_TERMS,
    FIELD_ALIASES,
    INDUSTRY_FUZZY_SYNONYMS,
    INDUSTRY_RELATED_TERMS,
    QUALITY_MARKERS,
    REGION_ABBREVIATIONS,
    REGION_MEMBERS,
)
from util.constants import ScoreWeights
from util.errors import ScoringAnomaly
from util.functions import clamp, collapse_ws, record_haystack, strip_punctuation

logger = logging.getLogger(__name__)

NEUTRAL_REGION = 0.5
FALLBACK_SUB_SCORE = 0.1
FALLBACK_FINAL_SCORE = 10.0

Fields = Mapping[str, Optional[str]]


@lru_cache(maxsize=2048)
def _word_re(term: str) -> "re.Pattern[str]":
    return re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)")


def has_word(text: str, term: str) -> bool:
    """Whole-word (or whole-phrase) containment; `term` is matched case-insensitively."""
    term = term.strip().lower()
    return bool(term) and bool(_word_re(term).search(text))


def _any_word(text: str, terms: Iterable[str]) -> bool:
    return any(has_word(text, t) for t in terms)


def _count_words(text: str, terms: Iterable[str]) -> int:
    return sum(1 for t in set(terms) if has_word(text, t))


def _lower_values(fields: Fields, aliases: Sequence[str]) -> List[str]:
    return [v.lower() for v in extract_all_fields(fields, aliases)]


# ---------------- region ----------------

def _alias_set(table: Mapping[str, Tuple[str, ...]], key: str) -> List[str]:
    """Forward aliases of `key` plus every table key that lists `key` as an alias."""
    out = list(table.get(key, ()))
    for canonical, aliases in table.items():
        if key in aliases and canonical not in out:
            out.append(canonical)
    return out


def region_score(fields: Fields, content_text: str, region: Optional[str]) -> float:
    """
    Tiered match, first hit wins:
      city field 1.0, address 0.95, country/state 0.85, free text 0.92,
      city alias 0.88, dialing code 0.75, containing region 0.65,
      abbreviation / prefix 0.3, nothing 0.05; no region asked 0.5.
    """
    r = collapse_ws((region or "").lower())
    if not r:
        return NEUTRAL_REGION

    for v in _lower_values(fields, CITY_FIELD_ALIASES):
        if v == r or r in v or (len(v) >= 3 and has_word(r, v)):
            return 1.0
    for v in _lower_values(fields, ADDRESS_FIELD_ALIASES):
        if r in v:
            return 0.95
    for v in _lower_values(fields, COUNTRY_FIELD_ALIASES):
        if v == r or r in v or (len(v) >= 2 and has_word(r, v)):
            return 0.85

    haystack = record_haystack(fields, content_text)
    if r in haystack:
        return 0.92
    if _any_word(haystack, _alias_set(CITY_ALIASES, r)):
        return 0.88

    codes = DIALING_CODES.get(r, ())
    if codes:
        phones = ["".join(v.split()) for v in _lower_values(fields, FIELD_ALIASES["phone"])]
        if any(p.startswith(c) for p in phones for c in codes) or any(c in haystack for c in codes):
            return 0.75

    members = list(REGION_MEMBERS.get(r, ()))
    members += [parent for parent, inside in REGION_MEMBERS.items() if r in inside]
    if _any_word(haystack, members):
        return 0.65

    if _any_word(haystack, _alias_set(REGION_ABBREVIATIONS, r)):
        return 0.3
    first = r.split()[0]
    if len(first) >= 4 and re.search(r"(?<!\w)" + re.escape(first[:4]), haystack):
        return 0.3
    return 0.05


# ---------------- industry ----------------

def _singular(word: str) -> str:
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("s") and not word.endswith("ss") and len(word) > 3:
        return word[:-1]
    return word


def _table_key(table: Mapping[str, Tuple[str, ...]], industry: str) -> Optional[str]:
    if industry in table:
        return industry
    single = " ".join(_singular(w) for w in industry.split())
    if single in table:
        return single
    for key in table:
        if key in industry or key in single:
            return key
    return None


def _fraction(haystack: str, terms: Sequence[str]) -> float:
    if not terms:
        return 0.0
    return _count_words(haystack, terms) / len(set(terms))


def industry_score(
    fields: Fields, content_text: str, industry: Optional[str], keywords: Sequence[str] = ()
) -> float:
    ind = strip_punctuation(industry or "")
    if not ind:
        return 0.0
    haystack = record_haystack(fields, content_text)
    total = 0.0

    field_text = " | ".join(_lower_values(fields, FIELD_ALIASES["industry"]))
    tokens = [t for t in ind.split() if len(t) >= 3] or ind.split()
    if field_text and tokens:
        hits = sum(
            1 for t in tokens if t in field_text or _singular(t) in field_text
        )
        total += 0.8 * hits / len(tokens)

    if ind in haystack or (industry or "").strip().lower() in haystack:
        total += 0.6

    kws = [k.strip().lower() for k in keywords if k and k.strip()]
    if kws:
        total += 0.5 * sum(1 for k in kws if k in haystack) / len(kws)

    key = _table_key(INDUSTRY_RELATED_TERMS, ind)
    if key:
        total += 0.4 * _fraction(haystack, INDUSTRY_RELATED_TERMS[key])
    key = _table_key(INDUSTRY_FUZZY_SYNONYMS, ind)
    if key:
        total += 0.3 * _fraction(haystack, INDUSTRY_FUZZY_SYNONYMS[key])

    return clamp(total)


# ---------------- contact / activity / export / engagement / freshness ----------------

def completeness_score(lf: LeadFields) -> float:
    total = 0.0
    if is_valid_email(lf.email):
        total += 0.30
    if is_valid_phone(lf.phone):
        total += 0.25
    if not is_placeholder(lf.company) and len(strip_punctuation(lf.company)) >= 2:
        total += 0.20
    if is_valid_website(lf.website):
        total += 0.15
    if not is_placeholder(lf.address):
        total += 0.10
    return clamp(total)


def activity_score(fields: Fields) -> float:
    text = " | ".join(_lower_values(fields, ACTIVITY_FIELD_ALIASES))
    if not text:
        return 0.5
    score = 0.5
    if _any_word(text, ACTIVITY_HIGH_TERMS):
        score = 1.0
    elif _any_word(text, ACTIVITY_MEDIUM_TERMS):
        score = 0.7
    if _any_word(text, ACTIVITY_PREMIUM_TERMS):
        score = max(score, 0.8)
    return score


def engagement_score(fields: Fields) -> float:
    text = " | ".join(_lower_values(fields, ENGAGEMENT_FIELD_ALIASES))
    if _any_word(text, ENGAGEMENT_HIGH_TERMS):
        return 1.0
    if _any_word(text, ENGAGEMENT_MEDIUM_TERMS):
        return 0.6
    if _any_word(text, ENGAGEMENT_LOW_TERMS):
        return 0.2
    return 0.5


def export_score(fields: Fields, content_text: str) -> float:
    haystack = record_haystack(fields, content_text)
    export_hits = _count_words(haystack, EXPORT_TERMS)
    business_hits = _count_words(haystack, BUSINESS_TYPE_TERMS)
    return clamp(0.3 + min(0.6, 0.15 * export_hits) + min(0.4, 0.1 * business_hits))


def _age_days(created_at: Optional[datetime], now: datetime) -> Optional[float]:
    if created_at is None:
        return None
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return (now - created_at).total_seconds() / 86400.0


def freshness_score(
    fields: Fields,
    content_text: str,
    created_at: Optional[datetime],
    now: Optional[datetime] = None,
) -> float:
    now = now or datetime.now(timezone.utc)
    score = 0.5
    if _any_word(record_haystack(fields, content_text), QUALITY_MARKERS):
        score += 0.3
    filled = sum(1 for v in fields.values() if v is not None and str(v).strip())
    score += min(0.2, 0.02 * filled)

    age = _age_days(created_at, now)
    if age is not None:
        if age <= 30:
            score += 0.3
        elif age <= 90:
            score += 0.2
        elif age <= 365:
            score += 0.1
    return clamp(score)


# ---------------- final score ----------------

def final_score(sub: SubScores) -> float:
    weighted = (
        sub.region * ScoreWeights.REGION
        + sub.industry * ScoreWeights.INDUSTRY
        + sub.completeness * ScoreWeights.COMPLETENESS
        + sub.activity * ScoreWeights.ACTIVITY
        + sub.export * ScoreWeights.EXPORT
        + sub.engagement * ScoreWeights.ENGAGEMENT
        + sub.freshness * ScoreWeights.FRESHNESS
    )
    return clamp(100.0 * weighted, 0.0, 100.0)


def match_reasons(
    candidate: ScoredCandidate, criteria: LeadCriteria, sub: SubScores
) -> List[str]:
    rec = candidate.record
    haystack = record_haystack(rec.raw_fields, rec.content_text)
    reasons: List[str] = []

    product = strip_punctuation(criteria.product or "")
    product_tokens = [t for t in product.split() if len(t) >= 3]
    if product and (product in haystack or any(has_word(haystack, t) for t in product_tokens)):
        reasons.append(f"Product match: {criteria.product}")
    if sub.industry >= 0.5:
        reasons.append(f"Industry match: {criteria.industry}")
    if criteria.region:
        if sub.region >= 0.85:
            reasons.append(f"Region match: {criteria.region}")
        elif sub.region >= 0.65:
            reasons.append(f"Nearby region: {criteria.region}")
    kw_hits = [k for k in criteria.keywords if k and k.strip().lower() in haystack]
    if kw_hits:
        reasons.append("Keyword match: " + ", ".join(kw_hits))
    if candidate.similarity >= 0.8:
        reasons.append("High semantic similarity")
    elif candidate.similarity >= 0.6:
        reasons.append("Moderate semantic similarity")
    return reasons


def score(
    candidate: ScoredCandidate, criteria: LeadCriteria, now: Optional[datetime] = None
) -> ScoredCandidate:
    rec = candidate.record
    fields = rec.raw_fields
    lf = resolve_lead_fields(fields)
    sub = SubScores(
        region=region_score(fields, rec.content_text, criteria.region),
        industry=industry_score(fields, rec.content_text, criteria.industry, criteria.keywords),
        completeness=completeness_score(lf),
        activity=activity_score(fields),
        export=export_score(fields, rec.content_text),
        engagement=engagement_score(fields),
        freshness=freshness_score(fields, rec.content_text, rec.created_at, now=now),
    )
    return replace(
        candidate,
        sub_scores=sub,
        final_score=final_score(sub),
        match_reasons=match_reasons(candidate, criteria, sub),
        anomaly=False,
    )


def _fallback(candidate: ScoredCandidate) -> ScoredCandidate:
    f = FALLBACK_SUB_SCORE
    return replace(
        candidate,
        sub_scores=SubScores(f, f, f, f, f, f, f),
        final_score=FALLBACK_FINAL_SCORE,
        match_reasons=[],
        anomaly=True,
    )


def score_all(
    candidates: Sequence[ScoredCandidate],
    criteria: LeadCriteria,
    now: Optional[datetime] = None,
) -> List[ScoredCandidate]:
    """
    Score every candidate. One bad record gets a low fallback score instead of
    aborting the batch.
    """
    now = now or datetime.now(timezone.utc)
    out: List[ScoredCandidate] = []
    anomalies = 0
    for cand in candidates:
        try:
            out.append(score(cand, criteria, now=now))
        except Exception as e:
            anomalies += 1
            err = ScoringAnomaly(cand.record.id, e)
            logger.warning("score.anomaly record=%s err=%s", err.record_id, type(e).__name__)
            out.append(_fallback(cand))
    logger.info("score.done n=%d anomalies=%d", len(out), anomalies)
    return out

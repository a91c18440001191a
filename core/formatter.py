# core/formatter.py
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence
from core.entities import LeadCriteria, ScoredCandidate, SubScores
from core.fields import resolve_lead_fields
from util.constants import PriorityThresholds, ScoreWeights
from util.types import Priority


def priority_for(final_score: float) -> Priority:
    if final_score >= PriorityThresholds.HIGH:
        return "High"
    if final_score >= PriorityThresholds.MEDIUM:
        return "Medium"
    return "Low"


def score_breakdown(sub: Optional[SubScores]) -> Dict[str, float]:
    """Each criterion's contribution in points (they sum to the final score)."""
    if sub is None:
        return {}

    def pts(value: float, weight: float) -> float:
        return round(value * weight * 100, 1)

    return {
        "geographicMatch": pts(sub.region, ScoreWeights.REGION),
        "industryMatch": pts(sub.industry, ScoreWeights.INDUSTRY),
        "contactCompleteness": pts(sub.completeness, ScoreWeights.COMPLETENESS),
        "leadActivity": pts(sub.activity, ScoreWeights.ACTIVITY),
        "exportReadiness": pts(sub.export, ScoreWeights.EXPORT),
        "engagement": pts(sub.engagement, ScoreWeights.ENGAGEMENT),
        "dataFreshness": pts(sub.freshness, ScoreWeights.FRESHNESS),
    }


def format_lead(candidate: ScoredCandidate) -> Dict[str, Any]:
    rec = candidate.record
    lf = resolve_lead_fields(rec.raw_fields)
    final = int(round(candidate.final_score))
    return {
        "id": rec.id,
        "companyName": lf.company or "Unknown Company",
        "region": lf.region,
        "industry": lf.industry,
        "email": lf.email,
        "phone": lf.phone,
        "website": lf.website,
        "contactPerson": lf.contact,
        "finalScore": final,
        "scoreBreakdown": score_breakdown(candidate.sub_scores),
        "vectorSimilarity": round(candidate.similarity, 4),
        "sourceDocumentId": rec.source_document_id,
        "matchReasons": list(candidate.match_reasons),
        "rawFields": dict(rec.raw_fields),
        "priority": priority_for(final),
    }


def format_leads(candidates: Sequence[ScoredCandidate]) -> List[Dict[str, Any]]:
    return [format_lead(c) for c in candidates]


def build_insights(
    leads: Sequence[Dict[str, Any]], criteria: LeadCriteria, total_analyzed: int
) -> Dict[str, Any]:
    """
    Short human summary of one find-leads response.
    """
    if not leads:
        return {
            "summary": f"No leads found for {criteria.product} in {criteria.industry}",
            "totalAnalyzed": total_analyzed,
            "averageScore": 0,
            "topRegions": [],
            "recommendedAction": "Broaden the region or keywords, or upload more data",
        }

    avg = round(sum(l["finalScore"] for l in leads) / len(leads))
    regions = Counter(l["region"] for l in leads if l.get("region"))
    high = sum(1 for l in leads if l["priority"] == "High")
    if high:
        action = f"Contact the {high} high-priority lead(s) first"
    elif avg >= PriorityThresholds.MEDIUM:
        action = "Qualify medium-priority leads before outreach"
    else:
        action = "Refine criteria; current matches are weak"

    where = f" in {criteria.region}" if criteria.region else ""
    return {
        "summary": f"Found {len(leads)} lead(s) for {criteria.product}{where}",
        "totalAnalyzed": total_analyzed,
        "averageScore": avg,
        "topRegions": [r for r, _ in regions.most_common(3)],
        "recommendedAction": action,
    }


def format_similar(candidates: Sequence[ScoredCandidate]) -> List[Dict[str, Any]]:
    return [
        {
            "record": {
                "id": c.record.id,
                "sourceDocumentId": c.record.source_document_id,
                "rawFields": dict(c.record.raw_fields),
                "contentText": c.record.content_text,
            },
            "score": round(c.similarity, 4),
        }
        for c in candidates
    ]

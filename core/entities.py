# core/entities.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Mapping, Optional
import numpy as np


@dataclass(frozen=True)
class EmbeddedRecord:
    """
    One ingested spreadsheet row with its embedding. Owned by the store; read-only here.
    `embedding` keeps whatever shape storage returned (list, key-indexed map, JSON string).
    """

    id: str
    source_document_id: Optional[str]
    raw_fields: Mapping[str, Optional[str]]
    content_text: str
    embedding: Any
    created_at: Optional[datetime] = None


@dataclass
class PreparedWindow:
    """
    Candidate window with vectors normalized once so several queries can reuse it.
    Rows are grouped by dimension; each group is an (n, d) float64 matrix.
    """

    records: List[EmbeddedRecord]
    groups: Dict[int, "VectorGroup"]
    skipped: int = 0


@dataclass
class VectorGroup:
    positions: np.ndarray  # (n,) indexes into PreparedWindow.records
    matrix: np.ndarray  # (n, d)
    norms: np.ndarray  # (n,)


@dataclass(frozen=True)
class SubScores:
    region: float
    industry: float
    completeness: float
    activity: float
    export: float
    engagement: float
    freshness: float


@dataclass(frozen=True)
class ScoredCandidate:
    record: EmbeddedRecord
    similarity: float
    fingerprints: FrozenSet[str] = frozenset()
    sub_scores: Optional[SubScores] = None
    final_score: float = 0.0
    match_reasons: List[str] = field(default_factory=list)
    anomaly: bool = False


@dataclass(frozen=True)
class LeadFields:
    company: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    industry: Optional[str] = None
    region: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class LeadCriteria:
    product: Optional[str]
    industry: Optional[str]
    region: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    limit: int = 10
    min_score: float = 55.0
    source_filter: Optional[str] = None


@dataclass
class EmbeddingResult:
    text: str
    vector: Optional[List[float]]
    error: Optional[str] = None


@dataclass
class LeadSearchResult:
    leads: List[Dict[str, Any]]
    total_matches: int
    qualified_count: int
    queries: List[str]
    insights: Dict[str, Any]
    diagnostics: Dict[str, Any]
    warning: Optional[str] = None
    fallback: bool = False

# model/api.py
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator
from config.settings import settings
from util.types import Priority


class FindLeadsRequest(BaseModel):
    # product/industry are checked by the pipeline so blanks map to one 400 message
    product: Optional[str] = None
    industry: Optional[str] = None
    region: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    limit: int = Field(default=settings.DEFAULT_LEAD_LIMIT, ge=1, le=100)
    minScore: float = Field(default=settings.DEFAULT_MIN_SCORE, ge=0, le=100)
    sourceFilter: Optional[str] = None

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, v: Any) -> Any:
        # accept "a, b" as well as ["a", "b"]
        if v is None:
            return []
        if isinstance(v, str):
            return [k.strip() for k in v.split(",") if k.strip()]
        return v


class ScoreBreakdown(BaseModel):
    geographicMatch: float
    industryMatch: float
    contactCompleteness: float
    leadActivity: float
    exportReadiness: float
    engagement: float
    dataFreshness: float


class LeadOut(BaseModel):
    id: str
    companyName: str
    region: Optional[str] = None
    industry: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    contactPerson: Optional[str] = None
    finalScore: int
    scoreBreakdown: ScoreBreakdown
    vectorSimilarity: float
    sourceDocumentId: Optional[str] = None
    matchReasons: List[str] = []
    rawFields: Dict[str, Optional[str]] = {}
    priority: Priority


class SearchCriteriaOut(BaseModel):
    product: str
    industry: str
    region: Optional[str] = None
    keywords: List[str] = []
    limit: int
    minScore: float
    sourceFilter: Optional[str] = None
    searchQueries: List[str] = []


class Insights(BaseModel):
    summary: str
    totalAnalyzed: int
    averageScore: int
    topRegions: List[str] = []
    recommendedAction: str


class FindLeadsResponse(BaseModel):
    leads: List[LeadOut]
    totalMatches: int
    qualifiedCount: int
    searchCriteria: SearchCriteriaOut
    warning: Optional[str] = None
    fallback: bool = False
    insights: Insights
    diagnostics: Dict[str, Any] = {}
    responseTime: int


class SearchSimilarRequest(BaseModel):
    query: str = Field(min_length=1)
    sourceFilter: Optional[str] = None
    topK: int = Field(default=5, ge=1, le=100)


class SimilarRecord(BaseModel):
    id: str
    sourceDocumentId: Optional[str] = None
    rawFields: Dict[str, Optional[str]] = {}
    contentText: str = ""


class SimilarHit(BaseModel):
    record: SimilarRecord
    score: float


class SearchSimilarResponse(BaseModel):
    results: List[SimilarHit]

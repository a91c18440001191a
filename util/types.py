# util/types.py
from typing import Dict, List, Literal, TypedDict


# Flow: Narrow types for the diagnostics block of a find-leads response.
Priority = Literal["High", "Medium", "Low"]


class QuerySummary(TypedDict):
    query: str
    resultsCount: int


class Diagnostics(TypedDict, total=False):
    queries: List[str]
    searchSummary: List[QuerySummary]
    embeddingFailures: int
    degraded: bool
    candidatesScored: int
    scoringAnomalies: int
    timingsMs: Dict[str, int]
    reason: str

"""
Pytest configuration and shared fixtures.
"""

import asyncio
import json
import os
import re
import zlib
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from core.embeddings import EmbeddingService
from core.entities import EmbeddedRecord, ScoredCandidate
from core.resilience import CircuitBreaker, RateLimiter
from util.enums import OrderHint

DIM = 512
_TOKEN_RE = re.compile(r"\w+")


def bow_vector(text: str, dim: int = DIM) -> List[float]:
    """Deterministic bag-of-words vector: one hashed bucket per lowercased token."""
    vec = [0.0] * dim
    for tok in _TOKEN_RE.findall((text or "").lower()):
        vec[zlib.crc32(tok.encode("utf-8")) % dim] += 1.0
    return vec


class FakeEmbeddingProvider:
    """
    Stands in for the sentence-transformers model.
    Texts listed in `fail_on` make the whole call raise; `fail_always` fails everything.
    """

    def __init__(self, fail_on: Sequence[str] = (), fail_always: bool = False, delay: float = 0.0):
        self.fail_on = set(fail_on)
        self.fail_always = fail_always
        self.delay = delay
        self.calls: List[List[str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_always or self.fail_on.intersection(texts):
                raise RuntimeError("provider down")
            return [bow_vector(t) for t in texts]
        finally:
            self.in_flight -= 1


class InMemoryStore:
    """CandidateStore over a fixed list; records are returned in list order."""

    def __init__(
        self,
        records: Sequence[EmbeddedRecord] = (),
        fail_times: int = 0,
        delay: float = 0.0,
    ):
        self.records = list(records)
        self.fail_times = fail_times
        self.delay = delay
        self.calls = 0

    async def fetch_candidates(
        self,
        source_filter: Optional[str],
        window_size: int,
        order_hint: OrderHint = OrderHint.RECENT,
    ) -> List[EmbeddedRecord]:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise ConnectionError("store unavailable")
        rows = [
            r for r in self.records
            if source_filter is None or r.source_document_id == source_filter
        ]
        return rows[:window_size]


def content_for(fields: Mapping[str, Optional[str]]) -> str:
    return " | ".join(f"{k}: {v}" for k, v in fields.items() if v)


def make_record(
    rid: str,
    fields: Dict[str, Optional[str]],
    *,
    content: Optional[str] = None,
    embedding=None,
    created_at: Optional[datetime] = None,
    source: Optional[str] = "doc-1",
) -> EmbeddedRecord:
    text = content if content is not None else content_for(fields)
    return EmbeddedRecord(
        id=rid,
        source_document_id=source,
        raw_fields=fields,
        content_text=text,
        embedding=embedding if embedding is not None else bow_vector(text),
        created_at=created_at,
    )


def make_candidate(rid: str, fields: Dict[str, Optional[str]], similarity: float = 0.8, **kw) -> ScoredCandidate:
    return ScoredCandidate(record=make_record(rid, fields, **kw), similarity=similarity)


def stored_json(record_id: str, fields: Dict, embedding, created_at: Optional[str] = None, source: str = "doc-1") -> str:
    return json.dumps(
        {
            "id": record_id,
            "sourceDocumentId": source,
            "rawFields": fields,
            "contentText": content_for(fields),
            "embedding": embedding,
            "createdAt": created_at,
        }
    )


TEXTILE_ROWS = [
    {
        "Company": "Sundari Sarees Pvt Ltd",
        "City": "Surat",
        "State": "Gujarat",
        "Country": "India",
        "Industry": "Textiles",
        "Products": "Women garments, Sari, silk",
        "Email": "info@sundari.in",
        "Phone": "+91 98250 12345",
        "Website": "sundarisarees.in",
        "Address": "Ring Road, Surat",
        "Business Type": "Manufacturer and Exporter",
        "Status": "Active",
    },
    {
        "Company": "Kanchi Silk House",
        "City": "Chennai",
        "Country": "India",
        "Industry": "Textile",
        "Products": "Silk sari, women garments",
        "Email": "sales@kanchisilk.com",
        "Phone": "+91 44 2345 6789",
        "Website": "https://kanchisilk.com",
        "Address": "T Nagar, Chennai",
        "Business Type": "Wholesaler",
        "Status": "Regular",
    },
    {
        "Company": "Jaipur Prints",
        "City": "Jaipur",
        "Country": "India",
        "Industry": "Textiles",
        "Products": "Block printed fabric, women garments",
        "Email": "hello@jaipurprints.co.in",
        "Phone": "0141 2233445",
        "Business Type": "Manufacturer",
    },
    {
        "Company": "Berlin Motors GmbH",
        "City": "Berlin",
        "Country": "Germany",
        "Industry": "Automotive",
        "Products": "Engine components",
        "Email": "kontakt@berlinmotors.de",
    },
]


@pytest.fixture
def textile_records() -> List[EmbeddedRecord]:
    return [make_record(f"r{i}", dict(row)) for i, row in enumerate(TEXTILE_ROWS)]


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def embedding_service(provider) -> EmbeddingService:
    return EmbeddingService(
        provider,
        breaker=CircuitBreaker(failure_threshold=5, reset_timeout=30.0),
        limiter=RateLimiter(requests_per_minute=10_000, tokens_per_minute=10_000_000),
        timeout=5.0,
        batch_size=100,
        max_concurrency=5,
    )

"""
Tests for single and batch vector search.
"""

import pytest

from core.search_engine import VectorSearchEngine
from conftest import InMemoryStore, bow_vector


def _ids(hits):
    return [h.record.id for h in hits]


class TestWindowSize:
    def test_scales_with_limit_and_is_capped(self):
        engine = VectorSearchEngine(InMemoryStore(), window_multiplier=50, window_max=1000)
        assert engine.window_size(5) == 250
        assert engine.window_size(100) == 1000
        assert engine.window_size(0) == 50


class TestSearch:
    @pytest.mark.asyncio
    async def test_single_search_ranks_highest_first(self, textile_records):
        engine = VectorSearchEngine(InMemoryStore(textile_records))
        hits = await engine.search(bow_vector("silk sari women garments"), limit=3, min_score=0.0)
        assert len(hits) == 3
        sims = [h.similarity for h in hits]
        assert sims == sorted(sims, reverse=True)
        assert "r3" not in _ids(hits)

    @pytest.mark.asyncio
    async def test_source_filter_is_passed_to_store(self, textile_records):
        engine = VectorSearchEngine(InMemoryStore(textile_records))
        assert await engine.search(bow_vector("silk"), source_filter="other-doc") == []


class TestBatchSearch:
    @pytest.mark.asyncio
    async def test_batch_matches_single_searches_in_input_order(self, textile_records):
        queries = [
            bow_vector("India Women garments Textiles"),
            bow_vector("Berlin automotive engine components"),
            bow_vector("silk"),
        ]
        engine = VectorSearchEngine(InMemoryStore(textile_records))
        batch = await engine.batch_search(queries, per_query_limit=2, min_score=0.1)

        assert len(batch) == len(queries)
        for q, hits in zip(queries, batch):
            single = await engine.search(q, limit=2, min_score=0.1)
            assert _ids(hits) == _ids(single)
            assert [h.similarity for h in hits] == pytest.approx([h.similarity for h in single])
        assert batch[1][0].record.id == "r3"
        assert engine.last_degraded is False

    @pytest.mark.asyncio
    async def test_window_is_fetched_once(self, textile_records):
        store = InMemoryStore(textile_records)
        engine = VectorSearchEngine(store)
        await engine.batch_search([bow_vector("silk"), bow_vector("fabric"), bow_vector("engine")])
        assert store.calls == 1

    @pytest.mark.asyncio
    async def test_empty_window_degrades_to_sequential(self):
        store = InMemoryStore([])
        engine = VectorSearchEngine(store)
        out = await engine.batch_search([bow_vector("silk"), bow_vector("fabric")])
        assert out == [[], []]
        assert engine.last_degraded is True
        assert store.calls == 3

    @pytest.mark.asyncio
    async def test_store_error_falls_back_transparently(self, textile_records):
        store = InMemoryStore(textile_records, fail_times=1)
        engine = VectorSearchEngine(store)
        queries = [bow_vector("silk sari"), bow_vector("engine components")]
        out = await engine.batch_search(queries, per_query_limit=2, min_score=0.1)

        assert engine.last_degraded is True
        healthy = VectorSearchEngine(InMemoryStore(textile_records))
        expected = await healthy.batch_search(queries, per_query_limit=2, min_score=0.1)
        assert [_ids(h) for h in out] == [_ids(h) for h in expected]

    @pytest.mark.asyncio
    async def test_store_timeout_isolates_each_query(self, textile_records):
        store = InMemoryStore(textile_records, delay=0.2)
        engine = VectorSearchEngine(store, store_timeout=0.01)
        out = await engine.batch_search([bow_vector("silk"), bow_vector("engine")])
        assert out == [[], []]
        assert engine.last_degraded is True

    @pytest.mark.asyncio
    async def test_no_queries(self, textile_records):
        store = InMemoryStore(textile_records)
        engine = VectorSearchEngine(store)
        assert await engine.batch_search([]) == []
        assert store.calls == 0

"""
Tests for the protected embedding service and the OpenAI-compatible provider.
"""

import pytest

import core.embeddings as embeddings
from core.embeddings import EmbeddingService, OpenAIEmbeddingProvider
from core.resilience import CircuitBreaker, RateLimiter
from util.enums import BreakerState
from util.errors import CircuitOpenError, EmbeddingProviderError
from conftest import FakeEmbeddingProvider, bow_vector


def _service(provider, **kw) -> EmbeddingService:
    kw.setdefault("breaker", CircuitBreaker(failure_threshold=5, reset_timeout=30))
    kw.setdefault("limiter", RateLimiter(requests_per_minute=10_000, tokens_per_minute=10_000_000))
    kw.setdefault("timeout", 5.0)
    return EmbeddingService(provider, **kw)


class TestEmbed:
    @pytest.mark.asyncio
    async def test_embed_single(self, embedding_service):
        assert await embedding_service.embed("silk sari") == bow_vector("silk sari")

    @pytest.mark.asyncio
    async def test_empty_text_raises(self, embedding_service):
        with pytest.raises(EmbeddingProviderError):
            await embedding_service.embed("   ")

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self):
        svc = _service(FakeEmbeddingProvider(fail_always=True))
        with pytest.raises(EmbeddingProviderError):
            await svc.embed("silk")

    @pytest.mark.asyncio
    async def test_timeout(self):
        svc = _service(FakeEmbeddingProvider(delay=0.5), timeout=0.01)
        with pytest.raises(EmbeddingProviderError, match="timed out"):
            await svc.embed("silk")


class TestEmbedBatch:
    @pytest.mark.asyncio
    async def test_results_aligned_with_input(self, embedding_service):
        texts = ["a b", "c", "d e f"]
        out = await embedding_service.embed_batch(texts, batch_size=2)
        assert [r.text for r in out] == texts
        assert [r.vector for r in out] == [bow_vector(t) for t in texts]
        assert all(r.error is None for r in out)

    @pytest.mark.asyncio
    async def test_failed_chunk_only_marks_its_own_texts(self):
        provider = FakeEmbeddingProvider(fail_on=["bad"])
        svc = _service(provider)
        out = await svc.embed_batch(["one", "two", "bad", "four", "five"], batch_size=2)

        assert [r.vector is None for r in out] == [False, False, True, True, False]
        assert out[2].error and out[3].error
        assert out[4].vector == bow_vector("five")

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        provider = FakeEmbeddingProvider(delay=0.02)
        svc = _service(provider)
        out = await svc.embed_batch([f"t{i}" for i in range(12)], batch_size=2, max_concurrency=2)
        assert len(out) == 12
        assert len(provider.calls) == 6
        assert provider.max_in_flight <= 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, embedding_service, provider):
        assert await embedding_service.embed_batch([]) == []
        assert provider.calls == []


class TestBreakerIntegration:
    @pytest.mark.asyncio
    async def test_open_breaker_short_circuits_provider(self):
        provider = FakeEmbeddingProvider(fail_always=True)
        breaker = CircuitBreaker(failure_threshold=2, reset_timeout=60)
        svc = _service(provider, breaker=breaker)

        for _ in range(2):
            with pytest.raises(EmbeddingProviderError):
                await svc.embed("x")
        assert breaker.state is BreakerState.OPEN

        with pytest.raises(CircuitOpenError):
            await svc.embed("x")
        assert len(provider.calls) == 2

        out = await svc.embed_batch(["a", "b"])
        assert all(r.vector is None for r in out)
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    async def test_success_closes_again(self):
        provider = FakeEmbeddingProvider(fail_always=True)
        breaker = CircuitBreaker(failure_threshold=1, reset_timeout=0)
        svc = _service(provider, breaker=breaker)
        with pytest.raises(EmbeddingProviderError):
            await svc.embed("x")
        provider.fail_always = False
        assert await svc.embed("x") == bow_vector("x")
        assert breaker.state is BreakerState.CLOSED


class TestOpenAIProvider:
    @pytest.mark.asyncio
    async def test_rows_are_ordered_by_index(self, monkeypatch):
        seen = {}

        async def fake_post(url, headers, payload, timeout):
            seen.update(url=url, headers=headers, payload=payload)
            return {
                "data": [
                    {"index": 1, "embedding": [0.0, 1.0]},
                    {"index": 0, "embedding": [1.0, 0.0]},
                ]
            }

        monkeypatch.setattr(embeddings, "_post_json", fake_post)
        provider = OpenAIEmbeddingProvider(api_key="sk-test", model="m", url="http://embed.local/v1/embeddings")
        out = await provider.embed_texts(["first", "second"])

        assert out == [[1.0, 0.0], [0.0, 1.0]]
        assert seen["payload"] == {"model": "m", "input": ["first", "second"]}
        assert seen["headers"]["authorization"] == "Bearer sk-test"

    @pytest.mark.asyncio
    async def test_count_mismatch_raises(self, monkeypatch):
        async def fake_post(url, headers, payload, timeout):
            return {"data": [{"index": 0, "embedding": [1.0]}]}

        monkeypatch.setattr(embeddings, "_post_json", fake_post)
        provider = OpenAIEmbeddingProvider(api_key="k", model="m", url="http://embed.local")
        with pytest.raises(EmbeddingProviderError):
            await provider.embed_texts(["a", "b"])

# core/local_embedder.py
import asyncio
from functools import lru_cache
from typing import List, Sequence
import numpy as np
from sentence_transformers import SentenceTransformer
from config.settings import settings
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _load_model(name: str) -> SentenceTransformer:
    """
    Lazy-load the sentence embedding model once per process.

    Model is kept CPU-friendly; set EMBEDDING_MODEL_NAME for a larger one.
    """
    with timed(logger, "embed.model.load", model=name):
        model = SentenceTransformer(name, device="cpu")
    return model


def _encode(name: str, texts: List[str], batch_size: int) -> List[List[float]]:
    model = _load_model(name)
    vecs = model.encode(
        texts,
        batch_size=batch_size,
        convert_to_numpy=True,
        normalize_embeddings=True,
    )
    emb = np.asarray(vecs, dtype=np.float32)
    logger.info("embed.local n=%d d=%d", emb.shape[0], emb.shape[1] if emb.size else 0)
    return emb.astype(float).tolist()


class LocalEmbeddingProvider:
    """
    sentence-transformers on CPU. Encoding runs in a worker thread so the event
    loop keeps serving other requests while a batch is embedded.
    """

    def __init__(self, model_name: str = settings.EMBEDDING_MODEL_NAME, batch_size: int = 64) -> None:
        self._model_name = model_name
        self._batch_size = batch_size

    async def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        with timed(logger, "embed.encode", n=len(texts), batch=self._batch_size):
            return await asyncio.to_thread(
                _encode, self._model_name, list(texts), self._batch_size
            )

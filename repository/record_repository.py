# repository/record_repository.py
import logging
from typing import Final, List, Optional
from pydantic import ValidationError
from redis.asyncio import Redis
from config.cache import get_redis
from core.entities import EmbeddedRecord
from model.record import StoredRecord
from repository.namespaces import RECORD_INDEX, RECORDS, SOURCES
from util.enums import OrderHint

KEY_PREFIX: Final[str] = RECORDS

logger = logging.getLogger(__name__)


class RecordRepository:
    """
    Read-only candidate store.

    Layout:
      leadfinder:records:<id>                  JSON StoredRecord
      leadfinder:records:index                 zset id -> createdAt epoch
      leadfinder:sources:<docId>:records       zset id -> createdAt epoch
    """

    @staticmethod
    async def _client() -> Redis:
        return await get_redis()

    @staticmethod
    def _key(record_id: str) -> str:
        return f"{KEY_PREFIX}:{record_id}"

    @staticmethod
    def index_key(source_filter: Optional[str] = None) -> str:
        if source_filter:
            return f"{SOURCES}:{source_filter}:records"
        return RECORD_INDEX

    @staticmethod
    def _s(v) -> str:
        return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)

    async def fetch_candidates(
        self,
        source_filter: Optional[str],
        window_size: int,
        order_hint: OrderHint = OrderHint.RECENT,
    ) -> List[EmbeddedRecord]:
        """
        Up to `window_size` records, newest first by default.
        Missing or malformed rows are skipped; no transaction is assumed.
        """
        if window_size <= 0:
            return []
        r = await self._client()
        index = self.index_key(source_filter)
        if order_hint == OrderHint.OLDEST:
            ids = await r.zrange(index, 0, window_size - 1)
        else:
            ids = await r.zrevrange(index, 0, window_size - 1)
        if not ids:
            logger.info("records.fetch.empty source=%s", source_filter or "*")
            return []

        ids = [self._s(i) for i in ids]
        raws = await r.mget([self._key(i) for i in ids])

        out: List[EmbeddedRecord] = []
        bad = 0
        for rid, raw in zip(ids, raws):
            if raw is None:
                bad += 1
                continue
            try:
                out.append(StoredRecord.model_validate_json(raw).to_entity())
            except ValidationError:
                bad += 1
                logger.warning("records.fetch.malformed id=%s", rid)
        if bad:
            logger.warning("records.fetch.skipped count=%d of=%d", bad, len(ids))
        logger.info(
            "records.fetch source=%s window=%d got=%d", source_filter or "*", window_size, len(out)
        )
        return out

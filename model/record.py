# model/record.py
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, field_validator
from core.entities import EmbeddedRecord


class StoredRecord(BaseModel):
    """
    JSON shape of one embedded row as ingestion writes it to Redis.
    `embedding` is left untyped: older rows carry key-indexed maps or JSON strings.
    """

    id: str
    sourceDocumentId: Optional[str] = None
    rawFields: Dict[str, Optional[str]] = {}
    contentText: str = ""
    embedding: Any = None
    createdAt: Optional[datetime] = None

    @field_validator("rawFields", mode="before")
    @classmethod
    def _stringify_values(cls, v: Any) -> Any:
        # spreadsheet cells arrive as numbers/bools too
        if isinstance(v, dict):
            return {str(k): (None if val is None else str(val)) for k, val in v.items()}
        return v

    def to_entity(self) -> EmbeddedRecord:
        return EmbeddedRecord(
            id=self.id,
            source_document_id=self.sourceDocumentId,
            raw_fields=dict(self.rawFields),
            content_text=self.contentText or "",
            embedding=self.embedding,
            created_at=self.createdAt,
        )

# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "leadfinder"

RECORDS: Final[str] = f"{ROOT}:records"  # JSON per embedded record
RECORD_INDEX: Final[str] = f"{RECORDS}:index"  # zset id -> created_at epoch
SOURCES: Final[str] = f"{ROOT}:sources"  # per source document zsets

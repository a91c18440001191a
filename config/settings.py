# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0", validation_alias="REDIS_URL"
    )

    # CORS & Limits
    ALLOWED_ORIGIN: str = Field(
        default="http://localhost:3000", validation_alias="ALLOWED_ORIGIN"
    )
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Embedding Engine
    EMBEDDING_PROVIDER: str = Field(default="local", validation_alias="EMBEDDING_PROVIDER")
    EMBEDDING_MODEL_NAME: str = "sentence-transformers/all-MiniLM-L6-v2"
    OPENAI_EMBEDDINGS_URL: str = "https://api.openai.com/v1/embeddings"
    OPENAI_EMBEDDING_MODEL: str = "text-embedding-3-large"
    OPENAI_API_KEY: str = Field(default="", validation_alias="OPENAI_API_KEY")
    EMBEDDING_TIMEOUT_SECONDS: float = 30.0
    EMBED_BATCH_SIZE: int = 100
    EMBED_MAX_CONCURRENCY: int = 5

    # Provider protection (process-wide)
    EMBED_REQUESTS_PER_MINUTE: int = 3000
    EMBED_TOKENS_PER_MINUTE: int = 1_000_000
    BREAKER_FAILURE_THRESHOLD: int = 5
    BREAKER_RESET_SECONDS: float = 30.0

    # Candidate store & search
    STORE_TIMEOUT_SECONDS: float = 10.0
    CANDIDATE_WINDOW_MULTIPLIER: int = 50
    CANDIDATE_WINDOW_MAX: int = 1000
    SEARCH_MIN_SIMILARITY: float = 0.1
    PER_QUERY_LIMIT_FACTOR: int = 5

    # Lead ranking
    DEFAULT_LEAD_LIMIT: int = 10
    DEFAULT_MIN_SCORE: int = 55
    FALLBACK_TOP_N: int = 5

    # Logging knobs
    LOGGER_NAME: str = "lead-finder"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)

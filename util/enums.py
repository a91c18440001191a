# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class BreakerState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class OrderHint(str, Enum):
    RECENT = "recent"
    OLDEST = "oldest"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    MISSING_CRITERIA = ErrorInfo(
        "Missing required parameters (product, industry)",
        status.HTTP_400_BAD_REQUEST,
    )
    EMBEDDING_UNAVAILABLE = ErrorInfo(
        "Embedding provider unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
    )
    MISSING_QUERY = ErrorInfo("Missing required parameter (query)", status.HTTP_400_BAD_REQUEST)
    STORE_UNAVAILABLE = ErrorInfo(
        "Record store unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
    )

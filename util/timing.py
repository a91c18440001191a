# util/timing.py
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Any) -> Iterator[Dict[str, int]]:
    """
    Usage:
      with timed(logger, "search.batch", queries=8) as span:
          ...
      timings["search"] = span["ms"]
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."
    """
    span: Dict[str, int] = {"ms": 0}
    t0 = time.perf_counter()
    try:
        yield span
    finally:
        span["ms"] = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.done ms=%d%s", name, span["ms"], suffix)

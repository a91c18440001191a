# core/query_builder.py
import logging
from typing import List, Optional, Sequence
from util.errors import InputValidationError
from util.functions import collapse_ws

logger = logging.getLogger(__name__)

MAX_QUERY_KEYWORDS = 2


def _join(*parts: Optional[str]) -> str:
    return collapse_ws(" ".join(p for p in parts if p))


def build_queries(
    product: Optional[str],
    industry: Optional[str],
    region: Optional[str] = None,
    keywords: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Expand criteria into ordered, de-duplicated search texts. Region goes first
    because it carries the heaviest scoring weight:

      region+product+industry+kw, region+product, region+industry, region,
      region+kw, product+industry, product+kw, product

    Region entries are only produced when a region is given.
    Raises InputValidationError when product or industry is blank.
    """
    p = collapse_ws(product or "")
    ind = collapse_ws(industry or "")
    if not p or not ind:
        raise InputValidationError("product and industry are required")

    r = collapse_ws(region or "")
    kw = _join(*[collapse_ws(str(k)) for k in (keywords or []) if k and str(k).strip()][:MAX_QUERY_KEYWORDS])

    candidates: List[str] = []
    if r:
        candidates += [
            _join(r, p, ind, kw),
            _join(r, p),
            _join(r, ind),
            r,
            _join(r, kw) if kw else "",
        ]
    candidates += [
        _join(p, ind),
        _join(p, kw) if kw else "",
        p,
    ]

    out: List[str] = []
    seen = set()
    for q in candidates:
        key = q.lower()
        if not q or key in seen:
            continue
        seen.add(key)
        out.append(q)
    logger.info("queries.built count=%d region=%s", len(out), bool(r))
    return out

# core/vectors.py
import json
import logging
import math
from numbers import Real
from typing import Any, Dict, List, Optional, Sequence
import numpy as np
from core.entities import EmbeddedRecord, PreparedWindow, ScoredCandidate, VectorGroup

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    f = float(value)
    return f if math.isfinite(f) else None


def _from_sequence(values: Sequence[Any]) -> Optional[List[float]]:
    out: List[float] = []
    for v in values:
        f = _as_float(v)
        if f is None:
            return None
        out.append(f)
    return out or None


def _from_key_indexed(mapping: Dict[Any, Any]) -> Optional[List[float]]:
    """
    Storage sometimes round-trips arrays as {"0": 0.1, "1": 0.2, ...}.
    Keys must parse as the integers 0..n-1 with no gaps or repeats.
    """
    indexed = []
    for k, v in mapping.items():
        try:
            idx = int(str(k).strip())
        except ValueError:
            return None
        indexed.append((idx, v))
    indexed.sort(key=lambda kv: kv[0])
    if [i for i, _ in indexed] != list(range(len(indexed))):
        return None
    return _from_sequence([v for _, v in indexed])


def to_vector(raw: Any) -> Optional[List[float]]:
    """
    Recover an ordered float vector from whatever the store handed back.
    Returns None when the value cannot be trusted (non-numeric, NaN/inf, empty, unknown shape).
    """
    if raw is None:
        return None
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return None
    if isinstance(raw, np.ndarray):
        if raw.ndim != 1 or not np.issubdtype(raw.dtype, np.number):
            return None
        return _from_sequence(raw.tolist())
    if isinstance(raw, dict):
        return _from_key_indexed(raw) if raw else None
    if isinstance(raw, (list, tuple)):
        return _from_sequence(raw)
    return None


def similarity(query: Any, candidate: Any) -> float:
    """
    Cosine similarity remapped from [-1, 1] to [0, 1].
    Mismatched lengths, empty or non-numeric vectors and zero norms give 0; never raises.
    """
    q = to_vector(query)
    c = to_vector(candidate)
    if q is None or c is None or len(q) != len(c):
        return 0.0
    qa = np.asarray(q, dtype=np.float64)
    ca = np.asarray(c, dtype=np.float64)
    denom = float(np.linalg.norm(qa)) * float(np.linalg.norm(ca))
    if denom == 0.0:
        return 0.0
    cos = float(np.dot(qa, ca)) / denom
    if not math.isfinite(cos):
        return 0.0
    return max(0.0, min(1.0, (cos + 1.0) / 2.0))


def prepare_window(records: Sequence[EmbeddedRecord]) -> PreparedWindow:
    """
    Normalize every record's vector once. Unconvertible vectors are skipped,
    not scored as zero.
    """
    by_dim: Dict[int, List[int]] = {}
    vectors: Dict[int, List[float]] = {}
    skipped = 0
    for pos, rec in enumerate(records):
        vec = to_vector(rec.embedding)
        if vec is None:
            skipped += 1
            continue
        vectors[pos] = vec
        by_dim.setdefault(len(vec), []).append(pos)

    groups: Dict[int, VectorGroup] = {}
    for dim, positions in by_dim.items():
        matrix = np.asarray([vectors[p] for p in positions], dtype=np.float64)
        groups[dim] = VectorGroup(
            positions=np.asarray(positions, dtype=np.int64),
            matrix=matrix,
            norms=np.linalg.norm(matrix, axis=1),
        )
    if skipped:
        logger.warning(
            "vectors.window.skipped count=%d of=%d", skipped, len(records)
        )
    return PreparedWindow(records=list(records), groups=groups, skipped=skipped)


def _window_scores(window: PreparedWindow, query: List[float]) -> Dict[int, float]:
    qv = np.asarray(query, dtype=np.float64)
    qn = float(np.linalg.norm(qv))
    scores: Dict[int, float] = {}
    for dim, group in window.groups.items():
        if dim != qv.shape[0] or qn == 0.0:
            sims = np.zeros(group.positions.shape[0])
        else:
            dots = group.matrix @ qv
            denom = group.norms * qn
            with np.errstate(divide="ignore", invalid="ignore"):
                cos = np.where(denom > 0, dots / denom, 0.0)
            sims = np.clip((cos + 1.0) / 2.0, 0.0, 1.0)
            sims = np.where(denom > 0, sims, 0.0)
        for pos, s in zip(group.positions.tolist(), sims.tolist()):
            scores[pos] = float(s)
    return scores


def rank_window(
    window: PreparedWindow, query: Any, limit: int, min_score: float
) -> List[ScoredCandidate]:
    """
    Score every usable record in the window, keep score > min_score,
    stable-sort descending (window order breaks ties) and cut to `limit`.
    """
    q = to_vector(query)
    if q is None or limit <= 0:
        return []
    scores = _window_scores(window, q)
    kept = [(pos, s) for pos, s in sorted(scores.items()) if s > min_score]
    kept.sort(key=lambda t: t[1], reverse=True)
    return [
        ScoredCandidate(record=window.records[pos], similarity=s)
        for pos, s in kept[:limit]
    ]

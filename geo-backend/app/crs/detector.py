from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .catalog import Catalog, ProjectionDefinition
from .diagnostics import pack_candidates

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN_THRESHOLD = 1000.0
DEFAULT_MIN_POINTS = 1
DEGREE_LIMIT = 180.0

Point = Tuple[float, float]


def filter_origin_points(points: Iterable[Sequence[float]], threshold: float = DEFAULT_ORIGIN_THRESHOLD) -> List[Point]:
    """Drop points lying within ``threshold`` of the origin on both axes."""
    kept: List[Point] = []
    for p in points:
        x, y = float(p[0]), float(p[1])
        if max(abs(x), abs(y)) > threshold:
            kept.append((x, y))
    return kept


def centroid(points: Sequence[Point]) -> Optional[Point]:
    if not points:
        return None
    n = float(len(points))
    return sum(p[0] for p in points) / n, sum(p[1] for p in points) / n


def guess_unit(x: float, y: float) -> str:
    return "degree" if abs(x) <= DEGREE_LIMIT and abs(y) <= DEGREE_LIMIT else "meter"


def candidates_at(x: float, y: float, catalog: Catalog) -> List[ProjectionDefinition]:
    unit = guess_unit(x, y)
    return [d for d in catalog if d.unit == unit and d.contains(x, y)]


def detect_centroid(
    x: float,
    y: float,
    catalog: Catalog,
    origin_threshold: float = DEFAULT_ORIGIN_THRESHOLD,
) -> Optional[ProjectionDefinition]:
    if max(abs(x), abs(y)) <= origin_threshold:
        return None
    matches = candidates_at(x, y, catalog)
    return matches[0] if matches else None


def detect(
    points: Iterable[Sequence[float]],
    catalog: Catalog,
    origin_threshold: float = DEFAULT_ORIGIN_THRESHOLD,
    min_points: int = DEFAULT_MIN_POINTS,
) -> Optional[ProjectionDefinition]:
    """Guess the projection a set of drawing coordinates is expressed in.

    Points near the origin (unplaced geometry) are ignored, the centroid of
    the rest is matched against catalog bounding boxes, and the first
    matching definition in catalog order wins. Returns None when too few
    points remain or nothing matches.
    """
    kept = filter_origin_points(points, origin_threshold)
    if len(kept) < max(1, min_points):
        return None
    c = centroid(kept)
    matches = candidates_at(c[0], c[1], catalog)
    return matches[0] if matches else None


def explain(
    points: Iterable[Sequence[float]],
    catalog: Catalog,
    origin_threshold: float = DEFAULT_ORIGIN_THRESHOLD,
    min_points: int = DEFAULT_MIN_POINTS,
) -> Dict[str, Any]:
    """Detection report: same decision as :func:`detect` plus the evidence behind it."""
    pts = [(float(p[0]), float(p[1])) for p in points]
    kept = filter_origin_points(pts, origin_threshold)
    diagnostics: Dict[str, Any] = {
        "points_total": len(pts),
        "points_kept": len(kept),
        "points_ignored": len(pts) - len(kept),
        "origin_threshold": origin_threshold,
        "centroid": None,
        "unit": None,
        "notes": [],
    }
    result: Dict[str, Any] = {"code": None, "candidates": [], "diagnostics": diagnostics}

    if len(kept) < max(1, min_points):
        diagnostics["notes"].append(f"only {len(kept)} usable point(s), need {max(1, min_points)}")
        return result

    cx, cy = centroid(kept)
    unit = guess_unit(cx, cy)
    diagnostics["centroid"] = [cx, cy]
    diagnostics["unit"] = unit
    matches = candidates_at(cx, cy, catalog)
    result["candidates"] = pack_candidates(matches)
    if not matches:
        diagnostics["notes"].append("centroid outside every known extent")
        return result
    result["code"] = matches[0].code
    if len(matches) > 1:
        diagnostics["notes"].append("ambiguous; first match in catalog order chosen")
    logger.debug("detected %s from %d point(s)", matches[0].code, len(kept))
    return result


__all__ = [
    "DEFAULT_MIN_POINTS",
    "DEFAULT_ORIGIN_THRESHOLD",
    "candidates_at",
    "centroid",
    "detect",
    "detect_centroid",
    "explain",
    "filter_origin_points",
    "guess_unit",
]

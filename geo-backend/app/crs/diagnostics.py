from __future__ import annotations

from typing import Any, Dict, List

from .catalog import ProjectionDefinition


def pack_candidates(defs: List[ProjectionDefinition]) -> List[Dict[str, Any]]:
    out = []
    for rank, d in enumerate(defs, start=1):
        out.append({
            "rank": rank,
            "code": d.code,
            "epsg": d.epsg,
            "label": d.display_name,
            "extent": [d.min_x, d.min_y, d.max_x, d.max_y],
        })
    return out


__all__ = ["pack_candidates"]

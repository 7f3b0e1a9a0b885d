from __future__ import annotations

import functools
import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

import anyio
from fastapi import APIRouter, HTTPException, Query, Request

from app.context import GeoSession
from app.crs.catalog import ProjectionDefinition
from app.crs.detector import explain
from app.crs.engine import Accuracy, convert_to_geodetic, convert_to_projected
from app.crs.geodesic import vincenty_distance
from app.schemas import (
    ConvertRequest,
    ConvertResponse,
    DetectResponse,
    DimensionOut,
    DimensionsRequest,
    DimensionsResponse,
    DistanceRequest,
    DistanceResponse,
    PointsRequest,
    PolylineIn,
    ProjectionOut,
    ProjectRequest,
    ProjectResponse,
    SnapOut,
    SnapRequest,
    SnapResponse,
    StationOut,
    StationsRequest,
    StationsResponse,
)
from geometry.dimensions import DimensionSettings, build_width_dimensions
from geometry.polyline import Polyline
from geometry.snap import SnapMode, detect_snap_points
from geometry.stations import BareCurve, StationLimitExceeded, build_stations

logger = logging.getLogger(__name__)

router = APIRouter()


def _session(request: Request) -> GeoSession:
    session = getattr(request.app.state, "session", None)
    if session is None or not session.is_open:
        raise HTTPException(status_code=503, detail="geo session not available")
    return session


def _projection_out(d: ProjectionDefinition) -> ProjectionOut:
    return ProjectionOut(**{k: v for k, v in d.to_dict().items() if k in ProjectionOut.model_fields})


def _lookup(session: GeoSession, code: str) -> ProjectionDefinition:
    d = session.catalog.find_by_code(code)
    if d is None:
        raise HTTPException(status_code=404, detail=f"Unknown projection code: {code}")
    return d


def _check_size(session: GeoSession, n: int) -> None:
    limit = session.settings.max_points
    if n > limit:
        raise HTTPException(status_code=413, detail=f"Too many points: {n} > {limit}")


def _hash_payload(kind: str, payload: Dict[str, Any]) -> str:
    h = hashlib.sha1()
    h.update(kind.encode("utf-8"))
    h.update(json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8"))
    return f"{kind}:{h.hexdigest()}"


async def _cache_get(request: Request, key: str) -> Optional[Any]:
    cache = getattr(request.app.state, "cache", None)
    if not cache:
        return None
    return await cache.get_json(key)


async def _cache_set(request: Request, key: str, value: Any) -> None:
    cache = getattr(request.app.state, "cache", None)
    if cache:
        await cache.set_json(key, value)


async def _offload(fn, *args):
    """Run a CPU-bound call off the event loop."""
    return await anyio.to_thread.run_sync(functools.partial(fn, *args))


def _polyline(p: PolylineIn) -> Polyline:
    try:
        return Polyline(p.vertices, closed=p.closed)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/crs/projections", response_model=List[ProjectionOut])
def list_projections(request: Request, q: Optional[str] = Query(default=None, description="search text")):
    """Catalog search over code, name, country, region, description and EPSG; empty lists everything."""
    found = _session(request).catalog.search(q)
    found = sorted(found, key=lambda d: (d.country, d.name))
    return [_projection_out(d) for d in found]


@router.get("/crs/projections/by-country", response_model=Dict[str, List[ProjectionOut]])
def projections_by_country(request: Request):
    groups = _session(request).catalog.by_country()
    return {country: [_projection_out(d) for d in defs] for country, defs in groups.items()}


@router.get("/crs/projections/{code}", response_model=ProjectionOut)
def get_projection(code: str, request: Request):
    return _projection_out(_lookup(_session(request), code))


@router.get("/crs/epsg/{epsg}", response_model=ProjectionOut)
def get_projection_by_epsg(epsg: int, request: Request):
    d = _session(request).catalog.find_by_epsg(epsg)
    if d is None:
        raise HTTPException(status_code=404, detail=f"Unknown EPSG code: {epsg}")
    return _projection_out(d)


def _conversion_response(conv) -> ConvertResponse:
    if conv.accuracy is not Accuracy.EXACT:
        logger.info("conversion with %s accuracy for %s", conv.accuracy.value, conv.code)
    return ConvertResponse(
        code=conv.code,
        accuracy=conv.accuracy.value,
        points=[list(p) for p in conv.points],
    )


@router.post("/crs/to-geodetic", response_model=ConvertResponse)
async def to_geodetic(req: ConvertRequest, request: Request):
    session = _session(request)
    _check_size(session, len(req.points))
    definition = _lookup(session, req.code)
    conv = await _offload(convert_to_geodetic, req.points, definition)
    return _conversion_response(conv)


@router.post("/crs/to-projected", response_model=ConvertResponse)
async def to_projected(req: ConvertRequest, request: Request):
    session = _session(request)
    _check_size(session, len(req.points))
    definition = _lookup(session, req.code)
    conv = await _offload(convert_to_projected, req.points, definition)
    return _conversion_response(conv)


@router.post("/crs/detect", response_model=DetectResponse)
async def detect_projection(req: PointsRequest, request: Request):
    """Suggest the projection drawing coordinates are expressed in.

    Points near the origin are ignored; the first catalog projection whose
    extent contains the centroid wins. ``code`` is null when nothing matches.
    """
    session = _session(request)
    _check_size(session, len(req.points))
    settings = session.settings
    key = _hash_payload("detect", {
        "points": req.points,
        "threshold": settings.origin_threshold,
        "min": settings.min_points,
        "catalog": session.catalog.fingerprint(),
    })
    cached = await _cache_get(request, key)
    if cached:
        try:
            return DetectResponse(**cached)
        except ValueError:
            logger.debug("ignoring corrupt cache entry %s", key)

    report = await _offload(explain, req.points, session.catalog, settings.origin_threshold, settings.min_points)
    chosen = session.catalog.find_by_code(report["code"]) if report["code"] else None
    resp = DetectResponse(
        code=report["code"],
        projection=_projection_out(chosen) if chosen else None,
        candidates=report["candidates"],
        diagnostics=report["diagnostics"],
    )
    await _cache_set(request, key, resp.model_dump())
    return resp


@router.post("/crs/distance", response_model=DistanceResponse)
def geodesic_distance(req: DistanceRequest):
    d = vincenty_distance(req.start[0], req.start[1], req.end[0], req.end[1])
    return DistanceResponse(distance_m=d, converged=d is not None)


def _station_response(curve, start: float, end: float, req: StationsRequest, limit: int) -> StationsResponse:
    values = build_stations(curve, start, end, req.interdistance, req.include_vertices, max_stations=limit)
    points: List[StationOut] = []
    if isinstance(curve, Polyline):
        for s in values:
            x, y = curve.point_at_distance(s)
            points.append(StationOut(station=s, x=x, y=y, tangent=curve.tangent_angle(s)))
    return StationsResponse(stations=values, points=points)


@router.post("/stations", response_model=StationsResponse)
async def stations(req: StationsRequest, request: Request):
    session = _session(request)
    if req.polyline is not None:
        _check_size(session, len(req.polyline.vertices))
    key = _hash_payload("stations", req.model_dump())
    cached = await _cache_get(request, key)
    if cached:
        try:
            return StationsResponse(**cached)
        except ValueError:
            logger.debug("ignoring corrupt cache entry %s", key)

    if req.polyline is not None:
        curve = _polyline(req.polyline)
    else:
        curve = BareCurve(req.length)
    start = 0.0 if req.start is None else req.start
    end = curve.length if req.end is None else req.end
    try:
        resp = await _offload(_station_response, curve, start, end, req, session.settings.max_points)
    except StationLimitExceeded as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    await _cache_set(request, key, resp.model_dump())
    return resp


@router.post("/stations/project", response_model=ProjectResponse)
def project_point(req: ProjectRequest):
    proj = _polyline(req.polyline).closest_point(req.point)
    return ProjectResponse(
        point=list(proj.point),
        station=proj.distance,
        offset=proj.offset,
        segment_index=proj.segment_index,
    )


@router.post("/stations/dimensions", response_model=DimensionsResponse)
def width_dimensions(req: DimensionsRequest, request: Request):
    session = _session(request)
    _check_size(session, len(req.reference.vertices) + len(req.target.vertices))
    settings = DimensionSettings(
        interdistance=req.interdistance,
        dimension_offset=req.dimension_offset,
        target_layer=req.target_layer,
        at_vertices=req.at_vertices,
        reverse_side=req.reverse_side,
        max_stations=session.settings.max_points,
    )
    reference, target = _polyline(req.reference), _polyline(req.target)
    try:
        dims = build_width_dimensions(reference, target, req.start_point, req.end_point, settings)
    except StationLimitExceeded as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return DimensionsResponse(dimensions=[
        DimensionOut(
            station=d.station,
            start=list(d.start),
            end=list(d.end),
            line_point=list(d.line_point),
            width=d.width,
            layer=d.layer,
        )
        for d in dims
    ])


@router.post("/snap", response_model=SnapResponse)
def snap(req: SnapRequest):
    try:
        modes = SnapMode.parse(req.modes, SnapMode.POLYLINE_SUPPORTED)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    hits = detect_snap_points(_polyline(req.polyline), req.cursor, req.tolerance, modes)
    return SnapResponse(snaps=[
        SnapOut(
            point=list(h.point),
            mode=h.mode.name,
            priority=h.priority,
            distance=h.distance,
            segment_index=h.segment_index,
            station=h.station,
        )
        for h in hits
    ])

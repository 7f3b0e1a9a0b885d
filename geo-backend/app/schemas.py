from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from geometry.stations import STATION_TOLERANCE


def _check_coords(v: List[List[float]], min_len: int, max_len: int, what: str) -> List[List[float]]:
    out = []
    for i, p in enumerate(v):
        if not min_len <= len(p) <= max_len:
            raise ValueError(f"{what} {i} must have {min_len} to {max_len} values, got {len(p)}")
        if not all(math.isfinite(c) for c in p):
            raise ValueError(f"{what} {i} has a non-finite value")
        out.append([float(c) for c in p])
    return out


def _check_interdistance(v: float) -> float:
    if 0 < v <= STATION_TOLERANCE:
        raise ValueError(f"interdistance must be 0 or greater than {STATION_TOLERANCE}")
    return v


class ProjectionOut(BaseModel):
    code: str
    name: str
    display_name: str
    epsg: int
    country: str
    region: str
    description: str
    unit: str
    family: str
    min_x: float
    max_x: float
    min_y: float
    max_y: float


class PointsRequest(BaseModel):
    points: List[List[float]] = Field(..., description="[x, y] or [x, y, z] per point")

    @field_validator("points")
    @classmethod
    def _validate_points(cls, v: List[List[float]]) -> List[List[float]]:
        if not v:
            raise ValueError("'points' must be a non-empty list")
        return _check_coords(v, 2, 3, "point")


class ConvertRequest(PointsRequest):
    code: str = Field(..., min_length=1, description="projection code, e.g. RGF93.LAMB93")


class ConvertResponse(BaseModel):
    code: str
    accuracy: str
    points: List[List[float]]


class DetectResponse(BaseModel):
    code: Optional[str] = None
    projection: Optional[ProjectionOut] = None
    candidates: List[Dict[str, Any]] = Field(default_factory=list)
    diagnostics: Dict[str, Any] = Field(default_factory=dict)


class DistanceRequest(BaseModel):
    start: List[float] = Field(..., description="[longitude, latitude]")
    end: List[float] = Field(..., description="[longitude, latitude]")

    @field_validator("start", "end")
    @classmethod
    def _validate_lonlat(cls, v: List[float]) -> List[float]:
        (lon, lat), = _check_coords([v], 2, 2, "position")
        if not -90.0 <= lat <= 90.0:
            raise ValueError("latitude must be within [-90, 90]")
        return [lon, lat]


class DistanceResponse(BaseModel):
    distance_m: Optional[float] = None
    converged: bool


class PolylineIn(BaseModel):
    vertices: List[List[float]] = Field(..., description="[x, y] or [x, y, bulge] per vertex")
    closed: bool = False

    @field_validator("vertices")
    @classmethod
    def _validate_vertices(cls, v: List[List[float]]) -> List[List[float]]:
        if len(v) < 2:
            raise ValueError("a polyline needs at least two vertices")
        return _check_coords(v, 2, 3, "vertex")


class StationsRequest(BaseModel):
    polyline: Optional[PolylineIn] = None
    length: Optional[float] = Field(default=None, ge=0.0, allow_inf_nan=False)
    start: Optional[float] = Field(default=None, allow_inf_nan=False)
    end: Optional[float] = Field(default=None, allow_inf_nan=False)
    interdistance: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    include_vertices: bool = False

    @field_validator("interdistance")
    @classmethod
    def _validate_interval(cls, v: float) -> float:
        return _check_interdistance(v)

    @model_validator(mode="after")
    def _need_curve(self) -> "StationsRequest":
        if self.polyline is None and self.length is None:
            raise ValueError("provide either 'polyline' or 'length'")
        return self


class StationOut(BaseModel):
    station: float
    x: float
    y: float
    tangent: float


class StationsResponse(BaseModel):
    stations: List[float]
    points: List[StationOut] = Field(default_factory=list)


class ProjectRequest(BaseModel):
    polyline: PolylineIn
    point: List[float]

    @field_validator("point")
    @classmethod
    def _validate_point(cls, v: List[float]) -> List[float]:
        return _check_coords([v], 2, 3, "point")[0]


class ProjectResponse(BaseModel):
    point: List[float]
    station: float
    offset: float
    segment_index: int


class DimensionsRequest(BaseModel):
    reference: PolylineIn
    target: PolylineIn
    start_point: List[float]
    end_point: List[float]
    interdistance: float = Field(default=0.0, ge=0.0, allow_inf_nan=False)
    dimension_offset: float = Field(default=1.0, allow_inf_nan=False)
    at_vertices: bool = False
    reverse_side: bool = False
    target_layer: Optional[str] = None

    @field_validator("interdistance")
    @classmethod
    def _validate_interval(cls, v: float) -> float:
        return _check_interdistance(v)

    @field_validator("start_point", "end_point")
    @classmethod
    def _validate_pick(cls, v: List[float]) -> List[float]:
        return _check_coords([v], 2, 3, "point")[0]


class DimensionOut(BaseModel):
    station: float
    start: List[float]
    end: List[float]
    line_point: List[float]
    width: float
    layer: Optional[str] = None


class DimensionsResponse(BaseModel):
    dimensions: List[DimensionOut]


class SnapRequest(BaseModel):
    polyline: PolylineIn
    cursor: List[float]
    tolerance: float = Field(..., gt=0.0)
    modes: List[str] = Field(default_factory=lambda: ["POLYLINE_FULL"])

    @field_validator("cursor")
    @classmethod
    def _validate_cursor(cls, v: List[float]) -> List[float]:
        return _check_coords([v], 2, 3, "cursor")[0]


class SnapOut(BaseModel):
    point: List[float]
    mode: str
    priority: int
    distance: float
    segment_index: Optional[int] = None
    station: Optional[float] = None


class SnapResponse(BaseModel):
    snaps: List[SnapOut]

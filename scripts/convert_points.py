#!/usr/bin/env python3
"""Batch convert or detect projected/geodetic points from a CSV file.

Examples:
  python scripts/convert_points.py --code RGF93.LAMB93 --input pts.csv
  python scripts/convert_points.py --detect --input pts.csv
  python scripts/convert_points.py --code WGS84.UTM-31N --direction to-projected --input lonlat.csv
"""
from __future__ import annotations

import argparse
import csv
import json
import os
import sys
from typing import List, Optional, Sequence, TextIO

# Make geo-backend importable
THIS_DIR = os.path.dirname(__file__)
BACKEND_DIR = os.path.abspath(os.path.join(THIS_DIR, "..", "geo-backend"))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from app.config import Settings  # type: ignore
from app.context import GeoSession  # type: ignore
from app.crs.detector import explain  # type: ignore
from app.crs.engine import Accuracy, convert_to_geodetic, convert_to_projected  # type: ignore
from app.logging_setup import configure_logging  # type: ignore


def read_points(fh: TextIO) -> List[List[float]]:
    points: List[List[float]] = []
    for lineno, row in enumerate(csv.reader(fh), start=1):
        cells = [c.strip() for c in row if c.strip()]
        if not cells or cells[0].startswith("#"):
            continue
        try:
            values = [float(c) for c in cells[:3]]
        except ValueError:
            if lineno == 1:  # header row
                continue
            raise ValueError(f"line {lineno}: expected numbers, got {row!r}") from None
        if len(values) < 2:
            raise ValueError(f"line {lineno}: need at least two values")
        points.append(values)
    return points


DEGREE_DECIMALS = 9  # ~0.1 mm at the equator
METER_DECIMALS = 6


def write_points(
    fh: TextIO,
    points: Sequence[Sequence[float]],
    header: Sequence[str],
    horizontal_degrees: bool = False,
) -> None:
    """x/y use degree or metre precision; z is always in metres."""
    xy = DEGREE_DECIMALS if horizontal_degrees else METER_DECIMALS
    w = csv.writer(fh)
    w.writerow(header)
    for p in points:
        w.writerow([f"{v:.{xy if i < 2 else METER_DECIMALS}f}" for i, v in enumerate(p)])


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Convert or detect coordinates with the built-in projection catalog")
    ap.add_argument("--input", default="-", help="CSV with x,y[,z] rows ('-' for stdin)")
    ap.add_argument("--output", default="-", help="output CSV ('-' for stdout)")
    ap.add_argument("--code", help="projection code, e.g. RGF93.LAMB93")
    ap.add_argument("--direction", choices=["to-geodetic", "to-projected"], default="to-geodetic")
    ap.add_argument("--detect", action="store_true", help="detect the projection of the input points and convert from it")
    ap.add_argument("--projections-file", default=None, help="JSON catalog replacing the built-ins")
    args = ap.parse_args(argv)

    configure_logging()
    env = Settings.from_env()
    settings = Settings(
        projections_file=args.projections_file or env.projections_file,
        origin_threshold=env.origin_threshold,
        min_points=env.min_points,
        max_points=env.max_points,
    )

    if args.input == "-":
        points = read_points(sys.stdin)
    else:
        with open(args.input, "r", encoding="utf-8", newline="") as fh:
            points = read_points(fh)

    with GeoSession(settings) as session:
        catalog = session.catalog
        code = args.code
        if args.detect and not code:
            report = explain(points, catalog, settings.origin_threshold, settings.min_points)
            print(json.dumps(report, indent=2, ensure_ascii=False), file=sys.stderr)
            if not report["code"]:
                print("No projection matches the input points", file=sys.stderr)
                return 1
            code = report["code"]
        if not code:
            ap.error("--code is required unless --detect is given")
        definition = catalog.find_by_code(code)
        if definition is None:
            print(f"Unknown projection code: {code}", file=sys.stderr)
            return 2

        if args.direction == "to-geodetic":
            conv = convert_to_geodetic(points, definition)
            header = ["longitude", "latitude", "altitude"]
            degrees = True
        else:
            conv = convert_to_projected(points, definition)
            header = ["x", "y", "z"]
            degrees = definition.is_geographic
        if conv.accuracy is not Accuracy.EXACT:
            print(f"warning: {definition.code} converted with {conv.accuracy.value} accuracy", file=sys.stderr)

        if args.output == "-":
            write_points(sys.stdout, conv.points, header, degrees)
        else:
            with open(args.output, "w", encoding="utf-8", newline="") as fh:
                write_points(fh, conv.points, header, degrees)
            print(f"Wrote {len(conv.points)} point(s) to {args.output}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

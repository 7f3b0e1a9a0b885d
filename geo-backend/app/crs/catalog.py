"""Projection catalog: immutable definitions plus lookup and search.

The built-in list is ordered; the detector relies on that order to break
ties between projections whose bounding boxes overlap, so Lambert-93 comes
first.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .ellipsoids import ELLIPSOIDS
from .mercator import utm_central_meridian

logger = logging.getLogger(__name__)

UNITS = ("meter", "degree")
KNOWN_FAMILIES = ("lcc", "tm", "swiss", "dutch", "geographic")

# UTM families and how to compute EPSG from a zone number.
# North-only families have no southern base.
UTM_FAMILIES = {
    "WGS84": {"north": 32600, "south": 32700, "label": "WGS 84", "ellipsoid": "WGS84"},
    "ETRS89": {"north": 25800, "south": None, "label": "ETRS89", "ellipsoid": "GRS80"},
    "NAD83": {"north": 26900, "south": None, "label": "NAD83", "ellipsoid": "GRS80"},
}


class CatalogError(ValueError):
    """A projection definition or catalog file is malformed."""


@dataclass(frozen=True)
class ProjectionDefinition:
    code: str
    name: str
    unit: str
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    family: str
    epsg: int = 0
    country: str = ""
    region: str = ""
    description: str = ""
    ellipsoid: str = "GRS80"
    datum: str = "WGS84"
    central_meridian: float = 0.0
    latitude_origin: float = 0.0
    standard_parallels: Tuple[float, ...] = ()
    scale_factor: float = 1.0
    false_easting: float = 0.0
    false_northing: float = 0.0
    zone: Optional[int] = None
    hemisphere: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.code or not self.code.strip():
            raise CatalogError("projection code must not be empty")
        if self.unit not in UNITS:
            raise CatalogError(f"{self.code}: unit must be one of {UNITS}, got {self.unit!r}")
        if not self.min_x < self.max_x:
            raise CatalogError(f"{self.code}: min_x ({self.min_x}) must be below max_x ({self.max_x})")
        if not self.min_y < self.max_y:
            raise CatalogError(f"{self.code}: min_y ({self.min_y}) must be below max_y ({self.max_y})")
        if self.ellipsoid.upper() not in ELLIPSOIDS:
            raise CatalogError(f"{self.code}: unknown ellipsoid {self.ellipsoid!r}")
        if len(self.standard_parallels) not in (0, 2):
            raise CatalogError(f"{self.code}: standard_parallels needs zero or two values")
        # Coerce list input from JSON into a hashable tuple.
        object.__setattr__(self, "standard_parallels", tuple(float(p) for p in self.standard_parallels))

    @property
    def display_name(self) -> str:
        return f"{self.name} [{self.code}]"

    @property
    def is_geographic(self) -> bool:
        return self.unit == "degree" or self.family == "geographic"

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["standard_parallels"] = list(self.standard_parallels)
        d["display_name"] = self.display_name
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectionDefinition":
        allowed = set(cls.__dataclass_fields__)
        unknown = sorted(k for k in data if k not in allowed and k != "display_name")
        if unknown:
            raise CatalogError(f"unknown projection fields: {', '.join(unknown)}")
        try:
            return cls(**{k: v for k, v in data.items() if k in allowed})
        except TypeError as e:
            raise CatalogError(f"invalid projection entry {data.get('code')!r}: {e}") from e


def utm_epsg(datum: str, zone: int, hemi: str | None) -> int | None:
    fam = UTM_FAMILIES.get(datum)
    if not fam:
        return None
    base = fam.get("south") if hemi == "S" else fam.get("north")
    if base is None:
        return None
    return base + int(zone)


def utm_label(datum: str, zone: int, hemi: str | None) -> str:
    hemich = "S" if hemi == "S" else "N"
    label = UTM_FAMILIES.get(datum, {}).get("label", datum)
    return f"{label} / UTM zone {int(zone)}{hemich}"


def utm_definition(zone: int, hemisphere: str = "N", datum: str = "WGS84") -> ProjectionDefinition:
    """Build a UTM definition for any zone of a known UTM family."""
    if not 1 <= int(zone) <= 60:
        raise CatalogError(f"UTM zone must be within 1..60, got {zone}")
    hemi = "S" if str(hemisphere).upper().startswith("S") else "N"
    fam = UTM_FAMILIES.get(datum)
    if fam is None:
        raise CatalogError(f"unknown UTM datum {datum!r}")
    epsg = utm_epsg(datum, zone, hemi)
    if epsg is None:
        raise CatalogError(f"{datum} has no southern UTM zones")
    return _utm(
        f"{datum}.UTM-{int(zone)}{hemi}",
        utm_label(datum, zone, hemi),
        epsg,
        int(zone),
        hemi,
        country="Global",
        region=f"UTM zone {int(zone)}{hemi}",
        ellipsoid=fam["ellipsoid"],
        datum=datum,
    )


def _lcc(code, name, epsg, country, region, description, bbox, *, ellipsoid, datum, lon0, lat0,
         parallels=(), k0=1.0, fe=0.0, fn=0.0) -> ProjectionDefinition:
    return ProjectionDefinition(
        code=code, name=name, epsg=epsg, country=country, region=region, description=description,
        unit="meter", min_x=bbox[0], max_x=bbox[1], min_y=bbox[2], max_y=bbox[3], family="lcc",
        ellipsoid=ellipsoid, datum=datum, central_meridian=lon0, latitude_origin=lat0,
        standard_parallels=tuple(parallels), scale_factor=k0, false_easting=fe, false_northing=fn,
    )


def _tm(code, name, epsg, country, region, description, bbox, *, ellipsoid, datum, lon0, lat0=0.0,
        k0=0.9996, fe=500000.0, fn=0.0, zone=None, hemisphere=None) -> ProjectionDefinition:
    return ProjectionDefinition(
        code=code, name=name, epsg=epsg, country=country, region=region, description=description,
        unit="meter", min_x=bbox[0], max_x=bbox[1], min_y=bbox[2], max_y=bbox[3], family="tm",
        ellipsoid=ellipsoid, datum=datum, central_meridian=lon0, latitude_origin=lat0,
        scale_factor=k0, false_easting=fe, false_northing=fn, zone=zone, hemisphere=hemisphere,
    )


def _utm(code, name, epsg, zone, hemisphere, *, country, region, description="", ellipsoid="WGS84",
         datum="WGS84") -> ProjectionDefinition:
    south = hemisphere == "S"
    return _tm(
        code, name, epsg, country, region, description or f"UTM zone {zone}{hemisphere}",
        (166000, 834000, 0, 10000000 if south else 9400000),
        ellipsoid=ellipsoid, datum=datum, lon0=utm_central_meridian(zone),
        fn=10000000.0 if south else 0.0, zone=zone, hemisphere=hemisphere,
    )


_CC_REGIONS = {
    42: "Corse, Côte d'Azur (sud)",
    43: "Provence, Languedoc-Roussillon (sud)",
    44: "Aquitaine, Midi-Pyrénées (sud)",
    45: "Nouvelle-Aquitaine, Auvergne",
    46: "Centre-Val de Loire, Bourgogne",
    47: "Pays de la Loire, Bretagne (est)",
    48: "Île-de-France, Normandie, Bretagne",
    49: "Hauts-de-France, Grand Est (ouest)",
    50: "Nord-Pas-de-Calais, Flandres",
}

_PARIS_MERIDIAN = 2.337229166667


def _conic_cc(zone: int) -> ProjectionDefinition:
    fn = (zone - 41) * 1000000.0 + 200000.0
    return _lcc(
        f"RGF93.CC{zone}", f"RGF93 / CC{zone}", 3900 + zone, "France", _CC_REGIONS[zone],
        f"Zone CC{zone} - Latitude origine {zone}°N",
        (1200000, 2200000, fn - 200000, fn + 200000),
        ellipsoid="GRS80", datum="RGF93", lon0=3.0, lat0=float(zone),
        parallels=(zone - 0.75, zone + 0.75), fe=1700000.0, fn=fn,
    )


def _ntf(code, name, epsg, region, description, bbox, lat0, k0, fe=600000.0, fn=200000.0) -> ProjectionDefinition:
    return _lcc(
        code, name, epsg, "France", region, description, bbox,
        ellipsoid="CLARKE1880IGN", datum="NTF", lon0=_PARIS_MERIDIAN, lat0=lat0, k0=k0, fe=fe, fn=fn,
    )


BUILTIN_PROJECTIONS: Tuple[ProjectionDefinition, ...] = (
    _lcc(
        "RGF93.LAMB93", "RGF93 / Lambert 93", 2154, "France", "France métropolitaine",
        "Projection conique conforme de Lambert - Système national français",
        (100000, 1200000, 6000000, 7200000),
        ellipsoid="GRS80", datum="RGF93", lon0=3.0, lat0=46.5, parallels=(49.0, 44.0),
        fe=700000.0, fn=6600000.0,
    ),
    *(_conic_cc(z) for z in range(42, 51)),
    _ntf("NTF.Lambert-1-ClrkIGN", "NTF (Paris) / Lambert zone I", 27561, "Nord de la France",
         "Ancien système NTF - Zone I (Nord)", (0, 1200000, 0, 400000), 49.5, 0.99987734),
    _ntf("NTF.Lambert-2-ClrkIGN", "NTF (Paris) / Lambert zone II", 27562, "Centre de la France",
         "Ancien système NTF - Zone II (Centre)", (0, 1200000, 0, 400000), 46.8, 0.99987742),
    _ntf("NTF.Lambert-2e-ClrkIGN", "NTF (Paris) / Lambert zone II étendu", 27572, "France métropolitaine",
         "Ancien système NTF - Zone II étendu (France entière)", (0, 1200000, 1600000, 2800000),
         46.8, 0.99987742, fn=2200000.0),
    _ntf("NTF.Lambert-3-ClrkIGN", "NTF (Paris) / Lambert zone III", 27563, "Sud de la France",
         "Ancien système NTF - Zone III (Sud)", (0, 1200000, 0, 400000), 44.1, 0.99987750),
    _ntf("NTF.Lambert-4-ClrkIGN", "NTF (Paris) / Lambert zone IV", 27564, "Corse",
         "Ancien système NTF - Zone IV (Corse)", (0, 500000, 0, 400000), 42.165, 0.99994471,
         fe=234.358, fn=185861.369),
    _lcc(
        "BD72.Belgian-Lambert-72", "BD72 / Belgian Lambert 72", 31370, "Belgique", "Belgique",
        "Système belge Lambert 72", (0, 300000, 0, 300000),
        ellipsoid="INTL1924", datum="BD72", lon0=4.367486666667, lat0=90.0,
        parallels=(51.16666723, 49.8333339), fe=150000.013, fn=5400088.438,
    ),
    _lcc(
        "ETRS89.Belgian-Lambert-2008", "ETRS89 / Belgian Lambert 2008", 3812, "Belgique", "Belgique",
        "Système belge Lambert 2008 (ETRS89)", (500000, 800000, 500000, 800000),
        ellipsoid="GRS80", datum="ETRS89", lon0=4.359215833333, lat0=50.797815,
        parallels=(49.833333333333, 51.166666666667), fe=649328.0, fn=665262.0,
    ),
    ProjectionDefinition(
        code="CH1903.LV03", name="CH1903 / LV03", epsg=21781, country="Suisse", region="Suisse",
        description="Ancien système suisse LV03", unit="meter",
        min_x=480000, max_x=840000, min_y=70000, max_y=300000,
        family="swiss", ellipsoid="BESSEL1841", datum="CH1903",
        central_meridian=7.439583333333, latitude_origin=46.952405555556,
        false_easting=600000.0, false_northing=200000.0,
    ),
    ProjectionDefinition(
        code="CH1903+.LV95", name="CH1903+ / LV95", epsg=2056, country="Suisse", region="Suisse",
        description="Système suisse actuel LV95", unit="meter",
        min_x=2480000, max_x=2840000, min_y=1070000, max_y=1300000,
        family="swiss", ellipsoid="BESSEL1841", datum="CH1903+",
        central_meridian=7.439583333333, latitude_origin=46.952405555556,
        false_easting=2600000.0, false_northing=1200000.0,
    ),
    _tm(
        "LUREF.Luxembourg-TM", "LUREF / Luxembourg TM", 2169, "Luxembourg", "Luxembourg",
        "Système luxembourgeois Transverse Mercator", (45000, 115000, 55000, 145000),
        ellipsoid="INTL1924", datum="LUREF", lon0=6.166666666667, lat0=49.833333333333,
        k0=1.0, fe=80000.0, fn=100000.0,
    ),
    _utm("ETRS89.UTM-zone-32N", "ETRS89 / UTM zone 32N", 25832, 32, "N", country="Allemagne",
         region="Allemagne (ouest), France (est)", description="UTM zone 32N sur datum ETRS89",
         ellipsoid="GRS80", datum="ETRS89"),
    _utm("ETRS89.UTM-zone-33N", "ETRS89 / UTM zone 33N", 25833, 33, "N", country="Allemagne",
         region="Allemagne (est), Pologne (ouest)", description="UTM zone 33N sur datum ETRS89",
         ellipsoid="GRS80", datum="ETRS89"),
    _utm("ETRS89.UTM-zone-30N", "ETRS89 / UTM zone 30N", 25830, 30, "N", country="Espagne",
         region="Espagne (ouest), Portugal", description="UTM zone 30N sur datum ETRS89",
         ellipsoid="GRS80", datum="ETRS89"),
    _utm("ETRS89.UTM-zone-31N", "ETRS89 / UTM zone 31N", 25831, 31, "N", country="Espagne",
         region="Espagne (est), France (sud-ouest)", description="UTM zone 31N sur datum ETRS89",
         ellipsoid="GRS80", datum="ETRS89"),
    _tm(
        "RDN2008.Italy-zone", "RDN2008 / Italy zone (N-E)", 6875, "Italie", "Italie",
        "Système italien RDN2008", (6300000, 7700000, 3800000, 5300000),
        ellipsoid="GRS80", datum="RDN2008", lon0=12.0, k0=0.9985, fe=7000000.0,
    ),
    _tm(
        "OSGB36.British-National-Grid", "OSGB 1936 / British National Grid", 27700, "Royaume-Uni",
        "Grande-Bretagne", "British National Grid", (0, 700000, 0, 1300000),
        ellipsoid="AIRY1830", datum="OSGB36", lon0=-2.0, lat0=49.0, k0=0.9996012717,
        fe=400000.0, fn=-100000.0,
    ),
    ProjectionDefinition(
        code="Amersfoort.RD-New", name="Amersfoort / RD New", epsg=28992, country="Pays-Bas",
        region="Pays-Bas", description="Système néerlandais RD New (Rijksdriehoek)", unit="meter",
        min_x=0, max_x=300000, min_y=300000, max_y=630000,
        family="dutch", ellipsoid="BESSEL1841", datum="AMERSFOORT",
        central_meridian=5.387638888889, latitude_origin=52.156160555556, scale_factor=0.9999079,
        false_easting=155000.0, false_northing=463000.0,
    ),
    _tm(
        "NAD83.MTM-zone-7", "NAD83 / MTM zone 7", 32187, "Canada", "Québec (Montréal)",
        "Modified Transverse Mercator zone 7 (Québec)", (0, 610000, 4800000, 5400000),
        ellipsoid="GRS80", datum="NAD83", lon0=-70.5, k0=0.9999, fe=304800.0, zone=7, hemisphere="N",
    ),
    _tm(
        "NAD83.MTM-zone-8", "NAD83 / MTM zone 8", 32188, "Canada", "Québec (Québec City)",
        "Modified Transverse Mercator zone 8 (Québec)", (0, 610000, 4800000, 5400000),
        ellipsoid="GRS80", datum="NAD83", lon0=-73.5, k0=0.9999, fe=304800.0, zone=8, hemisphere="N",
    ),
    _utm("WGS84.UTM-29N", "WGS 84 / UTM zone 29N", 32629, 29, "N", country="Global",
         region="Longitude -12° à -6° (Portugal, Açores)", description="UTM zone 29N sur WGS84"),
    _utm("WGS84.UTM-30N", "WGS 84 / UTM zone 30N", 32630, 30, "N", country="Global",
         region="Longitude -6° à 0° (Espagne, UK ouest)", description="UTM zone 30N sur WGS84"),
    _utm("WGS84.UTM-31N", "WGS 84 / UTM zone 31N", 32631, 31, "N", country="Global",
         region="Longitude 0° à 6° (France ouest, Benelux)", description="UTM zone 31N sur WGS84"),
    _utm("WGS84.UTM-32N", "WGS 84 / UTM zone 32N", 32632, 32, "N", country="Global",
         region="Longitude 6° à 12° (France est, Allemagne)", description="UTM zone 32N sur WGS84"),
    _utm("WGS84.UTM-33N", "WGS 84 / UTM zone 33N", 32633, 33, "N", country="Global",
         region="Longitude 12° à 18° (Europe centrale)", description="UTM zone 33N sur WGS84"),
    _utm("RGAF09.UTM-zone-20N", "RGAF09 / UTM zone 20N", 5490, 20, "N", country="France",
         region="Antilles françaises (Guadeloupe, Martinique)",
         description="UTM zone 20N pour les Antilles françaises", ellipsoid="GRS80", datum="RGAF09"),
    _utm("RGFG95.UTM-zone-22N", "RGFG95 / UTM zone 22N", 2972, 22, "N", country="France",
         region="Guyane française", description="UTM zone 22N pour la Guyane française",
         ellipsoid="GRS80", datum="RGFG95"),
    _utm("RGR92.UTM-zone-40S", "RGR92 / UTM zone 40S", 2975, 40, "S", country="France",
         region="La Réunion", description="UTM zone 40S pour La Réunion", ellipsoid="GRS80", datum="RGR92"),
    _utm("RGM04.UTM-zone-38S", "RGM04 / UTM zone 38S", 4471, 38, "S", country="France",
         region="Mayotte", description="UTM zone 38S pour Mayotte", ellipsoid="GRS80", datum="RGM04"),
    ProjectionDefinition(
        code="LL84", name="WGS 84 (géographique)", epsg=4326, country="Global", region="Monde entier",
        description="Coordonnées géographiques WGS84 (longitude/latitude)", unit="degree",
        min_x=-180, max_x=180, min_y=-90, max_y=90, family="geographic", ellipsoid="WGS84", datum="WGS84",
    ),
    ProjectionDefinition(
        code="LL-RGF93", name="RGF93 (géographique)", epsg=4171, country="France",
        region="France métropolitaine", description="Coordonnées géographiques RGF93 (longitude/latitude)",
        unit="degree", min_x=-10, max_x=15, min_y=40, max_y=55, family="geographic",
        ellipsoid="GRS80", datum="RGF93",
    ),
)


class Catalog:
    """Ordered, read-only collection of projection definitions."""

    def __init__(self, definitions: Sequence[ProjectionDefinition]):
        self._items: Tuple[ProjectionDefinition, ...] = tuple(definitions)
        self._by_code: Dict[str, ProjectionDefinition] = {}
        self._by_epsg: Dict[int, ProjectionDefinition] = {}
        for d in self._items:
            key = d.code.upper()
            if key in self._by_code:
                raise CatalogError(f"duplicate projection code {d.code!r}")
            self._by_code[key] = d
            if d.epsg and d.epsg not in self._by_epsg:
                self._by_epsg[d.epsg] = d
        self._fingerprint: Optional[str] = None

    def __iter__(self) -> Iterator[ProjectionDefinition]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    @property
    def definitions(self) -> Tuple[ProjectionDefinition, ...]:
        return self._items

    def fingerprint(self) -> str:
        """sha1 over every definition, in order; equal only for identical catalogs."""
        if self._fingerprint is None:
            blob = json.dumps([d.to_dict() for d in self._items], sort_keys=True, separators=(",", ":"))
            self._fingerprint = hashlib.sha1(blob.encode("utf-8")).hexdigest()
        return self._fingerprint

    def find_by_code(self, code: str | None) -> Optional[ProjectionDefinition]:
        if not code or not code.strip():
            return None
        return self._by_code.get(code.strip().upper())

    def find_by_epsg(self, epsg: int) -> Optional[ProjectionDefinition]:
        return self._by_epsg.get(int(epsg))

    def search(self, text: str | None) -> List[ProjectionDefinition]:
        if not text or not text.strip():
            return list(self._items)
        needle = text.strip().lower()
        out: List[ProjectionDefinition] = []
        for d in self._items:
            hay = (d.code, d.name, d.country, d.region, d.description, str(d.epsg))
            if any(needle in h.lower() for h in hay):
                out.append(d)
        return out

    def by_country(self) -> Dict[str, List[ProjectionDefinition]]:
        groups: Dict[str, List[ProjectionDefinition]] = {}
        for d in self._items:
            groups.setdefault(d.country, []).append(d)
        return {k: groups[k] for k in sorted(groups)}


def builtin_catalog() -> Catalog:
    return Catalog(BUILTIN_PROJECTIONS)


def load_catalog(path: str | None = None) -> Catalog:
    """Load definitions from a JSON file, falling back to the built-in list.

    A missing or unparseable file logs a warning and yields the built-ins.
    A readable file with an invalid entry raises CatalogError.
    """
    if not path:
        return builtin_catalog()
    if not os.path.isfile(path):
        logger.warning("projections file %s not found; using built-in catalog", path)
        return builtin_catalog()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("projections file %s unreadable (%s); using built-in catalog", path, e)
        return builtin_catalog()
    if isinstance(raw, dict):
        raw = raw.get("projections", [])
    if not isinstance(raw, list) or not raw:
        logger.warning("projections file %s holds no projection list; using built-in catalog", path)
        return builtin_catalog()
    defs = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise CatalogError(f"projection entries must be objects, got {type(entry).__name__}")
        defs.append(ProjectionDefinition.from_dict(entry))
    logger.info("loaded %d projections from %s", len(defs), path)
    return Catalog(defs)


__all__ = [
    "BUILTIN_PROJECTIONS",
    "Catalog",
    "CatalogError",
    "ProjectionDefinition",
    "UTM_FAMILIES",
    "builtin_catalog",
    "load_catalog",
    "utm_definition",
    "utm_epsg",
    "utm_label",
]

"""Coordinate conversion between WGS84 lat/lon and the layer's internal mode.

A layer stores every coordinate in one of two modes:
  - LATLON: degrees, latitude first
  - UTM: zone / band letter / easting / northing (meters)

The file format always carries latitude/longitude, so the reader converts
on the way in and the writer converts back on the way out. Projection is
done by pyproj against the EPSG 326xx (north) / 327xx (south) zone CRSs.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

import pyproj

# UTM latitude band letters, 8 degrees each from 80S (C..X, no I or O)
_BANDS = "CDEFGHJKLMNPQRSTUVWX"

WGS84 = pyproj.CRS("EPSG:4326")


class CoordMode(str, Enum):
    """Internal coordinate representation of a layer."""

    LATLON = "latlon"
    UTM = "utm"


@dataclass(frozen=True)
class LatLon:
    lat: float = 0.0
    lon: float = 0.0


@dataclass(frozen=True)
class UTM:
    """A UTM position.

    Easting/northing are NaN when the source position was not finite
    (a file may legally say `latitude="nan"`).
    """

    zone: int
    band: str
    easting: float
    northing: float

    @property
    def is_south(self) -> bool:
        return self.band < "N"


@lru_cache(maxsize=None)
def _transformers(zone: int, south: bool) -> tuple[pyproj.Transformer, pyproj.Transformer]:
    """Forward and inverse transformers for one zone, built once."""
    utm_crs = pyproj.CRS(f"EPSG:{32700 + zone if south else 32600 + zone}")
    return (
        pyproj.Transformer.from_crs(WGS84, utm_crs, always_xy=True),
        pyproj.Transformer.from_crs(utm_crs, WGS84, always_xy=True),
    )


def utm_zone(lat: float, lon: float) -> tuple[int, str]:
    """Zone number and band letter containing a position.

    Out-of-range and non-finite input is clamped to a valid zone/band so
    any number a file holds can be projected.
    """
    if not math.isfinite(lon):
        zone = 31
    else:
        zone = min(max(math.floor((lon + 180.0) / 6.0) + 1, 1), 60)

    if not math.isfinite(lat):
        band = "N"
    else:
        idx = min(max(math.floor((lat + 80.0) / 8.0), 0), len(_BANDS) - 1)
        band = _BANDS[idx]

        # Norway and Svalbard exceptions
        if band == "V" and 3.0 <= lon < 12.0:
            zone = 32
        elif band == "X" and 0.0 <= lon < 42.0:
            zone = (31, 33, 35, 37)[min(int((lon + 3.0) // 12.0), 3)]

    return zone, band


def latlon_to_utm(ll: LatLon) -> UTM:
    """Project a WGS84 position into its UTM zone."""
    zone, band = utm_zone(ll.lat, ll.lon)
    if not (math.isfinite(ll.lat) and math.isfinite(ll.lon)):
        return UTM(zone=zone, band=band, easting=math.nan, northing=math.nan)

    forward, _ = _transformers(zone, band < "N")
    easting, northing = forward.transform(ll.lon, ll.lat)
    return UTM(zone=zone, band=band, easting=easting, northing=northing)


def utm_to_latlon(utm: UTM) -> LatLon:
    """Inverse of latlon_to_utm; non-finite eastings give a NaN position."""
    if not (math.isfinite(utm.easting) and math.isfinite(utm.northing)):
        return LatLon(lat=math.nan, lon=math.nan)

    _, inverse = _transformers(utm.zone, utm.is_south)
    lon, lat = inverse.transform(utm.easting, utm.northing)
    return LatLon(lat=lat, lon=lon)


@dataclass(frozen=True)
class Coord:
    """A position in a layer's internal coordinate mode.

    Attributes:
        mode: Which representation `value` holds.
        value: LatLon for CoordMode.LATLON, UTM for CoordMode.UTM.
    """

    mode: CoordMode
    value: LatLon | UTM

    @classmethod
    def from_latlon(cls, ll: LatLon, mode: CoordMode = CoordMode.LATLON) -> Coord:
        if mode == CoordMode.UTM:
            return cls(mode=CoordMode.UTM, value=latlon_to_utm(ll))
        return cls(mode=CoordMode.LATLON, value=ll)

    def to_latlon(self) -> LatLon:
        if self.mode == CoordMode.UTM:
            return utm_to_latlon(self.value)
        return self.value

    def convert(self, mode: CoordMode) -> Coord:
        """Return this position expressed in another mode."""
        if mode == self.mode:
            return self
        return Coord.from_latlon(self.to_latlon(), mode)

"""Waypoint, Track and Trackpoint dataclasses.

Unset numeric values are NaN (altitude, timestamp, speed, ...); unset text
values are None. Timestamps are seconds since the Unix epoch and may be
fractional.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum

from gpspoint.coords import Coord, CoordMode, LatLon


class ImageDirectionRef(IntEnum):
    """Reference frame of a waypoint's image direction."""

    TRUE = 0
    MAGNETIC = 1


class TrackDrawNameMode(IntEnum):
    """Where a track's name label is drawn."""

    NONE = 0
    CENTRE = 1
    START = 2
    END = 3
    START_END = 4
    START_END_CENTRE = 5


def _default_coord() -> Coord:
    return Coord(mode=CoordMode.LATLON, value=LatLon())


@dataclass
class Waypoint:
    """A named point of interest.

    Attributes:
        name: Collection key within a layer.
        coord: Position in the owning layer's coordinate mode.
        altitude: Meters, NaN when unknown.
        timestamp: Unix time in seconds, NaN when unknown.
        comment / description / source: Free text.
        type: Free-form classification (written as `xtype`).
        image: Path of an attached photo.
        image_direction: Bearing the photo was taken at, degrees.
        image_direction_ref: Frame `image_direction` is measured in.
        symbol: Symbol name as stored; written lowercase.
        visible: Whether the waypoint is drawn.
    """

    name: str | None = None
    coord: Coord = field(default_factory=_default_coord)
    altitude: float = math.nan
    timestamp: float = math.nan
    comment: str | None = None
    description: str | None = None
    source: str | None = None
    type: str | None = None
    image: str | None = None
    image_direction: float = math.nan
    image_direction_ref: ImageDirectionRef = ImageDirectionRef.TRUE
    symbol: str | None = None
    visible: bool = True

    @property
    def has_altitude(self) -> bool:
        return not math.isnan(self.altitude)

    @property
    def has_timestamp(self) -> bool:
        return not math.isnan(self.timestamp)


@dataclass
class Trackpoint:
    """A single point of a track or route.

    The extended block (speed .. pdop) is only populated when a point was
    recorded by a receiver that reports it.
    """

    coord: Coord = field(default_factory=_default_coord)
    altitude: float = math.nan
    timestamp: float = math.nan
    name: str | None = None
    newsegment: bool = False
    speed: float = math.nan
    course: float = math.nan
    nsats: int = 0
    fix_mode: int = 0
    hdop: float = math.nan
    vdop: float = math.nan
    pdop: float = math.nan

    @property
    def has_extended(self) -> bool:
        """True when the point carries speed, course or satellite data."""
        return (
            not math.isnan(self.speed)
            or not math.isnan(self.course)
            or self.nsats > 0
        )


@dataclass
class Track:
    """An ordered sequence of trackpoints; a route when `is_route` is set."""

    name: str | None = None
    trackpoints: list[Trackpoint] = field(default_factory=list)
    is_route: bool = False
    visible: bool = True
    color: tuple[int, int, int] | None = None
    comment: str | None = None
    description: str | None = None
    source: str | None = None
    type: str | None = None
    draw_name_mode: TrackDrawNameMode = TrackDrawNameMode.NONE
    max_number_dist_labels: int = 0

    def __len__(self) -> int:
        return len(self.trackpoints)

    @property
    def has_color(self) -> bool:
        return self.color is not None

    def segments(self) -> list[list[Trackpoint]]:
        """Split the points at every `newsegment` boundary."""
        result: list[list[Trackpoint]] = []
        for tp in self.trackpoints:
            if not result or tp.newsegment:
                result.append([])
            result[-1].append(tp)
        return result

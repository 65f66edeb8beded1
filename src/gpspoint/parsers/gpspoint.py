"""Read the line-oriented GPSPoint track format into a TrwLayer.

Each line is a set of `key=value` tags describing one record:

    type="waypoint" latitude="48.85" longitude="2.35" name="Paris"
    type="track" name="Morning ride" color=#ff0000
    type="trackpoint" latitude="48.85" longitude="2.35" unixtime="1700000000"
    type="trackend"

Track and route headers open a track that collects the following point
lines until its end record. The format has no header, so the reader is
permissive: malformed tags and records that make no sense in context are
dropped, and the only result is whether anything meaningful was seen.

The embedded form (inside a larger container file) ends at a line starting
with `~EndLayerData`; the reader stops there and leaves the rest of the
input to the caller.
"""

from __future__ import annotations

import io
import math
import os
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from gpspoint.colors import parse_color
from gpspoint.coords import Coord, LatLon
from gpspoint.layer import TrwLayer
from gpspoint.models import (
    ImageDirectionRef,
    Track,
    TrackDrawNameMode,
    Trackpoint,
    Waypoint,
)
from gpspoint.parsers.tags import parse_tag
from gpspoint.parsers.tokenizer import iter_token_spans
from gpspoint.paths import make_absolute_filename

END_LAYER_DATA = "~EndLayerData"

# Used when a track header carries no name tag at all
UNKNOWN_TRACK_NAME = "UNK"


class RecordType(Enum):
    NONE = "none"
    WAYPOINT = "waypoint"
    TRACKPOINT = "trackpoint"
    ROUTEPOINT = "routepoint"
    TRACK = "track"
    TRACK_END = "trackend"
    ROUTE = "route"
    ROUTE_END = "routeend"


_RECORD_TYPES = {rt.value: rt for rt in RecordType if rt is not RecordType.NONE}

_FLOAT_PREFIX_RE = re.compile(
    r"\s*[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_INT_PREFIX_RE = re.compile(r"\s*[+-]?\d+")


def _to_float(value: str) -> float:
    """Longest leading number in `value`, or 0.0 (C strtod semantics)."""
    m = _FLOAT_PREFIX_RE.match(value)
    return float(m.group()) if m else 0.0


def _to_int(value: str) -> int:
    """Longest leading integer in `value`, or 0 (C atoi semantics)."""
    m = _INT_PREFIX_RE.match(value)
    return int(m.group()) if m else 0


@dataclass
class LineRecord:
    """Attributes collected from one line; discarded after the line."""

    type: RecordType = RecordType.NONE
    lat: float = 0.0
    lon: float = 0.0
    name: str | None = None
    comment: str | None = None
    description: str | None = None
    source: str | None = None
    xtype: str | None = None
    color: str | None = None
    draw_name_mode: int = 0
    number_dist_labels: int = 0
    image: str | None = None
    image_direction: float = math.nan
    image_direction_ref: int = ImageDirectionRef.TRUE
    symbol: str | None = None
    newsegment: bool = False
    timestamp: float = math.nan
    altitude: float = math.nan
    visible: bool = True
    extended: bool = False
    speed: float = math.nan
    course: float = math.nan
    sat: int = 0
    fix: int = 0
    hdop: float = math.nan
    vdop: float = math.nan
    pdop: float = math.nan


def _set_type(rec: LineRecord, value: str | None) -> None:
    if value is None:
        rec.type = RecordType.NONE
    else:
        rec.type = _RECORD_TYPES.get(value.lower(), RecordType.NONE)


def _first_text(attr: str) -> Callable[[LineRecord, str], None]:
    """Handler keeping the first occurrence of a text tag on a line."""

    def handler(rec: LineRecord, value: str) -> None:
        if getattr(rec, attr) is None:
            setattr(rec, attr, value)

    return handler


def _float_field(attr: str) -> Callable[[LineRecord, str], None]:
    def handler(rec: LineRecord, value: str) -> None:
        setattr(rec, attr, _to_float(value))

    return handler


def _int_field(attr: str) -> Callable[[LineRecord, str], None]:
    def handler(rec: LineRecord, value: str) -> None:
        setattr(rec, attr, _to_int(value))

    return handler


def _flag_field(attr: str) -> Callable[[LineRecord, str], None]:
    def handler(rec: LineRecord, value: str) -> None:
        setattr(rec, attr, True)

    return handler


def _set_visible(rec: LineRecord, value: str) -> None:
    if value and value[0] not in "yYtT":
        rec.visible = False


def _set_symbol(rec: LineRecord, value: str) -> None:
    rec.symbol = value


# Handlers for tags whose value must be present; `type` is handled apart
# because an absent value there still resets the record type.
_KEY_HANDLERS: dict[str, Callable[[LineRecord, str], None]] = {
    "name": _first_text("name"),
    "comment": _first_text("comment"),
    "description": _first_text("description"),
    "source": _first_text("source"),
    "xtype": _first_text("xtype"),
    "color": _first_text("color"),
    "draw_name_mode": _int_field("draw_name_mode"),
    "number_dist_labels": _int_field("number_dist_labels"),
    "image": _first_text("image"),
    "image_direction": _float_field("image_direction"),
    "image_direction_ref": _int_field("image_direction_ref"),
    "latitude": _float_field("lat"),
    "longitude": _float_field("lon"),
    "altitude": _float_field("altitude"),
    "visible": _set_visible,
    "symbol": _set_symbol,
    "unixtime": _float_field("timestamp"),
    "newsegment": _flag_field("newsegment"),
    "extended": _flag_field("extended"),
    "speed": _float_field("speed"),
    "course": _float_field("course"),
    "sat": _int_field("sat"),
    "fix": _int_field("fix"),
    "hdop": _float_field("hdop"),
    "vdop": _float_field("vdop"),
    "pdop": _float_field("pdop"),
}


def parse_line(line: str) -> LineRecord:
    """Collect every recognised tag on one line into a fresh LineRecord."""
    rec = LineRecord()
    for start, end in iter_token_spans(line):
        token = line[start:end]
        tag = parse_tag(token)
        if tag is None:
            logger.debug(f"Dropping malformed token: {token!r}")
            continue
        key, value = tag
        key = key.lower()
        if key == "type":
            _set_type(rec, value)
            continue
        handler = _KEY_HANDLERS.get(key)
        if handler is not None and value is not None:
            handler(rec, value)
    return rec


class GpsPointReader:
    """State of one read: the destination layer and the open track.

    A reader instance belongs to exactly one parse; create a new one for
    every input.
    """

    def __init__(self, layer: TrwLayer, dirpath: str | None = None) -> None:
        self.layer = layer
        self.dirpath = dirpath
        self.current_track: Track | None = None
        self.have_read_something = False

    def feed_line(self, line: str) -> bool:
        """Process one physical line.

        Returns:
            False when the line is the embedded-section terminator and no
            further lines should be fed, True otherwise.
        """
        line = line.rstrip("\r\n")
        if line.startswith(END_LAYER_DATA):
            # Even an empty embedded section is a valid layer
            self.have_read_something = True
            return False

        rec = parse_line(line)

        if rec.type in (RecordType.TRACK_END, RecordType.ROUTE_END):
            self.end_track()
        elif rec.type == RecordType.WAYPOINT:
            self._add_waypoint(rec)
        elif rec.type in (RecordType.TRACK, RecordType.ROUTE):
            self._start_track(rec)
        elif rec.type in (RecordType.TRACKPOINT, RecordType.ROUTEPOINT):
            self._add_trackpoint(rec)
        return True

    def end_track(self) -> None:
        """Close the open track, if any."""
        self.current_track = None

    def finish(self) -> bool:
        """Close anything still open and report whether input was recognised."""
        if self.current_track is not None:
            logger.debug(f"Closing unterminated track at end of input: {self.current_track.name}")
        self.end_track()
        return self.have_read_something

    def _close_implicitly(self) -> None:
        if self.current_track is not None:
            logger.debug(f"Track {self.current_track.name} has no end record; closing it")
            self.end_track()

    def _add_waypoint(self, rec: LineRecord) -> None:
        if not rec.name:
            logger.debug("Dropping waypoint record without a name")
            return
        self._close_implicitly()
        self.have_read_something = True

        wp = Waypoint(
            coord=Coord.from_latlon(LatLon(rec.lat, rec.lon), self.layer.coord_mode),
            altitude=rec.altitude,
            timestamp=rec.timestamp,
            visible=rec.visible,
        )
        if rec.comment is not None:
            wp.comment = rec.comment
        if rec.description is not None:
            wp.description = rec.description
        if rec.source is not None:
            wp.source = rec.source
        if rec.xtype is not None:
            wp.type = rec.xtype
        if rec.image is not None:
            wp.image = make_image_path(rec.image, self.dirpath)
        if not math.isnan(rec.image_direction):
            wp.image_direction = rec.image_direction
            wp.image_direction_ref = _direction_ref(rec.image_direction_ref)
        if rec.symbol is not None:
            wp.symbol = rec.symbol

        self.layer.add_waypoint(rec.name, wp)

    def _start_track(self, rec: LineRecord) -> None:
        name = UNKNOWN_TRACK_NAME if rec.name is None else rec.name
        if not name:
            logger.debug(f"Dropping {rec.type.value} record with an empty name")
            return
        self._close_implicitly()
        self.have_read_something = True

        trk = Track(
            is_route=(rec.type == RecordType.ROUTE),
            visible=rec.visible,
            comment=rec.comment,
            description=rec.description,
            source=rec.source,
            type=rec.xtype,
            draw_name_mode=_draw_name_mode(rec.draw_name_mode),
            max_number_dist_labels=rec.number_dist_labels,
        )
        if rec.color is not None:
            trk.color = parse_color(rec.color)

        self.layer.add_track(name, trk)
        self.current_track = trk

    def _add_trackpoint(self, rec: LineRecord) -> None:
        if self.current_track is None:
            logger.debug(f"Dropping {rec.type.value} outside of any track")
            return
        self.have_read_something = True

        tp = Trackpoint(
            coord=Coord.from_latlon(LatLon(rec.lat, rec.lon), self.layer.coord_mode),
            altitude=rec.altitude,
            timestamp=rec.timestamp,
            name=rec.name,
            newsegment=rec.newsegment,
        )
        if rec.extended:
            tp.speed = rec.speed
            tp.course = rec.course
            tp.nsats = rec.sat
            tp.fix_mode = rec.fix
            tp.hdop = rec.hdop
            tp.vdop = rec.vdop
            tp.pdop = rec.pdop
        # list.append is O(1): points stay in input order without reversal
        self.current_track.trackpoints.append(tp)


def _direction_ref(value: int) -> ImageDirectionRef:
    try:
        return ImageDirectionRef(value)
    except ValueError:
        return ImageDirectionRef.TRUE


def _draw_name_mode(value: int) -> TrackDrawNameMode:
    try:
        return TrackDrawNameMode(value)
    except ValueError:
        return TrackDrawNameMode.NONE


def make_image_path(image: str, dirpath: str | None) -> str:
    """Resolve a relative image reference against the file's directory."""
    return make_absolute_filename(image, dirpath) or image


def read_file(layer: TrwLayer, lines: Iterable[str], dirpath: str | None = None) -> bool:
    """Read GPSPoint lines into `layer`.

    Args:
        layer: Destination for waypoints, tracks and routes.
        lines: Any iterable of text lines, e.g. an open text file.
        dirpath: Directory relative image references are resolved against.

    Returns:
        True if at least one record (or the embedded-section terminator)
        was seen; the format has no header, so False means the input is
        probably not a GPSPoint file.
    """
    reader = GpsPointReader(layer, dirpath)
    for line in lines:
        if not reader.feed_line(line):
            break
    result = reader.finish()
    logger.info(f"GPSPoint read: {layer.summary()}")
    return result


def read_string(layer: TrwLayer, text: str, dirpath: str | None = None) -> bool:
    return read_file(layer, io.StringIO(text), dirpath)


def read_path(layer: TrwLayer, path: str) -> bool:
    """Read a GPSPoint file; image references resolve against its directory."""
    dirpath = os.path.dirname(os.path.abspath(path))
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return read_file(layer, f, dirpath)

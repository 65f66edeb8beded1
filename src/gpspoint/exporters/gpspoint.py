"""Export a TrwLayer to the line-oriented GPSPoint track format.

Output order: the waypoint list (bracketed by `waypointlist` /
`waypointlistend` lines), then every track, then every route. Each track
or route is a header line, one line per point, and an end line.

Text values are escaped so the reader's decoder restores them exactly;
line breaks cannot be represented and become spaces. Numbers use Python's
shortest round-trip float repr, which is locale independent.
"""

from __future__ import annotations

import io
import math
import os
from typing import TextIO

from loguru import logger

from gpspoint.colors import format_color
from gpspoint.config import settings
from gpspoint.layer import TrwLayer
from gpspoint.models import Track, Trackpoint, Waypoint
from gpspoint.paths import FileRefFormat, make_relative_filename


def escape(text: str) -> str:
    """Backslash-escape `\\` and `"`; replace CR and LF with a space."""
    out: list[str] = []
    for char in text:
        if char in '\\"':
            out.append("\\")
            out.append(char)
        elif char in "\r\n":
            out.append(" ")
        else:
            out.append(char)
    return "".join(out)


def format_number(value: float) -> str:
    """Locale-independent decimal text that parses back to `value`."""
    return repr(float(value))


def _tag(key: str, value: str) -> str:
    return f' {key}="{escape(value)}"'


def _image_reference(image: str, dirpath: str | None, file_ref_format: FileRefFormat) -> str:
    if file_ref_format == FileRefFormat.RELATIVE and dirpath:
        relative = make_relative_filename(dirpath, image)
        if relative:
            return relative
    return image


def format_waypoint(
    wp: Waypoint,
    dirpath: str | None = None,
    file_ref_format: FileRefFormat = FileRefFormat.ABSOLUTE,
) -> str:
    """One `type="waypoint"` line, without the line terminator."""
    ll = wp.coord.to_latlon()
    parts = [
        f'type="waypoint" latitude="{format_number(ll.lat)}"'
        f' longitude="{format_number(ll.lon)}" name="{escape(wp.name)}"'
    ]

    if not math.isnan(wp.altitude):
        parts.append(f' altitude="{format_number(wp.altitude)}"')
    if not math.isnan(wp.timestamp):
        parts.append(f' unixtime="{format_number(wp.timestamp)}"')
    if wp.comment is not None:
        parts.append(_tag("comment", wp.comment))
    if wp.description is not None:
        parts.append(_tag("description", wp.description))
    if wp.source is not None:
        parts.append(_tag("source", wp.source))
    if wp.type is not None:
        parts.append(_tag("xtype", wp.type))
    if wp.image is not None:
        parts.append(_tag("image", _image_reference(wp.image, dirpath, file_ref_format)))
    if not math.isnan(wp.image_direction):
        parts.append(f' image_direction="{wp.image_direction:.2f}"')
        parts.append(f' image_direction_ref="{int(wp.image_direction_ref)}"')
    if wp.symbol is not None:
        # Symbol names are stored in Title Case but always written lowercase
        parts.append(_tag("symbol", wp.symbol.lower()))
    if not wp.visible:
        parts.append(' visible="n"')

    return "".join(parts)


def format_trackpoint(tp: Trackpoint, is_route: bool = False) -> str:
    """One `type="trackpoint"` (or routepoint) line, without terminator."""
    ll = tp.coord.to_latlon()
    kind = "route" if is_route else "track"
    parts = [
        f'type="{kind}point" latitude="{format_number(ll.lat)}"'
        f' longitude="{format_number(ll.lon)}"'
    ]

    if tp.name is not None:
        parts.append(_tag("name", tp.name))
    if not math.isnan(tp.altitude):
        parts.append(f' altitude="{format_number(tp.altitude)}"')
    if not math.isnan(tp.timestamp):
        parts.append(f' unixtime="{format_number(tp.timestamp)}"')
    if tp.newsegment:
        parts.append(' newsegment="yes"')

    if tp.has_extended:
        parts.append(' extended="yes"')
        if not math.isnan(tp.speed):
            parts.append(f' speed="{format_number(tp.speed)}"')
        if not math.isnan(tp.course):
            parts.append(f' course="{format_number(tp.course)}"')
        if tp.nsats > 0:
            parts.append(f' sat="{tp.nsats}"')
        if tp.fix_mode > 0:
            parts.append(f' fix="{tp.fix_mode}"')
        if not math.isnan(tp.hdop):
            parts.append(f' hdop="{format_number(tp.hdop)}"')
        if not math.isnan(tp.vdop):
            parts.append(f' vdop="{format_number(tp.vdop)}"')
        if not math.isnan(tp.pdop):
            parts.append(f' pdop="{format_number(tp.pdop)}"')

    return "".join(parts)


def format_track_header(trk: Track) -> str:
    """The `type="track"` (or route) line that opens a track."""
    kind = "route" if trk.is_route else "track"
    parts = [f'type="{kind}" name="{escape(trk.name)}"']

    if trk.comment is not None:
        parts.append(_tag("comment", trk.comment))
    if trk.description is not None:
        parts.append(_tag("description", trk.description))
    if trk.source is not None:
        parts.append(_tag("source", trk.source))
    if trk.type is not None:
        parts.append(_tag("xtype", trk.type))
    if trk.color is not None:
        parts.append(f" color={format_color(trk.color)}")
    if trk.draw_name_mode > 0:
        parts.append(f' draw_name_mode="{int(trk.draw_name_mode)}"')
    if trk.max_number_dist_labels > 0:
        parts.append(f' number_dist_labels="{trk.max_number_dist_labels}"')
    if not trk.visible:
        parts.append(' visible="n"')

    return "".join(parts)


def _write_track(out: TextIO, trk: Track) -> None:
    if not trk.name:
        return
    kind = "route" if trk.is_route else "track"
    out.write(format_track_header(trk) + "\n")
    for tp in trk.trackpoints:
        out.write(format_trackpoint(tp, trk.is_route) + "\n")
    out.write(f'type="{kind}end"\n')


def write_file(
    layer: TrwLayer,
    out: TextIO,
    dirpath: str | None = None,
    file_ref_format: FileRefFormat | None = None,
) -> None:
    """Write every waypoint, track and route of `layer` to `out`.

    Args:
        layer: Source of the entities.
        out: Text stream; errors it raises propagate unchanged.
        dirpath: Directory of the output file, used for relative
            image references.
        file_ref_format: Image reference style; defaults to the configured
            `file_ref_format` setting.
    """
    if file_ref_format is None:
        file_ref_format = settings.file_ref_format

    out.write('type="waypointlist"\n')
    for wp in layer.waypoints.values():
        if not wp.name:
            continue
        out.write(format_waypoint(wp, dirpath, file_ref_format) + "\n")
    out.write('type="waypointlistend"\n')

    for trk in layer.tracks.values():
        _write_track(out, trk)
    for trk in layer.routes.values():
        _write_track(out, trk)

    logger.info(f"GPSPoint write: {layer.summary()}")


def write_string(
    layer: TrwLayer,
    dirpath: str | None = None,
    file_ref_format: FileRefFormat | None = None,
) -> str:
    buf = io.StringIO()
    write_file(layer, buf, dirpath, file_ref_format)
    return buf.getvalue()


def write_path(
    layer: TrwLayer,
    path: str,
    file_ref_format: FileRefFormat | None = None,
) -> None:
    """Write `layer` to `path`; relative image references use its directory."""
    dirpath = os.path.dirname(os.path.abspath(path))
    with open(path, "w", encoding="utf-8", newline="\n") as f:
        write_file(layer, f, dirpath, file_ref_format)

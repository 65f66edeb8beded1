"""GPSPoint track file codec.

Reads and writes the line-oriented `key="value"` GPS format holding
waypoints, tracks and routes.
"""

from gpspoint.exporters.gpspoint import write_file, write_path, write_string
from gpspoint.layer import TrwLayer
from gpspoint.models import Track, Trackpoint, Waypoint
from gpspoint.parsers.gpspoint import read_file, read_path, read_string

__version__ = "0.1.0"

__all__ = [
    "Track",
    "Trackpoint",
    "TrwLayer",
    "Waypoint",
    "read_file",
    "read_path",
    "read_string",
    "write_file",
    "write_path",
    "write_string",
]

"""TrwLayer — registry of waypoints, tracks and routes.

This is the destination store the reader fills and the writer walks.
Each collection is keyed by entity name and keeps insertion order.
"""

from __future__ import annotations

from loguru import logger

from gpspoint.config import settings
from gpspoint.coords import CoordMode
from gpspoint.models import Track, Waypoint


class TrwLayer:
    """Named collections of waypoints, tracks and routes."""

    def __init__(self, coord_mode: CoordMode | None = None) -> None:
        self.coord_mode: CoordMode = coord_mode or settings.coord_mode
        self._waypoints: dict[str, Waypoint] = {}
        self._tracks: dict[str, Track] = {}
        self._routes: dict[str, Track] = {}

    def add_waypoint(self, name: str, wp: Waypoint) -> None:
        """Register a waypoint under `name`.

        Args:
            name: Collection key; also stored on the waypoint.
            wp: The waypoint to register.

        Raises:
            ValueError: If name is empty.
        """
        if not name:
            raise ValueError("Waypoint name must not be empty")
        if name in self._waypoints:
            logger.debug(f"Replacing waypoint with duplicate name: {name}")
        wp.name = name
        self._waypoints[name] = wp

    def add_track(self, name: str, trk: Track) -> None:
        """Register a track, or a route when `trk.is_route` is set.

        Raises:
            ValueError: If name is empty.
        """
        if not name:
            raise ValueError("Track name must not be empty")
        collection = self._routes if trk.is_route else self._tracks
        if name in collection:
            kind = "route" if trk.is_route else "track"
            logger.debug(f"Replacing {kind} with duplicate name: {name}")
        trk.name = name
        collection[name] = trk

    def add_route(self, name: str, trk: Track) -> None:
        trk.is_route = True
        self.add_track(name, trk)

    def get_waypoint(self, name: str) -> Waypoint | None:
        return self._waypoints.get(name)

    def get_track(self, name: str) -> Track | None:
        return self._tracks.get(name)

    def get_route(self, name: str) -> Track | None:
        return self._routes.get(name)

    @property
    def waypoints(self) -> dict[str, Waypoint]:
        return self._waypoints

    @property
    def tracks(self) -> dict[str, Track]:
        return self._tracks

    @property
    def routes(self) -> dict[str, Track]:
        return self._routes

    def is_empty(self) -> bool:
        return not (self._waypoints or self._tracks or self._routes)

    def clear(self) -> None:
        self._waypoints.clear()
        self._tracks.clear()
        self._routes.clear()

    def summary(self) -> dict:
        """Counts of each collection plus total track/route points."""
        return {
            "waypoints": len(self._waypoints),
            "tracks": len(self._tracks),
            "routes": len(self._routes),
            "trackpoints": sum(len(t) for t in self._tracks.values()),
            "routepoints": sum(len(t) for t in self._routes.values()),
        }

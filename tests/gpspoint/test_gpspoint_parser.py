"""Tests for the GPSPoint reader — records, open tracks, permissive input."""

import math
import os

import pytest
from gpspoint.coords import CoordMode
from gpspoint.layer import TrwLayer
from gpspoint.models import ImageDirectionRef, TrackDrawNameMode
from gpspoint.parsers.gpspoint import (
    GpsPointReader,
    RecordType,
    parse_line,
    read_file,
    read_path,
    read_string,
)


@pytest.fixture
def layer():
    return TrwLayer(coord_mode=CoordMode.LATLON)


TRACK_FILE = """\
type="waypointlist"
type="waypoint" latitude="37.7749" longitude="-122.4194" name="HQ" altitude="16.0"
type="waypointlistend"
type="track" name="Morning Patrol" comment="east loop"
type="trackpoint" latitude="37.7749" longitude="-122.4194" unixtime="1700000000"
type="trackpoint" latitude="37.7760" longitude="-122.4180" unixtime="1700000060"
type="trackpoint" latitude="37.7770" longitude="-122.4170" unixtime="1700000120"
type="trackend"
type="route" name="Supply Route"
type="routepoint" latitude="37.7800" longitude="-122.4100" name="Checkpoint"
type="routeend"
"""


class TestParseLine:
    """Collect tags of one line."""

    @pytest.mark.unit
    def test_type_is_case_insensitive(self):
        assert parse_line('TYPE="WayPoint"').type == RecordType.WAYPOINT

    @pytest.mark.unit
    def test_unknown_type_is_none(self):
        assert parse_line('type="waypointlist"').type == RecordType.NONE
        assert parse_line('type="bogus"').type == RecordType.NONE

    @pytest.mark.unit
    def test_missing_type_is_none(self):
        assert parse_line('name="A" latitude="1"').type == RecordType.NONE

    @pytest.mark.unit
    def test_first_text_value_wins(self):
        assert parse_line('name="A" name="B"').name == "A"

    @pytest.mark.unit
    def test_numbers_use_leading_prefix(self):
        rec = parse_line('latitude="12.5abc" altitude="abc" sat="7x"')
        assert rec.lat == pytest.approx(12.5)
        assert rec.altitude == 0.0
        assert rec.sat == 7

    @pytest.mark.unit
    def test_unknown_keys_ignored(self):
        rec = parse_line('type="waypoint" frobnicate="1" name="A"')
        assert rec.name == "A"

    @pytest.mark.unit
    def test_absent_value_ignored(self):
        rec = parse_line('name= altitude=')
        assert rec.name is None
        assert math.isnan(rec.altitude)


class TestWaypoints:
    """Waypoint records."""

    @pytest.mark.unit
    def test_hidden_waypoint_example(self, layer):
        ok = read_string(
            layer, 'type="waypoint" latitude="48.0" longitude="2.0" name="A" visible="n"'
        )
        assert ok is True
        wp = layer.get_waypoint("A")
        assert wp is not None
        assert wp.visible is False
        ll = wp.coord.to_latlon()
        assert ll.lat == pytest.approx(48.0)
        assert ll.lon == pytest.approx(2.0)
        assert math.isnan(wp.altitude)
        assert math.isnan(wp.timestamp)
        assert wp.comment is None
        assert wp.image is None

    @pytest.mark.unit
    def test_waypoint_without_name_not_added(self, layer):
        ok = read_string(layer, 'type="waypoint" latitude="48.0" longitude="2.0"')
        assert ok is False
        assert layer.waypoints == {}

    @pytest.mark.unit
    def test_waypoint_with_empty_name_not_added(self, layer):
        read_string(layer, 'type="waypoint" latitude="48.0" longitude="2.0" name=""')
        assert layer.waypoints == {}

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["y", "Y", "yes", "t", "T", "true"])
    def test_visible_values(self, layer, value):
        read_string(layer, f'type="waypoint" name="A" visible="{value}"')
        assert layer.get_waypoint("A").visible is True

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["n", "N", "no", "0", "false", "hidden"])
    def test_hidden_values(self, layer, value):
        read_string(layer, f'type="waypoint" name="A" visible="{value}"')
        assert layer.get_waypoint("A").visible is False

    @pytest.mark.unit
    def test_optional_fields(self, layer):
        read_string(
            layer,
            'type="waypoint" latitude="1" longitude="2" name="P" altitude="12.5"'
            ' unixtime="1700000000.25" comment="c" description="d" source="s"'
            ' xtype="cache" symbol="Flag, Blue"',
        )
        wp = layer.get_waypoint("P")
        assert wp.altitude == pytest.approx(12.5)
        assert wp.timestamp == pytest.approx(1700000000.25)
        assert wp.comment == "c"
        assert wp.description == "d"
        assert wp.source == "s"
        assert wp.type == "cache"
        assert wp.symbol == "Flag, Blue"

    @pytest.mark.unit
    def test_empty_versus_absent_comment(self, layer):
        """comment="" is an empty comment; comment= leaves it unset."""
        read_string(
            layer,
            'type="waypoint" name="E" comment=""\n'
            'type="waypoint" name="U" comment=\n',
        )
        assert layer.get_waypoint("E").comment == ""
        assert layer.get_waypoint("U").comment is None

    @pytest.mark.unit
    def test_escaped_text_decoded(self, layer):
        read_string(layer, r'type="waypoint" name="Say \"hi\"" comment="C:\\temp"')
        wp = layer.get_waypoint('Say "hi"')
        assert wp is not None
        assert wp.comment == "C:\\temp"

    @pytest.mark.unit
    def test_relative_image_resolved_against_dirpath(self, layer):
        read_string(layer, 'type="waypoint" name="P" image="photos/a.jpg"', dirpath="/data/trips")
        assert layer.get_waypoint("P").image == os.path.normpath("/data/trips/photos/a.jpg")

    @pytest.mark.unit
    def test_absolute_image_kept(self, layer):
        read_string(layer, 'type="waypoint" name="P" image="/pics/a.jpg"', dirpath="/data")
        assert layer.get_waypoint("P").image == "/pics/a.jpg"

    @pytest.mark.unit
    def test_image_direction(self, layer):
        read_string(
            layer,
            'type="waypoint" name="P" image_direction="123.45" image_direction_ref="1"',
        )
        wp = layer.get_waypoint("P")
        assert wp.image_direction == pytest.approx(123.45)
        assert wp.image_direction_ref == ImageDirectionRef.MAGNETIC

    @pytest.mark.unit
    def test_image_direction_ref_ignored_without_direction(self, layer):
        read_string(layer, 'type="waypoint" name="P" image_direction_ref="1"')
        wp = layer.get_waypoint("P")
        assert math.isnan(wp.image_direction)
        assert wp.image_direction_ref == ImageDirectionRef.TRUE

    @pytest.mark.unit
    def test_fields_reset_between_lines(self, layer):
        read_string(
            layer,
            'type="waypoint" name="A" altitude="100" comment="x" visible="n"\n'
            'type="waypoint" name="B"\n',
        )
        b = layer.get_waypoint("B")
        assert math.isnan(b.altitude)
        assert b.comment is None
        assert b.visible is True

    @pytest.mark.unit
    def test_utm_layer_converts_coordinates(self):
        layer = TrwLayer(coord_mode=CoordMode.UTM)
        read_string(layer, 'type="waypoint" name="A" latitude="48.0" longitude="2.0"')
        wp = layer.get_waypoint("A")
        assert wp.coord.mode == CoordMode.UTM
        ll = wp.coord.to_latlon()
        assert ll.lat == pytest.approx(48.0, abs=1e-5)
        assert ll.lon == pytest.approx(2.0, abs=1e-5)

    @pytest.mark.unit
    @pytest.mark.parametrize("lat", ["nan", "inf", "-inf", "1e400"])
    def test_utm_layer_accepts_non_finite_coordinates(self, lat):
        layer = TrwLayer(coord_mode=CoordMode.UTM)
        text = (
            f'type="waypoint" name="A" latitude="{lat}" longitude="2.0"\n'
            'type="track" name="T"\n'
            f'type="trackpoint" latitude="1.0" longitude="{lat}"\n'
            'type="trackend"\n'
        )
        assert read_string(layer, text) is True
        wp = layer.get_waypoint("A")
        assert wp.coord.mode == CoordMode.UTM
        assert math.isnan(wp.coord.value.easting)
        assert math.isnan(wp.coord.to_latlon().lat)
        assert len(layer.get_track("T")) == 1


class TestTracks:
    """Track and route records, open-track handling."""

    @pytest.mark.unit
    def test_single_point_track_example(self, layer):
        ok = read_string(
            layer,
            'type="track" name="T1"\n'
            'type="trackpoint" latitude="1.0" longitude="1.0"\n'
            'type="trackend"\n',
        )
        assert ok is True
        trk = layer.get_track("T1")
        assert len(trk.trackpoints) == 1
        ll = trk.trackpoints[0].coord.to_latlon()
        assert ll.lat == pytest.approx(1.0)
        assert ll.lon == pytest.approx(1.0)

    @pytest.mark.unit
    def test_full_file(self, layer):
        assert read_string(layer, TRACK_FILE) is True
        assert list(layer.waypoints) == ["HQ"]
        trk = layer.get_track("Morning Patrol")
        assert trk.comment == "east loop"
        assert trk.is_route is False
        assert [tp.timestamp for tp in trk.trackpoints] == [
            1700000000, 1700000060, 1700000120,
        ]
        rte = layer.get_route("Supply Route")
        assert rte.is_route is True
        assert rte.trackpoints[0].name == "Checkpoint"
        assert layer.get_track("Supply Route") is None

    @pytest.mark.unit
    def test_point_without_open_track_ignored(self, layer):
        ok = read_string(layer, 'type="trackpoint" latitude="1.0" longitude="1.0"')
        assert ok is False
        assert layer.tracks == {}

    @pytest.mark.unit
    def test_point_after_trackend_ignored(self, layer):
        read_string(
            layer,
            'type="track" name="T"\n'
            'type="trackpoint" latitude="1" longitude="1"\n'
            'type="trackend"\n'
            'type="trackpoint" latitude="2" longitude="2"\n',
        )
        assert len(layer.get_track("T")) == 1

    @pytest.mark.unit
    def test_empty_track_closed_by_trackend(self, layer):
        read_string(
            layer,
            'type="track" name="T"\n'
            'type="trackend"\n'
            'type="trackpoint" latitude="2" longitude="2"\n',
        )
        assert len(layer.get_track("T")) == 0

    @pytest.mark.unit
    def test_unterminated_track_finalized_at_end_of_input(self, layer):
        read_string(
            layer,
            'type="track" name="T"\n'
            'type="trackpoint" latitude="1" longitude="10"\n'
            'type="trackpoint" latitude="2" longitude="20"\n'
            'type="trackpoint" latitude="3" longitude="30"\n',
        )
        lats = [tp.coord.to_latlon().lat for tp in layer.get_track("T").trackpoints]
        assert lats == [1.0, 2.0, 3.0]

    @pytest.mark.unit
    def test_next_track_closes_previous(self, layer):
        read_string(
            layer,
            'type="track" name="A"\n'
            'type="trackpoint" latitude="1" longitude="1"\n'
            'type="trackpoint" latitude="2" longitude="2"\n'
            'type="track" name="B"\n'
            'type="trackpoint" latitude="3" longitude="3"\n',
        )
        assert len(layer.get_track("A")) == 2
        assert len(layer.get_track("B")) == 1

    @pytest.mark.unit
    def test_waypoint_closes_open_track(self, layer):
        read_string(
            layer,
            'type="track" name="A"\n'
            'type="trackpoint" latitude="1" longitude="1"\n'
            'type="waypoint" name="W"\n'
            'type="trackpoint" latitude="2" longitude="2"\n',
        )
        assert len(layer.get_track("A")) == 1
        assert "W" in layer.waypoints

    @pytest.mark.unit
    def test_nameless_waypoint_does_not_close_track(self, layer):
        read_string(
            layer,
            'type="track" name="A"\n'
            'type="waypoint" latitude="5" longitude="5"\n'
            'type="trackpoint" latitude="2" longitude="2"\n',
        )
        assert len(layer.get_track("A")) == 1

    @pytest.mark.unit
    def test_track_without_name_tag_is_unk(self, layer):
        read_string(layer, 'type="track"\ntype="trackpoint" latitude="1" longitude="1"\n')
        assert len(layer.get_track("UNK")) == 1

    @pytest.mark.unit
    def test_track_with_empty_name_dropped(self, layer):
        ok = read_string(
            layer, 'type="track" name=""\ntype="trackpoint" latitude="1" longitude="1"\n'
        )
        assert ok is False
        assert layer.tracks == {}

    @pytest.mark.unit
    def test_track_attributes(self, layer):
        read_string(
            layer,
            'type="track" name="T" color=#ff8000 draw_name_mode="2"'
            ' number_dist_labels="5" visible="n" xtype="hike" source="gps"',
        )
        trk = layer.get_track("T")
        assert trk.color == (255, 128, 0)
        assert trk.draw_name_mode == TrackDrawNameMode.START
        assert trk.max_number_dist_labels == 5
        assert trk.visible is False
        assert trk.type == "hike"
        assert trk.source == "gps"

    @pytest.mark.unit
    def test_invalid_color_ignored(self, layer):
        read_string(layer, 'type="track" name="T" color="notacolor"')
        assert layer.get_track("T").color is None

    @pytest.mark.unit
    def test_named_color(self, layer):
        read_string(layer, 'type="route" name="R" color="red"')
        assert layer.get_route("R").color == (255, 0, 0)

    @pytest.mark.unit
    def test_unknown_draw_name_mode_maps_to_none(self, layer):
        read_string(layer, 'type="track" name="T" draw_name_mode="42"')
        assert layer.get_track("T").draw_name_mode == TrackDrawNameMode.NONE

    @pytest.mark.unit
    def test_extended_fields_need_flag(self, layer):
        read_string(
            layer,
            'type="track" name="T"\n'
            'type="trackpoint" latitude="1" longitude="1" speed="3.5" sat="8"\n'
            'type="trackpoint" latitude="2" longitude="2" extended="yes" speed="3.5"'
            ' course="90" sat="8" fix="3" hdop="0.9" vdop="1.2" pdop="1.5"\n',
        )
        plain, ext = layer.get_track("T").trackpoints
        assert math.isnan(plain.speed)
        assert plain.nsats == 0
        assert ext.speed == pytest.approx(3.5)
        assert ext.course == pytest.approx(90.0)
        assert ext.nsats == 8
        assert ext.fix_mode == 3
        assert ext.hdop == pytest.approx(0.9)
        assert ext.vdop == pytest.approx(1.2)
        assert ext.pdop == pytest.approx(1.5)

    @pytest.mark.unit
    def test_point_fields(self, layer):
        read_string(
            layer,
            'type="track" name="T"\n'
            'type="trackpoint" latitude="1" longitude="1" altitude="5.5"'
            ' unixtime="1700000000.5" newsegment="yes" name="p1"\n',
        )
        tp = layer.get_track("T").trackpoints[0]
        assert tp.altitude == pytest.approx(5.5)
        assert tp.timestamp == pytest.approx(1700000000.5)
        assert tp.newsegment is True
        assert tp.name == "p1"

    @pytest.mark.unit
    def test_routepoint_accepted_in_track(self, layer):
        """Point kind is not checked against the open track's kind."""
        read_string(
            layer,
            'type="track" name="T"\n'
            'type="routepoint" latitude="1" longitude="1"\n'
            'type="routeend"\n',
        )
        assert len(layer.get_track("T")) == 1


class TestInputHandling:
    """Comments, line endings, embedded sections, files."""

    @pytest.mark.unit
    def test_comments_and_blank_lines(self, layer):
        ok = read_string(
            layer,
            "# exported layer\n"
            "\n"
            '   type="waypoint" name="A"   # trailing note\n',
        )
        assert ok is True
        assert "A" in layer.waypoints

    @pytest.mark.unit
    def test_crlf_line_endings(self, layer):
        read_file(layer, ['type="waypoint" name="A" comment="x"\r\n'])
        assert layer.get_waypoint("A").comment == "x"

    @pytest.mark.unit
    def test_garbage_input_returns_false(self, layer):
        assert read_string(layer, "this is not a track file\nat all\n") is False
        assert layer.is_empty()

    @pytest.mark.unit
    def test_empty_input_returns_false(self, layer):
        assert read_string(layer, "") is False

    @pytest.mark.unit
    def test_malformed_tokens_dropped(self, layer):
        read_string(layer, 'type="waypoint" bogus name="A" comment="unterminated')
        wp = layer.get_waypoint("A")
        assert wp is not None
        assert wp.comment is None

    @pytest.mark.unit
    def test_end_layer_data_stops_reading(self, layer):
        lines = iter([
            'type="track" name="T"\n',
            'type="trackpoint" latitude="1" longitude="1"\n',
            "~EndLayerData\n",
            "~Layer Map\n",
        ])
        assert read_file(layer, lines) is True
        assert len(layer.get_track("T")) == 1
        assert next(lines) == "~Layer Map\n"

    @pytest.mark.unit
    def test_empty_embedded_section_is_valid(self, layer):
        assert read_file(layer, ["~EndLayerData\n"]) is True
        assert layer.is_empty()

    @pytest.mark.unit
    def test_reader_state_per_instance(self, layer):
        """Two readers never share an open track."""
        first = GpsPointReader(layer)
        second = GpsPointReader(layer)
        first.feed_line('type="track" name="T"')
        second.feed_line('type="trackpoint" latitude="1" longitude="1"')
        assert len(layer.get_track("T")) == 0
        assert second.finish() is False
        assert first.finish() is True

    @pytest.mark.unit
    def test_read_path(self, layer, tmp_path):
        photos = tmp_path / "photos"
        photos.mkdir()
        path = tmp_path / "trip.gpspoint"
        path.write_text(
            'type="waypoint" name="P" image="photos/a.jpg"\n', encoding="utf-8"
        )
        assert read_path(layer, str(path)) is True
        assert layer.get_waypoint("P").image == str(photos / "a.jpg")

    @pytest.mark.unit
    def test_read_path_non_utf8_bytes_replaced(self, layer, tmp_path):
        path = tmp_path / "latin1.gpspoint"
        path.write_bytes(b'type="waypoint" name="Caf\xe9" latitude="1" longitude="2"\n')
        assert read_path(layer, str(path)) is True
        assert layer.get_waypoint("Caf�") is not None

    @pytest.mark.unit
    def test_read_path_missing_file_raises(self, layer, tmp_path):
        with pytest.raises(OSError):
            read_path(layer, str(tmp_path / "missing.gpspoint"))

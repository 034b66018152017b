"""Tests for sidecar JSON parsing."""

import json

import pytest

from gphotos_migrate.media_migrator.errors import SidecarMalformedError
from gphotos_migrate.media_migrator.sidecar import GeoData, load_sidecar, parse_sidecar, read_sidecar_title


@pytest.fixture
def full_sidecar():
    return {
        "title": "IMG_0001.JPG",
        "description": "Beach",
        "photoTakenTime": {"timestamp": "1577836800", "formatted": "Jan 1, 2020, 12:00:00 AM UTC"},
        "creationTime": {"timestamp": "1600000000"},
        "geoData": {"latitude": 37.7749, "longitude": -122.4194, "altitude": 10.5},
        "geoDataExif": {"latitude": 1.0, "longitude": 2.0, "altitude": 3.0},
        "favorited": True,
        "trashed": False,
        "archived": True,
        "people": [{"name": "Alice"}, {"name": "Bob"}, {}],
        "googlePhotosOrigin": {"mobileUpload": {}},
    }


class TestParseSidecar:
    """Tests for parse_sidecar function."""

    def test_full_document(self, full_sidecar):
        document = parse_sidecar(full_sidecar)

        assert document.title == "IMG_0001.JPG"
        assert document.description == "Beach"
        assert document.photo_taken_time == 1577836800
        assert document.creation_time == 1600000000
        assert document.taken_timestamp == 1577836800
        assert document.favorited is True
        assert document.archived is True
        assert document.people == ["Alice", "Bob"]

    def test_geo_data_wins_over_geo_data_exif(self, full_sidecar):
        document = parse_sidecar(full_sidecar)
        assert document.location == GeoData(37.7749, -122.4194, 10.5)

    def test_zero_geo_data_falls_back_to_exif(self, full_sidecar):
        full_sidecar["geoData"] = {"latitude": 0.0, "longitude": 0.0, "altitude": 0.0}
        document = parse_sidecar(full_sidecar)
        assert document.geo_data is None
        assert document.location == GeoData(1.0, 2.0, 3.0)

    def test_both_geo_zero_means_no_location(self, full_sidecar):
        full_sidecar["geoData"] = {"latitude": 0.0, "longitude": 0.0, "altitude": 0.0}
        full_sidecar["geoDataExif"] = {"latitude": 0.0, "longitude": 0.0, "altitude": 12.0}
        assert parse_sidecar(full_sidecar).location is None

    def test_creation_time_fallback(self):
        document = parse_sidecar({"title": "a.jpg", "creationTime": {"timestamp": "1600000000"}})
        assert document.taken_timestamp == 1600000000

    def test_formatted_time_when_timestamp_missing(self):
        document = parse_sidecar({"photoTakenTime": {"formatted": "Jan 1, 2020, 12:00:00 AM UTC"}})
        assert document.taken_timestamp == 1577836800

    def test_iso_formatted_time(self):
        document = parse_sidecar({"photoTakenTime": {"formatted": "2020-01-01T00:00:00Z"}})
        assert document.taken_timestamp == 1577836800

    def test_no_time_at_all(self):
        with pytest.raises(SidecarMalformedError):
            parse_sidecar({"title": "a.jpg"})

    def test_unparseable_formatted_time_counts_as_missing(self):
        with pytest.raises(SidecarMalformedError):
            parse_sidecar({"photoTakenTime": {"formatted": "sometime last summer"}})

    def test_non_numeric_timestamp(self):
        with pytest.raises(SidecarMalformedError):
            parse_sidecar({"photoTakenTime": {"timestamp": "yesterday"}})

    def test_not_an_object(self):
        with pytest.raises(SidecarMalformedError):
            parse_sidecar(["not", "a", "dict"])

    def test_defaults_for_missing_optional_fields(self):
        document = parse_sidecar({"photoTakenTime": {"timestamp": "0"}})
        assert document.title == ""
        assert document.description == ""
        assert document.favorited is False
        assert document.people == []
        assert document.location is None
        assert document.taken_timestamp == 0


class TestLoadSidecar:
    """Tests for load_sidecar function."""

    def test_load(self, tmp_path, full_sidecar):
        path = tmp_path / "IMG_0001.JPG.json"
        path.write_text(json.dumps(full_sidecar), encoding="utf-8")
        assert load_sidecar(path).title == "IMG_0001.JPG"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SidecarMalformedError):
            load_sidecar(path)

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_bytes(b'{"title": "\xff\xfe"}')
        with pytest.raises(SidecarMalformedError):
            load_sidecar(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_sidecar(tmp_path / "missing.json")


class TestReadSidecarTitle:
    """Tests for read_sidecar_title."""

    def test_title_only_sidecar(self, tmp_path):
        path = tmp_path / "IMG_1234.JPG.json"
        path.write_text('{"title": "IMG_1234.MOV"}', encoding="utf-8")
        assert read_sidecar_title(path) == "IMG_1234.MOV"

    @pytest.mark.parametrize("content", ["{broken", '{"title": 5}', "[]"])
    def test_unusable_content(self, tmp_path, content):
        path = tmp_path / "a.json"
        path.write_text(content, encoding="utf-8")
        assert read_sidecar_title(path) is None

    def test_missing_file(self, tmp_path):
        assert read_sidecar_title(tmp_path / "missing.json") is None

"""
Tests for the image application service
"""
import exif
import pytest

from bluepic.domain.models.user import User
from bluepic.domain.services.image_service import ImageService
from bluepic.infrastructure.repositories.filesystem_image_repository import FilesystemImageRepository


@pytest.fixture
def service(tmp_path):
    return ImageService(FilesystemImageRepository(str(tmp_path / "store")))


@pytest.fixture
def user():
    return User(facebook_id="501", name="Sam")


def test_prepare_upload_reads_dimensions(service, user, make_jpeg):
    path = make_jpeg(size=(120, 80))

    candidate = service.prepare_upload(path, "Harbour", user, "Sydney", latitude=-33.86, longitude=151.21)

    assert candidate.file_name == "capture.jpg"
    assert candidate.width == 120.0
    assert candidate.height == 80.0
    assert candidate.location.name == "Sydney"
    assert candidate.location.latitude == -33.86
    assert candidate.location.weather is None
    assert candidate.user == user


def test_prepare_upload_without_coordinates_or_exif_fails(service, user, make_jpeg):
    with pytest.raises(ValueError):
        service.prepare_upload(make_jpeg(), "Harbour", user, "Sydney")


def test_prepare_upload_missing_file(service, user, tmp_path):
    with pytest.raises(ValueError):
        service.prepare_upload(str(tmp_path / "gone.jpg"), "Harbour", user, "Sydney", 0.0, 0.0)


@pytest.mark.parametrize("coordinates, ref, expected", [
    ((30.0, 15.0, 36.0), "N", 30.26),
    ((97.0, 44.0, 24.0), "W", -97.74),
])
def test_convert_gps_coordinates(coordinates, ref, expected):
    assert ImageService._convert_gps_coordinates(coordinates, ref) == pytest.approx(expected)


def test_convert_gps_coordinates_rejects_bad_input():
    assert ImageService._convert_gps_coordinates((1.0, 2.0), "N") is None


def test_upload_and_query(service, user, make_jpeg):
    path = make_jpeg()
    candidate = service.prepare_upload(path, "Harbour", user, "Sydney", -33.86, 151.21)

    image = service.upload(candidate, path)

    assert service.images_for_user("501") == [image]
    assert service.images_for_user("other") == []
    assert service.images_for_tag("harbour") == []


def test_feed_is_newest_first(service, record):
    older = dict(record, _id="older", uploadedTs="2015-01-01T00:00:00")
    undated = dict(record, _id="undated")
    del undated["uploadedTs"]
    service._repository.merge_records([older, undated, record])

    assert [image.id for image in service.feed()] == [record["_id"], "older", "undated"]


def _write_gps(path, latitude, latitude_ref, longitude, longitude_ref):
    with open(path, "rb") as f:
        img = exif.Image(f)
    img.gps_latitude = latitude
    img.gps_latitude_ref = latitude_ref
    img.gps_longitude = longitude
    img.gps_longitude_ref = longitude_ref
    with open(path, "wb") as f:
        f.write(img.get_file())


@pytest.mark.parametrize("latitude, latitude_ref, longitude, longitude_ref, expected", [
    ((30.0, 15.0, 0.0), "N", (97.0, 45.0, 0.0), "W", (30.25, -97.75)),
    ((33.0, 52.0, 12.0), "S", (151.0, 12.0, 36.0), "E", (-33.87, 151.21)),
])
def test_prepare_upload_reads_exif_coordinates(
    service, user, make_jpeg, latitude, latitude_ref, longitude, longitude_ref, expected
):
    path = make_jpeg(size=(64, 48))
    _write_gps(path, latitude, latitude_ref, longitude, longitude_ref)

    candidate = service.prepare_upload(path, "Harbour", user, "Somewhere")

    assert candidate.location.latitude == pytest.approx(expected[0])
    assert candidate.location.longitude == pytest.approx(expected[1])
    assert (candidate.width, candidate.height) == (64.0, 48.0)


def test_explicit_coordinates_override_exif(service, user, make_jpeg):
    path = make_jpeg()
    _write_gps(path, (30.0, 15.0, 0.0), "N", (97.0, 45.0, 0.0), "W")

    candidate = service.prepare_upload(path, "Harbour", user, "Sydney", latitude=-33.86, longitude=151.21)

    assert (candidate.location.latitude, candidate.location.longitude) == (-33.86, 151.21)

import pytest

from conftest import make_image
from core.exceptions import MeasurementTooShort, MeasurementUnavailable
from models.measurement import Point
from schemas.blade import BladeContext
from services.measurement import (
    REASON_TOO_SHORT,
    REASON_UNAVAILABLE,
    MeasurementBook,
    create_measurement,
    format_distance,
    measure,
)


@pytest.fixture
def context():
    return BladeContext(current_altitude=20.0, min_altitude=10.0, max_altitude=50.0, blade_length=40.0)


def test_measure_line():
    result = measure(Point(x=0, y=0), Point(x=300, y=400), 0.8)
    assert result.valid
    assert result.reason is None
    assert result.pixel_distance == pytest.approx(500.0)
    assert result.distance_cm == pytest.approx(400.0)
    assert result.distance_m == pytest.approx(4.0)
    assert result.absolute_position is None


def test_distance_scales_with_gsd():
    start, end = Point(x=10, y=10), Point(x=110, y=10)
    assert measure(start, end, 1.6).distance_cm == pytest.approx(2 * measure(start, end, 0.8).distance_cm)


@pytest.mark.parametrize("end", [Point(x=1, y=1), Point(x=2, y=0)])
def test_short_lines_are_too_short(end):
    result = measure(Point(x=0, y=0), end, 0.8)
    assert not result.valid
    assert result.reason == REASON_TOO_SHORT


def test_custom_threshold():
    assert measure(Point(x=0, y=0), Point(x=5, y=0), 0.8, min_pixels=10).reason == REASON_TOO_SHORT


@pytest.mark.parametrize("gsd", [None, 0, -1.0])
def test_missing_gsd_is_unavailable(gsd):
    result = measure(Point(x=0, y=0), Point(x=100, y=0), gsd)
    assert not result.valid
    assert result.reason == REASON_UNAVAILABLE
    assert result.distance_cm == 0


def test_absolute_position(context):
    result = measure(Point(x=0, y=100), Point(x=0, y=300), 0.8, context)
    position = result.absolute_position
    assert position.relative_height == pytest.approx(1.6)
    assert position.altitude == pytest.approx(21.6)
    assert position.base_altitude == 20.0
    assert position.blade_percentage == pytest.approx(29.0)


def test_blade_percentage_is_clamped():
    context = BladeContext(current_altitude=50.0, min_altitude=10.0, blade_length=40.0)
    result = measure(Point(x=0, y=1000), Point(x=0, y=2000), 0.8, context)
    assert result.absolute_position.blade_percentage == 100.0


def test_zero_blade_length_gives_zero_percentage():
    context = BladeContext(current_altitude=30.0, min_altitude=30.0, blade_length=0.0)
    result = measure(Point(x=0, y=0), Point(x=0, y=100), 0.8, context)
    assert result.absolute_position.blade_percentage == 0


def test_create_measurement_raises_for_unusable_input():
    with pytest.raises(MeasurementUnavailable):
        create_measurement(make_image("bare", with_gsd=False), Point(x=0, y=0), Point(x=50, y=0))
    with pytest.raises(MeasurementTooShort):
        create_measurement(make_image("img"), Point(x=0, y=0), Point(x=1, y=0))


def test_create_measurement(context):
    measurement = create_measurement(make_image("img"), Point(x=0, y=0), Point(x=0, y=100), context, "crack")
    assert measurement.image_id == "img"
    assert measurement.gsd_used == 0.8
    assert measurement.distance_cm == pytest.approx(80.0)
    assert measurement.label == "crack"
    assert measurement.absolute_position is not None


@pytest.mark.parametrize(
    "meters,label",
    [(0, "0mm"), (0.0005, "0.50mm"), (0.005, "5.0mm"), (0.25, "25.0cm"), (2.5, "2.50m")],
)
def test_format_distance(meters, label):
    assert format_distance(meters) == label


def test_measurement_book():
    book = MeasurementBook()
    image = make_image("img")

    first = book.record(image, Point(x=0, y=0), Point(x=100, y=0))
    second = book.record(image, Point(x=0, y=0), Point(x=0, y=200))
    assert book.record(image, Point(x=0, y=0), Point(x=1, y=0)) is None
    assert [m.id for m in book.for_image("img")] == [first.id, second.id]

    assert book.delete("img", first.id)
    assert not book.delete("img", first.id)
    assert book.for_image("img") == [second]

    book.record(make_image("other"), Point(x=0, y=0), Point(x=10, y=10))
    assert book.clear("img") == 1
    assert book.clear() == 1
    assert book.for_image("other") == []


def test_measurement_book_propagates_unavailable():
    with pytest.raises(MeasurementUnavailable):
        MeasurementBook().record(make_image("bare", with_gsd=False), Point(x=0, y=0), Point(x=10, y=0))


@pytest.mark.parametrize("gsd", [0.05, 0.8, 3.7])
def test_distance_and_pixels_are_invertible(gsd):
    result = measure(Point(x=12.5, y=7.0), Point(x=480.0, y=913.25), gsd)
    assert result.distance_cm / gsd == pytest.approx(result.pixel_distance)

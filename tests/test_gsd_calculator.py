import pytest

from core.exceptions import ImplausibleDistance, ImplausibleGSD, InvalidDistance, InvalidImageDimensions
from models.enums import DistanceConfidence
from models.turbine_image import CameraOptics
from services.gsd_calculator import (
    build_gsd_record,
    compute_gsd,
    is_plausible_blade_distance,
    is_plausible_gsd,
    validate_blade_distance,
)

M3E = CameraOptics(focal_length_mm=12.29, sensor_width_mm=17.3, sensor_height_mm=13.0)


def test_compute_gsd_formula():
    result = compute_gsd(M3E, 30.0, 5280, 3956)
    expected_width = 17.3 * 30.0 / (12.29 * 5280)
    expected_height = 13.0 * 30.0 / (12.29 * 3956)
    assert result.gsd_width_m == pytest.approx(expected_width)
    assert result.gsd_height_m == pytest.approx(expected_height)
    assert result.gsd_avg_m == pytest.approx((expected_width + expected_height) / 2)
    assert result.gsd_cm_per_pixel == pytest.approx(result.gsd_avg_m * 100)
    assert 0.7 < result.gsd_cm_per_pixel < 0.9


def test_gsd_is_linear_in_distance():
    near = compute_gsd(M3E, 10.0, 5280, 3956)
    far = compute_gsd(M3E, 20.0, 5280, 3956)
    assert far.gsd_cm_per_pixel == pytest.approx(2 * near.gsd_cm_per_pixel)


@pytest.mark.parametrize("distance", [0, -5.0, None])
def test_non_positive_distance_is_rejected(distance):
    with pytest.raises(InvalidDistance):
        compute_gsd(M3E, distance, 5280, 3956)


def test_invalid_distance_is_a_value_error():
    with pytest.raises(ValueError):
        compute_gsd(M3E, 0, 5280, 3956)


def test_non_positive_dimensions_are_rejected():
    with pytest.raises(InvalidImageDimensions):
        compute_gsd(M3E, 30.0, 0, 3956)
    with pytest.raises(InvalidImageDimensions):
        compute_gsd(M3E, 30.0, 5280, -1)


def test_plausibility_bounds_are_exclusive():
    assert not is_plausible_gsd(0.001)
    assert not is_plausible_gsd(50.0)
    assert is_plausible_gsd(0.8)


def test_blade_distance_bounds_are_inclusive():
    assert is_plausible_blade_distance(0.5)
    assert is_plausible_blade_distance(100.0)
    assert not is_plausible_blade_distance(0.49)
    with pytest.raises(ImplausibleDistance):
        validate_blade_distance(150.0)


def test_build_gsd_record():
    record = build_gsd_record(
        M3E,
        30.0,
        5280,
        3956,
        flight_height_m=55.2,
        altitude_source="relative_altitude",
        distance_source="EXIF:UserComment",
        distance_confidence=DistanceConfidence.HIGH,
    )
    assert record.flight_height_m == 55.2
    assert record.distance_to_blade_m == 30.0
    assert record.is_measurable
    assert not record.uses_focus_distance


def test_build_gsd_record_rejects_implausible_gsd():
    with pytest.raises(ImplausibleGSD):
        build_gsd_record(
            M3E,
            30.0,
            1,
            1,
            flight_height_m=50.0,
            altitude_source="relative_altitude",
            distance_source="EXIF:UserComment",
            distance_confidence=DistanceConfidence.HIGH,
        )

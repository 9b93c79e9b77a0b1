import pytest

from conftest import make_image
from models.enums import DistanceConfidence
from services.image_validation import (
    generate_quality_report,
    get_images_needing_reprocessing,
    get_measurement_ready_images,
    validate_single_image,
    validate_turbine_images,
)


def test_no_images():
    result = validate_turbine_images([])
    assert not result.is_valid
    assert result.errors == ["No images found"]


def test_good_image_set(blade_images):
    result = validate_turbine_images(blade_images)
    assert result.is_valid
    assert result.errors == []
    assert result.statistics.valid_for_measurement == 5
    assert result.statistics.high_confidence_distance == 5
    assert result.statistics.average_gsd == pytest.approx(0.8)
    assert "Overall Status: READY FOR MEASUREMENT" in generate_quality_report(blade_images)


def test_focus_distance_needs_reprocessing(blade_images):
    images = blade_images + [make_image("focused", source="XMP:FocusDistance", confidence=DistanceConfidence.LOW)]
    result = validate_turbine_images(images)

    assert not result.is_valid
    assert any("Using focus distance" in e for e in result.errors)
    assert any(e.startswith("1 images are using focus distance") for e in result.errors)
    assert result.statistics.low_confidence_distance == 1
    assert [img.id for img in get_images_needing_reprocessing(images)] == ["focused"]

    report = generate_quality_report(images)
    assert "ERRORS:" in report
    assert "Overall Status: NEEDS ATTENTION" in report


def test_missing_gsd_is_an_error():
    result = validate_turbine_images([make_image("bare", with_gsd=False)])
    assert not result.is_valid
    assert result.errors[0].endswith("No valid GSD data")


def test_interpolated_source_gets_suggestion():
    image = make_image("guess", source="interpolated_from_5_images", confidence=DistanceConfidence.MEDIUM)
    result = validate_turbine_images([image])
    assert any("Consider adding explicit distance" in s for s in result.suggestions)


def test_single_image_quality():
    assert validate_single_image(make_image("a", gsd_cm=0.005)).gsd_quality == "excellent"
    assert validate_single_image(make_image("b", gsd_cm=0.05)).gsd_quality == "good"
    assert validate_single_image(make_image("c", gsd_cm=0.8)).gsd_quality == "poor"

    coarse = validate_single_image(make_image("d", gsd_cm=20.0))
    assert coarse.gsd_quality == "poor"
    assert coarse.can_measure

    unusable = validate_single_image(make_image("e", gsd_cm=60.0))
    assert unusable.gsd_quality == "unusable"
    assert not unusable.can_measure

    assert not validate_single_image(make_image("f", with_gsd=False)).can_measure


def test_measurement_ready_images_exclude_focus_sources():
    images = [make_image("ok"), make_image("focus", source="FocusDistance")]
    assert [img.id for img in get_measurement_ready_images(images)] == ["ok"]

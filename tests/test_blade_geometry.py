import pytest

from conftest import make_image
from models.enums import Blade, BladeSide
from services.blade_geometry import (
    EDGE_MARGIN_PIXELS,
    build_blade_context,
    compute_blade_coverage,
    compute_blade_metrics,
    compute_image_position,
    compute_image_positions,
    filter_images,
    find_closest_image_to_altitude,
    get_blade_inspection_stats,
    validate_blade_data,
)


def test_filter_images_orders_by_altitude():
    images = [
        make_image("high", altitude=60.0),
        make_image("other", blade=Blade.B, altitude=20.0),
        make_image("low", altitude=15.0),
        make_image("side", side=BladeSide.LE, altitude=30.0),
    ]
    assert [img.id for img in filter_images(images, Blade.A, BladeSide.TE)] == ["low", "high"]
    assert len(filter_images(images)) == 4


def test_metrics_from_altitudes(blade_images):
    metrics = compute_blade_metrics(blade_images)
    assert metrics.min_altitude == 10.0
    assert metrics.max_altitude == 50.0
    assert metrics.length_meters == 40.0
    assert metrics.altitude_range == 40.0
    assert metrics.total_images == 5
    assert metrics.average_spacing == pytest.approx(10.0)
    assert metrics.length_pixels == 200.0


@pytest.mark.parametrize("span,expected", [(10.0, 200.0), (100.0, 300.0), (400.0, 500.0)])
def test_length_pixels_is_clamped(span, expected):
    images = [make_image("bottom", altitude=1.0), make_image("top", altitude=1.0 + span)]
    assert compute_blade_metrics(images).length_pixels == pytest.approx(expected)


def test_metrics_without_altitudes():
    images = [make_image("a", altitude=0.0), make_image("b", with_gsd=False)]
    metrics = compute_blade_metrics(images)
    assert metrics.length_meters == 0
    assert metrics.length_pixels == 0
    assert metrics.total_images == 2


def test_single_altitude_has_zero_length():
    metrics = compute_blade_metrics([make_image("only", altitude=42.0)])
    assert metrics.length_meters == 0
    assert metrics.average_spacing == 0
    assert metrics.length_pixels == 200.0


def test_image_positions_run_top_to_bottom(blade_images):
    metrics = compute_blade_metrics(blade_images)
    positions = compute_image_positions(blade_images, metrics)

    bottom, middle, top = positions[0], positions[2], positions[4]
    assert bottom.relative_position == 0
    assert bottom.position_pixels == metrics.length_pixels - EDGE_MARGIN_PIXELS
    assert middle.percentage_from_base == pytest.approx(50.0)
    assert middle.position_pixels == pytest.approx(100.0)
    assert top.relative_position == 1
    assert top.position_pixels == EDGE_MARGIN_PIXELS
    assert [p.image_index for p in positions] == [0, 1, 2, 3, 4]


def test_image_position_is_clamped(blade_images):
    metrics = compute_blade_metrics(blade_images)
    above = compute_image_position(make_image("above", altitude=80.0), metrics)
    assert above.relative_position == 1.0
    assert above.altitude_from_base == 70.0


def test_image_without_altitude_sits_at_base(blade_images):
    metrics = compute_blade_metrics(blade_images)
    position = compute_image_position(make_image("bare", with_gsd=False), metrics)
    assert position.altitude_from_base == 0
    assert position.relative_position == 0


def test_coverage_without_gap_for_uneven_pair():
    images = [make_image(f"i{alt}", altitude=alt) for alt in (10.0, 15.0, 50.0)]
    coverage = compute_blade_coverage(images)
    # threshold is 20m * 2.5 = 50m, the 35m step stays under it
    assert coverage.gaps == []
    assert coverage.total_coverage == 100.0


def test_coverage_detects_gap():
    altitudes = [10.0, 11.0, 12.0, 13.0, 14.0, 15.0, 16.0, 17.0, 18.0, 60.0]
    coverage = compute_blade_coverage([make_image(f"i{i}", altitude=a) for i, a in enumerate(altitudes)])
    assert len(coverage.gaps) == 1
    gap = coverage.gaps[0]
    assert (gap.start, gap.end, gap.size) == (18.0, 60.0, 42.0)
    assert coverage.quality_score == pytest.approx(100 - 42.0 / 50.0 * 50)


def test_even_spacing_has_no_gaps_and_full_score(blade_images):
    coverage = compute_blade_coverage(blade_images)
    assert coverage.gaps == []
    assert coverage.quality_score == 100.0


def test_density_bins_are_half_open(blade_images):
    coverage = compute_blade_coverage(blade_images)
    assert len(coverage.density_map) == 5
    assert [b.image_count for b in coverage.density_map] == [1, 1, 1, 1, 0]
    assert coverage.density_map[0].altitude == pytest.approx(14.0)


def test_single_altitude_coverage_is_penalized():
    coverage = compute_blade_coverage([make_image("a", altitude=30.0), make_image("b", altitude=30.0)])
    assert coverage.total_coverage == 0
    assert coverage.quality_score == 70.0


def test_empty_coverage():
    coverage = compute_blade_coverage([])
    assert coverage.total_coverage == 0
    assert coverage.density_map == []
    assert coverage.quality_score == 0


def test_validate_blade_data_warns_on_small_sets(blade_images):
    validation = validate_blade_data(blade_images[:3])
    assert not validation.is_valid
    assert any("Very few images" in w for w in validation.warnings)
    assert validate_blade_data([]).quality_score == 0


def test_find_closest_image_to_altitude(blade_images):
    closest = find_closest_image_to_altitude(blade_images, 33.0)
    assert closest.image.id == "a_te_2"
    assert closest.index == 2
    assert closest.distance == pytest.approx(3.0)
    assert find_closest_image_to_altitude([], 10.0) is None


def test_inspection_stats(blade_images):
    stats = get_blade_inspection_stats(blade_images)
    assert stats.altitude_stats.range == 40.0
    assert stats.gsd_stats.count == 5
    assert stats.gsd_stats.median == pytest.approx(0.8)


def test_build_blade_context(blade_images):
    metrics = compute_blade_metrics(blade_images)
    context = build_blade_context(blade_images[1], metrics)
    assert context.current_altitude == 20.0
    assert context.min_altitude == 10.0
    assert context.blade_length == 40.0
    assert context.current_image_position.relative_position == pytest.approx(0.25)


def test_ten_images_five_meters_apart_have_no_gaps():
    images = [make_image(f"i{i}", altitude=20.0 + i * 5) for i in range(10)]
    coverage = compute_blade_coverage(images)
    assert coverage.gaps == []
    assert compute_blade_metrics(images).length_meters == 45.0

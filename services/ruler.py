"""
Ruler tick selection.

Ticks are always round real-world intervals; the pixel spacing follows
from the effective GSD at the current zoom.
"""

from schemas.blade import RulerIntervals

# (effective GSD strictly above, (ruler, major, minor) in cm), coarse to fine
RULER_INTERVAL_TABLE = [
    (100.0, (500.0, 1000.0, 250.0)),
    (50.0, (100.0, 500.0, 50.0)),
    (20.0, (50.0, 200.0, 25.0)),
    (10.0, (20.0, 100.0, 10.0)),
    (5.0, (10.0, 50.0, 5.0)),
    (1.0, (5.0, 20.0, 2.0)),
]
FINEST_INTERVALS = (1.0, 10.0, 0.5)


def select_ruler_intervals(gsd_cm_per_pixel: float, zoom: float, scale_factor: float = 1.0) -> RulerIntervals:
    if gsd_cm_per_pixel <= 0:
        raise ValueError(f"GSD must be positive, got {gsd_cm_per_pixel}")
    if zoom <= 0 or scale_factor <= 0:
        raise ValueError(f"Zoom and scale factor must be positive, got {zoom} and {scale_factor}")

    effective_gsd = gsd_cm_per_pixel / (scale_factor * zoom)

    ruler_cm, major_cm, minor_cm = FINEST_INTERVALS
    for threshold, intervals in RULER_INTERVAL_TABLE:
        if effective_gsd > threshold:
            ruler_cm, major_cm, minor_cm = intervals
            break

    return RulerIntervals(
        ruler_interval_cm=ruler_cm,
        major_interval_cm=major_cm,
        minor_interval_cm=minor_cm,
        ruler_interval_px=ruler_cm / effective_gsd,
        major_interval_px=major_cm / effective_gsd,
        minor_interval_px=minor_cm / effective_gsd,
        effective_gsd_cm_per_pixel=effective_gsd,
    )


def format_distance_for_ruler(distance_cm: float) -> str:
    """Tick label with a unit suited to the magnitude"""
    if distance_cm >= 10000:
        km = distance_cm / 100000
        return f"{km:.{0 if km >= 10 else 1}f}km"
    if distance_cm >= 1000:
        return f"{distance_cm / 100:.0f}m"
    if distance_cm >= 100:
        return f"{distance_cm / 100:.1f}m"
    if distance_cm >= 10:
        return f"{round(distance_cm)}cm"
    if distance_cm >= 1:
        return f"{distance_cm:.1f}cm"
    return f"{distance_cm * 10:.0f}mm"

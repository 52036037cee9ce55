"""Trajectory geometry: distances, progress projection and interpolation.

All functions are pure. Points are (lng, lat) pairs; any 2-element sequence or
numpy row is accepted. Distances are computed with one of the metrics in
METRICS, selected by name and never mixed within a single computation.
"""

import logging
import math
from numbers import Real

import numpy as np

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
PROGRESS_EPSILON = 0.01
MIN_DURATION_MS = 5.0


def planar_distance(a, b) -> np.ndarray | float:
    """Euclidean distance treating lng/lat as Cartesian coordinates.

    Broadcasts over leading dimensions, so (N, 2) arrays give N distances.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    return np.sqrt(np.sum((b - a) ** 2, axis=-1))


def haversine_distance(a, b) -> np.ndarray | float:
    """Great-circle distance in kilometers between (lng, lat) degree pairs."""
    a = np.radians(np.asarray(a, dtype=float))
    b = np.radians(np.asarray(b, dtype=float))

    dlat = b[..., 1] - a[..., 1]
    dlng = b[..., 0] - a[..., 0]

    h = (np.sin(dlat / 2) ** 2 +
         np.cos(a[..., 1]) * np.cos(b[..., 1]) * np.sin(dlng / 2) ** 2)
    c = 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


METRICS = {
    'planar': planar_distance,
    'haversine': haversine_distance,
}


def get_metric(metric: str = 'planar'):
    """Look up a distance function by name."""
    try:
        return METRICS[metric]
    except KeyError:
        raise ValueError(f"Unknown distance metric: {metric!r} (expected one of {sorted(METRICS)})") from None


def distance(a, b, metric: str = 'planar') -> float:
    """Distance between two points."""
    return float(get_metric(metric)(a, b))


def segment_lengths(points, metric: str = 'planar') -> np.ndarray:
    """Length of every consecutive segment, shape (N-1,)."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) < 2:
        return np.zeros(0)
    return get_metric(metric)(pts[:-1], pts[1:])


def path_length(path, metric: str = 'planar') -> float:
    """Total length of a polyline."""
    return float(np.sum(segment_lengths(path, metric)))


def cumulative_distances(points, metric: str = 'planar') -> tuple[np.ndarray, float]:
    """Running path length up to each vertex.

    Returns:
        (distances, total) where distances[0] == 0 and total == distances[-1].
        Empty input gives (empty array, 0.0).
    """
    if len(points) == 0:
        return np.zeros(0), 0.0

    distances = np.concatenate([[0.0], np.cumsum(segment_lengths(points, metric))])
    return distances, float(distances[-1])


def progress_from_position(position, points, distances, total: float, metric: str = 'planar') -> float:
    """Project a position onto the trajectory and return progress in [0, 100].

    The nearest segment is the one whose projected point is closest to
    ``position``; zero-length segments are skipped. Ties go to the earliest
    segment.
    """
    if len(points) == 0 or total == 0:
        return 0.0

    pos = np.asarray(position, dtype=float)
    if pos.shape != (2,) or not np.all(np.isfinite(pos)):
        return 0.0

    pts = np.asarray(points, dtype=float)
    p1 = pts[:-1]
    p2 = pts[1:]
    seg = p2 - p1

    dist_fn = get_metric(metric)
    valid = dist_fn(p1, p2) > 0
    if not np.any(valid):
        return 0.0

    squared = np.sum(seg ** 2, axis=1)
    t = np.einsum('ij,ij->i', pos - p1, seg) / np.where(valid, squared, 1.0)
    t = np.clip(t, 0.0, 1.0)

    projected = p1 + t[:, np.newaxis] * seg
    to_projection = dist_fn(np.broadcast_to(pos, projected.shape), projected)
    to_projection = np.where(valid, to_projection, np.inf)

    best = int(np.argmin(to_projection))
    segment_start = distances[best]
    segment_length = distances[best + 1] - segment_start
    travelled = segment_start + segment_length * t[best]

    return float(min(100.0, max(0.0, travelled / total * 100)))


def accept_progress(candidate: float, watermark: float, epsilon: float = PROGRESS_EPSILON) -> float:
    """Apply the watermark rule to a freshly projected progress value.

    The candidate replaces the watermark when it is ahead of it or differs
    by more than ``epsilon``; otherwise the watermark is kept.
    """
    if candidate > watermark or abs(candidate - watermark) > epsilon:
        return candidate
    return watermark


def nearest_index(position, points, metric: str = 'planar') -> int:
    """Index of the vertex closest to ``position`` (first one on ties)."""
    if len(points) == 0:
        return 0
    pts = np.asarray(points, dtype=float)
    return int(np.argmin(get_metric(metric)(np.asarray(position, dtype=float), pts)))


def segment_index_for_progress(progress: float, distances, total: float) -> int:
    """First segment i with target distance <= distances[i + 1], or 0 if none."""
    distances = np.asarray(distances, dtype=float)
    if len(distances) < 2:
        return 0

    target = progress / 100 * total
    index = int(np.searchsorted(distances[1:], target, side='left'))
    if index >= len(distances) - 1:
        return 0
    return index


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def position_from_progress(progress, points, distances, total: float) -> tuple[float, float] | None:
    """Interpolate the coordinate at ``progress`` percent of the path length.

    Returns the first/last vertex at or beyond the 0/100 boundaries, and None
    when progress is not a finite number or the path has no length data.
    """
    if not _is_number(progress) or not math.isfinite(progress):
        logger.warning("Invalid progress value: %r", progress)
        return None

    if progress <= 0:
        return tuple(points[0]) if len(points) > 0 else None
    if progress >= 100:
        return tuple(points[-1]) if len(points) > 0 else None

    if len(points) == 0 or len(distances) == 0 or total == 0:
        logger.warning("Trajectory data not available for position calculation")
        return None

    index = segment_index_for_progress(progress, distances, total)
    if index >= len(points) - 1:
        return tuple(points[-1])

    start = points[index]
    end = points[index + 1]
    segment_length = distances[index + 1] - distances[index]
    if segment_length == 0:
        return tuple(start)

    ratio = (progress / 100 * total - distances[index]) / segment_length
    return (
        float(start[0] + (end[0] - start[0]) * ratio),
        float(start[1] + (end[1] - start[1]) * ratio),
    )


def remaining_path(position, points, metric: str = 'planar') -> list[tuple[float, float]]:
    """Polyline from ``position`` to the end of the trajectory.

    Splices in after the vertex nearest to ``position``; when that vertex is
    the last one, the path runs straight to the end.
    """
    start = (float(position[0]), float(position[1]))
    index = nearest_index(start, points, metric)

    if index < len(points) - 1:
        return [start] + [tuple(p) for p in points[index + 1:]]
    return [start, tuple(points[-1])]


def scaled_duration(duration: float, distance: float, total: float, minimum: float = MIN_DURATION_MS) -> float:
    """Time to cover ``distance`` when ``duration`` covers ``total``.

    Never returns less than ``minimum``; NaN results are floored too.
    """
    scaled = duration * distance / (total or 1)
    if not scaled > minimum:
        return minimum
    return scaled


def _valid_point(point) -> bool:
    if isinstance(point, (str, bytes)):
        return False
    try:
        if len(point) != 2:
            return False
    except TypeError:
        return False
    return all(_is_number(v) and math.isfinite(v) for v in point)


def invalid_point_indices(points) -> list[int]:
    """Indices of points that are not finite numeric pairs."""
    return [i for i, point in enumerate(points) if not _valid_point(point)]


def validate_trajectory(points) -> bool:
    """Check that every point is a 2-element numeric pair without NaN or inf."""
    return all(_valid_point(point) for point in points)

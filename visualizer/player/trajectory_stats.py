"""Trajectory statistics computation and formatting."""

import numpy as np
from trajectory_geometry import path_length, segment_lengths


def compute_stats(points, base_duration: float) -> dict:
    """Compute trajectory statistics.

    Args:
        points: Trajectory as (lng, lat) pairs
        base_duration: Time in ms to traverse the whole trajectory at 1x

    Returns:
        Dict of statistics
    """
    positions = np.asarray(points, dtype=float).reshape(-1, 2)
    count = len(positions)

    planar = segment_lengths(positions, 'planar')
    degenerate_count = int(np.sum(planar == 0))

    if count:
        bbox_min = np.min(positions, axis=0)
        bbox_max = np.max(positions, axis=0)
    else:
        bbox_min = bbox_max = np.zeros(2)

    return {
        'point_count': count,
        'segment_count': max(0, count - 1),
        'degenerate_count': degenerate_count,
        'planar_length': float(np.sum(planar)),
        'haversine_km': path_length(positions, 'haversine'),
        'durations_ms': {
            'X1': base_duration,
            'X2': base_duration / 2,
            'X4': base_duration / 4,
        },
        'bbox_min': bbox_min,
        'bbox_max': bbox_max,
        'bbox_size': bbox_max - bbox_min,
    }


def print_stats(stats: dict) -> None:
    """Pretty-print trajectory statistics to console."""
    print("\n=== Trajectory Statistics ===")
    print(f"Points:          {stats['point_count']:>10d}")
    print(f"Segments:        {stats['segment_count']:>10d}")
    print(f"  Zero-length:   {stats['degenerate_count']:>10d}")
    print(f"Planar Length:   {stats['planar_length']:>10.6f} deg")
    print(f"Great-circle:    {stats['haversine_km']:>10.3f} km")
    print(f"\n=== Playback ===")
    for label, duration in stats['durations_ms'].items():
        print(f"{label} Duration:     {duration:>10.1f} ms")
    print(f"\n=== Bounding Box ===")
    print(f"Min:             ({stats['bbox_min'][0]:>11.6f}, {stats['bbox_min'][1]:>11.6f})")
    print(f"Max:             ({stats['bbox_max'][0]:>11.6f}, {stats['bbox_max'][1]:>11.6f})")
    print(f"Size:            ({stats['bbox_size'][0]:>11.6f}, {stats['bbox_size'][1]:>11.6f})")
    print()

"""Trajectory file I/O and synthetic trajectory generation."""

import json
import math


def parse_trajectory_csv(filepath: str) -> list[tuple[float, float]]:
    """Parse a trajectory CSV file into (lng, lat) points.

    The header must start with ``lng`` or ``lon``. Blank lines and rows that
    do not have exactly two columns are skipped.

    Args:
        filepath: Path to trajectory CSV file

    Returns:
        List of (lng, lat) tuples in file order
    """
    points = []

    with open(filepath, 'r') as f:
        header = f.readline().strip()
        if not header.lower().startswith(('lng', 'lon')):
            raise ValueError(f"Invalid trajectory CSV header: {header}")

        for line in f:
            line = line.strip()
            if not line:
                continue

            parts = line.split(',')
            if len(parts) != 2:
                continue

            points.append((float(parts[0]), float(parts[1])))

    if not points:
        raise ValueError("No points found in trajectory CSV file")

    return points


def parse_geojson_trajectory(filepath: str) -> list[tuple[float, float]]:
    """Read the first LineString from a GeoJSON file.

    Accepts a FeatureCollection, a single Feature or a bare geometry.
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if data.get('type') == 'FeatureCollection':
        geometries = [feature.get('geometry') or {} for feature in data.get('features', [])]
    elif data.get('type') == 'Feature':
        geometries = [data.get('geometry') or {}]
    else:
        geometries = [data]

    for geometry in geometries:
        if geometry.get('type') != 'LineString':
            continue

        # GeoJSON coordinates are already [longitude, latitude]
        points = [(float(c[0]), float(c[1])) for c in geometry.get('coordinates', []) if len(c) >= 2]
        if points:
            return points

    raise ValueError(f"No LineString geometry found in {filepath}")


def write_trajectory_csv(points, filepath: str) -> None:
    """Write points in the format read by parse_trajectory_csv."""
    with open(filepath, 'w') as f:
        f.write('lng,lat\n')
        for lng, lat in points:
            f.write(f'{float(lng)!r},{float(lat)!r}\n')


def generate_points(count: int, center_lng: float, center_lat: float,
                    radius: float = 0.01, turns: int = 3) -> list[tuple[float, float]]:
    """Generate an outward spiral around a center point.

    Args:
        count: Number of points
        center_lng, center_lat: Spiral center in degrees
        radius: Final distance from the center in degrees (0.01 is roughly 1 km)
        turns: Number of revolutions

    Returns:
        List of (lng, lat) tuples, starting at the center
    """
    points = []
    for i in range(count):
        angle = i / count * 2 * math.pi * turns
        distance = i / count * radius
        points.append((
            center_lng + distance * math.cos(angle),
            center_lat + distance * math.sin(angle),
        ))
    return points

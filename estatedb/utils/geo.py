"""Spherical distance helpers for GeoJSON points."""

import math
from typing import Iterator

# Same radius MongoDB uses for 2dsphere distances.
EARTH_RADIUS_METERS = 6378100.0


def is_valid_point(longitude: float, latitude: float) -> bool:
    """Check longitude/latitude are within GeoJSON bounds."""
    return -180.0 <= longitude <= 180.0 and -90.0 <= latitude <= 90.0


def haversine_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Great-circle distance in meters between two [longitude, latitude] points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a slightly past 1 for antipodal points
    a = min(1.0, a)
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def grid_cell(longitude: float, latitude: float, cell_degrees: float = 1.0) -> tuple[int, int]:
    """Bucket a point into a fixed-size lon/lat grid cell."""
    lon_columns = int(round(360.0 / cell_degrees))
    lat_rows = int(round(180.0 / cell_degrees))
    # 180 and -180 share a column, 90 falls into the top row
    return (
        math.floor((longitude + 180.0) / cell_degrees) % lon_columns,
        min(lat_rows - 1, math.floor((latitude + 90.0) / cell_degrees)),
    )


def cells_within(
    longitude: float,
    latitude: float,
    radius_meters: float,
    cell_degrees: float = 1.0,
) -> Iterator[tuple[int, int]]:
    """
    Yield every grid cell that intersects the bounding box of a radius query.

    Longitude wraps across the antimeridian. When the box reaches a pole, or
    the radius spans half the globe, every longitude column is included.
    """
    lon_columns = int(round(360.0 / cell_degrees))
    lat_rows = int(round(180.0 / cell_degrees))

    angular = radius_meters / EARTH_RADIUS_METERS
    d_lat = math.degrees(angular)
    min_lat = max(-90.0, latitude - d_lat)
    max_lat = min(90.0, latitude + d_lat)

    covers_pole = min_lat <= -90.0 or max_lat >= 90.0
    if covers_pole or angular >= math.pi / 2:
        columns = range(lon_columns)
    else:
        # Widest longitude span of the spherical cap, reached off the center latitude
        sin_ratio = math.sin(angular) / math.cos(math.radians(latitude))
        d_lon = 180.0 if sin_ratio >= 1.0 else math.degrees(math.asin(sin_ratio))
        if d_lon >= 180.0:
            columns = range(lon_columns)
        else:
            first = math.floor((longitude - d_lon + 180.0) / cell_degrees)
            last = math.floor((longitude + d_lon + 180.0) / cell_degrees)
            columns = sorted({column % lon_columns for column in range(first, last + 1)})

    first_row = max(0, math.floor((min_lat + 90.0) / cell_degrees))
    last_row = min(lat_rows - 1, math.floor((max_lat + 90.0) / cell_degrees))
    for column in columns:
        for row in range(first_row, last_row + 1):
            yield column, row

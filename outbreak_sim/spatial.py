"""Geodesic distance and neighbour search.

Distances are haversine great-circle km converted to "degrees" with a
single flat factor (111.32 km/°). The conversion is exact for latitude
but ignores the cos(lat) shrink of longitude, so the effective radius
is anisotropic away from the equator. Kept as-is: the infection radius
is defined in these units.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.32


def haversine_km(lat1, lon1, lat2, lon2,
                 earth_radius_km: float = EARTH_RADIUS_KM):
    """Great-circle distance in km between (lat, lon) points.

    Accepts scalars or broadcastable arrays.

    Args:
        lat1, lon1, lat2, lon2: Decimal degrees.
        earth_radius_km: Sphere radius.

    Returns:
        Distance in kilometres (float or ndarray).
    """
    d2r = np.pi / 180.0
    rlat1 = np.asarray(lat1) * d2r
    rlat2 = np.asarray(lat2) * d2r
    dlat = (np.asarray(lat2) - np.asarray(lat1)) * d2r
    dlon = (np.asarray(lon2) - np.asarray(lon1)) * d2r
    a = (np.sin(dlat / 2.0) ** 2
         + np.cos(rlat1) * np.cos(rlat2) * np.sin(dlon / 2.0) ** 2)
    c = 2.0 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))
    return earth_radius_km * c


def haversine_degrees(lat1, lon1, lat2, lon2,
                      earth_radius_km: float = EARTH_RADIUS_KM,
                      km_per_degree: float = KM_PER_DEGREE):
    """Haversine distance expressed in flat degrees (km / km_per_degree)."""
    return haversine_km(lat1, lon1, lat2, lon2, earth_radius_km) / km_per_degree


def radius_km_to_degrees(radius_km: float,
                         km_per_degree: float = KM_PER_DEGREE) -> float:
    return radius_km / km_per_degree


def neighbors_within(
    points: np.ndarray,
    idx: int,
    radius_deg: float,
    candidates: Optional[np.ndarray] = None,
    earth_radius_km: float = EARTH_RADIUS_KM,
    km_per_degree: float = KM_PER_DEGREE,
) -> np.ndarray:
    """Indices of points within radius_deg of points[idx].

    Linear scan over the whole collection (vectorised). The source point
    itself is never returned.

    Args:
        points: POINT_DTYPE array.
        idx: Source point index.
        radius_deg: Inclusive radius in flat degrees.
        candidates: Optional (N,) boolean mask restricting the scan.

    Returns:
        Sorted int array of neighbour indices.
    """
    if candidates is None:
        pool = np.arange(len(points))
    else:
        pool = np.flatnonzero(candidates)
    pool = pool[pool != idx]
    if pool.size == 0:
        return pool

    src = points[idx]
    d = haversine_degrees(src['lat'], src['lon'],
                          points['lat'][pool], points['lon'][pool],
                          earth_radius_km, km_per_degree)
    return pool[d <= radius_deg]

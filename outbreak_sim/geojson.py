"""GeoJSON point loader and exporter.

Input is a FeatureCollection of Point features, each with a numeric
``risk`` property in [0, 1]. Coordinates follow RFC 7946 order
[lon, lat]. Export writes the same format back, with the infection
state added to each feature's properties:

    {"risk": 0.7, "infected": true, "infectionStep": 3, ...original props}
"""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from outbreak_sim.types import make_points


DEFAULT_EXPORT_NAME = "finger_lakes_grid_points_1km_with_risk.geojson"
LOAD_ERROR_STATUS = "Error loading data file."


class PointLoadError(ValueError):
    """Raised when a feature collection can't be turned into grid points."""


@dataclass
class LoadResult:
    """Outcome of loading a point file.

    On failure ``points`` is None and ``error`` holds the reason; the
    simulator can't be started from a failed result.
    """
    ok: bool
    message: str
    points: Optional[np.ndarray] = None
    features: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════════
# PARSING
# ═══════════════════════════════════════════════════════════════════════

def _parse_feature(raw: Any, idx: int) -> Tuple[float, float, float]:
    """Return (lon, lat, risk) for one Point feature."""
    if not isinstance(raw, dict) or raw.get("type") != "Feature":
        raise PointLoadError(f"features[{idx}] is not a GeoJSON Feature")

    geometry = raw.get("geometry")
    if not isinstance(geometry, dict) or geometry.get("type") != "Point":
        raise PointLoadError(f"features[{idx}] geometry must be a Point")
    coords = geometry.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        raise PointLoadError(f"features[{idx}] has malformed coordinates")
    try:
        lon, lat = float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        raise PointLoadError(f"features[{idx}] coordinates are not numeric")

    properties = raw.get("properties") or {}
    risk = properties.get("risk") if isinstance(properties, dict) else None
    # bool is an int subclass; reject it explicitly
    if isinstance(risk, bool) or not isinstance(risk, (int, float)):
        raise PointLoadError(f"features[{idx}] has no numeric 'risk' property")
    risk = float(risk)
    if not 0.0 <= risk <= 1.0:
        raise PointLoadError(
            f"features[{idx}] risk must be in [0, 1], got {risk}"
        )
    return lon, lat, risk


def points_from_feature_collection(
    data: Any,
) -> Tuple[np.ndarray, List[Dict[str, Any]]]:
    """Build a point collection from a FeatureCollection dict.

    Any infection state already present in the properties is ignored;
    loaded points always start uninfected.

    Returns:
        (points, features): POINT_DTYPE array and the raw feature dicts
        (kept for property pass-through on export).

    Raises:
        PointLoadError: On structural problems, missing/invalid risk, or
            an empty collection.
    """
    if not isinstance(data, dict) or data.get("type") != "FeatureCollection":
        raise PointLoadError("expected a GeoJSON FeatureCollection")
    features = data.get("features")
    if not isinstance(features, list) or not features:
        raise PointLoadError("FeatureCollection has no features")

    parsed = [_parse_feature(raw, i) for i, raw in enumerate(features)]
    lons, lats, risks = (np.array(col, dtype=np.float64) for col in zip(*parsed))
    try:
        points = make_points(lons, lats, risks)
    except ValueError as exc:
        raise PointLoadError(str(exc)) from exc

    n_unique = len(np.unique(np.stack([lons, lats], axis=1), axis=0))
    if n_unique < len(points):
        warnings.warn(
            f"{len(points) - n_unique} grid points share coordinates with "
            f"another point",
            UserWarning,
            stacklevel=2,
        )
    return points, features


def load_summary(points: np.ndarray) -> str:
    """Status line for a freshly loaded grid."""
    n_high = int(np.sum(points['risk'] == 1.0))
    n_low = int(np.sum(points['risk'] == 0.0))
    return (f"Loaded {len(points)} grid points "
            f"({n_high} high risk, {n_low} low risk).")


def load_points(path: Union[str, Path]) -> LoadResult:
    """Load grid points from a GeoJSON file.

    Never raises for missing files, bad JSON or invalid features; those
    come back as a failed LoadResult with the standard error status.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        points, features = points_from_feature_collection(data)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError,
            PointLoadError) as exc:
        return LoadResult(ok=False, message=LOAD_ERROR_STATUS,
                          error=f"{type(exc).__name__}: {exc}")
    return LoadResult(ok=True, message=load_summary(points),
                      points=points, features=features)


# ═══════════════════════════════════════════════════════════════════════
# EXPORT
# ═══════════════════════════════════════════════════════════════════════

def points_to_feature_collection(
    points: np.ndarray,
    features: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Serialize points as a GeoJSON FeatureCollection dict.

    Args:
        points: POINT_DTYPE array.
        features: Original feature dicts, index-aligned with points. Their
            properties (and ids) are carried through; risk and infection
            state always reflect the point array.
    """
    if features is not None and len(features) != len(points):
        raise ValueError(
            f"features ({len(features)}) and points ({len(points)}) differ in length"
        )

    out = []
    for i, p in enumerate(points):
        src = features[i] if features is not None else {}
        properties = dict(src.get("properties") or {})
        properties["risk"] = float(p['risk'])
        properties["infected"] = bool(p['infected'])
        properties["infectionStep"] = int(p['infection_step'])
        feature = {
            "type": "Feature",
            "geometry": {
                "type": "Point",
                "coordinates": [float(p['lon']), float(p['lat'])],
            },
            "properties": properties,
        }
        if "id" in src:
            feature["id"] = src["id"]
        out.append(feature)

    return {"type": "FeatureCollection", "features": out}


def export_points(
    points: np.ndarray,
    path: Union[str, Path],
    features: Optional[List[Dict[str, Any]]] = None,
) -> Path:
    """Write points to a GeoJSON file. Returns the written path."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, 'w', encoding='utf-8') as f:
        json.dump(points_to_feature_collection(points, features), f)
    return p

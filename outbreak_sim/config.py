"""Configuration system for Outbreak-Sim.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → command-line overrides

Probabilities:
  - outbreak acceptance: outbreak.base_prob + outbreak.risk_weight × risk
  - spread infection:    spread.base_prob + spread.risk_weight × risk
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Run control."""
    seed: Optional[int] = None   # None = fresh OS entropy each run
    speed_ms: float = 500.0      # Interval between scheduled steps (ms)


@dataclass
class OutbreakSection:
    """Seed outbreak rejection sampling.

    base_prob > 0 guarantees termination: every trial accepts with
    probability ≥ base_prob, so expected trials ≤ 1 / base_prob.
    """
    base_prob: float = 0.05
    risk_weight: float = 0.85


@dataclass
class SpreadSection:
    """Frontier propagation."""
    base_prob: float = 0.05
    risk_weight: float = 0.75
    radius_km: float = 2.0          # Infection radius
    km_per_degree: float = 111.32   # Flat km→degree conversion (not latitude-corrected)
    earth_radius_km: float = 6371.0


@dataclass
class DataSection:
    """Input/export files."""
    points_file: str = "data/finger_lakes_grid_points_1km_with_risk.geojson"
    export_file: str = "finger_lakes_grid_points_1km_with_risk.geojson"


@dataclass
class OutputSection:
    """Output control."""
    directory: str = "results/"
    history_csv: Optional[str] = None
    curve_png: Optional[str] = None


@dataclass
class OutbreakConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    outbreak: OutbreakSection = field(default_factory=OutbreakSection)
    spread: SpreadSection = field(default_factory=SpreadSection)
    data: DataSection = field(default_factory=DataSection)
    output: OutputSection = field(default_factory=OutputSection)

    @property
    def radius_deg(self) -> float:
        """Infection radius in the flat-degree units used by the spread test."""
        return self.spread.radius_km / self.spread.km_per_degree


_SECTION_MAP = {
    'simulation': SimulationSection,
    'outbreak': OutbreakSection,
    'spread': SpreadSection,
    'data': DataSection,
    'output': OutputSection,
}


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> OutbreakConfig:
    """Convert a merged YAML dict to an OutbreakConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return OutbreakConfig(**sections)


def _check_probability_rule(name: str, base: float, weight: float) -> None:
    if not 0.0 <= base <= 1.0:
        raise ValueError(f"{name}.base_prob must be in [0, 1], got {base}")
    if weight < 0.0:
        raise ValueError(f"{name}.risk_weight must be >= 0, got {weight}")
    if base + weight > 1.0:
        raise ValueError(
            f"{name}.base_prob + {name}.risk_weight must be <= 1 "
            f"(probability at risk=1), got {base} + {weight}"
        )


def validate_config(config: OutbreakConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure.

    Checks:
      - Both probability rules stay within [0, 1] for risk ∈ [0, 1]
      - Outbreak base probability is positive (seed loop must terminate)
      - Distances and conversion factors are positive
      - Seed and speed are non-negative
    """
    _check_probability_rule('outbreak', config.outbreak.base_prob,
                            config.outbreak.risk_weight)
    _check_probability_rule('spread', config.spread.base_prob,
                            config.spread.risk_weight)
    if config.outbreak.base_prob <= 0.0:
        raise ValueError(
            "outbreak.base_prob must be positive so seed selection terminates"
        )

    sp = config.spread
    if sp.radius_km <= 0:
        raise ValueError(f"spread.radius_km must be positive, got {sp.radius_km}")
    if sp.km_per_degree <= 0:
        raise ValueError(
            f"spread.km_per_degree must be positive, got {sp.km_per_degree}"
        )
    if sp.earth_radius_km <= 0:
        raise ValueError(
            f"spread.earth_radius_km must be positive, got {sp.earth_radius_km}"
        )

    sim = config.simulation
    if sim.seed is not None and sim.seed < 0:
        raise ValueError("simulation.seed must be non-negative")
    if sim.speed_ms < 0:
        raise ValueError(f"simulation.speed_ms must be >= 0, got {sim.speed_ms}")


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> OutbreakConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        scenario_path: Optional scenario override YAML (skipped if missing).
        overrides: Optional dict of overrides (e.g. from the command line).

    Returns:
        Validated OutbreakConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if scenario_path.exists():
            with open(scenario_path) as f:
                scenario = yaml.safe_load(f) or {}
            deep_merge(config_dict, scenario)

    if overrides is not None:
        deep_merge(config_dict, overrides)

    return config_from_dict(config_dict)


def config_from_dict(data: Optional[Dict] = None) -> OutbreakConfig:
    """Build and validate an OutbreakConfig from a (partial) nested dict."""
    config = _yaml_to_config(data or {})
    validate_config(config)
    return config


def default_config() -> OutbreakConfig:
    """Return an OutbreakConfig with all default values."""
    config = OutbreakConfig()
    validate_config(config)
    return config

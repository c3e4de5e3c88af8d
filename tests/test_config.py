"""Tests for outbreak_sim.config — configuration loading and validation."""

import pytest
import yaml

from outbreak_sim.config import (
    OutbreakConfig,
    OutbreakSection,
    SimulationSection,
    SpreadSection,
    config_from_dict,
    deep_merge,
    default_config,
    load_config,
    validate_config,
)


# ── deep_merge tests ──────────────────────────────────────────────────

class TestDeepMerge:
    def test_simple_override(self):
        assert deep_merge({'a': 1, 'b': 2}, {'b': 3}) == {'a': 1, 'b': 3}

    def test_nested_merge(self):
        base = {'x': {'a': 1, 'b': 2}, 'y': 10}
        result = deep_merge(base, {'x': {'b': 3, 'c': 4}})
        assert result == {'x': {'a': 1, 'b': 3, 'c': 4}, 'y': 10}

    def test_override_dict_with_scalar(self):
        assert deep_merge({'a': {'nested': 1}}, {'a': 'replaced'}) == {'a': 'replaced'}

    def test_empty_override(self):
        assert deep_merge({'a': 1}, {}) == {'a': 1}


# ── default_config tests ─────────────────────────────────────────────

class TestDefaultConfig:
    def test_probability_defaults(self):
        cfg = default_config()
        assert cfg.outbreak.base_prob == 0.05
        assert cfg.outbreak.risk_weight == 0.85
        assert cfg.spread.base_prob == 0.05
        assert cfg.spread.risk_weight == 0.75

    def test_distance_defaults(self):
        cfg = default_config()
        assert cfg.spread.radius_km == 2.0
        assert cfg.spread.km_per_degree == 111.32
        assert cfg.spread.earth_radius_km == 6371.0

    def test_radius_deg(self):
        assert default_config().radius_deg == pytest.approx(2.0 / 111.32)

    def test_seed_defaults_to_none(self):
        assert default_config().simulation.seed is None


# ── validate_config tests ────────────────────────────────────────────

class TestValidateConfig:
    def test_zero_outbreak_base_rejected(self):
        cfg = OutbreakConfig(outbreak=OutbreakSection(base_prob=0.0))
        with pytest.raises(ValueError, match="outbreak.base_prob must be positive"):
            validate_config(cfg)

    def test_zero_spread_base_allowed(self):
        validate_config(OutbreakConfig(spread=SpreadSection(base_prob=0.0)))

    def test_probability_above_one_rejected(self):
        cfg = OutbreakConfig(spread=SpreadSection(base_prob=0.5, risk_weight=0.6))
        with pytest.raises(ValueError, match="must be <= 1"):
            validate_config(cfg)

    def test_negative_weight_rejected(self):
        cfg = OutbreakConfig(outbreak=OutbreakSection(risk_weight=-0.1))
        with pytest.raises(ValueError, match="risk_weight"):
            validate_config(cfg)

    def test_radius_must_be_positive(self):
        cfg = OutbreakConfig(spread=SpreadSection(radius_km=0.0))
        with pytest.raises(ValueError, match="radius_km"):
            validate_config(cfg)

    def test_km_per_degree_must_be_positive(self):
        cfg = OutbreakConfig(spread=SpreadSection(km_per_degree=-1.0))
        with pytest.raises(ValueError, match="km_per_degree"):
            validate_config(cfg)

    def test_negative_seed_rejected(self):
        cfg = OutbreakConfig(simulation=SimulationSection(seed=-1))
        with pytest.raises(ValueError, match="seed"):
            validate_config(cfg)

    def test_negative_speed_rejected(self):
        cfg = OutbreakConfig(simulation=SimulationSection(speed_ms=-5))
        with pytest.raises(ValueError, match="speed_ms"):
            validate_config(cfg)


# ── load_config tests ────────────────────────────────────────────────

class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        p = tmp_path / "base.yaml"
        p.write_text("")
        cfg = load_config(p)
        assert cfg.spread.radius_km == 2.0

    def test_partial_section(self, tmp_path):
        p = tmp_path / "base.yaml"
        p.write_text(yaml.dump({'spread': {'radius_km': 3.5}}))
        cfg = load_config(p)
        assert cfg.spread.radius_km == 3.5
        assert cfg.spread.risk_weight == 0.75

    def test_unknown_keys_ignored(self, tmp_path):
        p = tmp_path / "base.yaml"
        p.write_text(yaml.dump({'spread': {'bogus': 1}, 'extra_section': {}}))
        cfg = load_config(p)
        assert not hasattr(cfg.spread, 'bogus')

    def test_scenario_and_overrides(self, tmp_path):
        base = tmp_path / "base.yaml"
        base.write_text(yaml.dump({'simulation': {'seed': 1, 'speed_ms': 100}}))
        scenario = tmp_path / "scenario.yaml"
        scenario.write_text(yaml.dump({'simulation': {'seed': 2}}))
        cfg = load_config(base, scenario, overrides={'simulation': {'speed_ms': 50}})
        assert cfg.simulation.seed == 2
        assert cfg.simulation.speed_ms == 50

    def test_missing_scenario_skipped(self, tmp_path):
        base = tmp_path / "base.yaml"
        base.write_text(yaml.dump({'simulation': {'seed': 9}}))
        cfg = load_config(base, tmp_path / "absent.yaml")
        assert cfg.simulation.seed == 9

    def test_invalid_values_raise(self, tmp_path):
        p = tmp_path / "base.yaml"
        p.write_text(yaml.dump({'outbreak': {'base_prob': 0.0}}))
        with pytest.raises(ValueError):
            load_config(p)


class TestConfigFromDict:
    def test_none_gives_defaults(self):
        assert config_from_dict(None).outbreak.risk_weight == 0.85

    def test_nested_values(self):
        cfg = config_from_dict({'data': {'points_file': 'grid.geojson'}})
        assert cfg.data.points_file == 'grid.geojson'

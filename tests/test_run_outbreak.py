"""End-to-end tests: CLI script, GeoJSON round trip, epidemic-curve plot."""

import json

import matplotlib.pyplot as plt
import numpy as np
import pytest
import yaml

from outbreak_sim.geojson import load_points
from outbreak_sim.simulator import run_outbreak
from outbreak_sim.snapshots import SnapshotRecorder
from outbreak_sim.types import make_points
from scripts.run_outbreak import main
from viz.plot_utils import plot_epidemic_curve, plot_snapshot_counts


# ═══════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════

@pytest.fixture
def grid_file(tmp_path):
    rng = np.random.default_rng(0)
    features = []
    for i in range(10):
        for j in range(10):
            features.append({
                "type": "Feature",
                "id": f"{i}-{j}",
                "geometry": {"type": "Point",
                             "coordinates": [-76.9 + 0.01 * i, 42.6 + 0.01 * j]},
                "properties": {"risk": round(float(rng.random()), 3)},
            })
    path = tmp_path / "grid.geojson"
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
    return path


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════

class TestCli:
    def test_headless_run(self, grid_file, tmp_path, capsys):
        out_dir = tmp_path / "out"
        rc = main(["--points", str(grid_file), "--seed", "3",
                   "--output-dir", str(out_dir), "--quiet",
                   "--history-csv", "history.csv", "--plot"])
        assert rc == 0

        stdout = capsys.readouterr().out
        assert "Loaded 100 grid points" in stdout
        assert "Final step" in stdout

        exported = out_dir / "finger_lakes_grid_points_1km_with_risk.geojson"
        assert exported.exists()
        with open(exported) as f:
            data = json.load(f)
        assert len(data["features"]) == 100
        assert data["features"][0]["id"] == "0-0"
        n_inf = sum(f["properties"]["infected"] for f in data["features"])
        assert n_inf >= 1

        assert (out_dir / "history.csv").exists()
        assert (out_dir / "epidemic_curve.png").exists()

    def test_same_seed_same_export(self, grid_file, tmp_path):
        for name in ("a", "b"):
            main(["--points", str(grid_file), "--seed", "5", "--quiet",
                  "--output-dir", str(tmp_path / name)])
        a = (tmp_path / "a" / "finger_lakes_grid_points_1km_with_risk.geojson").read_text()
        b = (tmp_path / "b" / "finger_lakes_grid_points_1km_with_risk.geojson").read_text()
        assert a == b

    def test_config_file(self, grid_file, tmp_path, capsys):
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(yaml.dump({
            "simulation": {"seed": 1},
            "data": {"points_file": str(grid_file), "export_file": "final.geojson"},
            "output": {"directory": str(tmp_path / "res")},
        }))
        assert main(["--config", str(cfg)]) == 0
        assert (tmp_path / "res" / "final.geojson").exists()
        assert "Outbreak started at point" in capsys.readouterr().out

    def test_realtime_mode(self, grid_file, tmp_path):
        rc = main(["--points", str(grid_file), "--seed", "2", "--realtime",
                   "--speed-ms", "0", "--quiet", "--output-dir", str(tmp_path)])
        assert rc == 0

    def test_load_failure(self, tmp_path, capsys):
        rc = main(["--points", str(tmp_path / "missing.geojson"),
                   "--output-dir", str(tmp_path)])
        assert rc == 1
        assert "Error loading data file." in capsys.readouterr().out

    def test_undecodable_points_file(self, tmp_path, capsys):
        path = tmp_path / "grid.geojson"
        path.write_bytes(b'{"type": "FeatureCollection", "features": [\xff\xfe]}')
        rc = main(["--points", str(path), "--output-dir", str(tmp_path)])
        assert rc == 1
        assert "Error loading data file." in capsys.readouterr().out

    def test_nested_output_paths(self, grid_file, tmp_path, capsys):
        cfg = tmp_path / "cfg.yaml"
        cfg.write_text(yaml.dump({
            "simulation": {"seed": 4},
            "data": {"points_file": str(grid_file)},
            "output": {"directory": str(tmp_path / "o"),
                       "history_csv": "tables/h.csv",
                       "curve_png": "figs/curve.png"},
        }))
        assert main(["--config", str(cfg), "--quiet"]) == 0
        assert (tmp_path / "o" / "tables" / "h.csv").exists()
        assert (tmp_path / "o" / "figs" / "curve.png").exists()
        assert "curve.png" in capsys.readouterr().out

    def test_realtime_matches_headless(self, grid_file, tmp_path):
        main(["--points", str(grid_file), "--seed", "6", "--quiet",
              "--output-dir", str(tmp_path / "headless")])
        main(["--points", str(grid_file), "--seed", "6", "--quiet",
              "--realtime", "--speed-ms", "0",
              "--output-dir", str(tmp_path / "realtime")])
        name = "finger_lakes_grid_points_1km_with_risk.geojson"
        assert ((tmp_path / "headless" / name).read_text()
                == (tmp_path / "realtime" / name).read_text())


# ═══════════════════════════════════════════════════════════════════════
# Plots
# ═══════════════════════════════════════════════════════════════════════

class TestPlots:
    def test_epidemic_curve(self, grid_file):
        result = run_outbreak(load_points(grid_file).points, seed=9)
        fig = plot_epidemic_curve(result)
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    def test_snapshot_counts(self):
        rec = SnapshotRecorder()
        pts = make_points(np.full(6, -76.8), 42.0 + 0.01 * np.arange(6), np.full(6, 0.9))
        run_outbreak(pts, seed=0, renderer=rec)
        fig = plot_snapshot_counts(rec)
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

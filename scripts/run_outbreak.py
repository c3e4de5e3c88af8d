#!/usr/bin/env python3
"""Run an outbreak simulation over a GeoJSON risk grid.

Loads the point grid, seeds one outbreak, steps until the frontier
empties, and writes the final grid back out as GeoJSON (with
``infected`` / ``infectionStep`` properties on every feature).

Usage:
    python scripts/run_outbreak.py --config configs/default.yaml
    python scripts/run_outbreak.py --points data/grid.geojson --seed 7 --plot
    python scripts/run_outbreak.py --realtime --speed-ms 250

References:
    - outbreak_sim/simulator.py: OutbreakSimulator, run_outbreak
    - outbreak_sim/geojson.py: load_points, export_points
"""

import argparse
import sys
from pathlib import Path

# ── Project imports ──────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from outbreak_sim.config import config_from_dict, load_config
from outbreak_sim.geojson import export_points, load_points
from outbreak_sim.renderers import PrintRenderer
from outbreak_sim.simulator import OutbreakResult, OutbreakSimulator, run_outbreak


def _build_overrides(args) -> dict:
    overrides = {}
    if args.seed is not None:
        overrides.setdefault('simulation', {})['seed'] = args.seed
    if args.speed_ms is not None:
        overrides.setdefault('simulation', {})['speed_ms'] = args.speed_ms
    if args.points is not None:
        overrides.setdefault('data', {})['points_file'] = args.points
    return overrides


def _run_realtime(points, config, renderer) -> OutbreakResult:
    """Drive the simulator from its interval ticker (sleeps between steps)."""
    sim = OutbreakSimulator(points, config=config, renderer=renderer)
    sim.start()
    try:
        sim.run()
    except KeyboardInterrupt:
        sim.stop()
        print(f"\nStopped at step {sim.current_step}.")
    return OutbreakResult.from_simulator(sim, seed=config.simulation.seed)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Run a risk-weighted outbreak simulation on a GeoJSON point grid.",
        epilog="Example: python scripts/run_outbreak.py --config configs/default.yaml --plot",
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Base config YAML (default: built-in defaults)",
    )
    parser.add_argument(
        "--scenario", type=str, default=None,
        help="Scenario YAML merged over the base config",
    )
    parser.add_argument(
        "--points", type=str, default=None,
        help="GeoJSON point grid (default: data.points_file from config)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Master RNG seed")
    parser.add_argument(
        "--speed-ms", type=float, default=None,
        help="Interval between steps in --realtime mode",
    )
    parser.add_argument(
        "--realtime", action="store_true",
        help="Step on a timer instead of as fast as possible",
    )
    parser.add_argument(
        "--output-dir", type=str, default=None,
        help="Override output directory (default: from config)",
    )
    parser.add_argument(
        "--export", type=str, default=None,
        help="GeoJSON export filename (default: data.export_file from config)",
    )
    parser.add_argument(
        "--history-csv", type=str, default=None,
        help="Write the per-step epidemic curve as CSV",
    )
    parser.add_argument(
        "--plot", action="store_true",
        help="Save an epidemic-curve PNG next to the export",
    )
    parser.add_argument(
        "--every", type=int, default=1,
        help="Print only every n-th step status",
    )
    parser.add_argument(
        "--quiet", action="store_true",
        help="Suppress per-step output",
    )
    args = parser.parse_args(argv)

    overrides = _build_overrides(args)
    if args.config is not None:
        config = load_config(args.config, args.scenario, overrides=overrides)
    elif args.scenario is not None:
        config = load_config(args.scenario, overrides=overrides)
    else:
        config = config_from_dict(overrides)

    result = load_points(config.data.points_file)
    print(result.message)
    if not result.ok:
        print(f"  {result.error}", file=sys.stderr)
        return 1

    renderer = None if args.quiet else PrintRenderer(every=args.every)
    if args.realtime:
        outcome = _run_realtime(result.points, config, renderer)
    else:
        outcome = run_outbreak(result.points, config, renderer=renderer)

    print(f"Final step {outcome.final_step}: {outcome.n_infected}/"
          f"{len(outcome.points)} points infected "
          f"(attack rate {outcome.attack_rate:.1%}).")

    out_dir = Path(args.output_dir or config.output.directory)
    export_path = export_points(outcome.points,
                                out_dir / (args.export or config.data.export_file),
                                features=result.features)
    print(f"Exported {export_path}")

    history_csv = args.history_csv or config.output.history_csv
    if history_csv:
        csv_path = out_dir / history_csv
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        outcome.to_dataframe().to_csv(csv_path, index=False)
        print(f"Wrote {csv_path}")

    curve_png = config.output.curve_png or ("epidemic_curve.png" if args.plot else None)
    if curve_png:
        from viz.plot_utils import plot_epidemic_curve
        fig = plot_epidemic_curve(outcome)
        png_path = out_dir / curve_png
        png_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(png_path, dpi=150, bbox_inches="tight")
        print(f"Wrote {png_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())

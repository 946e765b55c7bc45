"""Batch simulation runner.

Loads config/sim_config.toml, runs the thermostat for the configured duration
(or --duration), prints performance metrics and plots the trace.
"""
from __future__ import annotations

import argparse
import logging

from simulation.central_config import build_simulator, load_simulation_config
from simulation.plot_sim_results import compute_metrics, plot_sim_results, print_metrics
from utils.logger import setup_logging

sim_log = logging.getLogger("simulation")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run the thermostat simulation.")
    parser.add_argument("--config", default="config/sim_config.toml",
                        help="Path to the simulation TOML file.")
    parser.add_argument("--duration", type=float, default=None,
                        help="Override DURATION_S from the config (seconds).")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the fluctuation process.")
    parser.add_argument("--no-plot", action="store_true",
                        help="Skip the matplotlib plot.")
    parser.add_argument("--save", default=None,
                        help="Save the plot to this PNG path.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging()

    _settings, _sim_cfg, _fan, duration, ic = load_simulation_config(args.config)
    if args.duration is not None:
        duration = args.duration

    sim = build_simulator(args.config, seed=args.seed)
    sim.begin()
    sim_log.info("Running %.1f s of simulated time.", duration)
    sim.run(duration)
    sim.shutdown()

    print_metrics(compute_metrics(sim, start_temperature=ic[0]))
    if not args.no_plot or args.save:
        plot_sim_results(sim, save_path=args.save, show=not args.no_plot)
    return sim


if __name__ == "__main__":
    main()

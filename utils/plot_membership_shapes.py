import argparse
import os
import re

import matplotlib.pyplot as plt
import numpy as np

from flc.inference import InferenceEngine
from flc.rule_base import RuleBase
from simulation.central_config import load_simulation_config

_WZ_LINE = re.compile(
    r"Rule# (\d+) \((\w+)\) error= ([-\d.]+) W= ([-\d.]+) Z= ([-\d.]+)"
)


def plot_antecedents(rule_base, title, points=None, show_rate=True,
                     save_path=None, show=True):
    """
    Plot the five triangular antecedents over the error axis.

    Args:
        rule_base (RuleBase): Rule base with antecedents already placed.
        title (str): Title of the plot.
        points (list of (error, rate)): Points to overlay on the rate axis (optional).
        show_rate (bool): Also draw the inferred rate curve on a right axis.
        save_path (str): Save the figure here if given.
        show (bool): Call plt.show().
    """
    fig, ax = plt.subplots(figsize=(8, 4))
    for label, a, b, c in rule_base.antecedents():
        xs = [a, b, c]
        ys = [0.0 if a != b else 1.0, 1.0, 0.0 if b != c else 1.0]
        ax.plot(xs, ys, label=label)
        ax.fill_between(xs, ys, alpha=0.1)

    ax.set_title(f"Antecedents - {title}")
    ax.set_xlabel("Error (target - current)")
    ax.set_ylabel("Membership Degree")
    ax.grid(True)

    if show_rate or points:
        ax_rate = ax.twinx()
        ax_rate.set_ylabel("Rate (deg/s)", color="gray")
        if show_rate:
            errors, rates = rate_curve(rule_base)
            ax_rate.plot(errors, rates, color="gray", linestyle="--", label="rate")
        if points:
            x, y = zip(*points)
            ax_rate.scatter(x, y, color="red", s=30, marker="o", edgecolors="black",
                            linewidths=0.8, label="(error, rate) from log", zorder=10)

    ax.legend(loc="upper left")
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path)
    if show:
        plt.show()
    return fig


def rate_curve(rule_base, samples=601):
    """Inferred rate sampled across the full error span of the rule base."""
    shapes = rule_base.antecedents()
    lo, hi = shapes[0][1], shapes[-1][3]
    engine = InferenceEngine()
    errors = np.linspace(lo, hi, samples)
    rates = np.array([engine.infer(float(e), rule_base.rules) for e in errors])
    return errors, rates


def parse_wz_log(log_path):
    """
    Parse the WZ_engine log into one (error, rate) point per inference cycle.

    A cycle is a run of consecutive "Rule# i" lines starting at rule 0; the
    rate is the weighted average of its Z values (0 when no rule fires).
    """
    points = []
    cycle = []

    def flush():
        if cycle:
            total_w = sum(w for _, w, _ in cycle)
            rate = sum(w * z for _, w, z in cycle) / total_w if total_w > 0 else 0.0
            points.append((cycle[0][0], rate))

    with open(log_path, "r", encoding="utf-8") as f:
        for line in f:
            m = _WZ_LINE.search(line)
            if not m:
                continue
            index = int(m.group(1))
            if index == 0:
                flush()
                cycle = []
            cycle.append((float(m.group(3)), float(m.group(4)), float(m.group(5))))
    flush()
    return points


def main(argv=None):
    parser = argparse.ArgumentParser(description="Plot thermostat antecedent shapes.")
    parser.add_argument("--config", default=os.path.join("config", "sim_config.toml"))
    parser.add_argument("--log", default=os.path.join("logs", "WZ_engine.log"),
                        help="Overlay (error, rate) points from this WZ_engine log.")
    parser.add_argument("--save", default=None, help="Save the plot to this PNG path.")
    args = parser.parse_args(argv)

    settings, *_ = load_simulation_config(args.config)
    settings = settings.normalized()
    rule_base = RuleBase()
    rule_base.update_antecedents(settings.world_temperature_range, settings.acceptance_range)

    points = None
    if os.path.exists(args.log):
        print(f"Overlaying with values from: {args.log}")
        points = parse_wz_log(args.log)
    else:
        print(f"No WZ_engine.log found at {args.log}, plotting antecedents only.")

    title = f"world {tuple(settings.world_temperature_range)}, acceptance {tuple(settings.acceptance_range)}"
    plot_antecedents(rule_base, title, points=points, save_path=args.save)


if __name__ == "__main__":
    main()

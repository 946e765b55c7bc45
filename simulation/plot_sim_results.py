# plot_sim_results.py
"""
plot_sim_results.py
====================

Analysis & plotting utilities for the thermostat simulator.

The primary function `plot_sim_results()` accepts a completed ACSimulator
and draws a two-axis Matplotlib plot showing:

    • Current temperature vs time
    • Target temperature and acceptance band
    • Fan speed (signed, right axis)
    • Shaded regions where the A/C was heating or cooling

Performance metrics:
    • overshoot past the target
    • time to first reach the acceptance band
    • fraction of time spent inside the acceptance band
    • actuation episode count

This module contains no simulation or configuration code.
"""
from __future__ import annotations

from typing import Dict, Optional

import matplotlib.pyplot as plt
import numpy as np

from simulation.ac_simulator import ACSimulator


# ============================================================
# PERFORMANCE METRICS
# ============================================================

def compute_overshoot(temp: np.ndarray, target: np.ndarray, start: float) -> float:
    """Largest excursion past the target in the direction of the first approach."""
    if len(temp) == 0:
        return 0.0
    direction = np.sign(target[0] - start)
    if direction == 0:
        return 0.0
    past = direction * (temp - target)
    return float(max(0.0, np.max(past)))


def compute_time_to_band(t: np.ndarray, temp: np.ndarray, target: np.ndarray,
                         band: tuple) -> float:
    """First time the error target - temp lies in [lo, hi]; NaN if never."""
    err = target - temp
    inside = np.where((err >= band[0]) & (err <= band[1]))[0]
    if len(inside) == 0:
        return np.nan
    return float(t[inside[0]])


def compute_band_fraction(temp: np.ndarray, target: np.ndarray, band: tuple) -> float:
    if len(temp) == 0:
        return 0.0
    err = target - temp
    return float(np.mean((err >= band[0]) & (err <= band[1])))


def compute_metrics(sim: ACSimulator, start_temperature: Optional[float] = None) -> Dict[str, float]:
    t = np.array(sim.log_t)
    temp = np.array(sim.log_temp)
    target = np.array(sim.log_target)
    band = tuple(sim.settings.acceptance_range)
    start = temp[0] if start_temperature is None and len(temp) else start_temperature

    return {
        "overshoot": compute_overshoot(temp, target, start if start is not None else 0.0),
        "time_to_band": compute_time_to_band(t, temp, target, band),
        "band_fraction": compute_band_fraction(temp, target, band),
        "episodes": float(sim.controller.episode),
    }


def print_metrics(metrics: Dict[str, float]) -> None:
    print("\n=== PERFORMANCE METRICS ===")
    print(f"Overshoot:        {metrics['overshoot']:.3f} deg")
    print(f"Time to band:     {metrics['time_to_band']:.2f} s")
    print(f"Time in band:     {metrics['band_fraction'] * 100.0:.1f} %")
    print(f"Episodes:         {int(metrics['episodes'])}")
    print("====================================\n")


# ============================================================
# STATE OVERLAY
# ============================================================

def overlay_ac_state(ax, sim: ACSimulator):
    """Shades contiguous Heating / Cooling intervals."""
    t = np.array(sim.log_t)
    states = sim.log_state
    colors = {"Heating": "orange", "Cooling": "deepskyblue"}

    start = None
    for i, state in enumerate(states):
        prev = states[i - 1] if i > 0 else None
        if state != prev:
            if start is not None and prev in colors:
                ax.axvspan(t[start], t[i], color=colors[prev], alpha=0.18)
            start = i
    if start is not None and states and states[-1] in colors:
        ax.axvspan(t[start], t[-1], color=colors[states[-1]], alpha=0.18)


# ============================================================
# MAIN PLOTTING FUNCTION
# ============================================================

def plot_sim_results(sim: ACSimulator, title="Thermostat Simulation Results",
                     save_path: Optional[str] = None, show: bool = True):
    t = np.array(sim.log_t)
    temp = np.array(sim.log_temp)
    target = np.array(sim.log_target)
    fan = np.array(sim.log_fan)
    lo, hi = sim.settings.acceptance_range

    fig, ax = plt.subplots(figsize=(11, 6))

    ax.plot(t, temp, label="temperature (deg)")
    ax.plot(t, target, 'k--', label="target (deg)")
    ax.fill_between(t, target + lo, target + hi, color='green', alpha=0.1,
                    label="acceptance band")

    ax.set_xlabel("Time (s)")
    ax.set_ylabel("Temperature")
    ax.set_title(title)

    # Right-axis for fan speed
    ax_fan = ax.twinx()
    ax_fan.plot(t, fan, color='gray', alpha=0.5, label="fan speed")
    ax_fan.set_ylabel("Fan Speed", color='gray')
    ax_fan.tick_params(axis='y', labelcolor='gray')

    overlay_ac_state(ax, sim)

    lines = ax.get_lines() + ax_fan.get_lines()
    labels = [ln.get_label() for ln in lines]
    ax.legend(lines, labels, loc="upper right")

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path)
    if show:
        plt.show()
    return fig

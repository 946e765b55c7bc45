# simulation/central_config.py
"""
==================
Unified configuration loader for the thermostat simulator.

This module provides a single, centralized interface for loading all
configuration inputs needed to run the simulation. It parses the TOML file
and constructs the dataclasses the simulator needs, so the rest of the
project stays independent of file formats and configuration layout.

Responsibilities
----------------
• Load simulation parameters from:
      config/sim_config.toml

• Construct the following objects:
      - ACSettings   (world/acceptance/fluctuation ranges, target, check interval)
      - SimConfig    (time step, log decimation, random seed, host loop rate)
      - FanParams    (ramp timings and speed limits)

• Read initial conditions:
      (current_temperature, start_time)

• Provide simulation duration (seconds)

Returned Values
---------------
load_simulation_config() returns a 5-tuple:

    settings    : ACSettings
    sim_cfg     : SimConfig
    fan_params  : FanParams
    duration    : float
    ic_tuple    : (current_temperature, t0)

Typical Usage
-------------
    from simulation.central_config import build_simulator

    sim = build_simulator()
    sim.begin()
    sim.run(120.0)

TOML parsing is done via Python's built-in `tomllib` module. Values outside
their absolute bounds are clamped later by ACSettings.normalized().
"""
import tomllib

from hardware.fan import FanParams
from simulation.ac_simulator import ACSimulator, SimConfig
from simulation.settings import ACSettings, ConfigurationError, Range


# ------------------------------------------------------------
# Load TOML
# ------------------------------------------------------------
def _load_toml(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _range(section: dict, key: str, default: Range) -> Range:
    values = section.get(key)
    if values is None:
        return default
    lo, hi = values
    return Range(float(lo), float(hi))


# ------------------------------------------------------------
# Main loader
# ------------------------------------------------------------
def load_simulation_config(
    sim_cfg_path: str = "config/sim_config.toml",
):
    """
    Builds and returns the full simulation configuration:

        settings    : ACSettings
        sim_cfg     : SimConfig
        fan_params  : FanParams
        duration    : float
        ic_tuple    : (current_temperature, t0)
    """
    cfg = _load_toml(sim_cfg_path)
    defaults = ACSettings()

    # ------------------------------------------------------------
    # Initial conditions
    # ------------------------------------------------------------
    icfg = cfg["initial_conditions"]
    ic_tuple = (
        float(icfg["CURRENT_TEMPERATURE"]),
        float(icfg.get("START_TIME_S", 0.0)),
    )

    # ------------------------------------------------------------
    # World, fluctuation and controller settings
    # ------------------------------------------------------------
    world = cfg["world"]
    fluct = cfg.get("fluctuation", {})
    ctrl = cfg.get("controller", {})

    settings = ACSettings(
        world_temperature_range=_range(world, "temperature_range", defaults.world_temperature_range),
        target_temperature=float(world["target_temperature"]),
        acceptance_range=_range(world, "acceptance_range", defaults.acceptance_range),
        fluctuation_wait_range=_range(fluct, "wait_range", defaults.fluctuation_wait_range),
        fluctuation_length_range=_range(fluct, "length_range", defaults.fluctuation_length_range),
        fluctuation_temperature_range=_range(
            fluct, "temperature_range", defaults.fluctuation_temperature_range
        ),
        fluctuation_allowed=bool(fluct.get("allowed", defaults.fluctuation_allowed)),
        check_interval=float(ctrl.get("CHECK_INTERVAL_S", defaults.check_interval)),
        current_temperature=ic_tuple[0],
    )

    # ------------------------------------------------------------
    # Fan parameters
    # ------------------------------------------------------------
    fcfg = cfg.get("fan", {})
    fan_defaults = FanParams()
    fan_params = FanParams(
        spin_up_time=float(fcfg.get("SPIN_UP_TIME_S", fan_defaults.spin_up_time)),
        spin_down_time=float(fcfg.get("SPIN_DOWN_TIME_S", fan_defaults.spin_down_time)),
        min_speed=float(fcfg.get("MIN_SPEED", fan_defaults.min_speed)),
        max_speed=float(fcfg.get("MAX_SPEED", fan_defaults.max_speed)),
    )

    # ------------------------------------------------------------
    # Simulation configuration
    # ------------------------------------------------------------
    scfg = cfg["simulation"]
    seed = scfg.get("seed")
    loop_hz = scfg.get("LOOP_FREQ_HZ")
    sim_cfg = SimConfig(
        dt=float(scfg["dt"]),
        steps_per_log=int(scfg.get("steps_per_log", 5)),
        seed=int(seed) if seed is not None else None,
        ramp_timeout_s=float(ctrl.get("RAMP_TIMEOUT_S", 10.0)),
        loop_hz=float(loop_hz) if loop_hz is not None else None,
    )

    longest_ramp = max(fan_params.spin_up_time, fan_params.spin_down_time)
    if sim_cfg.ramp_timeout_s <= longest_ramp:
        raise ConfigurationError(
            f"RAMP_TIMEOUT_S ({sim_cfg.ramp_timeout_s:.2f}s) must exceed the longest fan "
            f"ramp ({longest_ramp:.2f}s)"
        )

    duration = float(scfg["DURATION_S"])

    return settings, sim_cfg, fan_params, duration, ic_tuple


def build_simulator(sim_cfg_path: str = "config/sim_config.toml", seed=None) -> ACSimulator:
    """Loads the config and wires world, fan and controller into a simulator."""
    settings, sim_cfg, fan_params, _duration, ic = load_simulation_config(sim_cfg_path)
    if seed is not None:
        sim_cfg.seed = int(seed)
    sim = ACSimulator(
        settings=settings,
        cfg=sim_cfg,
        fan_params=fan_params,
    )
    sim.t = ic[1]
    return sim

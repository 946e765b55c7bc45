# ac_simulator.py
"""
ac_simulator.py
===============

Cooperative tick scheduler for the thermostat simulation.

One simulated step advances every component in a fixed order on a single
thread, using the fixed step `dt`:

    fan         ramp interpolation (so ramp completion is visible below)
    controller  check timer, or the actuation episode in flight
    world       random fluctuation, when allowed and active

Readers only observe state between steps. Configuration is committed as an
atomic batch through `commit_settings()`, which then forces a synchronous
re-check of the temperatures.

Logging:
    The simulator records time, current/target temperature, fan speed,
    controller rate and AC state at a decimated rate (steps_per_log).

Typical usage::

    sim = build_simulator("config/sim_config.toml")
    sim.begin()
    sim.run(120.0)

    # logs available in sim.log_temp, sim.log_fan, etc.

This simulator contains no configuration parsing, plotting, or hardware code.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple

from flc.controller import ACController, ACState, ControllerParams, ControllerState
from hardware.fan import ACFan, FanParams
from simulation.settings import ACSettings, ConfigurationError
from simulation.world import WorldTemperature
from utils.logger import set_loop_index

sim_log = logging.getLogger("simulation")


# ------------------------------------------------------------
# Dataclasses
# ------------------------------------------------------------

@dataclass
class SimConfig:
    dt: float = 0.02
    steps_per_log: int = 5
    seed: Optional[int] = None
    ramp_timeout_s: float = 10.0
    loop_hz: Optional[float] = None


@dataclass(frozen=True)
class ACSnapshot:
    """Read-only view of published state, taken between steps."""
    t: float
    current_temperature: float
    target_temperature: float
    fluctuation_allowed: bool
    fluctuation_active: bool
    controller_state: ControllerState
    ac_state: ACState
    fan_speed: float
    last_rate: Optional[float]
    antecedents: Tuple[Tuple[str, float, float, float], ...]


# ------------------------------------------------------------
# Simulator
# ------------------------------------------------------------

@dataclass
class ACSimulator:
    settings: ACSettings = field(default_factory=ACSettings)
    cfg: SimConfig = field(default_factory=SimConfig)
    fan_params: FanParams = field(default_factory=FanParams)

    t: float = 0.0
    steps: int = 0
    last_config_error: Optional[str] = None

    log_t: List[float] = field(default_factory=list)
    log_temp: List[float] = field(default_factory=list)
    log_target: List[float] = field(default_factory=list)
    log_fan: List[float] = field(default_factory=list)
    log_rate: List[float] = field(default_factory=list)
    log_state: List[str] = field(default_factory=list)
    _log_decim: int = 0

    def __post_init__(self):
        self.settings = self.settings.normalized()
        self.rng = random.Random(self.cfg.seed)
        self.world = WorldTemperature(self.settings, rng=self.rng)
        # The plant owns the current temperature from here on.
        self.settings = replace(self.settings, current_temperature=None)
        self.fan = ACFan(self.fan_params)
        self.controller = ACController(
            self.world,
            self.fan,
            ControllerParams(
                check_interval=self.settings.check_interval,
                ramp_timeout_s=self.cfg.ramp_timeout_s,
            ),
        )
        sim_log.info("Simulator ready (dt=%.4f s, seed=%s).", self.cfg.dt, self.cfg.seed)

    # ------------------------------------------------------------
    def begin(self):
        """Starts fluctuation (if allowed) and the periodic checks."""
        self.world.toggle_fluctuation(self.settings.fluctuation_allowed)
        self.world.toggle_active_fluctuation(True)
        self.controller.begin()

    def shutdown(self):
        self.controller.shutdown()
        self.world.toggle_fluctuation(False)

    # ------------------------------------------------------------
    def commit_settings(self, settings: ACSettings) -> bool:
        """
        Applies a whole configuration batch, then re-checks temperatures.

        An inconsistent batch is rejected: the previous configuration stays
        in force and the error is kept in `last_config_error`.

        Returns:
            bool: True if the batch was applied.
        """
        try:
            normalized = settings.normalized()
        except ConfigurationError as e:
            self.last_config_error = str(e)
            sim_log.error("Configuration rejected, keeping previous settings: %s", e)
            return False

        self.settings = replace(normalized, current_temperature=None)
        self.last_config_error = None
        self.world.apply_settings(normalized)
        self.controller.check_interval = normalized.check_interval
        sim_log.info("Configuration committed: %s", normalized)
        self.controller.check_temperatures()
        return True

    def snapshot(self) -> ACSnapshot:
        return ACSnapshot(
            t=self.t,
            current_temperature=self.world.current_temperature,
            target_temperature=self.world.target_temperature,
            fluctuation_allowed=self.world.fluctuation_allowed,
            fluctuation_active=self.world.fluctuation_active,
            controller_state=self.controller.state,
            ac_state=self.controller.ac_state,
            fan_speed=self.fan.speed,
            last_rate=self.controller.last_rate,
            antecedents=tuple(self.controller.antecedents()),
        )

    # ------------------------------------------------------------
    def step(self):
        dt = self.cfg.dt
        set_loop_index(self.steps)

        self.fan.tick(dt)
        self.controller.tick(dt)
        self.world.tick(dt)

        self.t += dt
        self.steps += 1

        # Logging (decimated)
        self._log_decim += 1
        if self._log_decim >= self.cfg.steps_per_log:
            self.log_t.append(self.t)
            self.log_temp.append(self.world.current_temperature)
            self.log_target.append(self.world.target_temperature)
            self.log_fan.append(self.fan.speed)
            self.log_rate.append(self.controller.current_rate)
            self.log_state.append(self.controller.ac_state.value)
            self._log_decim = 0

    # ------------------------------------------------------------
    def run(self, seconds):
        steps = int(round(seconds / self.cfg.dt))
        for _ in range(steps):
            self.step()

    def run_until(self, predicate, max_seconds):
        """Steps until `predicate(self)` is true; returns False on timeout."""
        steps = int(round(max_seconds / self.cfg.dt))
        for _ in range(steps):
            if predicate(self):
                return True
            self.step()
        return bool(predicate(self))

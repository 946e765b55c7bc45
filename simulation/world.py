# simulation/world.py
"""
world.py
========

Scalar world-temperature model (the plant) for the thermostat simulator.

The world holds the current and target temperatures, both clamped into the
configured world range, plus the random fluctuation process that models
environmental noise. Fluctuation runs only while it is both *allowed*
(policy, set by configuration) and *active* (runtime, cleared by the
controller while it is changing the temperature).

Fluctuation cycle, advanced by `tick(dt)`:

    • wait      uniform(fluctuation_wait_range) seconds
    • roll      direction ±1, rate uniform(fluctuation_temperature_range)
                deg/s and duration uniform(fluctuation_length_range) s
    • change    temperature += direction * rate * dt each tick until the
                duration has elapsed, then wait again

Stopping fluctuation drops the in-flight cycle; restarting begins with a
fresh wait.
"""

import logging
import random
from enum import Enum
from typing import Callable, List, Optional, Sequence

from simulation.settings import (
    ABSOLUTE_ACCEPTANCE_RANGE,
    ABSOLUTE_FLUCTUATION_LENGTH_RANGE,
    ABSOLUTE_FLUCTUATION_TEMPERATURE_RANGE,
    ABSOLUTE_FLUCTUATION_WAIT_RANGE,
    ABSOLUTE_TEMPERATURE_RANGE,
    ACSettings,
    Range,
    checked_range,
    clamp,
)

world_log = logging.getLogger("world")


class FluctuationPhase(Enum):
    STOPPED = "stopped"
    WAITING = "waiting"
    CHANGING = "changing"


class WorldTemperature:
    """
    The plant: current/target temperature and the fluctuation process.

    Attributes:
        listeners (List[Callable[[float], None]]): Called with the new
            current temperature after every change.
    """

    def __init__(self, settings: Optional[ACSettings] = None, rng: Optional[random.Random] = None) -> None:
        self.rng = rng or random.Random()
        self.listeners: List[Callable[[float], None]] = []

        self._world_range = ABSOLUTE_TEMPERATURE_RANGE
        self._acceptance_range = Range(-2.0, 2.0)
        self._wait_range = ABSOLUTE_FLUCTUATION_WAIT_RANGE
        self._length_range = ABSOLUTE_FLUCTUATION_LENGTH_RANGE
        self._temperature_range = ABSOLUTE_FLUCTUATION_TEMPERATURE_RANGE
        self._current = 60.0
        self._target = 70.0

        # Inactive until the simulation begins.
        self._allowed = False
        self._active = False
        self._phase = FluctuationPhase.STOPPED
        self._wait_remaining = 0.0
        self._change_remaining = 0.0
        self._change_rate = 0.0

        if settings is not None:
            self.apply_settings(settings.normalized())
        world_log.info(
            "World initialized: range=%s, current=%.2f, target=%.2f",
            tuple(self._world_range), self._current, self._target,
        )

    # ------------------------------------------------------------
    # Published state
    # ------------------------------------------------------------
    @property
    def current_temperature(self) -> float:
        return self._current

    @property
    def target_temperature(self) -> float:
        return self._target

    @property
    def world_temperature_range(self) -> Range:
        return self._world_range

    @property
    def acceptance_range(self) -> Range:
        return self._acceptance_range

    @property
    def fluctuation_wait_range(self) -> Range:
        return self._wait_range

    @property
    def fluctuation_length_range(self) -> Range:
        return self._length_range

    @property
    def fluctuation_temperature_range(self) -> Range:
        return self._temperature_range

    @property
    def fluctuation_allowed(self) -> bool:
        return self._allowed

    @property
    def fluctuation_active(self) -> bool:
        return self._active

    @property
    def is_fluctuating(self) -> bool:
        return self._phase is not FluctuationPhase.STOPPED

    @property
    def fluctuation_phase(self) -> FluctuationPhase:
        return self._phase

    @property
    def error(self) -> float:
        """Temperature error fed to the controller: target - current."""
        return self._target - self._current

    # ------------------------------------------------------------
    # Temperature
    # ------------------------------------------------------------
    def set_temperature(self, temperature: float) -> None:
        self._current = clamp(temperature, *self._world_range)
        for listener in self.listeners:
            listener(self._current)

    def change_temperature(self, delta: float) -> None:
        self.set_temperature(self._current + delta)

    def set_target_temperature(self, temperature: float) -> None:
        self._target = clamp(temperature, *self._world_range)

    # ------------------------------------------------------------
    # Range setters (clamped into absolute bounds)
    # ------------------------------------------------------------
    def set_world_temperature_range(self, values: Sequence[float]) -> None:
        self._world_range = checked_range(
            "world_temperature_range", values, ABSOLUTE_TEMPERATURE_RANGE
        )
        # Dependent values follow the new range.
        self.set_target_temperature(self._target)
        self.set_temperature(self._current)

    def set_acceptance_range(self, values: Sequence[float]) -> None:
        self._acceptance_range = checked_range(
            "acceptance_range", values, ABSOLUTE_ACCEPTANCE_RANGE
        )

    def set_fluctuation_wait_range(self, values: Sequence[float]) -> None:
        self._wait_range = checked_range(
            "fluctuation_wait_range", values, ABSOLUTE_FLUCTUATION_WAIT_RANGE
        )

    def set_fluctuation_length_range(self, values: Sequence[float]) -> None:
        self._length_range = checked_range(
            "fluctuation_length_range", values, ABSOLUTE_FLUCTUATION_LENGTH_RANGE
        )

    def set_fluctuation_temperature_range(self, values: Sequence[float]) -> None:
        self._temperature_range = checked_range(
            "fluctuation_temperature_range", values, ABSOLUTE_FLUCTUATION_TEMPERATURE_RANGE
        )

    def apply_settings(self, settings: ACSettings) -> None:
        """
        Applies an already-normalized settings batch.

        Ranges first, then the dependent temperatures, then the policy bit.
        """
        self._world_range = Range(*settings.world_temperature_range)
        self._acceptance_range = Range(*settings.acceptance_range)
        self._wait_range = Range(*settings.fluctuation_wait_range)
        self._length_range = Range(*settings.fluctuation_length_range)
        self._temperature_range = Range(*settings.fluctuation_temperature_range)

        self.set_target_temperature(settings.target_temperature)
        if settings.current_temperature is not None:
            self.set_temperature(settings.current_temperature)
        else:
            self.set_temperature(self._current)

        self.toggle_fluctuation(settings.fluctuation_allowed)

    # ------------------------------------------------------------
    # Fluctuation control
    # ------------------------------------------------------------
    def toggle_fluctuation(self, allowed: bool) -> None:
        """Sets the policy bit and re-evaluates whether fluctuation runs."""
        self._allowed = bool(allowed)
        self.toggle_active_fluctuation(self._active)

    def toggle_active_fluctuation(self, active: bool) -> None:
        """Sets the runtime bit; the controller clears it while actuating."""
        self._active = bool(active)
        if self._allowed and self._active:
            if self._phase is FluctuationPhase.STOPPED:
                self._start_wait()
                world_log.debug("Fluctuation started.")
        elif self._phase is not FluctuationPhase.STOPPED:
            self._phase = FluctuationPhase.STOPPED
            world_log.debug("Fluctuation stopped.")

    def _start_wait(self) -> None:
        self._phase = FluctuationPhase.WAITING
        self._wait_remaining = self.rng.uniform(*self._wait_range)

    def _start_change(self) -> None:
        direction = 1.0 if self.rng.randrange(2) == 1 else -1.0
        self._change_rate = direction * self.rng.uniform(*self._temperature_range)
        self._change_remaining = self.rng.uniform(*self._length_range)
        self._phase = FluctuationPhase.CHANGING
        world_log.info(
            "Fluctuation: %.3f deg/s for %.2f s", self._change_rate, self._change_remaining
        )

    # ------------------------------------------------------------
    def tick(self, dt: float) -> None:
        """Advances the fluctuation process by one time step."""
        if self._phase is FluctuationPhase.WAITING:
            self._wait_remaining -= dt
            if self._wait_remaining <= 0.0:
                self._start_change()
        elif self._phase is FluctuationPhase.CHANGING:
            self._change_remaining -= dt
            self.change_temperature(self._change_rate * dt)
            if self._change_remaining <= 0.0:
                self._start_wait()

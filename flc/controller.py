"""
Orchestrates the thermostat: periodic checks, inference and actuation.

The ACController owns the five-rule base and the inference engine. On every
check it re-places the antecedents from the current ranges, infers a signed
rate from the temperature error and, if the rate is non-zero, runs one
actuation episode:

    SPIN_UP    fan ramps toward the rate; world fluctuation is suppressed
    CHANGING   temperature += rate * dt each tick until the target is reached
    SPIN_DOWN  fan ramps to 0; then fluctuation resumes and a fresh check
               interval starts

All waiting is explicit: `tick(dt)` decrements the check timer or advances
the current phase. Only one episode exists at a time, and the check timer is
cancelled while an episode runs. `check_temperatures()` is the synchronous
re-entry point used after a configuration commit; it pre-empts any episode
in flight.

It does not instantiate the world or the fan; both are passed in.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from flc.inference import InferenceEngine, InferenceError
from flc.rule_base import RuleBase, RuleBaseError
from hardware.fan import ACFan, FanRamp
from simulation.settings import ABSOLUTE_CHECK_INTERVAL_RANGE, clamp
from simulation.world import WorldTemperature

controller_log = logging.getLogger("controller")


class ControllerState(Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    ACTUATING = "actuating"


class ActuationPhase(Enum):
    NONE = "none"
    SPIN_UP = "spin_up"
    CHANGING = "changing"
    SPIN_DOWN = "spin_down"


class ACState(Enum):
    OFF = "Off"
    HEATING = "Heating"
    COOLING = "Cooling"


@dataclass
class ControllerParams:
    check_interval: float = 10.0
    ramp_timeout_s: float = 10.0


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


class ACController:
    """
    The thermostat state machine.

    Attributes:
        world (WorldTemperature): The plant being controlled.
        fan (ACFan): The actuator.
        rule_base (RuleBase): The five TS rules.
        engine (InferenceEngine): Weighted-average TS combiner.
        state (ControllerState): IDLE, EVALUATING or ACTUATING.
        phase (ActuationPhase): Sub-phase while ACTUATING.
        ac_state (ACState): Published Off/Heating/Cooling.
        last_rate (Optional[float]): Output of the most recent inference.
        last_error (Optional[str]): Most recent fault, for reporting.
        episode (int): Number of actuation episodes started.
    """

    def __init__(
        self,
        world: WorldTemperature,
        fan: ACFan,
        params: Optional[ControllerParams] = None,
        rule_base: Optional[RuleBase] = None,
        engine: Optional[InferenceEngine] = None,
    ):
        self.world = world
        self.fan = fan
        self.params = params or ControllerParams()
        self.rule_base = rule_base or RuleBase()
        self.engine = engine or InferenceEngine()

        self._check_interval = clamp(self.params.check_interval, *ABSOLUTE_CHECK_INTERVAL_RANGE)
        self.ramp_timeout_s = float(self.params.ramp_timeout_s)

        self.state = ControllerState.IDLE
        self.phase = ActuationPhase.NONE
        self.ac_state = ACState.OFF
        self.last_rate: Optional[float] = None
        self.last_error: Optional[str] = None
        self.episode = 0

        self.running = False
        self._check_remaining: Optional[float] = None
        self._rate = 0.0
        self._direction = 0
        self._ramp: Optional[FanRamp] = None
        self._ramp_elapsed = 0.0

        controller_log.info(
            "AC controller initialized (check interval %.2fs, ramp timeout %.2fs).",
            self._check_interval, self.ramp_timeout_s,
        )

    # ------------------------------------------------------------
    # Configuration / published state
    # ------------------------------------------------------------
    @property
    def check_interval(self) -> float:
        return self._check_interval

    @check_interval.setter
    def check_interval(self, value: float) -> None:
        self._check_interval = clamp(value, *ABSOLUTE_CHECK_INTERVAL_RANGE)

    @property
    def check_remaining(self) -> Optional[float]:
        """Seconds until the next periodic check, or None if no check is pending."""
        return self._check_remaining

    @property
    def current_rate(self) -> float:
        return self._rate if self.state is ControllerState.ACTUATING else 0.0

    def antecedents(self) -> List[Tuple[str, float, float, float]]:
        return self.rule_base.antecedents()

    # ------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------
    def begin(self) -> None:
        """Starts the periodic check loop."""
        self.running = True
        self._arm_check_timer()
        controller_log.info("Periodic temperature checks started.")

    def shutdown(self) -> None:
        """Cancels everything and stops the fan."""
        self.running = False
        self._check_remaining = None
        self._cancel_episode()
        self.fan.stop()
        self.world.toggle_active_fluctuation(True)
        self.state = ControllerState.IDLE
        controller_log.info("AC controller shut down.")

    # ------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------
    def check_temperatures(self) -> Optional[float]:
        """
        Synchronously re-enters EVALUATING from any state.

        An episode in flight is cancelled; partial temperature changes stay.

        Returns:
            Optional[float]: The inferred rate, or None if the cycle was
                aborted because the rule base was malformed.
        """
        preempted = self.state is ControllerState.ACTUATING
        if preempted:
            controller_log.info("Pre-empting actuation episode %d.", self.episode)
            self._cancel_episode()
        self.state = ControllerState.EVALUATING

        try:
            self.rule_base.update_antecedents(
                self.world.world_temperature_range, self.world.acceptance_range
            )
            self.rule_base.validate()
            error = self.world.error
            rate = self.engine.infer(error, self.rule_base.rules)
        except (RuleBaseError, InferenceError) as e:
            self.last_error = str(e)
            controller_log.error("Inference cycle aborted, staying idle: %s", e)
            self._settle_idle(spin_down=preempted, restart_timer=preempted)
            return None

        self.last_rate = rate
        controller_log.info(
            "Check: current=%.3f target=%.3f error=%.3f rate=%.4f",
            self.world.current_temperature, self.world.target_temperature, error, rate,
        )

        if rate == 0.0:
            self._settle_idle(spin_down=preempted, restart_timer=preempted)
        else:
            self._start_episode(rate)
        return rate

    def _start_episode(self, rate: float) -> None:
        self._check_remaining = None
        self.world.toggle_active_fluctuation(False)

        self.episode += 1
        self._rate = rate
        self._direction = _sign(self.world.current_temperature - self.world.target_temperature)
        self._ramp = self.fan.start_spin(rate)
        self._ramp_elapsed = 0.0
        self.phase = ActuationPhase.SPIN_UP
        self.state = ControllerState.ACTUATING
        controller_log.info(
            "Episode %d: rate=%.4f direction=%d", self.episode, rate, self._direction
        )

    def _cancel_episode(self) -> None:
        self._ramp = None
        self._ramp_elapsed = 0.0
        self._rate = 0.0
        self._direction = 0
        self.phase = ActuationPhase.NONE
        self.ac_state = ACState.OFF

    def _settle_idle(self, spin_down: bool, restart_timer: bool) -> None:
        if spin_down:
            self.fan.end_spin()
            self.world.toggle_active_fluctuation(True)
        self.state = ControllerState.IDLE
        self.phase = ActuationPhase.NONE
        if restart_timer or self._check_remaining is None:
            self._arm_check_timer()

    def _arm_check_timer(self) -> None:
        self._check_remaining = self._check_interval if self.running else None

    # ------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------
    def tick(self, dt: float) -> None:
        """Advances the check timer or the actuation episode by one step."""
        if self.state is ControllerState.IDLE:
            if self._check_remaining is None:
                return
            self._check_remaining -= dt
            if self._check_remaining <= 0.0:
                self._arm_check_timer()
                self.check_temperatures()
            return

        if self.phase is ActuationPhase.SPIN_UP:
            if not self._await_ramp(dt):
                return
            self.phase = ActuationPhase.CHANGING
            self.ac_state = ACState.HEATING if self._direction < 0 else ACState.COOLING
            controller_log.info("Episode %d: %s", self.episode, self.ac_state.value)

        if self.phase is ActuationPhase.CHANGING:
            self._change_step(dt)
        elif self.phase is ActuationPhase.SPIN_DOWN:
            if self._await_ramp(dt):
                self._finish_episode()

    def _await_ramp(self, dt: float) -> bool:
        """True once the fan ramp completes; a timeout or cancelled ramp is a fault."""
        ramp = self._ramp
        if ramp is not None and ramp.done:
            return True
        self._ramp_elapsed += dt
        if ramp is None or ramp.cancelled:
            self._ramp_fault(f"Fan ramp was cancelled (phase {self.phase.value})")
        elif self._ramp_elapsed > self.ramp_timeout_s:
            self._ramp_fault(
                f"Fan ramp did not complete within {self.ramp_timeout_s:.2f}s "
                f"(phase {self.phase.value})"
            )
        return False

    def _change_step(self, dt: float) -> None:
        d = self._direction
        world = self.world
        if d * world.current_temperature > d * world.target_temperature:
            before = world.current_temperature
            world.change_temperature(self._rate * dt)
            if world.current_temperature != before:
                return
            controller_log.warning(
                "Episode %d: temperature pinned at %.3f; ending episode.",
                self.episode, before,
            )
        self._ramp = self.fan.end_spin()
        self._ramp_elapsed = 0.0
        self.phase = ActuationPhase.SPIN_DOWN
        controller_log.info(
            "Episode %d: target reached (current=%.3f).", self.episode, world.current_temperature
        )

    def _finish_episode(self) -> None:
        self._cancel_episode()
        self.world.toggle_active_fluctuation(True)
        self.state = ControllerState.IDLE
        self._arm_check_timer()
        controller_log.info("Episode %d complete; back to idle.", self.episode)

    def _ramp_fault(self, reason: str) -> None:
        self.last_error = reason
        controller_log.error("Episode %d: %s; forcing stop.", self.episode, self.last_error)
        self.fan.stop()
        self._finish_episode()

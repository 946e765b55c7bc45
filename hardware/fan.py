"""
Driver model for the A/C fan.

The controller commands the fan with a signed speed: the sign encodes heating
vs cooling. Speed changes are never instantaneous; the fan interpolates
linearly from its current speed to the target over a ramp duration and
signals completion through a FanRamp handle. Once a ramp to a non-zero speed
completes, the fan holds that speed until told otherwise.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

fan_log = logging.getLogger('fan')


@dataclass
class FanParams:
    spin_up_time: float = 4.1
    spin_down_time: float = 4.2
    min_speed: float = 2.0
    max_speed: float = 3.5


class FanRamp:
    """
    Completion handle for one ramp command.

    Attributes:
        start_speed (float): Speed when the ramp began.
        target_speed (float): Speed at completion.
        duration (float): Ramp length in seconds.
        elapsed (float): Time advanced so far.
        done (bool): True once the target speed has been reached.
        cancelled (bool): True if a later command superseded this ramp.
    """
    def __init__(self, start_speed: float, target_speed: float, duration: float):
        self.start_speed = start_speed
        self.target_speed = target_speed
        self.duration = max(0.0, duration)
        self.elapsed = 0.0
        self.done = False
        self.cancelled = False

    @property
    def pending(self) -> bool:
        return not (self.done or self.cancelled)

    def speed_at(self, elapsed: float) -> float:
        if self.duration <= 0.0:
            return self.target_speed
        frac = min(1.0, elapsed / self.duration)
        return self.start_speed + (self.target_speed - self.start_speed) * frac


class ACFan:
    """
    Simulated fan actuator.

    Attributes:
        params (FanParams): Ramp timings and speed limits.
        speed (float): Current signed speed.
    """
    def __init__(self, params: Optional[FanParams] = None):
        self.params = params or FanParams()
        self.speed = 0.0
        self._ramp: Optional[FanRamp] = None
        fan_log.info("Fan initialized: spin up %.2fs, spin down %.2fs, speed [%.2f, %.2f].",
                     self.params.spin_up_time, self.params.spin_down_time,
                     self.params.min_speed, self.params.max_speed)

    @property
    def ramp(self) -> Optional[FanRamp]:
        return self._ramp

    @property
    def is_ramping(self) -> bool:
        return self._ramp is not None and self._ramp.pending

    def ramp_to(self, target_speed: float, ramp_duration: float) -> FanRamp:
        """
        Starts a linear ramp from the current speed to `target_speed`.

        Any ramp in progress is cancelled.

        Returns:
            FanRamp: Handle that reports completion.
        """
        self._cancel_ramp()
        ramp = FanRamp(self.speed, float(target_speed), float(ramp_duration))
        self._ramp = ramp
        fan_log.debug("Ramp %.3f -> %.3f over %.2fs", ramp.start_speed, ramp.target_speed, ramp.duration)
        if ramp.duration <= 0.0:
            self._finish(ramp)
        return ramp

    def start_spin(self, rate: float) -> FanRamp:
        """Spins up toward |rate| clamped into the speed range, keeping the sign of `rate`."""
        magnitude = max(self.params.min_speed, min(self.params.max_speed, abs(rate)))
        target = math.copysign(magnitude, rate)
        fan_log.info("Spin up: rate=%.3f -> target speed %.3f", rate, target)
        return self.ramp_to(target, self.params.spin_up_time)

    def end_spin(self) -> FanRamp:
        fan_log.info("Spin down from %.3f", self.speed)
        return self.ramp_to(0.0, self.params.spin_down_time)

    def stop(self) -> None:
        """Immediate stop; cancels any ramp in progress."""
        self._cancel_ramp()
        self._ramp = None
        self.speed = 0.0
        fan_log.warning("Fan stopped immediately.")

    def tick(self, dt: float) -> None:
        ramp = self._ramp
        if ramp is None or not ramp.pending:
            return
        ramp.elapsed += dt
        self.speed = ramp.speed_at(ramp.elapsed)
        if ramp.elapsed >= ramp.duration:
            self._finish(ramp)

    def _finish(self, ramp: FanRamp) -> None:
        self.speed = ramp.target_speed
        ramp.done = True
        fan_log.debug("Ramp complete at speed %.3f", self.speed)

    def _cancel_ramp(self) -> None:
        if self._ramp is not None and self._ramp.pending:
            self._ramp.cancelled = True

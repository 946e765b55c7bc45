# simulation/settings.py
"""
Configuration ranges and the batch settings object.

Every configurable value has a fixed absolute bound. Setters clamp into that
bound before anything else, and a whole batch of settings is normalized at
once so collaborators never observe a half-applied configuration.
"""

from dataclasses import dataclass, replace
from typing import NamedTuple, Optional, Sequence

from flc.rule_base import NEAR_FRACTION


class Range(NamedTuple):
    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min


class ConfigurationError(ValueError):
    """Raised when a committed range is inconsistent after clamping."""


# ------------------------------------------------------------
# Absolute bounds
# ------------------------------------------------------------
ABSOLUTE_TEMPERATURE_RANGE = Range(40.0, 100.0)
ABSOLUTE_ACCEPTANCE_RANGE = Range(-10.0, 10.0)
ABSOLUTE_FLUCTUATION_WAIT_RANGE = Range(3.0, 10.0)
ABSOLUTE_FLUCTUATION_LENGTH_RANGE = Range(2.0, 5.0)
ABSOLUTE_FLUCTUATION_TEMPERATURE_RANGE = Range(1.0, 5.0)
ABSOLUTE_CHECK_INTERVAL_RANGE = Range(0.0, 15.0)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


def clamp_range(values: Sequence[float], bounds: Range) -> Range:
    """Clamps both ends of `values` into `bounds` independently."""
    return Range(clamp(values[0], *bounds), clamp(values[1], *bounds))


def checked_range(name: str, values: Sequence[float], bounds: Range) -> Range:
    """
    Clamps `values` into `bounds` and checks min <= max.

    Raises:
        ConfigurationError: If the clamped range is inverted.
    """
    clamped = clamp_range(values, bounds)
    if clamped.min > clamped.max:
        raise ConfigurationError(
            f"{name}: min {clamped.min:.3f} > max {clamped.max:.3f} after clamping to "
            f"[{bounds.min:.3f}, {bounds.max:.3f}]"
        )
    return clamped


def checked_world_range(values: Sequence[float]) -> Range:
    """
    Clamps the world range and requires a non-zero span.

    A range that collapses to a single point (e.g. one lying entirely below
    the absolute minimum) leaves every antecedent at (0, 0, 0).

    Raises:
        ConfigurationError: If the clamped range is inverted or has no span.
    """
    world = checked_range("world_temperature_range", values, ABSOLUTE_TEMPERATURE_RANGE)
    if world.span <= 0.0:
        raise ConfigurationError(
            f"world_temperature_range: span is zero after clamping to "
            f"[{ABSOLUTE_TEMPERATURE_RANGE.min:.3f}, {ABSOLUTE_TEMPERATURE_RANGE.max:.3f}]"
        )
    return world


def checked_acceptance_range(values: Sequence[float], world: Range) -> Range:
    """
    Clamps the acceptance band and checks it fits the world range.

    The band must contain zero error and stay inside +/- NEAR_FRACTION of
    the world span, where the LOWER and HIGHER wedges peak.

    Raises:
        ConfigurationError: If the band cannot produce valid antecedents.
    """
    band = checked_range("acceptance_range", values, ABSOLUTE_ACCEPTANCE_RANGE)
    limit = world.span * NEAR_FRACTION
    if not (-limit <= band.min <= 0.0 <= band.max <= limit):
        raise ConfigurationError(
            f"acceptance_range: [{band.min:.3f}, {band.max:.3f}] must contain 0 and lie "
            f"within [{-limit:.3f}, {limit:.3f}] for world span {world.span:.3f}"
        )
    return band


@dataclass(frozen=True)
class ACSettings:
    """
    One atomic configuration commit.

    `current_temperature` is optional; when None the plant keeps its value
    (re-clamped into the new world range).
    """

    world_temperature_range: Range = Range(40.0, 100.0)
    target_temperature: float = 70.0
    acceptance_range: Range = Range(-2.0, 2.0)
    fluctuation_wait_range: Range = Range(3.0, 10.0)
    fluctuation_length_range: Range = Range(2.0, 5.0)
    fluctuation_temperature_range: Range = Range(1.0, 5.0)
    check_interval: float = 10.0
    fluctuation_allowed: bool = True
    current_temperature: Optional[float] = None

    def normalized(self) -> "ACSettings":
        """
        Returns a copy with every value clamped into its absolute bound.

        Dependent values (target and current temperature) are clamped into
        the already-clamped world range.

        Raises:
            ConfigurationError: If any range is inverted after clamping, the
                world range has no span, or the acceptance band does not fit
                the world range.
        """
        world = checked_world_range(self.world_temperature_range)
        current = self.current_temperature
        if current is not None:
            current = clamp(current, *world)

        return replace(
            self,
            world_temperature_range=world,
            target_temperature=clamp(self.target_temperature, *world),
            acceptance_range=checked_acceptance_range(self.acceptance_range, world),
            fluctuation_wait_range=checked_range(
                "fluctuation_wait_range", self.fluctuation_wait_range,
                ABSOLUTE_FLUCTUATION_WAIT_RANGE,
            ),
            fluctuation_length_range=checked_range(
                "fluctuation_length_range", self.fluctuation_length_range,
                ABSOLUTE_FLUCTUATION_LENGTH_RANGE,
            ),
            fluctuation_temperature_range=checked_range(
                "fluctuation_temperature_range", self.fluctuation_temperature_range,
                ABSOLUTE_FLUCTUATION_TEMPERATURE_RANGE,
            ),
            check_interval=clamp(self.check_interval, *ABSOLUTE_CHECK_INTERVAL_RANGE),
            fluctuation_allowed=bool(self.fluctuation_allowed),
            current_temperature=current,
        )

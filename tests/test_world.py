# tests/test_world.py
import random

import numpy as np
import pytest

from simulation.settings import ACSettings, ConfigurationError, Range
from simulation.world import FluctuationPhase, WorldTemperature


@pytest.fixture
def world():
    return WorldTemperature(
        ACSettings(current_temperature=70.0, target_temperature=70.0, fluctuation_allowed=True),
        rng=random.Random(7),
    )


def test_set_temperature_clamps_and_notifies(world):
    seen = []
    world.listeners.append(seen.append)

    world.set_temperature(120.0)
    assert world.current_temperature == 100.0
    world.change_temperature(-75.0)
    assert world.current_temperature == 40.0
    assert seen == [100.0, 40.0]


def test_target_clamped_into_world_range(world):
    world.set_target_temperature(10.0)
    assert world.target_temperature == 40.0


@pytest.mark.parametrize(
    "requested, expected",
    [
        ((50.0, 80.0), (50.0, 80.0)),
        ((30.0, 120.0), (40.0, 100.0)),
        ((20.0, 30.0), (40.0, 40.0)),
    ],
)
def test_world_range_round_trip(world, requested, expected):
    world.set_world_temperature_range(requested)
    assert world.world_temperature_range == Range(*expected)


def test_world_range_reclamps_dependents(world):
    world.set_world_temperature_range((40.0, 60.0))
    assert world.current_temperature == 60.0
    assert world.target_temperature == 60.0


def test_inverted_range_rejected(world):
    with pytest.raises(ConfigurationError):
        world.set_acceptance_range((3.0, -3.0))
    assert world.acceptance_range == Range(-2.0, 2.0)


@pytest.mark.parametrize(
    "setter, getter, requested, expected",
    [
        ("set_acceptance_range", "acceptance_range", (-20.0, 5.0), (-10.0, 5.0)),
        ("set_fluctuation_wait_range", "fluctuation_wait_range", (0.0, 4.0), (3.0, 4.0)),
        ("set_fluctuation_length_range", "fluctuation_length_range", (2.5, 9.0), (2.5, 5.0)),
        ("set_fluctuation_temperature_range", "fluctuation_temperature_range", (0.5, 2.0), (1.0, 2.0)),
    ],
)
def test_range_setters_clamp(world, setter, getter, requested, expected):
    getattr(world, setter)(requested)
    assert getattr(world, getter) == Range(*expected)


def test_fluctuation_needs_allowed_and_active(world):
    assert world.fluctuation_allowed
    assert not world.fluctuation_active
    assert not world.is_fluctuating

    world.toggle_active_fluctuation(True)
    assert world.fluctuation_phase is FluctuationPhase.WAITING

    world.toggle_fluctuation(False)
    assert not world.is_fluctuating

    # Policy back on while still active -> restarts with a fresh wait.
    world.toggle_fluctuation(True)
    assert world.fluctuation_phase is FluctuationPhase.WAITING

    world.toggle_active_fluctuation(False)
    assert not world.is_fluctuating


def test_fluctuation_changes_temperature(world):
    world.toggle_active_fluctuation(True)
    phases = set()
    for _ in range(int(20.0 / 0.02)):
        world.tick(0.02)
        phases.add(world.fluctuation_phase)
    assert FluctuationPhase.CHANGING in phases
    assert world.current_temperature != 70.0
    assert 40.0 <= world.current_temperature <= 100.0


def test_fluctuation_bounded_rate(world):
    world.toggle_active_fluctuation(True)
    temps = []
    for _ in range(int(30.0 / 0.02)):
        world.tick(0.02)
        temps.append(world.current_temperature)
    steps = np.abs(np.diff(temps))
    # Never faster than the max fluctuation rate of 5 deg/s.
    assert np.all(steps <= 5.0 * 0.02 + 1e-9)


def test_fluctuation_reproducible_from_seed():
    def run(seed):
        w = WorldTemperature(ACSettings(current_temperature=70.0), rng=random.Random(seed))
        w.toggle_fluctuation(True)
        w.toggle_active_fluctuation(True)
        out = []
        for _ in range(1500):
            w.tick(0.02)
            out.append(w.current_temperature)
        return out

    assert run(11) == run(11)


def test_inactive_world_is_frozen(world):
    for _ in range(1000):
        world.tick(0.02)
    assert world.current_temperature == 70.0

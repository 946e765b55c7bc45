# tests/conftest.py
import pytest

from flc.controller import ACController, ControllerParams
from hardware.fan import ACFan, FanParams
from simulation.ac_simulator import ACSimulator, SimConfig
from simulation.settings import ACSettings, Range
from simulation.world import WorldTemperature


class StuckFan(ACFan):
    """Fan whose ramps never complete; used to exercise the ramp timeout."""

    def tick(self, dt):
        pass


@pytest.fixture
def stuck_fan_cls():
    return StuckFan


@pytest.fixture
def quiet_settings():
    """Scenario A defaults with fluctuation disabled so runs are deterministic."""
    return ACSettings(
        world_temperature_range=Range(40.0, 100.0),
        target_temperature=70.0,
        current_temperature=60.0,
        acceptance_range=Range(-2.0, 2.0),
        check_interval=1.0,
        fluctuation_allowed=False,
    )


@pytest.fixture
def make_controller():
    """
    Build (controller, world, fan) wired together.
    Usage:
        ctrl, world, fan = make_controller(settings, fan_cls=StuckFan, ramp_timeout_s=1.0)
    """
    def _builder(settings, fan_cls=ACFan, ramp_timeout_s=10.0, fan_params=None):
        world = WorldTemperature(settings)
        fan = fan_cls(fan_params or FanParams())
        ctrl = ACController(
            world,
            fan,
            ControllerParams(
                check_interval=settings.normalized().check_interval,
                ramp_timeout_s=ramp_timeout_s,
            ),
        )
        return ctrl, world, fan

    return _builder


@pytest.fixture
def make_sim():
    def _builder(settings, dt=0.02, seed=1234, steps_per_log=1, ramp_timeout_s=10.0):
        cfg = SimConfig(dt=dt, steps_per_log=steps_per_log, seed=seed, ramp_timeout_s=ramp_timeout_s)
        return ACSimulator(settings=settings, cfg=cfg)

    return _builder


@pytest.fixture
def drive():
    """Advances (ctrl, fan, world) in simulator order for `seconds`."""
    def _drive(ctrl, fan, world, seconds, dt=0.02):
        for _ in range(int(round(seconds / dt))):
            fan.tick(dt)
            ctrl.tick(dt)
            world.tick(dt)

    return _drive

# tests/test_controller.py
from dataclasses import replace

import numpy as np
import pytest

from flc.controller import ACState, ActuationPhase, ControllerState
from hardware.fan import ACFan


class NoSpinDownFan(ACFan):
    """Fan that spins up normally but never finishes a ramp to zero."""

    def tick(self, dt):
        if self.ramp is not None and self.ramp.target_speed == 0.0:
            return
        super().tick(dt)


# ------------------------------------------------------------
# Evaluation
# ------------------------------------------------------------
def test_check_starts_episode_for_positive_error(make_controller, quiet_settings):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()

    rate = ctrl.check_temperatures()

    # error = 70 - 60 = 10 -> HIGHER wedge, rate 1.25
    assert rate == pytest.approx(1.25)
    assert ctrl.last_rate == pytest.approx(1.25)
    assert ctrl.state is ControllerState.ACTUATING
    assert ctrl.phase is ActuationPhase.SPIN_UP
    assert ctrl.check_remaining is None
    assert not world.fluctuation_active
    assert fan.ramp.target_speed == pytest.approx(2.0)
    assert ctrl.episode == 1


def test_at_target_stays_idle(make_controller, quiet_settings):
    settings = replace(quiet_settings, current_temperature=70.0)
    ctrl, world, fan = make_controller(settings)
    ctrl.begin()
    remaining = ctrl.check_remaining

    assert ctrl.check_temperatures() == 0.0
    assert ctrl.state is ControllerState.IDLE
    assert ctrl.ac_state is ACState.OFF
    assert fan.ramp is None
    assert ctrl.episode == 0
    assert ctrl.check_remaining == remaining


def test_recheck_is_idempotent(make_controller, quiet_settings):
    ctrl, _, _ = make_controller(quiet_settings)
    first_rate = ctrl.check_temperatures()
    first_shapes = ctrl.antecedents()
    second_rate = ctrl.check_temperatures()
    assert second_rate == first_rate
    assert ctrl.antecedents() == first_shapes


def test_antecedents_published(make_controller, quiet_settings):
    ctrl, _, _ = make_controller(quiet_settings)
    ctrl.check_temperatures()
    labels = [a[0] for a in ctrl.antecedents()]
    assert labels == ["MUCH_LOWER", "LOWER", "ACCEPTABLE", "HIGHER", "MUCH_HIGHER"]
    assert ctrl.antecedents()[3][1:] == pytest.approx((2.0, 18.0, 30.0))


def test_invalid_shapes_refuse_actuation(make_controller, quiet_settings):
    ctrl, world, fan = make_controller(quiet_settings)
    # span = 5 with a +/-10 band: LOWER and HIGHER cannot be placed.
    world.set_world_temperature_range((40.0, 45.0))
    world.set_acceptance_range((-10.0, 10.0))
    world.set_temperature(40.0)
    ctrl.begin()

    assert ctrl.check_temperatures() is None
    assert ctrl.state is ControllerState.IDLE
    assert "LOWER" in ctrl.last_error
    assert fan.ramp is None
    assert ctrl.check_remaining is not None


def test_zero_span_world_refuses_actuation(make_controller, quiet_settings):
    ctrl, world, fan = make_controller(quiet_settings)
    world.set_world_temperature_range((70.0, 70.0))
    world.set_acceptance_range((0.0, 0.0))
    assert world.error == 0.0

    assert ctrl.check_temperatures() is None
    assert ctrl.state is ControllerState.IDLE
    assert ctrl.episode == 0
    assert fan.ramp is None
    assert "span" in ctrl.last_error


# ------------------------------------------------------------
# Periodic checks
# ------------------------------------------------------------
def test_periodic_check_fires_after_interval(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()

    drive(ctrl, fan, world, 0.9)
    assert ctrl.state is ControllerState.IDLE
    drive(ctrl, fan, world, 0.2)
    assert ctrl.state is ControllerState.ACTUATING


def test_no_checks_before_begin(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    drive(ctrl, fan, world, 5.0)
    assert ctrl.state is ControllerState.IDLE
    assert ctrl.last_rate is None


# ------------------------------------------------------------
# Scenario A: heat 60 -> 70
# ------------------------------------------------------------
def test_episode_heats_to_target(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()
    ctrl.check_temperatures()

    # Spin up (4.1 s): temperature must not move yet.
    drive(ctrl, fan, world, 4.0)
    assert ctrl.phase is ActuationPhase.SPIN_UP
    assert world.current_temperature == pytest.approx(60.0)

    temps = []
    for _ in range(2000):
        drive(ctrl, fan, world, 0.02)
        if ctrl.phase is ActuationPhase.CHANGING:
            assert ctrl.ac_state is ACState.HEATING
            temps.append(world.current_temperature)
        if ctrl.phase is ActuationPhase.SPIN_DOWN:
            break

    assert len(temps) > 10
    assert np.all(np.diff(temps) > 0.0)
    assert world.current_temperature >= 70.0
    assert world.current_temperature == pytest.approx(70.0, abs=0.05)
    assert not world.fluctuation_active

    drive(ctrl, fan, world, 4.3)
    assert ctrl.state is ControllerState.IDLE
    assert ctrl.ac_state is ACState.OFF
    assert fan.speed == pytest.approx(0.0)
    assert world.fluctuation_active
    assert 0.0 < ctrl.check_remaining <= ctrl.check_interval


def test_cooling_direction(make_controller, quiet_settings, drive):
    settings = replace(quiet_settings, current_temperature=85.0)
    ctrl, world, fan = make_controller(settings)
    rate = ctrl.check_temperatures()
    assert rate < 0.0
    assert fan.ramp.target_speed < 0.0

    drive(ctrl, fan, world, 4.2)
    assert ctrl.ac_state is ACState.COOLING
    drive(ctrl, fan, world, 30.0)
    assert ctrl.state is ControllerState.IDLE
    assert world.current_temperature <= 70.0


# ------------------------------------------------------------
# Scenario C: pre-emption
# ------------------------------------------------------------
def test_recheck_preempts_with_new_episode(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()
    ctrl.check_temperatures()
    drive(ctrl, fan, world, 6.0)
    assert ctrl.phase is ActuationPhase.CHANGING
    partial = world.current_temperature
    assert partial > 60.0

    world.set_target_temperature(80.0)
    rate = ctrl.check_temperatures()

    assert rate > 0.0
    assert ctrl.episode == 2
    assert ctrl.phase is ActuationPhase.SPIN_UP
    assert ctrl.check_remaining is None
    # Partial change from the cancelled episode stays.
    assert world.current_temperature == pytest.approx(partial)

    drive(ctrl, fan, world, 30.0)
    assert world.current_temperature >= 80.0
    # Later periodic checks land in the acceptance band: no stray episode.
    drive(ctrl, fan, world, 5.0)
    assert ctrl.episode == 2
    assert ctrl.state is ControllerState.IDLE


def test_recheck_to_zero_rate_settles_idle(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()
    ctrl.check_temperatures()
    drive(ctrl, fan, world, 6.0)
    assert ctrl.state is ControllerState.ACTUATING

    world.set_target_temperature(world.current_temperature)
    assert ctrl.check_temperatures() == 0.0

    assert ctrl.state is ControllerState.IDLE
    assert ctrl.phase is ActuationPhase.NONE
    assert ctrl.ac_state is ACState.OFF
    assert world.fluctuation_active
    assert fan.ramp.target_speed == 0.0
    assert ctrl.check_remaining == pytest.approx(ctrl.check_interval)

    before = world.current_temperature
    drive(ctrl, fan, world, 0.5)
    assert world.current_temperature == pytest.approx(before)


# ------------------------------------------------------------
# Faults
# ------------------------------------------------------------
def test_ramp_timeout_forces_stop(make_controller, quiet_settings, stuck_fan_cls, drive):
    ctrl, world, fan = make_controller(quiet_settings, fan_cls=stuck_fan_cls, ramp_timeout_s=1.0)
    ctrl.begin()
    ctrl.check_temperatures()
    assert ctrl.state is ControllerState.ACTUATING

    drive(ctrl, fan, world, 1.1)

    assert ctrl.state is ControllerState.IDLE
    assert ctrl.ac_state is ACState.OFF
    assert "did not complete" in ctrl.last_error
    assert fan.speed == 0.0
    assert world.fluctuation_active
    assert world.current_temperature == pytest.approx(60.0)
    assert ctrl.check_remaining is not None


def test_spin_down_timeout_forces_stop(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings, fan_cls=NoSpinDownFan, ramp_timeout_s=5.0)
    ctrl.begin()
    ctrl.check_temperatures()

    # 4.1 s spin up + 8 s of heating; spin down starts around 12.1 s.
    drive(ctrl, fan, world, 13.0)
    assert ctrl.phase is ActuationPhase.SPIN_DOWN
    assert fan.speed != 0.0

    drive(ctrl, fan, world, 5.1)

    assert ctrl.state is ControllerState.IDLE
    assert ctrl.ac_state is ACState.OFF
    assert "spin_down" in ctrl.last_error
    assert fan.speed == 0.0
    assert fan.ramp is None
    assert world.fluctuation_active
    assert world.current_temperature >= 70.0


def test_cancelled_ramp_forces_stop(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()
    ctrl.check_temperatures()
    drive(ctrl, fan, world, 1.0)
    assert ctrl.phase is ActuationPhase.SPIN_UP

    # Another command supersedes the controller's ramp.
    fan.ramp_to(1.0, 2.0)
    drive(ctrl, fan, world, 0.02)

    assert ctrl.state is ControllerState.IDLE
    assert "cancelled" in ctrl.last_error
    assert fan.speed == 0.0
    assert fan.ramp is None
    assert ctrl.episode == 1
    assert ctrl.check_remaining is not None


def test_pinned_temperature_ends_episode(make_controller, quiet_settings, drive):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.check_temperatures()
    drive(ctrl, fan, world, 4.2)
    assert ctrl.phase is ActuationPhase.CHANGING

    # Force the rate to push away from the target, into the range floor.
    ctrl._rate = -100.0
    drive(ctrl, fan, world, 0.5)
    assert world.current_temperature == 40.0
    assert ctrl.phase is ActuationPhase.SPIN_DOWN


def test_shutdown_stops_everything(make_controller, quiet_settings):
    ctrl, world, fan = make_controller(quiet_settings)
    ctrl.begin()
    ctrl.check_temperatures()
    ctrl.shutdown()
    assert ctrl.state is ControllerState.IDLE
    assert not ctrl.running
    assert ctrl.check_remaining is None
    assert fan.speed == 0.0


def test_check_interval_clamped(make_controller, quiet_settings):
    ctrl, _, _ = make_controller(quiet_settings)
    ctrl.check_interval = 99.0
    assert ctrl.check_interval == 15.0
    ctrl.check_interval = -1.0
    assert ctrl.check_interval == 0.0

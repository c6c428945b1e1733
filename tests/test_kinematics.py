"""Tests for inverse/forward kinematics and desaturation."""

import math

import pytest

from swerve_control.config import ConfigurationError, module_geometry
from swerve_control.geometry import ChassisVelocity, WheelGeometry, WheelPosition, WheelState
from swerve_control.kinematics import SwerveKinematics

MAX_SPEED = 5.6


def test_full_forward_points_every_wheel_ahead(kinematics):
    states = kinematics.inverse(ChassisVelocity(MAX_SPEED, 0.0, 0.0))

    for state in states:
        assert state.speed == pytest.approx(MAX_SPEED)
        assert state.angle == pytest.approx(0.0)


def test_pure_rotation_is_tangential(kinematics):
    states = kinematics.inverse(ChassisVelocity(0.0, 0.0, 2 * math.pi))

    radius = math.hypot(0.5715 / 2, 0.5715 / 2)
    expected_angles = [3 * math.pi / 4, math.pi / 4, -3 * math.pi / 4, -math.pi / 4]
    for state, expected in zip(states, expected_angles):
        assert state.speed == pytest.approx(2 * math.pi * radius)
        assert state.speed == pytest.approx(2.539, abs=1e-3)
        assert state.angle == pytest.approx(expected)


def test_zero_velocity_holds_given_angles(kinematics):
    held = [0.1, 0.2, -0.3, 1.4]
    states = kinematics.inverse(ChassisVelocity(), hold_angles=held)

    assert [state.angle for state in states] == held
    assert all(state.speed == 0.0 for state in states)


def test_zero_velocity_without_hold_angles_points_forward(kinematics):
    states = kinematics.inverse(ChassisVelocity())
    assert all(state.speed == 0.0 and state.angle == 0.0 for state in states)


@pytest.mark.parametrize("vx", [-1.0, 0.0, 0.6, 1.0])
@pytest.mark.parametrize("vy", [-1.0, 0.0, 0.8])
@pytest.mark.parametrize("omega", [-1.0, 0.0, 0.5, 1.0])
def test_desaturate_bounds_and_preserves_ratios(kinematics, vx, vy, omega):
    velocity = ChassisVelocity(vx * MAX_SPEED, vy * MAX_SPEED, omega * 2 * math.pi)
    raw = kinematics.inverse(velocity)
    scaled = SwerveKinematics.desaturate(raw, MAX_SPEED)

    peak = max(state.speed for state in raw)
    for before, after in zip(raw, scaled):
        assert abs(after.speed) <= MAX_SPEED + 1e-9
        assert after.angle == before.angle
        if peak > MAX_SPEED:
            assert after.speed == pytest.approx(before.speed * MAX_SPEED / peak)
        else:
            assert after.speed == before.speed


def test_desaturate_combined_full_command(kinematics):
    raw = kinematics.inverse(ChassisVelocity(MAX_SPEED, 0.0, 2 * math.pi))
    scaled = SwerveKinematics.desaturate(raw, MAX_SPEED)

    assert max(abs(state.speed) for state in scaled) == pytest.approx(MAX_SPEED)


def test_forward_recovers_chassis_motion(kinematics):
    dt = 0.02
    velocity = ChassisVelocity(1.2, -0.4, 0.9)
    deltas = [
        WheelPosition(state.speed * dt, state.angle) for state in kinematics.inverse(velocity)
    ]

    twist = kinematics.forward(deltas)

    assert twist.dx == pytest.approx(velocity.vx * dt)
    assert twist.dy == pytest.approx(velocity.vy * dt)
    assert twist.dtheta == pytest.approx(velocity.omega * dt)


def test_to_chassis_velocity_accepts_reversed_wheels(kinematics):
    # A wheel driving backwards at angle + pi is the same vector
    states = [WheelState(-1.0, math.pi) for _ in range(4)]
    velocity = kinematics.to_chassis_velocity(states)

    assert velocity.vx == pytest.approx(1.0)
    assert velocity.vy == pytest.approx(0.0, abs=1e-9)
    assert velocity.omega == pytest.approx(0.0, abs=1e-9)


def test_forward_rejects_wrong_count(kinematics):
    with pytest.raises(ValueError):
        kinematics.forward([WheelPosition()] * 3)


def test_duplicate_offsets_rejected():
    geometry = list(module_geometry(0.5, 0.5))
    geometry[3] = geometry[0]
    with pytest.raises(ConfigurationError):
        SwerveKinematics(geometry)


def test_wrong_module_count_rejected():
    with pytest.raises(ConfigurationError):
        SwerveKinematics([WheelGeometry(0.3, 0.3), WheelGeometry(-0.3, -0.3)])


def test_world_relative_conversion():
    velocity = ChassisVelocity.from_world_relative(1.0, 0.0, 0.5, math.pi / 2)

    assert velocity.vx == pytest.approx(0.0, abs=1e-12)
    assert velocity.vy == pytest.approx(-1.0)
    assert velocity.omega == 0.5

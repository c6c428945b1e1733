"""Tests for the DriveController control cycle."""

import logging
import math
from dataclasses import replace

import pytest

from swerve_control.config import ConfigurationError, DriveConfig, module_geometry
from swerve_control.drive import LOCK_ANGLES, MODULE_NAMES, DriveController
from swerve_control.geometry import ChassisVelocity, Pose, WheelState, wrap_angle
from swerve_control.heading import CalibrationState, HeadingSource
from swerve_control.module import WheelModule
from swerve_control.simulation import (
    SimulatedDrivetrain,
    SimulatedHeadingSensor,
    SimulatedWheelHardware,
)


def assert_pose_close(actual, expected):
    assert actual.x == pytest.approx(expected.x)
    assert actual.y == pytest.approx(expected.y)
    assert actual.heading == pytest.approx(expected.heading)


class CountingHeadingSensor(SimulatedHeadingSensor):
    def __init__(self):
        super().__init__()
        self.reads = 0

    def get_heading(self):
        self.reads += 1
        return super().get_heading()


class CountingWheelHardware(SimulatedWheelHardware):
    def __init__(self, max_linear_speed):
        super().__init__(max_linear_speed)
        self.position_reads = 0

    def get_drive_position(self):
        self.position_reads += 1
        return super().get_drive_position()


def test_world_relative_at_zero_heading_matches_vehicle_relative():
    world = SimulatedDrivetrain()
    vehicle = SimulatedDrivetrain()
    velocity = ChassisVelocity(1.0, 0.5, 0.3)

    world.controller.drive_velocity(velocity, world_relative=True)
    vehicle.controller.drive_velocity(velocity)

    for a, b in zip(world.wheels, vehicle.wheels):
        assert a.drive_output == pytest.approx(b.drive_output)
        assert a.steer_setpoint == pytest.approx(b.steer_setpoint)


def test_world_relative_rotates_by_heading(sim):
    sim.gyro.set_yaw(math.pi / 2)

    sim.controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0), world_relative=True)

    for module in sim.controller.modules:
        assert module.desired_state.speed == pytest.approx(1.0)
        assert module.desired_state.angle == pytest.approx(-math.pi / 2)


def test_driver_inputs_are_shaped(sim):
    sim.controller.drive(1.0, 0.0, 0.0, world_relative=False)

    for wheel in sim.wheels:
        assert wheel.drive_output == pytest.approx(1.8 * 0.02)


def test_max_output_scales_driver_inputs(sim):
    sim.controller.set_max_output(0.5)
    sim.controller.drive(1.0, 0.0, 0.0, world_relative=False)

    assert sim.wheels[0].drive_output == pytest.approx(0.5 * 1.8 * 0.02)


@pytest.mark.parametrize("scale", [0.0, -0.5, 1.5])
def test_max_output_rejects_out_of_range(sim, scale):
    with pytest.raises(ValueError):
        sim.controller.set_max_output(scale)


def test_zero_command_holds_wheel_angles(sim):
    sim.controller.drive_velocity(ChassisVelocity(0.0, 1.0, 0.0))
    sim.controller.tick()
    sim.step()

    sim.controller.drive_velocity(ChassisVelocity())
    sim.controller.drive(0.0, 0.0, 0.0, world_relative=True)

    for module, wheel in zip(sim.controller.modules, sim.wheels):
        assert module.desired_state.angle == pytest.approx(math.pi / 2)
        assert module.get_state().angle == pytest.approx(math.pi / 2)
        assert wheel.drive_output == 0.0


@pytest.mark.parametrize(
    "prior",
    [
        ChassisVelocity(1.0, 0.0, 0.0),
        ChassisVelocity(0.0, -1.0, 0.0),
        ChassisVelocity(0.0, 0.0, 2.0),
        ChassisVelocity(-0.7, 0.4, -1.0),
        ChassisVelocity(),
    ],
)
def test_lock_is_independent_of_prior_state(sim, prior):
    sim.controller.drive_velocity(prior)
    sim.controller.tick()
    sim.step()

    sim.controller.lock()
    sim.step()

    for module, wheel, expected in zip(sim.controller.modules, sim.wheels, LOCK_ANGLES):
        assert module.desired_state == WheelState(0.0, expected)
        assert wheel.drive_output == 0.0
        # Same wheel axis, possibly flipped by optimization
        assert wrap_angle(2 * (module.get_state().angle - expected)) == pytest.approx(0.0, abs=1e-9)


def test_stop_zeroes_outputs_and_shapers(sim):
    for _ in range(10):
        sim.controller.drive(1.0, 1.0, 1.0, world_relative=False)
        sim.controller.tick()
        sim.step()

    sim.controller.stop()

    assert all(wheel.drive_output == 0.0 for wheel in sim.wheels)
    assert all(wheel.steer_output == 0.0 for wheel in sim.wheels)
    assert sim.controller.x_shaper.value == 0.0
    assert sim.controller.rot_shaper.value == 0.0


def test_sensors_sampled_once_per_cycle():
    config = DriveConfig.default()
    wheels = [CountingWheelHardware(config.max_linear_speed) for _ in MODULE_NAMES]
    modules = [
        WheelModule(wheel, 0.0, config.max_linear_speed, name)
        for wheel, name in zip(wheels, MODULE_NAMES)
    ]
    gyro = CountingHeadingSensor()
    controller = DriveController(config, modules, HeadingSource(gyro, config.heading_inverted))

    for cycle in range(1, 4):
        controller.drive(0.5, 0.2, 0.1, world_relative=True)
        controller.tick()
        assert gyro.reads == cycle
        assert all(wheel.position_reads == cycle for wheel in wheels)


def test_tick_without_command_advances_odometry(sim):
    sim.controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0))
    sim.controller.tick()
    sim.step()

    # No further commands; tick alone integrates every step
    for _ in range(49):
        sim.controller.tick()
        sim.step()
    sim.controller.tick()

    assert sim.controller.get_pose().x == pytest.approx(sim.true_pose.x)
    assert sim.controller.get_pose().x == pytest.approx(1.0)


def test_world_relative_after_rotation(sim):
    sim.run(lambda controller, t: controller.drive_velocity(ChassisVelocity(0.0, 0.0, 1.0)), 0.5)
    sim.controller.stop()
    sim.controller.tick()
    heading = sim.controller.get_heading()
    assert heading == pytest.approx(0.5)

    sim.controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0), world_relative=True)

    for module in sim.controller.modules:
        assert module.desired_state.angle == pytest.approx(-heading)


def test_calibration_fallback_serves_vehicle_relative(caplog):
    sim = SimulatedDrivetrain(calibrate_heading=True)
    sim.gyro.set_yaw(math.pi / 2)
    sim.controller.get_heading()
    sim.gyro.connected = False

    while sim.calibration.state is CalibrationState.PENDING:
        sim.controller.tick()
        sim.step()
    assert sim.calibration.state is CalibrationState.FALLBACK

    with caplog.at_level(logging.WARNING):
        for _ in range(3):
            sim.controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0), world_relative=True)
            sim.controller.tick()

    for module in sim.controller.modules:
        assert module.desired_state.angle == pytest.approx(0.0)
    assert sum("vehicle-relative" in r.getMessage() for r in caplog.records) == 1


def test_calibration_zero_keeps_pose_heading():
    sim = SimulatedDrivetrain(calibrate_heading=True)
    sim.true_pose = Pose(0.0, 0.0, 0.5)
    sim.gyro.set_yaw(0.5)

    while sim.calibration.state is CalibrationState.PENDING:
        sim.controller.tick()
        sim.step()
    sim.controller.tick()

    assert sim.calibration.state is CalibrationState.READY
    assert sim.controller.get_heading() == pytest.approx(0.0)
    assert sim.controller.get_pose().heading == pytest.approx(0.0)


def test_heading_disconnect_is_reported(sim):
    sim.gyro.set_yaw(0.3, 0.2)
    assert sim.controller.get_heading() == pytest.approx(0.3)

    sim.gyro.connected = False
    sim.gyro.set_yaw(1.0, 0.2)

    assert not sim.controller.is_heading_connected()
    assert sim.controller.get_heading() == pytest.approx(0.3)
    assert sim.controller.get_turn_rate() == 0.0


def test_zero_heading_keeps_pose(sim):
    sim.run(lambda controller, t: controller.drive_velocity(ChassisVelocity(0.5, 0.0, 1.0)), 0.5)
    sim.controller.stop()
    sim.controller.tick()
    before = sim.controller.get_pose()

    sim.controller.zero_heading()
    sim.controller.tick()
    sim.step()
    sim.controller.tick()

    after = sim.controller.get_pose()
    assert sim.controller.get_heading() == pytest.approx(0.0)
    assert after.heading == pytest.approx(before.heading)
    assert after.x == pytest.approx(before.x)
    assert after.y == pytest.approx(before.y)


def test_reset_pose_then_drive(sim):
    sim.controller.reset_pose(Pose(2.0, 3.0, 1.0))
    sim.controller.tick()
    assert_pose_close(sim.controller.get_pose(), Pose(2.0, 3.0, 1.0))

    sim.run(lambda controller, t: controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0)), 1.0)
    sim.controller.stop()
    sim.controller.tick()

    pose = sim.controller.get_pose()
    assert pose.x == pytest.approx(2.0 + math.cos(1.0))
    assert pose.y == pytest.approx(3.0 + math.sin(1.0))
    assert pose.heading == pytest.approx(1.0)


def test_reset_distances_does_not_move_pose(sim):
    sim.run(lambda controller, t: controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0)), 1.0)
    sim.controller.stop()
    sim.controller.tick()
    assert sim.controller.get_average_distance() == pytest.approx(1.0)
    before = sim.controller.get_pose()

    sim.controller.reset_distances()
    sim.controller.tick()

    assert sim.controller.get_average_distance() == 0.0
    assert_pose_close(sim.controller.get_pose(), before)


def test_measured_chassis_velocity(sim):
    sim.controller.drive_velocity(ChassisVelocity(0.5, 0.2, 0.3))
    sim.step()

    velocity = sim.controller.get_chassis_velocity()
    assert velocity.vx == pytest.approx(0.5)
    assert velocity.vy == pytest.approx(0.2)
    assert velocity.omega == pytest.approx(0.3)


def test_set_module_states_desaturates(sim):
    sim.controller.set_module_states([WheelState(11.2, 0.0), WheelState(5.6, 0.0)] * 2)

    assert sim.wheels[0].drive_output == pytest.approx(1.0)
    assert sim.wheels[1].drive_output == pytest.approx(0.5)


def test_set_module_states_rejects_wrong_count(sim):
    with pytest.raises(ValueError):
        sim.controller.set_module_states([WheelState()] * 3)


def test_controller_requires_four_modules(config):
    modules = [WheelModule(SimulatedWheelHardware(5.6)) for _ in range(3)]
    with pytest.raises(ValueError):
        DriveController(config, modules, HeadingSource(SimulatedHeadingSensor()))


def test_duplicate_module_offsets_refuse_to_start():
    geometry = list(module_geometry(0.5, 0.5))
    geometry[1] = geometry[0]
    with pytest.raises(ConfigurationError):
        SimulatedDrivetrain(DriveConfig(geometry=tuple(geometry)))


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_linear_speed": 0.0},
        {"control_period": -0.02},
        {"calibration_offsets": (0.0, 0.0, 0.0)},
        {"heading_settle_time": 2.0, "heading_calibration_timeout": 1.0},
    ],
)
def test_invalid_config_rejected(overrides):
    with pytest.raises(ConfigurationError):
        DriveConfig(**overrides)


def test_config_variant_limits_wheel_speed(config):
    sim = SimulatedDrivetrain(replace(config, max_linear_speed=2.0))

    sim.controller.drive_velocity(ChassisVelocity(5.6, 0.0, 0.0))
    sim.step()

    for module in sim.controller.modules:
        assert module.get_state().speed == pytest.approx(2.0)


def test_world_relative_uses_last_heading_while_disconnected(sim):
    sim.gyro.set_yaw(math.pi / 2)
    sim.controller.tick()

    sim.gyro.connected = False
    sim.gyro.set_yaw(0.3)
    sim.controller.drive_velocity(ChassisVelocity(1.0, 0.0, 0.0), world_relative=True)
    sim.controller.tick()

    for module in sim.controller.modules:
        assert module.desired_state.speed == pytest.approx(1.0)
        assert module.desired_state.angle == pytest.approx(-math.pi / 2)


def test_module_offset_must_match_config(config):
    offsets = (0.1, -0.2, 0.3, 0.0)
    configured = replace(config, calibration_offsets=offsets)
    wheels = [SimulatedWheelHardware(config.max_linear_speed) for _ in MODULE_NAMES]
    gyro = HeadingSource(SimulatedHeadingSensor())

    mismatched = [WheelModule(wheel, 0.0, config.max_linear_speed, name)
                  for wheel, name in zip(wheels, MODULE_NAMES)]
    with pytest.raises(ConfigurationError, match="front_left"):
        DriveController(configured, mismatched, gyro)

    matched = [WheelModule(wheel, offset, config.max_linear_speed, name)
               for wheel, offset, name in zip(wheels, offsets, MODULE_NAMES)]
    controller = DriveController(configured, matched, gyro)
    assert [m.calibration_offset for m in controller.modules] == list(offsets)

"""Simulated swerve hardware for tests and offline runs.

This module provides stand-ins for the hardware protocols in hardware.py:
- SimulatedWheelHardware: first-order drive and steer response with
  encoder accumulation
- SimulatedHeadingSensor: gyro integrating the true yaw rate, with a
  clockwise-positive option and a connectivity switch
- SimulatedDrivetrain: four simulated modules, a gyro, and a DriveController
  wired from a DriveConfig, plus ground-truth pose integration

The ground-truth motion is computed from the wheels' actual states through
the same kinematic model, so with ideal hardware the odometry estimate and
the true pose agree up to integration error.
"""

import math
from typing import Callable, List, Optional

from .config import DRIVE_METERS_PER_ROTATION, DriveConfig
from .drive import MODULE_NAMES, DriveController
from .geometry import Pose, WheelState, rotate, wrap_angle
from .hardware import Periodic
from .heading import HeadingCalibration, HeadingSource
from .kinematics import SwerveKinematics
from .module import WheelModule


class SimulatedWheelHardware:
    """One simulated module's motors and encoders.

    Drive velocity follows the commanded duty cycle instantly
    (velocity = output * max_linear_speed). The drive encoder counts motor
    rotations and converts them to meters on read, like a real driver. The steer angle either snaps
    to its setpoint or slews toward it at steer_rate rad/s.

    Attributes:
        drive_output: Last commanded drive duty cycle.
        steer_output: Last open-loop steer command.
        steer_setpoint: Last commanded steer position (hardware frame).
    """

    def __init__(
        self,
        max_linear_speed: float,
        initial_steer: float = 0.0,
        steer_rate: Optional[float] = None,
    ):
        """Initialize the simulated module.

        Args:
            max_linear_speed: Speed at full drive output (m/s).
            initial_steer: Raw steer encoder reading at startup (radians).
            steer_rate: Maximum steer slew rate (rad/s); None snaps instantly.
        """
        self.max_linear_speed = max_linear_speed
        self.steer_rate = steer_rate

        self.drive_output: float = 0.0
        self.steer_output: float = 0.0
        self.steer_setpoint: float = initial_steer

        self._drive_rotations: float = 0.0
        self._drive_velocity: float = 0.0
        self._steer_position: float = initial_steer
        self._steer_target: float = initial_steer

    def set_drive_output(self, normalized_speed: float) -> None:
        self.drive_output = normalized_speed

    def set_steer_position(self, radians: float, continuous: bool = True) -> None:
        self.steer_setpoint = radians
        self.steer_output = 0.0
        if continuous:
            # Shortest way around the circle from where the wheel is now
            self._steer_target = self._steer_position + wrap_angle(radians - self._steer_position)
        else:
            self._steer_target = radians
        if self.steer_rate is None:
            self._steer_position = self._steer_target

    def set_steer_output(self, normalized_output: float) -> None:
        self.steer_output = normalized_output
        self._steer_target = self._steer_position

    def get_drive_velocity(self) -> float:
        return self._drive_velocity

    def get_drive_position(self) -> float:
        return self._drive_rotations * DRIVE_METERS_PER_ROTATION

    def get_steer_position(self) -> float:
        return self._steer_position

    def reset_drive_position(self) -> None:
        self._drive_rotations = 0.0

    def step(self, dt: float) -> None:
        """Advance the simulated motors by dt seconds."""
        if self.steer_rate is not None:
            error = self._steer_target - self._steer_position
            max_step = self.steer_rate * dt
            self._steer_position += max(-max_step, min(max_step, error))

        self._drive_velocity = self.drive_output * self.max_linear_speed
        self._drive_rotations += self._drive_velocity * dt / DRIVE_METERS_PER_ROTATION


class SimulatedHeadingSensor:
    """Simulated gyro tracking a true yaw angle.

    Attributes:
        connected: Set False to simulate a dropped sensor.
    """

    def __init__(self, clockwise_positive: bool = True):
        self._sign = -1.0 if clockwise_positive else 1.0
        self.connected: bool = True
        self._yaw: float = 0.0
        self._yaw_rate: float = 0.0
        self._reference: float = 0.0

    def set_yaw(self, yaw: float, yaw_rate: float = 0.0) -> None:
        """Set the true counter-clockwise yaw (radians) and rate (rad/s)."""
        self._yaw = yaw
        self._yaw_rate = yaw_rate

    def get_heading(self) -> float:
        return self._sign * (self._yaw - self._reference)

    def get_rate(self) -> float:
        return self._sign * self._yaw_rate

    def is_connected(self) -> bool:
        return self.connected

    def reset(self) -> None:
        self._reference = self._yaw


class SimulatedDrivetrain:
    """A DriveController wired to simulated hardware, with ground truth.

    Typical loop, once per control period:

        sim.controller.drive(...)   # or drive_velocity / lock / stop
        sim.tick()
        sim.step()

    Attributes:
        config: Drivetrain configuration.
        wheels: Simulated module hardware (FL, FR, BL, BR).
        gyro: Simulated heading sensor.
        controller: The controller under simulation.
        calibration: Startup heading gate, or None when disabled.
        scheduled: Periodic components ticked by tick(), controller first.
        true_pose: Ground-truth pose.
        time: Simulated time (seconds).
    """

    def __init__(
        self,
        config: Optional[DriveConfig] = None,
        steer_rate: Optional[float] = None,
        calibrate_heading: bool = False,
    ):
        """Build the simulated drivetrain.

        Args:
            config: Drivetrain configuration (defaults to DriveConfig.default()).
            steer_rate: Steer slew rate for every module (rad/s); None snaps instantly.
            calibrate_heading: If True, gate world-relative driving on a
                simulated-time HeadingCalibration.
        """
        self.config = config if config is not None else DriveConfig.default()
        self.time: float = 0.0
        self.true_pose = Pose()

        # Raw encoders read the calibration offset when wheels point forward
        self.wheels = [
            SimulatedWheelHardware(self.config.max_linear_speed, offset, steer_rate)
            for offset in self.config.calibration_offsets
        ]
        self.gyro = SimulatedHeadingSensor(clockwise_positive=self.config.heading_inverted)

        heading = HeadingSource(self.gyro, inverted=self.config.heading_inverted)
        self.calibration: Optional[HeadingCalibration] = None
        if calibrate_heading:
            self.calibration = HeadingCalibration(
                heading,
                settle_time=self.config.heading_settle_time,
                timeout=self.config.heading_calibration_timeout,
                stationary_rate=self.config.heading_stationary_rate,
                clock=lambda: self.time,
            )

        modules = [
            WheelModule(hardware, offset, self.config.max_linear_speed, name)
            for hardware, offset, name in zip(
                self.wheels, self.config.calibration_offsets, MODULE_NAMES
            )
        ]
        self.controller = DriveController(self.config, modules, heading, self.calibration)

        # Components ticked once per cycle, in order
        self.scheduled: List[Periodic] = [self.controller]
        self._kinematics = SwerveKinematics(self.config.geometry)

    def tick(self) -> None:
        """End the control cycle for every scheduled component."""
        for component in self.scheduled:
            component.tick()

    def step(self, dt: Optional[float] = None) -> Pose:
        """Advance the simulated hardware and ground truth by one period.

        Args:
            dt: Time step (seconds). Defaults to the control period.

        Returns:
            The new ground-truth pose.
        """
        dt = self.config.control_period if dt is None else dt

        for wheel in self.wheels:
            wheel.step(dt)

        actual = [
            WheelState(
                wheel.get_drive_velocity(),
                wheel.get_steer_position() - offset,
            )
            for wheel, offset in zip(self.wheels, self.config.calibration_offsets)
        ]
        velocity = self._kinematics.to_chassis_velocity(actual)

        # Midpoint heading for the translation over this step
        mid_heading = self.true_pose.heading + 0.5 * velocity.omega * dt
        dx, dy = rotate(velocity.vx * dt, velocity.vy * dt, mid_heading)
        yaw = self.true_pose.heading + velocity.omega * dt

        self.true_pose = Pose(self.true_pose.x + dx, self.true_pose.y + dy, yaw)
        self.gyro.set_yaw(yaw, velocity.omega)
        self.time += dt
        return self.true_pose

    def run(
        self,
        command: Callable[[DriveController, float], None],
        duration: float,
        on_cycle: Optional[Callable[["SimulatedDrivetrain"], None]] = None,
    ) -> Pose:
        """Run a command callback once per control period for duration seconds.

        Args:
            command: Called as command(controller, elapsed) each cycle.
            duration: Simulated seconds to run.
            on_cycle: Optional observer called after every step (e.g. logging).

        Returns:
            The estimated pose at the end of the run.
        """
        start = self.time
        cycles = int(round(duration / self.config.control_period))
        for _ in range(cycles):
            command(self.controller, self.time - start)
            self.tick()
            self.step()
            if on_cycle is not None:
                on_cycle(self)
        return self.controller.get_pose()

    def heading_error(self) -> float:
        """Difference between estimated and true heading (radians)."""
        return wrap_angle(self.controller.get_pose().heading - self.true_pose.heading)

    def position_error(self) -> float:
        """Distance between estimated and true position (meters)."""
        return math.hypot(
            self.controller.get_pose().x - self.true_pose.x,
            self.controller.get_pose().y - self.true_pose.y,
        )

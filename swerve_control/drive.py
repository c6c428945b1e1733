"""Top-level swerve drive controller.

DriveController ties the components into one control cycle:

    intent -> input shaping -> frame conversion -> inverse kinematics
           -> desaturation -> per-module dispatch

and, in the other direction,

    heading + wheel positions -> odometry -> pose estimate

The heading and the four wheel positions are sampled once per cycle into a
SensorSnapshot. That single snapshot feeds both the world-to-vehicle frame
conversion and the odometry update, so the two never disagree about where
the vehicle is pointing. An external scheduler calls tick() once at the end
of every cycle; nothing here blocks or sleeps.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import ConfigurationError, DriveConfig
from .geometry import ChassisVelocity, Pose, WheelPosition, WheelState, wrap_angle
from .heading import CalibrationState, HeadingCalibration, HeadingSource
from .kinematics import SwerveKinematics
from .module import WheelModule
from .odometry import SwerveOdometry
from .shaper import InputShaper

MODULE_NAMES = ("front_left", "front_right", "back_left", "back_right")
"""Module order used by every per-module sequence."""

LOCK_ANGLES = (math.pi / 4, -math.pi / 4, -math.pi / 4, math.pi / 4)
"""X-pattern steer angles (FL, FR, BL, BR) that resist being pushed."""


@dataclass(frozen=True)
class SensorSnapshot:
    """Sensor values sampled together once per control cycle."""

    heading: float
    rate: float
    connected: bool
    positions: Tuple[WheelPosition, ...]


class DriveController:
    """Swerve drivetrain orchestrator.

    Attributes:
        config: Immutable drivetrain configuration.
        modules: The four WheelModules, ordered FL, FR, BL, BR.
        heading: Heading source shared with the calibration gate.
        kinematics: Swerve kinematic model built from config.geometry.
        odometry: Sole owner of the pose estimate.
        calibration: Startup gate for world-relative driving (None = always allowed).
    """

    def __init__(
        self,
        config: DriveConfig,
        modules: Sequence[WheelModule],
        heading: HeadingSource,
        calibration: Optional[HeadingCalibration] = None,
        initial_pose: Optional[Pose] = None,
    ):
        """Initialize the controller.

        Args:
            config: Drivetrain configuration.
            modules: Four modules ordered FL, FR, BL, BR.
            heading: Heading source.
            calibration: Optional startup heading gate, polled from tick().
            initial_pose: Starting pose (defaults to the origin).

        Raises:
            ConfigurationError: If the module geometry is invalid or a module's
                calibration offset differs from config.calibration_offsets.
            ValueError: If the number of modules is not four.
        """
        if len(modules) != len(MODULE_NAMES):
            raise ValueError(f"Expected {len(MODULE_NAMES)} modules, got {len(modules)}")
        for name, module, offset in zip(MODULE_NAMES, modules, config.calibration_offsets):
            if not math.isclose(module.calibration_offset, offset, abs_tol=1e-9):
                raise ConfigurationError(
                    f"{name} calibration offset {module.calibration_offset} does not match "
                    f"configured {offset}"
                )

        self.config = config
        self.modules = list(modules)
        self.heading = heading
        self.calibration = calibration

        # Refuses to start on a singular layout
        self.kinematics = SwerveKinematics(config.geometry)
        self.odometry = SwerveOdometry(self.kinematics, initial_pose)

        # One shaper per axis
        self.x_shaper = InputShaper(config.magnitude_slew_rate, config.control_period)
        self.y_shaper = InputShaper(config.magnitude_slew_rate, config.control_period)
        self.rot_shaper = InputShaper(config.rotational_slew_rate, config.control_period)

        self.max_output: float = 1.0

        # Per-cycle state, cleared by tick()
        self._snapshot: Optional[SensorSnapshot] = None
        self._odometry_advanced: bool = False
        self._fallback_warned: bool = False

    # ------------------------------------------------------------------
    # Per-cycle sampling
    # ------------------------------------------------------------------

    def _sample(self) -> SensorSnapshot:
        """Return this cycle's snapshot, reading the sensors only on first use."""
        if self._snapshot is None:
            connected = self.heading.is_connected()
            self._snapshot = SensorSnapshot(
                heading=self.heading.get_heading(),
                rate=self.heading.get_rate(),
                connected=connected,
                positions=tuple(module.get_position() for module in self.modules),
            )
        return self._snapshot

    def _advance_odometry(self, snapshot: SensorSnapshot) -> None:
        if self._odometry_advanced:
            return
        self.odometry.update(snapshot.heading, snapshot.positions)
        self._odometry_advanced = True

    def tick(self) -> None:
        """Finish the control cycle.

        Advances odometry if no drive command did so this cycle, polls the
        startup heading calibration, and clears the cycle snapshot.
        """
        snapshot = self._sample()
        self._advance_odometry(snapshot)

        if self.calibration is not None:
            was_ready = self.calibration.state is CalibrationState.READY
            if self.calibration.poll() is CalibrationState.READY and not was_ready:
                # Calibration just zeroed the sensor; keep the pose continuous
                self.odometry.rebase_heading(self.heading.get_heading())

        pose = self.odometry.pose
        logging.debug(
            f"pose x={pose.x:.3f} y={pose.y:.3f} heading={pose.heading:.3f} "
            f"gyro={snapshot.heading:.3f} connected={snapshot.connected}"
        )

        self._snapshot = None
        self._odometry_advanced = False

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def drive(self, vx: float, vy: float, omega: float, world_relative: bool) -> None:
        """Drive from normalized driver inputs.

        Args:
            vx: Forward input in [-1, 1].
            vy: Leftward input in [-1, 1].
            omega: Counter-clockwise rotation input in [-1, 1].
            world_relative: True if vx/vy are along fixed world axes.
        """
        vx_shaped = self.x_shaper.shape(vx)
        vy_shaped = self.y_shaper.shape(vy)
        omega_shaped = self.rot_shaper.shape(omega)

        linear_scale = self.config.max_linear_speed * self.max_output
        angular_scale = self.config.max_angular_speed * self.max_output

        self._drive_scaled(
            vx_shaped * linear_scale,
            vy_shaped * linear_scale,
            omega_shaped * angular_scale,
            world_relative,
        )

    def drive_velocity(self, velocity: ChassisVelocity, world_relative: bool = False) -> None:
        """Drive at a chassis velocity in physical units, without input shaping.

        Intended for path followers that already produce smooth m/s commands.

        Args:
            velocity: Desired chassis velocity (m/s, rad/s).
            world_relative: True if velocity.vx/vy are along fixed world axes.
        """
        self._drive_scaled(velocity.vx, velocity.vy, velocity.omega, world_relative)

    def _drive_scaled(self, vx: float, vy: float, omega: float, world_relative: bool) -> None:
        snapshot = self._sample()

        if world_relative and not self._world_relative_allowed():
            world_relative = False

        if world_relative:
            velocity = ChassisVelocity.from_world_relative(vx, vy, omega, snapshot.heading)
        else:
            velocity = ChassisVelocity(vx, vy, omega)

        hold_angles = [module.desired_state.angle for module in self.modules]
        states = self.kinematics.inverse(velocity, hold_angles=hold_angles)
        self.set_module_states(states)

        self._advance_odometry(snapshot)

    def _world_relative_allowed(self) -> bool:
        if self.calibration is None or self.calibration.world_relative_allowed:
            return True
        if not self._fallback_warned:
            logging.warning(
                f"Heading calibration {self.calibration.state.value}; "
                "serving world-relative commands as vehicle-relative"
            )
            self._fallback_warned = True
        return False

    def set_module_states(self, states: Sequence[WheelState]) -> None:
        """Desaturate and dispatch wheel states (FL, FR, BL, BR)."""
        if len(states) != len(self.modules):
            raise ValueError(f"Expected {len(self.modules)} wheel states, got {len(states)}")

        desaturated = SwerveKinematics.desaturate(states, self.config.max_linear_speed)
        for module, state in zip(self.modules, desaturated):
            module.set_desired_state(state)

    def lock(self) -> None:
        """Point the wheels in an X at zero speed.

        Bypasses shaping and kinematics entirely, so it always steers, even
        from a standstill where drive(0, 0, 0) would leave the wheels alone.
        """
        for module, angle in zip(self.modules, LOCK_ANGLES):
            module.set_desired_state(WheelState(0.0, angle))
        self._reset_shapers()

    def stop(self) -> None:
        """Zero all actuator outputs and reset the input shapers."""
        for module in self.modules:
            module.stop()
        self._reset_shapers()

    def _reset_shapers(self) -> None:
        self.x_shaper.reset()
        self.y_shaper.reset()
        self.rot_shaper.reset()

    def set_max_output(self, scale: float) -> None:
        """Scale all driver inputs (e.g. 0.5 for a slow mode).

        Args:
            scale: Fraction of maximum speed in (0, 1].
        """
        if not 0.0 < scale <= 1.0:
            raise ValueError(f"max output must be in (0, 1], got {scale}")
        self.max_output = scale

    # ------------------------------------------------------------------
    # Heading and pose
    # ------------------------------------------------------------------

    def zero_heading(self) -> None:
        """Make the current direction "forward" for world-relative driving.

        The pose estimate is left continuous: odometry adopts the new sensor
        reference instead of jumping its heading. Use reset_pose() to move
        the pose.
        """
        self.heading.zero()
        self.odometry.rebase_heading(self.heading.get_heading())
        self._snapshot = None
        logging.info("Heading zeroed")

    def reset_pose(self, pose: Pose) -> None:
        """Teleport the pose estimate (absolute re-localization)."""
        positions = [module.get_position() for module in self.modules]
        self.odometry.reset_pose(pose, self.heading.get_heading(), positions)
        self._snapshot = None

    def get_pose(self) -> Pose:
        return self.odometry.pose

    def get_heading(self) -> float:
        """Live heading in radians, wrapped to [-pi, pi]."""
        return wrap_angle(self.heading.get_heading())

    def get_turn_rate(self) -> float:
        """Heading rate in rad/s (counter-clockwise positive)."""
        return self.heading.get_rate()

    def is_heading_connected(self) -> bool:
        return self.heading.is_connected()

    # ------------------------------------------------------------------
    # Module feedback
    # ------------------------------------------------------------------

    def get_module_states(self) -> List[WheelState]:
        return [module.get_state() for module in self.modules]

    def get_module_positions(self) -> List[WheelPosition]:
        return [module.get_position() for module in self.modules]

    def get_chassis_velocity(self) -> ChassisVelocity:
        """Measured vehicle-relative chassis velocity from the module states."""
        return self.kinematics.to_chassis_velocity(self.get_module_states())

    def reset_distances(self) -> None:
        """Zero every module's distance counter. Call only while stationary.

        Odometry is re-seeded on the next cycle so the reset is not read
        as motion.
        """
        for module in self.modules:
            module.reset_distance()
        self.odometry.reset_pose(
            self.odometry.pose, self.heading.get_heading(), self.get_module_positions()
        )
        self._snapshot = None

    def get_average_distance(self) -> float:
        """Mean absolute distance travelled by the four modules (meters)."""
        return sum(abs(module.get_position().distance) for module in self.modules) / len(self.modules)

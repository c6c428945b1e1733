"""Hardware capability interfaces for the swerve drive core.

The kinematics, shaping, and odometry logic never talk to a vendor motor or
gyro library directly. Real hardware drivers and the simulated devices in
simulation.py both implement these small protocols, so the core can be
exercised without a robot attached.

All calls are expected to be synchronous, non-blocking register or bus
accesses that complete within one control period.
"""

from typing import Protocol


class WheelHardware(Protocol):
    """Drive and steer actuators plus sensors of one swerve module.

    Units are already converted: drive position in meters, drive velocity
    in m/s, steer position in radians (continuous, not wrapped).
    """

    def set_drive_output(self, normalized_speed: float) -> None:
        """Command the drive motor with a duty cycle in [-1, 1]."""
        ...

    def set_steer_position(self, radians: float, continuous: bool = True) -> None:
        """Command the steer position loop.

        With continuous=True the setpoint is interpreted on a circle, so the
        loop takes the shortest path across the 0/2*pi boundary.
        """
        ...

    def set_steer_output(self, normalized_output: float) -> None:
        """Command the steer motor open-loop (used to stop it)."""
        ...

    def get_drive_velocity(self) -> float:
        ...

    def get_drive_position(self) -> float:
        ...

    def get_steer_position(self) -> float:
        ...

    def reset_drive_position(self) -> None:
        """Zero the cumulative drive distance."""
        ...


class HeadingSensor(Protocol):
    """Single-axis orientation sensor (gyro / IMU yaw)."""

    def get_heading(self) -> float:
        """Continuous (unwrapped) yaw angle in radians, sensor sign convention."""
        ...

    def get_rate(self) -> float:
        """Yaw rate in rad/s, sensor sign convention."""
        ...

    def is_connected(self) -> bool:
        ...

    def reset(self) -> None:
        """Make the current orientation read as zero."""
        ...


class Periodic(Protocol):
    """Component driven once per control cycle by an external scheduler."""

    def tick(self) -> None:
        ...

"""Dead-reckoning pose estimation for the swerve drivetrain.

Each control cycle the odometry receives one sensor snapshot: the heading
and the four wheel positions sampled together. It differences them against
the previous snapshot, solves forward kinematics for the vehicle-frame
displacement, rotates that displacement into the world frame using the
heading at the start of the interval, and accumulates it into the pose.

The heading component of the pose comes from the heading sensor (plus a
fixed offset captured at the last reset), not from integrating the
kinematic rotation, since the gyro is far more accurate than wheel slip.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

from .geometry import Pose, WheelPosition, rotate, wrap_angle
from .kinematics import SwerveKinematics


class OdometryState(Enum):
    """Whether a previous sample exists to difference against."""

    UNINITIALIZED = "uninitialized"
    TRACKING = "tracking"


class SwerveOdometry:
    """Pose integrator with explicit Uninitialized/Tracking states.

    Only this class mutates the pose; other components read it through
    the pose property.

    Attributes:
        kinematics: Geometry used for forward kinematics.
        state: Current OdometryState.
    """

    def __init__(self, kinematics: SwerveKinematics, initial_pose: Optional[Pose] = None):
        self.kinematics = kinematics
        self.state = OdometryState.UNINITIALIZED
        self._pose = initial_pose if initial_pose is not None else Pose()

        # Wheel positions from the previous snapshot
        self._prev_positions: List[WheelPosition] = []

        # pose.heading = sensor heading + offset
        self._heading_offset = 0.0

    @property
    def pose(self) -> Pose:
        return self._pose

    def _seed(self, heading: float, positions: Sequence[WheelPosition]) -> None:
        self._prev_positions = list(positions)
        self._heading_offset = self._pose.heading - heading
        self.state = OdometryState.TRACKING

    def update(self, heading: float, positions: Sequence[WheelPosition]) -> Pose:
        """Integrate one sensor snapshot into the pose.

        The first call after construction or an unsampled reset only seeds
        the snapshot and leaves the pose unchanged.

        Args:
            heading: Sensor heading (radians, counter-clockwise positive), sampled once this cycle.
            positions: The four wheel positions sampled in the same snapshot.

        Returns:
            The updated pose.
        """
        if len(positions) != len(self.kinematics.geometry):
            raise ValueError(
                f"Expected {len(self.kinematics.geometry)} wheel positions, got {len(positions)}"
            )

        if self.state is OdometryState.UNINITIALIZED:
            self._seed(heading, positions)
            return self._pose

        deltas = [
            WheelPosition(current.distance - previous.distance, current.angle)
            for current, previous in zip(positions, self._prev_positions)
        ]
        twist = self.kinematics.forward(deltas)

        # Rotate by the heading at the start of the interval
        start_heading = self._pose.heading
        dx_world, dy_world = rotate(twist.dx, twist.dy, start_heading)

        self._pose = Pose(
            self._pose.x + dx_world,
            self._pose.y + dy_world,
            wrap_angle(heading + self._heading_offset),
        )
        self._prev_positions = list(positions)
        return self._pose

    def reset_pose(
        self,
        pose: Pose,
        heading: Optional[float] = None,
        positions: Optional[Sequence[WheelPosition]] = None,
    ) -> None:
        """Overwrite the pose and re-seed the snapshot in one step.

        Args:
            pose: New absolute pose.
            heading: Heading sampled now. Required together with positions
                to re-seed immediately.
            positions: Wheel positions sampled now.

        If no sample is supplied, the odometry returns to UNINITIALIZED and
        the next update() seeds from its own snapshot.
        """
        self._pose = pose
        if heading is not None and positions is not None:
            self._seed(heading, positions)
        else:
            self.state = OdometryState.UNINITIALIZED
        logging.info(f"Odometry reset to x={pose.x:.3f} y={pose.y:.3f} heading={pose.heading:.3f}")

    def rebase_heading(self, heading: float) -> None:
        """Adopt a new sensor heading reference without moving the pose.

        Called after the heading sensor has been re-zeroed so the next
        update does not see a jump in heading.

        Args:
            heading: Sensor heading read immediately after re-zeroing.
        """
        self._heading_offset = self._pose.heading - heading

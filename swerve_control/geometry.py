"""Data model shared by the swerve drive components.

All values are immutable. Conventions:
- Vehicle frame: x forward, y left, angles counter-clockwise positive.
- World frame: fixed at the last pose reset, same handedness.
- Module order is always front-left, front-right, back-left, back-right.
"""

import math
from dataclasses import dataclass
from typing import Tuple


def wrap_angle(angle: float) -> float:
    """Wrap an angle to [-pi, pi].

    Args:
        angle: Angle in radians, any range

    Returns:
        Equivalent angle in [-pi, pi]
    """
    return math.atan2(math.sin(angle), math.cos(angle))


def rotate(x: float, y: float, angle: float) -> Tuple[float, float]:
    """Rotate a 2-D vector counter-clockwise by angle (radians)."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return x * cos_a - y * sin_a, x * sin_a + y * cos_a


@dataclass(frozen=True)
class WheelGeometry:
    """Fixed offset of a module's steering axis from vehicle centre (meters)."""

    x: float
    y: float

    def distance_to(self, other: "WheelGeometry") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class ChassisVelocity:
    """Desired or measured chassis motion.

    The frame (vehicle or world relative) is carried separately by the
    caller, never inside the value.

    Attributes:
        vx: Forward velocity (m/s)
        vy: Leftward velocity (m/s)
        omega: Counter-clockwise angular velocity (rad/s)
    """

    vx: float = 0.0
    vy: float = 0.0
    omega: float = 0.0

    @classmethod
    def from_world_relative(
        cls, vx: float, vy: float, omega: float, heading: float
    ) -> "ChassisVelocity":
        """Convert world-frame linear velocity into the vehicle frame.

        Args:
            vx: World-frame x velocity (m/s)
            vy: World-frame y velocity (m/s)
            omega: Angular velocity (rad/s), frame independent
            heading: Vehicle heading in the world frame (radians)

        Returns:
            Vehicle-relative chassis velocity
        """
        vehicle_vx, vehicle_vy = rotate(vx, vy, -heading)
        return cls(vehicle_vx, vehicle_vy, omega)

    def is_zero(self) -> bool:
        return self.vx == 0.0 and self.vy == 0.0 and self.omega == 0.0


@dataclass(frozen=True)
class WheelState:
    """Wheel speed (signed m/s) and steer angle (radians)."""

    speed: float = 0.0
    angle: float = 0.0


@dataclass(frozen=True)
class WheelPosition:
    """Cumulative signed wheel travel (meters) and steer angle (radians)."""

    distance: float = 0.0
    angle: float = 0.0


@dataclass(frozen=True)
class Twist:
    """Vehicle-frame displacement over one odometry interval."""

    dx: float = 0.0
    dy: float = 0.0
    dtheta: float = 0.0


@dataclass(frozen=True)
class Pose:
    """Estimated vehicle position (meters) and heading (radians) in the world frame."""

    x: float = 0.0
    y: float = 0.0
    heading: float = 0.0

    def distance_to(self, other: "Pose") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

"""
Swerve drive kinematic model.

This module converts between chassis motion and the four wheel vectors of a
swerve drivetrain. For a module mounted at offset (x, y) from the vehicle
centre, rigid-body motion gives the wheel velocity vector

    v_wheel = (vx - omega * y, vy + omega * x)

Stacking that relation for all four modules gives an 8x3 matrix M with

    [v1x, v1y, ..., v4x, v4y]^T = M @ [vx, vy, omega]^T

The inverse direction (wheel vectors to chassis motion) is overdetermined,
so it is solved in the least-squares sense with the pseudoinverse of M.
"""

import math
from typing import List, Optional, Sequence

import numpy as np

from .config import ConfigurationError
from .geometry import ChassisVelocity, Twist, WheelGeometry, WheelPosition, WheelState

MIN_MODULE_SEPARATION = 1e-9
"""Offsets closer than this (meters) are treated as duplicates."""


class SwerveKinematics:
    """Inverse and forward kinematics for a four-module swerve drivetrain.

    The geometry matrix and its pseudoinverse are computed once at
    construction; every method is otherwise a pure function of its inputs.

    Attributes:
        geometry: Module offsets, ordered FL, FR, BL, BR.
    """

    def __init__(self, geometry: Sequence[WheelGeometry]):
        """Validate the module layout and precompute the kinematics matrices.

        Args:
            geometry: Four module offsets from the vehicle centre (meters).

        Raises:
            ConfigurationError: If there are not exactly four offsets, two
                offsets coincide, or the layout cannot resolve rotation.
        """
        if len(geometry) != 4:
            raise ConfigurationError(f"Swerve kinematics needs 4 modules, got {len(geometry)}")

        for i in range(len(geometry)):
            for j in range(i + 1, len(geometry)):
                if geometry[i].distance_to(geometry[j]) < MIN_MODULE_SEPARATION:
                    raise ConfigurationError(
                        f"Modules {i} and {j} share the same offset "
                        f"({geometry[i].x:.4f}, {geometry[i].y:.4f})"
                    )

        self.geometry = tuple(geometry)

        # Rows (1, 0, -y) and (0, 1, x) per module
        self._matrix = np.zeros((2 * len(geometry), 3))
        for i, offset in enumerate(geometry):
            self._matrix[2 * i] = [1.0, 0.0, -offset.y]
            self._matrix[2 * i + 1] = [0.0, 1.0, offset.x]

        if np.linalg.matrix_rank(self._matrix) < 3:
            raise ConfigurationError("Module layout is singular: chassis rotation is unobservable")

        self._pseudoinverse = np.linalg.pinv(self._matrix)

    def inverse(
        self,
        velocity: ChassisVelocity,
        hold_angles: Optional[Sequence[float]] = None,
    ) -> List[WheelState]:
        """Compute the four wheel states for a vehicle-relative chassis velocity.

        Args:
            velocity: Desired chassis velocity in the vehicle frame.
            hold_angles: Angles to keep when the velocity is exactly zero.
                Without them a zero command would re-steer every wheel to 0.

        Returns:
            Wheel states ordered FL, FR, BL, BR. Speeds are non-negative
            vector magnitudes and are not yet desaturated.
        """
        if velocity.is_zero() and hold_angles is not None:
            return [WheelState(0.0, angle) for angle in hold_angles]

        states = []
        for offset in self.geometry:
            wheel_vx = velocity.vx - velocity.omega * offset.y
            wheel_vy = velocity.vy + velocity.omega * offset.x
            states.append(WheelState(math.hypot(wheel_vx, wheel_vy), math.atan2(wheel_vy, wheel_vx)))
        return states

    @staticmethod
    def desaturate(states: Sequence[WheelState], max_speed: float) -> List[WheelState]:
        """Scale all wheel speeds uniformly so none exceeds max_speed.

        Speed ratios between wheels (and therefore the turning radius) are
        preserved, and angles are never altered.

        Args:
            states: Wheel states to normalize.
            max_speed: Physical maximum wheel speed (m/s).

        Returns:
            New list of wheel states with |speed| <= max_speed.
        """
        peak = max((abs(state.speed) for state in states), default=0.0)
        if peak <= max_speed:
            return list(states)

        scale = max_speed / peak
        return [WheelState(state.speed * scale, state.angle) for state in states]

    def forward(self, deltas: Sequence[WheelPosition]) -> Twist:
        """Estimate the vehicle-frame displacement from per-wheel travel.

        Each wheel contributes the vector (distance * cos(angle),
        distance * sin(angle)); the least-squares chassis displacement is
        recovered through the pseudoinverse. When wheels slip or disagree
        this is a best-fit estimate, not an exact inverse.

        Args:
            deltas: Per-wheel distance travelled since the last sample and
                the wheel angle over that interval.

        Returns:
            Vehicle-frame displacement (dx, dy, dtheta).
        """
        dx, dy, dtheta = self._solve(
            [(delta.distance, delta.angle) for delta in deltas]
        )
        return Twist(dx, dy, dtheta)

    def to_chassis_velocity(self, states: Sequence[WheelState]) -> ChassisVelocity:
        """Estimate the vehicle-relative chassis velocity from measured wheel states."""
        vx, vy, omega = self._solve([(state.speed, state.angle) for state in states])
        return ChassisVelocity(vx, vy, omega)

    def _solve(self, vectors: Sequence[tuple]) -> tuple:
        if len(vectors) != len(self.geometry):
            raise ValueError(f"Expected {len(self.geometry)} wheel values, got {len(vectors)}")

        wheel_vector = np.empty(2 * len(vectors))
        for i, (magnitude, angle) in enumerate(vectors):
            wheel_vector[2 * i] = magnitude * math.cos(angle)
            wheel_vector[2 * i + 1] = magnitude * math.sin(angle)

        chassis = self._pseudoinverse @ wheel_vector
        return float(chassis[0]), float(chassis[1]), float(chassis[2])

"""Configuration parameters for the swerve drive control core.

This module centralizes all configuration parameters including:
- Physical drivetrain geometry
- Velocity limits
- Input shaping (slew rate) limits
- Per-module calibration offsets
- Startup heading calibration timing
- Visualization and terminal colors

All parameters are documented with their purpose and origin. The constants
are gathered into an immutable DriveConfig value by DriveConfig.default();
every component receives that value through its constructor and never reads
this module directly at runtime.
"""

import math
from dataclasses import dataclass, field
from typing import Tuple

from .geometry import WheelGeometry


class ConfigurationError(ValueError):
    """Raised when a drivetrain configuration cannot produce defined motion."""


# ============================================================================
# Physical Drivetrain Parameters
# ============================================================================

WHEELBASE = 0.5715
"""Distance between front and back module axles (meters).
22.5 inches, measured centre-to-centre of the steering axes."""

TRACKWIDTH = 0.5715
"""Distance between left and right modules (meters).
22.5 inches, measured centre-to-centre of the steering axes."""

WHEEL_DIAMETER = 0.0762
"""Drive wheel diameter (meters). 3 inch wheels."""

DRIVE_GEAR_RATIO = 4.71
"""Drive motor rotations per wheel rotation (fast gearing)."""

DRIVE_METERS_PER_ROTATION = math.pi * WHEEL_DIAMETER / DRIVE_GEAR_RATIO
"""Wheel travel per drive motor rotation (meters).
Conversion factor applied by the drive encoder before reporting meters."""


# ============================================================================
# Velocity Limits
# ============================================================================

MAX_LINEAR_SPEED = 5.6
"""Maximum wheel and chassis linear speed (m/s).

Theoretical free speed of the drive motor through the fast gearing. Every
wheel speed sent to hardware is desaturated to this value, and drive
outputs are normalized against it.
"""

MAX_ANGULAR_SPEED = 2.0 * math.pi
"""Maximum chassis angular speed (rad/s). One full rotation per second."""


# ============================================================================
# Input Shaping (Slew Rate Limits)
# ============================================================================

MAGNITUDE_SLEW_RATE = 1.8
"""Maximum rate of change of the translation inputs (fraction per second).

Applied independently to the forward and strafe axes on the normalized
[-1, 1] input. 1.8 takes an axis from 0 to full output in ~0.56 s, which
keeps a tall robot from tipping on instantaneous full-power reversals.
"""

ROTATIONAL_SLEW_RATE = 2.0
"""Maximum rate of change of the rotation input (fraction per second)."""

CONTROL_PERIOD = 0.02
"""Control loop period (seconds). The external scheduler runs at 50 Hz."""


# ============================================================================
# Module Calibration
# ============================================================================

FRONT_LEFT_OFFSET = 0.0
"""Front-left steer calibration offset (radians).

Point all wheels straight forward, read each module's raw steer angle and
store it here. Angle zero then means "wheel points along vehicle forward".
"""

FRONT_RIGHT_OFFSET = 0.0
"""Front-right steer calibration offset (radians)."""

BACK_LEFT_OFFSET = 0.0
"""Back-left steer calibration offset (radians)."""

BACK_RIGHT_OFFSET = 0.0
"""Back-right steer calibration offset (radians)."""


# ============================================================================
# Heading Sensor
# ============================================================================

HEADING_INVERTED = True
"""Whether the heading sensor reports clockwise-positive angles.

The navX-style gyro reports clockwise-positive yaw, while the kinematics
use counter-clockwise-positive angles, so readings are negated.
"""

HEADING_SETTLE_TIME = 1.0
"""Time the heading sensor must stay connected before it is zeroed (seconds).

The vehicle must be stationary during this window.
"""

HEADING_CALIBRATION_TIMEOUT = 5.0
"""Maximum time to wait for startup heading calibration (seconds).

If calibration has not completed within this window, world-relative
driving is disabled and all commands are served vehicle-relative.
"""

HEADING_STATIONARY_RATE = 0.05
"""Largest yaw rate (rad/s) still counted as stationary during calibration.

Any faster reading restarts the settle window, so the heading is never
zeroed while the vehicle is turning.
"""


# ============================================================================
# Visualization Colors
# ============================================================================

PLOT_ORANGE = "#f74823"
"""Primary plot color - measured data, estimated trajectory."""

PLOT_BLUE = "#2374f7"
"""Secondary plot color - ground truth, reference data."""

PLOT_CREAM = "#fffdee"
"""Light color for text and labels on dark backgrounds."""

PLOT_TAUPE = "#686a5f"
"""Neutral color for guides, grids, and secondary elements."""

PLOT_YELLOW_ORANGE = "#ffa726"
"""Accent color for highlights."""

PLOT_DARK_BLUE = "#0d1b2a"
"""Dark background color for plots."""

# Terminal color codes (ANSI escape sequences)
TERM_ORANGE = "\033[38;2;247;72;35m"
"""Terminal color code for orange (RGB: 247, 72, 35)."""

TERM_BLUE = "\033[38;2;35;116;247m"
"""Terminal color code for blue (RGB: 35, 116, 247)."""

TERM_RESET = "\033[0m"
"""Terminal color reset code."""


# ============================================================================
# Immutable Configuration Value
# ============================================================================


def module_geometry(wheelbase: float, trackwidth: float) -> Tuple[WheelGeometry, ...]:
    """Build the four module offsets for a rectangular drivetrain.

    Args:
        wheelbase: Front-to-back distance between modules (meters)
        trackwidth: Left-to-right distance between modules (meters)

    Returns:
        Offsets ordered front-left, front-right, back-left, back-right
        (x forward, y left).
    """
    half_base = wheelbase / 2.0
    half_track = trackwidth / 2.0
    return (
        WheelGeometry(half_base, half_track),
        WheelGeometry(half_base, -half_track),
        WheelGeometry(-half_base, half_track),
        WheelGeometry(-half_base, -half_track),
    )


@dataclass(frozen=True)
class DriveConfig:
    """Drivetrain constants supplied to every component at construction.

    Attributes:
        geometry: Module offsets from vehicle centre (FL, FR, BL, BR).
        calibration_offsets: Steer calibration offsets in radians (FL, FR, BL, BR).
        max_linear_speed: Maximum wheel speed (m/s).
        max_angular_speed: Maximum chassis rotation rate (rad/s).
        magnitude_slew_rate: Translation input slew rate (fraction per second).
        rotational_slew_rate: Rotation input slew rate (fraction per second).
        control_period: Control loop period (seconds).
        heading_inverted: Negate heading sensor readings.
        heading_settle_time: Startup settle time before zeroing heading (s).
        heading_calibration_timeout: Startup calibration deadline (s).
        heading_stationary_rate: Yaw rate limit for the settle window (rad/s).
    """

    geometry: Tuple[WheelGeometry, ...] = field(
        default_factory=lambda: module_geometry(WHEELBASE, TRACKWIDTH)
    )
    calibration_offsets: Tuple[float, ...] = (
        FRONT_LEFT_OFFSET,
        FRONT_RIGHT_OFFSET,
        BACK_LEFT_OFFSET,
        BACK_RIGHT_OFFSET,
    )
    max_linear_speed: float = MAX_LINEAR_SPEED
    max_angular_speed: float = MAX_ANGULAR_SPEED
    magnitude_slew_rate: float = MAGNITUDE_SLEW_RATE
    rotational_slew_rate: float = ROTATIONAL_SLEW_RATE
    control_period: float = CONTROL_PERIOD
    heading_inverted: bool = HEADING_INVERTED
    heading_settle_time: float = HEADING_SETTLE_TIME
    heading_calibration_timeout: float = HEADING_CALIBRATION_TIMEOUT
    heading_stationary_rate: float = HEADING_STATIONARY_RATE

    def __post_init__(self) -> None:
        if len(self.geometry) != 4:
            raise ConfigurationError(
                f"Expected 4 module offsets, got {len(self.geometry)}"
            )
        if len(self.calibration_offsets) != 4:
            raise ConfigurationError(
                f"Expected 4 calibration offsets, got {len(self.calibration_offsets)}"
            )
        positive = {
            "max_linear_speed": self.max_linear_speed,
            "max_angular_speed": self.max_angular_speed,
            "magnitude_slew_rate": self.magnitude_slew_rate,
            "rotational_slew_rate": self.rotational_slew_rate,
            "control_period": self.control_period,
            "heading_stationary_rate": self.heading_stationary_rate,
        }
        for name, value in positive.items():
            if not value > 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if self.heading_calibration_timeout < self.heading_settle_time:
            raise ConfigurationError(
                "heading_calibration_timeout must not be shorter than heading_settle_time"
            )

    @classmethod
    def default(cls) -> "DriveConfig":
        """Build the configuration from this module's constants."""
        return cls()

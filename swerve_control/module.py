"""Single swerve module control.

A WheelModule owns one wheel's drive and steer hardware. It translates
vehicle-frame wheel states into actuator commands by:
- Adding the module's calibration offset (vehicle frame -> hardware frame)
- Optimizing the target so the wheel never rotates more than 90 degrees
- Normalizing drive speed against the maximum linear speed

It is purely reactive: each call is a fresh command, with no retries.
Loss of steer feedback is not detectable here; the motor controller's own
watchdog cuts output on stale commands.
"""

import math

from .config import MAX_LINEAR_SPEED
from .geometry import WheelPosition, WheelState, wrap_angle
from .hardware import WheelHardware

TWO_PI = 2.0 * math.pi


def optimize(desired: WheelState, current_angle: float) -> WheelState:
    """Choose the equivalent wheel state needing the smallest steer rotation.

    If reaching the desired angle takes more than 90 degrees of rotation,
    the wheel is instead pointed 180 degrees away and driven in reverse.

    Args:
        desired: Target speed and angle (radians).
        current_angle: Current steer angle (radians), any range.

    Returns:
        Equivalent state whose angle is within pi/2 of current_angle
        (modulo 2*pi).
    """
    delta = wrap_angle(desired.angle - current_angle)
    if abs(delta) > math.pi / 2:
        return WheelState(-desired.speed, wrap_angle(desired.angle + math.pi))
    return desired


class WheelModule:
    """One swerve module: drive motor, steer motor, and their encoders.

    Attributes:
        name: Module label used in log messages (e.g. "front_left").
        hardware: Actuator and sensor interface.
        calibration_offset: Raw steer angle at which the wheel points forward (rad).
        max_linear_speed: Speed corresponding to full drive output (m/s).
    """

    def __init__(
        self,
        hardware: WheelHardware,
        calibration_offset: float = 0.0,
        max_linear_speed: float = MAX_LINEAR_SPEED,
        name: str = "module",
    ):
        self.name = name
        self.hardware = hardware
        self.calibration_offset = calibration_offset
        self.max_linear_speed = max_linear_speed
        self._desired_state = WheelState(0.0, 0.0)

    @property
    def desired_state(self) -> WheelState:
        """Last requested vehicle-frame state, before offset and optimization."""
        return self._desired_state

    def set_desired_state(self, state: WheelState) -> None:
        """Command the module toward a vehicle-frame wheel state.

        Args:
            state: Desired speed (m/s) and angle (radians, vehicle frame).
        """
        corrected = WheelState(state.speed, state.angle + self.calibration_offset)
        optimized = optimize(corrected, self.hardware.get_steer_position())

        output = optimized.speed / self.max_linear_speed
        self.hardware.set_drive_output(max(-1.0, min(1.0, output)))
        self.hardware.set_steer_position(optimized.angle % TWO_PI, continuous=True)

        self._desired_state = state

    def get_state(self) -> WheelState:
        """Measured speed (m/s) and vehicle-frame angle (radians)."""
        return WheelState(self.hardware.get_drive_velocity(), self._vehicle_angle())

    def get_position(self) -> WheelPosition:
        """Cumulative distance (m) and vehicle-frame angle (radians)."""
        return WheelPosition(self.hardware.get_drive_position(), self._vehicle_angle())

    def reset_distance(self) -> None:
        """Zero the distance counter. Only valid while the module is stationary."""
        self.hardware.reset_drive_position()

    def stop(self) -> None:
        """Zero output to both motors."""
        self.hardware.set_drive_output(0.0)
        self.hardware.set_steer_output(0.0)

    def _vehicle_angle(self) -> float:
        return wrap_angle(self.hardware.get_steer_position() - self.calibration_offset)

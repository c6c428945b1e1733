"""Heading source and startup heading calibration.

HeadingSource wraps the gyro: it applies the sign convention, keeps the
last known reading when the sensor drops out, and reports connectivity.

HeadingCalibration replaces a detached "sleep then zero" startup thread
with an explicit readiness gate. It is polled once per control cycle and
either zeroes the heading once the sensor has settled (READY) or gives up
after a bounded timeout (FALLBACK), in which case world-relative driving
stays disabled.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from .hardware import HeadingSensor


class HeadingSource:
    """Counter-clockwise-positive heading with last-known-value fallback.

    A disconnected sensor is not an error: the last heading read while
    connected is returned and the rate reads as zero. Callers decide what
    to do with the is_connected() flag.
    """

    def __init__(self, sensor: HeadingSensor, inverted: bool = True):
        """Initialize the heading source.

        Args:
            sensor: Underlying gyro.
            inverted: True if the sensor reports clockwise-positive angles.
        """
        self.sensor = sensor
        self._sign = -1.0 if inverted else 1.0
        self._last_heading = 0.0
        self._connected = True

    def _check_connection(self) -> bool:
        connected = bool(self.sensor.is_connected())
        if connected != self._connected:
            if connected:
                logging.warning("Heading sensor reconnected")
            else:
                logging.warning(
                    f"Heading sensor disconnected, holding last heading {self._last_heading:.3f} rad"
                )
            self._connected = connected
        return connected

    def get_heading(self) -> float:
        """Continuous heading in radians (counter-clockwise positive)."""
        if self._check_connection():
            self._last_heading = self._sign * self.sensor.get_heading()
        return self._last_heading

    def get_rate(self) -> float:
        """Heading rate in rad/s, zero while disconnected."""
        if not self._check_connection():
            return 0.0
        return self._sign * self.sensor.get_rate()

    def is_connected(self) -> bool:
        return self._check_connection()

    def zero(self) -> None:
        """Re-zero the sensor so the current orientation reads as heading 0."""
        self.sensor.reset()
        self._last_heading = 0.0


class CalibrationState(Enum):
    """Startup heading calibration progress."""

    PENDING = "pending"
    READY = "ready"
    FALLBACK = "fallback"


class HeadingCalibration:
    """Polled initialization barrier for the heading reference.

    The scheduler calls poll() every cycle (DriveController.tick() does this).
    Calibration succeeds once the sensor has been continuously connected
    and stationary (|rate| <= stationary_rate) for settle_time seconds; the
    heading is then zeroed. If that has not happened within timeout seconds
    of the first poll, the gate falls back and world-relative commands are
    served vehicle-relative.

    Attributes:
        state: Current CalibrationState.
    """

    def __init__(
        self,
        heading: HeadingSource,
        settle_time: float = 1.0,
        timeout: float = 5.0,
        stationary_rate: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the gate.

        Args:
            heading: Heading source to zero once settled.
            settle_time: Required connected, stationary time (seconds).
            timeout: Deadline for calibration (seconds), measured from the first poll.
            stationary_rate: Largest |yaw rate| (rad/s) that counts as stationary.
            clock: Monotonic time source (seconds), injectable for tests.
        """
        self.heading = heading
        self.settle_time = settle_time
        self.timeout = timeout
        self.stationary_rate = stationary_rate
        self._clock = clock
        self.state = CalibrationState.PENDING
        self._start_time: Optional[float] = None
        self._settled_since: Optional[float] = None

    @property
    def world_relative_allowed(self) -> bool:
        """True once the heading reference can be trusted."""
        return self.state is CalibrationState.READY

    def poll(self) -> CalibrationState:
        """Advance the calibration state machine; never blocks.

        Returns:
            The state after this poll.
        """
        if self.state is not CalibrationState.PENDING:
            return self.state

        now = self._clock()
        if self._start_time is None:
            self._start_time = now

        if self.heading.is_connected() and abs(self.heading.get_rate()) <= self.stationary_rate:
            if self._settled_since is None:
                self._settled_since = now
            if now - self._settled_since >= self.settle_time:
                self.heading.zero()
                self.state = CalibrationState.READY
                logging.info(f"✓ Heading calibration complete after {now - self._start_time:.2f}s")
                return self.state
        else:
            # Dropout or rotation restarts the settle window
            self._settled_since = None

        if now - self._start_time >= self.timeout:
            self.state = CalibrationState.FALLBACK
            logging.error(
                f"Heading calibration did not complete within {self.timeout:.1f}s; "
                "world-relative driving disabled"
            )

        return self.state

    def force_ready(self) -> None:
        """Mark the heading reference as trusted (e.g. after a manual zero)."""
        self.state = CalibrationState.READY

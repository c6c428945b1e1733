"""Input shaping for driver commands.

Each drive axis (forward, strafe, rotation) gets its own slew-rate limiter
so a full-power reversal on the sticks turns into a bounded ramp. This
limits how fast commanded acceleration changes, independent of the
magnitude requested, which keeps a tall vehicle from tipping.
"""

from typing import Optional


class InputShaper:
    """Per-axis slew-rate limiter.

    Every call to shape() moves the output toward the target by at most
    max_rate * dt and never past the target.

    Attributes:
        max_rate: Maximum change of the output per second (units/s).
        period: Default time step per call (seconds).
    """

    def __init__(self, max_rate: float, period: float = 0.02, initial_value: float = 0.0):
        """Initialize the shaper.

        Args:
            max_rate: Maximum rate of change (units per second). Must be positive.
            period: Control period used when shape() is called without dt.
            initial_value: Output value before the first call.

        Raises:
            ValueError: If max_rate or period is not positive.
        """
        if max_rate <= 0:
            raise ValueError(f"max_rate must be positive, got {max_rate}")
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")

        self.max_rate = max_rate
        self.period = period
        self._value = initial_value

    @property
    def value(self) -> float:
        """Most recent shaped output."""
        return self._value

    def shape(self, target: float, dt: Optional[float] = None) -> float:
        """Advance one control cycle toward target.

        Args:
            target: Requested value this cycle.
            dt: Elapsed time (seconds). Defaults to the configured period.

        Returns:
            Shaped output, within max_rate * dt of the previous output.
        """
        step = self.max_rate * (self.period if dt is None else max(dt, 0.0))
        delta = target - self._value

        # Clamp the change to the allowed step in either direction
        self._value += max(-step, min(step, delta))
        return self._value

    def reset(self, value: float = 0.0) -> None:
        """Jump the output to value without rate limiting."""
        self._value = value

"""Tests for the per-axis slew-rate limiter."""

import pytest

from swerve_control.shaper import InputShaper


def test_step_is_bounded_by_rate():
    shaper = InputShaper(max_rate=1.8, period=0.02)

    assert shaper.shape(1.0) == pytest.approx(0.036)
    assert shaper.shape(1.0) == pytest.approx(0.072)


def test_never_overshoots_target():
    shaper = InputShaper(max_rate=2.0, period=0.02)
    outputs = [shaper.shape(0.05) for _ in range(5)]

    assert outputs[0] == pytest.approx(0.04)
    assert all(value == pytest.approx(0.05) for value in outputs[1:])


def test_reversal_ramps_through_zero():
    shaper = InputShaper(max_rate=1.8, period=0.02, initial_value=1.0)
    previous = shaper.value
    for _ in range(200):
        value = shaper.shape(-1.0)
        assert abs(value - previous) <= 1.8 * 0.02 + 1e-12
        previous = value
    assert previous == pytest.approx(-1.0)


def test_explicit_dt_overrides_period():
    shaper = InputShaper(max_rate=1.0, period=0.02)
    assert shaper.shape(1.0, dt=0.5) == pytest.approx(0.5)
    # Negative elapsed time does not move the output
    assert shaper.shape(1.0, dt=-1.0) == pytest.approx(0.5)


def test_reset_jumps_without_rate_limit():
    shaper = InputShaper(max_rate=1.0)
    shaper.shape(1.0)
    shaper.reset()
    assert shaper.value == 0.0
    shaper.reset(0.7)
    assert shaper.value == 0.7


@pytest.mark.parametrize("rate,period", [(0.0, 0.02), (-1.0, 0.02), (1.0, 0.0)])
def test_invalid_parameters_rejected(rate, period):
    with pytest.raises(ValueError):
        InputShaper(rate, period)

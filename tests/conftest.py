"""Shared fixtures for the swerve_control test suite."""

import matplotlib

matplotlib.use("Agg")

import pytest

from swerve_control.config import DriveConfig
from swerve_control.kinematics import SwerveKinematics
from swerve_control.simulation import SimulatedDrivetrain


@pytest.fixture
def config():
    return DriveConfig.default()


@pytest.fixture
def kinematics(config):
    return SwerveKinematics(config.geometry)


@pytest.fixture
def sim():
    """Drivetrain with instant steering and no calibration gate."""
    return SimulatedDrivetrain()

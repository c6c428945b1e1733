"""Swerve Control - Four-Module Swerve Drivetrain Control and Odometry

A control layer for a four-wheel swerve drive: every wheel is independently
driven and steered, so the vehicle can translate in any direction while
rotating.

## Architecture Overview

Each control cycle runs one pipeline from operator intent to actuators:

### Input Shaping (shaper.py)
Rate-limits each normalized driver axis (forward, left, rotation).
- Magnitude and rotational slew rates per second
- Reset on stop() and lock()

### Frame Conversion and Inverse Kinematics (kinematics.py)
Rotates world-relative commands into the vehicle frame using the cycle's
heading sample, then computes per-wheel speed and angle.
- Wheel vector: (vx - omega*y, vy + omega*x)
- Desaturation: uniform scaling when any wheel exceeds maximum speed
- Zero command leaves wheel angles where they are

### Module Control (module.py)
Applies the steer calibration offset and the angle optimization rule
(never rotate a wheel more than 90 degrees; reverse drive instead).

### Odometry (odometry.py)
Integrates wheel position deltas through forward kinematics, rotated by the
heading at the start of each interval.

### Heading (heading.py)
Gyro sign convention, disconnect handling, and the startup calibration gate
that enables world-relative driving.

## Modules

### Core Control Modules
- `config.py` - Drivetrain constants and the validated DriveConfig
- `geometry.py` - Angles, rotations, and value types (poses, wheel states)
- `kinematics.py` - Inverse/forward kinematics and desaturation
- `module.py` - Single swerve module control
- `odometry.py` - Pose estimation from wheel positions and heading
- `shaper.py` - Slew-rate limited driver inputs
- `heading.py` - Heading source and startup calibration
- `hardware.py` - Actuator and sensor interfaces
- `drive.py` - DriveController orchestrating one control cycle

### Simulation & Data
- `simulation.py` - Simulated module hardware, gyro, and drivetrain with ground truth
- `runner.py` - Scenario runner and logging setup
- `data_collector.py` - CSV data logging for commands, poses, and module states

### Visualization
- `plot_styles.py` - Shared plotting utilities and color scheme
- `visualization.py` - Trajectory and module state plots
- `plot_results.py` - CLI to list runs with their odometry error and plot one

## Quick Start

```python
from swerve_control import SimulatedDrivetrain

sim = SimulatedDrivetrain()
for _ in range(50):
    sim.controller.drive(0.5, 0.0, 0.0, world_relative=True)
    sim.controller.tick()
    sim.step()
print(sim.controller.get_pose())
```

Or use the command-line interface:
```bash
python -m swerve_control --scenario square
python -m swerve_control.plot_results --list
```

## Configuration

Physical constants and tuning values are centralized in `config.py`;
DriveConfig validates them once at startup and raises ConfigurationError
on an unusable layout.

## Version

0.1.0 - Initial implementation
"""

__version__ = "0.1.0"

# Export key classes for convenience
from .config import ConfigurationError, DriveConfig
from .data_collector import DataCollector
from .drive import DriveController
from .geometry import ChassisVelocity, Pose, Twist, WheelGeometry, WheelPosition, WheelState
from .heading import CalibrationState, HeadingCalibration, HeadingSource
from .kinematics import SwerveKinematics
from .module import WheelModule
from .odometry import SwerveOdometry
from .shaper import InputShaper
from .simulation import SimulatedDrivetrain

__all__ = [
    "ConfigurationError",
    "DriveConfig",
    "DataCollector",
    "DriveController",
    "ChassisVelocity",
    "Pose",
    "Twist",
    "WheelGeometry",
    "WheelPosition",
    "WheelState",
    "CalibrationState",
    "HeadingCalibration",
    "HeadingSource",
    "SwerveKinematics",
    "WheelModule",
    "SwerveOdometry",
    "InputShaper",
    "SimulatedDrivetrain",
]

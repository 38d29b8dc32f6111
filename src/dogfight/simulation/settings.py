"""Simulation-wide tunables loaded from YAML.

Defaults live in the packaged ``config/simulation.yaml``. Every section is
optional in a user-supplied file; missing keys keep their defaults.

Typical usage:
    from dogfight.simulation.settings import SimulationSettings

    settings = SimulationSettings.load_default()
    print(settings.aircraft.boundary_radius)
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from dogfight.core.errors import ConfigurationError
from dogfight.core.logging_system import get_logger
from dogfight.core.resource_path import get_config_path

logger = get_logger(__name__)


@dataclass
class FrameSettings:
    """Outer frame loop.

    Attributes:
        max_frame_delta: Upper bound on a single frame's dt in seconds.
    """

    max_frame_delta: float = 0.1


@dataclass
class PhysicsEngineSettings:
    """Fixed-step integrator for generic bodies."""

    fixed_time_step: float = 1.0 / 60.0
    max_sub_steps: int = 3


@dataclass
class AircraftSettings:
    """Ground, bounds and reset policy for aircraft.

    Attributes:
        boundary_radius: Horizontal distance from the origin (m) beyond which
            an aircraft is turned back or reset.
        crash_reset_delay: Seconds between a crash and the automatic reset.
        reset_altitude: Altitude (m) an aircraft is placed at on reset.
        reset_throttle: Throttle after reset.
    """

    boundary_radius: float = 5000.0
    crash_reset_delay: float = 2.0
    reset_altitude: float = 500.0
    reset_throttle: float = 0.7


@dataclass
class WeaponSettings:
    """Projectile pool and gun harmonization."""

    projectile_pool_size: int = 1000
    convergence_distance: float = 300.0


def _section(cls: type, data: dict[str, Any] | None, name: str) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"{name} must be a mapping")

    known = {f.name: f for f in fields(cls)}
    values = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown setting %s.%s", name, key)
            continue
        try:
            values[key] = type(known[key].default)(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"{name}.{key}: {e}") from e
    return cls(**values)


@dataclass
class SimulationSettings:
    """All simulation tunables."""

    frame: FrameSettings = field(default_factory=FrameSettings)
    physics_engine: PhysicsEngineSettings = field(default_factory=PhysicsEngineSettings)
    aircraft: AircraftSettings = field(default_factory=AircraftSettings)
    weapons: WeaponSettings = field(default_factory=WeaponSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SimulationSettings":
        """Create from a parsed YAML mapping.

        Raises:
            ConfigurationError: If a section is not a mapping or a value is
                out of range.
        """
        settings = cls(
            frame=_section(FrameSettings, data.get("frame"), "frame"),
            physics_engine=_section(
                PhysicsEngineSettings, data.get("physics_engine"), "physics_engine"
            ),
            aircraft=_section(AircraftSettings, data.get("aircraft"), "aircraft"),
            weapons=_section(WeaponSettings, data.get("weapons"), "weapons"),
        )
        settings.validate()
        return settings

    @classmethod
    def from_yaml(cls, path: Path | str) -> "SimulationSettings":
        """Load settings from a YAML file.

        Raises:
            ConfigurationError: If the file cannot be read or is invalid.
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load simulation settings {path}: {e}") from e

        settings = cls.from_dict(data)
        logger.debug("Loaded simulation settings from %s", path)
        return settings

    @classmethod
    def load_default(cls) -> "SimulationSettings":
        """Load the packaged ``config/simulation.yaml``."""
        return cls.from_yaml(get_config_path("simulation.yaml"))

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ConfigurationError: On the first invalid value.
        """
        if self.frame.max_frame_delta <= 0:
            raise ConfigurationError("frame.max_frame_delta must be positive")
        if self.physics_engine.fixed_time_step <= 0:
            raise ConfigurationError("physics_engine.fixed_time_step must be positive")
        if self.physics_engine.max_sub_steps < 1:
            raise ConfigurationError("physics_engine.max_sub_steps must be at least 1")
        if self.aircraft.boundary_radius <= 0:
            raise ConfigurationError("aircraft.boundary_radius must be positive")
        if self.aircraft.crash_reset_delay < 0:
            raise ConfigurationError("aircraft.crash_reset_delay must not be negative")
        if not 0.0 <= self.aircraft.reset_throttle <= 1.0:
            raise ConfigurationError("aircraft.reset_throttle must be within [0, 1]")
        if self.weapons.projectile_pool_size < 1:
            raise ConfigurationError("weapons.projectile_pool_size must be at least 1")

"""Per-type aircraft performance constants.

Aircraft types form a closed set (``AircraftType``). Each type resolves once,
at construction time, to an immutable ``AircraftConfig`` read from
``config/aircraft/<type>.yaml``. Unknown names fail immediately with
``UnknownAircraftTypeError`` and are never substituted with a default.

Typical usage:
    from dogfight.aircraft.config import AircraftType, get_aircraft_config

    config = get_aircraft_config(AircraftType.SPITFIRE)
    print(config.cruise_speed)
"""

from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any

import yaml

from dogfight.core.errors import ConfigurationError, UnknownAircraftTypeError
from dogfight.core.logging_system import get_logger
from dogfight.core.resource_path import get_config_path

logger = get_logger(__name__)


class AircraftType(Enum):
    """Flyable aircraft types."""

    SPITFIRE = "spitfire"
    BF109 = "bf109"
    P51_MUSTANG = "p51mustang"
    ZERO = "zero"

    @classmethod
    def parse(cls, value: "AircraftType | str") -> "AircraftType":
        """Resolve a type from an enum member or its string name.

        Raises:
            UnknownAircraftTypeError: If the name is not a known type.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnknownAircraftTypeError(str(value)) from None


class Faction(Enum):
    """Side an aircraft type belongs to."""

    ALLIES = "allies"
    AXIS = "axis"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class WeaponMountSpec:
    """Static weapon placement in the aircraft's local frame.

    Attributes:
        weapon: Weapon name as listed in config/weapons.yaml.
        position: Local mount position (x right, y up, z forward).
        direction: Local firing direction.
    """

    weapon: str
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    direction: tuple[float, float, float] = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class AircraftConfig:
    """Immutable performance and aerodynamic constants for one aircraft type.

    Units are SI: kg, m, m², m/s, N, rad/s. Fuel capacity is informational;
    the burn rate is expressed in percent of tank per second at full throttle.
    """

    name: str
    faction: Faction

    # Physical properties
    mass: float
    wing_area: float
    wing_span: float
    aspect_ratio: float

    # Performance
    max_speed: float
    cruise_speed: float
    stall_speed: float
    max_thrust: float
    service_ceiling: float

    # Maneuverability
    pitch_rate: float
    roll_rate: float
    yaw_rate: float

    # Aerodynamic coefficients
    lift_coefficient: float
    drag_coefficient: float

    # Combat
    armor: float
    firepower: float
    max_ammunition: int

    # Fuel
    fuel_capacity: float
    fuel_burn_rate: float

    loadout: tuple[WeaponMountSpec, ...] = field(default_factory=tuple)


_REQUIRED_KEYS = (
    "name",
    "mass_kg",
    "wing_area_m2",
    "max_speed",
    "cruise_speed",
    "stall_speed",
    "max_thrust",
    "pitch_rate",
    "roll_rate",
    "yaw_rate",
    "lift_coefficient",
    "drag_coefficient",
)


def _parse_loadout(entries: list[dict[str, Any]] | None) -> tuple[WeaponMountSpec, ...]:
    mounts = []
    for entry in entries or []:
        if "weapon" not in entry:
            raise ConfigurationError("loadout entry requires 'weapon'")
        mounts.append(
            WeaponMountSpec(
                weapon=entry["weapon"],
                position=tuple(float(v) for v in entry.get("position", (0.0, 0.0, 0.0))),
                direction=tuple(float(v) for v in entry.get("direction", (0.0, 0.0, 1.0))),
            )
        )
    return tuple(mounts)


def parse_aircraft_config(data: dict[str, Any]) -> AircraftConfig:
    """Build an ``AircraftConfig`` from a YAML mapping.

    Args:
        data: Mapping with the keys used in config/aircraft/*.yaml.

    Returns:
        Parsed configuration.

    Raises:
        ConfigurationError: If a required key is missing.
    """
    for key in _REQUIRED_KEYS:
        if key not in data:
            raise ConfigurationError(f"{key} required")

    wing_area = float(data["wing_area_m2"])
    wing_span = float(data.get("wing_span_m", 10.0))
    aspect_ratio = float(data.get("aspect_ratio", wing_span * wing_span / wing_area))

    return AircraftConfig(
        name=data["name"],
        faction=Faction(data.get("faction", "neutral")),
        mass=float(data["mass_kg"]),
        wing_area=wing_area,
        wing_span=wing_span,
        aspect_ratio=aspect_ratio,
        max_speed=float(data["max_speed"]),
        cruise_speed=float(data["cruise_speed"]),
        stall_speed=float(data["stall_speed"]),
        max_thrust=float(data["max_thrust"]),
        service_ceiling=float(data.get("service_ceiling", 10000.0)),
        pitch_rate=float(data["pitch_rate"]),
        roll_rate=float(data["roll_rate"]),
        yaw_rate=float(data["yaw_rate"]),
        lift_coefficient=float(data["lift_coefficient"]),
        drag_coefficient=float(data["drag_coefficient"]),
        armor=float(data.get("armor", 0.0)),
        firepower=float(data.get("firepower", 1.0)),
        max_ammunition=int(data.get("max_ammunition", 0)),
        fuel_capacity=float(data.get("fuel_capacity", 100.0)),
        fuel_burn_rate=float(data.get("fuel_burn_rate", 0.0)),
        loadout=_parse_loadout(data.get("loadout")),
    )


@lru_cache(maxsize=None)
def _load_config(aircraft_type: AircraftType) -> AircraftConfig:
    path = get_config_path(f"aircraft/{aircraft_type.value}.yaml")
    if not path.exists():
        raise UnknownAircraftTypeError(aircraft_type.value)

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    config = parse_aircraft_config(data)
    logger.debug("Loaded aircraft config %s from %s", aircraft_type.value, path)
    return config


def get_aircraft_config(aircraft_type: AircraftType | str) -> AircraftConfig:
    """Look up the configuration for an aircraft type.

    Args:
        aircraft_type: Enum member or type name ("spitfire", "bf109", ...).

    Returns:
        Immutable configuration (safe to share; frozen).

    Raises:
        UnknownAircraftTypeError: If the type is not known.
    """
    return _load_config(AircraftType.parse(aircraft_type))


def get_all_aircraft_types() -> list[AircraftType]:
    """All configured aircraft types."""
    return list(AircraftType)


def get_aircraft_by_faction(faction: Faction | str) -> list[AircraftType]:
    """Aircraft types belonging to a faction."""
    wanted = Faction(faction) if isinstance(faction, str) else faction
    return [t for t in AircraftType if get_aircraft_config(t).faction is wanted]

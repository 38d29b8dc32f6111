"""Aircraft guns, rockets and the projectile manager.

Weapon stats are static data in ``config/weapons.yaml``, looked up by name.
A ``Weapon`` is one mounted gun: it rate-limits fire against a millisecond
clock, spends ammunition and produces ``ProjectileSpawn`` descriptors. The
``WeaponManager`` groups weapons per aircraft, turns spawns into pooled
projectiles and resolves hits against the targets it is given each tick.

Typical usage example:
    manager = WeaponManager()
    manager.add_weapon_group("player", weapons_from_loadout(config.loadout))
    manager.start_firing("player")
    manager.fire_weapons("player", aircraft.position, aircraft.orientation, now_ms)
    hits = manager.update(dt, targets)
"""

import math
import random
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any

import yaml

from dogfight.aircraft.config import WeaponMountSpec
from dogfight.combat.projectile import (
    DEFAULT_POOL_CAPACITY,
    Projectile,
    ProjectileClass,
    ProjectilePool,
    ProjectileSpawn,
)
from dogfight.combat.targets import HitTarget, raycast_targets
from dogfight.core.errors import ConfigurationError, UnknownWeaponTypeError
from dogfight.core.logging_system import get_logger
from dogfight.core.resource_path import get_config_path
from dogfight.physics.vectors import EPSILON, Quaternion, Vector3

logger = get_logger(__name__)

DEFAULT_CONVERGENCE_DISTANCE = 300.0  # m
CONVERGENCE_BLEND = 0.5


class WeaponClass(Enum):
    """Weapon family; decides the projectile's ballistic class."""

    MACHINEGUN = "machinegun"
    CANNON = "cannon"
    ROCKET = "rocket"

    @property
    def projectile_class(self) -> ProjectileClass:
        if self is WeaponClass.MACHINEGUN:
            return ProjectileClass.BULLET
        if self is WeaponClass.CANNON:
            return ProjectileClass.CANNON
        return ProjectileClass.ROCKET


@dataclass(frozen=True)
class WeaponStats:
    """Static weapon characteristics.

    Attributes:
        name: Weapon name.
        damage: Damage per round.
        rate_of_fire: Rounds per second.
        muzzle_velocity: m/s.
        range: Maximum projectile travel in meters.
        ammunition: Rounds per full load.
        spread: Accuracy cone half-angle in radians.
        tracer_interval: Every Nth round is a tracer.
        weapon_class: Weapon family.
    """

    name: str
    damage: float
    rate_of_fire: float
    muzzle_velocity: float
    range: float
    ammunition: int
    spread: float
    tracer_interval: int
    weapon_class: WeaponClass

    @property
    def fire_interval_ms(self) -> float:
        """Minimum time between shots in milliseconds."""
        return 1000.0 / self.rate_of_fire


def parse_weapon_stats(name: str, data: dict[str, Any]) -> WeaponStats:
    """Build ``WeaponStats`` from a YAML mapping.

    Raises:
        ConfigurationError: If a key is missing or a value is out of range.
    """
    for key in (
        "damage",
        "rate_of_fire",
        "muzzle_velocity",
        "range",
        "ammunition",
        "spread",
        "tracer_interval",
        "weapon_class",
    ):
        if key not in data:
            raise ConfigurationError(f"{name}: {key} required")

    stats = WeaponStats(
        name=name,
        damage=float(data["damage"]),
        rate_of_fire=float(data["rate_of_fire"]),
        muzzle_velocity=float(data["muzzle_velocity"]),
        range=float(data["range"]),
        ammunition=int(data["ammunition"]),
        spread=float(data["spread"]),
        tracer_interval=int(data["tracer_interval"]),
        weapon_class=WeaponClass(data["weapon_class"]),
    )
    if stats.rate_of_fire <= 0:
        raise ConfigurationError(f"{name}: rate_of_fire must be positive")
    if stats.tracer_interval < 1:
        raise ConfigurationError(f"{name}: tracer_interval must be at least 1")
    return stats


@lru_cache(maxsize=None)
def _load_weapon_table() -> dict[str, WeaponStats]:
    path = get_config_path("weapons.yaml")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    table = {name: parse_weapon_stats(name, entry) for name, entry in data.items()}
    logger.debug("Loaded %d weapon types from %s", len(table), path)
    return table


def get_weapon_stats(name: str) -> WeaponStats:
    """Look up a weapon by name.

    Raises:
        UnknownWeaponTypeError: If no weapon has that name.
    """
    try:
        return _load_weapon_table()[name]
    except KeyError:
        raise UnknownWeaponTypeError(name) from None


def get_weapon_names() -> list[str]:
    """All configured weapon names."""
    return list(_load_weapon_table())


@dataclass
class WeaponMount:
    """Weapon placement in the aircraft frame."""

    position: Vector3
    direction: Vector3

    @classmethod
    def from_spec(cls, spec: WeaponMountSpec) -> "WeaponMount":
        return cls(position=Vector3(*spec.position), direction=Vector3(*spec.direction))


@dataclass
class WeaponStatus:
    """Ammunition read-back for one mount."""

    index: int
    name: str
    ammo: int
    max_ammo: int
    weapon_class: WeaponClass


@dataclass
class HitResult:
    """A projectile striking a target.

    The projectile is back in the pool by the time this is returned, so the
    relevant projectile data is copied here.
    """

    target: HitTarget
    hit_point: Vector3
    damage: float
    owner_id: str
    projectile_class: ProjectileClass


class Weapon:
    """One mounted weapon."""

    def __init__(
        self,
        weapon_name: str,
        mount: WeaponMount | None = None,
        damage_multiplier: float = 1.0,
        rng: random.Random | None = None,
    ) -> None:
        """Create a weapon with a full load.

        Args:
            weapon_name: Name in config/weapons.yaml.
            mount: Placement on the aircraft (default: centerline, forward).
            damage_multiplier: Scales per-round damage (aircraft firepower).
            rng: Random source for spread.

        Raises:
            UnknownWeaponTypeError: If the weapon name is not known.
        """
        self.stats = get_weapon_stats(weapon_name)
        self.mount = mount or WeaponMount(Vector3.zero(), Vector3.forward())
        self.damage_multiplier = damage_multiplier
        self.rng = rng or random.Random()

        self.current_ammo = self.stats.ammunition
        self.last_fire_time: float | None = None
        self.rounds_fired = 0
        self.is_firing = False

    def can_fire(self, now_ms: float) -> bool:
        """Whether the trigger is held, ammo remains and the gun has cycled."""
        if not self.is_firing or self.current_ammo <= 0:
            return False
        if self.last_fire_time is None:
            return True
        return now_ms - self.last_fire_time >= self.stats.fire_interval_ms

    def start_firing(self) -> None:
        self.is_firing = True

    def stop_firing(self) -> None:
        self.is_firing = False

    def fire(
        self,
        now_ms: float,
        world_position: Vector3,
        world_direction: Vector3,
        owner_id: str,
        convergence_point: Vector3 | None = None,
    ) -> ProjectileSpawn | None:
        """Fire one round if possible.

        Args:
            now_ms: Simulation clock in milliseconds.
            world_position: Muzzle position.
            world_direction: Aim direction.
            owner_id: Shooter id (carried by the projectile).
            convergence_point: Harmonization point; the round is bent halfway
                toward it.

        Returns:
            Spawn descriptor, or None if the weapon cannot fire.
        """
        if not self.can_fire(now_ms):
            return None

        self.last_fire_time = now_ms
        self.current_ammo -= 1
        self.rounds_fired += 1

        direction = self._apply_spread(world_direction)

        if convergence_point is not None:
            to_convergence = (convergence_point - world_position).normalized()
            if to_convergence.magnitude_squared() > EPSILON:
                blended = direction.lerp(to_convergence, CONVERGENCE_BLEND).normalized()
                if blended.magnitude_squared() > EPSILON:
                    direction = blended

        return ProjectileSpawn(
            position=world_position.copy(),
            velocity=direction * self.stats.muzzle_velocity,
            damage=self.stats.damage * self.damage_multiplier,
            owner_id=owner_id,
            max_range=self.stats.range,
            is_tracer=self.rounds_fired % self.stats.tracer_interval == 0,
            projectile_class=self.stats.weapon_class.projectile_class,
        )

    def _apply_spread(self, direction: Vector3) -> Vector3:
        aim = direction.normalized()
        if aim.magnitude_squared() < EPSILON:
            aim = Vector3.forward()

        theta = self.rng.random() * 2.0 * math.pi
        # sqrt keeps samples uniform over the cone's area
        phi = self.stats.spread * math.sqrt(self.rng.random())

        if abs(aim.y) < 0.99:
            right = aim.cross(Vector3.up()).normalized()
        else:
            right = aim.cross(Vector3.right()).normalized()
        up = right.cross(aim).normalized()

        spread = Quaternion.from_axis_angle(up, math.cos(theta) * phi) * Quaternion.from_axis_angle(
            right, math.sin(theta) * phi
        )
        return spread.rotate(aim).normalized()

    def reload(self) -> None:
        """Refill ammunition and restart the tracer count."""
        self.current_ammo = self.stats.ammunition
        self.rounds_fired = 0

    @property
    def max_ammo(self) -> int:
        return self.stats.ammunition


def weapons_from_loadout(
    loadout: tuple[WeaponMountSpec, ...] | list[WeaponMountSpec],
    damage_multiplier: float = 1.0,
    rng: random.Random | None = None,
) -> list[Weapon]:
    """Instantiate an aircraft's configured loadout.

    Raises:
        UnknownWeaponTypeError: If a mount names an unknown weapon.
    """
    return [
        Weapon(spec.weapon, WeaponMount.from_spec(spec), damage_multiplier, rng)
        for spec in loadout
    ]


def _segment_end(projectile: Projectile) -> Vector3:
    """End of this tick's sweep, clipped to the projectile's range."""
    overshoot = projectile.distance_traveled - projectile.max_range
    if overshoot <= 0.0:
        return projectile.position

    step = projectile.position - projectile.last_position
    length = step.magnitude()
    if length <= EPSILON:
        return projectile.position
    return projectile.last_position + step * (max(0.0, length - overshoot) / length)


def loadout_ammunition(
    loadout: tuple[WeaponMountSpec, ...] | list[WeaponMountSpec],
) -> int:
    """Rounds carried by a full load of the given mounts.

    Raises:
        UnknownWeaponTypeError: If a mount names an unknown weapon.
    """
    return sum(get_weapon_stats(spec.weapon).ammunition for spec in loadout)


class WeaponManager:
    """Weapon groups per aircraft plus the shared projectile pool."""

    def __init__(
        self,
        pool_capacity: int = DEFAULT_POOL_CAPACITY,
        pool: ProjectilePool | None = None,
    ) -> None:
        self.pool = pool or ProjectilePool(pool_capacity)
        self.weapons: dict[str, list[Weapon]] = {}

    def add_weapon_group(self, aircraft_id: str, weapons: list[Weapon]) -> None:
        self.weapons[aircraft_id] = list(weapons)

    def remove_weapon_group(self, aircraft_id: str) -> None:
        self.weapons.pop(aircraft_id, None)

    def start_firing(self, aircraft_id: str) -> None:
        for weapon in self.weapons.get(aircraft_id, []):
            weapon.start_firing()

    def stop_firing(self, aircraft_id: str) -> None:
        for weapon in self.weapons.get(aircraft_id, []):
            weapon.stop_firing()

    def reload(self, aircraft_id: str) -> None:
        for weapon in self.weapons.get(aircraft_id, []):
            weapon.reload()

    def fire_weapons(
        self,
        aircraft_id: str,
        position: Vector3,
        orientation: Quaternion,
        now_ms: float,
        convergence_distance: float = DEFAULT_CONVERGENCE_DISTANCE,
    ) -> int:
        """Fire every weapon of an aircraft that is ready.

        Args:
            aircraft_id: Shooter.
            position: Aircraft world position.
            orientation: Aircraft orientation.
            now_ms: Simulation clock in milliseconds.
            convergence_distance: Distance ahead of the nose the guns are
                harmonized to.

        Returns:
            Number of projectiles launched.
        """
        weapons = self.weapons.get(aircraft_id)
        if not weapons:
            return 0

        forward = orientation.rotate(Vector3.forward())
        convergence_point = position + forward * convergence_distance

        launched = 0
        for weapon in weapons:
            world_position = position + orientation.rotate(weapon.mount.position)
            world_direction = orientation.rotate(weapon.mount.direction)

            spawn = weapon.fire(
                now_ms, world_position, world_direction, aircraft_id, convergence_point
            )
            if spawn is None:
                continue

            projectile = self.pool.acquire()
            if projectile is None:
                continue
            projectile.init(spawn)
            launched += 1

        return launched

    def update(self, dt: float, targets: list[HitTarget]) -> list[HitResult]:
        """Advance all projectiles and resolve hits.

        Each projectile is swept from its previous to its current position,
        cut short at its maximum range. Projectiles that hit something or fly
        past their range go back to the pool immediately.

        Args:
            dt: Time step in seconds.
            targets: Hit-test targets for this tick.

        Returns:
            Hits in the order they were resolved.
        """
        hits: list[HitResult] = []

        for projectile in self.pool.active_projectiles:
            projectile.update(dt)

            hit = raycast_targets(
                projectile.last_position,
                _segment_end(projectile),
                targets,
                exclude_owner=projectile.owner_id,
            )
            if hit is None:
                if projectile.is_out_of_range:
                    self.pool.release(projectile)
                continue

            hits.append(
                HitResult(
                    target=hit.target,
                    hit_point=hit.point,
                    damage=projectile.damage,
                    owner_id=projectile.owner_id,
                    projectile_class=projectile.projectile_class,
                )
            )
            logger.debug(
                "%s hit %s for %.1f", projectile.owner_id, hit.target.owner_id, projectile.damage
            )
            self.pool.release(projectile)

        return hits

    def get_weapons_status(self, aircraft_id: str) -> list[WeaponStatus]:
        """Ammunition per mount; empty for an unknown aircraft."""
        return [
            WeaponStatus(
                index=index,
                name=weapon.stats.name,
                ammo=weapon.current_ammo,
                max_ammo=weapon.max_ammo,
                weapon_class=weapon.stats.weapon_class,
            )
            for index, weapon in enumerate(self.weapons.get(aircraft_id, []))
        ]

    def total_ammo(self, aircraft_id: str) -> int:
        """Rounds remaining across an aircraft's weapons."""
        return sum(w.current_ammo for w in self.weapons.get(aircraft_id, []))

    @property
    def active_projectile_count(self) -> int:
        return self.pool.active_count

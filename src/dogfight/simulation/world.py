"""Per-frame combat simulation.

Ties aircraft, weapons, damage, balloons and the generic physics engine into
one synchronous pipeline. Each ``step(dt)`` runs, in order:

1. apply the latest control snapshots
2. update aircraft (flight dynamics + integration) and balloons
3. fire weapons for aircraft holding the trigger
4. advance projectiles and hit-test them against current targets
5. apply damage for every hit
6. advance the fixed-step physics engine
7. return a read-back snapshot

Frame deltas are capped at ``frame.max_frame_delta`` so a stalled frame
never produces one huge physics step.

The physics engine is a standalone container: aircraft and balloons move
themselves, and only bodies the caller registers on ``physics_engine`` (debris,
wreckage) are integrated there. It is stepped with the same capped delta.

Typical usage example:
    sim = CombatSimulation()
    sim.add_aircraft("player", AircraftType.SPITFIRE, Vector3(0, 500, 0))
    sim.add_aircraft("enemy", "bf109", Vector3(0, 500, 400))
    sim.set_controls("player", ControlInputs(throttle=0.8, fire=True))
    snapshot = sim.step(1 / 60)
"""

import copy
import random
from dataclasses import dataclass, field

from dogfight.aircraft.aircraft import Aircraft, AircraftSnapshot
from dogfight.aircraft.config import AircraftType, WeaponMountSpec, get_aircraft_config
from dogfight.combat.damage import ComponentHealth, ComponentName, DamageManager, DamageType
from dogfight.combat.projectile import ProjectileClass
from dogfight.combat.targets import BoxTarget, HitTarget
from dogfight.combat.weapons import HitResult, WeaponManager, WeaponStatus, weapons_from_loadout
from dogfight.core.input import ControlInputs
from dogfight.core.logging_system import get_logger
from dogfight.entities.barrage_balloon import BalloonState, BarrageBalloon
from dogfight.physics.physics_engine import PhysicsEngine
from dogfight.physics.vectors import Quaternion, Vector3
from dogfight.simulation.settings import SimulationSettings

logger = get_logger(__name__)

AIRCRAFT_HALF_HEIGHT = 1.5  # m
AIRCRAFT_HALF_LENGTH = 4.5  # m


@dataclass
class SimulationSnapshot:
    """Read-back of the whole simulation after a step."""

    time: float
    frame: int
    aircraft: dict[str, AircraftSnapshot] = field(default_factory=dict)
    weapons: dict[str, list[WeaponStatus]] = field(default_factory=dict)
    components: dict[str, dict[ComponentName, ComponentHealth]] = field(default_factory=dict)
    balloons: dict[str, BalloonState] = field(default_factory=dict)
    hits: list[HitResult] = field(default_factory=list)
    active_projectiles: int = 0


def damage_type_for(projectile_class: ProjectileClass) -> DamageType:
    """Cannon shells and rockets explode; bullets do not."""
    if projectile_class is ProjectileClass.BULLET:
        return DamageType.BULLET
    return DamageType.EXPLOSIVE


class CombatSimulation:
    """Owns every simulated entity and runs the frame pipeline."""

    def __init__(
        self,
        settings: SimulationSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Create an empty simulation.

        Args:
            settings: Tunables (default: packaged config/simulation.yaml).
            rng: Random source shared by weapon spread and balloon phases.
        """
        self.settings = settings or SimulationSettings.load_default()
        self.rng = rng or random.Random()

        self.damage_manager = DamageManager()
        self.weapon_manager = WeaponManager(self.settings.weapons.projectile_pool_size)
        self.physics_engine = PhysicsEngine(
            self.settings.physics_engine.fixed_time_step,
            self.settings.physics_engine.max_sub_steps,
        )

        self.aircraft: dict[str, Aircraft] = {}
        self.balloons: dict[str, BarrageBalloon] = {}
        self._controls: dict[str, ControlInputs] = {}
        self._targets: dict[str, HitTarget] = {}
        self._reset_counts: dict[str, int] = {}

        self.time = 0.0
        self.frame = 0

        logger.info(
            "CombatSimulation initialized (pool=%d, max_frame_delta=%.3fs)",
            self.settings.weapons.projectile_pool_size,
            self.settings.frame.max_frame_delta,
        )

    # Entities

    def add_aircraft(
        self,
        aircraft_id: str,
        aircraft_type: AircraftType | str,
        position: Vector3 | None = None,
        orientation: Quaternion | None = None,
        loadout: list[WeaponMountSpec] | None = None,
    ) -> Aircraft:
        """Spawn an aircraft with its damage model and weapons.

        Args:
            aircraft_id: Unique id.
            aircraft_type: Aircraft type or its name.
            position: Spawn position.
            orientation: Spawn orientation.
            loadout: Weapon mounts (default: the type's configured loadout).

        Raises:
            ValueError: If the id is already in use.
            UnknownAircraftTypeError: If the type is not known.
            UnknownWeaponTypeError: If the loadout names an unknown weapon.
        """
        if aircraft_id in self.aircraft or aircraft_id in self.balloons:
            raise ValueError(f"Duplicate entity id: {aircraft_id}")

        config = get_aircraft_config(aircraft_type)
        damage_model = self.damage_manager.create_damage_model(aircraft_id)
        try:
            weapons = weapons_from_loadout(
                loadout if loadout is not None else config.loadout,
                damage_multiplier=config.firepower,
                rng=self.rng,
            )
            aircraft = Aircraft(
                aircraft_type,
                aircraft_id=aircraft_id,
                position=position,
                orientation=orientation,
                settings=self.settings.aircraft,
                damage_model=damage_model,
                ammunition_capacity=sum(weapon.max_ammo for weapon in weapons),
            )
        except ValueError:
            self.damage_manager.remove_damage_model(aircraft_id)
            raise

        self.aircraft[aircraft_id] = aircraft
        self.weapon_manager.add_weapon_group(aircraft_id, weapons)
        self._controls[aircraft_id] = aircraft.controls.copy()
        self._reset_counts[aircraft_id] = aircraft.reset_count
        self._targets[aircraft_id] = BoxTarget(
            owner_id=aircraft_id,
            pose=aircraft.transform,
            half_extents=Vector3(
                aircraft.config.wing_span * 0.5, AIRCRAFT_HALF_HEIGHT, AIRCRAFT_HALF_LENGTH
            ),
            entity=aircraft,
        )
        return aircraft

    def remove_aircraft(self, aircraft_id: str) -> None:
        """Remove an aircraft and everything registered for it."""
        self.aircraft.pop(aircraft_id, None)
        self.weapon_manager.remove_weapon_group(aircraft_id)
        self.damage_manager.remove_damage_model(aircraft_id)
        self._controls.pop(aircraft_id, None)
        self._targets.pop(aircraft_id, None)
        self._reset_counts.pop(aircraft_id, None)

    def add_balloon(
        self, balloon_id: str, anchor: Vector3, altitude: float = 500.0
    ) -> BarrageBalloon:
        """Place a barrage balloon.

        Raises:
            ValueError: If the id is already in use.
        """
        if balloon_id in self.aircraft or balloon_id in self.balloons:
            raise ValueError(f"Duplicate entity id: {balloon_id}")
        balloon = BarrageBalloon(balloon_id, anchor, altitude, rng=self.rng)
        self.balloons[balloon_id] = balloon
        return balloon

    def set_controls(self, aircraft_id: str, controls: ControlInputs) -> None:
        """Queue a control snapshot for the next step (unknown ids are ignored)."""
        if aircraft_id not in self.aircraft:
            logger.warning("Controls for unknown aircraft %s ignored", aircraft_id)
            return
        self._controls[aircraft_id] = controls.copy()

    # Frame

    def step(self, dt: float) -> SimulationSnapshot:
        """Run one frame of the pipeline.

        Args:
            dt: Wall-clock frame delta in seconds (capped).

        Returns:
            Snapshot after the frame.
        """
        dt = min(max(0.0, dt), self.settings.frame.max_frame_delta)
        self.time += dt
        self.frame += 1
        now_ms = self.time * 1000.0

        for aircraft_id, aircraft in self.aircraft.items():
            aircraft.set_controls(self._controls[aircraft_id])

        for aircraft_id, aircraft in self.aircraft.items():
            aircraft.update(dt)
            if aircraft.reset_count != self._reset_counts[aircraft_id]:
                self._reset_counts[aircraft_id] = aircraft.reset_count
                self.weapon_manager.reload(aircraft_id)

        for balloon in self.balloons.values():
            balloon.update(dt)

        self._fire_weapons(now_ms)

        hits = self.weapon_manager.update(dt, self._active_targets())
        for hit in hits:
            self._apply_hit(hit)

        for balloon_id in [b_id for b_id, b in self.balloons.items() if b.should_remove()]:
            del self.balloons[balloon_id]
            logger.debug("Removed balloon %s", balloon_id)

        self.physics_engine.update(dt)

        for aircraft_id, aircraft in self.aircraft.items():
            aircraft.state.ammunition = self.weapon_manager.total_ammo(aircraft_id)

        return self.snapshot(hits)

    def _fire_weapons(self, now_ms: float) -> None:
        for aircraft_id, aircraft in self.aircraft.items():
            if aircraft.controls.fire and aircraft.is_alive:
                self.weapon_manager.start_firing(aircraft_id)
                self.weapon_manager.fire_weapons(
                    aircraft_id,
                    aircraft.position,
                    aircraft.orientation,
                    now_ms,
                    self.settings.weapons.convergence_distance,
                )
            else:
                self.weapon_manager.stop_firing(aircraft_id)

    def _active_targets(self) -> list[HitTarget]:
        targets: list[HitTarget] = [
            self._targets[aircraft_id]
            for aircraft_id, aircraft in self.aircraft.items()
            if not aircraft.is_crashed
        ]
        targets.extend(b.hit_target for b in self.balloons.values() if not b.is_destroyed)
        return targets

    def _apply_hit(self, hit: HitResult) -> None:
        target_id = hit.target.owner_id

        aircraft = self.aircraft.get(target_id)
        if aircraft is not None:
            self.damage_manager.apply_damage(
                target_id,
                hit.damage,
                hit.hit_point,
                aircraft,
                damage_type_for(hit.projectile_class),
            )
            return

        balloon = self.balloons.get(target_id)
        if balloon is not None:
            balloon.take_damage(hit.damage)

    # Read-back

    def snapshot(self, hits: list[HitResult] | None = None) -> SimulationSnapshot:
        """Copy of everything presentation needs."""
        components = {}
        for aircraft_id in self.aircraft:
            model = self.damage_manager.get_damage_model(aircraft_id)
            if model is not None:
                components[aircraft_id] = copy.deepcopy(model.components)

        return SimulationSnapshot(
            time=self.time,
            frame=self.frame,
            aircraft={a_id: a.snapshot() for a_id, a in self.aircraft.items()},
            weapons={a_id: self.weapon_manager.get_weapons_status(a_id) for a_id in self.aircraft},
            components=components,
            balloons={b_id: b.get_state() for b_id, b in self.balloons.items()},
            hits=list(hits or []),
            active_projectiles=self.weapon_manager.active_projectile_count,
        )

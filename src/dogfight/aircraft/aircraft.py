"""Aircraft entity: rigid-body integration, damage state and ground/bounds policy.

Each ``Aircraft`` owns one ``FlightDynamics`` and a ``DamageState``. Every
tick it asks the flight model for forces, integrates linear and angular
motion, recomputes derived flight parameters, then runs the ground/bounds
state machine and fuel consumption.

The crash auto-reset is a deadline on the aircraft's own simulation clock,
not a timer. ``reset()`` always clears it, so a manual reset during the delay
can never be followed by a second automatic one.

Typical usage example:
    aircraft = Aircraft(AircraftType.SPITFIRE, aircraft_id="player")
    aircraft.set_controls(ControlInputs(pitch=0.2, throttle=0.8))
    aircraft.update(1 / 60)
    print(aircraft.snapshot().airspeed)
"""

import math
from dataclasses import dataclass, replace

from dogfight.aircraft.config import AircraftConfig, AircraftType, get_aircraft_config
from dogfight.combat.damage import (
    ControlAxis,
    DamageEffect,
    DamageModel,
    EffectKind,
    SpinDirection,
)
from dogfight.combat.weapons import loadout_ammunition
from dogfight.core.input import ControlInputs
from dogfight.core.logging_system import get_logger
from dogfight.physics.flight_model.base import AircraftState, EngineState, FlightForces
from dogfight.physics.flight_model.flight_dynamics import FlightDynamics
from dogfight.physics.vectors import EPSILON, Quaternion, Vector3
from dogfight.simulation.settings import AircraftSettings

logger = get_logger(__name__)

ANGULAR_DAMPING = 0.92  # per tick
SPIN_ROLL_RATE = 3.0  # rad/s
SPIN_PITCH_RATE = -0.5  # rad/s, nose down
GROUND_LEVEL = 0.0
STUCK_AIRSPEED = 10.0
STUCK_MAX_ALTITUDE = 30.0
STUCK_MIN_CLEARANCE = 0.5
OUT_OF_BOUNDS_RESET_SPEED = 50.0


@dataclass
class DamageState:
    """Accumulated flight-affecting damage.

    Attributes:
        engine_damage: Fraction of thrust lost (0.0 to 1.0).
        pitch_damage: Pitch control damage (signed, magnitude 0.0 to 1.0).
        roll_damage: Roll control damage (signed, magnitude 0.0 to 1.0).
        yaw_damage: Yaw control damage (signed, magnitude 0.0 to 1.0).
        fuel_leak_rate: Fuel burn multiplier.
        on_fire: Engine fire.
        spin: Direction of an uncontrollable spin, if a wing was lost.
        is_destroyed: Pilot killed; aircraft no longer responds to controls.
    """

    engine_damage: float = 0.0
    pitch_damage: float = 0.0
    roll_damage: float = 0.0
    yaw_damage: float = 0.0
    fuel_leak_rate: float = 1.0
    on_fire: bool = False
    spin: SpinDirection | None = None
    is_destroyed: bool = False

    def control_factor(self, axis: ControlAxis) -> float:
        """Remaining control authority on an axis (0.0 to 1.0)."""
        damage = {
            ControlAxis.PITCH: self.pitch_damage,
            ControlAxis.ROLL: self.roll_damage,
            ControlAxis.YAW: self.yaw_damage,
        }[axis]
        return max(0.0, 1.0 - abs(damage))


@dataclass(frozen=True)
class AircraftSnapshot:
    """Immutable read-back of one aircraft for presentation."""

    aircraft_id: str
    aircraft_type: AircraftType
    position: Vector3
    rotation: Vector3
    velocity: Vector3
    airspeed: float
    altitude: float
    heading: float
    angle_of_attack: float
    slip_angle: float
    throttle: float
    health: float
    fuel: float
    ammunition: int
    engine: EngineState
    damage: DamageState
    is_stalled: bool
    stall_severity: float
    is_crashed: bool
    pending_reset_at: float | None


class Aircraft:
    """A simulated fighter.

    Attributes:
        aircraft_id: Identifier used for weapons ownership and damage lookup.
        aircraft_type: Resolved aircraft type.
        config: Private copy of the type's configuration.
        dynamics: Force model owned by this aircraft.
        state: Kinematic and status record.
        controls: Last control snapshot.
        damage: Accumulated flight-affecting damage.
        damage_model: Component damage model, if registered.
        ammunition_capacity: Rounds in a full load, restored by rearm and reset.
        sim_time: Seconds simulated by this aircraft.
        pending_reset_at: Simulation time of a scheduled auto-reset, or None.
        is_crashed: On the ground after a crash, waiting for reset.
        reset_count: Number of resets so far.
    """

    def __init__(
        self,
        aircraft_type: AircraftType | str,
        aircraft_id: str = "aircraft",
        position: Vector3 | None = None,
        orientation: Quaternion | None = None,
        settings: AircraftSettings | None = None,
        damage_model: DamageModel | None = None,
        ammunition_capacity: int | None = None,
    ) -> None:
        """Create an aircraft flying level at cruise speed.

        Args:
            aircraft_type: Aircraft type or its name.
            aircraft_id: Unique identifier.
            position: Initial world position (default 100 m above the origin).
            orientation: Initial orientation (default level, heading +Z).
            settings: Ground/bounds/reset policy.
            damage_model: Component model to reset along with the aircraft.
            ammunition_capacity: Rounds in a full load. Defaults to the
                configured loadout's total, or ``max_ammunition`` for a type
                with no loadout.

        Raises:
            UnknownAircraftTypeError: If the type name is not known.
            UnknownWeaponTypeError: If the configured loadout names an
                unknown weapon.
        """
        self.aircraft_type = AircraftType.parse(aircraft_type)
        self.aircraft_id = aircraft_id
        self.config: AircraftConfig = replace(get_aircraft_config(self.aircraft_type))
        self.settings = settings or AircraftSettings()
        self.dynamics = FlightDynamics(self.config)
        self.damage = DamageState()
        self.damage_model = damage_model
        if ammunition_capacity is not None:
            self.ammunition_capacity = max(0, ammunition_capacity)
        elif self.config.loadout:
            self.ammunition_capacity = loadout_ammunition(self.config.loadout)
        else:
            self.ammunition_capacity = self.config.max_ammunition

        self.sim_time = 0.0
        self.pending_reset_at: float | None = None
        self.is_crashed = False
        self.reset_count = 0

        self.state = AircraftState(
            position=position.copy() if position else Vector3(0.0, 100.0, 0.0),
            throttle=self.settings.reset_throttle,
            ammunition=self.ammunition_capacity,
        )
        self.state.set_orientation(orientation or Quaternion.identity())
        self.state.velocity = self.state.forward() * self.config.cruise_speed
        self.controls = ControlInputs(throttle=self.settings.reset_throttle)
        self.forces = FlightForces()

        self._update_flight_parameters()

        logger.info(
            "Aircraft %s (%s) spawned at %s",
            aircraft_id,
            self.config.name,
            self.state.position,
        )

    # Controls

    def set_controls(self, controls: ControlInputs) -> None:
        """Store a control snapshot for the next update.

        A destroyed aircraft ignores all inputs.
        """
        if self.damage.is_destroyed:
            self.controls = ControlInputs(throttle=0.0)
        else:
            self.controls = controls.clamped()
        if self.state.fuel <= 0.0:
            self.controls.throttle = 0.0
        self.state.throttle = self.controls.throttle

    # Simulation

    def update(self, dt: float) -> None:
        """Advance the aircraft by one tick.

        Args:
            dt: Time step in seconds (negative values are treated as zero).
        """
        dt = max(0.0, dt)
        self.sim_time += dt

        if self.pending_reset_at is not None and self.sim_time >= self.pending_reset_at:
            logger.info("Auto-resetting %s after crash", self.aircraft_id)
            self.reset()
            return

        if self.is_crashed:
            return

        self.forces = self.dynamics.calculate_forces(self.state, self.controls, dt)
        self._integrate(self.forces, dt)
        self._update_flight_parameters()
        self._check_ground_and_bounds()
        self._update_fuel(dt)

    def _integrate(self, forces: FlightForces, dt: float) -> None:
        state = self.state

        acceleration = forces.total / self.config.mass
        state.velocity = state.velocity + acceleration * dt
        state.position = state.position + state.velocity * dt

        effectiveness = forces.control_effectiveness
        pitch_rate = (
            self.controls.pitch
            * self.config.pitch_rate
            * effectiveness
            * self.damage.control_factor(ControlAxis.PITCH)
        )
        roll_rate = (
            self.controls.roll
            * self.config.roll_rate
            * effectiveness
            * self.damage.control_factor(ControlAxis.ROLL)
        )
        yaw_rate = (
            self.controls.yaw
            * self.config.yaw_rate
            * effectiveness
            * self.damage.control_factor(ControlAxis.YAW)
        )

        omega = state.angular_velocity
        omega.x += pitch_rate * dt
        omega.y += roll_rate * dt
        omega.z += yaw_rate * dt
        state.angular_velocity = omega * ANGULAR_DAMPING

        if self.damage.spin is not None:
            direction = -1.0 if self.damage.spin is SpinDirection.LEFT else 1.0
            state.angular_velocity.y = direction * SPIN_ROLL_RATE
            state.angular_velocity.x = SPIN_PITCH_RATE

        omega = state.angular_velocity
        delta = Quaternion.from_euler(omega.x * dt, omega.y * dt, omega.z * dt)
        state.set_orientation(state.orientation * delta)

    def _update_flight_parameters(self) -> None:
        state = self.state
        state.airspeed = state.velocity.magnitude()
        state.altitude = state.position.y

        forward = state.forward()
        state.heading = math.atan2(forward.x, forward.z)

        local_velocity = state.to_local(state.velocity)
        if abs(local_velocity.z) > EPSILON:
            state.angle_of_attack = math.atan2(-local_velocity.y, local_velocity.z)
            state.slip_angle = math.atan2(local_velocity.x, local_velocity.z)

    def _check_ground_and_bounds(self) -> None:
        state = self.state

        if state.position.y <= GROUND_LEVEL:
            if state.health > 0.0:
                self._crash()
            else:
                self._come_to_rest()
            return

        if (
            state.health > 0.0
            and state.airspeed < STUCK_AIRSPEED
            and GROUND_LEVEL + STUCK_MIN_CLEARANCE < state.altitude < STUCK_MAX_ALTITUDE
        ):
            logger.warning("Aircraft %s stuck near the ground, resetting", self.aircraft_id)
            self.reset()
            return

        if state.position.horizontal_distance() > self.settings.boundary_radius:
            if state.airspeed < OUT_OF_BOUNDS_RESET_SPEED:
                logger.warning("Aircraft %s out of bounds and slow, resetting", self.aircraft_id)
                self.reset()
            else:
                yaw_to_center = math.atan2(-state.position.x, -state.position.z)
                state.set_euler(state.pitch, state.roll, yaw_to_center)
                self._update_flight_parameters()
                logger.debug("Aircraft %s out of bounds, turning back", self.aircraft_id)

    def _crash(self) -> None:
        state = self.state
        state.position.y = GROUND_LEVEL
        state.altitude = GROUND_LEVEL
        state.velocity = Vector3.zero()
        state.angular_velocity = Vector3.zero()
        state.airspeed = 0.0
        state.health = 0.0
        self.is_crashed = True
        self.schedule_reset(self.settings.crash_reset_delay)
        logger.warning(
            "Aircraft %s crashed, auto-reset in %.1fs",
            self.aircraft_id,
            self.settings.crash_reset_delay,
        )

    def _come_to_rest(self) -> None:
        # A wreck at zero health stays on the ground and is not auto-reset
        state = self.state
        state.position.y = GROUND_LEVEL
        state.altitude = GROUND_LEVEL
        state.velocity = Vector3.zero()
        state.angular_velocity = Vector3.zero()
        state.airspeed = 0.0

    def schedule_reset(self, delay: float) -> None:
        """Schedule an automatic reset, replacing any pending one."""
        self.pending_reset_at = self.sim_time + max(0.0, delay)

    def cancel_pending_reset(self) -> None:
        """Drop a scheduled automatic reset, if any."""
        self.pending_reset_at = None

    def _update_fuel(self, dt: float) -> None:
        state = self.state
        consumption = state.throttle * self.config.fuel_burn_rate * dt * self.damage.fuel_leak_rate
        state.fuel = max(0.0, state.fuel - consumption)

        if state.fuel <= 0.0:
            state.throttle = 0.0
            self.controls.throttle = 0.0

    # Damage

    def apply_damage_effects(self, effects: list[DamageEffect]) -> None:
        """Apply damage effects to the flight state.

        Effects only ever worsen the aircraft: engine damage and control
        damage keep the larger magnitude, and flags stay set until ``reset()``.
        """
        for effect in effects:
            if effect.kind is EffectKind.ENGINE_DAMAGE:
                self.damage.engine_damage = max(self.damage.engine_damage, effect.severity)
                self.dynamics.set_engine_damage(self.damage.engine_damage)
            elif effect.kind is EffectKind.CONTROL_DAMAGE:
                self._apply_control_damage(effect.axis, effect.severity)
            elif effect.kind is EffectKind.FUEL_LEAK:
                self.damage.fuel_leak_rate = max(self.damage.fuel_leak_rate, effect.severity)
            elif effect.kind is EffectKind.FIRE:
                self.damage.on_fire = True
            elif effect.kind is EffectKind.SPIN:
                self.damage.spin = effect.direction
            elif effect.kind is EffectKind.DESTROYED:
                self.set_destroyed()

    def _apply_control_damage(self, axis: ControlAxis | None, severity: float) -> None:
        if axis is None:
            return
        axes = ("pitch", "roll", "yaw") if axis is ControlAxis.ALL else (axis.value,)
        for name in axes:
            attr = f"{name}_damage"
            if abs(severity) > abs(getattr(self.damage, attr)):
                setattr(self.damage, attr, max(-1.0, min(1.0, severity)))

    def set_destroyed(self) -> None:
        """Mark the aircraft destroyed (idempotent)."""
        if self.damage.is_destroyed:
            return
        self.damage.is_destroyed = True
        self.state.health = 0.0
        self.controls = ControlInputs(throttle=0.0)
        self.state.throttle = 0.0
        logger.info("Aircraft %s destroyed", self.aircraft_id)

    def set_health(self, health: float) -> None:
        """Set displayed health (clamped; forced to 0 while destroyed)."""
        if self.damage.is_destroyed:
            self.state.health = 0.0
            return
        self.state.health = max(0.0, min(100.0, health))

    def take_damage(self, amount: float) -> None:
        """Reduce health directly, bypassing the component model."""
        self.state.health = max(0.0, self.state.health - max(0.0, amount))

    def repair(self, amount: float) -> None:
        self.state.health = min(100.0, self.state.health + max(0.0, amount))

    def refuel(self, amount: float) -> None:
        self.state.fuel = min(100.0, self.state.fuel + max(0.0, amount))

    def rearm(self) -> None:
        self.state.ammunition = self.ammunition_capacity

    # Reset

    def reset(self) -> None:
        """Restore the canonical in-flight state.

        Level flight at the reset altitude over the origin, cruise speed,
        default throttle, full health/fuel/ammunition, no damage. Cancels any
        pending automatic reset. Calling it twice is harmless.
        """
        self.cancel_pending_reset()
        self.is_crashed = False
        self.reset_count += 1

        state = self.state
        state.position = Vector3(0.0, self.settings.reset_altitude, 0.0)
        state.set_orientation(Quaternion.identity())
        state.velocity = Vector3(0.0, 0.0, self.config.cruise_speed)
        state.angular_velocity = Vector3.zero()
        state.throttle = self.settings.reset_throttle
        state.health = 100.0
        state.fuel = 100.0
        state.ammunition = self.ammunition_capacity
        state.angle_of_attack = 0.0
        state.slip_angle = 0.0

        self.controls = ControlInputs(throttle=self.settings.reset_throttle)
        self.damage = DamageState()
        self.dynamics.reset()
        self.forces = FlightForces()
        if self.damage_model is not None:
            self.damage_model.reset()

        self._update_flight_parameters()
        logger.info("Aircraft %s reset", self.aircraft_id)

    # Read-back

    @property
    def position(self) -> Vector3:
        return self.state.position

    @property
    def velocity(self) -> Vector3:
        return self.state.velocity

    @property
    def orientation(self) -> Quaternion:
        return self.state.orientation

    @property
    def is_destroyed(self) -> bool:
        return self.damage.is_destroyed

    @property
    def is_alive(self) -> bool:
        """Flying and not destroyed."""
        return not self.is_crashed and not self.damage.is_destroyed and self.state.health > 0.0

    def forward(self) -> Vector3:
        """Nose direction in world space."""
        return self.state.forward()

    def up(self) -> Vector3:
        return self.state.up()

    def world_to_local(self, point: Vector3) -> Vector3:
        """Transform a world-space point into the aircraft frame."""
        return self.state.to_local(point - self.state.position)

    def local_to_world(self, point: Vector3) -> Vector3:
        """Transform an aircraft-frame point into world space."""
        return self.state.position + self.state.orientation.rotate(point)

    def transform(self) -> tuple[Vector3, Quaternion]:
        """Current (position, orientation) pair."""
        return self.state.position.copy(), self.state.orientation.copy()

    def is_stalled(self) -> bool:
        return self.dynamics.is_stalled(self.state)

    def snapshot(self) -> AircraftSnapshot:
        """Immutable copy of the current state."""
        state = self.state
        return AircraftSnapshot(
            aircraft_id=self.aircraft_id,
            aircraft_type=self.aircraft_type,
            position=state.position.copy(),
            rotation=state.rotation.copy(),
            velocity=state.velocity.copy(),
            airspeed=state.airspeed,
            altitude=state.altitude,
            heading=state.heading,
            angle_of_attack=state.angle_of_attack,
            slip_angle=state.slip_angle,
            throttle=state.throttle,
            health=state.health,
            fuel=state.fuel,
            ammunition=state.ammunition,
            engine=self.dynamics.get_engine_state(),
            damage=replace(self.damage),
            is_stalled=self.dynamics.is_stalled(state),
            stall_severity=self.dynamics.stall_severity(state),
            is_crashed=self.is_crashed,
            pending_reset_at=self.pending_reset_at,
        )

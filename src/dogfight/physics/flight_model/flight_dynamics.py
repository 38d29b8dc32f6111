"""Arcade-accurate flight dynamics for WW2 propeller fighters.

Computes thrust, lift, drag and weight every tick from the aircraft state and
pilot inputs, and simulates a lagged engine response. The model trades
aerodynamic fidelity for predictable, readable behavior at 60Hz.

Physics model:
- Thrust = throttle * max_thrust * altitude_factor * throttle_efficiency
- Lift = 0.5 * ρ * v² * S * CL(α) * stall_lift_reduction
- Drag = (0.5 * ρ * v² * S * (CD0 + CL² / (π * AR * e))) * stall_drag_increase
- Weight = m * g, plus an along-path component when pitched

Stall thresholds (one canonical set, shared by the force model and the
stall predicates):
- α <= 15°: attached flow
- 15° < α <= 25°: progressive stall
- α > 25°: deep stall, saturating at 45°

Typical usage example:
    from dogfight.physics.flight_model.flight_dynamics import FlightDynamics

    dynamics = FlightDynamics(config)
    forces = dynamics.calculate_forces(state, ControlInputs(throttle=0.7), dt=1 / 60)
"""

import math
from dataclasses import replace

from dogfight.aircraft.config import AircraftConfig
from dogfight.core.input import ControlInputs
from dogfight.core.logging_system import get_logger
from dogfight.physics.flight_model.base import (
    AircraftState,
    EngineState,
    FlightForces,
    StallEffects,
)
from dogfight.physics.vectors import Vector3

logger = get_logger(__name__)

GRAVITY = 9.81  # m/s²
AIR_DENSITY_SEA_LEVEL = 1.225  # kg/m³
DEGREES_TO_RADIANS = math.pi / 180.0
RADIANS_TO_DEGREES = 180.0 / math.pi

CRITICAL_AOA_DEG = 15.0
DEEP_STALL_AOA_DEG = 25.0
DEEP_STALL_RANGE_DEG = 20.0

OSWALD_EFFICIENCY = 0.8
MIN_LIFT_FRACTION = 0.2  # of weight, above MIN_LIFT_AIRSPEED
MIN_LIFT_AIRSPEED = 5.0  # m/s
MIN_DRAG_AIRSPEED = 0.1  # m/s
THRUST_ALTITUDE_SCALE = 15000.0  # m
MIN_ALTITUDE_FACTOR = 0.3


class FlightDynamics:
    """Force model and engine simulation for one aircraft.

    Owned exclusively by a single aircraft. The only internal state is the
    engine (throttle lag, RPM, temperature) and the engine damage level.

    Examples:
        >>> dynamics = FlightDynamics(get_aircraft_config("spitfire"))
        >>> forces = dynamics.calculate_forces(state, ControlInputs(throttle=1.0), 0.016)
        >>> forces.thrust.magnitude() > 0
        True
    """

    def __init__(self, config: AircraftConfig) -> None:
        """Initialize dynamics for an aircraft type.

        Args:
            config: Aircraft constants (a private copy is kept).
        """
        self.config = replace(config)

        # Engine response characteristics
        self.throttle_response_rate = 2.5  # throttle units per second
        self.rpm_response_rate = 1.8  # fraction of RPM range per second
        self.temperature_response_rate = 0.5  # 1/s
        self.idle_rpm = 800.0
        self.max_rpm = 2800.0

        self.engine_state = EngineState(rpm=self.idle_rpm)
        self.engine_damage = 0.0

        # Last computed forces (for telemetry/read-back)
        self.forces = FlightForces()

    @property
    def effective_max_thrust(self) -> float:
        """Maximum thrust after engine damage (N)."""
        return self.config.max_thrust * (1.0 - self.engine_damage)

    def set_engine_damage(self, fraction: float) -> None:
        """Cap available thrust at ``1 - fraction`` of the configured maximum.

        Engine damage only ever increases until ``reset()``.
        """
        fraction = max(0.0, min(1.0, fraction))
        if fraction > self.engine_damage:
            self.engine_damage = fraction
            logger.info(
                "%s engine damaged: max thrust now %.0fN",
                self.config.name,
                self.effective_max_thrust,
            )

    def calculate_forces(
        self, state: AircraftState, controls: ControlInputs, dt: float
    ) -> FlightForces:
        """Advance the engine and compute this tick's forces.

        Args:
            state: Current aircraft state (not modified).
            controls: Pilot inputs (clamped internally).
            dt: Time step in seconds.

        Returns:
            Force breakdown and control effectiveness.
        """
        self._update_engine_state(controls.throttle, max(0.0, dt))

        stall = self.calculate_stall_effects(state)

        forces = FlightForces(
            thrust=self._calculate_thrust(state),
            lift=self._calculate_lift(state, stall),
            drag=self._calculate_drag(state, stall),
            weight=self._calculate_weight(state),
            control_effectiveness=self.calculate_control_effectiveness(state),
        )
        forces.calculate_total()
        self.forces = forces
        return forces

    def _update_engine_state(self, throttle: float, dt: float) -> None:
        """Move throttle, RPM and temperature toward their targets."""
        engine = self.engine_state
        engine.target_throttle = max(0.0, min(1.0, throttle))

        # Throttle lag: fixed rate, snaps to target instead of overshooting
        throttle_diff = engine.target_throttle - engine.actual_throttle
        max_change = self.throttle_response_rate * dt
        if abs(throttle_diff) > max_change:
            engine.actual_throttle += math.copysign(max_change, throttle_diff)
        else:
            engine.actual_throttle = engine.target_throttle
        engine.actual_throttle = max(0.0, min(1.0, engine.actual_throttle))

        # RPM follows actual throttle
        rpm_range = self.max_rpm - self.idle_rpm
        target_rpm = self.idle_rpm + rpm_range * engine.actual_throttle
        rpm_diff = target_rpm - engine.rpm
        max_rpm_change = rpm_range * self.rpm_response_rate * dt
        engine.rpm += math.copysign(min(abs(rpm_diff), max_rpm_change), rpm_diff)

        # Temperature: exponential approach, 20-100°C
        target_temp = 20.0 + engine.actual_throttle * 80.0
        blend = min(1.0, dt * self.temperature_response_rate)
        engine.temperature += (target_temp - engine.temperature) * blend

    def _calculate_thrust(self, state: AircraftState) -> Vector3:
        actual = self.engine_state.actual_throttle
        altitude_factor = max(MIN_ALTITUDE_FACTOR, 1.0 - state.altitude / THRUST_ALTITUDE_SCALE)
        thrust_magnitude = (
            actual
            * self.effective_max_thrust
            * min(1.0, altitude_factor)
            * self.get_throttle_efficiency(actual)
        )
        return state.forward() * thrust_magnitude

    @staticmethod
    def get_throttle_efficiency(throttle: float) -> float:
        """Engine efficiency curve.

        Low throttle is inefficient, efficiency peaks around 80% and decays
        slightly above it (overheating).
        """
        throttle = max(0.0, min(1.0, throttle))
        if throttle < 0.1:
            return 0.3
        if throttle < 0.3:
            return 0.5 + throttle * 1.67
        if throttle < 0.8:
            return 0.85 + throttle * 0.1875
        return 1.0 - (throttle - 0.8) * 0.25

    def _dynamic_pressure(self, airspeed: float) -> float:
        return 0.5 * AIR_DENSITY_SEA_LEVEL * airspeed * airspeed

    def _calculate_lift(self, state: AircraftState, stall: StallEffects) -> Vector3:
        q = self._dynamic_pressure(state.airspeed)
        cl = self.calculate_lift_coefficient(state.angle_of_attack)
        lift_magnitude = q * self.config.wing_area * cl * stall.lift_reduction

        # Floor keeps a slow aircraft from pinning itself to the ground
        if state.airspeed > MIN_LIFT_AIRSPEED:
            min_lift = self.config.mass * GRAVITY * MIN_LIFT_FRACTION
            lift_magnitude = max(lift_magnitude, min_lift)

        return state.up() * lift_magnitude

    def _calculate_drag(self, state: AircraftState, stall: StallEffects) -> Vector3:
        airspeed = state.airspeed
        if airspeed <= MIN_DRAG_AIRSPEED:
            return Vector3.zero()

        q = self._dynamic_pressure(airspeed)
        parasitic = q * self.config.drag_coefficient * self.config.wing_area

        cl = self.calculate_lift_coefficient(state.angle_of_attack)
        induced_coefficient = (cl * cl) / (math.pi * self.config.aspect_ratio * OSWALD_EFFICIENCY)
        induced = q * induced_coefficient * self.config.wing_area

        drag_magnitude = (parasitic + induced) * stall.drag_increase

        direction = state.velocity.normalized()
        if direction.magnitude_squared() == 0.0:
            return Vector3.zero()
        return direction * (-drag_magnitude)

    def _calculate_weight(self, state: AircraftState) -> Vector3:
        weight_magnitude = self.config.mass * GRAVITY
        weight = Vector3(0.0, -weight_magnitude, 0.0)

        # Along-path gravity: pulls forward in a dive, back in a climb
        if state.velocity.magnitude() > MIN_LIFT_AIRSPEED:
            along_path = -math.sin(state.pitch) * weight_magnitude
            weight = weight + state.forward() * along_path

        return weight

    def calculate_lift_coefficient(self, angle_of_attack: float) -> float:
        """Lift coefficient for an angle of attack (radians).

        Linear at 0.1 per degree up to the critical angle, then decaying
        exponentially toward 30% of peak.
        """
        alpha = angle_of_attack * RADIANS_TO_DEGREES
        if abs(alpha) <= CRITICAL_AOA_DEG:
            return self.config.lift_coefficient * alpha * 0.1

        excess = abs(alpha) - CRITICAL_AOA_DEG
        decay = math.exp(-excess / 8.0)
        return self.config.lift_coefficient * math.copysign(1.0, alpha) * (0.3 + 0.7 * decay)

    def calculate_stall_effects(self, state: AircraftState) -> StallEffects:
        """Lift and drag multipliers for the current angle of attack."""
        alpha = abs(state.angle_of_attack * RADIANS_TO_DEGREES)

        if alpha <= CRITICAL_AOA_DEG:
            return StallEffects()

        if alpha <= DEEP_STALL_AOA_DEG:
            progress = (alpha - CRITICAL_AOA_DEG) / (DEEP_STALL_AOA_DEG - CRITICAL_AOA_DEG)
            return StallEffects(
                lift_reduction=1.0 - progress * 0.6,
                drag_increase=1.0 + progress * 2.0,
                pitch_moment=-progress * 0.5,
            )

        progress = min(1.0, (alpha - DEEP_STALL_AOA_DEG) / DEEP_STALL_RANGE_DEG)
        return StallEffects(
            lift_reduction=0.4 - progress * 0.2,
            drag_increase=3.0 + progress * 2.0,
            pitch_moment=-0.8 - progress * 0.4,
        )

    def calculate_control_effectiveness(self, state: AircraftState) -> float:
        """Control authority factor from airspeed (0.1 to 1.0)."""
        min_speed = self.config.stall_speed * 0.5
        normal_speed = self.config.cruise_speed

        if state.airspeed < min_speed:
            return 0.1
        if state.airspeed >= normal_speed or normal_speed <= min_speed:
            return 1.0
        effectiveness = 0.1 + (state.airspeed - min_speed) / (normal_speed - min_speed) * 0.9
        return max(0.1, min(1.0, effectiveness))

    def is_stalled(self, state: AircraftState) -> bool:
        """Whether the wing is stalled or the aircraft is below flying speed."""
        stall = self.calculate_stall_effects(state)
        return (
            abs(state.angle_of_attack) > CRITICAL_AOA_DEG * DEGREES_TO_RADIANS
            or state.airspeed < self.config.stall_speed * 0.9
            or stall.lift_reduction < 0.8
        )

    def stall_severity(self, state: AircraftState) -> float:
        """Continuous stall severity.

        Returns:
            0.0 with attached flow, 0.0-0.5 in progressive stall,
            0.5-1.0 in deep stall.
        """
        alpha = abs(state.angle_of_attack * RADIANS_TO_DEGREES)
        if alpha <= CRITICAL_AOA_DEG:
            return 0.0
        if alpha <= DEEP_STALL_AOA_DEG:
            return (alpha - CRITICAL_AOA_DEG) / (DEEP_STALL_AOA_DEG - CRITICAL_AOA_DEG) * 0.5
        progress = min(1.0, (alpha - DEEP_STALL_AOA_DEG) / DEEP_STALL_RANGE_DEG)
        return 0.5 + progress * 0.5

    def optimal_climb_angle(self, state: AircraftState) -> float:
        """Best climb angle (radians) for the current speed."""
        speed_ratio = state.airspeed / self.config.cruise_speed
        if speed_ratio < 0.6:
            return 5.0 * DEGREES_TO_RADIANS
        if speed_ratio < 1.2:
            return 15.0 * DEGREES_TO_RADIANS
        return 10.0 * DEGREES_TO_RADIANS

    def max_turn_rate(self, state: AircraftState) -> float:
        """Sustainable turn rate (rad/s) at a 6 g limit, capped by roll rate."""
        if state.airspeed < MIN_DRAG_AIRSPEED:
            return 0.0
        g_limit = 6.0
        turn_radius = (state.airspeed * state.airspeed) / (GRAVITY * g_limit)
        return min(state.airspeed / turn_radius, self.config.roll_rate)

    def get_engine_state(self) -> EngineState:
        """Copy of the engine state."""
        return replace(self.engine_state)

    @property
    def actual_throttle(self) -> float:
        """Throttle actually delivered by the engine."""
        return self.engine_state.actual_throttle

    @property
    def rpm(self) -> float:
        """Engine RPM."""
        return self.engine_state.rpm

    @property
    def temperature(self) -> float:
        """Engine temperature (°C)."""
        return self.engine_state.temperature

    def reset(self) -> None:
        """Return the engine to idle and clear engine damage."""
        self.engine_state = EngineState(rpm=self.idle_rpm)
        self.engine_damage = 0.0
        self.forces = FlightForces()

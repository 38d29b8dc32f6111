"""Shared flight model data types.

Defines the per-aircraft kinematic state, the engine state owned by the
flight dynamics, and the force breakdown produced every tick.
"""

import copy
from dataclasses import dataclass, field

from dogfight.physics.vectors import Quaternion, Vector3


@dataclass
class AircraftState:
    """Mutable kinematic and status record of one aircraft.

    Angles are radians. ``rotation`` holds Euler angles as
    x = pitch (nose up positive), y = roll (right wing down positive),
    z = yaw (toward +X positive); ``orientation`` is the authoritative
    quaternion they are extracted from.

    Attributes:
        position: World position in meters (y is altitude).
        rotation: Euler angles derived from ``orientation``.
        orientation: Orientation quaternion.
        velocity: World velocity in m/s.
        angular_velocity: Body rates (x = pitch, y = roll, z = yaw) in rad/s.
        airspeed: |velocity| in m/s.
        altitude: position.y in meters.
        heading: Horizontal heading in radians (0 = +Z).
        angle_of_attack: Angle between nose and velocity, vertical plane.
        slip_angle: Angle between nose and velocity, lateral plane.
        throttle: Commanded throttle (0.0 to 1.0).
        health: Aggregate health percentage (0 to 100).
        fuel: Fuel percentage (0 to 100).
        ammunition: Rounds remaining.
    """

    position: Vector3 = field(default_factory=Vector3.zero)
    rotation: Vector3 = field(default_factory=Vector3.zero)
    orientation: Quaternion = field(default_factory=Quaternion.identity)
    velocity: Vector3 = field(default_factory=Vector3.zero)
    angular_velocity: Vector3 = field(default_factory=Vector3.zero)

    airspeed: float = 0.0
    altitude: float = 0.0
    heading: float = 0.0
    angle_of_attack: float = 0.0
    slip_angle: float = 0.0
    throttle: float = 0.0

    health: float = 100.0
    fuel: float = 100.0
    ammunition: int = 0

    @property
    def pitch(self) -> float:
        """Pitch angle in radians."""
        return self.rotation.x

    @property
    def roll(self) -> float:
        """Roll angle in radians."""
        return self.rotation.y

    @property
    def yaw(self) -> float:
        """Yaw angle in radians."""
        return self.rotation.z

    def set_orientation(self, orientation: Quaternion) -> None:
        """Replace the orientation and refresh the Euler angles."""
        self.orientation = orientation.normalized()
        pitch, roll, yaw = self.orientation.to_euler()
        self.rotation.set(pitch, roll, yaw)

    def set_euler(self, pitch: float, roll: float, yaw: float) -> None:
        """Set orientation from Euler angles."""
        self.set_orientation(Quaternion.from_euler(pitch, roll, yaw))

    def forward(self) -> Vector3:
        """Aircraft nose direction in world space."""
        return self.orientation.rotate(Vector3.forward())

    def up(self) -> Vector3:
        """Aircraft vertical axis in world space."""
        return self.orientation.rotate(Vector3.up())

    def right(self) -> Vector3:
        """Aircraft right-wing axis in world space."""
        return self.orientation.rotate(Vector3.right())

    def to_local(self, world_vector: Vector3) -> Vector3:
        """Express a world-space direction in the aircraft frame."""
        return self.orientation.conjugate().rotate(world_vector)

    def copy(self) -> "AircraftState":
        """Deep copy (vectors are not shared)."""
        return copy.deepcopy(self)


@dataclass
class EngineState:
    """Lagged engine response.

    Attributes:
        actual_throttle: Power actually delivered (0.0 to 1.0).
        target_throttle: Commanded throttle.
        rpm: Engine speed.
        temperature: Engine temperature in °C.
    """

    actual_throttle: float = 0.0
    target_throttle: float = 0.0
    rpm: float = 800.0
    temperature: float = 20.0


@dataclass
class StallEffects:
    """Stall multipliers applied to lift and drag.

    Attributes:
        lift_reduction: Fraction of lift retained (1.0 = no stall).
        drag_increase: Drag multiplier (1.0 = no stall).
        pitch_moment: Nose-down tendency (0 or negative).
    """

    lift_reduction: float = 1.0
    drag_increase: float = 1.0
    pitch_moment: float = 0.0


@dataclass
class FlightForces:
    """Forces acting on the aircraft for one tick (Newtons, world frame).

    Attributes:
        thrust: Propeller thrust along the nose.
        lift: Lift along the aircraft's up axis.
        drag: Drag opposing velocity.
        weight: Gravity plus along-path component.
        total: Sum of the above.
        control_effectiveness: Control authority factor (0.0 to 1.0).
    """

    thrust: Vector3 = field(default_factory=Vector3.zero)
    lift: Vector3 = field(default_factory=Vector3.zero)
    drag: Vector3 = field(default_factory=Vector3.zero)
    weight: Vector3 = field(default_factory=Vector3.zero)
    total: Vector3 = field(default_factory=Vector3.zero)
    control_effectiveness: float = 1.0

    def calculate_total(self) -> None:
        """Sum the individual forces into ``total``."""
        self.total = self.thrust + self.lift + self.drag + self.weight

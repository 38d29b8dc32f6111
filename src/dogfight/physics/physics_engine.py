"""Fixed-timestep rigid-body container for non-aircraft bodies.

Aircraft integrate themselves every frame from their own flight model. Other
physical objects (debris, falling wreckage, balloons) are registered here and
advanced with a fixed step and an accumulator, so integration is identical
regardless of frame-rate jitter.

Typical usage example:
    engine = PhysicsEngine()
    engine.add_body(PhysicsBody(id="debris_1", mass=50.0, position=Vector3(0, 300, 0)))
    engine.update(frame_dt)
    hit = engine.raycast(origin, direction, max_distance=400.0)
"""

from dataclasses import dataclass, field

from dogfight.core.logging_system import get_logger
from dogfight.physics.vectors import EPSILON, Quaternion, Vector3

logger = get_logger(__name__)

GRAVITY = 9.81  # m/s²
DEFAULT_FIXED_TIME_STEP = 1.0 / 60.0
DEFAULT_MAX_SUB_STEPS = 3
LINEAR_DAMPING = 0.999
ANGULAR_DAMPING = 0.98
INERTIA_FACTOR = 0.1  # moment of inertia approximated as mass * factor
BODY_RADIUS = 5.0  # m, sphere used for raycasts


@dataclass
class PhysicsBody:
    """Rigid body registered with the engine.

    Forces and torques accumulate between steps and are cleared after each
    fixed step. Bodies whose id contains "aircraft" are not given gravity.
    """

    id: str
    mass: float = 1.0
    position: Vector3 = field(default_factory=Vector3.zero)
    rotation: Quaternion = field(default_factory=Quaternion.identity)
    velocity: Vector3 = field(default_factory=Vector3.zero)
    angular_velocity: Vector3 = field(default_factory=Vector3.zero)
    forces: Vector3 = field(default_factory=Vector3.zero)
    torques: Vector3 = field(default_factory=Vector3.zero)
    is_dynamic: bool = True

    def add_force(self, force: Vector3) -> None:
        """Accumulate a force for the next fixed step."""
        self.forces = self.forces + force

    def add_torque(self, torque: Vector3) -> None:
        """Accumulate a torque for the next fixed step."""
        self.torques = self.torques + torque


@dataclass
class RaycastHit:
    """Closest body intersected by a ray."""

    body: PhysicsBody
    point: Vector3
    distance: float


@dataclass
class PhysicsStats:
    """Debug counters."""

    body_count: int
    avg_velocity: float


class PhysicsEngine:
    """Fixed-step integrator for generic bodies."""

    def __init__(
        self,
        fixed_time_step: float = DEFAULT_FIXED_TIME_STEP,
        max_sub_steps: int = DEFAULT_MAX_SUB_STEPS,
    ) -> None:
        if fixed_time_step <= 0:
            raise ValueError("fixed_time_step must be positive")
        if max_sub_steps < 1:
            raise ValueError("max_sub_steps must be at least 1")

        self.fixed_time_step = fixed_time_step
        self.max_sub_steps = max_sub_steps
        self.gravity = Vector3(0.0, -GRAVITY, 0.0)
        self.accumulator = 0.0
        self.bodies: dict[str, PhysicsBody] = {}

        logger.debug(
            "PhysicsEngine initialized: step=%.4fs, max_sub_steps=%d",
            fixed_time_step,
            max_sub_steps,
        )

    def add_body(self, body: PhysicsBody) -> None:
        """Register a body (replaces any body with the same id)."""
        self.bodies[body.id] = body

    def remove_body(self, body_id: str) -> None:
        """Unregister a body; unknown ids are ignored."""
        self.bodies.pop(body_id, None)

    def get_body(self, body_id: str) -> PhysicsBody | None:
        """Look up a registered body."""
        return self.bodies.get(body_id)

    def update(self, dt: float) -> int:
        """Advance the simulation by a frame delta.

        Runs as many fixed steps as the accumulated time allows, up to
        ``max_sub_steps``. Time left over after hitting the cap is dropped
        down to less than one step so a slow frame cannot snowball.

        Args:
            dt: Frame delta in seconds.

        Returns:
            Number of fixed steps taken.
        """
        self.accumulator += max(0.0, dt)

        steps = 0
        while self.accumulator >= self.fixed_time_step and steps < self.max_sub_steps:
            self._fixed_update(self.fixed_time_step)
            self.accumulator -= self.fixed_time_step
            steps += 1

        if self.accumulator >= self.fixed_time_step:
            self.accumulator %= self.fixed_time_step

        return steps

    @property
    def interpolation_alpha(self) -> float:
        """Fraction of a step left in the accumulator (for render blending)."""
        return self.accumulator / self.fixed_time_step

    def _fixed_update(self, dt: float) -> None:
        for body in self.bodies.values():
            if not body.is_dynamic:
                continue

            self._apply_forces(body)

            acceleration = body.forces / body.mass
            body.velocity = body.velocity + acceleration * dt
            body.position = body.position + body.velocity * dt

            angular_acceleration = body.torques / (body.mass * INERTIA_FACTOR)
            body.angular_velocity = body.angular_velocity + angular_acceleration * dt

            rate = body.angular_velocity.magnitude()
            if rate > EPSILON:
                delta = Quaternion.from_axis_angle(body.angular_velocity, rate * dt)
                body.rotation = (body.rotation * delta).normalized()

            body.velocity = body.velocity * LINEAR_DAMPING
            body.angular_velocity = body.angular_velocity * ANGULAR_DAMPING

            body.forces = Vector3.zero()
            body.torques = Vector3.zero()

    def _apply_forces(self, body: PhysicsBody) -> None:
        # Aircraft supply their own weight through the flight model
        if "aircraft" not in body.id:
            body.forces = body.forces + self.gravity * body.mass

    def raycast(
        self,
        origin: Vector3,
        direction: Vector3,
        max_distance: float,
        exclude_ids: list[str] | None = None,
    ) -> RaycastHit | None:
        """Closest body whose bounding sphere the ray passes through.

        Args:
            origin: Ray start.
            direction: Ray direction (normalized internally).
            max_distance: Maximum distance along the ray.
            exclude_ids: Body ids to ignore.

        Returns:
            Closest hit, or None.
        """
        unit = direction.normalized()
        if unit.magnitude_squared() < EPSILON:
            return None

        excluded = set(exclude_ids or ())
        closest = None
        min_distance = max_distance

        for body in self.bodies.values():
            if body.id in excluded:
                continue

            projected = (body.position - origin).dot(unit)
            if projected < 0 or projected > min_distance:
                continue

            closest_point = origin + unit * projected
            if closest_point.distance_to(body.position) < BODY_RADIUS:
                min_distance = projected
                closest = RaycastHit(body=body, point=closest_point, distance=projected)

        return closest

    def apply_impulse(
        self, body_id: str, impulse: Vector3, point: Vector3 | None = None
    ) -> None:
        """Apply an instantaneous impulse (explosions, collisions).

        With a ``point``, the off-center part also spins the body.
        """
        body = self.bodies.get(body_id)
        if body is None or not body.is_dynamic:
            return

        body.velocity = body.velocity + impulse / body.mass

        if point is not None:
            lever = point - body.position
            angular = lever.cross(impulse) / (body.mass * INERTIA_FACTOR)
            body.angular_velocity = body.angular_velocity + angular

    def check_ground_collision(self, body_id: str) -> bool:
        """Whether a body is at or below the ground plane (y = 0)."""
        body = self.bodies.get(body_id)
        if body is None:
            return False
        return body.position.y <= 0.0

    def stats(self) -> PhysicsStats:
        """Body count and mean speed of dynamic bodies."""
        speeds = [b.velocity.magnitude() for b in self.bodies.values() if b.is_dynamic]
        avg = sum(speeds) / len(speeds) if speeds else 0.0
        return PhysicsStats(body_count=len(self.bodies), avg_velocity=avg)

"""Pooled projectiles and their ballistics.

Projectiles are allocated once, up front, by a ``ProjectilePool`` and recycled
for the rest of the simulation. ``acquire()`` hands out an inert instance or
None when the pool is exhausted; the pool never grows.

Typical usage example:
    pool = ProjectilePool(capacity=1000)
    projectile = pool.acquire()
    if projectile is not None:
        projectile.init(spawn)
    ...
    pool.release(projectile)
"""

from dataclasses import dataclass
from enum import Enum

from dogfight.core.logging_system import get_logger
from dogfight.physics.vectors import EPSILON, Vector3

logger = get_logger(__name__)

GRAVITY = 9.81  # m/s²
DEFAULT_POOL_CAPACITY = 1000
MAX_TRAIL_LENGTH = 5.0  # m
TRAIL_LENGTH_FACTOR = 0.05  # s


class ProjectileClass(Enum):
    """Ballistic class. Bullets fly straight; the others drop."""

    BULLET = "bullet"
    CANNON = "cannon"
    ROCKET = "rocket"


@dataclass
class ProjectileSpawn:
    """Everything needed to launch a projectile.

    Produced by ``Weapon.fire``; the weapon never allocates projectiles itself.
    """

    position: Vector3
    velocity: Vector3
    damage: float
    owner_id: str
    max_range: float
    is_tracer: bool
    projectile_class: ProjectileClass


class Projectile:
    """Reusable projectile instance."""

    def __init__(self) -> None:
        self.position = Vector3.zero()
        self.last_position = Vector3.zero()
        self.velocity = Vector3.zero()
        self.direction = Vector3.forward()
        self.damage = 0.0
        self.owner_id = ""
        self.max_range = 0.0
        self.distance_traveled = 0.0
        self.is_tracer = False
        self.projectile_class = ProjectileClass.BULLET
        self.active = False

    def init(self, spawn: ProjectileSpawn) -> None:
        """Activate with a spawn descriptor, clearing any previous flight."""
        self.position = spawn.position.copy()
        self.last_position = spawn.position.copy()
        self.velocity = spawn.velocity.copy()
        self.damage = spawn.damage
        self.owner_id = spawn.owner_id
        self.max_range = spawn.max_range
        self.is_tracer = spawn.is_tracer
        self.projectile_class = spawn.projectile_class
        self.distance_traveled = 0.0
        self.active = True
        self._update_direction()

    def update(self, dt: float) -> None:
        """Advance one tick. Inactive projectiles are left untouched."""
        if not self.active:
            return

        self.last_position = self.position.copy()

        displacement = self.velocity * dt
        self.position = self.position + displacement

        if self.projectile_class is not ProjectileClass.BULLET:
            self.velocity.y -= GRAVITY * dt

        self.distance_traveled += displacement.magnitude()
        self._update_direction()

    def _update_direction(self) -> None:
        # A stationary projectile keeps its last heading
        if self.velocity.magnitude_squared() > EPSILON:
            self.direction = self.velocity.normalized()

    @property
    def is_out_of_range(self) -> bool:
        """Whether the projectile has flown past its maximum range."""
        return self.distance_traveled > self.max_range

    @property
    def trail_length(self) -> float:
        """Tracer streak length in meters (0 for non-tracers)."""
        if not self.is_tracer:
            return 0.0
        return min(self.velocity.magnitude() * TRAIL_LENGTH_FACTOR, MAX_TRAIL_LENGTH)

    def deactivate(self) -> None:
        self.active = False


class ProjectilePool:
    """Fixed-capacity projectile allocator shared by all weapons.

    Not thread-safe: the simulation is single-threaded and the pool is its
    only projectile allocator.
    """

    def __init__(self, capacity: int = DEFAULT_POOL_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._available: list[Projectile] = [Projectile() for _ in range(capacity)]
        self._active: list[Projectile] = []
        self._exhausted_logged = False

    def acquire(self) -> Projectile | None:
        """Take an inert projectile, or None if every projectile is in flight."""
        if not self._available:
            if not self._exhausted_logged:
                logger.warning("Projectile pool exhausted (%d in flight)", self.capacity)
                self._exhausted_logged = True
            return None
        projectile = self._available.pop()
        self._active.append(projectile)
        return projectile

    def release(self, projectile: Projectile) -> None:
        """Deactivate a projectile and return it to the pool.

        Releasing a projectile that is not checked out is a no-op.
        """
        projectile.deactivate()
        try:
            self._active.remove(projectile)
        except ValueError:
            return
        self._available.append(projectile)
        self._exhausted_logged = False

    def release_all(self) -> None:
        """Return every active projectile to the pool."""
        for projectile in list(self._active):
            self.release(projectile)

    @property
    def active_projectiles(self) -> list[Projectile]:
        """Checked-out projectiles (copy of the list)."""
        return list(self._active)

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def available_count(self) -> int:
        return len(self._available)

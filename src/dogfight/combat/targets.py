"""Hit-test targets supplied to the weapon system each tick.

The simulation core never builds a scene. Whoever manages entities hands
``WeaponManager.update`` a collection of objects satisfying ``HitTarget``: an
owner id (so a shooter never hits itself) and a ray intersection test.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from dogfight.physics.vectors import EPSILON, Quaternion, Vector3

Pose = Callable[[], tuple[Vector3, Quaternion]]


class HitTarget(Protocol):
    """Anything projectiles can hit."""

    owner_id: str

    def raycast(self, origin: Vector3, direction: Vector3, max_distance: float) -> float | None:
        """Distance along a unit ray to the first intersection, or None."""
        ...


@dataclass
class TargetHit:
    """First intersection of a projectile segment with a target."""

    target: HitTarget
    point: Vector3
    distance: float


class SphereTarget:
    """Sphere around a (possibly moving) center."""

    def __init__(
        self,
        owner_id: str,
        center: Callable[[], Vector3],
        radius: float,
        entity: Any = None,
    ) -> None:
        self.owner_id = owner_id
        self.center = center
        self.radius = radius
        self.entity = entity

    def raycast(self, origin: Vector3, direction: Vector3, max_distance: float) -> float | None:
        to_center = origin - self.center()
        b = to_center.dot(direction)
        c = to_center.magnitude_squared() - self.radius * self.radius

        if c <= 0.0:
            return 0.0  # origin inside

        discriminant = b * b - c
        if discriminant < 0.0:
            return None

        distance = -b - discriminant**0.5
        if distance < 0.0 or distance > max_distance:
            return None
        return distance


class BoxTarget:
    """Oriented box, posed each query by a callback.

    Attributes:
        half_extents: Half sizes along local x (span), y (height), z (length).
    """

    def __init__(
        self,
        owner_id: str,
        pose: Pose,
        half_extents: Vector3,
        entity: Any = None,
    ) -> None:
        self.owner_id = owner_id
        self.pose = pose
        self.half_extents = half_extents
        self.entity = entity

    def raycast(self, origin: Vector3, direction: Vector3, max_distance: float) -> float | None:
        position, orientation = self.pose()
        inverse = orientation.conjugate()
        local_origin = inverse.rotate(origin - position)
        local_direction = inverse.rotate(direction)

        t_min = 0.0
        t_max = max_distance
        extents = self.half_extents

        # Slab test per axis
        for o, d, h in (
            (local_origin.x, local_direction.x, extents.x),
            (local_origin.y, local_direction.y, extents.y),
            (local_origin.z, local_direction.z, extents.z),
        ):
            if abs(d) < EPSILON:
                if o < -h or o > h:
                    return None
                continue
            t1 = (-h - o) / d
            t2 = (h - o) / d
            if t1 > t2:
                t1, t2 = t2, t1
            t_min = max(t_min, t1)
            t_max = min(t_max, t2)
            if t_min > t_max:
                return None

        return t_min


def raycast_targets(
    origin: Vector3,
    end: Vector3,
    targets: list[HitTarget],
    exclude_owner: str | None = None,
) -> TargetHit | None:
    """Closest target hit by the segment from ``origin`` to ``end``.

    Args:
        origin: Segment start (previous projectile position).
        end: Segment end (current projectile position).
        targets: Candidate targets.
        exclude_owner: Owner id to skip (the shooter).

    Returns:
        The nearest hit, or None. A zero-length segment never hits.
    """
    segment = end - origin
    length = segment.magnitude()
    if length < EPSILON:
        return None
    direction = segment / length

    closest: TargetHit | None = None
    for target in targets:
        if exclude_owner is not None and target.owner_id == exclude_owner:
            continue
        distance = target.raycast(origin, direction, length)
        if distance is None:
            continue
        if closest is None or distance < closest.distance:
            closest = TargetHit(target=target, point=origin + direction * distance, distance=distance)

    return closest

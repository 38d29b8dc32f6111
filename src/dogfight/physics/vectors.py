"""3D vector and quaternion math for the simulation core.

Coordinate system (world and aircraft-local):
    +X is right, +Y is up, +Z is forward.

Vectors are small mutable value objects. Arithmetic operators always return
new instances so callers can chain expressions without aliasing surprises;
in-place helpers (``set``, ``copy_from``) exist for hot paths.

Typical usage example:
    from dogfight.physics.vectors import Quaternion, Vector3

    velocity = Vector3(0.0, 0.0, 140.0)
    orientation = Quaternion.from_euler(pitch=0.1, roll=0.0, yaw=0.0)
    forward = orientation.rotate(Vector3.forward())
"""

import math
from dataclasses import dataclass

EPSILON = 1e-9


@dataclass
class Vector3:
    """Mutable 3D vector.

    Attributes:
        x: Lateral component (right positive).
        y: Vertical component (up positive).
        z: Longitudinal component (forward positive).
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @staticmethod
    def zero() -> "Vector3":
        """Return a new zero vector."""
        return Vector3(0.0, 0.0, 0.0)

    @staticmethod
    def up() -> "Vector3":
        """Return the world/local up axis."""
        return Vector3(0.0, 1.0, 0.0)

    @staticmethod
    def forward() -> "Vector3":
        """Return the local forward axis."""
        return Vector3(0.0, 0.0, 1.0)

    @staticmethod
    def right() -> "Vector3":
        """Return the local right axis."""
        return Vector3(1.0, 0.0, 0.0)

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector3":
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def __str__(self) -> str:
        return f"({self.x:.2f}, {self.y:.2f}, {self.z:.2f})"

    def set(self, x: float, y: float, z: float) -> "Vector3":
        """Set all components in place.

        Returns:
            Self, for chaining.
        """
        self.x = x
        self.y = y
        self.z = z
        return self

    def copy(self) -> "Vector3":
        """Return an independent copy."""
        return Vector3(self.x, self.y, self.z)

    def copy_from(self, other: "Vector3") -> "Vector3":
        """Copy another vector's components into this one."""
        return self.set(other.x, other.y, other.z)

    def magnitude(self) -> float:
        """Euclidean length."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def magnitude_squared(self) -> float:
        """Squared length (no square root)."""
        return self.x * self.x + self.y * self.y + self.z * self.z

    def normalized(self) -> "Vector3":
        """Unit vector in the same direction.

        Returns:
            Normalized copy, or a zero vector if this vector is (near) zero.
        """
        length = self.magnitude()
        if length < EPSILON:
            return Vector3.zero()
        return Vector3(self.x / length, self.y / length, self.z / length)

    def dot(self, other: "Vector3") -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        """Cross product."""
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def distance_to(self, other: "Vector3") -> float:
        """Distance between two points."""
        return (self - other).magnitude()

    def lerp(self, other: "Vector3", t: float) -> "Vector3":
        """Linear interpolation toward ``other`` by fraction ``t``."""
        return Vector3(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
            self.z + (other.z - self.z) * t,
        )

    def horizontal_distance(self) -> float:
        """Distance from the vertical axis through the origin (XZ plane)."""
        return math.sqrt(self.x * self.x + self.z * self.z)


@dataclass
class Quaternion:
    """Unit quaternion (Hamilton convention, w first).

    Euler angles used throughout the simulation map onto rotations as:
        pitch (nose up positive)  -> rotation of -pitch about +X
        yaw (toward +X positive)  -> rotation of +yaw about +Y
        roll (right wing down)    -> rotation of -roll about +Z
    composed intrinsically in yaw, pitch, roll order.
    """

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @staticmethod
    def identity() -> "Quaternion":
        """Return the identity rotation."""
        return Quaternion(1.0, 0.0, 0.0, 0.0)

    @staticmethod
    def from_axis_angle(axis: Vector3, angle: float) -> "Quaternion":
        """Rotation of ``angle`` radians about ``axis``.

        A zero-length axis yields the identity rotation.
        """
        unit = axis.normalized()
        if unit.magnitude_squared() < EPSILON:
            return Quaternion.identity()
        half = angle * 0.5
        s = math.sin(half)
        return Quaternion(math.cos(half), unit.x * s, unit.y * s, unit.z * s)

    @staticmethod
    def from_euler(pitch: float, roll: float, yaw: float) -> "Quaternion":
        """Build an orientation from pitch/roll/yaw in radians."""
        q_yaw = Quaternion.from_axis_angle(Vector3(0.0, 1.0, 0.0), yaw)
        q_pitch = Quaternion.from_axis_angle(Vector3(1.0, 0.0, 0.0), -pitch)
        q_roll = Quaternion.from_axis_angle(Vector3(0.0, 0.0, 1.0), -roll)
        return q_yaw * q_pitch * q_roll

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z
        return Quaternion(
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        )

    def copy(self) -> "Quaternion":
        """Return an independent copy."""
        return Quaternion(self.w, self.x, self.y, self.z)

    def conjugate(self) -> "Quaternion":
        """Inverse rotation (for unit quaternions)."""
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def normalized(self) -> "Quaternion":
        """Return a unit-length copy (identity if degenerate)."""
        norm = math.sqrt(self.w * self.w + self.x * self.x + self.y * self.y + self.z * self.z)
        if norm < EPSILON:
            return Quaternion.identity()
        return Quaternion(self.w / norm, self.x / norm, self.y / norm, self.z / norm)

    def rotate(self, v: Vector3) -> Vector3:
        """Rotate a vector by this quaternion."""
        # v' = v + w*t + q_vec x t, with t = 2 * (q_vec x v)
        q_vec = Vector3(self.x, self.y, self.z)
        t = q_vec.cross(v) * 2.0
        return v + t * self.w + q_vec.cross(t)

    def to_euler(self) -> tuple[float, float, float]:
        """Decompose into (pitch, roll, yaw) radians.

        Inverse of ``from_euler``. Near +/-90 degrees pitch the roll angle is
        folded into yaw (gimbal lock) and reported as zero.
        """
        w, x, y, z = self.w, self.x, self.y, self.z
        m11 = 1.0 - 2.0 * (y * y + z * z)
        m13 = 2.0 * (x * z + w * y)
        m21 = 2.0 * (x * y + w * z)
        m22 = 1.0 - 2.0 * (x * x + z * z)
        m23 = 2.0 * (y * z - w * x)
        m31 = 2.0 * (x * z - w * y)
        m33 = 1.0 - 2.0 * (x * x + y * y)

        angle_x = math.asin(max(-1.0, min(1.0, -m23)))
        if abs(m23) < 0.9999999:
            angle_y = math.atan2(m13, m33)
            angle_z = math.atan2(m21, m22)
        else:
            angle_y = math.atan2(-m31, m11)
            angle_z = 0.0

        return -angle_x, -angle_z, angle_y

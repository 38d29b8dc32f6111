"""Barrage balloon: a tethered static target.

Sways gently around its anchor at a fixed altitude until shot down, then
falls with increasing speed and asks to be removed a few seconds later.
"""

import math
import random
from dataclasses import dataclass

from dogfight.combat.targets import SphereTarget
from dogfight.core.logging_system import get_logger
from dogfight.physics.vectors import Vector3

logger = get_logger(__name__)

MAX_HEALTH = 50.0
SWAY_AMPLITUDE = 5.0  # m
SWAY_FREQUENCY = 0.5  # rad/s of phase
HIT_RADIUS = 8.0  # m
FALL_ACCELERATION = 100.0  # m/s² of fall-speed growth
REMOVE_AFTER = 3.0  # s after destruction


@dataclass
class BalloonState:
    """Read-back of a balloon."""

    position: Vector3
    health: float
    is_destroyed: bool
    altitude: float
    sway_phase: float


class BarrageBalloon:
    """A swaying balloon that can be shot down."""

    def __init__(
        self,
        balloon_id: str,
        anchor: Vector3,
        altitude: float = 500.0,
        rng: random.Random | None = None,
    ) -> None:
        self.balloon_id = balloon_id
        self.anchor = anchor.copy()
        self.altitude = altitude
        self.health = MAX_HEALTH
        self.is_destroyed = False
        self.sway_phase = (rng or random.Random()).random() * 2.0 * math.pi
        self.destruction_time: float | None = None
        self.position = Vector3(anchor.x, altitude, anchor.z)
        self._apply_sway()

        self.hit_target = SphereTarget(
            owner_id=balloon_id,
            center=lambda: self.position,
            radius=HIT_RADIUS,
            entity=self,
        )

    def update(self, dt: float) -> None:
        if self.is_destroyed:
            self._update_destruction(dt)
            return

        self.sway_phase += dt * SWAY_FREQUENCY
        self._apply_sway()

    def _apply_sway(self) -> None:
        self.position.x = self.anchor.x + math.sin(self.sway_phase) * SWAY_AMPLITUDE
        self.position.z = self.anchor.z + math.cos(self.sway_phase * 0.7) * SWAY_AMPLITUDE * 0.5
        self.position.y = self.altitude

    def _update_destruction(self, dt: float) -> None:
        if self.destruction_time is None:
            self.destruction_time = 0.0
        self.destruction_time += dt
        self.position.y -= dt * FALL_ACCELERATION * self.destruction_time

    def take_damage(self, damage: float) -> None:
        """Subtract health; the balloon is destroyed at zero (idempotent)."""
        if self.is_destroyed:
            return

        self.health -= max(0.0, damage)
        if self.health <= 0.0:
            self.health = 0.0
            self.is_destroyed = True
            logger.info("Barrage balloon %s destroyed", self.balloon_id)

    def should_remove(self) -> bool:
        """True once the balloon has been falling for longer than 3 seconds."""
        return (
            self.is_destroyed
            and self.destruction_time is not None
            and self.destruction_time > REMOVE_AFTER
        )

    def get_state(self) -> BalloonState:
        return BalloonState(
            position=self.position.copy(),
            health=self.health,
            is_destroyed=self.is_destroyed,
            altitude=self.altitude,
            sway_phase=self.sway_phase,
        )

"""Control input snapshot consumed by the simulation each tick.

The source of these values (keyboard, gamepad, AI pilot, replay) lives
outside the core. The core only requires this shape once per tick.
"""

from dataclasses import dataclass, replace


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass
class ControlInputs:
    """Pilot control inputs.

    Attributes:
        pitch: Elevator (-1.0 nose down to 1.0 nose up).
        roll: Ailerons (-1.0 left to 1.0 right).
        yaw: Rudder (-1.0 left to 1.0 right).
        throttle: Throttle position (0.0 to 1.0).
        fire: Trigger held.
        brake: Airbrake requested.
        boost: Emergency power requested.
        look_back: Rear view requested (presentation only).
        pause: Pause requested (presentation only).
    """

    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0
    throttle: float = 0.5
    fire: bool = False
    brake: bool = False
    boost: bool = False
    look_back: bool = False
    pause: bool = False

    def clamped(self) -> "ControlInputs":
        """Return a copy with all axes limited to their documented ranges."""
        return replace(
            self,
            pitch=_clamp(self.pitch, -1.0, 1.0),
            roll=_clamp(self.roll, -1.0, 1.0),
            yaw=_clamp(self.yaw, -1.0, 1.0),
            throttle=_clamp(self.throttle, 0.0, 1.0),
        )

    def copy(self) -> "ControlInputs":
        """Return an independent copy."""
        return replace(self)

"""Component-based aircraft damage.

Each aircraft carries six structural components with independent health,
armor and thresholds. A hit is localized geometrically in the aircraft frame,
reduced by armor, and may push the component past its critical or destroyed
threshold. Crossing a threshold produces ``DamageEffect`` records; the model
never mutates the aircraft's flight state itself. The target receives the
effects and the new aggregate health through ``DamageTarget`` and applies them
in one place.

Typical usage example:
    manager = DamageManager()
    manager.create_damage_model("player")
    result = manager.apply_damage("player", 10.0, hit_point, aircraft)
    if result and result.is_destroyed:
        ...
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from dogfight.core.logging_system import get_logger
from dogfight.physics.vectors import Vector3

logger = get_logger(__name__)

EXPLOSIVE_MULTIPLIER = 1.5
SPLASH_FRACTION = 0.3


class ComponentName(Enum):
    """Structural zones of an aircraft."""

    ENGINE = "engine"
    LEFT_WING = "left_wing"
    RIGHT_WING = "right_wing"
    TAIL = "tail"
    FUSELAGE = "fuselage"
    COCKPIT = "cockpit"


class DamageType(Enum):
    """How damage is delivered."""

    BULLET = "bullet"
    EXPLOSIVE = "explosive"
    COLLISION = "collision"


class EffectKind(Enum):
    """What a damage effect does to the aircraft."""

    ENGINE_DAMAGE = "engine_damage"
    CONTROL_DAMAGE = "control_damage"
    FUEL_LEAK = "fuel_leak"
    FIRE = "fire"
    SPIN = "spin"
    DESTROYED = "destroyed"


class ControlAxis(Enum):
    """Control axis affected by control damage."""

    PITCH = "pitch"
    ROLL = "roll"
    YAW = "yaw"
    ALL = "all"


class SpinDirection(Enum):
    """Direction of an uncontrollable spin after wing loss."""

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class DamageEffect:
    """One consequence of a component crossing a threshold.

    Attributes:
        kind: Effect category.
        severity: Magnitude. Engine damage is the fraction of thrust lost,
            control damage is signed per axis, fuel leak is a burn multiplier.
        axis: Axis for control damage.
        direction: Spin direction for wing loss.
        visual_effect: Marker name for presentation, if any.
    """

    kind: EffectKind
    severity: float = 0.0
    axis: ControlAxis | None = None
    direction: SpinDirection | None = None
    visual_effect: str | None = None


@dataclass
class ComponentHealth:
    """Health record for one structural component."""

    name: ComponentName
    max_health: float
    current_health: float
    armor: float
    critical_threshold: float
    is_critical: bool = False
    is_destroyed: bool = False
    effects: list[DamageEffect] = field(default_factory=list)

    @property
    def health_fraction(self) -> float:
        """Current health as a fraction of max."""
        return self.current_health / self.max_health

    def take(self, amount: float) -> None:
        """Subtract damage, clamping at zero."""
        self.current_health = max(0.0, min(self.max_health, self.current_health - amount))


@dataclass
class DamageResult:
    """Outcome of a single hit.

    Attributes:
        component: Component that took the direct hit.
        damage: Effective damage applied to that component.
        is_critical: Component critical state after the hit.
        is_destroyed: Component destroyed state after the hit.
        total_health: Aggregate aircraft health percentage after the hit.
        effects: Effects triggered by this hit (direct and splash).
    """

    component: ComponentHealth
    damage: float
    is_critical: bool
    is_destroyed: bool
    total_health: float
    effects: list[DamageEffect] = field(default_factory=list)


@dataclass
class DamageVisual:
    """Visual marker for a damaged component (aircraft-local position)."""

    component_name: ComponentName
    effect_type: str
    severity: float
    position: Vector3


class DamageTarget(Protocol):
    """What the damage model needs from the aircraft it damages."""

    def world_to_local(self, point: Vector3) -> Vector3: ...

    def set_health(self, health: float) -> None: ...

    def apply_damage_effects(self, effects: list[DamageEffect]) -> None: ...


# name: (max health, armor, critical threshold)
COMPONENT_TABLE: dict[ComponentName, tuple[float, float, float]] = {
    ComponentName.ENGINE: (100.0, 0.2, 30.0),
    ComponentName.LEFT_WING: (80.0, 0.1, 20.0),
    ComponentName.RIGHT_WING: (80.0, 0.1, 20.0),
    ComponentName.TAIL: (60.0, 0.05, 15.0),
    ComponentName.FUSELAGE: (120.0, 0.15, 40.0),
    ComponentName.COCKPIT: (40.0, 0.3, 10.0),
}

SPLASH_ADJACENCY: dict[ComponentName, tuple[ComponentName, ...]] = {
    ComponentName.ENGINE: (ComponentName.FUSELAGE, ComponentName.COCKPIT),
    ComponentName.LEFT_WING: (ComponentName.FUSELAGE, ComponentName.ENGINE),
    ComponentName.RIGHT_WING: (ComponentName.FUSELAGE, ComponentName.ENGINE),
    ComponentName.TAIL: (ComponentName.FUSELAGE,),
    ComponentName.FUSELAGE: (
        ComponentName.ENGINE,
        ComponentName.LEFT_WING,
        ComponentName.RIGHT_WING,
        ComponentName.TAIL,
        ComponentName.COCKPIT,
    ),
    ComponentName.COCKPIT: (ComponentName.FUSELAGE, ComponentName.ENGINE),
}

COMPONENT_POSITIONS: dict[ComponentName, tuple[float, float, float]] = {
    ComponentName.ENGINE: (0.0, 0.0, 3.0),
    ComponentName.LEFT_WING: (-4.0, 0.0, 0.0),
    ComponentName.RIGHT_WING: (4.0, 0.0, 0.0),
    ComponentName.TAIL: (0.0, 1.0, -4.0),
    ComponentName.FUSELAGE: (0.0, 0.0, 0.0),
    ComponentName.COCKPIT: (0.0, 0.8, -0.5),
}


def locate_component(local_hit: Vector3) -> ComponentName:
    """Classify an aircraft-local hit point into a component.

    Regions are checked in order: wings (|x| > 2), tail (z < -3),
    cockpit (-1 < z < 1 and y > 0.5), engine (z > 2), otherwise fuselage.
    """
    if abs(local_hit.x) > 2.0:
        return ComponentName.RIGHT_WING if local_hit.x > 0 else ComponentName.LEFT_WING
    if local_hit.z < -3.0:
        return ComponentName.TAIL
    if -1.0 < local_hit.z < 1.0 and local_hit.y > 0.5:
        return ComponentName.COCKPIT
    if local_hit.z > 2.0:
        return ComponentName.ENGINE
    return ComponentName.FUSELAGE


def _critical_effects(name: ComponentName) -> list[DamageEffect]:
    if name is ComponentName.ENGINE:
        return [DamageEffect(EffectKind.ENGINE_DAMAGE, 0.5, visual_effect="smokeTrail")]
    if name in (ComponentName.LEFT_WING, ComponentName.RIGHT_WING):
        severity = -0.3 if name is ComponentName.LEFT_WING else 0.3
        return [
            DamageEffect(
                EffectKind.CONTROL_DAMAGE,
                severity,
                axis=ControlAxis.ROLL,
                visual_effect="bulletHoles",
            )
        ]
    if name is ComponentName.TAIL:
        return [
            DamageEffect(
                EffectKind.CONTROL_DAMAGE, 0.4, axis=ControlAxis.PITCH, visual_effect="missingParts"
            ),
            DamageEffect(EffectKind.CONTROL_DAMAGE, 0.2, axis=ControlAxis.YAW),
        ]
    if name is ComponentName.FUSELAGE:
        return [DamageEffect(EffectKind.FUEL_LEAK, 2.0, visual_effect="fuelSpray")]
    return [
        DamageEffect(
            EffectKind.CONTROL_DAMAGE, 0.5, axis=ControlAxis.ALL, visual_effect="shatteredGlass"
        )
    ]


def _destruction_effects(name: ComponentName) -> list[DamageEffect]:
    if name is ComponentName.ENGINE:
        return [
            DamageEffect(EffectKind.ENGINE_DAMAGE, 1.0),
            DamageEffect(EffectKind.FIRE, 1.0, visual_effect="fire"),
        ]
    if name in (ComponentName.LEFT_WING, ComponentName.RIGHT_WING):
        direction = SpinDirection.LEFT if name is ComponentName.LEFT_WING else SpinDirection.RIGHT
        return [DamageEffect(EffectKind.SPIN, 1.0, direction=direction)]
    if name is ComponentName.TAIL:
        return [
            DamageEffect(EffectKind.CONTROL_DAMAGE, 1.0, axis=ControlAxis.PITCH),
            DamageEffect(EffectKind.CONTROL_DAMAGE, 1.0, axis=ControlAxis.YAW),
        ]
    if name is ComponentName.COCKPIT:
        return [DamageEffect(EffectKind.DESTROYED, 1.0)]
    return []


class DamageModel:
    """Six-component damage state for one aircraft."""

    def __init__(self) -> None:
        self.components: dict[ComponentName, ComponentHealth] = {}
        self.reset()
        self.max_total_health = sum(c.max_health for c in self.components.values())

    def reset(self) -> None:
        """Restore every component to full health and clear all flags."""
        self.components = {
            name: ComponentHealth(
                name=name,
                max_health=max_health,
                current_health=max_health,
                armor=armor,
                critical_threshold=threshold,
            )
            for name, (max_health, armor, threshold) in COMPONENT_TABLE.items()
        }

    def get_component(self, name: ComponentName | str) -> ComponentHealth:
        """Look up a component by enum member or name."""
        return self.components[ComponentName(name)]

    def apply_damage(
        self,
        amount: float,
        hit_position: Vector3,
        target: DamageTarget,
        damage_type: DamageType = DamageType.BULLET,
    ) -> DamageResult:
        """Apply one hit to the component under ``hit_position``.

        Args:
            amount: Raw damage (negative values are treated as zero).
            hit_position: World-space impact point.
            target: Aircraft being hit; receives effects and new health.
            damage_type: Explosive hits deal x1.5 and splash 30% of the raw
                amount to adjacent components.

        Returns:
            The hit component, effective damage, threshold state, aggregate
            health and the effects triggered by this hit.
        """
        amount = max(0.0, amount)
        component = self.components[locate_component(target.world_to_local(hit_position))]

        effective = amount * (1.0 - component.armor)
        effects: list[DamageEffect] = []

        if damage_type is DamageType.EXPLOSIVE:
            effective *= EXPLOSIVE_MULTIPLIER
            effects.extend(self._apply_splash(amount * SPLASH_FRACTION, component.name))

        component.take(effective)
        effects.extend(self._check_thresholds(component))

        total_health = self.total_health_percentage()

        logger.debug(
            "Hit %s for %.1f (%s): %.1f/%.0f, aircraft %.1f%%",
            component.name.value,
            effective,
            damage_type.value,
            component.current_health,
            component.max_health,
            total_health,
        )

        target.set_health(total_health)
        if effects:
            target.apply_damage_effects(effects)

        return DamageResult(
            component=component,
            damage=effective,
            is_critical=component.is_critical,
            is_destroyed=component.is_destroyed,
            total_health=total_health,
            effects=effects,
        )

    def _apply_splash(self, amount: float, origin: ComponentName) -> list[DamageEffect]:
        effects: list[DamageEffect] = []
        for name in SPLASH_ADJACENCY[origin]:
            neighbor = self.components[name]
            if neighbor.is_destroyed:
                continue
            neighbor.take(amount)
            effects.extend(self._check_thresholds(neighbor))
        return effects

    def _check_thresholds(self, component: ComponentHealth) -> list[DamageEffect]:
        effects: list[DamageEffect] = []

        if not component.is_critical and component.current_health <= component.critical_threshold:
            component.is_critical = True
            critical = _critical_effects(component.name)
            component.effects.extend(critical)
            effects.extend(critical)
            logger.info("Component %s critical", component.name.value)

        if not component.is_destroyed and component.current_health <= 0.0:
            component.is_destroyed = True
            destroyed = _destruction_effects(component.name)
            component.effects.extend(destroyed)
            effects.extend(destroyed)
            logger.info("Component %s destroyed", component.name.value)

        return effects

    def total_health_percentage(self) -> float:
        """Aggregate health: sum of current over sum of max, as a percentage."""
        current = sum(c.current_health for c in self.components.values())
        return current / self.max_total_health * 100.0

    def damage_visuals(self) -> list[DamageVisual]:
        """Visual markers for every critical or destroyed component."""
        visuals = []
        for component in self.components.values():
            if not (component.is_critical or component.is_destroyed):
                continue
            for effect in component.effects:
                if effect.visual_effect:
                    visuals.append(
                        DamageVisual(
                            component_name=component.name,
                            effect_type=effect.visual_effect,
                            severity=abs(effect.severity),
                            position=Vector3(*COMPONENT_POSITIONS[component.name]),
                        )
                    )
        return visuals


class DamageManager:
    """Lookup table of damage models keyed by aircraft id."""

    def __init__(self) -> None:
        self._models: dict[str, DamageModel] = {}

    def create_damage_model(self, aircraft_id: str) -> DamageModel:
        """Create (or replace) the model for an aircraft."""
        model = DamageModel()
        self._models[aircraft_id] = model
        return model

    def get_damage_model(self, aircraft_id: str) -> DamageModel | None:
        return self._models.get(aircraft_id)

    def remove_damage_model(self, aircraft_id: str) -> None:
        self._models.pop(aircraft_id, None)

    def apply_damage(
        self,
        aircraft_id: str,
        amount: float,
        hit_position: Vector3,
        target: DamageTarget,
        damage_type: DamageType = DamageType.BULLET,
    ) -> DamageResult | None:
        """Route a hit to an aircraft's model.

        Returns:
            The hit result, or None if the aircraft has no model.
        """
        model = self._models.get(aircraft_id)
        if model is None:
            return None
        return model.apply_damage(amount, hit_position, target, damage_type)

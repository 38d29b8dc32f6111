"""Tests for the component damage model.

Tests verify:
1. Hits are localized to the right component
2. Armor reduces damage and explosive hits splash to neighbors
3. Critical and destroyed flags are monotonic and emit effects once
4. Effects reach the aircraft's flight state
"""

import pytest

from dogfight.aircraft.aircraft import Aircraft
from dogfight.combat.damage import (
    COMPONENT_TABLE,
    ComponentName,
    ControlAxis,
    DamageManager,
    DamageModel,
    DamageType,
    EffectKind,
    SpinDirection,
    locate_component,
)
from dogfight.physics.vectors import Vector3

ENGINE_HIT = Vector3(0.0, 0.0, 3.0)
LEFT_WING_HIT = Vector3(-3.0, 0.0, 0.0)
RIGHT_WING_HIT = Vector3(3.0, 0.0, 0.0)
TAIL_HIT = Vector3(0.0, 0.0, -4.0)
COCKPIT_HIT = Vector3(0.0, 0.8, 0.0)
FUSELAGE_HIT = Vector3(0.0, 0.0, 0.0)


class FakeTarget:
    """Aircraft stand-in whose local frame equals the world frame."""

    def __init__(self):
        self.health = 100.0
        self.effects = []

    def world_to_local(self, point):
        return point.copy()

    def set_health(self, health):
        self.health = health

    def apply_damage_effects(self, effects):
        self.effects.extend(effects)


@pytest.fixture
def model():
    """Fresh damage model."""
    return DamageModel()


@pytest.fixture
def target():
    """Fake aircraft."""
    return FakeTarget()


class TestLocateComponent:
    """Test hit localization."""

    @pytest.mark.parametrize(
        "point,expected",
        [
            (ENGINE_HIT, ComponentName.ENGINE),
            (LEFT_WING_HIT, ComponentName.LEFT_WING),
            (RIGHT_WING_HIT, ComponentName.RIGHT_WING),
            (TAIL_HIT, ComponentName.TAIL),
            (COCKPIT_HIT, ComponentName.COCKPIT),
            (FUSELAGE_HIT, ComponentName.FUSELAGE),
            (Vector3(5.0, 0.0, -5.0), ComponentName.RIGHT_WING),
        ],
    )
    def test_regions(self, point, expected):
        """Test each region maps to its component, wings first."""
        assert locate_component(point) is expected


class TestArmor:
    """Test armor reduction."""

    @pytest.mark.parametrize(
        "point,name",
        [
            (ENGINE_HIT, ComponentName.ENGINE),
            (LEFT_WING_HIT, ComponentName.LEFT_WING),
            (RIGHT_WING_HIT, ComponentName.RIGHT_WING),
            (TAIL_HIT, ComponentName.TAIL),
            (COCKPIT_HIT, ComponentName.COCKPIT),
            (FUSELAGE_HIT, ComponentName.FUSELAGE),
        ],
    )
    def test_bullet_damage_reduced_by_armor(self, model, target, point, name):
        """Test a bullet removes exactly amount * (1 - armor) from the hit component."""
        max_health, armor, _ = COMPONENT_TABLE[name]

        result = model.apply_damage(5.0, point, target)

        assert result.component.name is name
        assert result.damage == pytest.approx(5.0 * (1.0 - armor))
        assert model.get_component(name).current_health == pytest.approx(
            max_health - 5.0 * (1.0 - armor)
        )

    def test_negative_damage_is_ignored(self, model, target):
        """Test negative amounts never heal."""
        result = model.apply_damage(-10.0, ENGINE_HIT, target)

        assert result.damage == 0.0
        assert model.get_component(ComponentName.ENGINE).current_health == 100.0

    def test_health_clamped_at_zero(self, model, target):
        """Test overkill leaves the component at zero."""
        model.apply_damage(1000.0, TAIL_HIT, target)
        assert model.get_component(ComponentName.TAIL).current_health == 0.0

    def test_target_receives_aggregate_health(self, model, target):
        """Test the target is told the new aggregate health percentage."""
        model.apply_damage(50.0, ENGINE_HIT, target)

        # 50 x (1 - 0.2 armor) = 40 points lost
        expected = (model.max_total_health - 40.0) / model.max_total_health * 100.0
        assert model.max_total_health == pytest.approx(480.0)
        assert target.health == pytest.approx(expected)
        assert model.total_health_percentage() == pytest.approx(expected)


class TestExplosive:
    """Test explosive multiplier and splash."""

    def test_explosive_multiplier_and_splash(self, model, target):
        """Test 1.5x direct damage and 30% raw splash to neighbors."""
        result = model.apply_damage(20.0, ENGINE_HIT, target, DamageType.EXPLOSIVE)

        assert result.damage == pytest.approx(20.0 * 0.8 * 1.5)
        assert model.get_component(ComponentName.FUSELAGE).current_health == pytest.approx(114.0)
        assert model.get_component(ComponentName.COCKPIT).current_health == pytest.approx(34.0)
        assert model.get_component(ComponentName.TAIL).current_health == 60.0
        total = model.max_total_health
        assert result.total_health == pytest.approx((total - 24.0 - 12.0) / total * 100.0)

    def test_splash_can_make_neighbor_critical(self, model, target):
        """Test splash damage crosses neighbor thresholds and emits their effects."""
        result = model.apply_damage(100.0, FUSELAGE_HIT, target, DamageType.EXPLOSIVE)

        cockpit = model.get_component(ComponentName.COCKPIT)
        assert cockpit.current_health == pytest.approx(10.0)
        assert cockpit.is_critical
        assert any(e.axis is ControlAxis.ALL for e in result.effects)
        assert result.is_destroyed

    def test_splash_skips_destroyed_neighbors(self, model, target):
        """Test destroyed components take no further splash."""
        model.apply_damage(1000.0, COCKPIT_HIT, target)
        cockpit = model.get_component(ComponentName.COCKPIT)
        assert cockpit.is_destroyed
        effect_count = len(cockpit.effects)

        model.apply_damage(10.0, ENGINE_HIT, target, DamageType.EXPLOSIVE)

        assert len(cockpit.effects) == effect_count
        assert cockpit.current_health == 0.0


class TestThresholds:
    """Test critical and destroyed transitions."""

    def test_engine_critical(self, model, target):
        """Test the engine turns critical at 30 health and emits engine damage."""
        result = model.apply_damage(87.5, ENGINE_HIT, target)

        assert result.is_critical
        assert not result.is_destroyed
        assert [e.kind for e in result.effects] == [EffectKind.ENGINE_DAMAGE]
        assert result.effects[0].severity == 0.5
        assert target.effects == result.effects

    def test_engine_destroyed(self, model, target):
        """Test destroying the engine kills it and starts a fire."""
        result = model.apply_damage(200.0, ENGINE_HIT, target)

        kinds = [e.kind for e in result.effects]
        assert kinds == [EffectKind.ENGINE_DAMAGE, EffectKind.ENGINE_DAMAGE, EffectKind.FIRE]
        assert result.effects[1].severity == 1.0

    def test_left_wing_critical_then_destroyed(self, model, target):
        """Test wing damage first hurts roll, then sends the aircraft spinning."""
        critical = model.apply_damage(70.0, LEFT_WING_HIT, target)
        assert critical.is_critical
        assert critical.effects[0].kind is EffectKind.CONTROL_DAMAGE
        assert critical.effects[0].axis is ControlAxis.ROLL
        assert critical.effects[0].severity == pytest.approx(-0.3)

        destroyed = model.apply_damage(20.0, LEFT_WING_HIT, target)
        assert destroyed.is_destroyed
        assert destroyed.is_critical
        assert destroyed.effects[0].kind is EffectKind.SPIN
        assert destroyed.effects[0].direction is SpinDirection.LEFT

    def test_right_wing_spins_right(self, model, target):
        """Test losing the right wing spins right."""
        result = model.apply_damage(1000.0, RIGHT_WING_HIT, target)
        spins = [e for e in result.effects if e.kind is EffectKind.SPIN]
        assert spins[0].direction is SpinDirection.RIGHT

    def test_tail_critical(self, model, target):
        """Test tail damage hits pitch and yaw."""
        result = model.apply_damage(50.0, TAIL_HIT, target)

        axes = {e.axis: e.severity for e in result.effects}
        assert axes == {ControlAxis.PITCH: 0.4, ControlAxis.YAW: 0.2}

    def test_fuselage_critical_leaks_fuel(self, model, target):
        """Test a critical fuselage leaks fuel."""
        result = model.apply_damage(100.0, FUSELAGE_HIT, target)

        assert result.effects[0].kind is EffectKind.FUEL_LEAK
        assert result.effects[0].severity == 2.0

    def test_cockpit_destroyed_kills_pilot(self, model, target):
        """Test a destroyed cockpit destroys the aircraft."""
        model.apply_damage(50.0, COCKPIT_HIT, target)
        result = model.apply_damage(10.0, COCKPIT_HIT, target)

        assert result.is_destroyed
        assert [e.kind for e in result.effects] == [EffectKind.DESTROYED]

    def test_flags_are_monotonic_and_fire_once(self, model, target):
        """Test further hits never clear flags or repeat effects."""
        model.apply_damage(87.5, ENGINE_HIT, target)
        again = model.apply_damage(1.0, ENGINE_HIT, target)

        assert again.is_critical
        assert again.effects == []
        assert len(target.effects) == 1


class TestEffectsOnAircraft:
    """Test damage flowing into a real aircraft."""

    def test_engine_critical_halves_thrust(self):
        """Test an engine brought to its threshold caps thrust at 50%."""
        model = DamageModel()
        aircraft = Aircraft("spitfire", position=Vector3(0.0, 1000.0, 0.0), damage_model=model)
        hit_point = aircraft.local_to_world(ENGINE_HIT)

        result = model.apply_damage(87.5, hit_point, aircraft)

        assert result.component.name is ComponentName.ENGINE
        assert result.is_critical
        assert aircraft.dynamics.effective_max_thrust == pytest.approx(
            aircraft.config.max_thrust * 0.5
        )
        # 87.5 x (1 - 0.2 armor) = 70 points lost
        total = model.max_total_health
        assert aircraft.state.health == pytest.approx((total - 70.0) / total * 100.0)

    def test_cockpit_destroyed_marks_aircraft(self):
        """Test cockpit destruction marks the aircraft destroyed."""
        model = DamageModel()
        aircraft = Aircraft("zero", position=Vector3(0.0, 1000.0, 0.0), damage_model=model)

        model.apply_damage(1000.0, aircraft.local_to_world(COCKPIT_HIT), aircraft)

        assert aircraft.is_destroyed
        assert aircraft.state.health == 0.0


class TestResetAndVisuals:
    """Test reset and visual markers."""

    def test_reset_restores_full_health(self, model, target):
        """Test reset returns aggregate health to exactly 100."""
        model.apply_damage(1000.0, ENGINE_HIT, target, DamageType.EXPLOSIVE)
        model.reset()

        assert model.total_health_percentage() == 100.0
        assert not any(c.is_critical or c.is_destroyed for c in model.components.values())

    def test_visuals_for_damaged_components(self, model, target):
        """Test critical components report their visual markers."""
        assert model.damage_visuals() == []

        model.apply_damage(87.5, ENGINE_HIT, target)
        visuals = model.damage_visuals()

        assert len(visuals) == 1
        assert visuals[0].component_name is ComponentName.ENGINE
        assert visuals[0].effect_type == "smokeTrail"
        assert visuals[0].severity == 0.5
        assert visuals[0].position == Vector3(0.0, 0.0, 3.0)


class TestDamageManager:
    """Test per-aircraft model lookup."""

    def test_routes_to_model(self, target):
        """Test hits go to the named aircraft's model."""
        manager = DamageManager()
        manager.create_damage_model("enemy")

        result = manager.apply_damage("enemy", 10.0, ENGINE_HIT, target)

        assert result is not None
        assert manager.get_damage_model("enemy").get_component("engine").current_health < 100.0

    def test_unknown_aircraft_returns_none(self, target):
        """Test hits on unregistered aircraft are dropped."""
        manager = DamageManager()
        assert manager.apply_damage("ghost", 10.0, ENGINE_HIT, target) is None

    def test_remove(self):
        """Test removing a model."""
        manager = DamageManager()
        manager.create_damage_model("a")
        manager.remove_damage_model("a")
        manager.remove_damage_model("a")
        assert manager.get_damage_model("a") is None

"""Integration tests for the per-frame combat simulation."""

import random

import pytest

from dogfight.aircraft.config import WeaponMountSpec
from dogfight.combat.damage import ComponentName, DamageType
from dogfight.combat.projectile import ProjectileClass
from dogfight.core.errors import UnknownAircraftTypeError, UnknownWeaponTypeError
from dogfight.core.input import ControlInputs
from dogfight.physics.physics_engine import PhysicsBody
from dogfight.physics.vectors import Vector3
from dogfight.simulation.world import CombatSimulation, damage_type_for

DT = 1.0 / 60.0


@pytest.fixture
def sim():
    """Simulation with default settings and a seeded random source."""
    return CombatSimulation(rng=random.Random(1234))


class TestEntities:
    """Test adding and removing entities."""

    def test_add_aircraft_registers_everything(self, sim):
        """Test spawning creates damage model, weapons and target."""
        aircraft = sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))

        assert sim.aircraft["player"] is aircraft
        assert sim.damage_manager.get_damage_model("player") is aircraft.damage_model
        assert len(sim.weapon_manager.get_weapons_status("player")) == 4
        assert aircraft.state.ammunition == sim.weapon_manager.total_ammo("player")

    def test_duplicate_id_rejected(self, sim):
        """Test ids are unique across aircraft and balloons."""
        sim.add_aircraft("player", "spitfire")
        sim.add_balloon("balloon", Vector3(0.0, 0.0, 200.0))

        with pytest.raises(ValueError, match="Duplicate"):
            sim.add_aircraft("player", "bf109")
        with pytest.raises(ValueError, match="Duplicate"):
            sim.add_balloon("player", Vector3.zero())
        with pytest.raises(ValueError, match="Duplicate"):
            sim.add_aircraft("balloon", "zero")

    def test_unknown_type_leaves_no_trace(self, sim):
        """Test a failed spawn registers nothing."""
        with pytest.raises(UnknownAircraftTypeError):
            sim.add_aircraft("x", "stuka")

        assert "x" not in sim.aircraft
        assert sim.damage_manager.get_damage_model("x") is None

    def test_unknown_weapon_leaves_no_trace(self, sim):
        """Test a bad loadout rolls back the damage model."""
        with pytest.raises(UnknownWeaponTypeError):
            sim.add_aircraft("x", "spitfire", loadout=[WeaponMountSpec("laser")])

        assert sim.damage_manager.get_damage_model("x") is None

    def test_custom_loadout(self, sim):
        """Test a loadout override replaces the configured weapons."""
        sim.add_aircraft("player", "spitfire", loadout=[WeaponMountSpec("cannon_37mm")])

        status = sim.weapon_manager.get_weapons_status("player")
        assert [s.name for s in status] == ["cannon_37mm"]
        assert sim.aircraft["player"].state.ammunition == status[0].max_ammo
        assert sim.aircraft["player"].ammunition_capacity == status[0].max_ammo

    def test_remove_aircraft(self, sim):
        """Test removal drops every registration."""
        sim.add_aircraft("enemy", "bf109")
        sim.remove_aircraft("enemy")

        assert "enemy" not in sim.aircraft
        assert sim.damage_manager.get_damage_model("enemy") is None
        assert sim.weapon_manager.get_weapons_status("enemy") == []
        sim.step(DT)

    def test_controls_for_unknown_aircraft_ignored(self, sim):
        """Test controls for unknown ids do not raise."""
        sim.set_controls("ghost", ControlInputs(fire=True))
        sim.step(DT)


class TestStep:
    """Test frame stepping."""

    def test_frame_delta_capped(self, sim):
        """Test a one-second hitch advances the simulation by 0.1 s."""
        sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))

        snapshot = sim.step(1.0)

        assert snapshot.time == pytest.approx(0.1)
        assert snapshot.frame == 1

    def test_aircraft_fly(self, sim):
        """Test aircraft advance through the pipeline."""
        sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))

        for _ in range(60):
            snapshot = sim.step(DT)

        assert snapshot.aircraft["player"].position.z > 100.0
        assert snapshot.time == pytest.approx(1.0)
        assert snapshot.frame == 60

    def test_firing_spends_ammunition(self, sim):
        """Test holding the trigger fires and ammunition is synced."""
        sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))
        sim.set_controls("player", ControlInputs(throttle=0.7, fire=True))

        snapshot = sim.step(DT)

        assert snapshot.active_projectiles == 4
        assert snapshot.aircraft["player"].ammunition == 4 * 500 - 4

    def test_destroyed_aircraft_do_not_fire(self, sim):
        """Test a destroyed aircraft's trigger is ignored."""
        aircraft = sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))
        aircraft.set_destroyed()
        sim.set_controls("player", ControlInputs(throttle=1.0, fire=True))

        snapshot = sim.step(DT)

        assert snapshot.active_projectiles == 0
        assert sim.weapon_manager.total_ammo("player") == 2000

    def test_reset_reloads_weapons(self, sim):
        """Test an aircraft reset also refills its guns."""
        aircraft = sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))
        sim.set_controls("player", ControlInputs(throttle=0.7, fire=True))
        for _ in range(30):
            sim.step(DT)
        assert sim.weapon_manager.total_ammo("player") < 2000

        sim.set_controls("player", ControlInputs(throttle=0.7))
        aircraft.reset()
        snapshot = sim.step(DT)

        assert snapshot.aircraft["player"].ammunition == 2000
        assert all(s.ammo == s.max_ammo for s in snapshot.weapons["player"])

    def test_player_shoots_down_balloon(self, sim):
        """Test a Spitfire firing at a balloon dead ahead scores hits."""
        sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))
        balloon = sim.add_balloon("balloon", Vector3(0.0, 0.0, 200.0), altitude=500.0)
        sim.set_controls("player", ControlInputs(throttle=0.7, fire=True))

        balloon_hits = []
        for _ in range(60):
            snapshot = sim.step(DT)
            balloon_hits.extend(h for h in snapshot.hits if h.target.owner_id == "balloon")

        assert balloon_hits, "no rounds hit the balloon"
        assert all(h.owner_id == "player" for h in balloon_hits)
        assert balloon.health < 50.0

    def test_player_damages_enemy(self, sim):
        """Test rounds hitting an aircraft go through its damage model."""
        sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))
        sim.add_aircraft("enemy", "spitfire", Vector3(0.0, 500.0, 120.0))
        sim.set_controls("player", ControlInputs(throttle=0.7, fire=True))
        sim.set_controls("enemy", ControlInputs(throttle=0.7))

        enemy_hits = []
        for _ in range(60):
            snapshot = sim.step(DT)
            enemy_hits.extend(h for h in snapshot.hits if h.target.owner_id == "enemy")

        assert enemy_hits, "no rounds hit the enemy"
        assert snapshot.aircraft["enemy"].health < 100.0
        components = snapshot.components["enemy"]
        assert any(c.current_health < c.max_health for c in components.values())
        assert snapshot.aircraft["player"].health == 100.0

    def test_registered_bodies_use_capped_delta(self, sim):
        """Test caller-registered bodies fall under gravity with the capped frame delta."""
        debris = PhysicsBody(id="debris", mass=50.0, position=Vector3(0.0, 300.0, 0.0))
        sim.physics_engine.add_body(debris)

        sim.step(1.0)

        # 0.1 s cap allows three 1/60 s sub-steps
        assert debris.velocity.y == pytest.approx(-9.81 * 3.0 / 60.0, rel=0.01)
        assert debris.position.y < 300.0
        assert sim.physics_engine.stats().body_count == 1

    def test_destroyed_balloon_removed(self, sim):
        """Test a shot-down balloon disappears after it has fallen a while."""
        balloon = sim.add_balloon("balloon", Vector3(0.0, 0.0, 200.0))
        balloon.take_damage(100.0)

        for _ in range(40):
            sim.step(0.1)

        assert "balloon" not in sim.balloons
        assert "balloon" not in sim.snapshot().balloons


class TestSnapshot:
    """Test read-back."""

    def test_snapshot_contents(self, sim):
        """Test the snapshot carries every entity."""
        sim.add_aircraft("player", "p51mustang", Vector3(0.0, 500.0, 0.0))
        sim.add_balloon("balloon", Vector3(0.0, 0.0, 500.0))

        snapshot = sim.step(DT)

        assert set(snapshot.aircraft) == {"player"}
        assert set(snapshot.balloons) == {"balloon"}
        assert len(snapshot.weapons["player"]) == 6
        assert set(snapshot.components["player"]) == set(ComponentName)
        assert snapshot.hits == []

    def test_components_are_copies(self, sim):
        """Test snapshot components do not alias the live model."""
        sim.add_aircraft("player", "spitfire", Vector3(0.0, 500.0, 0.0))
        snapshot = sim.snapshot()

        model = sim.damage_manager.get_damage_model("player")
        model.get_component(ComponentName.ENGINE).take(50.0)

        assert snapshot.components["player"][ComponentName.ENGINE].current_health == 100.0


class TestDamageTypeMapping:
    """Test projectile class to damage type mapping."""

    @pytest.mark.parametrize(
        "projectile_class,expected",
        [
            (ProjectileClass.BULLET, DamageType.BULLET),
            (ProjectileClass.CANNON, DamageType.EXPLOSIVE),
            (ProjectileClass.ROCKET, DamageType.EXPLOSIVE),
        ],
    )
    def test_mapping(self, projectile_class, expected):
        """Test bullets are kinetic and heavier rounds explode."""
        assert damage_type_for(projectile_class) is expected

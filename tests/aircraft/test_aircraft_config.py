"""Tests for aircraft type configuration loading."""

import dataclasses

import pytest

from dogfight.aircraft.config import (
    AircraftType,
    Faction,
    WeaponMountSpec,
    get_aircraft_by_faction,
    get_aircraft_config,
    get_all_aircraft_types,
    parse_aircraft_config,
)
from dogfight.core.errors import ConfigurationError, UnknownAircraftTypeError


class TestAircraftType:
    """Test type name resolution."""

    def test_parse_string(self):
        """Test names resolve case-insensitively."""
        assert AircraftType.parse("Spitfire") is AircraftType.SPITFIRE
        assert AircraftType.parse("p51mustang") is AircraftType.P51_MUSTANG

    def test_parse_member(self):
        """Test enum members pass through."""
        assert AircraftType.parse(AircraftType.ZERO) is AircraftType.ZERO

    def test_unknown_name_raises(self):
        """Test unknown names are never replaced by a default type."""
        with pytest.raises(UnknownAircraftTypeError) as exc_info:
            AircraftType.parse("hurricane")

        assert exc_info.value.type_name == "hurricane"
        assert isinstance(exc_info.value, ConfigurationError)


class TestPackagedConfigs:
    """Test the four shipped aircraft files."""

    @pytest.mark.parametrize("aircraft_type", list(AircraftType))
    def test_every_type_loads(self, aircraft_type):
        """Test each type parses with sane values."""
        config = get_aircraft_config(aircraft_type)

        assert config.mass > 0
        assert config.stall_speed < config.cruise_speed < config.max_speed
        assert config.max_thrust > 0
        assert 0.0 <= config.armor <= 1.0
        assert len(config.loadout) > 0

    def test_spitfire_values(self):
        """Test representative Spitfire constants."""
        config = get_aircraft_config("spitfire")

        assert config.name == "Supermarine Spitfire"
        assert config.faction is Faction.ALLIES
        assert config.mass == 3000.0
        assert config.cruise_speed == 140.0
        assert config.stall_speed == 45.0
        assert config.max_ammunition == 1880
        assert [m.weapon for m in config.loadout] == ["machineGun_303"] * 4

    def test_config_is_frozen(self):
        """Test shared configs cannot be mutated."""
        config = get_aircraft_config(AircraftType.BF109)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_thrust = 1.0

    def test_all_types(self):
        """Test the closed set of types."""
        assert set(get_all_aircraft_types()) == {
            AircraftType.SPITFIRE,
            AircraftType.BF109,
            AircraftType.P51_MUSTANG,
            AircraftType.ZERO,
        }

    def test_by_faction(self):
        """Test faction filtering."""
        assert set(get_aircraft_by_faction("allies")) == {
            AircraftType.SPITFIRE,
            AircraftType.P51_MUSTANG,
        }
        assert set(get_aircraft_by_faction(Faction.AXIS)) == {
            AircraftType.BF109,
            AircraftType.ZERO,
        }


class TestParseAircraftConfig:
    """Test parsing raw mappings."""

    @pytest.fixture
    def minimal(self):
        """Smallest valid mapping."""
        return {
            "name": "Test Fighter",
            "mass_kg": 2500.0,
            "wing_area_m2": 20.0,
            "max_speed": 170.0,
            "cruise_speed": 130.0,
            "stall_speed": 40.0,
            "max_thrust": 8000.0,
            "pitch_rate": 2.0,
            "roll_rate": 2.0,
            "yaw_rate": 1.0,
            "lift_coefficient": 1.0,
            "drag_coefficient": 0.03,
        }

    def test_defaults_fill_optional_keys(self, minimal):
        """Test optional keys take defaults and aspect ratio is derived."""
        config = parse_aircraft_config(minimal)

        assert config.faction is Faction.NEUTRAL
        assert config.wing_span == 10.0
        assert config.aspect_ratio == pytest.approx(100.0 / 20.0)
        assert config.firepower == 1.0
        assert config.loadout == ()

    def test_missing_key_raises(self, minimal):
        """Test a missing required key names the key."""
        del minimal["max_thrust"]
        with pytest.raises(ConfigurationError, match="max_thrust required"):
            parse_aircraft_config(minimal)

    def test_loadout_parsing(self, minimal):
        """Test loadout entries become mount specs."""
        minimal["loadout"] = [{"weapon": "cannon_20mm", "position": [1, 0, 2]}]

        config = parse_aircraft_config(minimal)

        assert config.loadout == (
            WeaponMountSpec(weapon="cannon_20mm", position=(1.0, 0.0, 2.0)),
        )

    def test_loadout_entry_without_weapon(self, minimal):
        """Test a loadout entry must name its weapon."""
        minimal["loadout"] = [{"position": [0, 0, 0]}]
        with pytest.raises(ConfigurationError, match="weapon"):
            parse_aircraft_config(minimal)

"""Configuration errors.

These are raised only while building simulation objects (aircraft, weapons,
settings). Per-tick code paths never raise; exhaustion and empty results are
reported with ``None``.
"""


class ConfigurationError(ValueError):
    """Invalid or unknown static configuration."""


class UnknownAircraftTypeError(ConfigurationError):
    """Aircraft type name does not match any configured type."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Unknown aircraft type: {type_name}")
        self.type_name = type_name


class UnknownWeaponTypeError(ConfigurationError):
    """Weapon name does not match any configured weapon."""

    def __init__(self, weapon_name: str) -> None:
        super().__init__(f"Unknown weapon type: {weapon_name}")
        self.weapon_name = weapon_name

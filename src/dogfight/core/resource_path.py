"""Resource path resolution for packaged data files.

Configuration YAML ships inside the package (``dogfight/config``), so it is
found the same way from a source checkout and from an installed wheel.
"""

from pathlib import Path

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent


def get_resource_path(relative_path: str) -> Path:
    """Resolve a path relative to the package root.

    Args:
        relative_path: Path such as "config/weapons.yaml".

    Returns:
        Absolute path (may not exist).
    """
    return _PACKAGE_ROOT / relative_path


def get_config_path(relative_path: str = "") -> Path:
    """Resolve a path inside the packaged ``config`` directory."""
    return get_resource_path("config") / relative_path

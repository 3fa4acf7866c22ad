from .profiles import UnitProfile, load_unit_profiles
from .settings import Settings, settings

__all__ = ["Settings", "UnitProfile", "load_unit_profiles", "settings"]

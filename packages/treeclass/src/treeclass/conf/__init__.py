"""Process-wide settings.

Overrides are read from the module named by ``TREECLASS_CONFIG_MODULE``;
only its ``TREECLASS_*`` names are used, with the prefix stripped.
"""

from .defaults import DEFAULTS
from .settings import Settings

settings = Settings()
settings.update_from_envvar("TREECLASS_CONFIG_MODULE", namespace="TREECLASS")

__all__ = ["DEFAULTS", "Settings", "settings"]

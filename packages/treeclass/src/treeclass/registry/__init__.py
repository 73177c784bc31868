"""Process-wide registry of composed model classes."""

from .base import BaseRegistry, ModelRegistry
from treeclass.exceptions import (
    RegistryCollisionError,
    RegistryDuplicateError,
    RegistryError,
    RegistryFrozenError,
    RegistryLookupError,
)

models = ModelRegistry()

__all__ = [
    "BaseRegistry",
    "ModelRegistry",
    "RegistryError",
    "RegistryDuplicateError",
    "RegistryCollisionError",
    "RegistryLookupError",
    "RegistryFrozenError",
    "models",
]

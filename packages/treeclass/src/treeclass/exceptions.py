# treeclass/exceptions.py
"""Unified exception hierarchy for treeclass."""

from __future__ import annotations

from typing import Iterable

__all__ = [
    "TreeClassError",
    "CompositionError",
    "NonCallableMemberError",
    "ModelAlreadyComposedError",
    "TreeError",
    "TreeTypeError",
    "TreeValidationError",
    "TreeProtectionError",
    "ReferenceResolutionError",
    "RegistryError",
    "RegistryDuplicateError",
    "RegistryCollisionError",
    "RegistryLookupError",
    "RegistryFrozenError",
]


class TreeClassError(Exception):
    """Base for all treeclass exceptions."""


# ----------------------------------------------------------------------------
# Composition errors
# ----------------------------------------------------------------------------
class CompositionError(TreeClassError):
    """Raised while a decorated class is assembled into a model type."""


class NonCallableMemberError(CompositionError, TypeError):
    """A member tagged as an action or a flow does not resolve to a callable."""

    def __init__(self, member: str, *, category: str = "action", value: object = None):
        super().__init__(
            f"`{member}` is tagged as {category} and must be callable "
            f"(got {type(value).__name__})"
        )
        self.member = member
        self.category = category


class ModelAlreadyComposedError(CompositionError):
    """The class already carries its own model type; composing it again would lose metadata."""


# ----------------------------------------------------------------------------
# State-tree runtime errors
# ----------------------------------------------------------------------------
class TreeError(TreeClassError):
    """Base for errors raised by the state-tree runtime."""


class TreeTypeError(TreeError, TypeError):
    """Invalid type declaration or type constructor arguments."""


class TreeValidationError(TreeError, ValueError):
    """A value or snapshot does not conform to its declared type."""

    def __init__(self, message: str, *, path: Iterable[str] = ()):
        self.path = tuple(path)
        self.reason = message
        where = "/" + "/".join(self.path) if self.path else "<root>"
        super().__init__(f"{where}: {message}")

    def at(self, segment: str) -> "TreeValidationError":
        """Return a copy of this error prefixed with a parent path segment."""
        err = TreeValidationError(self.reason, path=(segment, *self.path))
        err.__cause__ = self.__cause__
        return err


class TreeProtectionError(TreeError, RuntimeError):
    """State was modified outside of an action on a protected tree."""


class ReferenceResolutionError(TreeError, LookupError):
    """A reference identifier could not be resolved within its tree."""


# ----------------------------------------------------------------------------
# Registry errors
# ----------------------------------------------------------------------------
class RegistryError(TreeClassError):
    """Base for model registry failures."""


class RegistryDuplicateError(RegistryError):
    """The same class was registered twice under one model type."""


class RegistryCollisionError(RegistryError):
    """A model type is already mapped to a different class."""


class RegistryLookupError(RegistryError, LookupError):
    """Nothing is registered under the requested model type or name."""


class RegistryFrozenError(RegistryError, RuntimeError):
    """The registry was frozen and can no longer change."""

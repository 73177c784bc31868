# treeclass/registry/base.py


import logging
from threading import RLock
from typing import Any, Callable, Generic, TypeVar

from asgiref.sync import sync_to_async

from ..exceptions import RegistryCollisionError, RegistryDuplicateError, RegistryFrozenError, RegistryLookupError
from ..keys import TYPE_KEY

logger = logging.getLogger(__name__)

K = TypeVar("K")
T = TypeVar("T")


class BaseRegistry(Generic[K, T]):
    """Registry keyed by a coerced key K storing classes of T."""

    def __init__(self, *, coerce_key: Callable[[Any], K]) -> None:
        self._coerce = coerce_key
        self._lock = RLock()
        self._store: dict[K, type[T]] = {}
        self._frozen = False

    def _register(self, cls: type[T]) -> None:
        """Internal: register a class into the store."""
        key = self._coerce(cls)

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is frozen")
            if key in self._store:
                if self._store[key] is cls:
                    raise RegistryDuplicateError(f"Already registered: {key!r}")
                raise RegistryCollisionError(
                    f"Key {key!r} already registered to {self._store[key].__qualname__}; "
                    f"cannot register {cls.__qualname__}"
                )
            self._store[key] = cls
            self._on_registered(key, cls)

    def _on_registered(self, key: K, cls: type[T]) -> None:
        """Hook for subclasses maintaining secondary indexes (called under the lock)."""

    # --- registration ---

    def register(self, cls: type[T], *, strict: bool = False) -> None:
        """
        Register a class, ignoring repeated registrations of the same class
        unless ``strict`` is set.

        :param cls: The class to be registered.
        :param strict: Raise ``RegistryDuplicateError`` on a repeated registration.
        """
        try:
            self._register(cls)
        except RegistryDuplicateError:
            if strict:
                raise
            logger.debug("Duplicate registration ignored: %s", cls)

    async def aregister(self, cls: type[T], *, strict: bool = False) -> None:
        """Async wrapper around `register`."""
        return await sync_to_async(self.register)(cls, strict=strict)

    # --- retrieval ---

    def get(self, key: Any) -> type[T]:
        """
        Retrieve the class registered under ``key``.

        :raises RegistryLookupError: If nothing is registered under the key.
        """
        k = self._coerce(key)
        with self._lock:
            try:
                return self._store[k]
            except KeyError as err:
                raise RegistryLookupError(f"Nothing registered for {key!r}") from err

    async def aget(self, key: Any) -> type[T]:
        """Async wrapper around `get`."""
        return await sync_to_async(self.get)(key)

    def try_get(self, key: Any) -> type[T] | None:
        """Like `get`, but return None when the key is unknown."""
        try:
            return self.get(key)
        except RegistryLookupError:
            return None

    async def atry_get(self, key: Any) -> type[T] | None:
        """Async wrapper around `try_get`."""
        return await sync_to_async(self.try_get)(key)

    # --- counting / enumeration ---

    def count(self) -> int:
        """Counts the number of registered classes."""
        with self._lock:
            return len(self._store)

    async def acount(self) -> int:
        return await sync_to_async(self.count)()

    def items(self) -> tuple[type[T], ...]:
        """Return all registered classes in registration order."""
        with self._lock:
            return tuple(self._store.values())

    def labels(self) -> tuple[str, ...]:
        """Return the qualified names of the registered classes."""
        with self._lock:
            return tuple(f"{cls.__module__}.{cls.__qualname__}" for cls in self._store.values())

    def filter(self, pred) -> tuple[type[T], ...]:
        """Return all registered classes matching predicate `pred`."""
        with self._lock:
            return tuple(c for c in self._store.values() if pred(c))

    # --- mutation / control ---

    def clear(self) -> None:
        """Clear the registry if not frozen."""
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is frozen")
            self._store.clear()

    def freeze(self) -> None:
        """Mark the registry as frozen (no further mutations)."""
        with self._lock:
            self._frozen = True


def _model_type_key(candidate: Any) -> Any:
    """Coerce a composed class (or a model type) to its model type."""
    from ..tree.model import ModelType

    if isinstance(candidate, ModelType):
        return candidate
    model_type = getattr(candidate, TYPE_KEY, None)
    if isinstance(model_type, ModelType):
        return model_type
    raise RegistryLookupError(f"{candidate!r} is neither a model type nor a composed class")


class ModelRegistry(BaseRegistry[Any, Any]):
    """Maps each composed model type to the class it was composed from.

    A secondary index by model name backs ``late("Name")``; the most recent
    registration of a name wins.
    """

    def __init__(self) -> None:
        super().__init__(coerce_key=_model_type_key)
        self._by_name: dict[str, type] = {}

    def _on_registered(self, key: Any, cls: type) -> None:
        previous = self._by_name.get(key.name)
        if previous is not None and previous is not cls:
            logger.debug("model name %r rebound from %s to %s", key.name, previous, cls)
        self._by_name[key.name] = cls

    def class_for(self, model_type: Any, default: type | None = None) -> type | None:
        """Return the class composed into ``model_type`` or ``default``."""
        with self._lock:
            return self._store.get(model_type, default)

    def get_by_name(self, name: str) -> type:
        with self._lock:
            try:
                return self._by_name[name]
            except KeyError as err:
                raise RegistryLookupError(f"No model named {name!r} is registered") from err

    async def aget_by_name(self, name: str) -> type:
        return await sync_to_async(self.get_by_name)(name)

    def clear(self) -> None:
        with self._lock:
            super().clear()
            self._by_name.clear()

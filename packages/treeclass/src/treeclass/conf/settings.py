"""Layered runtime switches for treeclass.

Lookups go through a ``ChainMap``: temporary overrides first, then values set
at runtime, then values loaded from a config module, then ``DEFAULTS``.
Known keys are validated when written so a typo in a config module fails at
load time instead of silently changing how trees behave.
"""

import importlib
import os
from collections import ChainMap
from contextlib import contextmanager
from types import ModuleType
from typing import Any, Iterator, Mapping, MutableMapping

from .defaults import DEFAULTS

TRACE_LEVELS = frozenset({"debug", "info", "minimal"})
FLAGS = frozenset({"PROTECT_TREE", "COPY_DEFAULTS", "STRICT_NUMBERS"})


def _validate(key: str, value: Any) -> Any:
    if key == "TRACE_LEVEL":
        level = str(value).strip().lower()
        if level not in TRACE_LEVELS:
            raise ValueError(f"TRACE_LEVEL must be one of {sorted(TRACE_LEVELS)} (got {value!r})")
        return level
    if key in FLAGS and not isinstance(value, bool):
        raise ValueError(f"{key} must be a bool (got {value!r})")
    return value


class Settings(MutableMapping[str, Any]):
    """Layered settings over ``DEFAULTS``."""

    def __init__(self, *layers: Mapping[str, Any]) -> None:
        self._runtime: dict[str, Any] = {}
        self._loaded: dict[str, Any] = {}
        for layer in layers:
            self._loaded.update({k: _validate(k, v) for k, v in layer.items()})
        self._storage = ChainMap(self._runtime, self._loaded, dict(DEFAULTS))

    # Mapping protocol -------------------------------------------------
    def __getitem__(self, key: str) -> Any:
        return self._storage[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._runtime[key] = _validate(key, value)

    def __delitem__(self, key: str) -> None:
        del self._runtime[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    # Loading ----------------------------------------------------------
    def update_from_object(self, obj: str | ModuleType | object, *, namespace: str | None = None) -> None:
        """Load upper-case names from a module (or its dotted path) or any object."""
        source = importlib.import_module(obj) if isinstance(obj, str) else obj
        self.update_from_mapping(vars(source), namespace=namespace, layer=self._loaded)

    def update_from_envvar(self, envvar: str = "TREECLASS_CONFIG_MODULE", *, namespace: str | None = None) -> None:
        module_name = os.environ.get(envvar)
        if not module_name:
            return
        self.update_from_object(module_name, namespace=namespace)

    def update_from_mapping(
        self,
        mapping: Mapping[str, Any],
        *,
        namespace: str | None = None,
        layer: dict[str, Any] | None = None,
    ) -> None:
        target = self._runtime if layer is None else layer
        for key, value in _filter_by_namespace(mapping, namespace).items():
            target[key] = _validate(key, value)

    # Control ----------------------------------------------------------
    @contextmanager
    def override(self, **values: Any) -> Iterator["Settings"]:
        """Temporarily apply ``values`` on top of every other layer."""
        layer = {k: _validate(k, v) for k, v in values.items()}
        self._storage.maps.insert(0, layer)
        try:
            yield self
        finally:
            self._storage.maps[:] = [m for m in self._storage.maps if m is not layer]

    def reset(self) -> None:
        """Drop runtime and loaded values; config modules are not re-read."""
        self._runtime.clear()
        self._loaded.clear()

    def as_dict(self) -> dict[str, Any]:
        return dict(self._storage)


def _filter_by_namespace(mapping: Mapping[str, Any], namespace: str | None) -> dict[str, Any]:
    if namespace is None:
        return {k: v for k, v in mapping.items() if k.isupper()}

    prefix = f"{namespace}_"
    return {key[len(prefix):]: value for key, value in mapping.items() if key.startswith(prefix)}

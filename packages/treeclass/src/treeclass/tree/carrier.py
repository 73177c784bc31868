"""View descriptors and the carrier object a views initializer returns."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Iterator

from .types import MISSING

__all__ = ["ViewDescriptor", "PropertyCarrier"]


@dataclass(frozen=True)
class ViewDescriptor:
    """Accessor triple for a single view.

    ``get``/``set`` make a computed property; ``value`` is a plain view value
    (typically a function). Only enumerable descriptors are installed.
    """

    get: Callable[[], Any] | None = None
    set: Callable[[Any], Any] | None = None
    value: Any = MISSING
    enumerable: bool = False

    @property
    def is_accessor(self) -> bool:
        return self.get is not None or self.set is not None

    def replace(self, **changes: Any) -> "ViewDescriptor":
        return dataclasses.replace(self, **changes)

    def read(self) -> Any:
        if self.get is not None:
            return self.get()
        if self.value is MISSING:
            raise AttributeError("view has no getter")
        return self.value


class PropertyCarrier:
    """Plain object holding view descriptors; iteration yields enumerable names only."""

    def __init__(self) -> None:
        object.__setattr__(self, "_descriptors", {})

    def define_property(self, name: str, descriptor: ViewDescriptor) -> "PropertyCarrier":
        self._descriptors[name] = descriptor
        return self

    def get_descriptor(self, name: str) -> ViewDescriptor | None:
        return self._descriptors.get(name)

    def items(self) -> Iterator[tuple[str, ViewDescriptor]]:
        return ((name, desc) for name, desc in self._descriptors.items() if desc.enumerable)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self.items())

    def __len__(self) -> int:
        return sum(1 for _ in self.items())

    def __getattr__(self, name: str) -> Any:
        try:
            desc = self._descriptors[name]
        except KeyError:
            raise AttributeError(name) from None
        return desc.read()

    def __setattr__(self, name: str, value: Any) -> None:
        desc = self._descriptors.get(name)
        if desc is None or desc.set is None:
            raise AttributeError(f"view {name!r} is not writable")
        desc.set(value)

    def __repr__(self) -> str:
        return f"PropertyCarrier({', '.join(self)})"

"""Per-class metadata slots.

Member annotations write into slots stored on the class being defined (its
own ``__dict__``, never an inherited one). The model decorator reads each
slot once with :func:`extract_tagged`, which removes it from the class.
"""

from __future__ import annotations

import logging
from typing import Any

from .keys import PROPS_KEY

logger = logging.getLogger(__name__)

__all__ = ["record_prop", "append_member", "extract_tagged", "peek_tagged"]


def peek_tagged(cls: type, key: str) -> Any:
    """Return the slot stored on ``cls`` itself, or None."""
    return vars(cls).get(key)


def record_prop(owner: type, name: str, type_: Any) -> None:
    """Merge ``{name: type_}`` into the props slot of ``owner``."""
    props = dict(peek_tagged(owner, PROPS_KEY) or {})
    props[name] = type_
    setattr(owner, PROPS_KEY, props)


def append_member(owner: type, key: str, name: str) -> None:
    """Append ``name`` to the list slot ``key`` of ``owner``, keeping declaration order."""
    members = list(peek_tagged(owner, key) or ())
    if name not in members:
        members.append(name)
    setattr(owner, key, members)


def extract_tagged(cls: type, key: str) -> Any:
    """Read and clear the slot ``key`` of ``cls``; None when the class has none."""
    value = peek_tagged(cls, key)
    if value is None:
        return None
    delattr(cls, key)
    logger.debug("extracted %s from %s: %r", key, cls.__qualname__, value)
    return value

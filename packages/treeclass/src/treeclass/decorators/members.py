"""Member annotations: fields (``prop``) and category taggers.

All annotations act when the class object is created: Python calls
``__set_name__`` on every class attribute that defines it, which is where
the member is recorded into the class's metadata slot.

    @model
    class Todo:
        title = prop(types.string)
        cache = volatile({})

        @action
        def rename(self, title):
            self.title = title

        @view
        @property
        def label(self):
            return self.title.upper()
"""

from __future__ import annotations

import logging
from typing import Any

from treeclass.keys import ACTIONS, ACTIONS_KEY, FLOWS, FLOWS_KEY, TYPE_KEY, VIEWS, VIEWS_KEY, VOLATILES, VOLATILES_KEY
from treeclass.slots import append_member, record_prop
from treeclass.tree.types import tagged_type

logger = logging.getLogger(__name__)

__all__ = [
    "FieldDescriptor",
    "MemberTagger",
    "TaggedMember",
    "member_tagger",
    "resolve_type_arg",
    "prop",
    "action",
    "volatile",
    "flow",
    "view",
]

_UNSET: Any = object()


def resolve_type_arg(arg: Any) -> Any:
    """Unwrap a type decorator, field descriptor or composed class to its tree type."""
    tagged = tagged_type(arg)
    return arg if tagged is None else tagged


class FieldDescriptor:
    """A field declaration carrying its resolved type under ``TYPE_KEY``.

    The class attribute is removed once recorded; field values are read from
    the instance (``__init__``) when the model is composed.
    """

    def __init__(self, type_: Any) -> None:
        setattr(self, TYPE_KEY, type_)

    @property
    def type(self) -> Any:
        return getattr(self, TYPE_KEY)

    def __set_name__(self, owner: type, name: str) -> None:
        record_prop(owner, name, self.type)
        delattr(owner, name)

    def __repr__(self) -> str:
        return f"FieldDescriptor({self.type!r})"


def prop(type_: Any = None) -> FieldDescriptor:
    """Declare a field of ``type_``; without a type it is inferred from the default value."""
    return FieldDescriptor(None if type_ is None else resolve_type_arg(type_))


class TaggedMember:
    """Wraps a member until the class is created, then puts it back untouched."""

    def __init__(self, tagger: "MemberTagger", member: Any) -> None:
        self.tagger = tagger
        self.member = member

    def __set_name__(self, owner: type, name: str) -> None:
        self.tagger.tag(owner, name)
        setattr(owner, name, self.member)
        hook = getattr(type(self.member), "__set_name__", None)
        if hook is not None:
            hook(self.member, owner, name)

    def __repr__(self) -> str:
        return f"<{self.tagger.category} {self.member!r}>"


class MemberTagger:
    """Annotation factory for one member category.

    ``@action``, ``@action()``, ``cache = volatile({})`` and the bare
    ``cache = volatile`` are all accepted.
    """

    def __init__(self, key: str, category: str) -> None:
        self.key = key
        self.category = category

    def __call__(self, member: Any = _UNSET) -> Any:
        if member is _UNSET:
            return self
        return TaggedMember(self, member)

    def tag(self, owner: type, name: str) -> None:
        append_member(owner, self.key, name)

    def __set_name__(self, owner: type, name: str) -> None:
        self.tag(owner, name)
        delattr(owner, name)

    def __repr__(self) -> str:
        return f"<MemberTagger {self.category}>"


def member_tagger(key: str, category: str) -> MemberTagger:
    return MemberTagger(key, category)


action = member_tagger(ACTIONS_KEY, ACTIONS)
volatile = member_tagger(VOLATILES_KEY, VOLATILES)
flow = member_tagger(FLOWS_KEY, FLOWS)
view = member_tagger(VIEWS_KEY, VIEWS)

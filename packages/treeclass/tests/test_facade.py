import functools

import pytest

from treeclass import action, model, string, tree
from treeclass.decorators import NodeAttribute, restore_identity
from treeclass.decorators.facade import describe_member


@model
class Note:
    text = string

    @action
    def edit(self, text):
        self.text = text

    def length(self):
        return len(self.text)


def test_managed_members_are_node_attributes():
    assert isinstance(vars(Note)["text"], NodeAttribute)
    assert isinstance(vars(Note)["edit"], NodeAttribute)
    assert "length" in vars(Note) and not isinstance(vars(Note)["length"], NodeAttribute)
    assert isinstance(Note.text, NodeAttribute)


def test_facade_delegates_to_its_node():
    note = Note.create({"text": "hi"})

    assert tree.get_node(note).value is note
    assert note.length() == 2
    note.edit("hello")
    assert note.length() == 5


def test_restore_identity_is_idempotent():
    note = Note.create({"text": "hi"})

    assert restore_identity(note, Note) is note


def test_managed_members_cannot_be_deleted_from_instances():
    note = Note.create({"text": "hi"})

    with pytest.raises(AttributeError):
        del note.text


def test_unmanaged_objects_use_instance_state():
    draft = Note()

    with pytest.raises(AttributeError):
        draft.text
    draft.text = "plain"
    assert draft.text == "plain"
    assert draft.length() == 5
    del draft.text
    with pytest.raises(AttributeError):
        draft.text


def test_describe_member():
    class Sample:
        constant = 3

        @property
        def prop(self):
            return 1

        @functools.cached_property
        def cached(self):
            return 2

        @staticmethod
        def helper(value):
            return value

    assert describe_member(Sample, "prop").get is vars(Sample)["prop"].fget
    assert describe_member(Sample, "cached").get is vars(Sample)["cached"].func
    assert describe_member(Sample, "helper").value(4) == 4
    assert describe_member(Sample, "constant").value == 3
    assert describe_member(Sample, "missing").value is tree.MISSING

import functools

from treeclass import action, flow, prop, tree, types, view, volatile
from treeclass.decorators import FieldDescriptor
from treeclass.keys import ACTIONS_KEY, FLOWS_KEY, PROPS_KEY, VIEWS_KEY, VOLATILES_KEY
from treeclass.slots import extract_tagged, peek_tagged


def test_prop_records_type_and_removes_class_attribute():
    class Draft:
        title = prop(types.string)
        count = prop()

    assert peek_tagged(Draft, PROPS_KEY) == {"title": tree.string, "count": None}
    assert "title" not in vars(Draft)
    assert "count" not in vars(Draft)


def test_prop_accepts_raw_tree_types():
    descriptor = prop(tree.integer)

    assert isinstance(descriptor, FieldDescriptor)
    assert descriptor.type is tree.integer


def test_bare_type_decorator_records_raw_type():
    class Draft:
        title = types.string
        tags = types.array(types.string)

    slot = peek_tagged(Draft, PROPS_KEY)
    assert slot["title"] is tree.string
    assert slot["tags"].item_type is tree.string
    assert slot["tags"].name == "array(string)"


def test_taggers_record_names_in_declaration_order_and_keep_members():
    class Draft:
        @action
        def b(self):
            return "b"

        @action()
        def a(self):
            return "a"

        cache = volatile({})
        scratch = volatile

        @flow
        async def load(self):
            return None

        @view
        @property
        def label(self):
            return "draft"

    assert peek_tagged(Draft, ACTIONS_KEY) == ["b", "a"]
    assert peek_tagged(Draft, VOLATILES_KEY) == ["cache", "scratch"]
    assert peek_tagged(Draft, FLOWS_KEY) == ["load"]
    assert peek_tagged(Draft, VIEWS_KEY) == ["label"]

    assert Draft().b() == "b"
    assert vars(Draft)["cache"] == {}
    assert "scratch" not in vars(Draft)
    assert isinstance(vars(Draft)["label"], property)


def test_tagged_member_keeps_its_own_set_name():
    class Draft:
        @view
        @functools.cached_property
        def label(self):
            return "draft"

    assert vars(Draft)["label"].attrname == "label"
    assert Draft().label == "draft"


def test_slots_are_never_inherited():
    class Base:
        title = prop(types.string)

    class Child(Base):
        body = prop(types.string)

    assert peek_tagged(Base, PROPS_KEY) == {"title": tree.string}
    assert peek_tagged(Child, PROPS_KEY) == {"body": tree.string}


def test_extract_tagged_consumes_slot_once():
    class Draft:
        @action
        def go(self):
            return None

    assert extract_tagged(Draft, ACTIONS_KEY) == ["go"]
    assert extract_tagged(Draft, ACTIONS_KEY) is None
    assert extract_tagged(Draft, VIEWS_KEY) is None

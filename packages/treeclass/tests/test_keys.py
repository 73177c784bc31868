import pytest

from treeclass.keys import (
    ACTIONS_KEY,
    CATEGORIES,
    FLOWS_KEY,
    KEY_PREFIX,
    PROPS_KEY,
    TYPE_KEY,
    VIEWS_KEY,
    VOLATILES_KEY,
    get_tag_key,
)


def test_tag_key_is_prefixed_and_stable():
    assert get_tag_key("props") == "__treeclass_props"
    assert get_tag_key("props") == PROPS_KEY
    assert get_tag_key(" type ") == TYPE_KEY


def test_category_keys_do_not_collide():
    keys = {TYPE_KEY, PROPS_KEY, ACTIONS_KEY, FLOWS_KEY, VIEWS_KEY, VOLATILES_KEY}

    assert len(keys) == 6
    assert all(key.startswith(KEY_PREFIX) for key in keys)


def test_every_category_has_a_slot_key():
    assert {get_tag_key(category) for category in CATEGORIES} == {
        PROPS_KEY,
        ACTIONS_KEY,
        FLOWS_KEY,
        VIEWS_KEY,
        VOLATILES_KEY,
    }


@pytest.mark.parametrize("tag", ["", "   ", None])
def test_empty_tags_are_rejected(tag):
    with pytest.raises(ValueError):
        get_tag_key(tag)

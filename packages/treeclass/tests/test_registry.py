import pytest

from treeclass import model, string, tree
from treeclass.keys import TYPE_KEY
from treeclass.registry import (
    ModelRegistry,
    RegistryCollisionError,
    RegistryDuplicateError,
    RegistryFrozenError,
    RegistryLookupError,
    models,
)


def _holder(model_type, name="Holder"):
    return type(name, (), {TYPE_KEY: model_type})


def test_composed_classes_are_registered():
    @model(name="RegistryProbe")
    class Probe:
        title = string

    model_type = getattr(Probe, TYPE_KEY)

    assert models.get(model_type) is Probe
    assert models.get(Probe) is Probe
    assert models.class_for(model_type) is Probe
    assert models.get_by_name("RegistryProbe") is Probe


def test_repeated_registration_is_ignored_unless_strict():
    registry = ModelRegistry()
    holder = _holder(tree.model("A", {}))

    registry.register(holder)
    registry.register(holder)

    assert registry.count() == 1
    with pytest.raises(RegistryDuplicateError):
        registry.register(holder, strict=True)


def test_a_model_type_maps_to_a_single_class():
    registry = ModelRegistry()
    model_type = tree.model("A", {})
    registry.register(_holder(model_type))

    with pytest.raises(RegistryCollisionError):
        registry.register(_holder(model_type, "Other"))


def test_lookups():
    registry = ModelRegistry()
    holder = _holder(tree.model("A", {}))
    registry.register(holder)
    unknown = tree.model("Unknown", {})

    assert registry.try_get(unknown) is None
    assert registry.class_for(unknown, holder) is holder
    assert registry.items() == (holder,)
    assert registry.labels() == (f"{holder.__module__}.Holder",)
    assert registry.filter(lambda cls: cls.__name__ == "Holder") == (holder,)
    with pytest.raises(RegistryLookupError):
        registry.get(unknown)
    with pytest.raises(LookupError):
        registry.get(object())
    with pytest.raises(RegistryLookupError):
        registry.get_by_name("Unknown")


def test_latest_registration_of_a_name_wins():
    registry = ModelRegistry()
    first = _holder(tree.model("Same", {}), "First")
    second = _holder(tree.model("Same", {}), "Second")

    registry.register(first)
    registry.register(second)

    assert registry.get_by_name("Same") is second


def test_frozen_registry_rejects_mutation():
    registry = ModelRegistry()
    registry.freeze()

    with pytest.raises(RegistryFrozenError):
        registry.register(_holder(tree.model("A", {})))
    with pytest.raises(RegistryFrozenError):
        registry.clear()


def test_clear_drops_the_name_index():
    registry = ModelRegistry()
    registry.register(_holder(tree.model("A", {})))

    registry.clear()

    assert registry.count() == 0
    assert registry.try_get(tree.model("A", {})) is None
    with pytest.raises(RegistryLookupError):
        registry.get_by_name("A")


@pytest.mark.asyncio
async def test_async_twins():
    registry = ModelRegistry()
    model_type = tree.model("Async", {})
    holder = _holder(model_type)

    await registry.aregister(holder)

    assert await registry.aget(model_type) is holder
    assert await registry.atry_get(tree.model("Other", {})) is None
    assert await registry.acount() == 1
    assert await registry.aget_by_name("Async") is holder

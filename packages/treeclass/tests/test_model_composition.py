import pytest

from treeclass import action, array, model, prop, string, tree, volatile
from treeclass.exceptions import (
    ModelAlreadyComposedError,
    NonCallableMemberError,
    TreeProtectionError,
    TreeTypeError,
    TreeValidationError,
)
from treeclass.keys import PROPS_KEY, TYPE_KEY
from treeclass.registry import models


@model
class Todo:
    title = string
    done = prop()
    tags = array(string)

    def __init__(self):
        self.done = False

    @action
    def toggle(self):
        self.done = not self.done

    @action
    def add_tag(self, tag):
        self.tags.append(tag)
        return len(self.tags)

    def describe(self):
        return f"{self.title} ({'done' if self.done else 'open'})"


def test_create_builds_an_instance_of_the_class():
    todo = Todo.create({"title": "write docs"})

    assert isinstance(todo, Todo)
    assert type(todo) is Todo
    assert todo.title == "write docs"
    assert todo.done is False
    assert list(todo.tags) == []
    assert todo.describe() == "write docs (open)"


def test_actions_modify_state_and_return_values():
    todo = Todo.create({"title": "write docs"})

    todo.toggle()
    assert todo.add_tag("docs") == 1

    assert todo.done is True
    assert tree.get_snapshot(todo) == {"title": "write docs", "done": True, "tags": ["docs"]}


def test_writes_outside_actions_are_rejected():
    todo = Todo.create({"title": "write docs"})

    with pytest.raises(TreeProtectionError):
        todo.title = "other"
    with pytest.raises(TreeProtectionError):
        todo.tags.append("x")


def test_snapshot_values_override_defaults():
    todo = Todo.create({"title": "ship", "done": True})

    assert todo.done is True


def test_missing_required_field_reports_its_path():
    with pytest.raises(TreeValidationError) as err:
        Todo.create()

    assert err.value.path == ("title",)


def test_field_values_are_validated():
    with pytest.raises(TreeValidationError):
        Todo.create({"title": 1})


def test_class_carries_its_model_type():
    model_type = getattr(Todo, TYPE_KEY)

    assert isinstance(model_type, tree.ModelType)
    assert model_type.name == "Todo"
    assert set(model_type.properties) == {"title", "done", "tags"}
    assert PROPS_KEY not in vars(Todo)
    assert tree.get_type(Todo.create({"title": "x"})) is model_type


def test_plain_construction_keeps_working():
    draft = Todo()

    assert draft.done is False
    assert not tree.is_tree_node(draft)


def test_custom_model_name():
    @model(name="TodoItem")
    class Renamed:
        title = string

    assert getattr(Renamed, TYPE_KEY).name == "TodoItem"


def test_env_is_passed_to_the_tree():
    todo = Todo.create({"title": "x"}, env={"api": "stub"})

    assert tree.get_env(todo) == {"api": "stub"}


def test_untyped_field_infers_type_from_default():
    @model
    class Counter:
        count = prop()
        label = prop()

        def __init__(self):
            self.count = 0
            self.label = "clicks"

    counter = Counter.create()
    assert tree.get_snapshot(counter) == {"count": 0, "label": "clicks"}
    with pytest.raises(TreeValidationError):
        Counter.create({"count": "many"})


def test_integer_default_accepts_any_number():
    @model
    class Price:
        amount = prop()

        def __init__(self):
            self.amount = 0

        @action
        def reprice(self, amount):
            self.amount = amount

    price = Price.create()
    price.reprice(2.5)

    assert price.amount == 2.5
    assert tree.get_snapshot(Price.create({"amount": 1.25})) == {"amount": 1.25}


def test_untyped_field_without_default_is_rejected():
    with pytest.raises(TreeTypeError):
        @model
        class Untyped:
            value = prop()


def test_mutable_defaults_are_not_shared():
    @model
    class Basket:
        items = array(string)

        def __init__(self):
            self.items = ["apple"]

        @action
        def add(self, item):
            self.items.append(item)

    first = Basket.create()
    second = Basket.create()
    first.add("pear")

    assert list(first.items) == ["apple", "pear"]
    assert list(second.items) == ["apple"]
    assert list(Basket.create({"items": []}).items) == []


def test_volatile_state_is_per_instance_and_not_snapshotted():
    @model
    class Session:
        user = string
        cache = volatile({})

        @action
        def remember(self, key, value):
            self.cache[key] = value

    first = Session.create({"user": "ada"})
    second = Session.create({"user": "grace"})
    first.remember("theme", "dark")

    assert first.cache == {"theme": "dark"}
    assert second.cache == {}
    assert tree.get_snapshot(first) == {"user": "ada"}
    with pytest.raises(TreeProtectionError):
        first.cache = {}


def test_non_method_callables_are_not_rebound():
    @model
    class Calculator:
        @action
        @staticmethod
        def double(value):
            return value * 2

    assert Calculator.create().double(3) == 6


def test_after_create_runs_on_the_class_instance():
    seen = []

    @model
    class Hooked:
        title = string

        @action
        def after_create(self):
            seen.append(self)
            self.title = self.title.strip()

    hooked = Hooked.create({"title": "  padded  "})

    assert seen == [hooked]
    assert isinstance(seen[0], Hooked)
    assert hooked.title == "padded"


def test_pre_process_snapshot_hook_runs_after_defaults():
    @model
    class Temperature:
        celsius = prop()

        def __init__(self):
            self.celsius = 0

        @staticmethod
        def pre_process_snapshot(snapshot):
            if "fahrenheit" in snapshot:
                return {"celsius": round((snapshot["fahrenheit"] - 32) * 5 / 9)}
            return snapshot

    assert Temperature.create({"fahrenheit": 212}).celsius == 100
    assert Temperature.create().celsius == 0


def test_composed_classes_nest():
    @model
    class Tag:
        label = string

    @model
    class Post:
        title = string
        tags = array(Tag)
        lead = prop(Tag)

        @action
        def tag(self, label):
            self.tags.append({"label": label})

    post = Post.create({"title": "hello", "tags": [{"label": "a"}], "lead": {"label": "news"}})
    post.tag("b")

    assert isinstance(post.tags[0], Tag)
    assert isinstance(post.lead, Tag)
    assert [t.label for t in post.tags] == ["a", "b"]
    assert tree.get_parent(post.tags[0]) is post
    assert tree.get_root(post.lead) is post


def test_non_callable_action_is_rejected():
    class Broken:
        limit = action(5)

    registered = models.count()
    with pytest.raises(NonCallableMemberError) as err:
        model(Broken)

    assert err.value.member == "limit"
    assert err.value.category == "actions"
    assert isinstance(err.value, TypeError)
    assert TYPE_KEY not in vars(Broken)
    assert not hasattr(Broken, "create")
    assert models.count() == registered


def test_composing_twice_fails_fast():
    @model
    class Once:
        title = string

    with pytest.raises(ModelAlreadyComposedError):
        model(Once)


class Boom(Exception):
    pass


def test_default_construction_errors_propagate_unchanged():
    with pytest.raises(Boom):
        @model
        class Fragile:
            def __init__(self):
                raise Boom()

    with pytest.raises(TypeError):
        @model
        class NeedsArgs:
            def __init__(self, value):
                self.value = value

from treeclass import action, model, optional, prop, string, tree
from treeclass.keys import TYPE_KEY
from treeclass.registry import models


@model
class Animal:
    name = string
    legs = prop()

    def __init__(self):
        self.legs = 4

    @action
    def rename(self, name):
        self.name = name

    def speak(self):
        return "..."


@model
class Bird(Animal):
    wings = prop()

    def __init__(self):
        super().__init__()
        self.legs = 2
        self.wings = 2

    def speak(self):
        return "tweet"


def test_child_type_extends_parent_type():
    bird_type = getattr(Bird, TYPE_KEY)

    assert bird_type.name == "Bird"
    assert set(bird_type.properties) == {"name", "legs", "wings"}
    assert getattr(Animal, TYPE_KEY).name == "Animal"
    assert set(getattr(Animal, TYPE_KEY).properties) == {"name", "legs"}


def test_child_instances_use_the_child_class_and_defaults():
    bird = Bird.create({"name": "tweety"})

    assert type(bird) is Bird
    assert isinstance(bird, Animal)
    assert bird.legs == 2
    assert bird.wings == 2
    assert bird.speak() == "tweet"
    assert tree.get_snapshot(bird) == {"name": "tweety", "legs": 2, "wings": 2}


def test_parent_actions_work_on_child_instances():
    bird = Bird.create({"name": "tweety"})

    bird.rename("polly")

    assert bird.name == "polly"


def test_parent_is_unaffected_by_child():
    rex = Animal.create({"name": "rex"})

    assert type(rex) is Animal
    assert rex.legs == 4
    assert not hasattr(rex, "wings")


def test_both_classes_are_registered():
    assert models.class_for(getattr(Animal, TYPE_KEY)) is Animal
    assert models.class_for(getattr(Bird, TYPE_KEY)) is Bird


def test_child_can_redeclare_a_parent_field():
    @model
    class Shape:
        label = string

    @model
    class Circle(Shape):
        label = optional(string, "circle")
        radius = prop()

        def __init__(self):
            self.radius = 1.0

    circle = Circle.create()

    assert circle.label == "circle"
    assert circle.radius == 1.0


def test_after_create_hooks_are_chained_parent_first():
    calls = []

    @model
    class Base:
        title = string

        @action
        def after_create(self):
            calls.append(("base", type(self).__name__))

    @model
    class Derived(Base):
        @action
        def after_create(self):
            calls.append(("derived", type(self).__name__))

    Derived.create({"title": "x"})

    assert calls == [("base", "Derived"), ("derived", "Derived")]

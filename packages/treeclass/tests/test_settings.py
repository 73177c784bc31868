import pytest

from treeclass import action, model, string, tree, volatile
from treeclass.conf import DEFAULTS, Settings, settings


def test_defaults():
    assert settings["TRACE_LEVEL"] == "info"
    assert settings["PROTECT_TREE"] is True
    assert settings["COPY_DEFAULTS"] is True
    assert settings["STRICT_NUMBERS"] is True
    assert settings.as_dict() == DEFAULTS


def test_namespaced_mapping_overrides_and_reset():
    config = Settings()

    config.update_from_mapping({"TREECLASS_TRACE_LEVEL": "debug", "OTHER": 1}, namespace="TREECLASS")

    assert config["TRACE_LEVEL"] == "debug"
    assert "OTHER" not in config
    config.reset()
    assert config["TRACE_LEVEL"] == "info"


def test_overrides_from_module_named_by_envvar(tmp_path, monkeypatch):
    (tmp_path / "treeclass_test_config.py").write_text("TREECLASS_COPY_DEFAULTS = False\nIGNORED = 1\n")
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.setenv("TREECLASS_CONFIG_MODULE", "treeclass_test_config")
    config = Settings()

    config.update_from_envvar("TREECLASS_CONFIG_MODULE", namespace="TREECLASS")

    assert config["COPY_DEFAULTS"] is False
    assert "IGNORED" not in config


def test_missing_envvar_is_a_no_op(monkeypatch):
    monkeypatch.delenv("TREECLASS_CONFIG_MODULE", raising=False)
    config = Settings()

    config.update_from_envvar()

    assert config.as_dict() == DEFAULTS


def test_unknown_key_raises():
    with pytest.raises(KeyError):
        settings["NOPE"]


@pytest.mark.parametrize("copy_defaults", [True, False])
def test_copy_defaults_controls_volatile_sharing(copy_defaults):
    settings["COPY_DEFAULTS"] = copy_defaults

    @model
    class Cached:
        key = string
        cache = volatile({})

        @action
        def put(self, value):
            self.cache[self.key] = value

    first = Cached.create({"key": "a"})
    second = Cached.create({"key": "b"})
    first.put(1)

    assert (first.cache is second.cache) is (not copy_defaults)
    assert tree.get_snapshot(first) == {"key": "a"}


def test_override_is_temporary_and_wins_over_runtime_values():
    settings["PROTECT_TREE"] = True

    with settings.override(PROTECT_TREE=False, TRACE_LEVEL="DEBUG"):
        assert settings["PROTECT_TREE"] is False
        assert settings["TRACE_LEVEL"] == "debug"

    assert settings["PROTECT_TREE"] is True
    assert settings["TRACE_LEVEL"] == "info"


@pytest.mark.parametrize(
    "key, value",
    [("TRACE_LEVEL", "verbose"), ("PROTECT_TREE", "yes"), ("COPY_DEFAULTS", 1)],
)
def test_known_keys_are_validated(key, value):
    with pytest.raises(ValueError):
        settings[key] = value
    with pytest.raises(ValueError):
        Settings({key: value})

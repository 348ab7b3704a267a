import sys
import types

import pytest

from hopper.banner import alias_table, generate_banner
from hopper.errors import ManifestError
from hopper.manifest import ModuleDependency, PackDependency


def _fake_module(monkeypatch, name: str) -> types.ModuleType:
    module = types.ModuleType(name)
    parent_name, _, child = name.rpartition(".")
    if parent_name:
        parent = sys.modules.get(parent_name) or types.ModuleType(parent_name)
        monkeypatch.setitem(sys.modules, parent_name, parent)
        monkeypatch.setattr(parent, child, module, raising=False)
    monkeypatch.setitem(sys.modules, name, module)
    return module


def test_banner_imports_module_under_declared_alias(monkeypatch):
    core = _fake_module(monkeypatch, "engine.core")
    banner = generate_banner([ModuleDependency(module_name="engine.core", alias="core")])

    assert "import engine.core as __script_module_0__" in banner
    assert "'core': __script_module_0__" in banner

    namespace = {}
    exec(compile(banner, "<banner>", "exec"), namespace)
    assert namespace["mods"].core is core
    assert callable(namespace["define_component"])
    assert callable(namespace["establish_addon"])


def test_callbacks_receive_the_alias_object(monkeypatch):
    core = _fake_module(monkeypatch, "engine_core")
    banner = generate_banner([ModuleDependency(module_name="engine_core", alias="core")])
    namespace = {}
    exec(compile(banner, "<banner>", "exec"), namespace)
    received = []

    component = namespace["define_component"](
        lambda c: c.define.script(lambda m: received.append(m))
    )()
    namespace["establish_addon"](component)

    assert received == [namespace["mods"]]
    assert received[0].core is core


def test_pack_dependencies_are_skipped_but_keep_manifest_indices():
    banner = generate_banner(
        [
            PackDependency(uuid="3f1b2c1e-0000-0000-0000-000000000000", version=[1, 0, 0]),
            ModuleDependency(module_name="engine_ui", version="1.1.0"),
        ]
    )

    assert "import engine_ui as __script_module_1__" in banner
    assert "__script_module_0__" not in banner
    assert "'engine_ui': __script_module_1__" in banner


def test_banner_without_module_dependencies_still_defines_protocol():
    namespace = {}
    exec(compile(generate_banner([]), "<banner>", "exec"), namespace)
    assert vars(namespace["mods"]) == {}
    assert callable(namespace["establish_addon"])


def test_banner_scope_does_not_leak_bootstrap_internals():
    namespace = {}
    exec(compile(generate_banner([]), "<banner>", "exec"), namespace)
    assert "_once_keys" not in namespace
    assert "_session" not in namespace


def test_unimportable_module_name_is_rejected():
    with pytest.raises(ManifestError, match="@minecraft/server"):
        generate_banner([ModuleDependency(module_name="@minecraft/server", alias="server")])


def test_duplicate_alias_warns_and_last_wins():
    with pytest.warns(UserWarning, match="Alias 'core' is declared more than once"):
        table = alias_table(
            [
                ModuleDependency(module_name="engine_a", alias="core"),
                ModuleDependency(module_name="engine_b", alias="core"),
            ]
        )
    assert table == {"core": "__script_module_1__"}


def test_alias_object_supports_key_access_for_any_alias(monkeypatch):
    ui = _fake_module(monkeypatch, "engine_ui")
    core = _fake_module(monkeypatch, "engine_core")
    banner = generate_banner(
        [
            ModuleDependency(module_name="engine_ui", alias="server-ui"),
            ModuleDependency(module_name="engine_core", alias="core"),
        ]
    )
    namespace = {}
    exec(compile(banner, "<banner>", "exec"), namespace)
    mods = namespace["mods"]

    assert mods["server-ui"] is ui
    assert mods["core"] is mods.core is core
    with pytest.raises(KeyError):
        mods["missing"]

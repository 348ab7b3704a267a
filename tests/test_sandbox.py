import textwrap

import pytest

from hopper.artifacts import FileArtifact
from hopper.errors import BundleError, NoAddonError, ProtocolError
from hopper.protocol import BuildSession
from hopper.sandbox import build_namespace, collect_file_artifacts


def _collect(source: str):
    return collect_file_artifacts(textwrap.dedent(source))


def test_collects_artifacts_of_the_established_component():
    artifacts = _collect(
        """
        def _zombie(c, health):
            c.define.entity({"health": health}, name="zombie")
            c.define.client_entity({"geometry": "zombie"}, name="zombie")

        Zombie = define_component(_zombie)

        def _addon(c):
            c.implement(Zombie(20))
            c.define.recipe({"result": "rotten_flesh"})

        establish_addon(define_component(_addon)())
        """
    )

    assert artifacts == [
        FileArtifact(path="BP/entities/zombie.json", content='{"health":20}'),
        FileArtifact(path="RP/entity/zombie.json", content='{"geometry":"zombie"}'),
        FileArtifact(path="BP/recipes/2.json", content='{"result":"rotten_flesh"}'),
    ]


def test_runtime_only_code_is_never_evaluated():
    artifacts = _collect(
        """
        mods.server.world.say("loading")
        with mods:
            import engine_module_that_does_not_exist

        def _addon(c):
            c.define.item({"id": "demo:wand"}, name="wand")
            c.define.script(lambda m: m.server.world.say("ready"))

        establish_addon(define_component(_addon)())
        """
    )

    assert [artifact.path for artifact in artifacts] == ["BP/items/wand.json"]


def test_build_only_blocks_are_evaluated():
    artifacts = _collect(
        """
        with buildtime:
            import json
            payload = json.loads('{"id": "demo:gem"}')

        establish_addon(define_component(lambda c: c.define.item(payload, name="gem"))())
        """
    )

    assert artifacts[0].content == '{"id":"demo:gem"}'


def test_once_key_scenario_keeps_the_implemented_artifact():
    artifacts = _collect(
        """
        F1 = define_component(lambda c: c.define.entity({"from": "f1"}, once="k"))

        def _f2(c):
            c.implement(F1())
            c.define.entity({"from": "f2"}, once="k")

        establish_addon(define_component(_f2)())
        """
    )

    assert artifacts == [FileArtifact(path="BP/entities/0.json", content='{"from":"f1"}')]


def test_missing_establish_addon_fails():
    with pytest.raises(NoAddonError, match="No addon established"):
        _collect("Thing = define_component(lambda c: c.define.entity({}))\n")


def test_double_establish_propagates_protocol_error():
    with pytest.raises(ProtocolError, match="already been called"):
        _collect(
            """
            root = define_component(lambda c: None)()
            establish_addon(root)
            establish_addon(root)
            """
        )


def test_handle_leak_propagates_protocol_error():
    with pytest.raises(ProtocolError, match="no longer available"):
        _collect(
            """
            leaked = []
            define_component(leaked.append)()
            leaked[0].define.entity({})
            """
        )


def test_malformed_source_is_a_bundle_error():
    with pytest.raises(BundleError, match="Invalid Python syntax"):
        collect_file_artifacts("establish_addon(\n")


def test_each_call_gets_a_fresh_registry_and_counter():
    source = textwrap.dedent(
        """
        establish_addon(define_component(lambda c: c.define.entity({}, once="k"))())
        """
    )

    first = collect_file_artifacts(source)
    second = collect_file_artifacts(source)

    assert first == second == [FileArtifact(path="BP/entities/0.json", content="{}")]


def test_namespace_exposes_only_the_host_bindings():
    namespace = build_namespace(BuildSession())
    assert set(namespace) == {
        "__builtins__",
        "__name__",
        "define_component",
        "establish_addon",
    }


def test_misplaced_future_import_is_a_bundle_error():
    with pytest.raises(BundleError, match="from __future__ imports must occur"):
        _collect(
            """
            x = 1
            from __future__ import annotations
            """
        )

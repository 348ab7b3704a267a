import ast
import textwrap

import pytest

from hopper.elision import Phase, chain_root, elide_for_phase, split_phases
from hopper.errors import BundleError


def _split(source: str):
    return split_phases(textwrap.dedent(source))


def test_runtime_chain_becomes_none_at_build_time():
    phases = _split("players = mods.server.world.get_players()\n")
    assert phases.build == "players = None"
    assert phases.runtime == "players = mods.server.world.get_players()"


def test_runtime_expression_statements_are_dropped_at_build_time():
    phases = _split(
        """
        mods.server.world.say('hi')
        value = 1
        """
    )
    assert phases.build == "value = 1"
    assert phases.runtime == "mods.server.world.say('hi')\nvalue = 1"


def test_nested_runtime_reference_is_replaced_in_place():
    phases = _split("print(mods.server, 2)\n")
    assert phases.build == "print(None, 2)"


def test_assignment_into_runtime_target_is_dropped():
    phases = _split(
        """
        mods.cache = {}
        mods.counters['x'] += 1
        y = 2
        """
    )
    assert phases.build == "y = 2"


def test_marker_blocks_are_split_between_phases():
    phases = _split(
        """
        with mods:
            import engine_only
            engine_only.start()
        with buildtime:
            generated = 1
        shared = 2
        """
    )
    assert phases.build == "generated = 1\nshared = 2"
    assert phases.runtime == "import engine_only\nengine_only.start()\nshared = 2"


def test_emptied_bodies_receive_pass():
    phases = _split(
        """
        def on_tick():
            mods.server.world.say('tick')
        """
    )
    assert phases.build == "def on_tick():\n    pass"


def test_emptied_finally_block_keeps_try_valid():
    source = textwrap.dedent(
        """
        try:
            x = 1
        finally:
            mods.core.record('done')
        """
    )

    phases = split_phases(source)

    assert phases.build == "try:\n    x = 1\nfinally:\n    pass"
    assert phases.runtime == "try:\n    x = 1\nfinally:\n    mods.core.record('done')"
    build_module = elide_for_phase(ast.parse(source), Phase.BUILD)
    compile(build_module, "<build>", "exec")


def test_runtime_marker_as_parameter_is_kept():
    phases = _split(
        """
        def ready(mods):
            return mods.server
        """
    )
    assert phases.build == "def ready(mods):\n    return None"
    assert phases.runtime == "def ready(mods):\n    return mods.server"


def test_runtime_decorators_are_dropped_at_build_time():
    phases = _split(
        """
        @mods.server.subscribe
        def handler():
            pass
        """
    )
    assert phases.build == "def handler():\n    pass"
    assert phases.runtime.startswith("@mods.server.subscribe")


def test_build_marker_expressions_become_none_at_run_time():
    phases = _split("y = buildtime.value\n")
    assert phases.runtime == "y = None"


def test_marker_block_with_alias_is_rejected():
    with pytest.raises(BundleError, match="with mods:") as excinfo:
        _split(
            """
            with mods as engine:
                pass
            """
        )
    assert "Location: line 2" in str(excinfo.value)


def test_syntax_error_reports_location():
    with pytest.raises(BundleError, match="Invalid Python syntax") as excinfo:
        split_phases("def broken(:\n    pass\n")
    assert "Location: line 1" in str(excinfo.value)


def test_chain_root():
    expr = ast.parse("a.b[0].c()", mode="eval").body
    assert chain_root(expr).id == "a"
    assert chain_root(ast.parse("'x'[0]", mode="eval").body) is None


def test_elide_for_phase_leaves_input_untouched():
    module = ast.parse("with mods:\n    x = 1\n")
    before = ast.dump(module)

    elide_for_phase(module, Phase.BUILD)
    elide_for_phase(module, Phase.RUNTIME)

    assert ast.dump(module) == before

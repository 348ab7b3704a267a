import textwrap
from pathlib import Path

import pytest

from hopper.bundler import bundle_entry, collect_sources
from hopper.errors import BundleError, InputNotFoundError


def _write(path: Path, source: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


def test_bundle_inlines_local_modules_before_their_dependents(tmp_path):
    src = tmp_path / "src"
    _write(
        src / "shared.py",
        """
        BASE_HEALTH = 20
        """,
    )
    _write(
        src / "mobs.py",
        """
        from .shared import BASE_HEALTH

        def mob_health():
            return BASE_HEALTH
        """,
    )
    entry = _write(
        src / "main.py",
        """
        import json
        from hopper.script_globals import define_component, establish_addon
        from .mobs import mob_health
        from .shared import BASE_HEALTH

        payload = json.dumps({"health": mob_health()})
        """,
    )

    bundle = bundle_entry(entry)

    assert bundle.index("# --- source: shared.py ---") < bundle.index("# --- source: mobs.py ---")
    assert bundle.index("# --- source: mobs.py ---") < bundle.index("# --- source: main.py ---")
    assert bundle.count("BASE_HEALTH = 20") == 1
    assert "import json" in bundle
    assert "hopper.script_globals" not in bundle
    assert "from .mobs" not in bundle
    assert "from .shared" not in bundle


def test_absolute_imports_resolving_under_entry_dir_are_inlined(tmp_path):
    src = tmp_path / "src"
    _write(src / "helpers" / "__init__.py", "HELPER = 1\n")
    entry = _write(
        src / "main.py",
        """
        import os, helpers
        from helpers import HELPER
        """,
    )

    sources = collect_sources(entry).modules

    assert [path.relative_to(src.resolve()).as_posix() for path, _ in sources] == [
        "helpers/__init__.py",
        "main.py",
    ]
    assert sources[-1][1] == "import os"


def test_missing_entry_is_reported(tmp_path):
    with pytest.raises(InputNotFoundError, match="does not exist"):
        bundle_entry(tmp_path / "src" / "main.py")


def test_entry_must_be_a_file(tmp_path):
    with pytest.raises(InputNotFoundError, match="not a file"):
        bundle_entry(tmp_path)


def test_unresolvable_relative_import_is_a_bundle_error(tmp_path):
    entry = _write(tmp_path / "main.py", "from .missing import thing\n")
    with pytest.raises(BundleError, match="Cannot resolve relative import '.missing'") as excinfo:
        bundle_entry(entry)
    assert "Code: from .missing import thing" in str(excinfo.value)


def test_syntax_error_names_the_file(tmp_path):
    entry = _write(tmp_path / "main.py", "def broken(:\n")
    with pytest.raises(BundleError, match="main.py") as excinfo:
        bundle_entry(entry)
    assert "Invalid Python syntax" in str(excinfo.value)


def test_future_imports_are_lifted_to_the_head_of_the_bundle(tmp_path):
    src = tmp_path / "src"
    _write(
        src / "mobs.py",
        """
        \"\"\"Mob helpers.\"\"\"
        from __future__ import annotations, generator_stop

        def mob_health() -> int:
            return 20
        """,
    )
    entry = _write(
        src / "main.py",
        """
        from __future__ import annotations
        from .mobs import mob_health
        """,
    )

    collected = collect_sources(entry)
    bundle = bundle_entry(entry)

    assert collected.future_features == ["annotations", "generator_stop"]
    assert bundle.startswith("from __future__ import annotations, generator_stop\n")
    assert bundle.count("from __future__") == 1
    compile(bundle, "<bundle>", "exec")

import keyword
import textwrap
import warnings
from typing import Dict, Iterable, List

from hopper.bootstrap import RUNTIME_EXPORTS, generate_bootstrap
from hopper.elision import RUNTIME_MARKER
from hopper.errors import ManifestError
from hopper.manifest import Dependency, ModuleDependency


BOOTSTRAP_FUNCTION = "__hopper_bootstrap__"
TYPES_LOCAL_NAME = "__hopper_types__"
ALIAS_CLASS_NAME = "_AliasObject"

# Aliases that are not identifiers are reachable as mods["server-ui"].
_ALIAS_OBJECT_CLASS = f"""\
class {ALIAS_CLASS_NAME}({TYPES_LOCAL_NAME}.SimpleNamespace):
    def __getitem__(self, key):
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None
"""


def module_local_name(index: int) -> str:
    return f"__script_module_{index}__"


def _check_module_name(module_name: str) -> None:
    parts = module_name.split(".")
    if not all(part.isidentifier() and not keyword.iskeyword(part) for part in parts):
        raise ManifestError(
            f"Module dependency '{module_name}' is not an importable dotted module name."
        )


def alias_table(dependencies: Iterable[Dependency]) -> Dict[str, str]:
    """Map alias keys to the local names their modules are imported under.

    Pack (uuid) dependencies are skipped; indices follow the manifest order.
    """
    table: Dict[str, str] = {}
    for index, dependency in enumerate(dependencies):
        if not isinstance(dependency, ModuleDependency):
            continue
        _check_module_name(dependency.module_name)
        key = dependency.lookup_key
        if key in table:
            warnings.warn(
                f"Alias '{key}' is declared more than once; '{dependency.module_name}' wins.",
                stacklevel=2,
            )
        table[key] = module_local_name(index)
    return table


def generate_banner(dependencies: Iterable[Dependency]) -> str:
    """Emit the module imports, the alias object and the run-time protocol.

    The result is meant to be the first code the engine evaluates: it binds
    ``mods``, ``define_component`` and ``establish_addon`` at module level.
    """
    dependencies = list(dependencies)
    table = alias_table(dependencies)

    lines: List[str] = [f"import types as {TYPES_LOCAL_NAME}"]
    for index, dependency in enumerate(dependencies):
        if isinstance(dependency, ModuleDependency):
            lines.append(f"import {dependency.module_name} as {module_local_name(index)}")

    entries = ", ".join(f"{key!r}: {local}" for key, local in table.items())
    exports = ", ".join((RUNTIME_MARKER,) + RUNTIME_EXPORTS)
    body = "\n".join(
        [
            _ALIAS_OBJECT_CLASS,
            f"{RUNTIME_MARKER} = {ALIAS_CLASS_NAME}(**{{{entries}}})",
            "",
            generate_bootstrap(),
            f"return {exports}",
        ]
    )

    wrapper = f"def {BOOTSTRAP_FUNCTION}():\n" + textwrap.indent(body, "    ")
    return (
        "\n".join(lines)
        + "\n\n\n"
        + wrapper
        + "\n\n\n"
        + f"{exports} = {BOOTSTRAP_FUNCTION}()\n"
    )

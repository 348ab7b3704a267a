"""Evaluate the build-time program and collect the files it registers."""

import ast
import builtins
from typing import Any, Dict, List, Optional

from hopper.artifacts import FileArtifact
from hopper.elision import Phase, elide_for_phase, parse_bundle
from hopper.errors import BundleError, bundle_source_context, format_syntax_error
from hopper.protocol import BuildSession


SANDBOX_FILENAME = "<hopper build bundle>"
SANDBOX_MODULE_NAME = "__hopper_build__"


def build_namespace(session: BuildSession) -> Dict[str, Any]:
    """Fresh globals for one evaluation: builtins plus the two host bindings."""
    namespace: Dict[str, Any] = {
        "__builtins__": builtins,
        "__name__": SANDBOX_MODULE_NAME,
    }
    namespace.update(session.host_bindings())
    return namespace


def execute_build_program(
    module: ast.Module,
    session: Optional[BuildSession] = None,
    *,
    source: str = "",
) -> BuildSession:
    """Run an already elided build-time module against ``session``.

    ``source`` is the text ``module`` was parsed from; it only feeds error
    messages.
    """
    session = session if session is not None else BuildSession()
    try:
        code = compile(module, SANDBOX_FILENAME, "exec")
    except SyntaxError as exc:
        raise BundleError(format_syntax_error(exc, source)) from exc
    except ValueError as exc:
        raise BundleError(f"Invalid build program: {exc}") from exc
    exec(code, build_namespace(session))
    return session


def collect_file_artifacts(entry_source: str) -> List[FileArtifact]:
    """Evaluate bundled addon source at build time and return its files.

    The source is stripped of run-time-only code first, then executed in an
    isolated namespace that only provides ``define_component`` and
    ``establish_addon``. Script callbacks registered along the way are
    ignored here; they only matter inside the engine.

    Raises:
        BundleError: If the source does not parse.
        NoAddonError: If evaluation never called ``establish_addon``.
        ProtocolError: If the source breaks the component lifecycle rules.
    """
    with bundle_source_context(entry_source):
        module = parse_bundle(entry_source)
        build_module = elide_for_phase(module, Phase.BUILD)
    session = execute_build_program(build_module, source=entry_source)
    return list(session.addon().file_artifacts)

"""Single-file bundling of an addon entry module and its local imports.

Local modules (relative imports, or absolute imports that resolve under the
entry module's directory) are inlined depth-first, dependencies before
dependents, each file once. The import statements that pulled them in are
removed, so the bundle shares one flat namespace. Imports of the authoring
stubs in :mod:`hopper.script_globals` are removed as well; every other import
is left for the executing environment to resolve.
"""

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union

from hopper.elision import is_future_import
from hopper.errors import (
    BundleError,
    InputNotFoundError,
    bundle_source_context,
    format_syntax_error,
)


SCRIPT_GLOBALS_MODULE = "hopper.script_globals"


@dataclass
class CollectedSources:
    """Modules in bundle order plus the ``__future__`` features they use.

    ``from __future__`` imports are lifted out of every module; the bundle
    declares them once, ahead of everything else.
    """

    modules: List[Tuple[Path, str]] = field(default_factory=list)
    future_features: List[str] = field(default_factory=list)


def _resolve_module_file(candidate_base: Path) -> Optional[Path]:
    module_file = candidate_base.with_suffix(".py")
    if module_file.exists() and module_file.is_file():
        return module_file.resolve()
    package_init = candidate_base / "__init__.py"
    if package_init.exists() and package_init.is_file():
        return package_init.resolve()
    return None


def _is_script_globals_import(stmt: ast.stmt) -> bool:
    if isinstance(stmt, ast.ImportFrom):
        return stmt.level == 0 and stmt.module == SCRIPT_GLOBALS_MODULE
    if isinstance(stmt, ast.Import):
        return all(alias.name == SCRIPT_GLOBALS_MODULE for alias in stmt.names)
    return False


def _extract_local_import_paths(
    stmt: ast.stmt,
    *,
    project_root: Path,
    current_file: Path,
) -> List[Path]:
    paths: List[Path] = []

    if isinstance(stmt, ast.ImportFrom):
        if stmt.level <= 0:
            target = project_root.joinpath(*(stmt.module or "").split("."))
            resolved = _resolve_module_file(target) if stmt.module else None
            return [resolved] if resolved is not None else []
        base = current_file.parent
        for _ in range(max(stmt.level - 1, 0)):
            base = base.parent
        if stmt.module:
            target = base.joinpath(*stmt.module.split("."))
            resolved = _resolve_module_file(target)
            if resolved is None:
                raise BundleError(
                    f"Cannot resolve relative import '{'.' * stmt.level}{stmt.module}'.",
                    node=stmt,
                )
            paths.append(resolved)
            return paths
        for alias in stmt.names:
            if alias.name == "*":
                continue
            target = base.joinpath(*alias.name.split("."))
            resolved = _resolve_module_file(target)
            if resolved is not None:
                paths.append(resolved)
        return paths

    if isinstance(stmt, ast.Import):
        for alias in stmt.names:
            target = project_root.joinpath(*alias.name.split("."))
            resolved = _resolve_module_file(target)
            if resolved is not None:
                paths.append(resolved)
    return paths


def _non_local_imports(stmt: ast.stmt, project_root: Path) -> Optional[ast.stmt]:
    # ``import json, helpers`` keeps ``import json``
    if not isinstance(stmt, ast.Import):
        return None
    names = [
        alias
        for alias in stmt.names
        if _resolve_module_file(project_root.joinpath(*alias.name.split("."))) is None
    ]
    if not names:
        return None
    return ast.copy_location(ast.Import(names=names), stmt)


def collect_sources(entry_path: Union[str, Path]) -> CollectedSources:
    """Collect ``(path, source)`` for every module in bundle order."""
    main_path = Path(entry_path)
    if not main_path.exists():
        raise InputNotFoundError(f"'{main_path}' does not exist")
    if not main_path.is_file():
        raise InputNotFoundError(f"Entry path is not a file: {main_path}")

    project_root = main_path.parent.resolve()
    visited: Set[Path] = set()
    collected = CollectedSources()

    def visit(path: Path) -> None:
        path = path.resolve()
        if path in visited:
            return
        visited.add(path)

        source = path.read_text(encoding="utf-8")
        try:
            module = ast.parse(source, filename=str(path))
        except SyntaxError as exc:
            raise BundleError(f"{path}: {format_syntax_error(exc, source)}") from exc

        deps: List[Path] = []
        kept_body: List[ast.stmt] = []
        with bundle_source_context(source):
            for stmt in module.body:
                if _is_script_globals_import(stmt):
                    continue
                if is_future_import(stmt):
                    for alias in stmt.names:
                        if alias.name not in collected.future_features:
                            collected.future_features.append(alias.name)
                    continue
                local_deps = _extract_local_import_paths(
                    stmt,
                    project_root=project_root,
                    current_file=path,
                )
                if local_deps:
                    deps.extend(local_deps)
                    remaining = _non_local_imports(stmt, project_root)
                    if remaining is not None:
                        kept_body.append(remaining)
                    continue
                kept_body.append(stmt)

        for dep in deps:
            visit(dep)

        filtered_module = ast.Module(body=kept_body, type_ignores=[])
        ast.fix_missing_locations(filtered_module)
        collected.modules.append((path, ast.unparse(filtered_module)))

    visit(main_path)
    return collected


def bundle_entry(entry_path: Union[str, Path]) -> str:
    """Bundle ``entry_path`` and its local imports into one source text."""
    entry = Path(entry_path)
    collected = collect_sources(entry)
    project_root = entry.parent.resolve()

    chunks: List[str] = []
    if collected.future_features:
        chunks.append(f"from __future__ import {', '.join(collected.future_features)}")
    for path, chunk in collected.modules:
        try:
            rel = path.relative_to(project_root)
        except ValueError:
            rel = path
        chunks.append(f"# --- source: {rel.as_posix()} ---\n{chunk}")
    return "\n\n".join(chunks) + "\n"

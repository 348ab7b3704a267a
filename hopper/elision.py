"""Static split of bundle source into build-time and run-time programs.

Two marker identifiers partition the bundle:

- ``mods`` roots run-time-only code (it names the module alias object that
  only exists inside the engine).
- ``buildtime`` roots build-time-only code.

Each phase gets its own walk over a private copy of the parsed bundle. The
walk for a phase drops code rooted at the *other* phase's marker: a maximal
attribute/subscript/call chain starting at that marker becomes ``None``,
statements assigning into it or evaluating it are removed, and
``with <marker>:`` blocks are removed. ``with <own marker>:`` blocks are
unwrapped in place.
"""

import ast
import copy
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from hopper.errors import BundleError, bundle_source_context, format_syntax_error


RUNTIME_MARKER = "mods"
BUILD_MARKER = "buildtime"


class Phase(Enum):
    BUILD = "build"
    RUNTIME = "runtime"

    @property
    def own_marker(self) -> str:
        return BUILD_MARKER if self is Phase.BUILD else RUNTIME_MARKER

    @property
    def foreign_marker(self) -> str:
        return RUNTIME_MARKER if self is Phase.BUILD else BUILD_MARKER


@dataclass(frozen=True)
class PhaseSources:
    build: str
    runtime: str


def chain_root(node: ast.AST) -> Optional[ast.Name]:
    """Follow ``a.b[c].d()`` down to ``a``; ``None`` if the chain ends elsewhere."""
    current = node
    while True:
        if isinstance(current, ast.Name):
            return current
        if isinstance(current, (ast.Attribute, ast.Subscript)):
            current = current.value
            continue
        if isinstance(current, ast.Call):
            current = current.func
            continue
        return None


def _is_rooted_at(node: Optional[ast.AST], marker: str) -> bool:
    if node is None:
        return False
    root = chain_root(node)
    return root is not None and root.id == marker


def _is_marker_block(node: ast.With, marker: str) -> bool:
    if len(node.items) != 1:
        return False
    item = node.items[0]
    return (
        item.optional_vars is None
        and isinstance(item.context_expr, ast.Name)
        and item.context_expr.id == marker
    )


class _PhaseElider(ast.NodeTransformer):
    def __init__(self, phase: Phase):
        self._own = phase.own_marker
        self._foreign = phase.foreign_marker

    def visit(self, node: ast.AST) -> Union[ast.AST, List[ast.stmt], None]:
        if (
            isinstance(node, ast.expr)
            and isinstance(getattr(node, "ctx", ast.Load()), ast.Load)
            and _is_rooted_at(node, self._foreign)
        ):
            return ast.copy_location(ast.Constant(value=None), node)
        return super().visit(node)

    def visit_With(self, node: ast.With) -> Union[ast.AST, List[ast.stmt], None]:
        if _is_marker_block(node, self._foreign):
            return None
        if _is_marker_block(node, self._own):
            body: List[ast.stmt] = []
            for stmt in node.body:
                result = self.visit(stmt)
                if result is None:
                    continue
                if isinstance(result, list):
                    body.extend(result)
                else:
                    body.append(result)
            return body
        for item in node.items:
            if isinstance(item.context_expr, ast.Name) and item.context_expr.id in (
                self._own,
                self._foreign,
            ):
                raise BundleError(
                    f"Marker blocks must be written as 'with {item.context_expr.id}:'.",
                    node=node,
                )
        return self.generic_visit(node)

    def visit_Expr(self, node: ast.Expr) -> Optional[ast.AST]:
        if _is_rooted_at(node.value, self._foreign):
            return None
        return self.generic_visit(node)

    def visit_Assign(self, node: ast.Assign) -> Optional[ast.AST]:
        if any(_is_rooted_at(target, self._foreign) for target in node.targets):
            return None
        return self.generic_visit(node)

    def visit_AugAssign(self, node: ast.AugAssign) -> Optional[ast.AST]:
        if _is_rooted_at(node.target, self._foreign):
            return None
        return self.generic_visit(node)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> Optional[ast.AST]:
        if _is_rooted_at(node.target, self._foreign):
            return None
        return self.generic_visit(node)

    def visit_Delete(self, node: ast.Delete) -> Optional[ast.AST]:
        if any(_is_rooted_at(target, self._foreign) for target in node.targets):
            return None
        return self.generic_visit(node)

    def visit_FunctionDef(self, node: ast.FunctionDef) -> ast.AST:
        self._drop_foreign_decorators(node)
        return self.generic_visit(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> ast.AST:
        self._drop_foreign_decorators(node)
        return self.generic_visit(node)

    def visit_ClassDef(self, node: ast.ClassDef) -> ast.AST:
        self._drop_foreign_decorators(node)
        return self.generic_visit(node)

    def _drop_foreign_decorators(self, node) -> None:
        node.decorator_list = [
            decorator
            for decorator in node.decorator_list
            if not _is_rooted_at(decorator, self._foreign)
        ]


_TRY_NODES = (ast.Try, getattr(ast, "TryStar", ast.Try))


class _EmptyBodyFiller(ast.NodeVisitor):
    def generic_visit(self, node: ast.AST) -> None:
        body = getattr(node, "body", None)
        if not isinstance(node, ast.Module) and isinstance(body, list) and not body:
            node.body = [ast.Pass()]
        # try needs at least one handler or a finally block
        if isinstance(node, _TRY_NODES) and not node.handlers and not node.finalbody:
            node.finalbody = [ast.Pass()]
        super().generic_visit(node)


def is_future_import(stmt: ast.stmt) -> bool:
    return isinstance(stmt, ast.ImportFrom) and stmt.level == 0 and stmt.module == "__future__"


def parse_bundle(source: str) -> ast.Module:
    try:
        return ast.parse(source)
    except SyntaxError as exc:
        raise BundleError(format_syntax_error(exc, source)) from exc


def elide_for_phase(module: ast.Module, phase: Phase) -> ast.Module:
    """Return a copy of ``module`` stripped of code foreign to ``phase``."""
    transformed = _PhaseElider(phase).visit(copy.deepcopy(module))
    _EmptyBodyFiller().visit(transformed)
    ast.fix_missing_locations(transformed)
    return transformed


def split_phases(source: str) -> PhaseSources:
    """Produce the evaluate-now and embed-for-later programs for a bundle."""
    with bundle_source_context(source):
        module = parse_bundle(source)
        return PhaseSources(
            build=ast.unparse(elide_for_phase(module, Phase.BUILD)),
            runtime=ast.unparse(elide_for_phase(module, Phase.RUNTIME)),
        )

import ast
from typing import Tuple

from hopper.elision import is_future_import, parse_bundle
from hopper.errors import bundle_source_context


def _is_docstring(stmt: ast.stmt) -> bool:
    return (
        isinstance(stmt, ast.Expr)
        and isinstance(stmt.value, ast.Constant)
        and isinstance(stmt.value.value, str)
    )


class _DocstringStripper(ast.NodeTransformer):
    def generic_visit(self, node: ast.AST) -> ast.AST:
        if isinstance(
            node, (ast.Module, ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)
        ) and node.body and _is_docstring(node.body[0]):
            node.body = node.body[1:] or [ast.Pass()]
        return super().generic_visit(node)


def minify_source(source: str) -> str:
    """Shrink Python source without changing behaviour.

    Docstrings are removed; comments, blank lines and formatting go away
    through the ``ast`` round trip.
    """
    with bundle_source_context(source):
        module = parse_bundle(source)
    stripped = _DocstringStripper().visit(module)
    ast.fix_missing_locations(stripped)
    return ast.unparse(stripped) + "\n"


def split_future_imports(source: str) -> Tuple[str, str]:
    """Separate ``from __future__`` imports from the rest of ``source``."""
    with bundle_source_context(source):
        module = parse_bundle(source)
    future = [stmt for stmt in module.body if is_future_import(stmt)]
    if not future:
        return "", source
    rest = [stmt for stmt in module.body if not is_future_import(stmt)]
    return (
        ast.unparse(ast.Module(body=future, type_ignores=[])),
        ast.unparse(ast.Module(body=rest, type_ignores=[])),
    )


def assemble_bundle(banner: str, runtime_code: str, *, optimize: bool = False) -> str:
    """Concatenate banner and run-time program, banner first.

    ``from __future__`` imports of the program move above the banner, the only
    place Python accepts them.
    """
    future, runtime_code = split_future_imports(runtime_code)
    bundle = banner.rstrip("\n") + "\n\n\n" + runtime_code.strip("\n") + "\n"
    if future:
        bundle = future + "\n" + bundle
    if optimize:
        bundle = minify_source(bundle)
    return bundle

import ast
import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional


_CURRENT_BUNDLE_SOURCE: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "hopper_current_bundle_source", default=None
)


def _line_from_source(source: str, line_no: int) -> Optional[str]:
    if line_no <= 0:
        return None
    lines = source.splitlines()
    if line_no > len(lines):
        return None
    return lines[line_no - 1].strip()


def _format_with_context(
    message: str,
    *,
    source: Optional[str] = None,
    node: Optional[ast.AST] = None,
) -> str:
    source = source if source is not None else _CURRENT_BUNDLE_SOURCE.get()
    if node is None:
        return message

    line = getattr(node, "lineno", None)
    col = getattr(node, "col_offset", None)
    if line is None:
        return message

    code: Optional[str] = None
    if source is not None:
        code = ast.get_source_segment(source, node) or _line_from_source(source, line)
        if code is not None:
            code = code.strip()

    details = [f"Location: line {line}, column {(col + 1) if col is not None else 1}"]
    if code:
        details.append(f"Code: {code}")
    return f"{message}\n" + "\n".join(details)


def format_syntax_error(exc: SyntaxError, source: str) -> str:
    line = exc.lineno or 0
    col = exc.offset or 0
    snippet = (exc.text or "").strip()
    if not snippet and line > 0:
        snippet = _line_from_source(source, line) or ""
    message = f"Invalid Python syntax: {exc.msg}"
    if line > 0:
        message += f"\nLocation: line {line}, column {col if col > 0 else 1}"
    if snippet:
        message += f"\nCode: {snippet}"
    return message


@contextmanager
def bundle_source_context(source: str) -> Iterator[None]:
    token = _CURRENT_BUNDLE_SOURCE.set(source)
    try:
        yield
    finally:
        _CURRENT_BUNDLE_SOURCE.reset(token)


class HopperError(Exception):
    """Base build error."""


class ProtocolError(HopperError):
    """Raised when the component lifecycle rules are broken."""

    HANDLE_EXPIRED = "handle-expired"
    ADDON_ALREADY_ESTABLISHED = "addon-already-established"
    COMPONENT_AFTER_ESTABLISH = "component-after-establish"

    def __init__(self, message: str, *, rule: str):
        super().__init__(f"{message} [{rule}]")
        self.rule = rule


class NoAddonError(HopperError):
    """Raised when the bundle finished evaluating without establishing an addon."""


class InputNotFoundError(HopperError, FileNotFoundError):
    """Raised when a manifest or the entry module is missing."""


class ManifestError(HopperError):
    """Raised when a manifest cannot be read into dependencies."""


class RegistrationError(HopperError):
    """Raised when a registration call is given unusable options."""


class BundleError(HopperError):
    """Raised when bundle source cannot be parsed or assembled."""

    def __init__(self, message: str, *, node: Optional[ast.AST] = None):
        super().__init__(_format_with_context(message, node=node))

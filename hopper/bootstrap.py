"""Source generator for the run-time composition protocol.

The emitted text is a standalone copy of the component protocol meant to run
inside the engine. It expects ``mods`` (the module alias object) to be bound
in an enclosing scope and defines ``define_component`` and
``establish_addon``. Nothing from this package is importable at run time, so
the text depends on builtins only.
"""

from typing import Tuple

from hopper.artifacts import SCRIPT_FUNCTION_NAME, ArtifactKind


RUNTIME_EXPORTS = ("define_component", "establish_addon")

_BOOTSTRAP_TEMPLATE = '''\
_FILE_KINDS = __FILE_KINDS__
_once_keys = set()
_session = {"names": 0, "established": False}


class _ProtocolError(RuntimeError):
    def __init__(self, message, rule):
        super().__init__(message + " [" + rule + "]")
        self.rule = rule


def _ensure_not_established(function_name):
    if _session["established"]:
        raise _ProtocolError(
            "Cannot use '" + function_name + "' after 'establish_addon' has been called.",
            "component-after-establish",
        )


def _claim_once(once):
    if once is None:
        return True
    if once in _once_keys:
        return False
    _once_keys.add(once)
    return True


class _Component:
    __slots__ = ("script_callbacks",)

    def __init__(self, script_callbacks):
        self.script_callbacks = tuple(script_callbacks)


class _Define:
    def __init__(self, handle):
        self._handle = handle

    def __SCRIPT__(self, callback, *, once=None):
        self._handle._ensure_open("__SCRIPT__")
        if not callable(callback):
            raise TypeError("'__SCRIPT__' expects a callable.")
        if _claim_once(once):
            self._handle._scripts.append(callback)

    def __getattr__(self, function_name):
        if function_name not in _FILE_KINDS:
            raise AttributeError("Unknown registration function '" + function_name + "'.")
        handle = self._handle

        def register(content, *, name=None, root_dir=None, ext=None, once=None):
            handle._ensure_open(function_name)
            if _claim_once(once):
                _session["names"] += 1
            return False

        return register


class _Handle:
    def __init__(self):
        self._open = True
        self._inherited = []
        self._scripts = []
        self.define = _Define(self)

    def _ensure_open(self, function_name):
        if not self._open:
            raise _ProtocolError(
                "Cannot use '" + function_name + "' as it is no longer available.",
                "handle-expired",
            )

    def implement(self, component):
        self._ensure_open("implement")
        if not isinstance(component, _Component):
            raise TypeError("'implement' expects a component.")
        self._inherited.extend(component.script_callbacks)


def define_component(callback):
    _ensure_not_established("define_component")

    def factory(*args, **kwargs):
        _ensure_not_established(getattr(callback, "__name__", "component factory"))
        handle = _Handle()
        try:
            callback(handle, *args, **kwargs)
        finally:
            handle._open = False
        return _Component(handle._inherited + handle._scripts)

    return factory


def establish_addon(component):
    if _session["established"]:
        raise _ProtocolError(
            "'establish_addon' has already been called.",
            "addon-already-established",
        )
    if not isinstance(component, _Component):
        raise TypeError("'establish_addon' expects a component.")
    _session["established"] = True
    for callback in component.script_callbacks:
        callback(mods)
'''


def file_kind_names() -> Tuple[str, ...]:
    return tuple(kind.function_name for kind in ArtifactKind)


def generate_bootstrap() -> str:
    """Return the run-time protocol source text."""
    kinds = "frozenset({" + ", ".join(repr(name) for name in file_kind_names()) + "})"
    return (
        _BOOTSTRAP_TEMPLATE
        .replace("__FILE_KINDS__", kinds)
        .replace("__SCRIPT__", SCRIPT_FUNCTION_NAME)
    )

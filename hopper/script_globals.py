"""Authoring stand-ins for the names the build and the engine inject.

Addon modules may ``from hopper.script_globals import ...`` so editors and
type checkers know these names. The bundler drops those imports; the real
bindings come from the build sandbox and from the run-time bootstrap.

Example:
    ``from hopper.script_globals import define_component, establish_addon, mods``
"""

from typing import Any, Callable, Optional, Protocol, Union


class Component:
    """Opaque result of calling a component factory."""


class Define(Protocol):
    """Registration functions reachable as ``handle.define``.

    Every file kind (``entity``, ``recipe``, ``particle``, ...) accepts
    ``(content, *, name=None, root_dir=None, ext=None, once=None)`` and
    returns the file name, or ``False`` when ``once`` was already seen.
    ``raw_text`` takes pre-serialized text and requires ``root_dir`` and
    ``ext``.
    """

    def script(self, callback: Callable[[Any], Any], *, once: Optional[str] = None) -> None:
        ...

    def __getattr__(self, name: str) -> Callable[..., Union[str, bool]]:
        ...


class Handle(Protocol):
    define: Define

    def implement(self, component: Component) -> None:
        ...


class _Marker:
    """Stand-in for a phase marker; any access yields another marker."""

    def __getattr__(self, _name: str) -> Any:
        return self

    def __getitem__(self, _key: Any) -> Any:
        return self

    def __call__(self, *_args: Any, **_kwargs: Any) -> Any:
        return self

    def __enter__(self) -> "_Marker":
        return self

    def __exit__(self, *_exc: Any) -> None:
        return None


mods: Any = _Marker()
"""Run-time module alias object. Code rooted here is removed at build time.

Every manifest alias is available as ``mods["alias"]``; aliases that are
identifiers can also be read as attributes (``mods.server``).
"""

buildtime: Any = _Marker()
"""Build-time-only block marker: ``with buildtime: ...``."""


def define_component(callback: Callable[..., None]) -> Callable[..., Component]:
    """Turn ``callback(handle, *args)`` into a reusable component factory."""
    raise RuntimeError("define_component is only available inside a hopper build or bundle.")


def establish_addon(component: Component) -> None:
    """Designate ``component`` as the addon root. Call exactly once."""
    raise RuntimeError("establish_addon is only available inside a hopper build or bundle.")

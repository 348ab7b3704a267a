"""Build-time component composition protocol.

A :class:`BuildSession` owns the once-key registry and the file-name counter
for one build. Component factories created through the session receive a
fresh :class:`RegistrationHandle` per invocation; the handle is closed as soon
as the factory callback returns and the registrations are frozen into an
immutable :class:`Component`.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from hopper.artifacts import (
    SCRIPT_FUNCTION_NAME,
    ArtifactKind,
    FileArtifact,
    artifact_path,
    serialize_content,
)
from hopper.errors import NoAddonError, ProtocolError, RegistrationError


ScriptCallback = Callable[[Any], Any]
RegistrationResult = Union[str, bool]

DEFINE_COMPONENT = "define_component"
ESTABLISH_ADDON = "establish_addon"
IMPLEMENT = "implement"


class OnceKeyRegistry:
    """Keys seen so far in one registry lifetime."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def claim(self, key: Optional[str]) -> bool:
        """Record ``key`` and report whether this is its first occurrence.

        Registrations without a key always pass.
        """
        if key is None:
            return True
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._seen

    def __len__(self) -> int:
        return len(self._seen)


class NameCounter:
    """Build-global auto-increment counter shared by every artifact kind."""

    def __init__(self, start: int = 0) -> None:
        self._value = start

    @property
    def value(self) -> int:
        return self._value

    def next_name(self, explicit: Optional[str] = None) -> str:
        name = explicit if explicit is not None else str(self._value)
        self._value += 1
        return name


@dataclass(frozen=True)
class Component:
    file_artifacts: Tuple[FileArtifact, ...] = ()
    script_callbacks: Tuple[ScriptCallback, ...] = ()


class DefineFunctions:
    """The ``handle.define`` namespace.

    Attribute access resolves to a registration function for the matching
    :class:`ArtifactKind` (``define.entity``, ``define.raw_text``, ...) or to
    ``define.script``.
    """

    def __init__(self, handle: "RegistrationHandle"):
        self._handle = handle

    def script(self, callback: ScriptCallback, *, once: Optional[str] = None) -> None:
        self._handle.register_script(callback, once=once)

    def __getattr__(self, name: str) -> Callable[..., RegistrationResult]:
        if name.startswith("_"):
            raise AttributeError(name)
        kind = ArtifactKind.from_function_name(name)

        def register(
            content: Any,
            *,
            name: Optional[str] = None,
            root_dir: Optional[str] = None,
            ext: Optional[str] = None,
            once: Optional[str] = None,
        ) -> RegistrationResult:
            return self._handle.register_file(
                kind, content, name=name, root_dir=root_dir, ext=ext, once=once
            )

        register.__name__ = kind.function_name
        return register

    def __dir__(self) -> List[str]:
        return [kind.function_name for kind in ArtifactKind] + [SCRIPT_FUNCTION_NAME]


class RegistrationHandle:
    """Single-use registration surface handed to one factory invocation."""

    def __init__(self, session: "BuildSession"):
        self._session = session
        self._inherited_files: List[FileArtifact] = []
        self._inherited_scripts: List[ScriptCallback] = []
        self._own_files: List[FileArtifact] = []
        self._own_scripts: List[ScriptCallback] = []
        self._open = True
        self.define = DefineFunctions(self)

    @property
    def is_open(self) -> bool:
        return self._open

    def implement(self, component: Component) -> None:
        """Inherit everything ``component`` registered.

        Inherited entries sit in front of this handle's own registrations,
        in the order the ``implement`` calls were made.
        """
        self._ensure_open(IMPLEMENT)
        if not isinstance(component, Component):
            raise RegistrationError(
                f"'implement' expects a component, got {type(component).__name__}."
            )
        self._inherited_files.extend(component.file_artifacts)
        self._inherited_scripts.extend(component.script_callbacks)

    def register_file(
        self,
        kind: ArtifactKind,
        content: Any,
        *,
        name: Optional[str] = None,
        root_dir: Optional[str] = None,
        ext: Optional[str] = None,
        once: Optional[str] = None,
    ) -> RegistrationResult:
        self._ensure_open(kind.function_name)
        spec = kind.spec
        if spec.name_required and name is None:
            raise RegistrationError(f"'{kind.function_name}' requires an explicit name.")
        root_dir = root_dir if root_dir is not None else spec.root_dir
        ext = ext if ext is not None else spec.ext
        if root_dir is None or ext is None:
            raise RegistrationError(
                f"'{kind.function_name}' requires both 'root_dir' and 'ext'."
            )

        serialized = serialize_content(kind, content)
        if not self._session.once_keys.claim(once):
            return False

        file_name = self._session.names.next_name(name)
        self._own_files.append(
            FileArtifact(path=artifact_path(root_dir, file_name, ext), content=serialized)
        )
        return file_name

    def register_script(self, callback: ScriptCallback, *, once: Optional[str] = None) -> None:
        self._ensure_open(SCRIPT_FUNCTION_NAME)
        if not callable(callback):
            raise RegistrationError(
                f"'script' expects a callable, got {type(callback).__name__}."
            )
        if not self._session.once_keys.claim(once):
            return
        self._own_scripts.append(callback)

    def close(self) -> Component:
        self._open = False
        return Component(
            file_artifacts=tuple(self._inherited_files + self._own_files),
            script_callbacks=tuple(self._inherited_scripts + self._own_scripts),
        )

    def _ensure_open(self, function_name: str) -> None:
        if not self._open:
            raise ProtocolError(
                f"Cannot use '{function_name}' as it is no longer available.",
                rule=ProtocolError.HANDLE_EXPIRED,
            )


class BuildSession:
    """State for one build: once-keys, file-name counter and the addon root."""

    def __init__(self) -> None:
        self.once_keys = OnceKeyRegistry()
        self.names = NameCounter()
        self._addon: Optional[Component] = None

    @property
    def established(self) -> bool:
        return self._addon is not None

    def define_component(
        self, callback: Callable[..., Any]
    ) -> Callable[..., Component]:
        self._ensure_not_established(DEFINE_COMPONENT)

        @functools.wraps(callback)
        def factory(*args: Any, **kwargs: Any) -> Component:
            self._ensure_not_established(getattr(callback, "__name__", "component factory"))
            handle = RegistrationHandle(self)
            try:
                callback(handle, *args, **kwargs)
            finally:
                component = handle.close()
            return component

        return factory

    def establish_addon(self, component: Component) -> None:
        if self._addon is not None:
            raise ProtocolError(
                f"'{ESTABLISH_ADDON}' has already been called.",
                rule=ProtocolError.ADDON_ALREADY_ESTABLISHED,
            )
        if not isinstance(component, Component):
            raise RegistrationError(
                f"'{ESTABLISH_ADDON}' expects a component, got {type(component).__name__}."
            )
        self._addon = component

    def addon(self) -> Component:
        if self._addon is None:
            raise NoAddonError(
                f"No addon established. The entry module must call '{ESTABLISH_ADDON}' once."
            )
        return self._addon

    def host_bindings(self) -> Dict[str, Any]:
        return {
            DEFINE_COMPONENT: self.define_component,
            ESTABLISH_ADDON: self.establish_addon,
        }

    def _ensure_not_established(self, function_name: str) -> None:
        if self._addon is not None:
            raise ProtocolError(
                f"Cannot use '{function_name}' after '{ESTABLISH_ADDON}' has been called.",
                rule=ProtocolError.COMPONENT_AFTER_ESTABLISH,
            )

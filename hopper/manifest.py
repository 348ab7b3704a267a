import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from hopper.errors import InputNotFoundError, ManifestError


ALIAS_KEYS = ("alias", "hopper:alias")


@dataclass(frozen=True)
class ModuleDependency:
    module_name: str
    version: Any = None
    alias: Optional[str] = None

    @property
    def lookup_key(self) -> str:
        """Key of the module in the run-time alias object."""
        return self.alias or self.module_name


@dataclass(frozen=True)
class PackDependency:
    uuid: str
    version: Any = None


Dependency = Union[ModuleDependency, PackDependency]


@dataclass(frozen=True)
class Manifest:
    dependencies: List[Dependency] = field(default_factory=list)

    @property
    def module_dependencies(self) -> List[ModuleDependency]:
        return [dep for dep in self.dependencies if isinstance(dep, ModuleDependency)]


def parse_dependency(entry: Any, index: int = 0) -> Dependency:
    if not isinstance(entry, dict):
        raise ManifestError(f"Dependency #{index} must be an object, got {type(entry).__name__}.")
    if "module_name" in entry:
        module_name = entry["module_name"]
        if not isinstance(module_name, str) or not module_name:
            raise ManifestError(f"Dependency #{index} has an empty 'module_name'.")
        alias = next((entry[key] for key in ALIAS_KEYS if entry.get(key)), None)
        return ModuleDependency(
            module_name=module_name,
            version=entry.get("version"),
            alias=alias,
        )
    if "uuid" in entry:
        return PackDependency(uuid=entry["uuid"], version=entry.get("version"))
    raise ManifestError(
        f"Dependency #{index} must declare either 'module_name' or 'uuid'."
    )


def manifest_from_dict(payload: Dict[str, Any]) -> Manifest:
    if not isinstance(payload, dict):
        raise ManifestError("Manifest root must be an object.")
    raw_dependencies = payload.get("dependencies") or []
    if not isinstance(raw_dependencies, list):
        raise ManifestError("Manifest 'dependencies' must be a list.")
    return Manifest(
        dependencies=[
            parse_dependency(entry, index) for index, entry in enumerate(raw_dependencies)
        ]
    )


def load_manifest(path: Union[str, Path]) -> Manifest:
    manifest_path = Path(path)
    if not manifest_path.is_file():
        raise InputNotFoundError(f"'{manifest_path}' does not exist")
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ManifestError(f"'{manifest_path}' is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    return manifest_from_dict(payload)

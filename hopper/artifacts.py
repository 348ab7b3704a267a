import json
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Optional

from hopper.errors import RegistrationError


BP_PREFIX = "BP"
RP_PREFIX = "RP"


class SerializationMode(Enum):
    JSON = "json"
    RAW = "raw"


@dataclass(frozen=True)
class KindSpec:
    root_dir: Optional[str]
    ext: Optional[str]
    mode: SerializationMode
    name_required: bool = False


def _json_kind(root_dir: str, *, name_required: bool = False) -> KindSpec:
    return KindSpec(root_dir, "json", SerializationMode.JSON, name_required)


class ArtifactKind(Enum):
    """Every file kind a component can register.

    The value of each member is its :class:`KindSpec`: default root directory,
    default extension, how the payload is serialized and whether an explicit
    file name is mandatory.
    """

    SERVER_ANIMATION_CONTROLLER = _json_kind("BP/animation_controllers")
    SERVER_ANIMATION = _json_kind("BP/animations")
    BIOME = _json_kind("BP/biomes")
    BLOCK = _json_kind("BP/blocks")
    DIALOGUE = _json_kind("BP/dialogue", name_required=True)
    ENTITY = _json_kind("BP/entities")
    FEATURE_RULES = _json_kind("BP/feature_rules")
    FEATURE = _json_kind("BP/features")
    ITEM = _json_kind("BP/items")
    LOOT_TABLE = _json_kind("BP/loot_tables", name_required=True)
    RECIPE = _json_kind("BP/recipes")
    SPAWN_RULES = _json_kind("BP/spawn_rules")
    TRADE_TABLE = _json_kind("BP/trading", name_required=True)
    CLIENT_ANIMATION_CONTROLLER = _json_kind("RP/animation_controllers")
    CLIENT_ANIMATION = _json_kind("RP/animations")
    ATTACHABLE = _json_kind("RP/attachables")
    CLIENT_ENTITY = _json_kind("RP/entity")
    PARTICLE = _json_kind("RP/particles")
    RENDER_CONTROLLER = _json_kind("RP/render_controllers")
    RAW_TEXT = KindSpec(None, None, SerializationMode.RAW)

    @property
    def spec(self) -> KindSpec:
        return self.value

    @property
    def function_name(self) -> str:
        """Name of the registration function exposed on ``handle.define``."""
        return self.name.lower()

    @classmethod
    def from_function_name(cls, name: str) -> "ArtifactKind":
        try:
            return cls[name.upper()]
        except KeyError as exc:
            raise AttributeError(f"Unknown registration function '{name}'.") from exc


SCRIPT_FUNCTION_NAME = "script"


@dataclass(frozen=True)
class FileArtifact:
    path: str
    content: str

    @property
    def side(self) -> str:
        """Top-level output area of the artifact (``BP`` or ``RP``)."""
        return PurePosixPath(self.path).parts[0]

    @property
    def relative_path(self) -> str:
        """Path below the output area."""
        return str(PurePosixPath(*PurePosixPath(self.path).parts[1:]))


def canonical_json(content: Any) -> str:
    return json.dumps(content, separators=(",", ":"), ensure_ascii=False)


def serialize_content(kind: ArtifactKind, content: Any) -> str:
    if kind.spec.mode is SerializationMode.JSON:
        try:
            return canonical_json(content)
        except (TypeError, ValueError) as exc:
            raise RegistrationError(
                f"'{kind.function_name}' content is not JSON serializable: {exc}"
            ) from exc
    if not isinstance(content, str):
        raise RegistrationError(
            f"'{kind.function_name}' expects pre-serialized text, got {type(content).__name__}."
        )
    return content


def artifact_path(root_dir: str, name: str, ext: str) -> str:
    return str(PurePosixPath(root_dir) / f"{name}.{ext}")
